"""Prometheus alert notifier for Telegram.

Polls the alerts API, detects changes, and sends grouped alert summaries.
"""

from .daemon import AlerterDaemon, build_daemon, run_alerter
from .errors import (
    AlerterError,
    DispatchError,
    FetchError,
    OversizeError,
    PayloadError,
)
from .labels import LabelSet
from .models import Alert, AlertState, group_key
from .render import (
    MAX_MESSAGE_LENGTH,
    MESSAGE_SIZE_LIMIT,
    alert_text,
    build_messages,
    escape_markdown,
    render_group,
    truncate_message,
)
from .source import AlertSource
from .telegram import TelegramClient

__all__ = [
    # Daemon
    "AlerterDaemon",
    "build_daemon",
    "run_alerter",
    # Model
    "Alert",
    "AlertState",
    "LabelSet",
    "group_key",
    # Rendering
    "alert_text",
    "escape_markdown",
    "render_group",
    "build_messages",
    "truncate_message",
    "MESSAGE_SIZE_LIMIT",
    "MAX_MESSAGE_LENGTH",
    # Collaborators
    "AlertSource",
    "TelegramClient",
    # Errors
    "AlerterError",
    "FetchError",
    "PayloadError",
    "DispatchError",
    "OversizeError",
]

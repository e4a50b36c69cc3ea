"""Render alert states into size-bounded notification messages."""

import re
from collections.abc import Sequence

from .models import Alert, AlertState

# Rendering stops taking alerts once the running size reaches this
MESSAGE_SIZE_LIMIT = 3500
# Hard cap enforced by the notifier
MAX_MESSAGE_LENGTH = 3600

ELLIPSIS = "..."
NO_ALERTS = "NO ALERTS"

# Entity delimiters of Telegram's legacy Markdown
_MARKDOWN_SPECIAL = re.compile(r"([_*`\[])")


def escape_markdown(text: str) -> str:
    """Backslash-escape characters Telegram Markdown would parse as entities."""
    return _MARKDOWN_SPECIAL.sub(r"\\\1", text)


def alert_text(alert: Alert, markdown: bool = False) -> str:
    """Format one alert.

    Uses the ``summary``/``description`` annotations when either is set,
    otherwise all annotations, otherwise the alert labels. With ``markdown``
    the canonical-string fallbacks are escaped; summary and description are
    passed through as authored.
    """
    rows = []
    if alert.annotations:
        summary = alert.annotations.get("summary")
        if summary:
            rows.append(f"• *{summary}*")
        description = alert.annotations.get("description")
        if description:
            rows.append(description)
        if not rows:
            rows.append(_plain(alert.annotations.canonical(), markdown))
    if not rows:
        rows.append(_plain(alert.labels.canonical(), markdown))
    return "\n".join(rows)


def _plain(text: str, markdown: bool) -> str:
    return escape_markdown(text) if markdown else text


def render_group(alerts: Sequence[Alert], markdown: bool = False) -> str:
    """Join alert texts until the size limit is reached.

    The limit is checked before each alert is added, so the last alert may
    push the body past it. In that case an ellipsis is appended.
    """
    size = 0
    rows = []
    for alert in alerts:
        if size >= MESSAGE_SIZE_LIMIT:
            break
        text = alert_text(alert, markdown)
        rows.append(text)
        size += len(text) + 2

    body = "\n".join(rows)
    if len(body) >= MESSAGE_SIZE_LIMIT:
        body += ELLIPSIS
    return body


def build_messages(state: AlertState, group_by: str, markdown: bool = False) -> dict[str, str]:
    """Build one message body per group key.

    The empty key carries the error message, or ``NO ALERTS`` when no alert
    matched any group.
    """
    if state.error:
        return {"": "ERROR: " + _plain(state.error, markdown)}

    out = {
        key: render_group(group, markdown)
        for key, group in state.grouped(group_by).items()
    }
    if not out:
        out[""] = NO_ALERTS
    return out


def truncate_message(body: str, limit: int = MAX_MESSAGE_LENGTH) -> str:
    """Clip ``body`` to ``limit`` characters, ending with an ellipsis.

    Cuts at the last line break that fits, so a Markdown entity opened on a
    line is never left unclosed. A single line longer than the limit is cut
    mid-line.
    """
    if len(body) <= limit:
        return body
    head = body[: limit - len(ELLIPSIS)]
    cut = head.rfind("\n")
    if cut > 0:
        head = head[: cut + 1]
    return head + ELLIPSIS

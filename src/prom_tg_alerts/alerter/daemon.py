"""Alerter daemon that polls the alerts API and sends changes to Telegram."""

import signal
import threading
from types import FrameType

import structlog

from prom_tg_alerts import __version__
from prom_tg_alerts.config import Config
from prom_tg_alerts.metrics import (
    ACTIVE_ALERTS,
    MESSAGES,
    POLL_DURATION,
    POLLS,
    SERVICE_INFO,
    STATE_CHANGES,
    start_metrics_server,
)

from .errors import DispatchError, OversizeError
from .models import AlertState
from .render import MAX_MESSAGE_LENGTH, build_messages, truncate_message
from .source import AlertSource
from .telegram import TelegramClient

log = structlog.get_logger()


class AlerterDaemon:
    """Polls an alert source and notifies a chat whenever the alert set changes."""

    def __init__(
        self,
        source: AlertSource,
        notifier: TelegramClient,
        chat_id: str,
        group_by: str = "instance",
        frequency: float = 15,
        markdown: bool = False,
    ):
        """Initialize the alerter daemon.

        Args:
            source: Alert source, anything with ``fetch() -> AlertState``
            notifier: Notifier, anything with ``send_message(chat_id, text)``
            chat_id: Chat that receives the messages
            group_by: Label used to split alerts into messages
            frequency: Seconds between polls
            markdown: Escape fallback texts for Telegram Markdown
        """
        self.source = source
        self.notifier = notifier
        self.chat_id = chat_id
        self.group_by = group_by
        self.frequency = frequency
        self.markdown = markdown

        # Starts empty, so the first poll after a restart always dispatches
        self.prev_state = AlertState()
        self.healthy = True

        self._stop_event = threading.Event()

    @property
    def stopped(self) -> bool:
        return self._stop_event.is_set()

    def poll_once(self) -> dict[str, bool]:
        """Run one fetch/compare/dispatch cycle.

        Returns:
            Delivery result per message key; empty when nothing changed
        """
        with POLL_DURATION.time():
            state = self.source.fetch()
            self.healthy = not state.error
            if state.error:
                POLLS.labels(result="error").inc()
            else:
                POLLS.labels(result="ok").inc()
                ACTIVE_ALERTS.set(len(state.alerts))

            if state.fingerprint() == self.prev_state.fingerprint():
                log.debug("Alert state unchanged", alerts=len(state.alerts))
                self.prev_state = state
                return {}

            STATE_CHANGES.inc()
            log.info("Alert state changed", alerts=len(state.alerts), error=state.error or None)
            results = self.dispatch(build_messages(state, self.group_by, self.markdown))

            # Failed sends are not retried for the same state
            self.prev_state = state
            return results

    def dispatch(self, messages: dict[str, str]) -> dict[str, bool]:
        """Send each message on its own; one failure does not stop the rest."""
        results: dict[str, bool] = {}
        for key in sorted(messages):
            body = messages[key]
            log.info("Dispatching message", group_by=self.group_by, key=key, length=len(body))

            if len(body) > MAX_MESSAGE_LENGTH:
                log.warning(
                    "Message truncated",
                    key=key,
                    length=len(body),
                    limit=MAX_MESSAGE_LENGTH,
                )
                body = truncate_message(body)

            try:
                self.notifier.send_message(self.chat_id, body)
            except OversizeError as e:
                MESSAGES.labels(status="oversize").inc()
                log.error("Message rejected", key=key, error=str(e))
                results[key] = False
            except DispatchError as e:
                MESSAGES.labels(status="failed").inc()
                log.error("Notification failure", key=key, error=str(e))
                results[key] = False
            else:
                MESSAGES.labels(status="sent").inc()
                log.info("Message sent", key=key)
                results[key] = True
        return results

    def run(self) -> None:
        """Poll until stop() is called."""
        log.info(
            "Starting alerter daemon",
            group_by=self.group_by,
            frequency=self.frequency,
        )

        try:
            while not self._stop_event.is_set():
                try:
                    self.poll_once()
                except Exception:
                    log.exception("Unexpected error during poll")
                self._stop_event.wait(self.frequency)
        except KeyboardInterrupt:
            log.info("Received shutdown signal")
            self.stop()

        log.info("Alerter daemon stopped")

    def stop(self) -> None:
        """Stop the alerter daemon after the current cycle."""
        log.info("Stopping alerter daemon")
        self._stop_event.set()


def build_daemon(config: Config) -> AlerterDaemon:
    """Wire an AlerterDaemon from configuration."""
    source = AlertSource(config.alerts_url, timeout=config.fetch_timeout)
    notifier = TelegramClient(
        config.telegram_bot_token,
        api_url=config.telegram_api_url,
        parse_mode=config.parse_mode,
        timeout=config.send_timeout,
    )
    return AlerterDaemon(
        source=source,
        notifier=notifier,
        chat_id=config.telegram_chat_id,
        group_by=config.group_by,
        frequency=config.frequency,
        markdown=config.markdown,
    )


def run_alerter(config: Config) -> None:
    """Run the alerter daemon until SIGTERM/SIGINT.

    Raises:
        ValueError: Required settings are missing
    """
    missing = config.missing()
    if missing:
        raise ValueError(f"Missing required settings: {', '.join(missing)}")

    daemon = build_daemon(config)

    def handle_signal(signum: int, frame: FrameType | None) -> None:
        log.info("Received shutdown signal", signal=signal.Signals(signum).name)
        daemon.stop()

    if threading.current_thread() is threading.main_thread():
        signal.signal(signal.SIGTERM, handle_signal)
        signal.signal(signal.SIGINT, handle_signal)

    SERVICE_INFO.info({"version": __version__, "group_by": config.group_by})
    if config.metrics_port:
        start_metrics_server(port=config.metrics_port, health_check=lambda: daemon.healthy)

    daemon.run()

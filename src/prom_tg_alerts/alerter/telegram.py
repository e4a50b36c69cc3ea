"""Telegram Bot API client for sending alert messages."""

import httpx
import structlog

from .errors import DispatchError, OversizeError
from .render import MAX_MESSAGE_LENGTH

log = structlog.get_logger()

DEFAULT_API_URL = "https://api.telegram.org"


class TelegramClient:
    """Simple Telegram bot client."""

    def __init__(
        self,
        bot_token: str,
        api_url: str = DEFAULT_API_URL,
        parse_mode: str = "Markdown",
        timeout: float = 10.0,
    ):
        self.bot_token = bot_token
        self.api_url = api_url.rstrip("/")
        self.parse_mode = parse_mode
        self.timeout = timeout

    @property
    def send_url(self) -> str:
        return f"{self.api_url}/bot{self.bot_token}/sendMessage"

    def send_message(self, chat_id: str, text: str) -> None:
        """Send a message to a chat.

        Args:
            chat_id: Telegram chat ID or @channel name
            text: Message body (Markdown unless parse_mode is empty)

        Raises:
            OversizeError: The body is longer than MAX_MESSAGE_LENGTH
            DispatchError: Telegram could not be reached or rejected the message
        """
        if len(text) > MAX_MESSAGE_LENGTH:
            raise OversizeError(len(text), MAX_MESSAGE_LENGTH)

        payload = {"chat_id": chat_id, "text": text}
        if self.parse_mode:
            payload["parse_mode"] = self.parse_mode

        try:
            response = httpx.post(self.send_url, json=payload, timeout=self.timeout)
        except httpx.RequestError as e:
            raise DispatchError(f"request failed: {e}") from e

        try:
            body = response.json()
        except ValueError:
            body = {}
        if not isinstance(body, dict):
            body = {}

        if response.is_error or body.get("ok") is False:
            description = body.get("description") or response.reason_phrase
            raise DispatchError(f"Telegram API error {response.status_code}: {description}")

        log.debug("Telegram message sent", chat_id=chat_id, length=len(text))

    def send(self, chat_id: str, text: str) -> bool:
        """Send a message to a chat.

        Returns:
            True if successful, False otherwise
        """
        try:
            self.send_message(chat_id, text)
            return True
        except DispatchError as e:
            log.error("Telegram send failed", chat_id=chat_id, error=str(e))
            return False

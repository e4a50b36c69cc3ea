"""Configuration loading for prom-tg-alerts."""

import os
from dataclasses import dataclass
from pathlib import Path

import yaml

DEFAULT_CONFIG_PATH = Path.home() / ".prom-tg-alerts" / "config.yaml"


@dataclass
class Config:
    """Application configuration."""

    alerts_url: str = ""
    fetch_timeout: float = 10.0
    telegram_bot_token: str = ""
    telegram_chat_id: str = ""
    telegram_api_url: str = "https://api.telegram.org"
    parse_mode: str = "Markdown"
    send_timeout: float = 10.0
    group_by: str = "instance"
    frequency: int = 15
    metrics_port: int | None = None
    log_level: str = "INFO"

    @property
    def markdown(self) -> bool:
        """Whether messages are sent with Telegram's legacy Markdown parse mode."""
        return self.parse_mode.lower() == "markdown"

    def missing(self) -> list[str]:
        """Names of required settings that are unset."""
        required = {
            "alerts_url": self.alerts_url,
            "telegram_bot_token": self.telegram_bot_token,
            "telegram_chat_id": self.telegram_chat_id,
        }
        return [name for name, value in required.items() if not value]

    def apply_env(self) -> "Config":
        """Override fields from environment variables that are set."""
        env = os.environ
        if "PROMETHEUS_ALERTS_URL" in env:
            self.alerts_url = env["PROMETHEUS_ALERTS_URL"]
        if "PROMETHEUS_TIMEOUT" in env:
            self.fetch_timeout = float(env["PROMETHEUS_TIMEOUT"])
        if "TELEGRAM_BOT_TOKEN" in env:
            self.telegram_bot_token = env["TELEGRAM_BOT_TOKEN"]
        if "TELEGRAM_CHAT_ID" in env:
            self.telegram_chat_id = env["TELEGRAM_CHAT_ID"]
        if "TELEGRAM_API_URL" in env:
            self.telegram_api_url = env["TELEGRAM_API_URL"]
        if "TELEGRAM_PARSE_MODE" in env:
            self.parse_mode = env["TELEGRAM_PARSE_MODE"]
        if "TELEGRAM_TIMEOUT" in env:
            self.send_timeout = float(env["TELEGRAM_TIMEOUT"])
        if "GROUP_BY" in env:
            self.group_by = env["GROUP_BY"]
        if "FREQUENCY" in env:
            self.frequency = int(env["FREQUENCY"])
        if env.get("METRICS_PORT"):
            self.metrics_port = int(env["METRICS_PORT"])
        if "LOG_LEVEL" in env:
            self.log_level = env["LOG_LEVEL"]
        return self

    @classmethod
    def from_env(cls) -> "Config":
        """Load configuration from environment variables."""
        return cls().apply_env()

    @classmethod
    def from_file(cls, path: Path) -> "Config":
        """Load configuration from YAML file, with env var overrides.

        Keys present with an empty value (``chat_id:``) count as unset.
        """
        config = cls()

        if path.exists():
            with open(path) as f:
                data = yaml.safe_load(f) or {}

            prom = data.get("prometheus") or {}
            tg = data.get("telegram") or {}

            url = prom.get("url")
            if url is not None:
                config.alerts_url = str(url)
            timeout = prom.get("timeout")
            if timeout is not None:
                config.fetch_timeout = float(timeout)

            bot_token = tg.get("bot_token")
            if bot_token is not None:
                config.telegram_bot_token = str(bot_token)
            chat_id = tg.get("chat_id")
            if chat_id is not None:
                config.telegram_chat_id = str(chat_id)
            api_url = tg.get("api_url")
            if api_url is not None:
                config.telegram_api_url = str(api_url)
            if "parse_mode" in tg:
                # Empty or null selects plain text
                config.parse_mode = tg["parse_mode"] or ""
            timeout = tg.get("timeout")
            if timeout is not None:
                config.send_timeout = float(timeout)

            group_by = data.get("group_by")
            if group_by is not None:
                config.group_by = str(group_by)
            frequency = data.get("frequency")
            if frequency is not None:
                config.frequency = int(frequency)
            metrics_port = data.get("metrics_port")
            if metrics_port is not None:
                config.metrics_port = int(metrics_port)
            log_level = data.get("log_level")
            if log_level is not None:
                config.log_level = str(log_level)

        return config.apply_env()

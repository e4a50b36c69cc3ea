"""Telegram notifications for Prometheus alerts."""

__version__ = "0.1.0"

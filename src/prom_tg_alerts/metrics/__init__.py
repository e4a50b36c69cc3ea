"""Prometheus metrics for prom-tg-alerts.

Usage:
    from prom_tg_alerts.metrics import start_metrics_server, POLLS

    start_metrics_server(port=9095)
    POLLS.labels(result="ok").inc()
"""

from prom_tg_alerts.metrics.alerter import (
    ACTIVE_ALERTS,
    MESSAGES,
    POLL_DURATION,
    POLLS,
    SERVICE_INFO,
    STATE_CHANGES,
)
from prom_tg_alerts.metrics.server import make_metrics_app, start_metrics_server

__all__ = [
    "start_metrics_server",
    "make_metrics_app",
    "ACTIVE_ALERTS",
    "MESSAGES",
    "POLL_DURATION",
    "POLLS",
    "SERVICE_INFO",
    "STATE_CHANGES",
]

"""Prometheus metrics for the alert notifier.

All metrics use the 'promtg_' prefix.
"""

from prometheus_client import Counter, Gauge, Histogram, Info

SERVICE_INFO = Info(
    "promtg_service",
    "Service metadata",
)

POLLS = Counter(
    "promtg_polls_total",
    "Total polls of the alert source",
    ["result"],  # ok, error
)

POLL_DURATION = Histogram(
    "promtg_poll_duration_seconds",
    "Time spent fetching alerts and dispatching messages",
    buckets=(0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0),
)

ACTIVE_ALERTS = Gauge(
    "promtg_active_alerts",
    "Number of alerts returned by the last successful poll",
)

STATE_CHANGES = Counter(
    "promtg_state_changes_total",
    "Polls whose alert fingerprint differed from the previous poll",
)

MESSAGES = Counter(
    "promtg_messages_total",
    "Notification messages dispatched",
    ["status"],  # sent, failed, oversize
)

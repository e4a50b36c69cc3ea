"""Alert and alert-state models."""

from dataclasses import dataclass, field
from datetime import datetime

from .labels import LabelSet


@dataclass(frozen=True)
class Alert:
    """One firing alert as reported by the alert source."""

    labels: LabelSet  # Identity, used for sorting, grouping and fingerprints
    annotations: LabelSet = field(default_factory=LabelSet)  # Free-text content
    starts_at: datetime | None = None
    ends_at: datetime | None = None
    generator_url: str | None = None

    def sort_key(self) -> tuple[bool, float, str]:
        """Order by start time, then by label canonical string.

        Alerts without a start time come first.
        """
        if self.starts_at is None:
            return (False, 0.0, self.labels.canonical())
        return (True, self.starts_at.timestamp(), self.labels.canonical())


def group_key(value: str) -> str:
    """Strip everything from the first ``:`` onward (``host-1:9090`` -> ``host-1``)."""
    return value.split(":", 1)[0]


@dataclass
class AlertState:
    """Snapshot of the alerts fetched in one poll, or the error that prevented it."""

    alerts: list[Alert] = field(default_factory=list)
    error: str = ""

    def sorted_alerts(self) -> list[Alert]:
        """Return the alerts in a stable, deterministic order."""
        return sorted(self.alerts, key=Alert.sort_key)

    def grouped(self, label_name: str) -> dict[str, list[Alert]]:
        """Partition sorted alerts by the derived value of ``label_name``.

        Every label pair named ``label_name`` places the alert in its group, so
        an alert carrying the label twice lands in two groups. Alerts without
        the label are left out.
        """
        out: dict[str, list[Alert]] = {}
        for alert in self.sorted_alerts():
            for name, value in alert.labels:
                if name == label_name:
                    out.setdefault(group_key(value), []).append(alert)
        return out

    def fingerprint(self) -> str:
        """Identity string compared across polls to detect changes."""
        parts = []
        if self.error:
            parts.append("&error=" + self.error)
        for alert in self.sorted_alerts():
            parts.append("&" + alert.labels.canonical())
        return "".join(parts)

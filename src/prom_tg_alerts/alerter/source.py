"""Client for the Prometheus (or Alertmanager) alerts API."""

import re
from datetime import datetime, timezone

import httpx
import structlog
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from .errors import AlerterError, FetchError, PayloadError
from .labels import LabelSet
from .models import Alert, AlertState

log = structlog.get_logger()

UNREADABLE_RESPONSE = "Failed to get response from Prometheus"

# Python datetimes hold microseconds; Prometheus sends nanoseconds
_EXTRA_FRACTION = re.compile(r"(\.\d{6})\d+")


def parse_timestamp(value: str) -> datetime | None:
    """Parse an RFC 3339 timestamp into an aware datetime.

    Go's zero time (year 1) means "unset" and maps to None.
    """
    value = _EXTRA_FRACTION.sub(r"\1", value.strip())
    if value.endswith(("Z", "z")):
        value = value[:-1] + "+00:00"
    parsed = datetime.fromisoformat(value)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    if parsed.year == 1:
        return None
    return parsed


class AlertPayload(BaseModel):
    """One alert as found in the API response."""

    model_config = ConfigDict(populate_by_name=True)

    labels: dict[str, str] = Field(default_factory=dict)
    annotations: dict[str, str] = Field(default_factory=dict)
    starts_at: datetime | None = Field(None, alias="startsAt")
    active_at: datetime | None = Field(None, alias="activeAt")  # Prometheus naming
    ends_at: datetime | None = Field(None, alias="endsAt")
    generator_url: str | None = Field(None, alias="generatorURL")

    @field_validator("labels", "annotations", mode="before")
    @classmethod
    def null_as_empty(cls, v: object) -> object:
        return {} if v is None else v

    @field_validator("starts_at", "active_at", "ends_at", mode="before")
    @classmethod
    def parse_time(cls, v: object) -> object:
        if v is None or v == "":
            return None
        if isinstance(v, str):
            return parse_timestamp(v)
        return v

    def to_alert(self) -> Alert:
        return Alert(
            labels=LabelSet.from_mapping(self.labels),
            annotations=LabelSet.from_mapping(self.annotations),
            starts_at=self.starts_at or self.active_at,
            ends_at=self.ends_at,
            generator_url=self.generator_url or None,
        )


class ResponseData(BaseModel):
    alerts: list[AlertPayload] = Field(default_factory=list)

    @field_validator("alerts", mode="before")
    @classmethod
    def null_as_empty(cls, v: object) -> object:
        return [] if v is None else v


class AlertsResponse(BaseModel):
    """Envelope returned by ``/api/v1/alerts``."""

    model_config = ConfigDict(populate_by_name=True)

    status: str = ""
    data: ResponseData | None = None
    error_type: str = Field("", alias="errorType")
    error: str = ""
    warnings: list[str] = Field(default_factory=list)


class AlertSource:
    """Fetches the currently firing alerts from an alerts API URL."""

    def __init__(self, url: str, timeout: float = 10.0):
        self.url = url
        self.timeout = timeout

    def fetch(self) -> AlertState:
        """Fetch the current alert state.

        Never raises: any failure is reported through ``AlertState.error``.
        """
        try:
            alerts = self.fetch_alerts()
        except AlerterError as e:
            log.warning("Alert fetch failed", url=self.url, error=str(e))
            return AlertState(error=str(e))

        log.info("Fetched alerts", count=len(alerts), url=self.url)
        return AlertState(alerts=alerts)

    def fetch_alerts(self) -> list[Alert]:
        """Fetch and parse alerts.

        Raises:
            FetchError: The request failed or the body could not be parsed
            PayloadError: The API reported an error
        """
        try:
            response = httpx.get(self.url, timeout=self.timeout)
        except httpx.RequestError as e:
            raise FetchError(str(e) or type(e).__name__) from e

        try:
            payload = AlertsResponse.model_validate_json(response.content)
        except ValidationError as e:
            log.warning(
                "Unreadable alerts response",
                status=response.status_code,
                body=response.text[:1000],
            )
            raise FetchError(UNREADABLE_RESPONSE) from e

        if payload.error:
            raise PayloadError(payload.error)

        if payload.data is None:
            log.warning(
                "Alerts response has no data",
                status=response.status_code,
                body=response.text[:1000],
            )
            raise FetchError(UNREADABLE_RESPONSE)

        for warning in payload.warnings:
            log.warning("Alerts API warning", warning=warning)

        return [item.to_alert() for item in payload.data.alerts]

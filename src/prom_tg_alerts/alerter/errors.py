"""Exceptions raised by the alert source and the notifier."""


class AlerterError(Exception):
    """Base class for alerter errors."""


class FetchError(AlerterError):
    """The alert source could not be reached or returned an unreadable body."""


class PayloadError(FetchError):
    """The alert source answered with an explicit error."""


class DispatchError(AlerterError):
    """A message could not be delivered."""


class OversizeError(DispatchError):
    """A message body exceeds the notifier's hard length limit."""

    def __init__(self, length: int, limit: int):
        super().__init__(f"message too long ({length} > {limit} characters)")
        self.length = length
        self.limit = limit

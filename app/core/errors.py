"""Widget error taxonomy and how each class maps onto HTTP."""
from typing import Any


class WidgetError(Exception):
    """Base error surfaced to API clients as {"error": ..., "details": ...}."""

    status_code = 500

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(message)
        self.message = message
        self.details = details

    def to_dict(self) -> dict[str, Any]:
        body: dict[str, Any] = {"error": self.message}
        if self.details:
            body["details"] = self.details
        return body


class InvalidInputError(WidgetError):
    """A parameter failed sanitization or the provider does not know it."""

    status_code = 400


class RateLimitedError(WidgetError):
    """The caller exhausted a provider window; retry later."""

    status_code = 429


class UpstreamError(WidgetError):
    """Every attempt against a live provider failed.

    Providers recover from this with demo data; it only reaches a client
    when a handler has no fallback.
    """

    status_code = 502

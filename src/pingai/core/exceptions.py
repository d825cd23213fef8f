"""Custom exception hierarchy for PingAI."""

from __future__ import annotations


class PingAIError(Exception):
    """Base exception for PingAI."""

    pass


class ConfigurationError(PingAIError):
    """Raised when a check configuration is invalid (unknown protocol, malformed base URL)."""

    pass


class RegistryError(PingAIError):
    """Raised when a component is not found or registration fails."""

    pass


class AdapterError(PingAIError):
    """Base for failures raised by protocol adapters.

    ``message`` is the short summary shown to users, ``detail`` carries the raw
    diagnostic (error text or a truncated response body).
    """

    def __init__(self, message: str, detail: str = "") -> None:
        super().__init__(message)
        self.message = message
        self.detail = detail


class NetworkFailure(AdapterError):
    """DNS, TLS, connection refused, or other transport-level failure."""

    pass


class AdapterTimeout(NetworkFailure):
    """A request or stream exceeded its time budget."""

    pass


class ProtocolError(AdapterError):
    """Non-2xx status or a provider-reported error body."""

    def __init__(self, message: str, detail: str = "", status_code: int = 0) -> None:
        super().__init__(message, detail)
        self.status_code = status_code


class DecodeError(AdapterError):
    """Response body does not match the expected schema."""

    pass


class ListingUnsupported(AdapterError):
    """The endpoint does not expose a model listing."""

    pass

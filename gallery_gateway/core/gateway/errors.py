"""
Typed gateway errors.

Each error knows the HTTP status it maps to and the JSON body it renders.
Handlers raise these; the gateway converts them to responses in one place.
"""

from typing import Any, Optional


class GatewayError(Exception):
    """Base class for errors the gateway reports as structured responses."""

    status_code: int = 500

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def to_payload(self) -> dict[str, Any]:
        return {"error": self.message}


class ConfigurationError(GatewayError):
    """The object store binding is missing. Operator action required."""

    status_code = 500

    def __init__(self, message: str, hint: Optional[str] = None) -> None:
        super().__init__(message)
        self.hint = hint

    def to_payload(self) -> dict[str, Any]:
        payload = super().to_payload()
        if self.hint:
            payload["hint"] = self.hint
        return payload


class InvalidRequestError(GatewayError):
    """A required field or parameter is missing or malformed."""

    status_code = 400


class ObjectNotFoundError(GatewayError):
    """The requested key does not exist in the store."""

    status_code = 404


class ObjectReadError(GatewayError):
    """Fetching or reading a stored object failed."""

    status_code = 500

    def __init__(self, cause: Exception) -> None:
        super().__init__(f"Failed to read image: {cause}")
        self.cause = cause

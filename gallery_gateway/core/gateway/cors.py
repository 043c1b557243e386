"""CORS policy for the gateway."""

from dataclasses import dataclass
from typing import Optional


ALLOWED_METHODS = "GET, POST, DELETE, OPTIONS"
ALLOWED_HEADERS = "Content-Type"


@dataclass(frozen=True)
class CorsPolicy:
    """
    Fixed origin allow-list with a single fallback origin.

    The allow-origin header is either the exact request origin (when listed)
    or the fallback. Wildcards are refused so a listed policy never degrades
    into "allow everyone".
    """
    allowed_origins: tuple[str, ...]
    fallback_origin: str

    def __post_init__(self) -> None:
        if not self.fallback_origin:
            raise ValueError("fallback_origin is required")
        if self.fallback_origin == "*" or "*" in self.allowed_origins:
            raise ValueError("Wildcard origins are not allowed in an allow-list policy")

    def allow_origin(self, origin: Optional[str]) -> str:
        if origin and origin in self.allowed_origins:
            return origin
        return self.fallback_origin

    def headers_for(self, origin: Optional[str]) -> dict[str, str]:
        return {
            "Access-Control-Allow-Origin": self.allow_origin(origin),
            "Access-Control-Allow-Methods": ALLOWED_METHODS,
            "Access-Control-Allow-Headers": ALLOWED_HEADERS,
        }

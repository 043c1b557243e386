"""
Request and response models for the object gateway.

These models have no dependency on the web framework. The HTTP adapter
builds a GatewayRequest from the incoming request and renders the
GatewayResponse back out, which keeps the gateway testable in isolation.
"""

from dataclasses import dataclass, field
from typing import Any, Mapping, Optional, Protocol

from .errors import InvalidRequestError


DEFAULT_UPLOAD_CONTENT_TYPE = "image/jpeg"


@dataclass(frozen=True)
class UploadForm:
    """Decoded multipart body of an upload (POST) request."""
    file: Optional[bytes] = None
    filename: Optional[str] = None
    content_type: Optional[str] = None

    @property
    def missing_fields(self) -> list[str]:
        missing = []
        if self.file is None:
            missing.append("file")
        if not self.filename:
            missing.append("filename")
        return missing

    @property
    def effective_content_type(self) -> str:
        return self.content_type or DEFAULT_UPLOAD_CONTENT_TYPE


@dataclass(frozen=True)
class DeleteRequest:
    """Decoded JSON body of a delete (DELETE) request."""
    filename: Optional[str] = None

    @classmethod
    def from_json(cls, payload: Any) -> "DeleteRequest":
        """
        Build from a parsed JSON value.

        Anything other than a JSON object is a client mistake, not a
        server fault.
        """
        if not isinstance(payload, dict):
            raise InvalidRequestError("Request body must be a JSON object")

        filename = payload.get("filename")
        if filename is not None and not isinstance(filename, str):
            raise InvalidRequestError("filename must be a string")
        return cls(filename=filename)


class RequestBody(Protocol):
    """
    Lazily decodes the request body into the shape a handler expects.

    Decoding is deferred so that OPTIONS and GET never touch the body and
    a malformed body only fails the handler that reads it.
    """

    async def upload_form(self) -> UploadForm:
        ...

    async def delete_request(self) -> DeleteRequest:
        ...


@dataclass
class GatewayRequest:
    """Everything the gateway needs to know about one inbound request."""
    method: str
    path: str = "/"
    origin: Optional[str] = None
    query: Mapping[str, str] = field(default_factory=dict)
    body: Optional[RequestBody] = None

    async def upload_form(self) -> UploadForm:
        if self.body is None:
            return UploadForm()
        return await self.body.upload_form()

    async def delete_request(self) -> DeleteRequest:
        if self.body is None:
            return DeleteRequest()
        return await self.body.delete_request()


@dataclass
class GatewayResponse:
    """
    Uniform response envelope.

    Exactly one of `payload` (JSON) or `content` (raw bytes) is rendered.
    `media_type` applies to raw content only.
    """
    status_code: int = 200
    payload: Any = None
    content: bytes = b""
    media_type: Optional[str] = None
    headers: dict[str, str] = field(default_factory=dict)

    @property
    def is_json(self) -> bool:
        return self.payload is not None

    @classmethod
    def json(cls, payload: Any, status_code: int = 200) -> "GatewayResponse":
        return cls(status_code=status_code, payload=payload)

    @classmethod
    def text(cls, text: str, status_code: int = 200) -> "GatewayResponse":
        return cls(
            status_code=status_code,
            content=text.encode("utf-8"),
            media_type="text/plain",
        )

    @classmethod
    def empty(cls) -> "GatewayResponse":
        return cls()

    def with_headers(self, headers: Mapping[str, str]) -> "GatewayResponse":
        """Return a copy with `headers` applied underneath the existing ones."""
        return GatewayResponse(
            status_code=self.status_code,
            payload=self.payload,
            content=self.content,
            media_type=self.media_type,
            headers={**headers, **self.headers},
        )

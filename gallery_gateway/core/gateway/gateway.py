"""
Object gateway request handling.

The gateway turns one GatewayRequest into one GatewayResponse:

1. CORS headers are computed once from the request origin
2. OPTIONS short-circuits with an empty body
3. The dispatch table picks a handler by (method, path)
4. Handlers return a response or raise a typed GatewayError
5. Errors and unexpected failures are folded into JSON responses

Every response leaves with CORS headers, including failures. The gateway
holds no per-request state, so one instance can serve concurrent requests.
"""

import logging
import traceback
from dataclasses import dataclass
from typing import Awaitable, Callable, Optional
from urllib.parse import quote

from .cors import CorsPolicy
from .errors import (
    ConfigurationError,
    GatewayError,
    InvalidRequestError,
    ObjectNotFoundError,
    ObjectReadError,
)
from .models import GatewayRequest, GatewayResponse
from .store import ObjectStore

logger = logging.getLogger(__name__)


DEFAULT_SERVICE_NAME = "Gallery Widget R2 Upload Service"
DEFAULT_BINDING_NAME = "ALBUM_BUCKET"
FEATURES = ["upload", "delete", "transform"]

DEFAULT_QUALITY = "50"
DEFAULT_FORMAT = "webp"
FORMAT_CONTENT_TYPES = {
    "webp": "image/webp",
    "avif": "image/avif",
}
FALLBACK_IMAGE_CONTENT_TYPE = "image/jpeg"

CACHE_CONTROL = "public, max-age=31536000"
ACCEPT_CH = "DPR, Viewport-Width, Width"

Handler = Callable[[GatewayRequest], Awaitable[GatewayResponse]]


@dataclass(frozen=True)
class Route:
    """One dispatch table entry."""
    method: str
    matches: Callable[[str], bool]
    handler: Handler


def any_path(path: str) -> bool:
    return True


def is_transform_path(path: str) -> bool:
    return path.endswith("/transform")


def content_type_for_format(image_format: str) -> str:
    """Map a requested output format to the Content-Type we advertise."""
    return FORMAT_CONTENT_TYPES.get(image_format, FALLBACK_IMAGE_CONTENT_TYPE)


def key_basename(key: str) -> str:
    """Final path segment of an object key: 'albums/a.jpg' -> 'a.jpg'."""
    return key.split("/")[-1]


def content_disposition(key: str) -> str:
    """
    Inline disposition naming the key's basename.

    HTTP headers are Latin-1, so other names get an ASCII fallback plus an
    RFC 6266 `filename*` parameter carrying the UTF-8 name.
    """
    filename = key_basename(key)
    try:
        filename.encode("latin-1")
    except UnicodeEncodeError:
        fallback = "".join(
            char if char.isascii() and char not in '"\\' else "_"
            for char in filename
        )
        return f"inline; filename=\"{fallback}\"; filename*=UTF-8''{quote(filename, safe='')}"
    return f'inline; filename="{filename}"'


class ObjectGateway:
    """
    Routes gallery widget requests to the object store.

    The store is optional: a gateway without one still answers status
    checks and reports a configuration error for storage operations.
    """

    def __init__(
        self,
        store: Optional[ObjectStore],
        cors: CorsPolicy,
        service_name: str = DEFAULT_SERVICE_NAME,
        binding_name: str = DEFAULT_BINDING_NAME,
    ) -> None:
        self._store = store
        self._cors = cors
        self._service_name = service_name
        self._binding_name = binding_name

        # Order matters: the transform route must be tried before the
        # catch-all GET status route.
        self._routes: list[Route] = [
            Route("POST", any_path, self.upload),
            Route("DELETE", any_path, self.delete),
            Route("GET", is_transform_path, self.transform),
            Route("GET", any_path, self.status),
        ]

    async def handle(self, request: GatewayRequest) -> GatewayResponse:
        """Handle one request. Never raises."""
        cors_headers = self._cors.headers_for(request.origin)
        method = request.method.upper()

        if method == "OPTIONS":
            return GatewayResponse.empty().with_headers(cors_headers)

        try:
            handler = self._resolve(method, request.path)
            if handler is None:
                response = GatewayResponse.text("Method not allowed", status_code=405)
            else:
                response = await handler(request)
        except GatewayError as e:
            response = GatewayResponse.json(e.to_payload(), status_code=e.status_code)
        except Exception as e:
            logger.error(
                "Unhandled gateway error",
                extra={
                    "method": method,
                    "path": request.path,
                    "error": str(e),
                },
                exc_info=e,
            )
            response = GatewayResponse.json(
                {
                    "error": str(e),
                    "stack": "".join(traceback.format_exception(type(e), e, e.__traceback__)),
                    "type": type(e).__name__,
                },
                status_code=500,
            )

        return response.with_headers(cors_headers)

    def _resolve(self, method: str, path: str) -> Optional[Handler]:
        for route in self._routes:
            if route.method == method and route.matches(path):
                return route.handler
        return None

    def _require_store(self) -> ObjectStore:
        if self._store is None:
            raise ConfigurationError(
                "Object store is not bound",
                hint=(
                    "Bind an R2 bucket in the gateway settings "
                    f"(variable name: {self._binding_name})"
                ),
            )
        return self._store

    # -----------------------------------------------------------------------
    # Handlers
    # -----------------------------------------------------------------------

    async def upload(self, request: GatewayRequest) -> GatewayResponse:
        """
        Store an uploaded file under the caller-supplied filename.

        Overwrites any existing object at that key.
        """
        store = self._require_store()
        form = await request.upload_form()

        missing = form.missing_fields
        if missing:
            raise InvalidRequestError(f"Missing file or filename: {', '.join(missing)}")

        content_type = form.effective_content_type
        await store.put(form.filename, form.file, content_type)

        logger.info(
            "Uploaded object",
            extra={
                "key": form.filename,
                "content_type": content_type,
                "size_bytes": len(form.file),
            }
        )

        return GatewayResponse.json({
            "success": True,
            "filename": form.filename,
            "message": "Upload succeeded",
        })

    async def delete(self, request: GatewayRequest) -> GatewayResponse:
        """Delete an object. Deleting a missing key still succeeds."""
        store = self._require_store()
        body = await request.delete_request()

        if not body.filename:
            raise InvalidRequestError("Missing filename")

        await store.delete(body.filename)

        logger.info("Deleted object", extra={"key": body.filename})

        return GatewayResponse.json({
            "success": True,
            "message": "Delete succeeded",
        })

    async def transform(self, request: GatewayRequest) -> GatewayResponse:
        """
        Serve a stored image.

        `format` only selects the advertised Content-Type and `quality` is
        accepted but unused: the bytes are returned as stored and any real
        conversion happens in the browser or the CDN in front of us.
        """
        key = request.query.get("key")
        quality = request.query.get("quality") or DEFAULT_QUALITY
        image_format = request.query.get("format") or DEFAULT_FORMAT

        if not key:
            raise InvalidRequestError("Missing key parameter")

        store = self._require_store()

        try:
            stored = await store.get(key)
            if stored is None:
                raise ObjectNotFoundError(f"Image not found: {key}")
            data = await stored.read()
        except ObjectNotFoundError:
            logger.info("Image not found", extra={"key": key})
            raise
        except Exception as e:
            logger.error(
                "Failed to read image",
                extra={"key": key, "error": str(e)}
            )
            raise ObjectReadError(e) from e

        logger.debug(
            "Serving image",
            extra={
                "key": key,
                "format": image_format,
                "quality": quality,
                "size_bytes": len(data),
            }
        )

        return GatewayResponse(
            status_code=200,
            content=data,
            headers={
                "Content-Type": content_type_for_format(image_format),
                "Cache-Control": CACHE_CONTROL,
                "Content-Disposition": content_disposition(key),
                "Accept-CH": ACCEPT_CH,
            },
        )

    async def status(self, request: GatewayRequest) -> GatewayResponse:
        """Liveness descriptor. Needs no store."""
        return GatewayResponse.json({
            "status": "ok",
            "service": self._service_name,
            "features": list(FEATURES),
        })

"""
Gallery gateway endpoint.

A single catch-all route hands every request to the ObjectGateway, which
does its own method/path dispatch. This module only adapts between
Starlette requests/responses and the gateway's framework-free models:

- StarletteRequestBody decodes form/JSON bodies into UploadForm/DeleteRequest
- render_response turns a GatewayResponse back into a Starlette Response
"""

import logging

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse, Response
from starlette.datastructures import UploadFile

from ...core.gateway.models import (
    DeleteRequest,
    GatewayRequest,
    GatewayResponse,
    UploadForm,
)
from ..dependencies import ObjectGatewayDep

logger = logging.getLogger(__name__)

router = APIRouter()

# Methods routed to the gateway. Anything else is answered with the same
# 405 by the app-level HTTPException handler in main.py.
GATEWAY_METHODS = ["GET", "HEAD", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"]


class StarletteRequestBody:
    """Decodes a Starlette request body on demand."""

    def __init__(self, request: Request) -> None:
        self._request = request

    async def upload_form(self) -> UploadForm:
        form = await self._request.form()

        file_value = form.get("file")
        if isinstance(file_value, UploadFile):
            data = await file_value.read()
        elif isinstance(file_value, str) and file_value:
            data = file_value.encode("utf-8")
        else:
            data = None

        filename = form.get("filename")
        content_type = form.get("contentType")

        return UploadForm(
            file=data,
            filename=filename if isinstance(filename, str) else None,
            content_type=content_type if isinstance(content_type, str) else None,
        )

    async def delete_request(self) -> DeleteRequest:
        # Malformed JSON propagates to the gateway's catch-all
        return DeleteRequest.from_json(await self._request.json())


def first_query_values(request: Request) -> dict[str, str]:
    """Collapse repeated query parameters to their first occurrence."""
    params = request.query_params
    return {name: params.getlist(name)[0] for name in params.keys()}


def to_gateway_request(request: Request) -> GatewayRequest:
    return GatewayRequest(
        method=request.method,
        path=request.url.path,
        origin=request.headers.get("origin"),
        query=first_query_values(request),
        body=StarletteRequestBody(request),
    )


def render_response(result: GatewayResponse) -> Response:
    if result.is_json:
        return JSONResponse(
            content=result.payload,
            status_code=result.status_code,
            headers=result.headers,
        )
    return Response(
        content=result.content,
        status_code=result.status_code,
        headers=result.headers,
        media_type=result.media_type,
    )


@router.api_route(
    "/{path:path}",
    methods=GATEWAY_METHODS,
    include_in_schema=False,
)
async def gateway_entrypoint(request: Request, gateway: ObjectGatewayDep) -> Response:
    """
    Upload, delete, serve and status for gallery images.

    POST uploads, DELETE removes, GET */transform serves bytes, any other
    GET is the status descriptor, OPTIONS is the CORS preflight.
    """
    result = await gateway.handle(to_gateway_request(request))
    return render_response(result)

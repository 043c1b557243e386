"""
Album migration endpoint.

Scrapes an Albumizr album and returns its image URLs so the gallery widget
can re-import them. Runs as its own small app (see main.create_migration_app)
with wildcard CORS, since it is called from arbitrary editor pages and
returns only public data.
"""

import logging

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse, PlainTextResponse

from ..dependencies import AlbumScraperDep

logger = logging.getLogger(__name__)

router = APIRouter()

MIGRATION_CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Headers": "authorization, x-client-info, apikey, content-type",
}


@router.options("/{path:path}", include_in_schema=False)
async def migration_preflight() -> PlainTextResponse:
    return PlainTextResponse("ok", headers=MIGRATION_CORS_HEADERS)


@router.post(
    "/{path:path}",
    summary="Scrape an Albumizr album",
    description="Fetch an Albumizr album page and return its image URLs and captions",
)
async def migrate_album(request: Request, scraper: AlbumScraperDep) -> JSONResponse:
    """
    Body: {"albumKey": "...", "method": "..."}. `method` is accepted for
    compatibility with older widget builds and ignored.

    Failures come back as 500 {"success": false, "error": "..."}.
    """
    try:
        payload = await request.json()
        album_key = payload.get("albumKey") if isinstance(payload, dict) else None
        if not album_key:
            raise ValueError("Missing albumKey parameter")

        result = await scraper.fetch_album(str(album_key))
    except Exception as e:
        # Every failure, including invalid album keys httpx rejects, is
        # reported in the envelope the widget reads.
        logger.error(
            "Album migration failed",
            extra={"error": str(e)},
            exc_info=e,
        )
        return JSONResponse(
            status_code=500,
            content={"success": False, "error": str(e) or type(e).__name__},
            headers=MIGRATION_CORS_HEADERS,
        )

    return JSONResponse(content=result.to_dict(), headers=MIGRATION_CORS_HEADERS)

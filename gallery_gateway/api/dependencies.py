"""
FastAPI dependency injection.

Dependencies provide the object store, CORS policy, gateway and Albumizr
scraper to route handlers. Routes never build their own collaborators, so
tests can swap the store through app.dependency_overrides.
"""

import logging
from functools import lru_cache
from typing import Annotated, AsyncIterator, Optional

import httpx
from fastapi import Depends

from ..config.settings import Settings, get_settings
from ..core.gateway.cors import CorsPolicy
from ..core.gateway.gateway import ObjectGateway
from ..core.gateway.store import ObjectStore
from ..infrastructure.albumizr.client import AlbumizrScraper
from ..infrastructure.storage.client import ObjectStoreConfig, create_object_store

logger = logging.getLogger(__name__)

# Shared in-memory store so mock uploads survive across requests
_mock_object_store = None


# ---------------------------------------------------------------------------
# Gateway Dependencies
# ---------------------------------------------------------------------------

def get_object_store(
    settings: Annotated[Settings, Depends(get_settings)],
) -> Optional[ObjectStore]:
    """
    Provide the object store bound to this deployment.

    Returns None when no bucket is bound; the gateway turns that into a
    configuration error for storage operations.
    """
    global _mock_object_store

    if settings.r2_mock_mode:
        if _mock_object_store is None:
            _mock_object_store = create_object_store(mock_mode=True)
            logger.info("Created shared mock object store for session")
        return _mock_object_store

    if not settings.object_store_bound:
        logger.warning("Object store binding missing", extra={"binding": "ALBUM_BUCKET"})
        return None

    return get_r2_object_store(
        bucket_name=settings.album_bucket,
        endpoint_url=settings.r2_endpoint,
        access_key_id=settings.r2_access_key_id,
        secret_access_key=settings.r2_secret_access_key,
    )


@lru_cache()
def get_r2_object_store(
    bucket_name: str,
    endpoint_url: str,
    access_key_id: str,
    secret_access_key: str,
) -> ObjectStore:
    """
    R2 store, built once per process for each bucket configuration.

    The boto3 client is reusable across requests and threads; building one
    per request would repeat endpoint and credential resolution every time.
    """
    config = ObjectStoreConfig(
        access_key_id=access_key_id,
        secret_access_key=secret_access_key,
        bucket_name=bucket_name,
        endpoint_url=endpoint_url,
    )
    return create_object_store(config=config)


@lru_cache()
def get_cors_policy() -> CorsPolicy:
    """CORS policy, built once per process from settings."""
    settings = get_settings()
    return CorsPolicy(
        allowed_origins=tuple(settings.cors_allowed_origins_list),
        fallback_origin=settings.cors_fallback_origin,
    )


def get_object_gateway(
    settings: Annotated[Settings, Depends(get_settings)],
    store: Annotated[Optional[ObjectStore], Depends(get_object_store)],
    cors: Annotated[CorsPolicy, Depends(get_cors_policy)],
) -> ObjectGateway:
    """The gateway is stateless, so a new instance per request is fine."""
    return ObjectGateway(
        store=store,
        cors=cors,
        service_name=settings.service_name,
    )


# ---------------------------------------------------------------------------
# Migration Dependencies
# ---------------------------------------------------------------------------

async def get_http_client(
    settings: Annotated[Settings, Depends(get_settings)],
) -> AsyncIterator[httpx.AsyncClient]:
    """HTTP client scoped to one request, closed after the response."""
    async with httpx.AsyncClient(
        timeout=settings.albumizr_timeout_seconds,
        follow_redirects=True,
    ) as client:
        yield client


def get_album_scraper(
    settings: Annotated[Settings, Depends(get_settings)],
    http_client: Annotated[httpx.AsyncClient, Depends(get_http_client)],
) -> AlbumizrScraper:
    return AlbumizrScraper(http_client, base_url=settings.albumizr_base_url)


# ---------------------------------------------------------------------------
# Convenience Type Aliases
# ---------------------------------------------------------------------------

ObjectGatewayDep = Annotated[ObjectGateway, Depends(get_object_gateway)]
AlbumScraperDep = Annotated[AlbumizrScraper, Depends(get_album_scraper)]

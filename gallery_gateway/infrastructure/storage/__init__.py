"""
Object storage integration for gallery images.

Supports R2 (Cloudflare) via the S3-compatible API.
Includes an in-memory store for local development without credentials.
"""

from .client import (
    MockObjectStore,
    ObjectStoreConfig,
    R2ObjectStore,
    StorageError,
    StoredObjectHandle,
    create_object_store,
)

__all__ = [
    "MockObjectStore",
    "ObjectStoreConfig",
    "R2ObjectStore",
    "StorageError",
    "StoredObjectHandle",
    "create_object_store",
]

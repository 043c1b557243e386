"""
Object gateway: routing, validation, CORS and response shaping.
"""

from .cors import CorsPolicy
from .errors import (
    ConfigurationError,
    GatewayError,
    InvalidRequestError,
    ObjectNotFoundError,
    ObjectReadError,
)
from .gateway import ObjectGateway
from .models import DeleteRequest, GatewayRequest, GatewayResponse, UploadForm
from .store import ObjectStore, StoredObject

__all__ = [
    "CorsPolicy",
    "ConfigurationError",
    "GatewayError",
    "InvalidRequestError",
    "ObjectNotFoundError",
    "ObjectReadError",
    "ObjectGateway",
    "DeleteRequest",
    "GatewayRequest",
    "GatewayResponse",
    "UploadForm",
    "ObjectStore",
    "StoredObject",
]

"""
Shared fixtures.

The gateway is exercised against the in-memory store; nothing here needs
R2 credentials or network access.
"""

from typing import Any, Iterator, Optional

import pytest
from fastapi.testclient import TestClient

from gallery_gateway.api.dependencies import get_object_store
from gallery_gateway.core.gateway.cors import CorsPolicy
from gallery_gateway.core.gateway.gateway import ObjectGateway
from gallery_gateway.core.gateway.models import DeleteRequest, UploadForm
from gallery_gateway.infrastructure.storage.client import MockObjectStore
from gallery_gateway.main import create_app


PRODUCTION_ORIGIN = "https://ebluvu.github.io"
LOCAL_ORIGIN = "http://localhost:5500"


class FakeRequestBody:
    """Request body with pre-decoded shapes, or a failure to raise."""

    def __init__(
        self,
        form: Optional[UploadForm] = None,
        json_body: Any = None,
        error: Optional[Exception] = None,
    ) -> None:
        self._form = form or UploadForm()
        self._json_body = json_body
        self._error = error
        self.reads = 0

    async def upload_form(self) -> UploadForm:
        self.reads += 1
        if self._error:
            raise self._error
        return self._form

    async def delete_request(self) -> DeleteRequest:
        self.reads += 1
        if self._error:
            raise self._error
        return DeleteRequest.from_json(self._json_body)


@pytest.fixture
def cors_policy() -> CorsPolicy:
    return CorsPolicy(
        allowed_origins=(PRODUCTION_ORIGIN, LOCAL_ORIGIN),
        fallback_origin=PRODUCTION_ORIGIN,
    )


@pytest.fixture
def store() -> MockObjectStore:
    return MockObjectStore()


@pytest.fixture
def gateway(store: MockObjectStore, cors_policy: CorsPolicy) -> ObjectGateway:
    return ObjectGateway(store=store, cors=cors_policy)


@pytest.fixture
def unbound_gateway(cors_policy: CorsPolicy) -> ObjectGateway:
    return ObjectGateway(store=None, cors=cors_policy)


@pytest.fixture
def app(store: MockObjectStore):
    app = create_app()
    app.dependency_overrides[get_object_store] = lambda: store
    yield app
    app.dependency_overrides.clear()


@pytest.fixture
def client(app) -> Iterator[TestClient]:
    with TestClient(app) as client:
        yield client


@pytest.fixture
def unbound_client() -> Iterator[TestClient]:
    app = create_app()
    app.dependency_overrides[get_object_store] = lambda: None
    with TestClient(app) as client:
        yield client

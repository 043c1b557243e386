"""
HTTP-level tests for the gateway app.

These go through FastAPI's TestClient so multipart/JSON decoding, header
rendering and the catch-all route are exercised end to end. The object
store is the in-memory store injected through dependency overrides.
"""

from fastapi.testclient import TestClient

from gallery_gateway.api.dependencies import (
    get_cors_policy,
    get_object_gateway,
    get_object_store,
    get_r2_object_store,
)
from gallery_gateway.config.settings import get_settings
from gallery_gateway.infrastructure.storage.client import MockObjectStore, R2ObjectStore
from gallery_gateway.main import create_app

from ..conftest import LOCAL_ORIGIN, PRODUCTION_ORIGIN


def upload(client: TestClient, filename: str, data: bytes, content_type: str = None):
    form = {"filename": filename}
    if content_type:
        form["contentType"] = content_type
    return client.post(
        "/",
        files={"file": (filename, data, "application/octet-stream")},
        data=form,
        headers={"Origin": LOCAL_ORIGIN},
    )


class TestCorsHeaders:
    """Allow-origin is always the exact listed origin or the fallback."""

    def test_allow_listed_origin_is_echoed(self, client):
        """A listed origin comes back verbatim."""
        response = client.get("/", headers={"Origin": LOCAL_ORIGIN})

        assert response.headers["access-control-allow-origin"] == LOCAL_ORIGIN
        assert response.headers["access-control-allow-methods"] == "GET, POST, DELETE, OPTIONS"
        assert response.headers["access-control-allow-headers"] == "Content-Type"

    def test_unlisted_origin_gets_fallback(self, client):
        """An unknown origin gets the production origin."""
        response = client.get("/", headers={"Origin": "https://attacker.example"})

        assert response.headers["access-control-allow-origin"] == PRODUCTION_ORIGIN

    def test_missing_origin_gets_fallback(self, client):
        """No Origin header still yields the fallback, never nothing."""
        response = client.get("/")

        assert response.headers["access-control-allow-origin"] == PRODUCTION_ORIGIN

    def test_preflight_is_empty(self, client, store):
        """OPTIONS returns an empty 200 regardless of body or path."""
        response = client.request(
            "OPTIONS",
            "/transform?key=a.jpg",
            headers={
                "Origin": LOCAL_ORIGIN,
                "Access-Control-Request-Method": "POST",
            },
            content=b"ignored",
        )

        assert response.status_code == 200
        assert response.content == b""
        assert response.headers["access-control-allow-origin"] == LOCAL_ORIGIN
        assert len(store) == 0


class TestUploadAndFetch:
    """Upload followed by transform round-trips the bytes."""

    def test_upload_then_fetch_as_avif(self, client):
        """Uploading cat.jpg and fetching it as avif returns the same bytes."""
        payload = b"\x89PNG\r\n\x1a\nimage-bytes"

        response = upload(client, "cat.jpg", payload, content_type="image/png")

        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert body["filename"] == "cat.jpg"
        assert body["message"]

        fetched = client.get("/transform", params={"key": "cat.jpg", "format": "avif"})

        assert fetched.status_code == 200
        assert fetched.headers["content-type"] == "image/avif"
        assert fetched.content == payload

    def test_upload_overwrites(self, client):
        """A second upload to the same key replaces the first."""
        upload(client, "a.jpg", b"first")
        upload(client, "a.jpg", b"second")

        fetched = client.get("/transform", params={"key": "a.jpg"})

        assert fetched.content == b"second"

    def test_nested_key_disposition(self, client):
        """Content-Disposition uses the key's final path segment."""
        upload(client, "albums/a.jpg", b"data")

        fetched = client.get("/images/transform", params={"key": "albums/a.jpg"})

        assert fetched.status_code == 200
        assert fetched.headers["content-disposition"] == 'inline; filename="a.jpg"'
        assert fetched.headers["cache-control"] == "public, max-age=31536000"
        assert fetched.headers["content-type"] == "image/webp"

    def test_non_latin1_key_round_trip(self, client):
        """A CJK key uploads and serves with an RFC 6266 disposition."""
        key = "\u76f8\u7c3f/\u8c93.jpg"
        payload = b"\xff\xd8cat"

        assert upload(client, key, payload).status_code == 200

        fetched = client.get("/transform", params={"key": key})

        assert fetched.status_code == 200
        assert fetched.content == payload
        assert "filename*=UTF-8''%E8%B2%93.jpg" in fetched.headers["content-disposition"]

    def test_repeated_key_uses_first_value(self, client):
        """With key given twice, the first occurrence selects the object."""
        upload(client, "a.jpg", b"first-key")
        upload(client, "b.jpg", b"second-key")

        fetched = client.get("/transform?key=a.jpg&key=b.jpg")

        assert fetched.status_code == 200
        assert fetched.content == b"first-key"

    def test_upload_without_file(self, client):
        """POST without file is a 400."""
        response = client.post("/", data={"filename": "a.jpg"})

        assert response.status_code == 400
        assert "file" in response.json()["error"]

    def test_upload_without_filename(self, client):
        """POST without filename is a 400."""
        response = client.post("/", files={"file": ("a.jpg", b"data", "image/jpeg")})

        assert response.status_code == 400
        assert "filename" in response.json()["error"]

    def test_transform_without_key(self, client):
        """GET /transform without key is a 400."""
        response = client.get("/transform")

        assert response.status_code == 400

    def test_transform_unknown_key(self, client):
        """GET /transform for a key never uploaded is a 404."""
        response = client.get("/transform", params={"key": "missing.jpg"})

        assert response.status_code == 404
        assert "error" in response.json()


class TestDelete:
    """DELETE with a JSON body."""

    def test_delete_uploaded_object(self, client, store):
        """Deleting removes the object so transform then 404s."""
        upload(client, "a.jpg", b"data")

        response = client.request("DELETE", "/", json={"filename": "a.jpg"})

        assert response.status_code == 200
        assert response.json()["success"] is True
        assert client.get("/transform", params={"key": "a.jpg"}).status_code == 404

    def test_delete_twice_succeeds(self, client):
        """Delete is safe to repeat."""
        first = client.request("DELETE", "/", json={"filename": "ghost.jpg"})
        second = client.request("DELETE", "/", json={"filename": "ghost.jpg"})

        assert first.status_code == 200
        assert second.status_code == 200

    def test_delete_without_filename(self, client):
        """DELETE without filename is a 400."""
        response = client.request("DELETE", "/", json={})

        assert response.status_code == 400

    def test_delete_with_malformed_json(self, client):
        """An unparseable body comes back as the catch-all envelope."""
        response = client.request(
            "DELETE",
            "/",
            content=b"{not json",
            headers={"Content-Type": "application/json", "Origin": LOCAL_ORIGIN},
        )

        assert response.status_code == 500
        body = response.json()
        assert set(body) == {"error", "stack", "type"}
        assert response.headers["access-control-allow-origin"] == LOCAL_ORIGIN


class TestStatusAndMethods:
    """Status descriptor and unsupported methods."""

    def test_status_on_any_path(self, client):
        """Non-transform GETs return the descriptor, including /docs."""
        for path in ["/", "/health", "/docs"]:
            response = client.get(path)
            assert response.status_code == 200
            assert response.json() == {
                "status": "ok",
                "service": "Gallery Widget R2 Upload Service",
                "features": ["upload", "delete", "transform"],
            }

    def test_patch_is_405(self, client):
        """PATCH is not supported on any path."""
        for path in ["/", "/transform"]:
            response = client.patch(path, headers={"Origin": LOCAL_ORIGIN})
            assert response.status_code == 405
            assert response.text == "Method not allowed"
            assert response.headers["access-control-allow-origin"] == LOCAL_ORIGIN

    def test_unrouted_methods_are_405_with_cors(self, client):
        """Methods the router does not know get the same plain-text 405."""
        for method in ["TRACE", "PROPFIND", "FOO"]:
            response = client.request(method, "/", headers={"Origin": LOCAL_ORIGIN})
            assert response.status_code == 405
            assert response.text == "Method not allowed"
            assert response.headers["access-control-allow-origin"] == LOCAL_ORIGIN

    def test_dependency_failure_gets_error_envelope(self):
        """A failure before the gateway runs still gets the envelope and CORS."""
        app = create_app()

        def broken_gateway():
            raise RuntimeError("boom")

        app.dependency_overrides[get_object_gateway] = broken_gateway
        with TestClient(app, raise_server_exceptions=False) as client:
            response = client.get("/", headers={"Origin": LOCAL_ORIGIN})

        assert response.status_code == 500
        body = response.json()
        assert set(body) == {"error", "stack", "type"}
        assert body["error"] == "boom"
        assert body["type"] == "RuntimeError"
        assert "RuntimeError" in body["stack"]
        assert response.headers["access-control-allow-origin"] == LOCAL_ORIGIN


class TestMissingBinding:
    """No bucket bound: storage calls fail with a hint, status still works."""

    def test_storage_calls_report_configuration_error(self, unbound_client):
        """POST, DELETE and transform all return the configuration error."""
        responses = [
            unbound_client.post(
                "/",
                files={"file": ("a.jpg", b"data", "image/jpeg")},
                data={"filename": "a.jpg"},
            ),
            unbound_client.request("DELETE", "/", json={"filename": "a.jpg"}),
            unbound_client.get("/transform", params={"key": "a.jpg"}),
        ]

        for response in responses:
            assert response.status_code == 500
            body = response.json()
            assert "error" in body
            assert "ALBUM_BUCKET" in body["hint"]

    def test_status_succeeds(self, unbound_client):
        """The status descriptor needs no store."""
        response = unbound_client.get("/")

        assert response.status_code == 200
        assert response.json()["status"] == "ok"


class TestDependencies:
    """Dependency wiring from settings."""

    def test_unbound_settings_yield_no_store(self):
        """Without ALBUM_BUCKET and mock mode there is no store."""
        settings = get_settings().model_copy(update={"album_bucket": "", "r2_mock_mode": False})

        assert get_object_store(settings) is None

    def test_mock_mode_shares_one_store(self):
        """Mock mode returns the same in-memory store on every call."""
        settings = get_settings().model_copy(update={"r2_mock_mode": True})

        first = get_object_store(settings)
        second = get_object_store(settings)

        assert isinstance(first, MockObjectStore)
        assert first is second

    def test_r2_store_is_built_once(self):
        """Bound R2 settings reuse one store and boto3 client per process."""
        settings = get_settings().model_copy(update={
            "r2_mock_mode": False,
            "album_bucket": "gallery-test",
            "r2_endpoint_url": "https://r2.example.test",
            "r2_access_key_id": "test-key",
            "r2_secret_access_key": "test-secret",
        })
        get_r2_object_store.cache_clear()

        first = get_object_store(settings)
        second = get_object_store(settings)

        assert isinstance(first, R2ObjectStore)
        assert first is second
        assert first.s3_client is second.s3_client
        get_r2_object_store.cache_clear()

    def test_cors_policy_uses_configured_origins(self):
        """The default policy lists the production and local origins."""
        policy = get_cors_policy()

        assert PRODUCTION_ORIGIN in policy.allowed_origins
        assert LOCAL_ORIGIN in policy.allowed_origins
        assert policy.fallback_origin == PRODUCTION_ORIGIN

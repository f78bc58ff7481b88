from fastapi import status
from fastapi.testclient import TestClient

from fragments_api.adapters.storage import MemoryStorage
from fragments_api.exceptions import BackendUnavailableError
from fragments_api.main import create_app


def create_fragment(client: TestClient, auth, content: bytes = b"hello", content_type: str = "text/plain") -> dict:
    response = client.post(
        "/v1/fragments",
        content=content,
        headers={"Content-Type": content_type},
        auth=auth,
    )
    assert response.status_code == status.HTTP_201_CREATED
    return response.json()["fragment"]


def assert_error(response, code: int):
    assert response.status_code == code
    body = response.json()
    assert body["status"] == "error"
    assert body["error"]["code"] == code
    assert body["error"]["message"]


def test_requests_without_credentials_are_unauthorized(client: TestClient):
    response = client.get("/v1/fragments")
    assert_error(response, status.HTTP_401_UNAUTHORIZED)


def test_wrong_password_is_unauthorized(client: TestClient, auth):
    response = client.get("/v1/fragments", auth=(auth[0], "wrong-password"))
    assert_error(response, status.HTTP_401_UNAUTHORIZED)
    assert response.headers["WWW-Authenticate"] == "Basic"


def test_unknown_user_is_unauthorized(client: TestClient):
    response = client.get("/v1/fragments", auth=("nobody@email.com", "password1"))
    assert_error(response, status.HTTP_401_UNAUTHORIZED)


def test_create_fragment_with_unsupported_type(client: TestClient, auth):
    response = client.post(
        "/v1/fragments",
        content=b"\x00\x01",
        headers={"Content-Type": "application/octet-stream"},
        auth=auth,
    )
    assert_error(response, status.HTTP_415_UNSUPPORTED_MEDIA_TYPE)
    assert client.get("/v1/fragments", auth=auth).json()["fragments"] == []


def test_create_fragment_without_content_type(client: TestClient, auth):
    response = client.post("/v1/fragments", content=b"hello", auth=auth)
    assert_error(response, status.HTTP_415_UNSUPPORTED_MEDIA_TYPE)


def test_create_fragment_too_large(client: TestClient, auth, settings):
    response = client.post(
        "/v1/fragments",
        content=b"x" * (settings.max_fragment_size_bytes + 1),
        headers={"Content-Type": "text/plain"},
        auth=auth,
    )
    assert_error(response, 413)
    assert client.get("/v1/fragments", auth=auth).json()["fragments"] == []


def test_create_fragment_at_size_limit(client: TestClient, auth, settings):
    fragment = create_fragment(client, auth, b"x" * settings.max_fragment_size_bytes)
    assert fragment["size"] == settings.max_fragment_size_bytes


def test_get_missing_fragment(client: TestClient, auth):
    response = client.get("/v1/fragments/does-not-exist", auth=auth)
    assert_error(response, status.HTTP_404_NOT_FOUND)

    response = client.get("/v1/fragments/does-not-exist/info", auth=auth)
    assert_error(response, status.HTTP_404_NOT_FOUND)

    response = client.get("/v1/fragments/does-not-exist.html", auth=auth)
    assert_error(response, status.HTTP_404_NOT_FOUND)


def test_delete_missing_fragment(client: TestClient, auth):
    response = client.delete("/v1/fragments/does-not-exist", auth=auth)
    assert_error(response, status.HTTP_404_NOT_FOUND)


def test_unconvertible_extension(client: TestClient, auth):
    fragment = create_fragment(client, auth, b"plain text", "text/plain")

    response = client.get(f"/v1/fragments/{fragment['id']}.html", auth=auth)
    assert_error(response, status.HTTP_415_UNSUPPORTED_MEDIA_TYPE)

    response = client.get(f"/v1/fragments/{fragment['id']}.exe", auth=auth)
    assert_error(response, status.HTTP_415_UNSUPPORTED_MEDIA_TYPE)


def test_malformed_payload_is_not_convertible(client: TestClient, auth):
    fragment = create_fragment(client, auth, b"{not json", "application/json")

    response = client.get(f"/v1/fragments/{fragment['id']}.yaml", auth=auth)
    assert_error(response, status.HTTP_415_UNSUPPORTED_MEDIA_TYPE)


def test_update_with_different_type(client: TestClient, auth):
    fragment = create_fragment(client, auth, b"plain text", "text/plain")

    response = client.put(
        f"/v1/fragments/{fragment['id']}",
        content=b"# Markdown",
        headers={"Content-Type": "text/markdown"},
        auth=auth,
    )
    assert_error(response, status.HTTP_400_BAD_REQUEST)

    response = client.get(f"/v1/fragments/{fragment['id']}", auth=auth)
    assert response.content == b"plain text"


def test_update_missing_fragment(client: TestClient, auth):
    response = client.put(
        "/v1/fragments/does-not-exist",
        content=b"hello",
        headers={"Content-Type": "text/plain"},
        auth=auth,
    )
    assert_error(response, status.HTTP_404_NOT_FOUND)


def test_update_too_large(client: TestClient, auth, settings):
    fragment = create_fragment(client, auth)

    response = client.put(
        f"/v1/fragments/{fragment['id']}",
        content=b"x" * (settings.max_fragment_size_bytes + 1),
        headers={"Content-Type": "text/plain"},
        auth=auth,
    )
    assert_error(response, 413)


def test_owners_cannot_see_each_others_fragments(client: TestClient, auth, other_auth):
    fragment = create_fragment(client, auth)

    assert client.get("/v1/fragments", auth=other_auth).json()["fragments"] == []
    assert_error(client.get(f"/v1/fragments/{fragment['id']}", auth=other_auth), status.HTTP_404_NOT_FOUND)
    assert_error(client.get(f"/v1/fragments/{fragment['id']}/info", auth=other_auth), status.HTTP_404_NOT_FOUND)
    assert_error(client.delete(f"/v1/fragments/{fragment['id']}", auth=other_auth), status.HTTP_404_NOT_FOUND)

    response = client.get(f"/v1/fragments/{fragment['id']}", auth=auth)
    assert response.status_code == status.HTTP_200_OK


class UnavailableStorage(MemoryStorage):
    async def write_data(self, owner_id, fragment_id, data):
        raise BackendUnavailableError("write_data", owner_id, fragment_id, "connection refused")


def test_backend_unavailable(settings, auth):
    app = create_app(settings=settings, storage=UnavailableStorage())
    with TestClient(app) as client:
        response = client.post(
            "/v1/fragments",
            content=b"hello",
            headers={"Content-Type": "text/plain"},
            auth=auth,
        )
    assert_error(response, status.HTTP_503_SERVICE_UNAVAILABLE)


class BrokenStorage(MemoryStorage):
    async def list_metadata(self, owner_id):
        raise RuntimeError("unexpected failure")


def test_unexpected_errors_are_internal_server_errors(settings, auth):
    app = create_app(settings=settings, storage=BrokenStorage())
    with TestClient(app, raise_server_exceptions=False) as client:
        response = client.get("/v1/fragments", auth=auth)
    assert_error(response, status.HTTP_500_INTERNAL_SERVER_ERROR)

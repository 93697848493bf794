from __future__ import annotations

import uuid

import pytest
from fastapi.testclient import TestClient

from user_directory import deps
from user_directory.main import create_app
from user_directory.settings import Settings
from user_directory.user_store import StoreUnavailable


@pytest.fixture(params=["memory", "sql"])
def client(request):
    app = create_app(Settings(user_store_backend=request.param, database_url="sqlite://"))
    return TestClient(app)


def test_post_user_returns_201_with_location(client) -> None:
    resp = client.post("/users", json={"userName": "alice", "email": "a@x.com"})
    assert resp.status_code == 201, resp.text
    assert resp.headers["location"] == "/users/alice"

    data = resp.json()
    assert data["userName"] == "alice"
    assert data["email"] == "a@x.com"
    assert uuid.UUID(data["id"]).int != 0


def test_get_user_after_post_returns_same_body(client) -> None:
    created = client.post("/users", json={"userName": "alice", "email": "a@x.com"}).json()

    resp = client.get("/users/alice")
    assert resp.status_code == 200
    assert resp.json() == created


def test_post_keeps_client_supplied_id(client) -> None:
    user_id = str(uuid.uuid4())
    resp = client.post("/users", json={"id": user_id, "userName": "alice", "email": "a@x.com"})
    assert resp.status_code == 201
    assert resp.json()["id"] == user_id


def test_duplicate_user_name_returns_409(client) -> None:
    assert client.post("/users", json={"userName": "alice", "email": "a@x.com"}).status_code == 201

    resp = client.post("/users", json={"userName": "alice", "email": "other@x.com"})
    assert resp.status_code == 409
    assert client.get("/users/alice").json()["email"] == "a@x.com"


@pytest.mark.parametrize("body", [{}, {"userName": ""}, {"userName": None}, {"email": "a@x.com"}])
def test_post_without_user_name_returns_400(client, body) -> None:
    resp = client.post("/users", json=body)
    assert resp.status_code == 400
    assert resp.json()["detail"] == "User name is required!"


def test_post_with_malformed_id_is_a_validation_error(client) -> None:
    resp = client.post("/users", json={"id": "not-a-uuid", "userName": "alice"})
    assert resp.status_code == 422


def test_get_unknown_user_returns_404(client) -> None:
    assert client.get("/users/bob").status_code == 404


def test_get_empty_user_name_returns_400(client) -> None:
    resp = client.get("/users/")
    assert resp.status_code == 400
    assert resp.json()["detail"] == "User name is required!"


def test_whitespace_user_name_is_a_regular_name(client) -> None:
    assert client.get("/users/%20").status_code == 404

    resp = client.post("/users", json={"userName": " "})
    assert resp.status_code == 201
    assert resp.headers["location"] == "/users/%20"
    assert client.get("/users/%20").json()["userName"] == " "


def test_location_header_is_url_quoted(client) -> None:
    resp = client.post("/users", json={"userName": "carol smith"})
    assert resp.status_code == 201
    assert resp.headers["location"] == "/users/carol%20smith"
    assert client.get(resp.headers["location"]).json()["userName"] == "carol smith"


def test_location_header_round_trips_names_with_slashes(client) -> None:
    resp = client.post("/users", json={"userName": "a/b", "email": "ab@x.com"})
    assert resp.status_code == 201
    assert resp.headers["location"] == "/users/a%2Fb"

    got = client.get(resp.headers["location"])
    assert got.status_code == 200
    assert got.json() == resp.json()


def test_snake_case_body_is_accepted(client) -> None:
    resp = client.post("/users", json={"user_name": "dave"})
    assert resp.status_code == 201
    assert resp.json()["userName"] == "dave"


def test_store_failure_returns_503() -> None:
    app = create_app(Settings(user_store_backend="memory"))

    class BrokenStore:
        def find_by_user_name(self, name):
            raise StoreUnavailable("db down")

        def insert(self, user):
            raise StoreUnavailable("db down")

    app.dependency_overrides[deps.get_user_store] = lambda: BrokenStore()
    try:
        client = TestClient(app)
        assert client.get("/users/alice").status_code == 503
        assert client.post("/users", json={"userName": "alice"}).status_code == 503
    finally:
        app.dependency_overrides.clear()


def test_apps_do_not_share_stores() -> None:
    first = TestClient(create_app(Settings(user_store_backend="memory")))
    second = TestClient(create_app(Settings(user_store_backend="memory")))

    assert first.post("/users", json={"userName": "alice"}).status_code == 201
    assert second.get("/users/alice").status_code == 404

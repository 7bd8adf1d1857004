import pytest
from fastapi.testclient import TestClient
from starlette.websockets import WebSocketDisconnect

from common.security.jwt.tokens import generate_access_token
from main import app


def auth(user_id: str, **claims) -> dict:
    return {"Authorization": f"Bearer {generate_access_token(user_id, **claims)}"}


@pytest.fixture
def client():
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def users(client):
    for user_id in ("alice", "bob"):
        response = client.post("/users/me", headers=auth(user_id, name=user_id.title()))
        assert response.status_code == 201
    return "alice", "bob"


def profile(client, user_id):
    return client.get(f"/users/{user_id}").json()["data"]


def test_health(client):
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json()["store"] == "memory"


def test_ensure_profile_is_idempotent(client):
    first = client.post("/users/me", headers=auth("ana", name="Ana", email="ana@example.com"))
    assert first.status_code == 201
    assert first.json()["data"]["followers"] == 0
    assert first.json()["data"]["email"] == "ana@example.com"

    second = client.post("/users/me", headers=auth("ana", name="Changed"))
    assert second.status_code == 200
    assert second.json()["data"]["name"] == "Ana"

    me = client.get("/users/me", headers=auth("ana"))
    assert me.json()["data"]["id"] == "ana"


def test_toggle_follow_round_trip(client, users):
    alice, bob = users

    response = client.post(f"/users/{bob}/follow", headers=auth(alice))
    assert response.status_code == 200
    assert response.json()["data"] == {"target_user_id": bob, "following": True, "state": "following"}
    assert profile(client, bob)["followers"] == 1
    assert profile(client, alice)["following"] == 1

    status = client.get(f"/users/{bob}/follow-status", headers=auth(alice)).json()["data"]
    assert status == {"is_following": True, "is_loading": False, "target_user_id": bob}

    followers = client.get(f"/users/{bob}/followers").json()["data"]["followers"]
    assert [m["follower_user_id"] for m in followers] == [alice]
    following = client.get(f"/users/{alice}/following").json()["data"]["following"]
    assert [m["target_user_id"] for m in following] == [bob]

    response = client.post(f"/users/{bob}/follow", headers=auth(alice), params={"language": "fa"})
    assert response.json()["data"]["following"] is False
    assert profile(client, bob)["followers"] == 0
    assert profile(client, alice)["following"] == 0


def test_follow_self_is_invalid(client, users):
    alice, _ = users

    response = client.post(f"/users/{alice}/follow", headers=auth(alice))
    assert response.status_code == 400
    assert response.json()["error_code"] == "INVALID_OPERATION"
    assert response.json()["retryable"] is False
    assert profile(client, alice)["following"] == 0


def test_follow_requires_authentication(client, users):
    _, bob = users

    assert client.post(f"/users/{bob}/follow").status_code == 401
    response = client.post(f"/users/{bob}/follow", headers={"Authorization": "Bearer not-a-token"})
    assert response.status_code == 401
    assert response.json()["error_code"] == "AUTH_UNAUTHENTICATED"


def test_follow_unknown_user(client, users):
    alice, _ = users

    response = client.post("/users/ghost/follow", headers=auth(alice))
    assert response.status_code == 404
    assert response.json()["error_code"] == "NOT_FOUND"


def test_anonymous_follow_status_is_loading(client, users):
    _, bob = users

    status = client.get(f"/users/{bob}/follow-status").json()["data"]
    assert status["is_following"] is False
    assert status["is_loading"] is True


def test_username_flow(client, users):
    alice, bob = users

    response = client.post("/users/me/username", headers=auth(alice), json={"username": "Alice.Travels"})
    assert response.status_code == 200
    assert response.json()["data"]["username"] == "alice.travels"
    assert client.get("/users/by-username/alice.travels").json()["data"]["id"] == alice

    taken = client.post("/users/me/username", headers=auth(bob), json={"username": "alice.travels"})
    assert taken.status_code == 409

    extra = client.post("/users/me/username", headers=auth(bob), json={"username": "bobby", "role": "admin"})
    assert extra.status_code == 400
    assert extra.json()["error_code"] == "VALIDATION_ERROR"

    changed = client.post("/users/me/username", headers=auth(alice), json={"username": "alice.abroad"})
    assert changed.status_code == 200
    assert client.get("/users/by-username/alice.travels").status_code == 404

    freed = client.post("/users/me/username", headers=auth(bob), json={"username": "alice.travels"})
    assert freed.status_code == 200


def test_edit_profile(client, users):
    alice, bob = users
    client.post("/users/me/username", headers=auth(bob), json={"username": "bob.roams"})

    response = client.patch("/users/me", headers=auth(alice), json={"name": "Alice A", "bio": "Trains only", "username": "alice.rails"})
    assert response.status_code == 200
    data = response.json()["data"]
    assert (data["name"], data["bio"], data["username"]) == ("Alice A", "Trains only", "alice.rails")

    renamed = client.patch("/users/me", headers=auth(alice), json={"username": "Alice.Trains"})
    assert renamed.json()["data"]["username"] == "alice.trains"
    assert renamed.json()["data"]["bio"] == "Trains only"

    taken = client.patch("/users/me", headers=auth(alice), json={"username": "bob.roams", "bio": "ignored"})
    assert taken.status_code == 409
    assert profile(client, alice)["bio"] == "Trains only"

    counters = client.patch("/users/me", headers=auth(alice), json={"followers": 1000})
    assert counters.status_code == 400
    assert counters.json()["error_code"] == "VALIDATION_ERROR"

    empty = client.patch("/users/me", headers=auth(alice), json={})
    assert empty.status_code == 400
    assert empty.json()["error_code"] == "BAD_REQUEST"

    assert client.patch("/users/me", json={"bio": "anonymous"}).status_code == 401


def test_admin_reconcile(client, users):
    alice, bob = users
    client.post(f"/users/{bob}/follow", headers=auth(alice))

    assert client.post(f"/admin/users/{bob}/reconcile-counters", headers=auth(alice)).status_code == 403

    response = client.post(f"/admin/users/{bob}/reconcile-counters", headers=auth("root", admin=True))
    assert response.status_code == 200
    data = response.json()["data"]
    assert data["changed"] is False
    assert data["followers"] == {"before": 1, "after": 1}

    missing = client.post("/admin/users/ghost/reconcile-counters", headers=auth("root", role="admin"))
    assert missing.status_code == 404


class TestFollowStatusStream:
    def test_rejects_invalid_token(self, client, users):
        _, bob = users

        with pytest.raises(WebSocketDisconnect):
            with client.websocket_connect(f"/users/{bob}/follow-status/ws?token=garbage") as ws:
                ws.receive_json()

    def test_pushes_status_and_toggles(self, client, users):
        alice, bob = users
        token = generate_access_token(alice)

        with client.websocket_connect(f"/users/{bob}/follow-status/ws?token={token}") as ws:
            assert ws.receive_json() == {"type": "status", "is_following": False, "is_loading": False}

            ws.send_json({"action": "toggle"})
            assert ws.receive_json() == {"type": "status", "is_following": True, "is_loading": False}

            ws.send_text("hello")
            error = ws.receive_json()
            assert error["type"] == "error"
            assert error["error_code"] == "BAD_REQUEST"

        assert profile(client, bob)["followers"] == 1

    def test_anonymous_stream_cannot_toggle(self, client, users):
        _, bob = users

        with client.websocket_connect(f"/users/{bob}/follow-status/ws") as ws:
            assert ws.receive_json() == {"type": "status", "is_following": False, "is_loading": True}

            ws.send_json({"action": "toggle"})
            error = ws.receive_json()
            assert error["error_code"] == "AUTH_UNAUTHENTICATED"
            assert error["retryable"] is False

import pytest
from bson import ObjectId
from fastapi.testclient import TestClient

import database
from main import app

API = "/api/v1"


def test_healthcheck_envelope(client):
    response = client.get(f"{API}/healthcheck")
    assert response.status_code == 200
    body = response.json()
    assert body["statusCode"] == 200
    assert body["success"] is True
    assert body["data"]["status"] == "OK"
    assert body["message"]


def test_protected_route_without_token(client, make_user, make_video):
    video = make_video(make_user("alice"))
    response = client.post(f"{API}/likes/toggle/v/{video['_id']}")
    assert response.status_code == 401
    body = response.json()
    assert body == {"statusCode": 401, "message": "Unauthorized request", "success": False}


def test_garbage_token_is_rejected(client):
    response = client.get(f"{API}/users/current-user", headers={"Authorization": "Bearer not-a-jwt"})
    assert response.status_code == 401
    assert response.json()["success"] is False


def test_malformed_id(client):
    response = client.get(f"{API}/videos/not-an-object-id")
    assert response.status_code == 400
    assert response.json()["message"] == "Invalid video id"


def test_validation_error_uses_error_envelope(client):
    response = client.post(f"{API}/users/login", json={"email": "alice@example.com"})
    assert response.status_code == 400
    body = response.json()
    assert body["success"] is False
    assert body["message"].startswith("password")
    assert body["errors"]


def test_unknown_video_is_not_found(client):
    response = client.get(f"{API}/videos/{ObjectId()}")
    assert response.status_code == 404
    assert response.json()["message"] == "Video not found"


def test_like_flow_over_http(client, make_user, make_video, auth_headers):
    alice = make_user("alice")
    bob = make_user("bob")
    video = make_video(alice, "Intro")
    url = f"{API}/videos/{video['_id']}"

    first = client.get(url, headers=auth_headers(bob)).json()["data"]
    assert first["likesCount"] == 0
    assert first["isLiked"] is False
    assert first["owner"]["username"] == "alice"
    assert first["owner"]["isSubscribed"] is False

    toggled = client.post(f"{API}/likes/toggle/v/{video['_id']}", headers=auth_headers(bob))
    assert toggled.status_code == 200
    assert toggled.json()["data"] == {"active": True}

    as_bob = client.get(url, headers=auth_headers(bob)).json()["data"]
    assert as_bob["likesCount"] == 1
    assert as_bob["isLiked"] is True

    anonymous = client.get(url).json()["data"]
    assert anonymous["likesCount"] == 1
    assert anonymous["isLiked"] is False
    # bob twice and one anonymous read
    assert anonymous["views"] == 3


def test_comment_lifecycle_over_http(client, make_user, make_video, auth_headers):
    alice = make_user("alice")
    bob = make_user("bob")
    video = make_video(alice)

    created = client.post(
        f"{API}/comments/{video['_id']}", json={"content": "First!"}, headers=auth_headers(bob)
    )
    assert created.status_code == 201
    comment_id = created.json()["data"]["id"]

    forbidden = client.patch(
        f"{API}/comments/c/{comment_id}", json={"content": "edited"}, headers=auth_headers(alice)
    )
    assert forbidden.status_code == 403

    page = client.get(f"{API}/comments/{video['_id']}").json()["data"]
    assert page["totalDocs"] == 1
    assert page["docs"][0]["content"] == "First!"
    assert page["docs"][0]["owner"]["username"] == "bob"

    deleted = client.delete(f"{API}/comments/c/{comment_id}", headers=auth_headers(bob))
    assert deleted.status_code == 200
    assert client.get(f"{API}/comments/{video['_id']}").json()["data"]["totalDocs"] == 0


def test_playlist_add_twice_over_http(client, make_user, make_video, auth_headers):
    alice = make_user("alice")
    video = make_video(alice, "Track")
    headers = auth_headers(alice)

    created = client.post(f"{API}/playlist", json={"name": "Mix", "description": "Songs"}, headers=headers)
    playlist_id = created.json()["data"]["id"]

    for _ in range(2):
        response = client.patch(f"{API}/playlist/add/{video['_id']}/{playlist_id}", headers=headers)
        assert response.status_code == 200

    detail = client.get(f"{API}/playlist/{playlist_id}").json()["data"]
    assert detail["totalVideos"] == 1
    assert [v["title"] for v in detail["videos"]] == ["Track"]


def test_subscription_over_http(client, make_user, auth_headers):
    alice = make_user("alice")
    bob = make_user("bob")

    response = client.post(f"{API}/subscriptions/c/{alice['_id']}", headers=auth_headers(bob))
    assert response.json()["data"] == {"active": True}

    self_sub = client.post(f"{API}/subscriptions/c/{alice['_id']}", headers=auth_headers(alice))
    assert self_sub.status_code == 400

    profile = client.get(f"{API}/users/c/alice", headers=auth_headers(bob)).json()["data"]
    assert profile["subscribersCount"] == 1
    assert profile["isSubscribed"] is True


def test_register_login_refresh(client):
    registered = client.post(
        f"{API}/users/register",
        data={"fullName": "Carol C", "email": "Carol@Example.com", "username": "Carol", "password": "pw12345"},
        files={"avatar": ("avatar.png", b"\x89PNG fake", "image/png")},
    )
    assert registered.status_code == 201
    user = registered.json()["data"]
    assert user["username"] == "carol"
    assert user["email"] == "carol@example.com"
    assert user["avatarUrl"].startswith("/media/image/")
    assert user["fullName"] == "Carol C"
    assert "password_hash" not in user and "passwordHash" not in user

    duplicate = client.post(
        f"{API}/users/register",
        data={"fullName": "Carol C", "email": "other@example.com", "username": "carol", "password": "pw12345"},
        files={"avatar": ("avatar.png", b"\x89PNG fake", "image/png")},
    )
    assert duplicate.status_code == 409

    wrong = client.post(f"{API}/users/login", json={"username": "carol", "password": "nope"})
    assert wrong.status_code == 401

    login = client.post(f"{API}/users/login", json={"username": "carol", "password": "pw12345"})
    assert login.status_code == 200
    tokens = login.json()["data"]
    assert tokens["user"]["id"] == user["id"]

    me = client.get(f"{API}/users/current-user", headers={"Authorization": f"Bearer {tokens['accessToken']}"})
    assert me.json()["data"]["username"] == "carol"

    refreshed = client.post(f"{API}/users/refresh-token", json={"refreshToken": tokens["refreshToken"]})
    assert refreshed.status_code == 200
    assert refreshed.json()["data"]["refreshToken"] != tokens["refreshToken"]

    # the rotated-out token cannot be used again
    reused = client.post(f"{API}/users/refresh-token", json={"refreshToken": tokens["refreshToken"]})
    assert reused.status_code == 401


def test_register_requires_fields(client):
    response = client.post(
        f"{API}/users/register",
        data={"fullName": "", "email": "x@example.com", "username": "x", "password": "pw"},
        files={"avatar": ("avatar.png", b"img", "image/png")},
    )
    assert response.status_code == 400
    assert response.json()["message"] == "All fields are required"


def _register(client, **fields):
    data = {"fullName": "Dave D", "email": "dave@example.com", "username": "dave", "password": "pw12345"}
    data.update(fields)
    return client.post(
        f"{API}/users/register",
        data=data,
        files={"avatar": ("avatar.png", b"img", "image/png")},
    )


@pytest.mark.parametrize(
    "fields, message",
    [
        ({"username": "al"}, "Invalid username"),
        ({"username": "x" * 31}, "Invalid username"),
        ({"email": "not-an-email"}, "Invalid email"),
    ],
)
def test_register_rejects_invalid_identity(client, db, media_dir, fields, message):
    response = _register(client, **fields)

    assert response.status_code == 400
    assert response.json() == {"statusCode": 400, "message": message, "success": False}
    assert db["user"].count_documents({}) == 0
    assert list(media_dir.rglob("*.*")) == []


def test_update_account_rejects_invalid_email(client, db, make_user, auth_headers):
    alice = make_user("alice")
    response = client.patch(
        f"{API}/users/update-account",
        json={"fullName": "Alice A", "email": "nope"},
        headers=auth_headers(alice),
    )
    assert response.status_code == 400
    assert response.json()["message"] == "Invalid email"
    assert db["user"].find_one({"_id": alice["_id"]})["email"] == "alice@example.com"


def test_unexpected_error_uses_error_envelope():
    def broken_db():
        raise RuntimeError("boom")

    app.dependency_overrides[database.get_db] = broken_db
    try:
        response = TestClient(app, raise_server_exceptions=False).get(f"{API}/playlist/{ObjectId()}")
    finally:
        app.dependency_overrides.clear()

    assert response.status_code == 500
    assert response.json() == {"statusCode": 500, "message": "Internal server error", "success": False}


def test_write_and_read_responses_share_field_names(client, make_user, make_video, auth_headers):
    alice = make_user("alice")
    video = make_video(alice, "Intro", published=False)
    headers = auth_headers(alice)

    toggled = client.patch(f"{API}/videos/toggle/publish/{video['_id']}", headers=headers).json()["data"]
    fetched = client.get(f"{API}/videos/{video['_id']}", headers=headers).json()["data"]
    assert set(toggled) == set(fetched)
    assert toggled["isPublished"] is True
    assert toggled["owner"]["username"] == "alice"

    created = client.post(f"{API}/comments/{video['_id']}", json={"content": "Hi"}, headers=headers).json()["data"]
    listed = client.get(f"{API}/comments/{video['_id']}").json()["data"]["docs"][0]
    assert set(created) == set(listed)
    assert "createdAt" in created and "created_at" not in created

    tweet = client.post(f"{API}/tweets", json={"content": "Hello"}, headers=headers).json()["data"]
    tweets = client.get(f"{API}/tweets/user/{alice['_id']}").json()["data"]["docs"]
    assert set(tweet) == set(tweets[0])

    playlist = client.post(f"{API}/playlist", json={"name": "Mix", "description": "Songs"}, headers=headers)
    playlist = playlist.json()["data"]
    detail = client.get(f"{API}/playlist/{playlist['id']}").json()["data"]
    assert set(playlist) == set(detail)

    me = client.get(f"{API}/users/current-user", headers=headers).json()["data"]
    updated = client.patch(
        f"{API}/users/update-account", json={"fullName": "Alice A", "email": "alice@example.com"}, headers=headers
    ).json()["data"]
    assert set(me) == set(updated)
    assert updated["fullName"] == "Alice A"

from datetime import UTC, datetime, timedelta
from uuid import uuid4

import jwt
import pytest
from fastapi.testclient import TestClient

from auth import dependencies as auth_dependencies
from core import media
from core.errors import AlreadyExists
from main import app
from playlists import service as playlists_service


@pytest.fixture
def acting(users):
    return {"id": users["alice"]["id"]}


@pytest.fixture
def client(memory_store, acting):
    # No context manager: the lifespan (DB pool) is not started.
    app.dependency_overrides[auth_dependencies.get_principal] = lambda: acting["id"]
    yield TestClient(app)
    app.dependency_overrides.clear()


def _token(sub, *, token_type="access", secret="dev-change-this-secret", expires_in=300):
    payload = {
        "sub": str(sub),
        "type": token_type,
        "exp": datetime.now(UTC) + timedelta(seconds=expires_in),
    }
    return jwt.encode(payload, secret, algorithm="HS256")


def test_health():
    assert TestClient(app).get("/health").json() == {"status": "ok", "database": "down"}


def test_list_videos_page_shape(client, users, make_video):
    for i in range(3):
        make_video(users["bob"], title=f"v{i}")

    res = client.get("/videos", params={"page": "2", "limit": "2", "sortBy": "title", "sortType": "asc"})

    assert res.status_code == 200
    body = res.json()
    assert (body["page"], body["page_size"], body["total"], body["total_pages"]) == (2, 2, 3, 2)
    assert [item["title"] for item in body["items"]] == ["v2"]
    assert body["items"][0]["owner"]["username"] == "bob"


def test_list_videos_bad_parameters(client):
    assert client.get("/videos", params={"sortBy": "password"}).status_code == 400
    assert client.get("/videos", params={"userId": "nobody"}).status_code == 400
    assert client.get("/videos", params={"page": "zero", "limit": "9999"}).json()["page_size"] == 100


def test_list_videos_huge_page_is_empty(client, users, make_video):
    make_video(users["bob"])
    res = client.get("/videos", params={"page": "10000000000000000000"})
    assert res.status_code == 200
    assert res.json()["items"] == []


def test_publish_video_form(client, monkeypatch):
    async def fake_upload(file):
        return media.MediaUpload(url=f"https://cdn.example/{file.filename}", duration=3)

    monkeypatch.setattr(media, "upload_file", fake_upload)

    res = client.post(
        "/videos",
        data={"title": "demo", "description": "short"},
        files={
            "videoFile": ("demo.mp4", b"\x00\x01", "video/mp4"),
            "thumbnail": ("demo.jpg", b"\xff", "image/jpeg"),
        },
    )
    assert res.status_code == 201
    assert res.json()["video_file"] == "https://cdn.example/demo.mp4"

    missing = client.post("/videos", data={"title": "demo", "description": "short"})
    assert missing.status_code == 400
    assert missing.json() == {"detail": "videoFile and thumbnail are required."}


def test_upload_failure_maps_to_bad_gateway(client, monkeypatch):
    async def broken_upload(file):
        raise media.MediaUploadError("media service down")

    monkeypatch.setattr(media, "upload_file", broken_upload)
    res = client.post(
        "/videos",
        data={"title": "demo", "description": "short"},
        files={"videoFile": ("a.mp4", b"1"), "thumbnail": ("a.jpg", b"2")},
    )
    assert res.status_code == 502


def test_foreign_and_missing_records_look_the_same(client, acting, users, make_video):
    video = make_video(users["bob"])

    foreign = client.delete(f"/videos/{video['id']}")
    missing = client.delete(f"/videos/{uuid4()}")

    assert foreign.status_code == missing.status_code == 404
    assert foreign.json() == missing.json()

    acting["id"] = users["bob"]["id"]
    assert client.delete(f"/videos/{video['id']}").json() == {"ok": True, "video_id": str(video["id"])}


def test_malformed_id_is_bad_request(client):
    assert client.get("/videos/not-a-uuid").status_code == 400
    assert client.post("/likes/toggle/v/not-a-uuid").status_code == 400


def test_toggle_publish(client, users, make_video):
    video = make_video(users["alice"])
    assert client.patch(f"/videos/toggle/publish/{video['id']}").json() == {"is_published": False}
    assert client.patch(f"/videos/toggle/publish/{video['id']}").json() == {"is_published": True}


def test_like_toggle_and_liked_videos(client, users, make_video):
    video = make_video(users["bob"], title="liked")

    assert client.post(f"/likes/toggle/v/{video['id']}").json() == {"liked": True}
    body = client.get("/likes/videos").json()
    assert body["count"] == 1
    assert body["videos"][0]["title"] == "liked"

    assert client.post(f"/likes/toggle/v/{video['id']}").json() == {"liked": False}
    assert client.get("/likes/videos").json() == {"videos": [], "count": 0}


def test_subscriptions(client, users):
    bob = users["bob"]["id"]
    assert client.post(f"/subscriptions/c/{bob}").json() == {"subscribed": True}
    assert client.get(f"/subscriptions/c/{bob}").json()["count"] == 1
    assert client.get(f"/subscriptions/u/{users['alice']['id']}").json()["channels"][0]["channel"]["username"] == "bob"

    own = client.post(f"/subscriptions/c/{users['alice']['id']}")
    assert own.status_code == 400


def test_comment_flow(client, users, make_video):
    video = make_video(users["bob"])

    created = client.post(f"/comments/{video['id']}", json={"content": "hello"})
    assert created.status_code == 201
    comment_id = created.json()["id"]

    assert client.post(f"/comments/{video['id']}", json={"content": "  "}).status_code == 400
    assert client.patch(f"/comments/c/{comment_id}", json={"content": "edited"}).json()["content"] == "edited"

    page = client.get(f"/comments/{video['id']}").json()
    assert page["total"] == 1
    assert page["items"][0]["owner"]["username"] == "alice"

    assert client.delete(f"/comments/c/{comment_id}").json() == {"ok": True, "comment_id": comment_id}


def test_playlist_flow(client, users, make_video):
    video = make_video(users["bob"])

    created = client.post("/playlists", json={"name": "mix", "description": "weekend"})
    assert created.status_code == 201
    playlist_id = created.json()["id"]

    assert client.patch(f"/playlists/add/{video['id']}/{playlist_id}").status_code == 200
    resolved = client.get(f"/playlists/{playlist_id}").json()
    assert [v["id"] for v in resolved["videos"]] == [str(video["id"])]

    assert client.post("/playlists", json={"name": "", "description": "x"}).status_code == 400


def test_dashboard_stats(client, users, make_video):
    make_video(users["alice"], views=7)
    assert client.get("/dashboard/stats").json() == {
        "total_videos": 1,
        "total_views": 7,
        "total_subscribers": 0,
        "total_likes": 0,
    }


def test_uniqueness_conflict_maps_to_409(client, monkeypatch):
    async def conflicting_create(**_):
        raise AlreadyExists("playlist already exists.")

    monkeypatch.setattr(playlists_service, "create_playlist", conflicting_create)
    res = client.post("/playlists", json={"name": "mix", "description": "weekend"})
    assert res.status_code == 409
    assert res.json() == {"detail": "playlist already exists."}


class TestBearerAuth:
    @pytest.fixture
    def anon_client(self, memory_store, monkeypatch):
        monkeypatch.delenv("JWT_SECRET", raising=False)
        monkeypatch.delenv("JWT_ALG", raising=False)
        return TestClient(app)

    def test_missing_header(self, anon_client):
        res = anon_client.get("/dashboard/stats")
        assert res.status_code == 401
        assert res.json()["detail"] == "Missing Authorization header."

    def test_wrong_scheme(self, anon_client, users):
        res = anon_client.get("/dashboard/stats", headers={"Authorization": f"Token {_token(users['alice']['id'])}"})
        assert res.status_code == 401

    def test_valid_token(self, anon_client, users):
        res = anon_client.get("/dashboard/stats", headers={"Authorization": f"Bearer {_token(users['alice']['id'])}"})
        assert res.status_code == 200

    @pytest.mark.parametrize(
        "kwargs",
        [
            {"token_type": "refresh"},
            {"secret": "someone-else"},
            {"expires_in": -60},
        ],
    )
    def test_rejected_tokens(self, anon_client, users, kwargs):
        token = _token(users["alice"]["id"], **kwargs)
        res = anon_client.get("/dashboard/stats", headers={"Authorization": f"Bearer {token}"})
        assert res.status_code == 401

    def test_unknown_subject(self, anon_client, users):
        for sub in (uuid4(), "not-a-uuid"):
            res = anon_client.get("/dashboard/stats", headers={"Authorization": f"Bearer {_token(sub)}"})
            assert res.status_code == 401

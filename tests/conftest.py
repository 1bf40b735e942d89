import os
import tempfile
from datetime import datetime, timedelta, timezone

os.environ.setdefault("ACCESS_TOKEN_SECRET", "test-access-secret")
os.environ.setdefault("REFRESH_TOKEN_SECRET", "test-refresh-secret")
os.environ.setdefault("MEDIA_DIR", tempfile.mkdtemp(prefix="media_"))
os.environ.pop("DATABASE_URL", None)

import mongomock
import pytest
from fastapi.testclient import TestClient

import config
import database
from auth import create_access_token, hash_password
from database import create_document
from main import app
from schemas import Comment, MediaFile, Tweet, User, Video

BASE_TIME = datetime(2024, 1, 1, 12, 0, 0, tzinfo=timezone.utc)


@pytest.fixture
def db():
    return mongomock.MongoClient()["videotube_test"]


@pytest.fixture(autouse=True)
def media_dir(tmp_path, monkeypatch):
    path = tmp_path / "media"
    path.mkdir()
    monkeypatch.setattr(config, "MEDIA_DIR", str(path))
    return path


@pytest.fixture
def client(db):
    app.dependency_overrides[database.get_db] = lambda: db
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def make_user(db):
    def _make(username, password="secret123", full_name=None):
        user = User(
            username=username,
            full_name=full_name or username.capitalize(),
            email=f"{username}@example.com",
            password_hash=hash_password(password),
            avatar=MediaFile(public_id=f"image/{username}.png", url=f"/media/image/{username}.png"),
        )
        return create_document(db, "user", user)
    return _make


@pytest.fixture
def make_video(db):
    def _make(owner, title="A video", published=True, minutes=0, views=0):
        video = Video(
            owner=owner["_id"],
            title=title,
            description=f"{title} description",
            video_file=MediaFile(public_id=f"video/{title}.mp4", url=f"/media/video/{title}.mp4"),
            thumbnail=MediaFile(public_id=f"image/{title}.jpg", url=f"/media/image/{title}.jpg"),
            duration=60,
            views=views,
            is_published=published,
        )
        doc = video.model_dump()
        doc["created_at"] = BASE_TIME + timedelta(minutes=minutes)
        return create_document(db, "video", doc)
    return _make


@pytest.fixture
def make_comment(db):
    def _make(video, owner, content="Nice video", minutes=0):
        doc = Comment(content=content, video=video["_id"], owner=owner["_id"]).model_dump()
        doc["created_at"] = BASE_TIME + timedelta(minutes=minutes)
        return create_document(db, "comment", doc)
    return _make


@pytest.fixture
def make_tweet(db):
    def _make(owner, content="Hello", minutes=0):
        doc = Tweet(content=content, owner=owner["_id"]).model_dump()
        doc["created_at"] = BASE_TIME + timedelta(minutes=minutes)
        return create_document(db, "tweet", doc)
    return _make


@pytest.fixture
def auth_headers():
    def _headers(user):
        return {"Authorization": f"Bearer {create_access_token(user)}"}
    return _headers

import os

# Configure before the app modules read the environment
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["SECRET_KEY"] = "test-secret-key"
os.environ["ENVIRONMENT"] = "test"
os.environ.pop("LOG_DIR", None)

import json
from datetime import datetime, timedelta
from typing import List, Optional

import cv2
import numpy as np
import pytest
from fastapi.testclient import TestClient

from main import app
from db.database import Base, engine, SessionLocal
from Endpoints.auth import create_access_token, hash_password
from models.users_models import User, Role
from models.video_models import Video, Comment, VideoStatus
from utils.blob_storage import BlobStorage, get_storage
from utils.settings import get_settings

TEST_PASSWORD = "s3cret-pass"


class _Request:
    def __init__(self, fn):
        self._fn = fn

    def execute(self):
        return self._fn()


class FakeDriveService:
    """In-memory stand-in for the Drive v3 service object"""

    def __init__(self):
        self.files_store = {}
        self.permissions_granted = []
        self.deleted = []
        self.fail_uploads = False
        self.fail_deletes = False
        self._next_id = 1

    def files(self):
        return _FakeFiles(self)

    def permissions(self):
        return _FakePermissions(self)


class _FakeFiles:
    def __init__(self, drive: FakeDriveService):
        self.drive = drive

    def create(self, body, media_body, fields):
        def run():
            if self.drive.fail_uploads:
                raise RuntimeError("drive unavailable")
            file_id = f"file{self.drive._next_id}"
            self.drive._next_id += 1
            self.drive.files_store[file_id] = {
                "name": body["name"],
                "parents": body["parents"],
                "mime_type": media_body.mimetype(),
                "data": media_body.getbytes(0, media_body.size()),
            }
            return {"id": file_id}
        return _Request(run)

    def delete(self, fileId):
        def run():
            if self.drive.fail_deletes:
                raise RuntimeError("drive unavailable")
            self.drive.files_store.pop(fileId, None)
            self.drive.deleted.append(fileId)
            return None
        return _Request(run)


class _FakePermissions:
    def __init__(self, drive: FakeDriveService):
        self.drive = drive

    def create(self, fileId, body):
        def run():
            self.drive.permissions_granted.append((fileId, body))
            return {"id": f"perm-{fileId}"}
        return _Request(run)


@pytest.fixture(autouse=True)
def setup_database():
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def drive():
    return FakeDriveService()


@pytest.fixture
def storage(drive):
    return BlobStorage(drive, "container-folder")


@pytest.fixture
def client(storage):
    app.dependency_overrides[get_storage] = lambda: storage
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def db():
    session = SessionLocal()
    yield session
    session.close()


def make_user(db, email: str, role: Role = Role.consumer, name: Optional[str] = None) -> User:
    user = User(
        name=name or email.split("@")[0].title(),
        email=email,
        password_hash=hash_password(TEST_PASSWORD),
        role=role,
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


def make_video(
    db,
    uploader: User,
    title: str = "Sample video",
    status: VideoStatus = VideoStatus.approved,
    tags: Optional[List[str]] = None,
    views: int = 0,
    thumbnail: Optional[str] = "https://drive.google.com/uc?id=thumb1&export=download",
    url: str = "https://drive.google.com/uc?id=video1&export=download",
    age_minutes: int = 0,
) -> Video:
    video = Video(
        title=title,
        description="A description long enough",
        url=url,
        thumbnail=thumbnail,
        tags=json.dumps(tags or ["music"]),
        uploaded_by=uploader.id,
        status=status,
        views=views,
        created_at=datetime.utcnow() - timedelta(minutes=age_minutes),
    )
    db.add(video)
    db.commit()
    db.refresh(video)
    return video


def make_comment(db, video: Video, user: User, text: str = "Nice one", age_minutes: int = 0) -> Comment:
    comment = Comment(
        video_id=video.id,
        user_id=user.id,
        text=text,
        created_at=datetime.utcnow() - timedelta(minutes=age_minutes),
    )
    db.add(comment)
    db.commit()
    db.refresh(comment)
    return comment


def auth_headers(user: User) -> dict:
    return {"Authorization": f"Bearer {create_access_token(user, get_settings())}"}


@pytest.fixture
def admin(db):
    return make_user(db, "admin@beatly.test", Role.admin, name="Admin")


@pytest.fixture
def consumer(db):
    return make_user(db, "fan@beatly.test", Role.consumer, name="Fan")


@pytest.fixture
def admin_headers(admin):
    return auth_headers(admin)


@pytest.fixture
def consumer_headers(consumer):
    return auth_headers(consumer)


@pytest.fixture(scope="session")
def video_bytes(tmp_path_factory):
    """A short real video: a bright square moving over a dark background"""
    path = tmp_path_factory.mktemp("media") / "clip.avi"
    writer = cv2.VideoWriter(str(path), cv2.VideoWriter_fourcc(*"MJPG"), 10, (640, 480))
    assert writer.isOpened()
    for i in range(10):
        frame = np.zeros((480, 640, 3), dtype=np.uint8)
        frame[300:400, 450 + i:550 + i] = 255
        writer.write(frame)
    writer.release()
    return path.read_bytes()

import os

# Settings are read at import time
os.environ.setdefault("ENVIRONMENT", "testing")
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("OPENAI_API_KEY", "test-openai-key")
os.environ.setdefault("LOG_FORMAT", "console")

import asyncio

import httpx
import pytest
from fastapi import Depends
from fastapi.testclient import TestClient
from sqlalchemy.orm import Session

import companion.models  # noqa: F401
from companion.database.connection import Base, SessionLocal, engine, get_db
from companion.main import app
from companion.models import AIModel, User, Workspace
from companion.services.completion import CompletionError, get_completion_client
from companion.services.identity import Identity, IdentityError, get_identity_provider
from companion.services.storage import StorageError, get_object_storage
from companion.services.uploads import ImageUploader, get_image_uploader

PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 32
VALID_TOKEN = "valid-token"
OTHER_TOKEN = "other-token"


def _on_event_loop():
    try:
        asyncio.get_running_loop()
    except RuntimeError:
        return False
    return True


class FakeStorage:
    """In-memory stand-in for the object storage bucket"""

    def __init__(self):
        self.objects = {}
        self.uploads = []
        self.upload_on_event_loop = []
        self.removed = []
        self.fail_upload = None
        self.fail_remove = None
        self.public_url = True

    def upload(self, path, content, content_type):
        if self.fail_upload:
            raise StorageError(self.fail_upload)
        self.uploads.append((path, content_type))
        self.upload_on_event_loop.append(_on_event_loop())
        self.objects[path] = content

    def get_public_url(self, path):
        return f"https://storage.test/images/{path}" if self.public_url else ""

    def remove(self, path):
        self.removed.append(path)
        if self.fail_remove:
            raise StorageError(self.fail_remove)
        self.objects.pop(path, None)


class FakeCompletion:
    def __init__(self):
        self.calls = []
        self.image_prompts = []
        self.reply = "Hi there!"
        self.image_url = "https://images.test/generated.png"
        self.error = None

    async def complete(self, system_prompt, user_prompt):
        if self.error:
            raise CompletionError(self.error)
        self.calls.append((system_prompt, user_prompt))
        return self.reply

    async def generate_image(self, prompt):
        if self.error:
            raise CompletionError(self.error)
        self.image_prompts.append(prompt)
        return self.image_url


class FakeIdentity:
    def __init__(self):
        self.identity = Identity(id="user-1", email="alex@example.com", name="Alex")
        self.other = Identity(id="user-2", email="sam@example.com", name="Sam")
        self.passwords = []
        self.fail_password = None

    def get_user(self, token):
        if token == VALID_TOKEN:
            return self.identity
        if token == OTHER_TOKEN:
            return self.other
        raise IdentityError("Invalid or expired token", status_code=401)

    def set_password(self, user_id, password):
        if self.fail_password:
            raise IdentityError(self.fail_password, status_code=400)
        self.passwords.append((user_id, password))


def image_transport(content=PNG_BYTES, content_type="image/png", status_code=200):
    """MockTransport serving one image for every request"""
    requests = []

    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        return httpx.Response(status_code, content=content, headers={"content-type": content_type})

    transport = httpx.MockTransport(handler)
    transport.requests = requests
    return transport


@pytest.fixture(autouse=True)
def database():
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def db_session():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def storage():
    return FakeStorage()


@pytest.fixture
def completion():
    return FakeCompletion()


@pytest.fixture
def identity():
    return FakeIdentity()


@pytest.fixture
def download_transport():
    return image_transport()


@pytest.fixture
def client(storage, completion, identity, download_transport):
    def uploader_override(db: Session = Depends(get_db)):
        return ImageUploader(db, storage, transport=download_transport)

    app.dependency_overrides[get_object_storage] = lambda: storage
    app.dependency_overrides[get_completion_client] = lambda: completion
    app.dependency_overrides[get_identity_provider] = lambda: identity
    app.dependency_overrides[get_image_uploader] = uploader_override
    yield TestClient(app, headers={"Authorization": f"Bearer {VALID_TOKEN}"})
    app.dependency_overrides.clear()


@pytest.fixture
def anonymous_client(client):
    """Same overrides, no bearer token"""
    return TestClient(app)


@pytest.fixture
def auth_headers():
    return {"Authorization": f"Bearer {VALID_TOKEN}"}


@pytest.fixture
def other_headers():
    """Bearer token of a second, unrelated user"""
    return {"Authorization": f"Bearer {OTHER_TOKEN}"}


@pytest.fixture
def user(db_session):
    db_user = User(id="user-1", email="alex@example.com", name="Alex")
    db_session.add(db_user)
    db_session.commit()
    return db_user


@pytest.fixture
def workspace(db_session, user):
    db_workspace = Workspace(
        user_id=user.id,
        name="Alex",
        interests=["music", "travel"],
        current_step=5,
        onboarding_complete=True,
    )
    db_session.add(db_workspace)
    db_session.commit()
    return db_workspace


@pytest.fixture
def ai_model(db_session, workspace):
    db_model = AIModel(
        workspace_id=workspace.id,
        name="Maya",
        role="Best Friend",
        personality="supportive, humorous",
        system_prompt="You are Maya, a loyal best friend.",
    )
    db_session.add(db_model)
    db_session.commit()
    return db_model

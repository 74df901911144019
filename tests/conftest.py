import os
os.environ.setdefault("LOG_LEVEL", "WARNING")

from types import SimpleNamespace

import pytest
from fastapi.testclient import TestClient

from upload_relay.dependencies import get_notifier, get_storage_client
from upload_relay.main import app
from upload_relay.services.storage_client import BunnyStorageClient, StorageResponse

RELAY_ENV = {
    "STORAGE_ZONE": "appeal-zone",
    "STORAGE_HOST": "storage.example.net",
    "STORAGE_ACCESS_KEY": "super-secret-key",
    "PULL_ZONE_HOST": "cdn.example.com",
    "UPLOAD_FOLDER": "uploads",
    "NOTIFICATION_WEBHOOK_URL": "https://hooks.example.com/catch/1/abc",
    "METADATA_FIELDS": "submission_id,slot",
    "UPLOAD_MAX_BYTES": str(25 * 1024 * 1024),
}


class FakeStorage(BunnyStorageClient):
    """Neemt PUTs op in plaats van ze te versturen."""

    def __init__(self, status_code=201, text="", exc=None):
        super().__init__()
        self.status_code = status_code
        self.text = text
        self.exc = exc
        self.calls = []

    async def put_file(self, url, access_key, upload):
        await upload.seek(0)
        self.calls.append(SimpleNamespace(url=url, access_key=access_key, data=await upload.read()))
        if self.exc is not None:
            raise self.exc
        return StorageResponse(status_code=self.status_code, text=self.text)


class FakeNotifier:
    def __init__(self, status_code=200, text="ok", exc=None):
        self.status_code = status_code
        self.text = text
        self.exc = exc
        self.calls = []

    async def notify(self, url, payload):
        self.calls.append(SimpleNamespace(url=url, payload=payload))
        if self.exc is not None:
            raise self.exc
        return SimpleNamespace(
            status_code=self.status_code,
            text=self.text,
            is_success=200 <= self.status_code < 300,
        )


@pytest.fixture
def relay_env(monkeypatch):
    for key, value in RELAY_ENV.items():
        monkeypatch.setenv(key, value)
    return monkeypatch


@pytest.fixture
def storage():
    return FakeStorage()


@pytest.fixture
def notifier():
    return FakeNotifier()


@pytest.fixture
def client(relay_env, storage, notifier):
    app.dependency_overrides[get_storage_client] = lambda: storage
    app.dependency_overrides[get_notifier] = lambda: notifier
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture
def anyio_backend():
    # Dwing anyio om alleen asyncio te gebruiken (geen Trio nodig)
    return "asyncio"

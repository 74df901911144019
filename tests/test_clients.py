import io
import json
import tempfile

import httpx
import pytest
from starlette.datastructures import UploadFile

from upload_relay.core.settings import RelaySettings
from upload_relay.dependencies import get_notifier, get_storage_client
from upload_relay.schemas.uploads import StorageTarget
from upload_relay.services.notifier import WebhookNotifier, deliver
from upload_relay.services.storage_client import CHUNK_SIZE, BunnyStorageClient

TARGET = StorageTarget(
    zone="zone",
    host="storage.example.net",
    access_key="secret",
    pull_zone_host="cdn.example.com",
    upload_folder="uploads",
)


def _upload(data: bytes) -> UploadFile:
    return UploadFile(io.BytesIO(data), size=len(data), filename="a.bin")


class AsyncOnlyUpload:
    """Alleen de async UploadFile-API, geen sync file object."""

    def __init__(self, data: bytes):
        self.data = data
        self.pos = 0
        self.reads = 0

    async def seek(self, offset: int) -> None:
        self.pos = offset

    async def read(self, size: int = -1) -> bytes:
        self.reads += 1
        end = len(self.data) if size < 0 else self.pos + size
        chunk = self.data[self.pos:end]
        self.pos += len(chunk)
        return chunk


def test_urls_share_folder_and_name():
    assert BunnyStorageClient.upload_url(TARGET, "a_b.pdf") == "https://storage.example.net/zone/uploads/a_b.pdf"
    assert BunnyStorageClient.public_url(TARGET, "a_b.pdf") == "https://cdn.example.com/uploads/a_b.pdf"


@pytest.mark.anyio
async def test_put_file_streams_bytes_with_access_key():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["method"] = request.method
        seen["url"] = str(request.url)
        seen["headers"] = request.headers
        seen["body"] = request.content
        return httpx.Response(201, text='{"HttpCode":201}')

    client = BunnyStorageClient(transport=httpx.MockTransport(handler))
    payload = b"x" * (200 * 1024)  # meerdere chunks
    r = await client.put_file("https://storage.example.net/zone/uploads/a.bin", "secret", _upload(payload))

    assert r.ok
    assert r.status_code == 201
    assert seen["method"] == "PUT"
    assert seen["headers"]["AccessKey"] == "secret"
    assert seen["headers"]["Content-Type"] == "application/octet-stream"
    assert seen["body"] == payload


@pytest.mark.anyio
async def test_put_file_reports_non_2xx():
    client = BunnyStorageClient(transport=httpx.MockTransport(lambda req: httpx.Response(404, text="zone not found")))
    r = await client.put_file("https://storage.example.net/zone/uploads/a.bin", "secret", _upload(b"x"))
    assert not r.ok
    assert r.status_code == 404
    assert r.text == "zone not found"


@pytest.mark.anyio
async def test_put_file_propagates_transport_errors():
    def handler(request):
        raise httpx.ConnectError("dns failure", request=request)

    client = BunnyStorageClient(transport=httpx.MockTransport(handler))
    with pytest.raises(httpx.ConnectError):
        await client.put_file("https://storage.example.net/zone/uploads/a.bin", "secret", _upload(b"x"))


@pytest.mark.anyio
async def test_deliver_posts_json():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["method"] = request.method
        seen["content_type"] = request.headers["Content-Type"]
        seen["json"] = json.loads(request.content)
        return httpx.Response(200, json={"status": "success"})

    notifier = WebhookNotifier(transport=httpx.MockTransport(handler))
    payload = {"submission_id": "S1", "file_url": "https://cdn.example.com/uploads/a.pdf"}

    assert await deliver(notifier, "https://hooks.example.com/catch", payload) is True
    assert seen == {"method": "POST", "content_type": "application/json", "json": payload}


@pytest.mark.anyio
async def test_deliver_swallows_non_2xx():
    notifier = WebhookNotifier(transport=httpx.MockTransport(lambda req: httpx.Response(500, text="boom")))
    assert await deliver(notifier, "https://hooks.example.com/catch", {"file_url": "u"}) is False


@pytest.mark.anyio
async def test_deliver_swallows_exceptions():
    def handler(request):
        raise httpx.ReadTimeout("too slow", request=request)

    notifier = WebhookNotifier(transport=httpx.MockTransport(handler))
    assert await deliver(notifier, "https://hooks.example.com/catch", {"file_url": "u"}) is False


def _recording_transport(seen):
    def handler(request: httpx.Request) -> httpx.Response:
        seen["body"] = request.content
        return httpx.Response(201)

    return httpx.MockTransport(handler)


@pytest.mark.anyio
async def test_put_file_reads_through_async_upload_api():
    seen = {}
    payload = b"y" * (3 * CHUNK_SIZE + 10)
    upload = AsyncOnlyUpload(payload)

    client = BunnyStorageClient(transport=_recording_transport(seen))
    r = await client.put_file("https://storage.example.net/zone/uploads/a.bin", "secret", upload)

    assert r.ok
    assert seen["body"] == payload
    assert upload.reads == 5  # 4 chunks + lege read aan het eind


@pytest.mark.anyio
async def test_put_file_streams_file_rolled_to_disk():
    seen = {}
    payload = b"z" * (200 * 1024)
    spooled = tempfile.SpooledTemporaryFile(max_size=1024)
    spooled.write(payload)
    assert spooled._rolled

    upload = UploadFile(spooled, size=len(payload), filename="big.bin")
    client = BunnyStorageClient(transport=_recording_transport(seen))
    try:
        r = await client.put_file("https://storage.example.net/zone/uploads/big.bin", "secret", upload)
    finally:
        await upload.close()

    assert r.ok
    assert seen["body"] == payload


def test_clients_are_built_per_request_with_configured_timeout():
    settings = RelaySettings(_env_file=None, HTTP_TIMEOUT_SECONDS=7.5)

    first, second = get_storage_client(settings), get_storage_client(settings)
    assert first is not second
    assert first.timeout == httpx.Timeout(7.5)

    notifier = get_notifier(RelaySettings(_env_file=None, HTTP_TIMEOUT_SECONDS=3))
    assert notifier.timeout == httpx.Timeout(3)

# upload_relay/services/storage_client.py
from __future__ import annotations

from dataclasses import dataclass
from typing import AsyncIterator, Optional

import httpx
from starlette.datastructures import UploadFile

from upload_relay.schemas.uploads import StorageTarget

CHUNK_SIZE = 64 * 1024


@dataclass(frozen=True)
class StorageResponse:
    status_code: int
    text: str

    @property
    def ok(self) -> bool:
        return 200 <= self.status_code < 300


async def _iter_file(upload: UploadFile, chunk_size: int = CHUNK_SIZE) -> AsyncIterator[bytes]:
    # UploadFile.seek/read gaan via de threadpool zodra het bestand op disk staat
    await upload.seek(0)
    while True:
        chunk = await upload.read(chunk_size)
        if not chunk:
            break
        yield chunk


class BunnyStorageClient:
    """Edge storage HTTP API: één PUT per object, geen retries."""

    def __init__(
        self,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.timeout = httpx.Timeout(timeout)
        self.transport = transport

    @staticmethod
    def upload_url(target: StorageTarget, encoded_name: str) -> str:
        return f"https://{target.host}/{target.zone}/{target.upload_folder}/{encoded_name}"

    @staticmethod
    def public_url(target: StorageTarget, encoded_name: str) -> str:
        # Zelfde folder + naam als upload_url, dus hetzelfde object
        return f"https://{target.pull_zone_host}/{target.upload_folder}/{encoded_name}"

    async def put_file(self, url: str, access_key: str, upload: UploadFile) -> StorageResponse:
        """
        Stream de inhoud van upload naar url.

        Transportfouten (httpx.HTTPError, OSError) gaan door naar de aanroeper.
        """
        headers = {
            "AccessKey": access_key,
            "Content-Type": "application/octet-stream",
        }
        async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
            r = await client.put(url, headers=headers, content=_iter_file(upload))
            return StorageResponse(status_code=r.status_code, text=r.text)

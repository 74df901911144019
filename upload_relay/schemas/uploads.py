# upload_relay/schemas/uploads.py
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict
from starlette.datastructures import UploadFile


# =========================
# Response bodies
# =========================
class UploadSuccess(BaseModel):
    success: bool = True
    fileUrl: str


class ErrorBody(BaseModel):
    error: str
    detail: Optional[str] = None
    status: Optional[int] = None


class NotificationPayload(BaseModel):
    """Caller-defined metadata + file_url; extra keys worden doorgegeven."""

    model_config = ConfigDict(extra="allow")

    file_url: str


# =========================
# Interne waarden
# =========================
@dataclass
class FileHandle:
    temp_name: str
    original_name: Optional[str]
    size: int
    # async seek/read: Starlette draait disk-IO in de threadpool
    upload: UploadFile
    content_type: Optional[str] = None


@dataclass
class DecodedForm:
    # Altijd lijsten: een veldnaam kan meerdere keren voorkomen.
    fields: Dict[str, List[str]] = field(default_factory=dict)
    files: Dict[str, List[FileHandle]] = field(default_factory=dict)

    def first_field(self, key: str) -> str:
        values = self.fields.get(key) or []
        return values[0] if values else ""

    def first_file(self, key: str = "file") -> Optional[FileHandle]:
        handles = self.files.get(key) or []
        return handles[0] if handles else None

    async def close(self) -> None:
        for handles in self.files.values():
            for handle in handles:
                await handle.upload.close()


@dataclass(frozen=True)
class StorageTarget:
    zone: str
    host: str
    access_key: str
    pull_zone_host: str
    upload_folder: str

    def __repr__(self) -> str:
        # access_key nooit in logs/tracebacks
        return (
            f"StorageTarget(zone={self.zone!r}, host={self.host!r}, "
            f"pull_zone_host={self.pull_zone_host!r}, upload_folder={self.upload_folder!r})"
        )


@dataclass(frozen=True)
class NormalizedUpload:
    safe_file_name: str
    metadata: Dict[str, str]


@dataclass(frozen=True)
class UploadResult:
    public_url: str
    success: bool = True

    def notification_payload(self, metadata: Dict[str, str]) -> Dict[str, Any]:
        payload = {**metadata, "file_url": self.public_url}
        return NotificationPayload.model_validate(payload).model_dump()

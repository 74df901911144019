# upload_relay/services/relay.py
"""
Upload relay: multipart in -> edge storage PUT -> publieke CDN-URL -> webhook.

Elke request eindigt in precies één JSON-response. Alleen de storage PUT is
fataal; de webhook is best-effort en draait na de response.
"""
from __future__ import annotations

import time
from typing import List, Optional

from starlette.background import BackgroundTask
from starlette.requests import Request
from starlette.responses import JSONResponse

from upload_relay.core.errors import (
    ConfigurationError,
    DecodeError,
    MethodNotAllowed,
    MissingFile,
    RelayError,
    StorageWriteFailed,
    UnexpectedServerError,
)
from upload_relay.core.logging_config import logger
from upload_relay.core.settings import RelaySettings
from upload_relay.observability.metrics import storage_put_hist, upload_counter, upload_size_hist
from upload_relay.schemas.uploads import (
    DecodedForm,
    FileHandle,
    NormalizedUpload,
    StorageTarget,
    UploadResult,
    UploadSuccess,
)
from upload_relay.services.filenames import safe_file_name
from upload_relay.services.multipart import decode_form
from upload_relay.services.notifier import WebhookNotifier, deliver
from upload_relay.services.storage_client import BunnyStorageClient

FILE_FIELD = "file"


def normalize(form: DecodedForm, handle: FileHandle, field_names: List[str]) -> NormalizedUpload:
    # Dubbele velden: eerste waarde wint, ontbrekend wordt "".
    metadata = {name: form.first_field(name) for name in field_names}
    return NormalizedUpload(
        safe_file_name=safe_file_name(handle.original_name, handle.temp_name),
        metadata=metadata,
    )


def check_configuration(settings: RelaySettings) -> StorageTarget:
    missing = settings.missing_storage_params()
    if missing:
        logger.error(
            "storage_misconfigured",
            missing=missing,
            has_access_key="STORAGE_ACCESS_KEY" not in missing,
        )
        raise ConfigurationError("Missing one or more storage env vars")
    return settings.storage_target()


class UploadRelay:
    def __init__(
        self,
        settings: RelaySettings,
        storage: BunnyStorageClient,
        notifier: Optional[WebhookNotifier] = None,
    ):
        self.settings = settings
        self.storage = storage
        self.notifier = notifier

    async def handle(self, request: Request) -> JSONResponse:
        try:
            return await self._handle(request)
        except RelayError as e:
            upload_counter.labels(result=e.metric_result).inc()
            return JSONResponse(status_code=e.status_code, content=e.to_body())

    async def _handle(self, request: Request) -> JSONResponse:
        if request.method != "POST":
            raise MethodNotAllowed()

        form = await self._decode(request)
        try:
            return await self._relay(form)
        finally:
            await form.close()

    async def _decode(self, request: Request) -> DecodedForm:
        try:
            return await decode_form(request, self.settings.UPLOAD_MAX_BYTES)
        except DecodeError as e:
            logger.error("upload_decode_failed", detail=e.detail)
            raise
        except Exception as e:
            # o.a. client disconnect halverwege de body
            logger.error("upload_decode_failed", detail=str(e), error=repr(e))
            raise DecodeError(str(e) or repr(e))

    async def _relay(self, form: DecodedForm) -> JSONResponse:
        handle = form.first_file(FILE_FIELD)
        if handle is None:
            logger.warning("upload_missing_file", fields=sorted(form.fields))
            raise MissingFile()

        upload = normalize(form, handle, self.settings.metadata_field_names)
        target = check_configuration(self.settings)

        try:
            result = await self._store(target, upload, handle)
        except RelayError:
            raise
        except Exception as e:
            logger.exception("upload_error", error=repr(e))
            raise UnexpectedServerError(str(e) or repr(e))

        upload_counter.labels(result="success").inc()
        upload_size_hist.observe(handle.size)
        body = UploadSuccess(success=result.success, fileUrl=result.public_url)
        response = JSONResponse(status_code=200, content=body.model_dump())

        webhook_url = self.settings.webhook_url
        if webhook_url and self.notifier is not None:
            payload = result.notification_payload(upload.metadata)
            logger.info("notification_scheduled", fields=sorted(payload))
            response.background = BackgroundTask(deliver, self.notifier, webhook_url, payload)
        return response

    async def _store(self, target: StorageTarget, upload: NormalizedUpload, handle: FileHandle) -> UploadResult:
        url = self.storage.upload_url(target, upload.safe_file_name)
        logger.info("storage_upload_started", url=url, size=handle.size)

        started = time.perf_counter()
        r = await self.storage.put_file(url, target.access_key, handle.upload)
        storage_put_hist.observe(time.perf_counter() - started)

        if not r.ok:
            logger.error("storage_upload_failed", status=r.status_code, body=r.text)
            raise StorageWriteFailed(r.text, status=r.status_code)

        return UploadResult(public_url=self.storage.public_url(target, upload.safe_file_name))

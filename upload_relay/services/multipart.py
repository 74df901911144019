# upload_relay/services/multipart.py
from __future__ import annotations

import uuid
from typing import AsyncGenerator, AsyncIterator

from starlette.concurrency import run_in_threadpool
from starlette.datastructures import Headers, UploadFile
from starlette.formparsers import FormParser, MultiPartException, MultiPartParser
from starlette.requests import Request

from upload_relay.core.errors import DecodeError
from upload_relay.schemas.uploads import DecodedForm, FileHandle

MULTIPART = "multipart/form-data"
URLENCODED = "application/x-www-form-urlencoded"


def _size_message(max_bytes: int, received: int) -> str:
    return f"maxFileSize ({max_bytes} bytes) exceeded, received {received} bytes"


async def _capped(stream: AsyncIterator[bytes], max_bytes: int) -> AsyncGenerator[bytes, None]:
    received = 0
    async for chunk in stream:
        received += len(chunk)
        if max_bytes and received > max_bytes:
            # MultiPartException zodat de parser zijn spooled files zelf opruimt
            raise MultiPartException(_size_message(max_bytes, received))
        yield chunk


def _check_content_length(headers: Headers, max_bytes: int) -> None:
    raw = headers.get("content-length")
    if not raw or not max_bytes:
        return
    try:
        declared = int(raw)
    except ValueError:
        raise DecodeError(f"invalid content-length header: {raw}")
    if declared > max_bytes:
        raise DecodeError(_size_message(max_bytes, declared))


def _tell_end(fileobj) -> int:
    fileobj.seek(0, 2)
    size = fileobj.tell()
    fileobj.seek(0)
    return size


async def _measure(upload: UploadFile) -> int:
    if upload.size is not None:
        return upload.size
    return await run_in_threadpool(_tell_end, upload.file)


async def decode_form(request: Request, max_bytes: int) -> DecodedForm:
    """
    Decodeer de request body naar velden + file handles (alles-of-niets).

    Elke parse-fout (framing, content-type, size cap) wordt een DecodeError.
    Bestanden staan in SpooledTemporaryFiles van Starlette; de aanroeper
    sluit ze via DecodedForm.close().
    """
    headers = request.headers
    content_type = (headers.get("content-type") or "").split(";")[0].strip().lower()
    _check_content_length(headers, max_bytes)

    stream = _capped(request.stream(), max_bytes)
    try:
        if content_type == MULTIPART:
            parsed = await MultiPartParser(headers, stream).parse()
        elif content_type == URLENCODED:
            parsed = await FormParser(headers, stream).parse()
        else:
            raise DecodeError(f"bad content-type header, unknown content-type: {content_type or 'none'}")
    except MultiPartException as e:
        raise DecodeError(e.message)

    form = DecodedForm()
    for key, value in parsed.multi_items():
        if isinstance(value, UploadFile):
            handle = FileHandle(
                temp_name=uuid.uuid4().hex,
                original_name=value.filename or None,
                size=await _measure(value),
                upload=value,
                content_type=value.content_type,
            )
            form.files.setdefault(key, []).append(handle)
        else:
            form.fields.setdefault(key, []).append(value)
    return form

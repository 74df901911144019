# upload_relay/core/errors.py
from typing import Any, Dict, Optional

from upload_relay.schemas.uploads import ErrorBody


class RelayError(Exception):
    """Basis voor alle fouten die de relay naar één HTTP-response vertaalt."""

    status_code: int = 500
    error: str = "Server error"
    metric_result: str = "server_error"

    def __init__(self, detail: Optional[str] = None, *, status: Optional[int] = None):
        super().__init__(detail or self.error)
        self.detail = detail
        self.status = status

    def to_body(self) -> Dict[str, Any]:
        body = ErrorBody(error=self.error, detail=self.detail, status=self.status)
        return body.model_dump(exclude_none=True)


class MethodNotAllowed(RelayError):
    status_code = 405
    error = "Method not allowed"
    metric_result = "method_not_allowed"


class DecodeError(RelayError):
    status_code = 500
    error = "Error parsing the form"
    metric_result = "decode_error"


class MissingFile(RelayError):
    status_code = 400
    error = "No file uploaded"
    metric_result = "missing_file"


class ConfigurationError(RelayError):
    status_code = 500
    error = "Server misconfigured"
    metric_result = "misconfigured"


class StorageWriteFailed(RelayError):
    status_code = 500
    error = "Upload failed"
    metric_result = "storage_failed"


class UnexpectedServerError(RelayError):
    status_code = 500
    error = "Server error"
    metric_result = "server_error"

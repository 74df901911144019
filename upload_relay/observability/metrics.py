# upload_relay/observability/metrics.py
from fastapi import APIRouter
from starlette.responses import Response

from prometheus_client import Counter, Histogram, generate_latest, CONTENT_TYPE_LATEST

router = APIRouter(tags=["observability"])

upload_counter = Counter(
    "relay_uploads_total",
    "Aantal upload requests per uitkomst",
    ["result"],  # success|method_not_allowed|decode_error|missing_file|misconfigured|storage_failed|server_error
)

notification_counter = Counter(
    "relay_notifications_total",
    "Aantal webhook notificaties",
    ["result"],  # sent|failed|error
)

upload_size_hist = Histogram(
    "relay_upload_size_bytes",
    "Bestandsgroottes van doorgestuurde uploads",
    buckets=(1e5, 3e5, 1e6, 3e6, 1e7, 3e7, 1e8),
)

storage_put_hist = Histogram(
    "relay_storage_put_seconds",
    "Duur van de storage PUT",
)


@router.get("/metrics", include_in_schema=True)
def metrics() -> Response:
    # Prometheus expects text/plain; version=0.0.4
    return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)

# upload_relay/main.py
import time
import uuid

import structlog
from fastapi import FastAPI, Request
from fastapi.exception_handlers import http_exception_handler
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from upload_relay.core.errors import MethodNotAllowed
from upload_relay.core.logging_config import logger, setup_logging
from upload_relay.core.settings import get_settings
from upload_relay.observability.metrics import router as metrics_router, upload_counter
from upload_relay.routers import uploads

# ----------------------------------------------------
# App init
# ----------------------------------------------------
settings = get_settings()
setup_logging(settings.LOG_LEVEL)

app = FastAPI(title="Upload Relay", version="0.1.0")
logger.info("startup", service="upload-relay")


# ----------------------------------------------------
# Health
# ----------------------------------------------------
@app.get("/health", include_in_schema=True)
def health() -> dict:
    return {"status": "ok"}


# ----------------------------------------------------
# Logging middleware
# ----------------------------------------------------
@app.middleware("http")
async def logging_middleware(request: Request, call_next):
    start = time.time()

    request_id = request.headers.get("X-Request-ID") or uuid.uuid4().hex
    client_ip = request.client.host if request.client else "unknown"

    structlog.contextvars.clear_contextvars()
    structlog.contextvars.bind_contextvars(request_id=request_id)
    bound_logger = logger.bind(
        ip=client_ip,
        endpoint=str(request.url.path),
        method=request.method,
    )

    bound_logger.info("request_started")
    response = await call_next(request)
    latency_ms = round((time.time() - start) * 1000, 2)

    bound_logger.bind(status_code=response.status_code, latency_ms=latency_ms).info(
        "request_finished"
    )
    response.headers["X-Request-ID"] = request_id
    return response


# ----------------------------------------------------
# Middleware
# ----------------------------------------------------
# Alleen CORS als er expliciet origins zijn: anders bereikt ook een preflight
# OPTIONS de relay en krijgt die 405.
if settings.allowed_origin_list:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_origin_list,
        allow_credentials=False,
        allow_methods=["POST"],
        allow_headers=["*"],
    )


@app.exception_handler(StarletteHTTPException)
async def method_not_allowed_handler(request: Request, exc: StarletteHTTPException):
    # Methodes buiten de route-lijst: zelfde 405 body als de relay zelf geeft
    if exc.status_code == 405 and request.url.path == uploads.UPLOAD_PATH:
        err = MethodNotAllowed()
        upload_counter.labels(result=err.metric_result).inc()
        return JSONResponse(status_code=err.status_code, content=err.to_body(), headers=exc.headers)
    return await http_exception_handler(request, exc)


# ----------------------------------------------------
# Routers
# ----------------------------------------------------
app.include_router(uploads.router)
app.include_router(metrics_router)  # /metrics

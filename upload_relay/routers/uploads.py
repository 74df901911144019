# upload_relay/routers/uploads.py
from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from upload_relay.dependencies import get_upload_relay
from upload_relay.services.relay import UploadRelay

router = APIRouter(prefix="/api", tags=["uploads"])
UPLOAD_PATH = "/api/upload"

# Gangbare methodes landen hier: de relay geeft zelf 405 + JSON body.
# Overige methodes (TRACE, PROPFIND, ...) vangt de 405-handler in main af.
ALL_METHODS = ["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS", "HEAD"]


@router.api_route("/upload", methods=ALL_METHODS)
async def upload(request: Request, relay: UploadRelay = Depends(get_upload_relay)) -> JSONResponse:
    """
    multipart/form-data met een `file` part + optionele tekstvelden.

    200: {"success": true, "fileUrl": "..."}
    400/405/500: {"error": "...", "detail": "...", "status": ...}
    """
    return await relay.handle(request)

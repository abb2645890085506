import logging
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import JSONResponse
from securevault.config import settings
from securevault.documents import lifecycle

logger = logging.getLogger(__name__)

# room for multipart boundaries, part headers and the small form fields
MULTIPART_OVERHEAD = 64 * 1024


class UploadSizeLimitMiddleware(BaseHTTPMiddleware):
    """Refuse oversized upload bodies from their Content-Length, before parsing.

    Bodies without a Content-Length get 411 so a chunked stream cannot slip
    past the cap.
    """

    def __init__(self, app, paths: tuple[str, ...] = ("/api/documents/upload",)):
        super().__init__(app)
        self.paths = frozenset(paths)

    async def dispatch(self, request, call_next):
        if request.method != "POST" or request.url.path not in self.paths:
            return await call_next(request)

        length = request.headers.get("content-length")
        try:
            size = int(length) if length is not None else None
        except ValueError:
            size = None

        if size is None:
            return JSONResponse(
                status_code=411,
                content={"error": "Content-Length required for uploads", "code": "length_required"},
            )
        if size > lifecycle.max_upload_bytes() + MULTIPART_OVERHEAD:
            logger.warning("Rejected %d-byte upload body on %s", size, request.url.path)
            return JSONResponse(
                status_code=400,
                content={
                    "error": f"File exceeds the {settings.max_upload_mb}MB upload limit",
                    "code": "validation_error",
                },
            )
        return await call_next(request)

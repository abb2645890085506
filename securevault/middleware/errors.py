import logging
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import JSONResponse
from securevault.config import settings

logger = logging.getLogger(__name__)

class CatchAllExceptionMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request, call_next):
        try:
            return await call_next(request)
        except Exception as exc:
            logger.error(
                "%s on %s (500): %s", type(exc).__name__, request.url.path, exc,
                exc_info=True,
                extra={"http_method": request.method, "path": request.url.path},
            )
            content = {"error": "Internal server error", "code": "internal_error"}
            if settings.is_development:
                content["details"] = f"{type(exc).__name__}: {exc}"
            return JSONResponse(status_code=500, content=content)

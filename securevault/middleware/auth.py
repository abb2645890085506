import logging
from fastapi import Request
from fastapi.responses import JSONResponse
from securevault.errors import AuthError
from securevault.utils.security import bearer_token, validate_token

logger = logging.getLogger(__name__)

PROTECTED_PREFIX = "/api/"

PUBLIC_PATHS = [
    "/api/auth/register", "/api/auth/login",
]

def _reject(exc: AuthError) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.message, "code": exc.code},
        headers={"WWW-Authenticate": "Bearer"},
    )

async def auth_middleware(request: Request, call_next):
    path = request.url.path

    # only the API is gated; /health and docs stay open
    if not path.startswith(PROTECTED_PREFIX) or path in PUBLIC_PATHS:
        return await call_next(request)

    token = bearer_token(request.headers.get("Authorization"))
    if not token:
        return _reject(AuthError("Access denied. No token provided."))

    try:
        request.state.user_id = validate_token(token)
    except AuthError as e:
        logger.debug("Rejected token on %s: %s", path, e.code)
        return _reject(e)

    return await call_next(request)

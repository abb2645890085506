
import logging
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from securevault.middleware.ratelimit import RateLimitMiddleware, client_address
from securevault.middleware.auth import auth_middleware
from securevault.middleware.errors import CatchAllExceptionMiddleware
from securevault.middleware.headers import SecurityHeadersMiddleware
from securevault.middleware.upload_limit import UploadSizeLimitMiddleware
from securevault.config import settings
from securevault.db.session import init_db
from securevault.errors import StoreUnavailable, register_error_handlers
from securevault.logging_config import setup_logging
from securevault.storage.s3 import get_storage
from securevault.auth.routes import router as auth_router
from securevault.documents.routes import router as documents_router
from securevault.users.routes import router as users_router
from securevault.admin.routes import router as admin_router

logger = logging.getLogger(__name__)

def create_app() -> FastAPI:
    setup_logging()
    app = FastAPI(title=settings.app_name)

    register_error_handlers(app)

    # added innermost first
    app.add_middleware(CatchAllExceptionMiddleware)
    app.add_middleware(UploadSizeLimitMiddleware)
    app.middleware("http")(auth_middleware)
    app.add_middleware(
        RateLimitMiddleware,
        window_seconds=settings.rate_limit_window_seconds,
        max_calls=settings.rate_limit_max_calls,
        key_func=client_address,
        include_path_prefixes=("/",),
        exclude_paths=("/health",),
    )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=[settings.frontend_url],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(SecurityHeadersMiddleware, hsts=settings.is_production)

    app.include_router(auth_router)
    app.include_router(documents_router)
    app.include_router(users_router)
    app.include_router(admin_router)

    @app.on_event("startup")
    def on_startup():
        init_db()
        if settings.secret_key == "change-me-in-production" and settings.is_production:
            logger.warning("SECRET_KEY is the built-in default; set it before serving traffic")
        try:
            get_storage().check_connection()
        except StoreUnavailable as e:
            logger.error("Object storage not configured: %s", e.details)
        logger.info("%s started (%s)", settings.app_name, settings.app_env)

    @app.get("/health", tags=["health"])
    def health():
        return {"status": "OK", "message": f"{settings.app_name} is running"}

    return app

app = create_app()

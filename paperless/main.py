
import logging
import os
import time
from datetime import datetime, timezone

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles
from paperless.middleware.ratelimit import RateLimitMiddleware, client_key
from paperless.middleware.upload_limit import UploadSizeLimitMiddleware
from paperless.middleware.access_log import access_log_middleware
from paperless.config import settings
from paperless.db.session import connect_with_retry, init_db
from paperless.errors import register_exception_handlers
from paperless.auth.routes import router as auth_router
from paperless.documents.routes import router as documents_router
from paperless.uploads.routes import router as uploads_router

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
)
log = logging.getLogger("paperless")

STARTED_AT = time.monotonic()

def create_app() -> FastAPI:
    app = FastAPI(title=settings.app_name, version=settings.app_version)

    app.add_middleware(UploadSizeLimitMiddleware, max_bytes=settings.max_upload_bytes)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=[settings.client_url],
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization"],
        expose_headers=["Content-Disposition"],
        max_age=600,
    )

    app.add_middleware(
        RateLimitMiddleware,
        window_seconds=settings.rate_limit_window_seconds,
        max_calls=settings.rate_limit_max_calls,
        key_func=client_key,
    )
    app.middleware("http")(access_log_middleware)

    register_exception_handlers(app)

    app.include_router(auth_router)
    app.include_router(documents_router)

    if settings.public_uploads:
        log.warning("Serving %s publicly without access checks", settings.upload_dir)
        app.mount(
            "/uploads",
            StaticFiles(directory=settings.upload_dir, check_dir=False),
            name="uploads",
        )
    else:
        app.include_router(uploads_router)

    @app.on_event("startup")
    def on_startup():
        os.makedirs(settings.upload_dir, exist_ok=True)
        connect_with_retry()
        init_db()
        log.info("%s ready (env=%s)", settings.app_name, settings.app_env)

    @app.get("/", tags=["root"])
    def root():
        return {
            "message": f"{settings.app_name} is running",
            "version": settings.app_version,
            "environment": settings.app_env,
        }

    @app.get("/health", tags=["root"])
    def health():
        return {
            "status": "healthy",
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "uptime": round(time.monotonic() - STARTED_AT, 3),
            "environment": settings.app_env,
        }

    return app

app = create_app()

if __name__ == "__main__":
    import uvicorn
    uvicorn.run("paperless.main:app", host="0.0.0.0", port=4000)

"""
FastAPI application entry point for the blog admin backend.
"""

from __future__ import annotations

import logging
import time

from fastapi import Depends, FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from blog_admin.config import get_settings
from blog_admin.db import DbClient
from blog_admin.dependencies import get_db_client
from blog_admin.errors import register_exception_handlers
from blog_admin.routes import router

VERSION = "0.1.0"

logger = logging.getLogger(__name__)


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=level.upper(),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )


def create_app() -> FastAPI:
    settings = get_settings()
    configure_logging(settings.log_level)

    app = FastAPI(title="Blog Admin Backend (FastAPI)", version=VERSION, debug=settings.debug)
    register_exception_handlers(app, debug=settings.debug)

    # The admin frontend sends credentials, so origins must be explicit.
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins(),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(router, prefix=settings.api_prefix)

    @app.get("/health")
    def health_check(db: DbClient = Depends(get_db_client)):
        health_status = {
            "status": "healthy",
            "timestamp": time.time(),
            "version": VERSION,
            "checks": {},
        }
        try:
            db.ping()
            health_status["checks"]["database"] = "ok"
        except Exception as e:
            logger.error(f"Database health check failed: {e}")
            health_status["checks"]["database"] = f"error: {e}"
            health_status["status"] = "degraded"

        status_code = 200 if health_status["status"] == "healthy" else 503
        return JSONResponse(content=health_status, status_code=status_code)

    return app


app = create_app()

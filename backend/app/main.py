from __future__ import annotations

import logging

from fastapi import FastAPI
from starlette.middleware.cors import CORSMiddleware

from app.api.router import api_router
from app.core.config import settings
from app.core.errors import register_error_handlers
from app.db.session import create_all_tables
from app.middleware.logging import RequestLoggingMiddleware

logging.basicConfig(level=logging.INFO)
logging.getLogger("botocore").setLevel(logging.WARNING)
logger = logging.getLogger("svr")


def create_app() -> FastAPI:
    app = FastAPI(
        title=settings.app_name,
        version="0.1.0",
        docs_url="/docs",
        redoc_url="/redoc",
    )

    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_origins_list,
        allow_origin_regex=settings.allowed_origin_regex or None,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["X-Request-ID"],
    )

    register_error_handlers(app)

    @app.get("/health")
    async def health_check():
        return {"status": "ok", "environment": settings.environment}

    @app.get("/")
    async def root():
        return {"success": True, "message": f"{settings.app_name} API"}

    app.include_router(api_router)

    @app.on_event("startup")
    async def _create_tables() -> None:
        if settings.create_tables_on_startup:
            await create_all_tables()
            logger.info("tables_ready")

    return app


app = create_app()

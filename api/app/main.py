from __future__ import annotations

from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

from .routes.admin import router as admin_router
from .routes.geoblock import router as geoblock_router
from .routes.health import router as health_router
from .routes.usage import router as usage_router
from .services.backend import get_backend_resolver
from .services.logging import setup_logging
from .services.retention import RetentionSweeper
from .services.settings import get_settings


@asynccontextmanager
async def lifespan(app: FastAPI):
    setup_logging()
    settings = get_settings()
    resolver = get_backend_resolver(settings)

    # Firestore expires documents itself; only the in-memory store needs sweeping.
    sweeper = None
    if resolver.uses_volatile():
        sweeper = RetentionSweeper(
            resolver.volatile,
            interval_seconds=settings.sweep_interval_seconds,
            retention_days=settings.retention_days,
        )
        await sweeper.start()

    try:
        yield
    finally:
        if sweeper is not None:
            await sweeper.stop()


def create_app() -> FastAPI:
    settings = get_settings()
    app = FastAPI(title="santa-call-engine-api", version="0.1.0", lifespan=lifespan)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=[settings.frontend_url] if settings.frontend_url else ["*"],
        allow_credentials=True,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization", "X-API-Key"],
        expose_headers=["Set-Cookie", "X-Cookie-Set", "X-User-ID"],
    )

    @app.middleware("http")
    async def no_store(request: Request, call_next):
        response = await call_next(request)
        if request.url.path.startswith("/v1/"):
            response.headers["Cache-Control"] = "no-store"
        return response

    app.include_router(health_router, prefix="/v1")
    app.include_router(usage_router, prefix="/v1")
    app.include_router(geoblock_router, prefix="/v1")
    app.include_router(admin_router, prefix="/v1")
    return app


app = create_app()

# gallery/main.py
from __future__ import annotations

from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from gallery.cache import CacheHandle, Fetcher
from gallery.config import Settings
from gallery.errors import install_error_handlers
from gallery.logging_conf import setup_logging
from gallery.media_client import MediaClient

# --- Observability ---
from gallery.observability import metrics_endpoint, timing_middleware

# --- Routers ---
from gallery.routers import images
from gallery.schemas import HealthResponse, VersionResponse
from gallery.utils import utc_now_iso
from gallery.version import SERVICE_NAME, SERVICE_VERSION, service_version_payload


def create_app(
    settings: Settings | None = None,
    *,
    cache: CacheHandle | None = None,
    fetcher: Fetcher | None = None,
) -> FastAPI:
    """
    Build the app. `cache` and `fetcher` default to Redis and the media host
    as configured by `settings`; tests pass their own.
    """
    settings = settings or Settings.from_env()
    cache = cache if cache is not None else CacheHandle.from_settings(settings)
    fetcher = fetcher or MediaClient(settings).fetch_gallery

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        await cache.connect()
        try:
            yield
        finally:
            await cache.close()

    app = FastAPI(title="Gallery API", version=SERVICE_VERSION, lifespan=lifespan)
    app.state.cache = cache
    app.state.fetcher = fetcher

    # --- Include routers ---
    app.include_router(images.router, prefix=settings.api_prefix)

    # --- Middleware ---
    app.add_middleware(
        CORSMiddleware,
        allow_origins=list(settings.cors_origins),
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.middleware("http")(timing_middleware)

    install_error_handlers(app)

    # --- Utility endpoints ---
    @app.get("/health", response_model=HealthResponse)
    def health():
        return HealthResponse(
            cache="connected" if app.state.cache.available else "disconnected",
            as_of=utc_now_iso(),
            service=SERVICE_NAME,
        )

    @app.get("/version", response_model=VersionResponse)
    def version():
        return VersionResponse(**service_version_payload())

    @app.get("/metrics")
    def metrics():
        return metrics_endpoint()

    return app


def build_app() -> FastAPI:
    """uvicorn factory entry point: `uvicorn gallery.main:build_app --factory`."""
    settings = Settings.from_env()
    setup_logging(settings.log_level)
    return create_app(settings)

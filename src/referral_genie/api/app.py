"""
referral_genie.api.app

FastAPI app factory for the Referral Genie service.

Responsibilities:
- Build the FastAPI application and register routers/middleware.
- Initialize and dispose shared infrastructure (DB engine/session factory, outbound HTTP
  clients, the fax status scheduler).
- Serve uploaded campaign documents under `/uploads`.
- Provide a single composition root where cross-cutting concerns live.
"""

from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import httpx
from fastapi import FastAPI
from fastapi.staticfiles import StaticFiles

from referral_genie import __version__
from referral_genie.api.routers.auth import router as auth_router
from referral_genie.api.routers.campaigns import router as campaigns_router
from referral_genie.api.routers.clinic_locations import router as clinic_locations_router
from referral_genie.api.routers.fax import router as fax_router
from referral_genie.api.routers.health import router as health_router
from referral_genie.api.routers.interactions import router as interactions_router
from referral_genie.api.routers.prospecting import router as prospecting_router
from referral_genie.api.routers.referral_sources import router as referral_sources_router
from referral_genie.api.routers.uploads import router as uploads_router
from referral_genie.db.init_db import init_db
from referral_genie.db.session import create_engine, create_sessionmaker
from referral_genie.integrations.humble_fax import HumbleFaxClient
from referral_genie.observability.logging import configure_logging, get_logger
from referral_genie.observability.middleware import RequestContextMiddleware
from referral_genie.services.documents import DocumentStore
from referral_genie.services.fax_status import FaxStatusScheduler
from referral_genie.settings import Settings

log = get_logger(__name__)


def create_app(
    *,
    settings: Settings,
    fax_transport: httpx.AsyncBaseTransport | None = None,
    places_transport: httpx.AsyncBaseTransport | None = None,
) -> FastAPI:
    """
    `fax_transport` / `places_transport` replace the network for the HumbleFax and Google
    clients (tests pass `httpx.MockTransport`).
    """

    # Configure structured logging once at process startup (before app serves requests).
    configure_logging(
        service_name=settings.service_name,
        level=settings.log_level,
        json_logs=settings.env != "dev",
    )

    documents = DocumentStore(uploads_dir=settings.uploads_dir)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        log.info("startup", env=settings.env)
        engine = create_engine(settings)
        app.state.engine = engine
        app.state.sessionmaker = create_sessionmaker(engine)
        if settings.env in ("dev", "test"):
            # Dev/test convenience: create tables automatically. Prod uses Alembic migrations.
            await init_db(engine)

        documents.ensure_dir()
        app.state.fax_http = httpx.AsyncClient(
            base_url=settings.humble_fax_api_url,
            timeout=settings.http_timeout_seconds,
            transport=fax_transport,
        )
        app.state.places_http = httpx.AsyncClient(
            timeout=settings.http_timeout_seconds,
            transport=places_transport,
        )
        app.state.fax_client = HumbleFaxClient(settings=settings, http=app.state.fax_http)
        app.state.fax_status_scheduler = FaxStatusScheduler(
            session_factory=app.state.sessionmaker,
            client=app.state.fax_client,
            delay_seconds=settings.fax_status_check_delay_seconds,
        )
        try:
            yield
        finally:
            await app.state.fax_status_scheduler.aclose()
            await app.state.fax_http.aclose()
            await app.state.places_http.aclose()
            await engine.dispose()
            log.info("shutdown")

    app = FastAPI(
        title="Referral Genie",
        version=__version__,
        docs_url="/docs",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.documents = documents

    app.add_middleware(RequestContextMiddleware)
    app.include_router(health_router, tags=["health"])
    app.include_router(auth_router)
    app.include_router(referral_sources_router)
    app.include_router(interactions_router)
    app.include_router(clinic_locations_router)
    app.include_router(campaigns_router)
    app.include_router(fax_router)
    app.include_router(uploads_router)
    app.include_router(prospecting_router)

    # check_dir=False: the directory is created in the lifespan, after the mount.
    app.mount(
        "/uploads",
        StaticFiles(directory=settings.uploads_dir, check_dir=False),
        name="uploads",
    )

    return app


# --- Module Notes -----------------------------------------------------------
# App composition stays here; business logic stays in routers/services/fax_workflow.

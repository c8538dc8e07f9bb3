"""
referral_genie.api.deps

FastAPI dependency wiring for the API layer.

Responsibilities:
- Provide dependency functions for settings, DB sessions and the DB retry policy.
- Hand out the shared integration clients created in the app lifespan.
- Encapsulate app.state access patterns.
"""

from __future__ import annotations

from collections.abc import AsyncIterator

import httpx
from fastapi import Depends, HTTPException, Request
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from starlette.status import HTTP_503_SERVICE_UNAVAILABLE

from referral_genie.db.retry import DbRetryPolicy
from referral_genie.integrations.google_places import GooglePlacesClient
from referral_genie.integrations.humble_fax import HumbleFaxClient
from referral_genie.services.documents import DocumentStore
from referral_genie.services.fax_status import FaxStatusScheduler
from referral_genie.settings import Settings


def settings_dep(request: Request) -> Settings:
    # The settings the app was created with, not a fresh read of the environment.
    return request.app.state.settings  # type: ignore[attr-defined]


def sessionmaker_from_app(request: Request) -> async_sessionmaker[AsyncSession]:
    # The sessionmaker is created in the lifespan of `referral_genie.api.app.create_app`.
    return request.app.state.sessionmaker  # type: ignore[attr-defined]


async def db_session(
    session_factory: async_sessionmaker[AsyncSession] = Depends(sessionmaker_from_app),
) -> AsyncIterator[AsyncSession]:
    # Request-scoped DB session. Routers and services commit explicitly.
    async with session_factory() as session:
        yield session


def db_retry(settings: Settings = Depends(settings_dep)) -> DbRetryPolicy:
    return DbRetryPolicy.from_settings(settings)


def fax_client(request: Request) -> HumbleFaxClient:
    return request.app.state.fax_client  # type: ignore[attr-defined]


def fax_http(request: Request) -> httpx.AsyncClient:
    return request.app.state.fax_http  # type: ignore[attr-defined]


def fax_status_scheduler(request: Request) -> FaxStatusScheduler:
    return request.app.state.fax_status_scheduler  # type: ignore[attr-defined]


def document_store(request: Request) -> DocumentStore:
    return request.app.state.documents  # type: ignore[attr-defined]


def places_client(
    request: Request, settings: Settings = Depends(settings_dep)
) -> GooglePlacesClient:
    if not settings.google_places_api_key:
        raise HTTPException(
            status_code=HTTP_503_SERVICE_UNAVAILABLE,
            detail="Google API key is not configured",
        )
    return GooglePlacesClient(settings=settings, http=request.app.state.places_http)

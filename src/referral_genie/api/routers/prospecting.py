"""
referral_genie.api.routers.prospecting

Lead search over Google Places.

Responsibilities:
- Validate search input and map upstream failures to HTTP errors (400 geocoding, 502 search).
- Shape results + pagination (+ search metadata on the first page).
"""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field
from starlette.status import HTTP_400_BAD_REQUEST, HTTP_502_BAD_GATEWAY

from referral_genie.api.deps import places_client, settings_dep
from referral_genie.auth.deps import get_principal
from referral_genie.integrations.google_places import (
    GeocodingError,
    GooglePlacesClient,
    PlacesApiError,
)
from referral_genie.services.prospecting import ProspectingService
from referral_genie.settings import Settings

router = APIRouter(
    prefix="/v1/prospecting",
    tags=["prospecting"],
    dependencies=[Depends(get_principal)],
)


class SearchRequest(BaseModel):
    location: str | None = None
    business_type: str | None = None
    min_rating: float = Field(default=0, ge=0, le=5)
    radius: int | None = Field(default=None, ge=1, le=50_000)
    page_token: str | None = None


@router.post("/search")
async def search_businesses(
    body: SearchRequest,
    settings: Settings = Depends(settings_dep),
    client: GooglePlacesClient = Depends(places_client),
) -> dict[str, Any]:
    svc = ProspectingService(
        client=client, page_token_delay_seconds=settings.places_page_token_delay_seconds
    )
    try:
        if body.page_token:
            page = await svc.next_page(page_token=body.page_token, min_rating=body.min_rating)
        else:
            if not body.location or not body.business_type:
                raise HTTPException(
                    status_code=HTTP_400_BAD_REQUEST,
                    detail="Location and business type are required",
                )
            page = await svc.search(
                location=body.location,
                business_type=body.business_type,
                min_rating=body.min_rating,
                radius=body.radius or settings.prospecting_default_radius_m,
            )
    except GeocodingError as e:
        raise HTTPException(status_code=HTTP_400_BAD_REQUEST, detail=e.message) from e
    except PlacesApiError as e:
        raise HTTPException(status_code=HTTP_502_BAD_GATEWAY, detail=e.message) from e

    response: dict[str, Any] = {
        "results": page.results,
        "pagination": {"next_page_token": page.next_page_token},
    }
    if page.metadata is not None:
        response["search_metadata"] = page.metadata
    return response

"""
referral_genie.services.prospecting

Business prospecting on top of Google Geocoding + Places.

Responsibilities:
- Geocode a free-text location and run a keyword nearby search around it.
- Page through results with Google's `next_page_token`.
- Filter by minimum rating and enrich each hit with place details (concurrently).
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import Any

from referral_genie.integrations.google_places import (
    GeocodingError,
    GooglePlacesClient,
    PlacesApiError,
)
from referral_genie.observability.logging import get_logger

log = get_logger(__name__)

_SEARCH_OK = ("OK", "ZERO_RESULTS")


@dataclass(frozen=True, slots=True)
class SearchPage:
    results: list[dict[str, Any]]
    next_page_token: str | None
    metadata: dict[str, Any] | None = None


def is_state_search(address_components: list[dict[str, Any]]) -> bool:
    types = [set(c.get("types") or []) for c in address_components]
    has_state = any("administrative_area_level_1" in t for t in types)
    has_local = any(t & {"locality", "postal_code"} for t in types)
    return has_state and not has_local


def meets_rating(place: dict[str, Any], min_rating: float) -> bool:
    # Unrated places never qualify, matching how the search UI has always behaved.
    rating = place.get("rating")
    return rating is not None and rating >= min_rating


class ProspectingService:
    def __init__(self, *, client: GooglePlacesClient, page_token_delay_seconds: float) -> None:
        self._client = client
        self._page_token_delay = page_token_delay_seconds

    async def search(
        self, *, location: str, business_type: str, min_rating: float, radius: int
    ) -> SearchPage:
        """
        Raises `GeocodingError` for unresolvable locations and `PlacesApiError` for search failures.
        """

        geo = await self._client.geocode(location)
        first = (geo.get("results") or [{}])[0]
        coords = (first.get("geometry") or {}).get("location")
        if geo.get("status") != "OK" or not coords:
            log.warning("geocode_failed", location=location, status=geo.get("status"))
            raise GeocodingError("Failed to geocode location", status=geo.get("status"))

        lat, lng = coords["lat"], coords["lng"]
        state_search = is_state_search(first.get("address_components") or [])
        log.info(
            "prospecting_search",
            location=location,
            business_type=business_type,
            radius=radius,
            is_state_search=state_search,
        )

        places = await self._client.nearby_search(
            lat=lat, lng=lng, radius=radius, keyword=business_type
        )
        self._check_search_status(places, "Failed to search businesses")
        results = await self._enrich(places.get("results") or [], min_rating)
        return SearchPage(
            results=results,
            next_page_token=places.get("next_page_token"),
            metadata={
                "location": first.get("formatted_address"),
                "coordinates": {"lat": lat, "lng": lng},
                "radius": radius,
                "is_state_search": state_search,
            },
        )

    async def next_page(self, *, page_token: str, min_rating: float) -> SearchPage:
        # A fresh next_page_token is rejected by Google for a short while.
        if self._page_token_delay > 0:
            await asyncio.sleep(self._page_token_delay)
        places = await self._client.nearby_search_page(page_token)
        self._check_search_status(places, "Failed to load more results")
        results = await self._enrich(places.get("results") or [], min_rating)
        return SearchPage(results=results, next_page_token=places.get("next_page_token"))

    @staticmethod
    def _check_search_status(places: dict[str, Any], message: str) -> None:
        status = places.get("status")
        if status not in _SEARCH_OK:
            log.warning("places_search_failed", status=status)
            raise PlacesApiError(f"{message}: {status}", status=status)

    async def _enrich(self, places: list[dict[str, Any]], min_rating: float) -> list[dict[str, Any]]:
        wanted = [p for p in places if meets_rating(p, min_rating)]
        details = await asyncio.gather(*(self._details(p) for p in wanted))
        found = [d for d in details if d is not None]
        log.info("prospecting_results", candidates=len(places), returned=len(found))
        return found

    async def _details(self, place: dict[str, Any]) -> dict[str, Any] | None:
        place_id = place.get("place_id")
        try:
            body = await self._client.place_details(place_id)
        except PlacesApiError as e:
            log.warning("place_details_failed", place_id=place_id, error=e.message)
            return None
        if body.get("status") != "OK":
            log.warning("place_details_failed", place_id=place_id, status=body.get("status"))
            return None

        d = body.get("result") or {}
        return {
            "id": place_id,
            "name": d.get("name"),
            "address": d.get("formatted_address"),
            "location": (d.get("geometry") or {}).get("location"),
            "rating": d.get("rating"),
            "user_ratings_total": d.get("user_ratings_total"),
            "phone": d.get("formatted_phone_number"),
            "website": d.get("website"),
            "types": d.get("types") or [],
        }

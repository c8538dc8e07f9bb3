"""
referral_genie.integrations.google_places

HTTP client boundary for the Google Maps Geocoding and Places (legacy JSON) APIs.

Responsibilities:
- Attach the API key to every call.
- Return the decoded JSON documents; status interpretation stays with the caller.
"""

from __future__ import annotations

from typing import Any

import httpx

from referral_genie.settings import Settings

PLACE_DETAIL_FIELDS = (
    "name",
    "formatted_address",
    "geometry",
    "rating",
    "user_ratings_total",
    "formatted_phone_number",
    "website",
    "types",
)


class PlacesApiError(Exception):
    def __init__(self, message: str, *, status: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.status = status


class GeocodingError(PlacesApiError):
    pass


class GooglePlacesClient:
    def __init__(self, *, settings: Settings, http: httpx.AsyncClient) -> None:
        if not settings.google_places_api_key:
            raise PlacesApiError("Google API key is not configured")
        self._key = settings.google_places_api_key
        self._base = settings.google_maps_api_base_url.rstrip("/")
        self._http = http

    async def geocode(self, address: str) -> dict[str, Any]:
        return await self._get("/geocode/json", {"address": address})

    async def nearby_search(
        self, *, lat: float, lng: float, radius: int, keyword: str
    ) -> dict[str, Any]:
        return await self._get(
            "/place/nearbysearch/json",
            {"location": f"{lat},{lng}", "radius": radius, "keyword": keyword},
        )

    async def nearby_search_page(self, page_token: str) -> dict[str, Any]:
        return await self._get("/place/nearbysearch/json", {"pagetoken": page_token})

    async def place_details(self, place_id: str) -> dict[str, Any]:
        return await self._get(
            "/place/details/json",
            {"place_id": place_id, "fields": ",".join(PLACE_DETAIL_FIELDS)},
        )

    async def _get(self, path: str, params: dict[str, Any]) -> dict[str, Any]:
        try:
            r = await self._http.get(f"{self._base}{path}", params={**params, "key": self._key})
            r.raise_for_status()
            return r.json()
        except httpx.HTTPError as e:
            raise PlacesApiError(f"Google Maps request failed: {e}") from e
        except ValueError as e:
            raise PlacesApiError("Google Maps returned a non-JSON response") from e

"""
tests.conftest

Shared fixtures: an app wired to a temp SQLite DB and fake HumbleFax / Google APIs.

Responsibilities:
- Run the FastAPI lifespan around each test (httpx's ASGITransport does not).
- Fake external HTTP APIs in-process with `httpx.MockTransport`.
- Provide an authenticated client.
"""

from __future__ import annotations

import json
from collections.abc import AsyncIterator
from pathlib import Path
from typing import Any

import httpx
import pytest
import pytest_asyncio
from fastapi import FastAPI

from referral_genie.api.app import create_app
from referral_genie.settings import Settings

PDF_BYTES = b"%PDF-1.4\n% test document\n"
REMOTE_DOCUMENT_URL = "https://files.example.com/docs/brochure.pdf"


class FakeHumbleFax:
    """
    Minimal HumbleFax: tmpFax -> attachment -> send, plus sentFax status and account lookups.
    Also serves `REMOTE_DOCUMENT_URL` since document downloads share the fax HTTP client.
    """

    def __init__(self) -> None:
        self.requests: list[httpx.Request] = []
        self.tmp_fax_params: list[dict[str, Any]] = []
        self.reject_numbers: set[str] = set()
        self.missing_attachment_endpoint = False
        self.sent_status = "delivered"
        self.sent_fax_missing = False
        self.account_error = False
        self._seq = 0

    def calls(self, method: str, prefix: str) -> list[httpx.Request]:
        return [r for r in self.requests if r.method == method and r.url.path.startswith(prefix)]

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path

        if request.url.host == "files.example.com":
            if str(request.url) == REMOTE_DOCUMENT_URL:
                return httpx.Response(200, content=PDF_BYTES)
            return httpx.Response(404)

        if request.method == "POST" and path == "/tmpFax":
            params = json.loads(request.content)
            self.tmp_fax_params.append(params)
            if params["recipients"][0] in self.reject_numbers:
                return httpx.Response(400, json={"error": "Invalid recipient number"})
            self._seq += 1
            return httpx.Response(200, json={"data": {"tmpFax": {"id": f"tmp-{self._seq}"}}})

        if request.method == "POST" and path.startswith("/attachment/"):
            if self.missing_attachment_endpoint:
                return httpx.Response(404, json={"error": "Not found"})
            return httpx.Response(200, json={"result": "success"})

        if request.method == "POST" and path.startswith("/tmpFax/") and path.endswith("/send"):
            tmp_id = path.split("/")[2]
            return httpx.Response(
                200, json={"data": {"sentFax": {"id": f"sent-{tmp_id}", "status": "in progress"}}}
            )

        if request.method == "GET" and path.startswith("/sentFax/"):
            if self.sent_fax_missing:
                return httpx.Response(404, json={"error": "Sent fax not found"})
            return httpx.Response(200, json={"data": {"sentFax": {"status": self.sent_status}}})

        if request.method == "GET" and path == "/account":
            if self.account_error:
                return httpx.Response(401, json={"error": "Invalid credentials"})
            return httpx.Response(200, json={"data": {"account": {"name": "Test Clinic"}}})

        return httpx.Response(404, json={"error": f"Unhandled {request.method} {path}"})


class FakeGoogleMaps:
    """
    Geocoding + Places nearby search + place details with canned data.
    """

    def __init__(self) -> None:
        self.requests: list[httpx.Request] = []
        self.geocode_status = "OK"
        self.search_status = "OK"
        self.state_level = False
        self.places = [
            {"place_id": "p1", "name": "Alpha Physio", "rating": 4.8},
            {"place_id": "p2", "name": "Beta Rehab", "rating": 3.1},
            {"place_id": "p3", "name": "Gamma Therapy", "rating": 4.2},
            {"place_id": "p4", "name": "Unrated Clinic"},
        ]
        self.details_fail = {"p3"}

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path
        params = request.url.params

        if path.endswith("/geocode/json"):
            if self.geocode_status != "OK":
                return httpx.Response(200, json={"status": self.geocode_status, "results": []})
            components = [{"long_name": "Pennsylvania", "types": ["administrative_area_level_1"]}]
            if not self.state_level:
                components.append({"long_name": "Philadelphia", "types": ["locality"]})
            return httpx.Response(
                200,
                json={
                    "status": "OK",
                    "results": [
                        {
                            "formatted_address": "Philadelphia, PA, USA",
                            "geometry": {"location": {"lat": 39.95, "lng": -75.16}},
                            "address_components": components,
                        }
                    ],
                },
            )

        if path.endswith("/place/nearbysearch/json"):
            if self.search_status != "OK":
                return httpx.Response(200, json={"status": self.search_status})
            if params.get("pagetoken"):
                return httpx.Response(
                    200,
                    json={"status": "OK", "results": [{"place_id": "p9", "rating": 5.0}]},
                )
            return httpx.Response(
                200,
                json={"status": "OK", "results": self.places, "next_page_token": "token-2"},
            )

        if path.endswith("/place/details/json"):
            place_id = params["place_id"]
            if place_id in self.details_fail:
                return httpx.Response(200, json={"status": "NOT_FOUND"})
            return httpx.Response(
                200,
                json={
                    "status": "OK",
                    "result": {
                        "name": f"Place {place_id}",
                        "formatted_address": f"{place_id} Main St",
                        "geometry": {"location": {"lat": 40.0, "lng": -75.0}},
                        "rating": 4.5,
                        "user_ratings_total": 12,
                        "formatted_phone_number": "(215) 555-0100",
                        "website": f"https://{place_id}.example.com",
                        "types": ["physiotherapist"],
                    },
                },
            )

        return httpx.Response(404)


def make_settings(tmp_path: Path, **overrides: Any) -> Settings:
    values: dict[str, Any] = {
        "env": "test",
        "log_level": "WARNING",
        "database_url": f"sqlite+aiosqlite:///{tmp_path / 'test.db'}",
        "uploads_dir": tmp_path / "uploads",
        "jwt_secret": "test-secret",
        "humble_fax_api_key": "fax-key",
        "humble_fax_api_secret": "fax-secret",
        "fax_status_check_delay_seconds": None,
        "google_places_api_key": "google-key",
        "places_page_token_delay_seconds": 0,
    }
    values.update(overrides)
    return Settings(**values)


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    return make_settings(tmp_path)


@pytest.fixture
def fake_fax() -> FakeHumbleFax:
    return FakeHumbleFax()


@pytest.fixture
def fake_maps() -> FakeGoogleMaps:
    return FakeGoogleMaps()


@pytest_asyncio.fixture
async def app(
    settings: Settings, fake_fax: FakeHumbleFax, fake_maps: FakeGoogleMaps
) -> AsyncIterator[FastAPI]:
    app = create_app(
        settings=settings,
        fax_transport=httpx.MockTransport(fake_fax.handler),
        places_transport=httpx.MockTransport(fake_maps.handler),
    )
    async with app.router.lifespan_context(app):
        yield app


@pytest_asyncio.fixture
async def client(app: FastAPI) -> AsyncIterator[httpx.AsyncClient]:
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as http:
        yield http


@pytest_asyncio.fixture
async def auth_client(client: httpx.AsyncClient, settings: Settings) -> httpx.AsyncClient:
    r = await client.post(
        "/v1/auth/login",
        json={"username": settings.auth_username, "password": settings.auth_password},
    )
    assert r.status_code == 200, r.text
    client.headers["Authorization"] = f"Bearer {r.json()['access_token']}"
    return client


async def create_source(client: httpx.AsyncClient, **fields: Any) -> dict[str, Any]:
    r = await client.post("/v1/referral-sources", json={"name": "Source", **fields})
    assert r.status_code == 201, r.text
    return r.json()


async def create_campaign(client: httpx.AsyncClient, **fields: Any) -> dict[str, Any]:
    r = await client.post("/v1/campaigns", json={"name": "Campaign", "type": "FAX", **fields})
    assert r.status_code == 201, r.text
    return r.json()


# --- Module Notes -----------------------------------------------------------
# Background fax status checks are disabled by default (`fax_status_check_delay_seconds=None`);
# tests that exercise them build their own app with a short delay.

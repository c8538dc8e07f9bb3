from __future__ import annotations

import uuid

import httpx
import pytest
from fastapi import FastAPI
from sqlalchemy import text

from conftest import create_campaign, create_source


@pytest.mark.asyncio
async def test_create_with_recipients_and_defaults(auth_client: httpx.AsyncClient) -> None:
    a = await create_source(auth_client, name="A")
    b = await create_source(auth_client, name="B")

    campaign = await create_campaign(
        auth_client, name="Spring outreach", referral_source_ids=[a["id"], b["id"]]
    )
    assert campaign["status"] == "DRAFT"
    assert campaign["type"] == "FAX"
    assert campaign["start_date"]
    assert campaign["include_cover_sheet"] is False
    assert {r["referral_source_id"] for r in campaign["recipients"]} == {a["id"], b["id"]}
    assert {r["status"] for r in campaign["recipients"]} == {"PENDING"}
    assert {r["referral_source"]["name"] for r in campaign["recipients"]} == {"A", "B"}


@pytest.mark.asyncio
async def test_create_validates_input(auth_client: httpx.AsyncClient) -> None:
    r = await auth_client.post("/v1/campaigns", json={"type": "FAX"})
    assert r.status_code == 422
    r = await auth_client.post("/v1/campaigns", json={"name": "No type"})
    assert r.status_code == 422
    r = await auth_client.post(
        "/v1/campaigns",
        json={"name": "Ghosts", "type": "FAX", "referral_source_ids": [str(uuid.uuid4())]},
    )
    assert r.status_code == 400


@pytest.mark.asyncio
async def test_list_with_recipient_counts_and_stats(auth_client: httpx.AsyncClient) -> None:
    source = await create_source(auth_client)
    first = await create_campaign(auth_client, name="First", referral_source_ids=[source["id"]])
    second = await create_campaign(auth_client, name="Second", type="EMAIL", status="ACTIVE")

    r = await auth_client.get("/v1/campaigns")
    assert [(c["id"], c["recipient_count"]) for c in r.json()] == [
        (second["id"], 0),
        (first["id"], 1),
    ]

    r = await auth_client.get("/v1/campaigns/stats")
    assert r.status_code == 200
    assert r.json() == {
        "total": 2,
        "by_status": {"DRAFT": 1, "ACTIVE": 1, "COMPLETED": 0, "CANCELLED": 0},
    }


@pytest.mark.asyncio
async def test_update_syncs_recipients(auth_client: httpx.AsyncClient) -> None:
    a = await create_source(auth_client, name="A")
    b = await create_source(auth_client, name="B")
    c = await create_source(auth_client, name="C")
    campaign = await create_campaign(auth_client, referral_source_ids=[a["id"], b["id"]])

    r = await auth_client.put(
        f"/v1/campaigns/{campaign['id']}",
        json={"description": "updated", "referral_source_ids": [b["id"], c["id"]]},
    )
    assert r.status_code == 200
    body = r.json()
    assert body["description"] == "updated"
    assert body["name"] == campaign["name"]
    assert {r["referral_source_id"] for r in body["recipients"]} == {b["id"], c["id"]}

    # Omitting referral_source_ids leaves the recipients alone.
    r = await auth_client.put(f"/v1/campaigns/{campaign['id']}", json={"status": "COMPLETED"})
    assert r.json()["status"] == "COMPLETED"
    assert len(r.json()["recipients"]) == 2


@pytest.mark.asyncio
async def test_cover_sheet_requires_fields_when_included(auth_client: httpx.AsyncClient) -> None:
    campaign = await create_campaign(auth_client)
    url = f"/v1/campaigns/{campaign['id']}/cover-sheet"

    r = await auth_client.patch(
        url, json={"include_cover_sheet": True, "cover_sheet_subject": "Hi", "cover_sheet_message": "m"}
    )
    assert r.status_code == 400
    assert r.json()["detail"] == "From Name is required for cover sheet"

    r = await auth_client.patch(
        url, json={"include_cover_sheet": True, "cover_sheet_from_name": "Dr. Lee", "cover_sheet_message": "m"}
    )
    assert r.json()["detail"] == "Subject is required for cover sheet"

    r = await auth_client.patch(
        url,
        json={
            "include_cover_sheet": True,
            "cover_sheet_from_name": "Dr. Lee",
            "cover_sheet_from_number": "(215) 555-0199",
            "cover_sheet_company_info": "Lee Physical Therapy",
            "cover_sheet_subject": "New services",
            "cover_sheet_message": "We now offer aquatic therapy.",
        },
    )
    assert r.status_code == 200
    assert r.json()["include_cover_sheet"] is True
    assert r.json()["cover_sheet_subject"] == "New services"

    r = await auth_client.patch(url, json={"include_cover_sheet": False})
    assert r.status_code == 200
    assert r.json()["cover_sheet_from_name"] is None


@pytest.mark.asyncio
async def test_delete_campaign(auth_client: httpx.AsyncClient) -> None:
    source = await create_source(auth_client)
    campaign = await create_campaign(auth_client, referral_source_ids=[source["id"]])

    r = await auth_client.delete(f"/v1/campaigns/{campaign['id']}")
    assert r.status_code == 200
    assert (await auth_client.get(f"/v1/campaigns/{campaign['id']}")).status_code == 404
    # The referral source itself survives.
    assert (await auth_client.get(f"/v1/referral-sources/{source['id']}")).status_code == 200
    assert (await auth_client.delete(f"/v1/campaigns/{campaign['id']}")).status_code == 404


@pytest.mark.asyncio
async def test_enum_columns_store_upper_case_values(
    app: FastAPI, auth_client: httpx.AsyncClient
) -> None:
    source = await create_source(auth_client, name="A")
    campaign = await create_campaign(
        auth_client, type="DIRECT_MAIL", referral_source_ids=[source["id"]]
    )
    r = await auth_client.post(
        "/v1/interactions",
        json={"referral_source_id": source["id"], "type": "MEETING", "date": "2024-03-01T10:00:00Z"},
    )
    assert r.status_code == 201, r.text

    async with app.state.sessionmaker() as session:
        stored = (await session.execute(text("SELECT status, type FROM campaigns"))).one()
        recipient = (await session.execute(text("SELECT status FROM campaign_recipients"))).one()
        interaction = (await session.execute(text("SELECT type FROM interactions"))).one()
    assert tuple(stored) == ("DRAFT", "DIRECT_MAIL")
    assert recipient[0] == "PENDING"
    assert interaction[0] == "MEETING"

    r = await auth_client.get(f"/v1/campaigns/{campaign['id']}")
    assert r.json()["type"] == "DIRECT_MAIL"

from __future__ import annotations

from pathlib import Path

import httpx
import pytest

from conftest import PDF_BYTES, FakeHumbleFax, create_campaign, create_source, make_settings
from referral_genie.api.app import create_app
from referral_genie.services.fax_status import status_from_poll, status_from_webhook
from referral_genie.settings import Settings


async def _sent_campaign(client: httpx.AsyncClient, settings: Settings) -> tuple[dict, dict, str]:
    (settings.uploads_dir / "doc.pdf").write_bytes(PDF_BYTES)
    source = await create_source(client, name="A", fax_number="215-555-0100")
    campaign = await create_campaign(
        client, document_url="/uploads/doc.pdf", referral_source_ids=[source["id"]]
    )
    r = await client.post(f"/v1/campaigns/{campaign['id']}/send")
    fax_id = r.json()["results"]["details"]["successful"][0]["fax_id"]
    return campaign, source, fax_id


async def _recipient(client: httpx.AsyncClient, campaign_id: str) -> dict:
    r = await client.get(f"/v1/campaigns/{campaign_id}")
    return r.json()["recipients"][0]


@pytest.mark.parametrize(
    "provider_status,expected",
    [
        ("DELIVERED", "DELIVERED"),
        ("completed", "DELIVERED"),
        ("FAILED", "FAILED"),
        ("error", "FAILED"),
        ("QUEUED", "PENDING"),
        ("processing", "PENDING"),
    ],
)
def test_webhook_status_mapping(provider_status: str, expected: str) -> None:
    assert status_from_webhook(provider_status).value == expected


def test_poll_status_mapping() -> None:
    assert status_from_poll("delivered").value == "DELIVERED"
    assert status_from_poll("failed").value == "FAILED"
    assert status_from_poll("in progress") is None


@pytest.mark.asyncio
async def test_webhook_updates_recipient_by_fax_id(
    auth_client: httpx.AsyncClient, settings: Settings
) -> None:
    campaign, _, fax_id = await _sent_campaign(auth_client, settings)

    r = await auth_client.post("/v1/fax/webhook", json={"faxId": fax_id, "status": "DELIVERED"})
    assert r.status_code == 200
    assert r.json() == {"success": True}

    recipient = await _recipient(auth_client, campaign["id"])
    assert recipient["status"] == "DELIVERED"
    assert recipient["response_at"] is not None
    assert recipient["response"]["fax_id"] == fax_id
    assert recipient["response"]["status"] == "DELIVERED"
    assert recipient["response"]["error"] is None


@pytest.mark.asyncio
async def test_webhook_matches_fax_id_despite_malformed_metadata(
    auth_client: httpx.AsyncClient, settings: Settings
) -> None:
    campaign, _, fax_id = await _sent_campaign(auth_client, settings)

    r = await auth_client.post(
        "/v1/fax/webhook",
        json={
            "faxId": fax_id,
            "status": "completed",
            "metadata": {"campaignId": "cmp_42", "referralSourceId": "not-a-uuid"},
        },
    )
    assert r.status_code == 200, r.text
    assert (await _recipient(auth_client, campaign["id"]))["status"] == "DELIVERED"

    # Unparseable ids only rule out the fallback lookup.
    r = await auth_client.post(
        "/v1/fax/webhook",
        json={"faxId": "unknown", "status": "FAILED", "metadata": {"campaignId": "cmp_42"}},
    )
    assert r.status_code == 404

@pytest.mark.asyncio
async def test_webhook_falls_back_to_metadata_ids(
    auth_client: httpx.AsyncClient, settings: Settings
) -> None:
    source = await create_source(auth_client, name="Pending")
    campaign = await create_campaign(auth_client, referral_source_ids=[source["id"]])

    r = await auth_client.post(
        "/v1/fax/webhook",
        json={
            "faxId": "provider-123",
            "status": "FAILED",
            "error": "Line busy",
            "metadata": {"campaignId": campaign["id"], "referralSourceId": source["id"]},
        },
    )
    assert r.status_code == 200

    recipient = await _recipient(auth_client, campaign["id"])
    assert recipient["status"] == "FAILED"
    assert recipient["fax_id"] == "provider-123"
    assert recipient["response"]["error"] == "Line busy"


@pytest.mark.asyncio
async def test_non_final_webhook_leaves_response_at_unset(
    auth_client: httpx.AsyncClient, settings: Settings
) -> None:
    campaign, _, fax_id = await _sent_campaign(auth_client, settings)

    await auth_client.post("/v1/fax/webhook", json={"faxId": fax_id, "status": "QUEUED"})
    recipient = await _recipient(auth_client, campaign["id"])
    assert recipient["status"] == "PENDING"
    assert recipient["response_at"] is None


@pytest.mark.asyncio
async def test_webhook_rejects_incomplete_or_unknown(client: httpx.AsyncClient) -> None:
    r = await client.post("/v1/fax/webhook", json={"status": "DELIVERED"})
    assert r.status_code == 400
    r = await client.post("/v1/fax/webhook", json={"faxId": "x"})
    assert r.status_code == 400
    r = await client.post("/v1/fax/webhook", json={"faxId": "nobody", "status": "DELIVERED"})
    assert r.status_code == 404


@pytest.mark.asyncio
async def test_webhook_secret_is_enforced_when_configured(tmp_path: Path) -> None:
    settings = make_settings(tmp_path, fax_webhook_secret="s3cret")
    app = create_app(settings=settings, fax_transport=httpx.MockTransport(FakeHumbleFax().handler))
    async with app.router.lifespan_context(app):
        transport = httpx.ASGITransport(app=app)
        async with httpx.AsyncClient(transport=transport, base_url="http://test") as client:
            body = {"faxId": "nobody", "status": "DELIVERED"}
            r = await client.post("/v1/fax/webhook", json=body)
            assert r.status_code == 401
            r = await client.post(
                "/v1/fax/webhook", json=body, headers={"x-webhook-secret": "wrong"}
            )
            assert r.status_code == 401
            r = await client.post(
                "/v1/fax/webhook", json=body, headers={"x-webhook-secret": "s3cret"}
            )
            assert r.status_code == 404


@pytest.mark.asyncio
async def test_fax_connection(auth_client: httpx.AsyncClient, fake_fax: FakeHumbleFax) -> None:
    r = await auth_client.get("/v1/fax/connection")
    assert r.status_code == 200
    assert r.json()["success"] is True
    assert r.json()["data"]["data"]["account"]["name"] == "Test Clinic"

    fake_fax.account_error = True
    r = await auth_client.get("/v1/fax/connection")
    assert r.json() == {"success": False, "error": "Invalid credentials", "status_code": 401}

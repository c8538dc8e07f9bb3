"""
referral_genie.api.routers.fax

HumbleFax-facing endpoints.

Responsibilities:
- Receive delivery-status webhooks (public, optionally guarded by a shared secret).
- Check connectivity/credentials against the HumbleFax account endpoint.
"""

from __future__ import annotations

import hmac
from typing import Any

from fastapi import APIRouter, Depends, Header, HTTPException
from pydantic import BaseModel, ConfigDict, Field
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.status import HTTP_400_BAD_REQUEST, HTTP_401_UNAUTHORIZED, HTTP_404_NOT_FOUND

from referral_genie.api.deps import db_session, fax_client, settings_dep
from referral_genie.auth.deps import get_principal
from referral_genie.integrations.humble_fax import FaxApiError, HumbleFaxClient
from referral_genie.observability.logging import get_logger
from referral_genie.services.fax_status import FaxStatusService
from referral_genie.settings import Settings

router = APIRouter(prefix="/v1/fax", tags=["fax"])

log = get_logger(__name__)


class WebhookMetadata(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    campaign_id: str | None = Field(default=None, alias="campaignId")
    referral_source_id: str | None = Field(default=None, alias="referralSourceId")


class FaxWebhook(BaseModel):
    # HumbleFax posts camelCase keys.
    model_config = ConfigDict(populate_by_name=True)

    fax_id: str | None = Field(default=None, alias="faxId")
    status: str | None = None
    metadata: WebhookMetadata = Field(default_factory=WebhookMetadata)
    error: Any = None


def _check_webhook_secret(settings: Settings, provided: str | None) -> None:
    expected = settings.fax_webhook_secret
    if not expected:
        return
    if provided is None or not hmac.compare_digest(provided.encode(), expected.encode()):
        raise HTTPException(status_code=HTTP_401_UNAUTHORIZED, detail="Invalid webhook secret")


@router.post("/webhook")
async def fax_webhook(
    body: FaxWebhook,
    x_webhook_secret: str | None = Header(default=None),
    session: AsyncSession = Depends(db_session),
    settings: Settings = Depends(settings_dep),
    client: HumbleFaxClient = Depends(fax_client),
) -> dict[str, bool]:
    _check_webhook_secret(settings, x_webhook_secret)
    if not body.fax_id or not body.status:
        log.warning("fax_webhook_rejected", reason="missing_fields")
        raise HTTPException(status_code=HTTP_400_BAD_REQUEST, detail="Missing required fields")

    recipient = await FaxStatusService(session=session, client=client).apply_webhook(
        fax_id=body.fax_id,
        provider_status=body.status,
        campaign_id=body.metadata.campaign_id,
        referral_source_id=body.metadata.referral_source_id,
        error=body.error,
    )
    if recipient is None:
        log.warning("fax_webhook_unmatched", fax_id=body.fax_id)
        raise HTTPException(status_code=HTTP_404_NOT_FOUND, detail="Campaign recipient not found")
    return {"success": True}


@router.get("/connection", dependencies=[Depends(get_principal)])
async def fax_connection(client: HumbleFaxClient = Depends(fax_client)) -> dict[str, Any]:
    try:
        account = await client.account()
    except FaxApiError as e:
        return {"success": False, "error": e.message, "status_code": e.status_code}
    return {"success": True, "data": account}

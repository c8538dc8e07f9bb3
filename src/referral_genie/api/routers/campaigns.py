"""
referral_genie.api.routers.campaigns

Campaign endpoints.

Responsibilities:
- CRUD campaigns and keep their recipient list in sync with the requested referral sources.
- Dashboard stats and cover-sheet settings.
- Fax a campaign's document to its recipients and refresh their delivery status.
"""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import Any

import httpx
from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, ConfigDict, Field
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.status import HTTP_201_CREATED, HTTP_400_BAD_REQUEST, HTTP_404_NOT_FOUND

from referral_genie.api.deps import (
    db_retry,
    db_session,
    document_store,
    fax_client,
    fax_http,
    fax_status_scheduler,
    settings_dep,
)
from referral_genie.api.schemas import UtcDatetime
from referral_genie.auth.deps import get_principal
from referral_genie.db.models import Campaign, CampaignStatus, CampaignType, RecipientStatus
from referral_genie.db.repositories.campaigns import CampaignRepo
from referral_genie.db.repositories.referral_sources import ReferralSourceRepo
from referral_genie.db.retry import DbRetryPolicy
from referral_genie.integrations.humble_fax import HumbleFaxClient
from referral_genie.observability.logging import get_logger
from referral_genie.services.campaign_sender import CampaignSendService
from referral_genie.services.documents import DocumentStore, DocumentUnavailableError
from referral_genie.services.fax_status import FaxStatusScheduler, FaxStatusService
from referral_genie.settings import Settings

router = APIRouter(
    prefix="/v1/campaigns",
    tags=["campaigns"],
    dependencies=[Depends(get_principal)],
)

log = get_logger(__name__)


class CampaignCreate(BaseModel):
    name: str = Field(min_length=1, max_length=256)
    type: CampaignType
    description: str | None = None
    start_date: UtcDatetime | None = None
    end_date: UtcDatetime | None = None
    status: CampaignStatus = CampaignStatus.draft
    content: str | None = None
    document_url: str | None = Field(default=None, max_length=1024)
    document_name: str | None = Field(default=None, max_length=256)
    referral_source_ids: list[uuid.UUID] = Field(default_factory=list)


class CampaignUpdate(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=256)
    type: CampaignType | None = None
    description: str | None = None
    start_date: UtcDatetime | None = None
    end_date: UtcDatetime | None = None
    status: CampaignStatus | None = None
    content: str | None = None
    document_url: str | None = Field(default=None, max_length=1024)
    document_name: str | None = Field(default=None, max_length=256)
    referral_source_ids: list[uuid.UUID] | None = None


class CoverSheetUpdate(BaseModel):
    include_cover_sheet: bool
    cover_sheet_from_name: str | None = Field(default=None, max_length=256)
    cover_sheet_from_number: str | None = Field(default=None, max_length=32)
    cover_sheet_company_info: str | None = None
    cover_sheet_subject: str | None = Field(default=None, max_length=256)
    cover_sheet_message: str | None = None


class CampaignOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    name: str
    description: str | None
    start_date: datetime
    end_date: datetime | None
    status: CampaignStatus
    type: CampaignType
    content: str | None
    document_url: str | None
    document_name: str | None
    include_cover_sheet: bool
    cover_sheet_from_name: str | None
    cover_sheet_from_number: str | None
    cover_sheet_company_info: str | None
    cover_sheet_subject: str | None
    cover_sheet_message: str | None
    created_at: datetime
    updated_at: datetime


class CampaignListItem(CampaignOut):
    recipient_count: int


class RecipientSource(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    name: str
    contact_person: str | None
    fax_number: str | None


class RecipientOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    campaign_id: uuid.UUID
    referral_source_id: uuid.UUID
    status: RecipientStatus
    fax_id: str | None
    sent_at: datetime | None
    response_at: datetime | None
    response: dict[str, Any] | None
    referral_source: RecipientSource


class CampaignDetail(CampaignOut):
    recipients: list[RecipientOut]


class CampaignStats(BaseModel):
    total: int
    by_status: dict[CampaignStatus, int]


COVER_SHEET_REQUIRED = (
    ("cover_sheet_from_name", "From Name is required for cover sheet"),
    ("cover_sheet_subject", "Subject is required for cover sheet"),
    ("cover_sheet_message", "Message is required for cover sheet"),
)


async def _check_referral_sources(session: AsyncSession, ids: list[uuid.UUID]) -> None:
    missing = set(ids) - await ReferralSourceRepo(session).existing_ids(ids)
    if missing:
        raise HTTPException(
            status_code=HTTP_400_BAD_REQUEST,
            detail=f"Unknown referral sources: {', '.join(sorted(str(i) for i in missing))}",
        )


async def _load_detail(repo: CampaignRepo, campaign_id: uuid.UUID) -> Campaign:
    campaign = await repo.get(campaign_id, with_recipients=True, refresh=True)
    if campaign is None:
        raise HTTPException(status_code=HTTP_404_NOT_FOUND, detail="Campaign not found")
    return campaign


@router.get("", response_model=list[CampaignListItem])
async def list_campaigns(
    session: AsyncSession = Depends(db_session),
    retry: DbRetryPolicy = Depends(db_retry),
) -> list[CampaignListItem]:
    rows = await retry.run(CampaignRepo(session).list_with_counts, session=session)
    return [
        CampaignListItem(**CampaignOut.model_validate(c).model_dump(), recipient_count=n)
        for c, n in rows
    ]


@router.get("/stats", response_model=CampaignStats)
async def campaign_stats(
    session: AsyncSession = Depends(db_session),
    retry: DbRetryPolicy = Depends(db_retry),
) -> CampaignStats:
    counts = await retry.run(CampaignRepo(session).status_counts, session=session)
    return CampaignStats(total=sum(counts.values()), by_status=counts)


@router.post("", response_model=CampaignDetail, status_code=HTTP_201_CREATED)
async def create_campaign(
    body: CampaignCreate,
    session: AsyncSession = Depends(db_session),
) -> Any:
    await _check_referral_sources(session, body.referral_source_ids)
    fields = body.model_dump(exclude={"referral_source_ids"}, exclude_none=True)
    repo = CampaignRepo(session)
    campaign = await repo.create(referral_source_ids=body.referral_source_ids, **fields)
    await session.commit()
    log.info(
        "campaign_created",
        campaign_id=str(campaign.id),
        type=campaign.type.value,
        recipients=len(set(body.referral_source_ids)),
    )
    return await _load_detail(repo, campaign.id)


@router.get("/{campaign_id}", response_model=CampaignDetail)
async def get_campaign(
    campaign_id: uuid.UUID,
    session: AsyncSession = Depends(db_session),
    retry: DbRetryPolicy = Depends(db_retry),
) -> Any:
    repo = CampaignRepo(session)
    return await retry.run(lambda: _load_detail(repo, campaign_id), session=session)


@router.put("/{campaign_id}", response_model=CampaignDetail)
async def update_campaign(
    campaign_id: uuid.UUID,
    body: CampaignUpdate,
    session: AsyncSession = Depends(db_session),
) -> Any:
    repo = CampaignRepo(session)
    campaign = await repo.get(campaign_id)
    if campaign is None:
        raise HTTPException(status_code=HTTP_404_NOT_FOUND, detail="Campaign not found")

    changes = body.model_dump(exclude_unset=True, exclude={"referral_source_ids"})
    for required in ("name", "type", "status", "start_date"):
        if required in changes and changes[required] is None:
            raise HTTPException(
                status_code=HTTP_400_BAD_REQUEST, detail=f"{required} cannot be null"
            )
    if body.referral_source_ids is not None:
        await _check_referral_sources(session, body.referral_source_ids)

    await repo.update(campaign, changes)
    if body.referral_source_ids is not None:
        added, removed = await repo.sync_recipients(campaign_id, body.referral_source_ids)
        log.info(
            "campaign_recipients_synced",
            campaign_id=str(campaign_id),
            added=len(added),
            removed=len(removed),
        )
    await session.commit()
    return await _load_detail(repo, campaign_id)


@router.delete("/{campaign_id}")
async def delete_campaign(
    campaign_id: uuid.UUID,
    session: AsyncSession = Depends(db_session),
) -> dict[str, bool]:
    repo = CampaignRepo(session)
    campaign = await repo.get(campaign_id)
    if campaign is None:
        raise HTTPException(status_code=HTTP_404_NOT_FOUND, detail="Campaign not found")
    await repo.delete(campaign)
    await session.commit()
    log.info("campaign_deleted", campaign_id=str(campaign_id))
    return {"success": True}


@router.patch("/{campaign_id}/cover-sheet", response_model=CampaignOut)
async def update_cover_sheet(
    campaign_id: uuid.UUID,
    body: CoverSheetUpdate,
    session: AsyncSession = Depends(db_session),
) -> Any:
    if body.include_cover_sheet:
        for field_name, message in COVER_SHEET_REQUIRED:
            if not getattr(body, field_name):
                raise HTTPException(status_code=HTTP_400_BAD_REQUEST, detail=message)

    repo = CampaignRepo(session)
    campaign = await repo.get(campaign_id)
    if campaign is None:
        raise HTTPException(status_code=HTTP_404_NOT_FOUND, detail="Campaign not found")
    await repo.update(campaign, body.model_dump())
    await session.commit()
    return campaign


@router.post("/{campaign_id}/send")
async def send_campaign(
    campaign_id: uuid.UUID,
    session: AsyncSession = Depends(db_session),
    settings: Settings = Depends(settings_dep),
    client: HumbleFaxClient = Depends(fax_client),
    http: httpx.AsyncClient = Depends(fax_http),
    documents: DocumentStore = Depends(document_store),
    scheduler: FaxStatusScheduler = Depends(fax_status_scheduler),
) -> dict[str, Any]:
    campaign = await CampaignRepo(session).get(campaign_id, with_recipients=True)
    if campaign is None:
        raise HTTPException(status_code=HTTP_404_NOT_FOUND, detail="Campaign not found")
    if not campaign.document_url:
        raise HTTPException(
            status_code=HTTP_400_BAD_REQUEST,
            detail="Campaign does not have a document to send",
        )

    svc = CampaignSendService(
        session=session,
        client=client,
        documents=documents,
        document_http=http,
        sender_number=settings.humble_fax_from_number,
        scheduler=scheduler,
    )
    try:
        document = await svc.load_document(campaign)
    except DocumentUnavailableError as e:
        raise HTTPException(status_code=HTTP_400_BAD_REQUEST, detail=str(e)) from e
    return await svc.send(campaign, document)


@router.post("/{campaign_id}/refresh-status", response_model=list[RecipientOut])
async def refresh_campaign_status(
    campaign_id: uuid.UUID,
    session: AsyncSession = Depends(db_session),
    client: HumbleFaxClient = Depends(fax_client),
) -> Any:
    if await CampaignRepo(session).get(campaign_id) is None:
        raise HTTPException(status_code=HTTP_404_NOT_FOUND, detail="Campaign not found")
    return await FaxStatusService(session=session, client=client).refresh_campaign(campaign_id)

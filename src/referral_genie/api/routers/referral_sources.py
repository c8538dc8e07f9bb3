"""
referral_genie.api.routers.referral_sources

CRUD endpoints for referral sources.
"""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import Any

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, ConfigDict, Field
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.status import HTTP_400_BAD_REQUEST, HTTP_201_CREATED, HTTP_404_NOT_FOUND

from referral_genie.api.deps import db_retry, db_session
from referral_genie.auth.deps import get_principal
from referral_genie.db.repositories.clinic_locations import ClinicLocationRepo
from referral_genie.db.repositories.referral_sources import ReferralSourceRepo
from referral_genie.db.retry import DbRetryPolicy
from referral_genie.observability.logging import get_logger

router = APIRouter(
    prefix="/v1/referral-sources",
    tags=["referral-sources"],
    dependencies=[Depends(get_principal)],
)

log = get_logger(__name__)


class ReferralSourceFields(BaseModel):
    address: str | None = Field(default=None, max_length=512)
    city: str | None = Field(default=None, max_length=128)
    state: str | None = Field(default=None, max_length=64)
    zip_code: str | None = Field(default=None, max_length=16)
    clinic_location_id: uuid.UUID | None = None
    contact_person: str | None = Field(default=None, max_length=256)
    contact_title: str | None = Field(default=None, max_length=128)
    contact_phone: str | None = Field(default=None, max_length=32)
    contact_email: str | None = Field(default=None, max_length=256)
    fax_number: str | None = Field(default=None, max_length=32)
    npi_number: str | None = Field(default=None, max_length=32)
    website: str | None = Field(default=None, max_length=512)
    notes: str | None = None
    rating: int | None = Field(default=None, ge=0, le=5)
    expected_monthly_referrals: int | None = Field(default=None, ge=0)
    number_of_providers: int | None = Field(default=None, ge=0)


class ReferralSourceCreate(ReferralSourceFields):
    name: str = Field(min_length=1, max_length=256)


class ReferralSourceUpdate(ReferralSourceFields):
    name: str | None = Field(default=None, min_length=1, max_length=256)


class ReferralSourceOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    name: str
    address: str | None
    city: str | None
    state: str | None
    zip_code: str | None
    clinic_location_id: uuid.UUID | None
    contact_person: str | None
    contact_title: str | None
    contact_phone: str | None
    contact_email: str | None
    fax_number: str | None
    npi_number: str | None
    website: str | None
    notes: str | None
    rating: int | None
    expected_monthly_referrals: int | None
    number_of_providers: int | None
    created_at: datetime
    updated_at: datetime


async def _check_clinic_location(session: AsyncSession, location_id: uuid.UUID | None) -> None:
    if location_id is None:
        return
    if await ClinicLocationRepo(session).get(location_id) is None:
        raise HTTPException(status_code=HTTP_400_BAD_REQUEST, detail="Clinic location not found")


@router.get("", response_model=list[ReferralSourceOut])
async def list_referral_sources(
    session: AsyncSession = Depends(db_session),
    retry: DbRetryPolicy = Depends(db_retry),
) -> list[Any]:
    return await retry.run(ReferralSourceRepo(session).list_all, session=session)


@router.post("", response_model=ReferralSourceOut, status_code=HTTP_201_CREATED)
async def create_referral_source(
    body: ReferralSourceCreate,
    session: AsyncSession = Depends(db_session),
) -> Any:
    await _check_clinic_location(session, body.clinic_location_id)
    source = await ReferralSourceRepo(session).create(**body.model_dump())
    await session.commit()
    log.info("referral_source_created", referral_source_id=str(source.id))
    return source


@router.get("/{referral_source_id}", response_model=ReferralSourceOut)
async def get_referral_source(
    referral_source_id: uuid.UUID,
    session: AsyncSession = Depends(db_session),
    retry: DbRetryPolicy = Depends(db_retry),
) -> Any:
    source = await retry.run(
        lambda: ReferralSourceRepo(session).get(referral_source_id), session=session
    )
    if source is None:
        raise HTTPException(status_code=HTTP_404_NOT_FOUND, detail="Referral source not found")
    return source


@router.put("/{referral_source_id}", response_model=ReferralSourceOut)
async def update_referral_source(
    referral_source_id: uuid.UUID,
    body: ReferralSourceUpdate,
    session: AsyncSession = Depends(db_session),
) -> Any:
    repo = ReferralSourceRepo(session)
    source = await repo.get(referral_source_id)
    if source is None:
        raise HTTPException(status_code=HTTP_404_NOT_FOUND, detail="Referral source not found")

    changes = body.model_dump(exclude_unset=True)
    if "name" in changes and changes["name"] is None:
        raise HTTPException(status_code=HTTP_400_BAD_REQUEST, detail="Name is required")
    if "clinic_location_id" in changes:
        await _check_clinic_location(session, changes["clinic_location_id"])

    await repo.update(source, changes)
    await session.commit()
    log.info("referral_source_updated", referral_source_id=str(source.id), fields=sorted(changes))
    return source


@router.delete("/{referral_source_id}")
async def delete_referral_source(
    referral_source_id: uuid.UUID,
    session: AsyncSession = Depends(db_session),
) -> dict[str, Any]:
    repo = ReferralSourceRepo(session)
    source = await repo.get(referral_source_id)
    if source is None:
        raise HTTPException(status_code=HTTP_404_NOT_FOUND, detail="Referral source not found")
    removed_links = await repo.delete(source)
    await session.commit()
    log.info(
        "referral_source_deleted",
        referral_source_id=str(referral_source_id),
        campaign_links_removed=removed_links,
    )
    return {"success": True, "campaign_links_removed": removed_links}

"""
referral_genie.api.routers.clinic_locations

Endpoints for our own clinic locations.

Responsibilities:
- List locations (by name) with the number of referral sources grouped under each.
- CRUD with unique names; a location with referral sources cannot be deleted.
"""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import Any

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, ConfigDict, Field
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.status import HTTP_201_CREATED, HTTP_400_BAD_REQUEST, HTTP_404_NOT_FOUND

from referral_genie.api.deps import db_retry, db_session
from referral_genie.auth.deps import get_principal
from referral_genie.db.repositories.clinic_locations import ClinicLocationRepo
from referral_genie.db.retry import DbRetryPolicy
from referral_genie.observability.logging import get_logger

router = APIRouter(
    prefix="/v1/clinic-locations",
    tags=["clinic-locations"],
    dependencies=[Depends(get_principal)],
)

log = get_logger(__name__)

DUPLICATE_NAME = "A clinic location with this name already exists"


class ClinicLocationFields(BaseModel):
    address: str | None = Field(default=None, max_length=512)
    city: str | None = Field(default=None, max_length=128)
    state: str | None = Field(default=None, max_length=64)
    zip_code: str | None = Field(default=None, max_length=16)
    phone_number: str | None = Field(default=None, max_length=32)
    fax_number: str | None = Field(default=None, max_length=32)


class ClinicLocationCreate(ClinicLocationFields):
    name: str = Field(min_length=1, max_length=256)
    is_active: bool = True


class ClinicLocationUpdate(ClinicLocationFields):
    name: str | None = Field(default=None, min_length=1, max_length=256)
    is_active: bool | None = None


class ClinicLocationOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    name: str
    address: str | None
    city: str | None
    state: str | None
    zip_code: str | None
    phone_number: str | None
    fax_number: str | None
    is_active: bool
    created_at: datetime
    updated_at: datetime


class ClinicLocationListItem(ClinicLocationOut):
    referral_source_count: int


class LinkedReferralSource(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    name: str
    contact_person: str | None
    contact_phone: str | None


class ClinicLocationDetail(ClinicLocationOut):
    referral_sources: list[LinkedReferralSource]


@router.get("", response_model=list[ClinicLocationListItem])
async def list_clinic_locations(
    session: AsyncSession = Depends(db_session),
    retry: DbRetryPolicy = Depends(db_retry),
) -> list[ClinicLocationListItem]:
    rows = await retry.run(ClinicLocationRepo(session).list_with_counts, session=session)
    return [
        ClinicLocationListItem(
            **ClinicLocationOut.model_validate(loc).model_dump(), referral_source_count=n
        )
        for loc, n in rows
    ]


@router.post("", response_model=ClinicLocationOut, status_code=HTTP_201_CREATED)
async def create_clinic_location(
    body: ClinicLocationCreate,
    session: AsyncSession = Depends(db_session),
) -> Any:
    repo = ClinicLocationRepo(session)
    if await repo.get_by_name(body.name) is not None:
        raise HTTPException(status_code=HTTP_400_BAD_REQUEST, detail=DUPLICATE_NAME)
    location = await repo.create(**body.model_dump())
    await session.commit()
    log.info("clinic_location_created", clinic_location_id=str(location.id))
    return location


@router.get("/{location_id}", response_model=ClinicLocationDetail)
async def get_clinic_location(
    location_id: uuid.UUID,
    session: AsyncSession = Depends(db_session),
    retry: DbRetryPolicy = Depends(db_retry),
) -> Any:
    location = await retry.run(
        lambda: ClinicLocationRepo(session).get(location_id, with_sources=True),
        session=session,
    )
    if location is None:
        raise HTTPException(status_code=HTTP_404_NOT_FOUND, detail="Clinic location not found")
    return location


@router.put("/{location_id}", response_model=ClinicLocationOut)
async def update_clinic_location(
    location_id: uuid.UUID,
    body: ClinicLocationUpdate,
    session: AsyncSession = Depends(db_session),
) -> Any:
    repo = ClinicLocationRepo(session)
    location = await repo.get(location_id)
    if location is None:
        raise HTTPException(status_code=HTTP_404_NOT_FOUND, detail="Clinic location not found")

    changes = body.model_dump(exclude_unset=True)
    for required in ("name", "is_active"):
        if required in changes and changes[required] is None:
            raise HTTPException(
                status_code=HTTP_400_BAD_REQUEST, detail=f"{required} cannot be null"
            )
    new_name = changes.get("name")
    if new_name and new_name != location.name and await repo.get_by_name(new_name) is not None:
        raise HTTPException(status_code=HTTP_400_BAD_REQUEST, detail=DUPLICATE_NAME)

    await repo.update(location, changes)
    await session.commit()
    return location


@router.delete("/{location_id}")
async def delete_clinic_location(
    location_id: uuid.UUID,
    session: AsyncSession = Depends(db_session),
) -> dict[str, bool]:
    repo = ClinicLocationRepo(session)
    location = await repo.get(location_id)
    if location is None:
        raise HTTPException(status_code=HTTP_404_NOT_FOUND, detail="Clinic location not found")

    linked = await repo.count_referral_sources(location_id)
    if linked:
        raise HTTPException(
            status_code=HTTP_400_BAD_REQUEST,
            detail=(
                f"Cannot delete clinic location with {linked} associated referral sources. "
                "Please reassign or delete these referral sources first."
            ),
        )
    await repo.delete(location)
    await session.commit()
    log.info("clinic_location_deleted", clinic_location_id=str(location_id))
    return {"success": True}

"""
referral_genie.api.routers.interactions

Interaction log endpoints (calls, visits, emails... with a referral source).

Responsibilities:
- List the log newest-first, optionally per referral source and/or capped (recent widget).
- CRUD single entries; every entry embeds `{id, name}` of its referral source.
"""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import Any

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel, ConfigDict
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.status import HTTP_201_CREATED, HTTP_400_BAD_REQUEST, HTTP_404_NOT_FOUND

from referral_genie.api.deps import db_retry, db_session
from referral_genie.api.schemas import ReferralSourceRef, UtcDatetime
from referral_genie.auth.deps import get_principal
from referral_genie.db.models import InteractionType
from referral_genie.db.repositories.interactions import InteractionRepo
from referral_genie.db.repositories.referral_sources import ReferralSourceRepo
from referral_genie.db.retry import DbRetryPolicy

router = APIRouter(
    prefix="/v1/interactions",
    tags=["interactions"],
    dependencies=[Depends(get_principal)],
)


class InteractionCreate(BaseModel):
    referral_source_id: uuid.UUID
    type: InteractionType
    date: UtcDatetime
    notes: str | None = None
    outcome: str | None = None


class InteractionUpdate(BaseModel):
    referral_source_id: uuid.UUID | None = None
    type: InteractionType | None = None
    date: UtcDatetime | None = None
    notes: str | None = None
    outcome: str | None = None


class InteractionOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    referral_source_id: uuid.UUID
    type: InteractionType
    date: datetime
    notes: str | None
    outcome: str | None
    created_at: datetime
    updated_at: datetime
    referral_source: ReferralSourceRef


async def _require_referral_source(session: AsyncSession, referral_source_id: uuid.UUID) -> None:
    if await ReferralSourceRepo(session).get(referral_source_id) is None:
        raise HTTPException(status_code=HTTP_400_BAD_REQUEST, detail="Referral source not found")


@router.get("", response_model=list[InteractionOut])
async def list_interactions(
    referral_source_id: uuid.UUID | None = None,
    limit: int | None = Query(default=None, ge=1, le=500),
    session: AsyncSession = Depends(db_session),
    retry: DbRetryPolicy = Depends(db_retry),
) -> list[Any]:
    repo = InteractionRepo(session)
    return await retry.run(
        lambda: repo.list_all(referral_source_id=referral_source_id, limit=limit),
        session=session,
    )


@router.post("", response_model=InteractionOut, status_code=HTTP_201_CREATED)
async def create_interaction(
    body: InteractionCreate,
    session: AsyncSession = Depends(db_session),
) -> Any:
    await _require_referral_source(session, body.referral_source_id)
    interaction = await InteractionRepo(session).create(**body.model_dump())
    await session.commit()
    return interaction


@router.get("/{interaction_id}", response_model=InteractionOut)
async def get_interaction(
    interaction_id: uuid.UUID,
    session: AsyncSession = Depends(db_session),
    retry: DbRetryPolicy = Depends(db_retry),
) -> Any:
    interaction = await retry.run(
        lambda: InteractionRepo(session).get(interaction_id), session=session
    )
    if interaction is None:
        raise HTTPException(status_code=HTTP_404_NOT_FOUND, detail="Interaction not found")
    return interaction


@router.put("/{interaction_id}", response_model=InteractionOut)
async def update_interaction(
    interaction_id: uuid.UUID,
    body: InteractionUpdate,
    session: AsyncSession = Depends(db_session),
) -> Any:
    repo = InteractionRepo(session)
    interaction = await repo.get(interaction_id)
    if interaction is None:
        raise HTTPException(status_code=HTTP_404_NOT_FOUND, detail="Interaction not found")

    changes = body.model_dump(exclude_unset=True)
    for required in ("referral_source_id", "type", "date"):
        if required in changes and changes[required] is None:
            raise HTTPException(
                status_code=HTTP_400_BAD_REQUEST, detail=f"{required} cannot be null"
            )
    if "referral_source_id" in changes:
        await _require_referral_source(session, changes["referral_source_id"])

    await repo.update(interaction, changes)
    await session.commit()
    return interaction


@router.delete("/{interaction_id}")
async def delete_interaction(
    interaction_id: uuid.UUID,
    session: AsyncSession = Depends(db_session),
) -> dict[str, bool]:
    repo = InteractionRepo(session)
    interaction = await repo.get(interaction_id)
    if interaction is None:
        raise HTTPException(status_code=HTTP_404_NOT_FOUND, detail="Interaction not found")
    await repo.delete(interaction)
    await session.commit()
    return {"success": True}

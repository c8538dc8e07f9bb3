"""
referral_genie.db.repositories.interactions

Repository for `Interaction` entities.

Responsibilities:
- Query the interaction log (newest first), optionally scoped to one referral source.
- Create/update/delete entries with the referral source eagerly loaded for API responses.
"""

from __future__ import annotations

import uuid
from typing import Any

from sqlalchemy import desc, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from referral_genie.db.models import Interaction, utcnow


class InteractionRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def list_all(
        self,
        *,
        referral_source_id: uuid.UUID | None = None,
        limit: int | None = None,
    ) -> list[Interaction]:
        stmt = (
            select(Interaction)
            .options(selectinload(Interaction.referral_source))
            .order_by(desc(Interaction.date))
        )
        if referral_source_id is not None:
            stmt = stmt.where(Interaction.referral_source_id == referral_source_id)
        if limit is not None:
            stmt = stmt.limit(limit)
        return list((await self._session.execute(stmt)).scalars().all())

    async def get(self, interaction_id: uuid.UUID) -> Interaction | None:
        return await self._session.get(
            Interaction, interaction_id, options=[selectinload(Interaction.referral_source)]
        )

    async def create(self, **fields: Any) -> Interaction:
        interaction = Interaction(**fields)
        self._session.add(interaction)
        await self._session.flush()
        await self._session.refresh(interaction, attribute_names=["referral_source"])
        return interaction

    async def update(self, interaction: Interaction, changes: dict[str, Any]) -> Interaction:
        for key, value in changes.items():
            setattr(interaction, key, value)
        interaction.updated_at = utcnow()
        await self._session.flush()
        if "referral_source_id" in changes:
            await self._session.refresh(interaction, attribute_names=["referral_source"])
        return interaction

    async def delete(self, interaction: Interaction) -> None:
        await self._session.delete(interaction)
        await self._session.flush()

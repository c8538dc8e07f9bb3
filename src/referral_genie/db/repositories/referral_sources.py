"""
referral_genie.db.repositories.referral_sources

Repository for `ReferralSource` entities.
"""

from __future__ import annotations

import uuid
from typing import Any

from sqlalchemy import desc, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from referral_genie.db.models import CampaignRecipient, ReferralSource, utcnow


class ReferralSourceRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def list_all(self) -> list[ReferralSource]:
        stmt = select(ReferralSource).order_by(desc(ReferralSource.created_at))
        return list((await self._session.execute(stmt)).scalars().all())

    async def get(self, referral_source_id: uuid.UUID) -> ReferralSource | None:
        return await self._session.get(ReferralSource, referral_source_id)

    async def existing_ids(self, ids: list[uuid.UUID]) -> set[uuid.UUID]:
        if not ids:
            return set()
        stmt = select(ReferralSource.id).where(ReferralSource.id.in_(ids))
        return set((await self._session.execute(stmt)).scalars().all())

    async def create(self, **fields: Any) -> ReferralSource:
        source = ReferralSource(**fields)
        self._session.add(source)
        await self._session.flush()
        return source

    async def update(self, source: ReferralSource, changes: dict[str, Any]) -> ReferralSource:
        for key, value in changes.items():
            setattr(source, key, value)
        source.updated_at = utcnow()
        await self._session.flush()
        return source

    async def delete(self, source: ReferralSource) -> int:
        """
        Delete a referral source; its campaign links and interactions cascade in the DB.
        Returns the number of campaign links that went with it.
        """

        stmt = (
            select(func.count())
            .select_from(CampaignRecipient)
            .where(CampaignRecipient.referral_source_id == source.id)
        )
        links = int((await self._session.execute(stmt)).scalar_one())
        await self._session.delete(source)
        await self._session.flush()
        return links

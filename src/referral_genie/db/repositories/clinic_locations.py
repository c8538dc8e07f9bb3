"""
referral_genie.db.repositories.clinic_locations

Repository for `ClinicLocation` entities.
"""

from __future__ import annotations

import uuid
from typing import Any

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from referral_genie.db.models import ClinicLocation, ReferralSource, utcnow


class ClinicLocationRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def list_with_counts(self) -> list[tuple[ClinicLocation, int]]:
        counts = (
            select(ReferralSource.clinic_location_id, func.count().label("n"))
            .group_by(ReferralSource.clinic_location_id)
            .subquery()
        )
        stmt = (
            select(ClinicLocation, func.coalesce(counts.c.n, 0))
            .outerjoin(counts, counts.c.clinic_location_id == ClinicLocation.id)
            .order_by(ClinicLocation.name)
        )
        return [(loc, int(n)) for loc, n in (await self._session.execute(stmt)).all()]

    async def get(
        self, location_id: uuid.UUID, *, with_sources: bool = False
    ) -> ClinicLocation | None:
        options = [selectinload(ClinicLocation.referral_sources)] if with_sources else []
        return await self._session.get(ClinicLocation, location_id, options=options)

    async def get_by_name(self, name: str) -> ClinicLocation | None:
        stmt = select(ClinicLocation).where(ClinicLocation.name == name)
        return (await self._session.execute(stmt)).scalar_one_or_none()

    async def count_referral_sources(self, location_id: uuid.UUID) -> int:
        stmt = (
            select(func.count())
            .select_from(ReferralSource)
            .where(ReferralSource.clinic_location_id == location_id)
        )
        return int((await self._session.execute(stmt)).scalar_one())

    async def create(self, **fields: Any) -> ClinicLocation:
        location = ClinicLocation(**fields)
        self._session.add(location)
        await self._session.flush()
        return location

    async def update(self, location: ClinicLocation, changes: dict[str, Any]) -> ClinicLocation:
        for key, value in changes.items():
            setattr(location, key, value)
        location.updated_at = utcnow()
        await self._session.flush()
        return location

    async def delete(self, location: ClinicLocation) -> None:
        await self._session.delete(location)
        await self._session.flush()

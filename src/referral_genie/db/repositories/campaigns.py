"""
referral_genie.db.repositories.campaigns

Repository for `Campaign` and `CampaignRecipient` entities.

Responsibilities:
- Campaign CRUD plus list/dashboard aggregates.
- Keep the recipient set in sync with a requested list of referral sources.
- Persist per-recipient delivery status (send workflow, webhooks, status checks).
"""

from __future__ import annotations

import uuid
from collections.abc import Iterable
from datetime import datetime
from typing import Any

from sqlalchemy import delete, desc, func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from referral_genie.db.models import (
    Campaign,
    CampaignRecipient,
    CampaignStatus,
    RecipientStatus,
    utcnow,
)

_UNSET: Any = object()


def _with_recipients():
    return selectinload(Campaign.recipients).selectinload(CampaignRecipient.referral_source)


class CampaignRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def list_with_counts(self) -> list[tuple[Campaign, int]]:
        counts = (
            select(CampaignRecipient.campaign_id, func.count().label("n"))
            .group_by(CampaignRecipient.campaign_id)
            .subquery()
        )
        stmt = (
            select(Campaign, func.coalesce(counts.c.n, 0))
            .outerjoin(counts, counts.c.campaign_id == Campaign.id)
            .order_by(desc(Campaign.created_at))
        )
        return [(c, int(n)) for c, n in (await self._session.execute(stmt)).all()]

    async def status_counts(self) -> dict[CampaignStatus, int]:
        stmt = select(Campaign.status, func.count()).group_by(Campaign.status)
        found = {status: int(n) for status, n in (await self._session.execute(stmt)).all()}
        return {status: found.get(status, 0) for status in CampaignStatus}

    async def get(
        self,
        campaign_id: uuid.UUID,
        *,
        with_recipients: bool = False,
        refresh: bool = False,
    ) -> Campaign | None:
        options = [_with_recipients()] if with_recipients else []
        return await self._session.get(
            Campaign, campaign_id, options=options, populate_existing=refresh
        )

    async def create(
        self,
        *,
        referral_source_ids: Iterable[uuid.UUID] = (),
        **fields: Any,
    ) -> Campaign:
        campaign = Campaign(**fields)
        self._session.add(campaign)
        await self._session.flush()
        for rs_id in dict.fromkeys(referral_source_ids):
            self._session.add(
                CampaignRecipient(
                    campaign_id=campaign.id,
                    referral_source_id=rs_id,
                    status=RecipientStatus.pending,
                )
            )
        await self._session.flush()
        return campaign

    async def update(self, campaign: Campaign, changes: dict[str, Any]) -> Campaign:
        for key, value in changes.items():
            setattr(campaign, key, value)
        campaign.updated_at = utcnow()
        await self._session.flush()
        return campaign

    async def sync_recipients(
        self, campaign_id: uuid.UUID, referral_source_ids: Iterable[uuid.UUID]
    ) -> tuple[set[uuid.UUID], set[uuid.UUID]]:
        """
        Make the recipient set equal to `referral_source_ids`.

        Links that stay keep their delivery state; new links start as PENDING.
        Returns `(added, removed)`.
        """

        wanted = set(referral_source_ids)
        stmt = select(CampaignRecipient.referral_source_id).where(
            CampaignRecipient.campaign_id == campaign_id
        )
        current = set((await self._session.execute(stmt)).scalars().all())

        removed = current - wanted
        added = wanted - current
        if removed:
            await self._session.execute(
                delete(CampaignRecipient).where(
                    CampaignRecipient.campaign_id == campaign_id,
                    CampaignRecipient.referral_source_id.in_(removed),
                )
            )
        for rs_id in added:
            self._session.add(
                CampaignRecipient(
                    campaign_id=campaign_id,
                    referral_source_id=rs_id,
                    status=RecipientStatus.pending,
                )
            )
        await self._session.flush()
        return added, removed

    async def delete(self, campaign: Campaign) -> None:
        # Recipient rows go with it through ON DELETE CASCADE.
        await self._session.delete(campaign)
        await self._session.flush()

    # --- recipients -----------------------------------------------------------

    async def get_recipient(
        self, campaign_id: uuid.UUID, referral_source_id: uuid.UUID
    ) -> CampaignRecipient | None:
        return await self._session.get(
            CampaignRecipient,
            (campaign_id, referral_source_id),
            options=[selectinload(CampaignRecipient.referral_source)],
        )

    async def get_recipient_by_fax_id(self, fax_id: str) -> CampaignRecipient | None:
        stmt = (
            select(CampaignRecipient)
            .options(selectinload(CampaignRecipient.referral_source))
            .where(CampaignRecipient.fax_id == fax_id)
            .order_by(desc(CampaignRecipient.sent_at))
            .limit(1)
        )
        return (await self._session.execute(stmt)).scalar_one_or_none()

    async def recipients_with_status(
        self, campaign_id: uuid.UUID, status: RecipientStatus
    ) -> list[CampaignRecipient]:
        stmt = (
            select(CampaignRecipient)
            .options(selectinload(CampaignRecipient.referral_source))
            .where(
                CampaignRecipient.campaign_id == campaign_id,
                CampaignRecipient.status == status,
            )
            .order_by(CampaignRecipient.created_at)
        )
        return list((await self._session.execute(stmt)).scalars().all())

    async def set_recipient_state(
        self,
        recipient: CampaignRecipient,
        *,
        status: RecipientStatus | None = None,
        fax_id: str | None = None,
        sent_at: datetime | None = None,
        response_at: datetime | None = None,
        response: dict[str, Any] | None = _UNSET,
    ) -> CampaignRecipient:
        if status is not None:
            recipient.status = status
        if fax_id is not None:
            recipient.fax_id = fax_id
        if sent_at is not None:
            recipient.sent_at = sent_at
        if response_at is not None:
            recipient.response_at = response_at
        if response is not _UNSET:
            recipient.response = response
        recipient.updated_at = utcnow()
        await self._session.flush()
        return recipient

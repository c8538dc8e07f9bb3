"""
referral_genie.services.fax_status

Delivery status tracking for sent campaign faxes.

Responsibilities:
- Poll HumbleFax for the final status of a sent fax and record it on the recipient.
- Apply provider webhooks to the matching recipient.
- Schedule a delayed, best-effort status check after each successful send.
"""

from __future__ import annotations

import asyncio
import uuid
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from referral_genie.db.models import CampaignRecipient, RecipientStatus, utcnow
from referral_genie.db.repositories.campaigns import CampaignRepo
from referral_genie.db.session import session_scope
from referral_genie.integrations.humble_fax import FaxApiError, HumbleFaxClient
from referral_genie.observability.logging import get_logger

log = get_logger(__name__)


def status_from_poll(provider_status: str) -> RecipientStatus | None:
    """
    Final status implied by a `/sentFax` lookup, or None while the fax is still in flight.
    """

    return {
        "delivered": RecipientStatus.delivered,
        "failed": RecipientStatus.failed,
    }.get(provider_status.lower())


def status_from_webhook(provider_status: str) -> RecipientStatus:
    normalized = provider_status.upper()
    if normalized in ("DELIVERED", "COMPLETED"):
        return RecipientStatus.delivered
    if normalized in ("FAILED", "ERROR"):
        return RecipientStatus.failed
    return RecipientStatus.pending


def _parse_uuid(value: str | None) -> uuid.UUID | None:
    if not value:
        return None
    try:
        return uuid.UUID(value)
    except ValueError:
        return None


class FaxStatusService:
    def __init__(self, *, session: AsyncSession, client: HumbleFaxClient) -> None:
        self._session = session
        self._client = client
        self._campaigns = CampaignRepo(session)

    async def check_recipient(self, recipient: CampaignRecipient) -> CampaignRecipient:
        """
        Look up the sent fax and record what HumbleFax reports. Raises `FaxApiError`.
        """

        if not recipient.fax_id:
            return recipient

        result = await self._client.sent_fax_status(recipient.fax_id)
        if not result.raw:
            # No sent-fax record yet; keep the send response.
            log.info(
                "fax_status_not_available",
                campaign_id=str(recipient.campaign_id),
                referral_source_id=str(recipient.referral_source_id),
                fax_id=recipient.fax_id,
            )
            return recipient

        new_status = status_from_poll(result.status)
        await self._campaigns.set_recipient_state(
            recipient,
            status=new_status,
            response_at=utcnow() if new_status is not None else None,
            response={
                "fax_id": recipient.fax_id,
                "final_status": result.status,
                "final_check": True,
                "details": result.raw,
            },
        )
        log.info(
            "fax_status_checked",
            campaign_id=str(recipient.campaign_id),
            referral_source_id=str(recipient.referral_source_id),
            fax_id=recipient.fax_id,
            provider_status=result.status,
            status=recipient.status.value,
        )
        return recipient

    async def refresh_campaign(self, campaign_id: uuid.UUID) -> list[CampaignRecipient]:
        """
        Check every recipient still marked SENT. Lookup failures leave that recipient as is.
        """

        recipients = await self._campaigns.recipients_with_status(
            campaign_id, RecipientStatus.sent
        )
        for recipient in recipients:
            try:
                await self.check_recipient(recipient)
            except FaxApiError as e:
                log.warning(
                    "fax_status_check_failed",
                    campaign_id=str(campaign_id),
                    referral_source_id=str(recipient.referral_source_id),
                    fax_id=recipient.fax_id,
                    error=e.message,
                )
        await self._session.commit()
        return recipients

    async def apply_webhook(
        self,
        *,
        fax_id: str,
        provider_status: str,
        campaign_id: str | None = None,
        referral_source_id: str | None = None,
        error: Any = None,
    ) -> CampaignRecipient | None:
        """
        Record a delivery update. The recipient is matched by `fax_id`, then by the metadata ids;
        ids that are not UUIDs are ignored.
        """

        recipient = await self._campaigns.get_recipient_by_fax_id(fax_id)
        if recipient is None:
            campaign_uuid = _parse_uuid(campaign_id)
            source_uuid = _parse_uuid(referral_source_id)
            if campaign_uuid is not None and source_uuid is not None:
                recipient = await self._campaigns.get_recipient(campaign_uuid, source_uuid)
        if recipient is None:
            return None

        new_status = status_from_webhook(provider_status)
        now = utcnow()
        await self._campaigns.set_recipient_state(
            recipient,
            status=new_status,
            fax_id=fax_id,
            response_at=now if new_status.is_final else None,
            response={
                "fax_id": fax_id,
                "status": provider_status,
                "updated_at": now.isoformat(),
                "error": error,
            },
        )
        await self._session.commit()
        log.info(
            "fax_webhook_applied",
            campaign_id=str(recipient.campaign_id),
            referral_source_id=str(recipient.referral_source_id),
            fax_id=fax_id,
            status=new_status.value,
        )
        return recipient


class FaxStatusScheduler:
    """
    Runs one delayed status check per sent fax as a task on the app's event loop.

    Checks are best effort: they are lost on restart and cancelled on shutdown. The webhook
    and the manual refresh endpoint cover both cases.
    """

    def __init__(
        self,
        *,
        session_factory: async_sessionmaker[AsyncSession],
        client: HumbleFaxClient,
        delay_seconds: float | None,
    ) -> None:
        self._session_factory = session_factory
        self._client = client
        self._delay = delay_seconds
        self._tasks: set[asyncio.Task[None]] = set()

    @property
    def enabled(self) -> bool:
        return self._delay is not None

    @property
    def pending(self) -> int:
        return len(self._tasks)

    def schedule(self, *, campaign_id: uuid.UUID, referral_source_id: uuid.UUID) -> None:
        if self._delay is None:
            return
        task = asyncio.create_task(
            self._check_later(campaign_id, referral_source_id),
            name=f"fax-status:{campaign_id}:{referral_source_id}",
        )
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def _check_later(self, campaign_id: uuid.UUID, referral_source_id: uuid.UUID) -> None:
        await asyncio.sleep(self._delay or 0)
        try:
            async with session_scope(self._session_factory) as session:
                recipient = await CampaignRepo(session).get_recipient(
                    campaign_id, referral_source_id
                )
                if recipient is None or recipient.status != RecipientStatus.sent:
                    return
                await FaxStatusService(session=session, client=self._client).check_recipient(
                    recipient
                )
                await session.commit()
        except Exception:
            # Nothing awaits this task; log and leave the recipient as SENT.
            log.exception(
                "delayed_fax_status_check_failed",
                campaign_id=str(campaign_id),
                referral_source_id=str(referral_source_id),
            )

    async def aclose(self) -> None:
        for task in list(self._tasks):
            task.cancel()
        if self._tasks:
            await asyncio.gather(*self._tasks, return_exceptions=True)
        self._tasks.clear()


# --- Module Notes -----------------------------------------------------------
# Poll results only ever move a recipient forward (SENT -> DELIVERED/FAILED); an
# in-flight answer ("processing", "queued", ...) keeps SENT and just refreshes `response`.

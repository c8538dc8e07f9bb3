"""
referral_genie.services.campaign_sender

Fax campaign delivery.

Responsibilities:
- Load the campaign document once and fax it to every recipient through the delivery graph.
- Keep each recipient's status record current (SENDING -> SENT | FAILED), committing per recipient.
- Activate the campaign once at least one fax went out and schedule delayed status checks.

Delivery is best effort per recipient: a failed recipient is recorded and the loop moves on.
"""

from __future__ import annotations

from typing import Any

import httpx
from sqlalchemy.ext.asyncio import AsyncSession

from referral_genie.db.models import (
    Campaign,
    CampaignRecipient,
    CampaignStatus,
    RecipientStatus,
    utcnow,
)
from referral_genie.db.repositories.campaigns import CampaignRepo
from referral_genie.fax_workflow.graph import build_fax_graph
from referral_genie.fax_workflow.state import CoverSheet, FaxDeliveryState
from referral_genie.integrations.humble_fax import FaxApiError, HumbleFaxClient
from referral_genie.observability.logging import get_logger
from referral_genie.services.documents import DocumentStore, LoadedDocument
from referral_genie.services.fax_status import FaxStatusScheduler

log = get_logger(__name__)

NO_FAX_NUMBER = "No fax number provided"


def cover_sheet_for(campaign: Campaign, recipient: CampaignRecipient) -> CoverSheet:
    source = recipient.referral_source
    return CoverSheet(
        include=campaign.include_cover_sheet,
        from_name=campaign.cover_sheet_from_name,
        from_number=campaign.cover_sheet_from_number,
        company_info=campaign.cover_sheet_company_info,
        to_name=source.contact_person or source.name,
        subject=campaign.cover_sheet_subject,
        message=campaign.cover_sheet_message,
    )


class CampaignSendService:
    def __init__(
        self,
        *,
        session: AsyncSession,
        client: HumbleFaxClient,
        documents: DocumentStore,
        document_http: httpx.AsyncClient,
        sender_number: str,
        scheduler: FaxStatusScheduler | None = None,
    ) -> None:
        self._session = session
        self._campaigns = CampaignRepo(session)
        self._documents = documents
        self._document_http = document_http
        self._scheduler = scheduler
        self._graph = build_fax_graph(client=client, sender_number=sender_number)

    async def load_document(self, campaign: Campaign) -> LoadedDocument:
        """
        Raises `DocumentUnavailableError` when the campaign document cannot be read.
        """

        doc = await self._documents.load(campaign.document_url or "", http=self._document_http)
        if campaign.document_name:
            doc = LoadedDocument(
                name=campaign.document_name, content=doc.content, content_type=doc.content_type
            )
        return doc

    async def send(self, campaign: Campaign, document: LoadedDocument) -> dict[str, Any]:
        successful: list[dict[str, Any]] = []
        failed: list[dict[str, Any]] = []

        log.info(
            "campaign_send_started",
            campaign_id=str(campaign.id),
            recipients=len(campaign.recipients),
            document=document.name,
        )

        for recipient in list(campaign.recipients):
            source = recipient.referral_source
            if not (source.fax_number or "").strip():
                await self._campaigns.set_recipient_state(
                    recipient,
                    status=RecipientStatus.failed,
                    response={"error": NO_FAX_NUMBER},
                )
                await self._session.commit()
                failed.append(
                    {
                        "referral_source_id": str(source.id),
                        "name": source.name,
                        "error": NO_FAX_NUMBER,
                    }
                )
                continue

            await self._campaigns.set_recipient_state(recipient, status=RecipientStatus.sending)
            await self._session.commit()

            state: FaxDeliveryState = {
                "campaign_id": str(campaign.id),
                "referral_source_id": str(source.id),
                "to_number": source.fax_number,
                "cover_sheet": cover_sheet_for(campaign, recipient),
                "document_name": document.name,
                "document_content": document.content,
                "document_content_type": document.content_type,
                "delivery_log": [],
            }
            try:
                final = await self._graph.ainvoke(state)
            except FaxApiError as e:
                log.warning(
                    "campaign_recipient_failed",
                    campaign_id=str(campaign.id),
                    referral_source_id=str(source.id),
                    error=e.message,
                    status_code=e.status_code,
                )
                await self._campaigns.set_recipient_state(
                    recipient, status=RecipientStatus.failed, response=e.as_response()
                )
                await self._session.commit()
                failed.append(
                    {
                        "referral_source_id": str(source.id),
                        "name": source.name,
                        "fax_number": source.fax_number,
                        "error": e.message,
                        "status_code": e.status_code,
                    }
                )
                continue

            fax_id = final["fax_id"]
            await self._campaigns.set_recipient_state(
                recipient,
                status=RecipientStatus.sent,
                fax_id=fax_id,
                sent_at=utcnow(),
                response={"fax_id": fax_id, "status": "sent", "details": final.get("send_response")},
            )
            await self._session.commit()
            successful.append(
                {
                    "referral_source_id": str(source.id),
                    "name": source.name,
                    "fax_number": final["to_number"],
                    "fax_id": fax_id,
                }
            )
            if self._scheduler is not None:
                self._scheduler.schedule(campaign_id=campaign.id, referral_source_id=source.id)

        if successful:
            await self._campaigns.update(campaign, {"status": CampaignStatus.active})
            await self._session.commit()

        log.info(
            "campaign_send_finished",
            campaign_id=str(campaign.id),
            sent=len(successful),
            failed=len(failed),
        )
        return {
            "success": True,
            "campaign": {"id": str(campaign.id), "name": campaign.name},
            "results": {
                "success": len(successful),
                "failed": len(failed),
                "details": {"successful": successful, "failed": failed},
            },
        }

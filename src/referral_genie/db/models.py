"""
referral_genie.db.models

Core persistence schema for the CRM.

Responsibilities:
- Define ORM models:
  - ClinicLocation: our own sites that referral sources are grouped under
  - ReferralSource: organisations that send us referrals
  - Interaction: logged calls/visits/emails with a referral source
  - Campaign: outbound campaigns (fax campaigns carry a document + cover sheet)
  - CampaignRecipient: campaign <-> referral source link with per-recipient delivery status
"""

from __future__ import annotations

import enum
import uuid
from datetime import UTC, datetime
from typing import Any

from sqlalchemy import JSON, Enum, ForeignKey, Index, String, Text, Uuid as SAUuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from referral_genie.db.base import Base


def utcnow() -> datetime:
    # Naive UTC timestamps; SQLite has no timezone-aware column type.
    return datetime.now(tz=UTC).replace(tzinfo=None)


def _stored_values(enum_cls: type[enum.Enum]) -> list[str]:
    return [member.value for member in enum_cls]


class CampaignStatus(enum.StrEnum):
    draft = "DRAFT"
    active = "ACTIVE"
    completed = "COMPLETED"
    cancelled = "CANCELLED"


class CampaignType(enum.StrEnum):
    email = "EMAIL"
    fax = "FAX"
    call = "CALL"
    event = "EVENT"
    direct_mail = "DIRECT_MAIL"
    social_media = "SOCIAL_MEDIA"
    other = "OTHER"


class RecipientStatus(enum.StrEnum):
    pending = "PENDING"
    sending = "SENDING"
    sent = "SENT"
    delivered = "DELIVERED"
    failed = "FAILED"

    @property
    def is_final(self) -> bool:
        return self in (RecipientStatus.delivered, RecipientStatus.failed)


class InteractionType(enum.StrEnum):
    call = "CALL"
    email = "EMAIL"
    meeting = "MEETING"
    referral = "REFERRAL"
    visit = "VISIT"
    other = "OTHER"


class ClinicLocation(Base):
    __tablename__ = "clinic_locations"

    id: Mapped[uuid.UUID] = mapped_column(
        SAUuid(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    name: Mapped[str] = mapped_column(String(256), nullable=False, unique=True)
    address: Mapped[str | None] = mapped_column(String(512), nullable=True)
    city: Mapped[str | None] = mapped_column(String(128), nullable=True)
    state: Mapped[str | None] = mapped_column(String(64), nullable=True)
    zip_code: Mapped[str | None] = mapped_column(String(16), nullable=True)
    phone_number: Mapped[str | None] = mapped_column(String(32), nullable=True)
    fax_number: Mapped[str | None] = mapped_column(String(32), nullable=True)
    is_active: Mapped[bool] = mapped_column(nullable=False, default=True)

    created_at: Mapped[datetime] = mapped_column(nullable=False, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(nullable=False, default=utcnow, onupdate=utcnow)

    referral_sources: Mapped[list[ReferralSource]] = relationship(
        back_populates="clinic_location"
    )


class ReferralSource(Base):
    __tablename__ = "referral_sources"

    id: Mapped[uuid.UUID] = mapped_column(
        SAUuid(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    name: Mapped[str] = mapped_column(String(256), nullable=False, index=True)
    address: Mapped[str | None] = mapped_column(String(512), nullable=True)
    city: Mapped[str | None] = mapped_column(String(128), nullable=True)
    state: Mapped[str | None] = mapped_column(String(64), nullable=True)
    zip_code: Mapped[str | None] = mapped_column(String(16), nullable=True)
    clinic_location_id: Mapped[uuid.UUID | None] = mapped_column(
        SAUuid(as_uuid=True), ForeignKey("clinic_locations.id"), nullable=True, index=True
    )

    contact_person: Mapped[str | None] = mapped_column(String(256), nullable=True)
    contact_title: Mapped[str | None] = mapped_column(String(128), nullable=True)
    contact_phone: Mapped[str | None] = mapped_column(String(32), nullable=True)
    contact_email: Mapped[str | None] = mapped_column(String(256), nullable=True)
    fax_number: Mapped[str | None] = mapped_column(String(32), nullable=True)
    npi_number: Mapped[str | None] = mapped_column(String(32), nullable=True)
    website: Mapped[str | None] = mapped_column(String(512), nullable=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    rating: Mapped[int | None] = mapped_column(nullable=True)
    expected_monthly_referrals: Mapped[int | None] = mapped_column(nullable=True)
    number_of_providers: Mapped[int | None] = mapped_column(nullable=True)

    created_at: Mapped[datetime] = mapped_column(nullable=False, default=utcnow, index=True)
    updated_at: Mapped[datetime] = mapped_column(nullable=False, default=utcnow, onupdate=utcnow)

    clinic_location: Mapped[ClinicLocation | None] = relationship(
        back_populates="referral_sources"
    )
    interactions: Mapped[list[Interaction]] = relationship(
        back_populates="referral_source", cascade="all, delete-orphan", passive_deletes=True
    )
    campaign_links: Mapped[list[CampaignRecipient]] = relationship(
        back_populates="referral_source", cascade="all, delete-orphan", passive_deletes=True
    )


class Interaction(Base):
    __tablename__ = "interactions"

    id: Mapped[uuid.UUID] = mapped_column(
        SAUuid(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    referral_source_id: Mapped[uuid.UUID] = mapped_column(
        SAUuid(as_uuid=True),
        ForeignKey("referral_sources.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    type: Mapped[InteractionType] = mapped_column(
        Enum(InteractionType, values_callable=_stored_values), nullable=False
    )
    date: Mapped[datetime] = mapped_column(nullable=False)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    outcome: Mapped[str | None] = mapped_column(Text, nullable=True)

    created_at: Mapped[datetime] = mapped_column(nullable=False, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(nullable=False, default=utcnow, onupdate=utcnow)

    referral_source: Mapped[ReferralSource] = relationship(back_populates="interactions")

    __table_args__ = (Index("ix_interactions_source_date", "referral_source_id", "date"),)


class Campaign(Base):
    __tablename__ = "campaigns"

    id: Mapped[uuid.UUID] = mapped_column(
        SAUuid(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    name: Mapped[str] = mapped_column(String(256), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    start_date: Mapped[datetime] = mapped_column(nullable=False, default=utcnow)
    end_date: Mapped[datetime | None] = mapped_column(nullable=True)
    status: Mapped[CampaignStatus] = mapped_column(
        Enum(CampaignStatus, values_callable=_stored_values),
        nullable=False,
        default=CampaignStatus.draft,
        index=True,
    )
    type: Mapped[CampaignType] = mapped_column(
        Enum(CampaignType, values_callable=_stored_values), nullable=False
    )
    content: Mapped[str | None] = mapped_column(Text, nullable=True)

    # `document_url` is either an `/uploads/<file>` path or an absolute http(s) URL.
    document_url: Mapped[str | None] = mapped_column(String(1024), nullable=True)
    document_name: Mapped[str | None] = mapped_column(String(256), nullable=True)

    include_cover_sheet: Mapped[bool] = mapped_column(nullable=False, default=False)
    cover_sheet_from_name: Mapped[str | None] = mapped_column(String(256), nullable=True)
    cover_sheet_from_number: Mapped[str | None] = mapped_column(String(32), nullable=True)
    cover_sheet_company_info: Mapped[str | None] = mapped_column(Text, nullable=True)
    cover_sheet_subject: Mapped[str | None] = mapped_column(String(256), nullable=True)
    cover_sheet_message: Mapped[str | None] = mapped_column(Text, nullable=True)

    created_at: Mapped[datetime] = mapped_column(nullable=False, default=utcnow, index=True)
    updated_at: Mapped[datetime] = mapped_column(nullable=False, default=utcnow, onupdate=utcnow)

    recipients: Mapped[list[CampaignRecipient]] = relationship(
        back_populates="campaign",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="CampaignRecipient.created_at",
    )


class CampaignRecipient(Base):
    __tablename__ = "campaign_recipients"

    campaign_id: Mapped[uuid.UUID] = mapped_column(
        SAUuid(as_uuid=True), ForeignKey("campaigns.id", ondelete="CASCADE"), primary_key=True
    )
    referral_source_id: Mapped[uuid.UUID] = mapped_column(
        SAUuid(as_uuid=True),
        ForeignKey("referral_sources.id", ondelete="CASCADE"),
        primary_key=True,
        index=True,
    )

    status: Mapped[RecipientStatus] = mapped_column(
        Enum(RecipientStatus, values_callable=_stored_values),
        nullable=False,
        default=RecipientStatus.pending,
        index=True,
    )
    # Provider-side id of the sent fax; webhooks and status checks look recipients up by it.
    fax_id: Mapped[str | None] = mapped_column(String(128), nullable=True, index=True)
    sent_at: Mapped[datetime | None] = mapped_column(nullable=True)
    response_at: Mapped[datetime | None] = mapped_column(nullable=True)
    response: Mapped[dict[str, Any] | None] = mapped_column(JSON, nullable=True)

    created_at: Mapped[datetime] = mapped_column(nullable=False, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(nullable=False, default=utcnow, onupdate=utcnow)

    campaign: Mapped[Campaign] = relationship(back_populates="recipients")
    referral_source: Mapped[ReferralSource] = relationship(back_populates="campaign_links")


# --- Module Notes -----------------------------------------------------------
# Enum columns persist the upper-case values (`DIRECT_MAIL`), not the member names.

"""initial schema

Revision ID: 0001
Revises:
Create Date: 2026-10-19 00:00:00

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

revision: str = "0001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

campaign_status = sa.Enum("DRAFT", "ACTIVE", "COMPLETED", "CANCELLED", name="campaignstatus")
campaign_type = sa.Enum(
    "EMAIL",
    "FAX",
    "CALL",
    "EVENT",
    "DIRECT_MAIL",
    "SOCIAL_MEDIA",
    "OTHER",
    name="campaigntype",
)
recipient_status = sa.Enum(
    "PENDING", "SENDING", "SENT", "DELIVERED", "FAILED", name="recipientstatus"
)
interaction_type = sa.Enum(
    "CALL", "EMAIL", "MEETING", "REFERRAL", "VISIT", "OTHER", name="interactiontype"
)


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
    ]


def upgrade() -> None:
    op.create_table(
        "clinic_locations",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("name", sa.String(length=256), nullable=False),
        sa.Column("address", sa.String(length=512), nullable=True),
        sa.Column("city", sa.String(length=128), nullable=True),
        sa.Column("state", sa.String(length=64), nullable=True),
        sa.Column("zip_code", sa.String(length=16), nullable=True),
        sa.Column("phone_number", sa.String(length=32), nullable=True),
        sa.Column("fax_number", sa.String(length=32), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_clinic_locations")),
        sa.UniqueConstraint("name", name=op.f("uq_clinic_locations_name")),
    )

    op.create_table(
        "referral_sources",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("name", sa.String(length=256), nullable=False),
        sa.Column("address", sa.String(length=512), nullable=True),
        sa.Column("city", sa.String(length=128), nullable=True),
        sa.Column("state", sa.String(length=64), nullable=True),
        sa.Column("zip_code", sa.String(length=16), nullable=True),
        sa.Column("clinic_location_id", sa.Uuid(), nullable=True),
        sa.Column("contact_person", sa.String(length=256), nullable=True),
        sa.Column("contact_title", sa.String(length=128), nullable=True),
        sa.Column("contact_phone", sa.String(length=32), nullable=True),
        sa.Column("contact_email", sa.String(length=256), nullable=True),
        sa.Column("fax_number", sa.String(length=32), nullable=True),
        sa.Column("npi_number", sa.String(length=32), nullable=True),
        sa.Column("website", sa.String(length=512), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("rating", sa.Integer(), nullable=True),
        sa.Column("expected_monthly_referrals", sa.Integer(), nullable=True),
        sa.Column("number_of_providers", sa.Integer(), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(
            ["clinic_location_id"],
            ["clinic_locations.id"],
            name=op.f("fk_referral_sources_clinic_location_id_clinic_locations"),
        ),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_referral_sources")),
    )
    op.create_index(op.f("ix_referral_sources_name"), "referral_sources", ["name"])
    op.create_index(
        op.f("ix_referral_sources_clinic_location_id"), "referral_sources", ["clinic_location_id"]
    )
    op.create_index(op.f("ix_referral_sources_created_at"), "referral_sources", ["created_at"])

    op.create_table(
        "interactions",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("referral_source_id", sa.Uuid(), nullable=False),
        sa.Column("type", interaction_type, nullable=False),
        sa.Column("date", sa.DateTime(), nullable=False),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("outcome", sa.Text(), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(
            ["referral_source_id"],
            ["referral_sources.id"],
            name=op.f("fk_interactions_referral_source_id_referral_sources"),
            ondelete="CASCADE",
        ),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_interactions")),
    )
    op.create_index(
        op.f("ix_interactions_referral_source_id"), "interactions", ["referral_source_id"]
    )
    op.create_index("ix_interactions_source_date", "interactions", ["referral_source_id", "date"])

    op.create_table(
        "campaigns",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("name", sa.String(length=256), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("start_date", sa.DateTime(), nullable=False),
        sa.Column("end_date", sa.DateTime(), nullable=True),
        sa.Column("status", campaign_status, nullable=False),
        sa.Column("type", campaign_type, nullable=False),
        sa.Column("content", sa.Text(), nullable=True),
        sa.Column("document_url", sa.String(length=1024), nullable=True),
        sa.Column("document_name", sa.String(length=256), nullable=True),
        sa.Column("include_cover_sheet", sa.Boolean(), nullable=False),
        sa.Column("cover_sheet_from_name", sa.String(length=256), nullable=True),
        sa.Column("cover_sheet_from_number", sa.String(length=32), nullable=True),
        sa.Column("cover_sheet_company_info", sa.Text(), nullable=True),
        sa.Column("cover_sheet_subject", sa.String(length=256), nullable=True),
        sa.Column("cover_sheet_message", sa.Text(), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_campaigns")),
    )
    op.create_index(op.f("ix_campaigns_status"), "campaigns", ["status"])
    op.create_index(op.f("ix_campaigns_created_at"), "campaigns", ["created_at"])

    op.create_table(
        "campaign_recipients",
        sa.Column("campaign_id", sa.Uuid(), nullable=False),
        sa.Column("referral_source_id", sa.Uuid(), nullable=False),
        sa.Column("status", recipient_status, nullable=False),
        sa.Column("fax_id", sa.String(length=128), nullable=True),
        sa.Column("sent_at", sa.DateTime(), nullable=True),
        sa.Column("response_at", sa.DateTime(), nullable=True),
        sa.Column("response", sa.JSON(), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(
            ["campaign_id"],
            ["campaigns.id"],
            name=op.f("fk_campaign_recipients_campaign_id_campaigns"),
            ondelete="CASCADE",
        ),
        sa.ForeignKeyConstraint(
            ["referral_source_id"],
            ["referral_sources.id"],
            name=op.f("fk_campaign_recipients_referral_source_id_referral_sources"),
            ondelete="CASCADE",
        ),
        sa.PrimaryKeyConstraint(
            "campaign_id", "referral_source_id", name=op.f("pk_campaign_recipients")
        ),
    )
    op.create_index(
        op.f("ix_campaign_recipients_referral_source_id"),
        "campaign_recipients",
        ["referral_source_id"],
    )
    op.create_index(op.f("ix_campaign_recipients_status"), "campaign_recipients", ["status"])
    op.create_index(op.f("ix_campaign_recipients_fax_id"), "campaign_recipients", ["fax_id"])


def downgrade() -> None:
    op.drop_table("campaign_recipients")
    op.drop_table("campaigns")
    op.drop_table("interactions")
    op.drop_table("referral_sources")
    op.drop_table("clinic_locations")
    for enum_type in (recipient_status, campaign_type, campaign_status, interaction_type):
        enum_type.drop(op.get_bind(), checkfirst=True)

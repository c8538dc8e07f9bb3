"""
referral_genie.fax_workflow.state

Typed state schema for a single fax delivery.
"""

from __future__ import annotations

from typing import Annotated, Any, TypedDict

from referral_genie.fax_workflow.reducers import append_log


class CoverSheet(TypedDict, total=False):
    include: bool
    from_name: str | None
    from_number: str | None
    company_info: str | None
    to_name: str | None
    subject: str | None
    message: str | None


class FaxDeliveryState(TypedDict, total=False):
    # Identifiers (used for logging only)
    campaign_id: str
    referral_source_id: str

    # Inputs
    to_number: str
    cover_sheet: CoverSheet
    document_name: str | None
    document_content: bytes | None
    document_content_type: str

    # Produced by nodes
    tmp_fax_params: dict[str, Any]
    tmp_fax_id: str
    fax_id: str
    send_response: dict[str, Any]

    delivery_log: Annotated[list[dict[str, Any]], append_log]


# --- Module Notes -----------------------------------------------------------
# `total=False` lets nodes return only the keys they produce; LangGraph merges them.

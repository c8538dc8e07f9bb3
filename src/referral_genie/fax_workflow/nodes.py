from __future__ import annotations

import secrets
import string
from typing import Any, Literal

from referral_genie.fax_workflow.state import FaxDeliveryState
from referral_genie.integrations.humble_fax import HumbleFaxClient
from referral_genie.integrations.phone import format_fax_number

DEFAULT_FROM_NAME = "Referral Genie"
DEFAULT_TO_NAME = "Provider"
DEFAULT_SUBJECT = "Referral Information"
DEFAULT_MESSAGE = "Please see the attached referral information."

_UUID_ALPHABET = string.ascii_lowercase + string.digits


def _log_entry(event: str, **details: Any) -> dict[str, Any]:
    return {"event": event, "details": details}


def _short_uuid() -> str:
    # HumbleFax caps the uuid field at 100 chars; a short random tag is enough to tell faxes apart.
    return "fax-" + "".join(secrets.choice(_UUID_ALPHABET) for _ in range(5))


def build_company_info(company_info: str | None, display_fax_number: str | None) -> str:
    info = company_info or ""
    if display_fax_number:
        return f"{info} | Fax: {display_fax_number}" if info else f"Fax: {display_fax_number}"
    return info


async def prepare_node(state: FaxDeliveryState, *, sender_number: str) -> dict[str, Any]:
    raw_number = str(state.get("to_number", "")).strip()
    if not raw_number:
        raise ValueError("Missing to_number")

    cover = state.get("cover_sheet", {})
    to_number = format_fax_number(raw_number) or raw_number
    display_number = format_fax_number(cover.get("from_number"))

    params: dict[str, Any] = {
        "recipients": [to_number],
        "includeCoversheet": bool(cover.get("include", False)),
        "fromName": cover.get("from_name") or DEFAULT_FROM_NAME,
        "toName": cover.get("to_name") or DEFAULT_TO_NAME,
        "subject": cover.get("subject") or DEFAULT_SUBJECT,
        "message": cover.get("message") or DEFAULT_MESSAGE,
        # The account can only send from its authorised number; the cover-sheet number is
        # displayed through companyInfo instead.
        "fromNumber": sender_number,
        "companyInfo": build_company_info(cover.get("company_info"), display_number),
        "pageSize": "Letter",
        "resolution": "Fine",
        "uuid": _short_uuid(),
    }
    return {
        "to_number": to_number,
        "tmp_fax_params": params,
        "delivery_log": [_log_entry("PREPARE", to_number=to_number, uuid=params["uuid"])],
    }


async def create_tmp_fax_node(
    state: FaxDeliveryState, *, client: HumbleFaxClient
) -> dict[str, Any]:
    tmp_fax_id = await client.create_tmp_fax(state["tmp_fax_params"])
    return {
        "tmp_fax_id": tmp_fax_id,
        "delivery_log": [_log_entry("TMP_FAX_CREATED", tmp_fax_id=tmp_fax_id)],
    }


def route_after_create(state: FaxDeliveryState) -> Literal["upload_attachment", "send_tmp_fax"]:
    if state.get("document_content"):
        return "upload_attachment"
    return "send_tmp_fax"


async def upload_attachment_node(
    state: FaxDeliveryState, *, client: HumbleFaxClient
) -> dict[str, Any]:
    name = state.get("document_name") or "document.pdf"
    content = state.get("document_content") or b""
    await client.upload_attachment(
        state["tmp_fax_id"],
        filename=name,
        content=content,
        content_type=state.get("document_content_type") or "application/pdf",
    )
    return {
        "delivery_log": [_log_entry("ATTACHMENT_UPLOADED", filename=name, size=len(content))],
    }


async def send_tmp_fax_node(state: FaxDeliveryState, *, client: HumbleFaxClient) -> dict[str, Any]:
    sent = await client.send_tmp_fax(state["tmp_fax_id"])
    return {
        "fax_id": sent.fax_id,
        "send_response": sent.raw,
        "delivery_log": [_log_entry("SENT", fax_id=sent.fax_id)],
    }

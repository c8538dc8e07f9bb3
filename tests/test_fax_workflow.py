"""
tests.test_fax_workflow

Delivery graph wiring and parameter building, with the fax client faked out.
"""

from __future__ import annotations

from typing import Any

import pytest

from referral_genie.fax_workflow.graph import build_fax_graph
from referral_genie.fax_workflow.nodes import build_company_info, prepare_node
from referral_genie.integrations.humble_fax import FaxApiError, SentFax


class RecordingClient:
    def __init__(self, *, fail_on: str | None = None) -> None:
        self.calls: list[tuple[str, Any]] = []
        self._fail_on = fail_on

    def _record(self, name: str, arg: Any) -> None:
        self.calls.append((name, arg))
        if name == self._fail_on:
            raise FaxApiError(f"{name} failed", status_code=500)

    async def create_tmp_fax(self, params: dict[str, Any]) -> str:
        self._record("create_tmp_fax", params)
        return "tmp-1"

    async def upload_attachment(self, tmp_fax_id: str, **kwargs: Any) -> dict[str, Any]:
        self._record("upload_attachment", kwargs["filename"])
        return {}

    async def send_tmp_fax(self, tmp_fax_id: str) -> SentFax:
        self._record("send_tmp_fax", tmp_fax_id)
        return SentFax(fax_id="sent-1", raw={"ok": True})


def test_build_company_info() -> None:
    assert build_company_info("Lee PT", "12155550199") == "Lee PT | Fax: 12155550199"
    assert build_company_info(None, "12155550199") == "Fax: 12155550199"
    assert build_company_info("Lee PT", None) == "Lee PT"
    assert build_company_info(None, None) == ""


@pytest.mark.asyncio
async def test_prepare_applies_defaults() -> None:
    update = await prepare_node(
        {"to_number": " (215) 555-0100 ", "cover_sheet": {}}, sender_number="19103974373"
    )
    params = update["tmp_fax_params"]
    assert update["to_number"] == "12155550100"
    assert params["recipients"] == ["12155550100"]
    assert params["fromName"] == "Referral Genie"
    assert params["toName"] == "Provider"
    assert params["fromNumber"] == "19103974373"
    assert params["companyInfo"] == ""
    assert update["delivery_log"][0]["event"] == "PREPARE"


@pytest.mark.asyncio
async def test_prepare_requires_destination() -> None:
    with pytest.raises(ValueError):
        await prepare_node({"to_number": "  "}, sender_number="1")


@pytest.mark.asyncio
async def test_graph_runs_create_upload_send() -> None:
    client = RecordingClient()
    graph = build_fax_graph(client=client, sender_number="19103974373")

    final = await graph.ainvoke(
        {
            "to_number": "2155550100",
            "cover_sheet": {"include": True, "from_name": "Lee PT"},
            "document_name": "flyer.pdf",
            "document_content": b"%PDF",
            "document_content_type": "application/pdf",
            "delivery_log": [],
        }
    )

    assert [name for name, _ in client.calls] == [
        "create_tmp_fax",
        "upload_attachment",
        "send_tmp_fax",
    ]
    assert final["fax_id"] == "sent-1"
    assert [e["event"] for e in final["delivery_log"]] == [
        "PREPARE",
        "TMP_FAX_CREATED",
        "ATTACHMENT_UPLOADED",
        "SENT",
    ]


@pytest.mark.asyncio
async def test_graph_skips_upload_without_document() -> None:
    client = RecordingClient()
    graph = build_fax_graph(client=client, sender_number="1")

    await graph.ainvoke({"to_number": "2155550100", "cover_sheet": {}, "delivery_log": []})
    assert [name for name, _ in client.calls] == ["create_tmp_fax", "send_tmp_fax"]


@pytest.mark.asyncio
async def test_graph_stops_at_first_failure() -> None:
    client = RecordingClient(fail_on="upload_attachment")
    graph = build_fax_graph(client=client, sender_number="1")

    with pytest.raises(FaxApiError, match="upload_attachment failed"):
        await graph.ainvoke(
            {
                "to_number": "2155550100",
                "cover_sheet": {},
                "document_content": b"%PDF",
                "delivery_log": [],
            }
        )
    assert [name for name, _ in client.calls] == ["create_tmp_fax", "upload_attachment"]

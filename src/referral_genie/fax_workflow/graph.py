"""
referral_genie.fax_workflow.graph

Assembles the per-recipient fax delivery graph.

    prepare -> create_tmp_fax -+-> upload_attachment -> send_tmp_fax -> END
                               +-------------------------^  (no document)

Any node may raise `FaxApiError`; the caller decides what a failed delivery means.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from typing import Any

from langgraph.graph import END, StateGraph

from referral_genie.fax_workflow.nodes import (
    create_tmp_fax_node,
    prepare_node,
    route_after_create,
    send_tmp_fax_node,
    upload_attachment_node,
)
from referral_genie.fax_workflow.state import FaxDeliveryState
from referral_genie.integrations.humble_fax import HumbleFaxClient

NodeFn = Callable[[FaxDeliveryState], Awaitable[dict[str, Any]]]


def build_fax_graph(*, client: HumbleFaxClient, sender_number: str):
    """
    Returns a compiled LangGraph runnable; `ainvoke(state)` yields the final state.
    """

    graph = StateGraph(FaxDeliveryState)

    graph.add_node("prepare", _bind(prepare_node, sender_number=sender_number))
    graph.add_node("create_tmp_fax", _bind(create_tmp_fax_node, client=client))
    graph.add_node("upload_attachment", _bind(upload_attachment_node, client=client))
    graph.add_node("send_tmp_fax", _bind(send_tmp_fax_node, client=client))

    graph.set_entry_point("prepare")
    graph.add_edge("prepare", "create_tmp_fax")
    graph.add_conditional_edges(
        "create_tmp_fax",
        route_after_create,
        {"upload_attachment": "upload_attachment", "send_tmp_fax": "send_tmp_fax"},
    )
    graph.add_edge("upload_attachment", "send_tmp_fax")
    graph.add_edge("send_tmp_fax", END)

    return graph.compile()


def _bind(fn: Callable[..., Awaitable[dict[str, Any]]], **bound: Any) -> NodeFn:
    async def _wrapped(state: FaxDeliveryState) -> dict[str, Any]:
        return await fn(state, **bound)

    return _wrapped

"""
referral_genie.fax_workflow.reducers

Reducers define how LangGraph merges partial state updates returned by nodes.
"""

from __future__ import annotations

from typing import Any


def append_log(
    left: list[dict[str, Any]] | None, right: list[dict[str, Any]] | None
) -> list[dict[str, Any]]:
    """
    Append-only reducer for delivery log entries.

    Nodes return `{"delivery_log": [entry]}` and this reducer concatenates it onto the history.
    """

    if not left:
        return list(right or [])
    if not right:
        return list(left)
    return [*left, *right]

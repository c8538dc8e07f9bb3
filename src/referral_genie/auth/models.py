"""
referral_genie.auth.models

Auth domain models.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class Principal:
    """
    Authenticated operator identity injected into CRM endpoints.
    """

    subject: str

"""
referral_genie.integrations.phone

Phone/fax number normalisation for the HumbleFax API.
"""

from __future__ import annotations

import re

_NON_DIGITS = re.compile(r"\D")


def format_fax_number(number: str | None) -> str | None:
    """
    Strip everything but digits and prefix the US country code to 10-digit numbers.

    >>> format_fax_number("(215) 555-0100")
    '12155550100'
    >>> format_fax_number("+1 215 555 0100")
    '12155550100'
    """

    if not number:
        return None
    cleaned = _NON_DIGITS.sub("", number)
    if len(cleaned) == 10:
        cleaned = "1" + cleaned
    return cleaned or None

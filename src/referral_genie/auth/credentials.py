"""
referral_genie.auth.credentials

Operator credential check.

The CRM has a single operator account configured through settings
(`RG_AUTH_USERNAME` / `RG_AUTH_PASSWORD`).
"""

from __future__ import annotations

import hmac

from referral_genie.settings import Settings


def verify_credentials(*, settings: Settings, username: str, password: str) -> bool:
    # Compare both fields even when the first mismatches so timing does not leak which one failed.
    user_ok = hmac.compare_digest(username.encode(), settings.auth_username.encode())
    pass_ok = hmac.compare_digest(password.encode(), settings.auth_password.encode())
    return user_ok and pass_ok

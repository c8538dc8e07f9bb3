"""
referral_genie.auth.deps

FastAPI dependency functions for authentication.

Responsibilities:
- Convert a bearer token into a typed `Principal`.
"""

from __future__ import annotations

from fastapi import Depends, HTTPException
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from starlette.status import HTTP_401_UNAUTHORIZED

from referral_genie.api.deps import settings_dep
from referral_genie.auth.jwt import JwtConfig, JwtValidationError, decode_and_validate
from referral_genie.auth.models import Principal
from referral_genie.settings import Settings

_bearer = HTTPBearer(auto_error=False)


def get_principal(
    creds: HTTPAuthorizationCredentials | None = Depends(_bearer),
    settings: Settings = Depends(settings_dep),
) -> Principal:
    if creds is None or not creds.credentials:
        raise HTTPException(
            status_code=HTTP_401_UNAUTHORIZED,
            detail="Missing bearer token",
            headers={"WWW-Authenticate": "Bearer"},
        )

    try:
        payload = decode_and_validate(
            cfg=JwtConfig.from_settings(settings), token=creds.credentials
        )
    except JwtValidationError as e:
        raise HTTPException(
            status_code=HTTP_401_UNAUTHORIZED,
            detail=f"Invalid token: {e}",
            headers={"WWW-Authenticate": "Bearer"},
        ) from e

    subject = str(payload.get("sub", ""))
    if not subject:
        raise HTTPException(status_code=HTTP_401_UNAUTHORIZED, detail="Invalid token subject")
    return Principal(subject=subject)


# --- Module Notes -----------------------------------------------------------
# Routers attach this at the router level (`dependencies=[Depends(get_principal)]`) and
# only take it as a parameter when they need the subject.

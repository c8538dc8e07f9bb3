"""
referral_genie.api.routers.auth

Operator login.

Responsibilities:
- Exchange the configured username/password for a signed bearer token.
- Report the subject of the current token (`/me`).
"""

from __future__ import annotations

from datetime import datetime, timedelta

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field
from starlette.status import HTTP_401_UNAUTHORIZED

from referral_genie.api.deps import settings_dep
from referral_genie.auth.credentials import verify_credentials
from referral_genie.auth.deps import get_principal
from referral_genie.auth.jwt import JwtConfig, issue_token
from referral_genie.auth.models import Principal
from referral_genie.observability.logging import get_logger
from referral_genie.settings import Settings

router = APIRouter(prefix="/v1/auth", tags=["auth"])

log = get_logger(__name__)


class LoginRequest(BaseModel):
    username: str = Field(min_length=1, max_length=256)
    password: str = Field(min_length=1, max_length=256)


class LoginResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    expires_at: datetime


class MeResponse(BaseModel):
    subject: str


@router.post("/login", response_model=LoginResponse)
async def login(body: LoginRequest, settings: Settings = Depends(settings_dep)) -> LoginResponse:
    if not verify_credentials(settings=settings, username=body.username, password=body.password):
        log.warning("login_failed", username=body.username)
        raise HTTPException(status_code=HTTP_401_UNAUTHORIZED, detail="Invalid credentials")

    issued = issue_token(
        cfg=JwtConfig.from_settings(settings),
        subject=body.username,
        ttl=timedelta(minutes=settings.session_ttl_minutes),
    )
    log.info("login_succeeded", username=body.username)
    return LoginResponse(access_token=issued.token, expires_at=issued.expires_at)


@router.get("/me", response_model=MeResponse)
async def me(principal: Principal = Depends(get_principal)) -> MeResponse:
    return MeResponse(subject=principal.subject)

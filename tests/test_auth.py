from __future__ import annotations

from datetime import timedelta

import httpx
import pytest

from referral_genie.auth.jwt import JwtConfig, JwtValidationError, decode_and_validate, issue_token
from referral_genie.settings import Settings


@pytest.mark.asyncio
async def test_login_issues_token_for_me(client: httpx.AsyncClient, settings: Settings) -> None:
    r = await client.post(
        "/v1/auth/login", json={"username": "admin", "password": "referralgenie2024"}
    )
    assert r.status_code == 200
    body = r.json()
    assert body["token_type"] == "bearer"

    payload = decode_and_validate(cfg=JwtConfig.from_settings(settings), token=body["access_token"])
    assert payload["sub"] == "admin"
    # 30-day session
    assert payload["exp"] - payload["iat"] == settings.session_ttl_minutes * 60

    r = await client.get(
        "/v1/auth/me", headers={"Authorization": f"Bearer {body['access_token']}"}
    )
    assert r.status_code == 200
    assert r.json() == {"subject": "admin"}


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "username,password",
    [("admin", "wrong"), ("someone", "referralgenie2024")],
)
async def test_login_rejects_bad_credentials(
    client: httpx.AsyncClient, username: str, password: str
) -> None:
    r = await client.post("/v1/auth/login", json={"username": username, "password": password})
    assert r.status_code == 401


@pytest.mark.asyncio
async def test_me_requires_valid_token(client: httpx.AsyncClient, settings: Settings) -> None:
    r = await client.get("/v1/auth/me")
    assert r.status_code == 401
    assert r.headers["www-authenticate"] == "Bearer"

    r = await client.get("/v1/auth/me", headers={"Authorization": "Bearer not-a-jwt"})
    assert r.status_code == 401

    other = JwtConfig(
        alg="HS256", issuer=settings.jwt_issuer, audience=settings.jwt_audience, secret="other"
    )
    forged = issue_token(cfg=other, subject="admin", ttl=timedelta(minutes=5)).token
    r = await client.get("/v1/auth/me", headers={"Authorization": f"Bearer {forged}"})
    assert r.status_code == 401


def test_expired_token_is_rejected(settings: Settings) -> None:
    cfg = JwtConfig.from_settings(settings)
    token = issue_token(cfg=cfg, subject="admin", ttl=timedelta(seconds=-60)).token
    with pytest.raises(JwtValidationError):
        decode_and_validate(cfg=cfg, token=token)

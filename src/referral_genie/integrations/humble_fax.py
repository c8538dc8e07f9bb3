"""
referral_genie.integrations.humble_fax

HTTP client boundary for the HumbleFax API.

Responsibilities:
- Authenticate every call with HTTP basic auth (API key / secret).
- Drive the temporary-fax lifecycle: create -> upload attachment -> send.
- Look up delivery status of sent faxes and check account connectivity.
- Turn transport failures and non-2xx responses into `FaxApiError`.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

import httpx

from referral_genie.observability.logging import get_logger
from referral_genie.settings import Settings

log = get_logger(__name__)


class FaxApiError(Exception):
    """
    A HumbleFax call failed. `status_code` is None when no HTTP response was received.
    """

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        details: Any = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.details = details

    def as_response(self) -> dict[str, Any]:
        return {"error": self.message, "status_code": self.status_code, "details": self.details}


@dataclass(frozen=True, slots=True)
class SentFax:
    fax_id: str
    raw: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True, slots=True)
class FaxStatus:
    # Provider status string, lower-cased ("delivered", "failed", "processing", ...).
    status: str
    raw: dict[str, Any] = field(default_factory=dict)


class HumbleFaxClient:
    def __init__(self, *, settings: Settings, http: httpx.AsyncClient) -> None:
        self._settings = settings
        self._http = http
        self._auth = httpx.BasicAuth(settings.humble_fax_api_key, settings.humble_fax_api_secret)

    async def create_tmp_fax(self, params: dict[str, Any]) -> str:
        body = await self._call("POST", "/tmpFax", json=params)
        tmp_fax = (body.get("data") or {}).get("tmpFax") or {}
        tmp_fax_id = tmp_fax.get("id")
        if tmp_fax_id is None:
            raise FaxApiError("Invalid API response format", details=body)
        log.info("fax_tmp_created", tmp_fax_id=str(tmp_fax_id))
        return str(tmp_fax_id)

    async def upload_attachment(
        self,
        tmp_fax_id: str,
        *,
        filename: str,
        content: bytes,
        content_type: str = "application/pdf",
    ) -> dict[str, Any]:
        try:
            body = await self._call(
                "POST",
                f"/attachment/{tmp_fax_id}",
                files={"file": (filename, content, content_type)},
            )
        except FaxApiError as e:
            if e.status_code == 404:
                raise FaxApiError(
                    "Attachment upload endpoint not found. The temporary fax may have expired.",
                    status_code=404,
                    details=e.details,
                ) from e
            raise
        log.info("fax_attachment_uploaded", tmp_fax_id=tmp_fax_id, size=len(content))
        return body

    async def send_tmp_fax(self, tmp_fax_id: str) -> SentFax:
        body = await self._call("POST", f"/tmpFax/{tmp_fax_id}/send", json={})
        sent = (body.get("data") or {}).get("sentFax") or {}
        # Only the sentFax id works for later status lookups; the rest are fallbacks.
        fax_id = sent.get("id") or body.get("faxId") or body.get("id") or tmp_fax_id
        log.info("fax_sent", tmp_fax_id=tmp_fax_id, fax_id=str(fax_id))
        return SentFax(fax_id=str(fax_id), raw=body)

    async def sent_fax_status(self, fax_id: str) -> FaxStatus:
        try:
            body = await self._call("GET", f"/sentFax/{fax_id}")
        except FaxApiError as e:
            if e.status_code == 404:
                # HumbleFax answers 404 until the sent fax record exists.
                return FaxStatus(status="processing")
            raise
        sent = (body.get("data") or {}).get("sentFax") or {}
        status = body.get("status") or sent.get("status") or "unknown"
        return FaxStatus(status=str(status).lower(), raw=body)

    async def account(self) -> dict[str, Any]:
        return await self._call("GET", "/account", timeout=10.0)

    async def _call(self, method: str, path: str, **kwargs: Any) -> dict[str, Any]:
        try:
            r = await self._http.request(method, path, auth=self._auth, **kwargs)
        except httpx.HTTPError as e:
            log.warning("fax_api_unreachable", method=method, path=path, error=str(e))
            raise FaxApiError(f"HumbleFax request failed: {e}") from e

        body = _json_or_none(r)
        if r.is_error:
            message = "Unknown error"
            if isinstance(body, dict) and body.get("error"):
                message = str(body["error"])
            log.warning(
                "fax_api_error",
                method=method,
                path=path,
                status_code=r.status_code,
                error=message,
            )
            raise FaxApiError(message, status_code=r.status_code, details=body or r.text)
        return body if isinstance(body, dict) else {}


def _json_or_none(r: httpx.Response) -> Any:
    if not r.content:
        return None
    try:
        return r.json()
    except ValueError:
        return None


# --- Module Notes -----------------------------------------------------------
# Calls are never retried here: the send workflow is best-effort per recipient and a
# retried `send` could fax the same document twice.

"""
referral_genie.services.documents

Storage for uploaded campaign documents.

Responsibilities:
- Save uploads under a collision-free name and hand back the public `/uploads/...` URL.
- Load a campaign document for faxing, from local storage or over HTTP.
"""

from __future__ import annotations

import asyncio
import mimetypes
import uuid
from dataclasses import dataclass
from pathlib import Path, PurePosixPath
from urllib.parse import urlsplit

import httpx

from referral_genie.observability.logging import get_logger

UPLOADS_URL_PREFIX = "/uploads/"

log = get_logger(__name__)


class DocumentUnavailableError(Exception):
    pass


@dataclass(frozen=True, slots=True)
class StoredDocument:
    url: str
    original_name: str
    size: int


@dataclass(frozen=True, slots=True)
class LoadedDocument:
    name: str
    content: bytes
    content_type: str


class DocumentStore:
    def __init__(self, *, uploads_dir: Path) -> None:
        self._dir = uploads_dir

    def ensure_dir(self) -> None:
        self._dir.mkdir(parents=True, exist_ok=True)

    async def save(self, *, original_name: str, content: bytes) -> StoredDocument:
        suffix = PurePosixPath(original_name).suffix
        stored_name = f"{uuid.uuid4()}{suffix}"
        self.ensure_dir()
        await asyncio.to_thread((self._dir / stored_name).write_bytes, content)
        log.info("document_stored", stored_name=stored_name, size=len(content))
        return StoredDocument(
            url=f"{UPLOADS_URL_PREFIX}{stored_name}",
            original_name=original_name,
            size=len(content),
        )

    def local_path(self, document_url: str) -> Path | None:
        """
        Map an `/uploads/<name>` path (or a URL with such a path) to a file in the uploads dir.
        Anything that would escape the uploads dir maps to None.
        """

        path = urlsplit(document_url).path
        if not path.startswith(UPLOADS_URL_PREFIX):
            return None
        name = path[len(UPLOADS_URL_PREFIX) :]
        if not name or "/" in name or name in (".", ".."):
            return None
        return self._dir / name

    async def load(self, document_url: str, *, http: httpx.AsyncClient) -> LoadedDocument:
        name = PurePosixPath(urlsplit(document_url).path).name or "document.pdf"
        content_type = mimetypes.guess_type(name)[0] or "application/pdf"

        if document_url.startswith(("http://", "https://")):
            try:
                r = await http.get(document_url, follow_redirects=True)
                r.raise_for_status()
                return LoadedDocument(name=name, content=r.content, content_type=content_type)
            except httpx.HTTPError as e:
                log.warning("document_download_failed", url=document_url, error=str(e))
                if self.local_path(document_url) is None:
                    raise DocumentUnavailableError(f"File not accessible: {document_url}") from e

        local = self.local_path(document_url)
        if local is None or not local.is_file():
            raise DocumentUnavailableError(f"File not accessible: {document_url}")
        content = await asyncio.to_thread(local.read_bytes)
        return LoadedDocument(name=name, content=content, content_type=content_type)

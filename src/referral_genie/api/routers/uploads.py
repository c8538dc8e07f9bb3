"""
referral_genie.api.routers.uploads

Campaign document uploads.

Responsibilities:
- Accept a multipart `file` and store it under a collision-free name.
- Return the public `/uploads/...` URL that campaigns reference as `document_url`.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, File, HTTPException, UploadFile
from pydantic import BaseModel
from starlette.status import HTTP_400_BAD_REQUEST

from referral_genie.api.deps import document_store
from referral_genie.auth.deps import get_principal
from referral_genie.services.documents import DocumentStore

router = APIRouter(prefix="/v1/uploads", tags=["uploads"], dependencies=[Depends(get_principal)])


class UploadResponse(BaseModel):
    success: bool = True
    url: str
    original_name: str
    size: int


@router.post("", response_model=UploadResponse)
async def upload_document(
    file: UploadFile | None = File(default=None),
    documents: DocumentStore = Depends(document_store),
) -> UploadResponse:
    if file is None or not file.filename:
        raise HTTPException(status_code=HTTP_400_BAD_REQUEST, detail="No file provided")
    content = await file.read()
    if not content:
        raise HTTPException(status_code=HTTP_400_BAD_REQUEST, detail="Uploaded file is empty")

    stored = await documents.save(original_name=file.filename, content=content)
    return UploadResponse(url=stored.url, original_name=stored.original_name, size=stored.size)

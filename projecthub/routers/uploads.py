from __future__ import annotations

from fastapi import APIRouter, Depends, File, HTTPException, Request, UploadFile

from projecthub.auth.deps import get_authenticated_user_sub
from projecthub.core.directus import DirectusError
from projecthub.core.settings import S
from projecthub.services.audit import audit_event
from projecthub.services.files import upload_file

router = APIRouter(prefix="/api/upload", tags=["uploads"])


@router.post("")
async def ui_upload(
    req: Request,
    file: UploadFile = File(...),
    user_sub: str = Depends(get_authenticated_user_sub),
):
    content = await file.read(S.upload_max_bytes + 1)
    try:
        row = upload_file(file.filename or "upload.bin", content, file.content_type)
    except DirectusError as exc:
        raise HTTPException(502, "Failed to upload file to Directus") from exc
    audit_event("file_upload", user_sub, req, file_id=row.get("id"), size=len(content))
    return row

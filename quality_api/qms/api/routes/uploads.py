from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, File, Form, UploadFile, status
from pydantic import BaseModel, Field

from qms.core.deps import get_current_active_user
from qms.core.errors import InvalidUploadError
from qms.db.models.security import User
from qms.services.storage import get_storage, upload_path

router = APIRouter(prefix="/uploads", tags=["Uploads"])


class UploadResult(BaseModel):
    url: str = Field(..., description="Public URL of the stored file")
    path: str = Field(..., description="Object path inside the store")


# PUBLIC_INTERFACE
@router.post(
    "",
    response_model=UploadResult,
    status_code=status.HTTP_201_CREATED,
    summary="Upload file",
    description="Store an image or attachment under <folder>/<timestamp>_<filename> and return its URL.",
)
async def upload_file(
    file: UploadFile = File(...),
    folder: Optional[str] = Form(None, description="Target folder, e.g. chat or signatures"),
    _: User = Depends(get_current_active_user),
) -> UploadResult:
    content = await file.read()
    if not content:
        raise InvalidUploadError("Uploaded file is empty")
    path = upload_path(folder, file.filename or "file")
    url = await get_storage().upload_file(content, path, file.content_type)
    return UploadResult(url=url, path=path)

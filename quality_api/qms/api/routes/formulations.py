from __future__ import annotations

from typing import List, Optional
from urllib.parse import quote

from fastapi import APIRouter, Depends, File, Form, Path, Response, UploadFile, status
from sqlalchemy.ext.asyncio import AsyncSession

from qms.core.deps import get_current_active_user, get_session, require_roles
from qms.core.roles import ADMINISTRATOR, PRODUCTION
from qms.db.models.security import User
from qms.schemas.common import DeleteResult
from qms.schemas.formulations import FormulationDetail, FormulationRead
from qms.services.formulations import FormulationService

router = APIRouter(prefix="/formulations", tags=["Formulations"])


# PUBLIC_INTERFACE
@router.get(
    "",
    response_model=List[FormulationRead],
    summary="List formulations",
)
async def list_formulations(
    _: User = Depends(get_current_active_user),
    session: AsyncSession = Depends(get_session),
) -> List[FormulationRead]:
    return [FormulationRead(**f) for f in await FormulationService(session).list_formulations()]


# PUBLIC_INTERFACE
@router.post(
    "",
    response_model=FormulationDetail,
    status_code=status.HTTP_201_CREATED,
    summary="Upload formulation",
    description=(
        "Upload an Excel workbook. Cell B1 is the item and B2 the product name. "
        "Pass an id to replace an existing formulation."
    ),
    dependencies=[Depends(require_roles(ADMINISTRATOR, PRODUCTION))],
)
async def upload_formulation(
    file: UploadFile = File(..., description="Excel workbook (.xlsx)"),
    formulation_id: Optional[str] = Form(None, alias="id"),
    session: AsyncSession = Depends(get_session),
) -> FormulationDetail:
    content = await file.read()
    saved = await FormulationService(session).save_upload(
        content, file.filename or "formulacion.xlsx", file.content_type, formulation_id=formulation_id
    )
    return FormulationDetail(**saved)


# PUBLIC_INTERFACE
@router.get(
    "/{formulation_id}",
    response_model=FormulationDetail,
    summary="Get formulation",
    description="Formulation with its parsed table (header row 4, body rows 5 onward).",
)
async def get_formulation(
    formulation_id: str = Path(...),
    _: User = Depends(get_current_active_user),
    session: AsyncSession = Depends(get_session),
) -> FormulationDetail:
    return FormulationDetail(**await FormulationService(session).get_formulation(formulation_id))


# PUBLIC_INTERFACE
@router.get(
    "/{formulation_id}/file",
    summary="Download formulation file",
    response_description="The original workbook",
)
async def download_formulation(
    formulation_id: str = Path(...),
    _: User = Depends(get_current_active_user),
    session: AsyncSession = Depends(get_session),
) -> Response:
    content, file_name, content_type = await FormulationService(session).file(formulation_id)
    headers = {"Content-Disposition": f"attachment; filename*=UTF-8''{quote(file_name)}"}
    return Response(content=content, media_type=content_type, headers=headers)


# PUBLIC_INTERFACE
@router.delete(
    "/{formulation_id}",
    response_model=DeleteResult,
    summary="Delete formulation",
    dependencies=[Depends(require_roles(ADMINISTRATOR, PRODUCTION))],
)
async def delete_formulation(
    formulation_id: str = Path(...),
    session: AsyncSession = Depends(get_session),
) -> DeleteResult:
    return DeleteResult(deleted=int(await FormulationService(session).delete_formulation(formulation_id)))

from __future__ import annotations

from typing import Any, Dict, List, Literal, Optional

from fastapi import APIRouter, Body, Depends, Path, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from qms.core.deps import get_current_active_user, get_session, require_roles
from qms.core.roles import ADMINISTRATOR, PRODUCTION, QUALITY
from qms.db.models.security import User
from qms.schemas.common import BulkDelete, DeleteResult
from qms.schemas.quality import (
    ArchiveResult,
    FlowStatusRead,
    OverrideResult,
    PccTabRead,
    PrintSection,
    QualityFormRead,
    StatusUpdate,
)
from qms.services.catalog import QUALITY_FORMS, get_quality_form
from qms.services.quality import QualityService
from qms.services.quality_flow import QualityFlowService

router = APIRouter(prefix="/quality", tags=["Quality"])
pcc_router = APIRouter(prefix="/pcc", tags=["Quality"])

FlowType = Literal["powder", "liquid"]


# PUBLIC_INTERFACE
@router.get(
    "/forms",
    response_model=List[QualityFormRead],
    summary="List quality forms",
    description="Catalog of quality form types with their collection, route and flow.",
)
async def list_forms(_: User = Depends(get_current_active_user)) -> List[QualityFormRead]:
    return [QualityFormRead(**f.model_dump()) for f in QUALITY_FORMS.values()]


# PUBLIC_INTERFACE
@router.get(
    "/forms/{form_type}/template",
    response_model=Dict[str, Any],
    summary="New record template",
    description="Defaults for a new record of the form, prefilled with the current user and the active production context.",
)
async def record_template(
    form_type: str = Path(..., description="Form type key"),
    user: User = Depends(get_current_active_user),
    session: AsyncSession = Depends(get_session),
) -> Dict[str, Any]:
    return await QualityService(session).new_record_template(form_type, user)


# PUBLIC_INTERFACE
@router.get(
    "/forms/{form_type}/records",
    response_model=List[Dict[str, Any]],
    summary="List records",
    description="Records of the form, newest first, each with a computed statusIcon.",
)
async def list_records(
    form_type: str = Path(..., description="Form type key"),
    date: Optional[str] = Query(None, description="Exact date filter (YYYY-MM-DD)"),
    active_only: bool = Query(False, description="Only records not yet archived into a cycle"),
    _: User = Depends(get_current_active_user),
    session: AsyncSession = Depends(get_session),
) -> List[Dict[str, Any]]:
    return await QualityService(session).list_records(form_type, date=date, active_only=active_only)


# PUBLIC_INTERFACE
@router.get(
    "/forms/{form_type}/records/{record_id}",
    response_model=Dict[str, Any],
    summary="Get record",
)
async def get_record(
    form_type: str = Path(...),
    record_id: str = Path(...),
    _: User = Depends(get_current_active_user),
    session: AsyncSession = Depends(get_session),
) -> Dict[str, Any]:
    return await QualityService(session).get_record(form_type, record_id)


# PUBLIC_INTERFACE
@router.post(
    "/forms/{form_type}/records",
    response_model=Dict[str, Any],
    status_code=status.HTTP_201_CREATED,
    summary="Create record",
)
async def create_record(
    form_type: str = Path(...),
    data: Dict[str, Any] = Body(..., description="Record fields"),
    user: User = Depends(require_roles(ADMINISTRATOR, QUALITY, PRODUCTION)),
    session: AsyncSession = Depends(get_session),
) -> Dict[str, Any]:
    return await QualityService(session).create_record(form_type, data, user)


# PUBLIC_INTERFACE
@router.put(
    "/forms/{form_type}/records/{record_id}",
    response_model=Dict[str, Any],
    summary="Edit record",
    description="Merge the given fields into the record.",
)
async def update_record(
    form_type: str = Path(...),
    record_id: str = Path(...),
    data: Dict[str, Any] = Body(...),
    user: User = Depends(require_roles(ADMINISTRATOR, QUALITY)),
    session: AsyncSession = Depends(get_session),
) -> Dict[str, Any]:
    return await QualityService(session).update_record(form_type, record_id, data, user)


# PUBLIC_INTERFACE
@router.patch(
    "/forms/{form_type}/records/{record_id}/status",
    response_model=Dict[str, Any],
    summary="Set record status",
    description="Sets both status and result. Approving an attribute release notifies the administrators.",
)
async def set_record_status(
    payload: StatusUpdate,
    form_type: str = Path(...),
    record_id: str = Path(...),
    user: User = Depends(require_roles(ADMINISTRATOR, QUALITY)),
    session: AsyncSession = Depends(get_session),
) -> Dict[str, Any]:
    return await QualityService(session).set_status(form_type, record_id, payload.status, user)


# PUBLIC_INTERFACE
@router.delete(
    "/forms/{form_type}/records/{record_id}",
    response_model=DeleteResult,
    summary="Delete record",
    dependencies=[Depends(require_roles(ADMINISTRATOR))],
)
async def delete_record(
    form_type: str = Path(...),
    record_id: str = Path(...),
    session: AsyncSession = Depends(get_session),
) -> DeleteResult:
    deleted = await QualityService(session).delete_record(form_type, record_id)
    return DeleteResult(deleted=int(deleted))


# PUBLIC_INTERFACE
@router.delete(
    "/forms/{form_type}/records",
    response_model=DeleteResult,
    summary="Delete records",
    description="Delete several records of the form by id.",
    dependencies=[Depends(require_roles(ADMINISTRATOR))],
)
async def delete_records(
    payload: BulkDelete,
    form_type: str = Path(...),
    session: AsyncSession = Depends(get_session),
) -> DeleteResult:
    get_quality_form(form_type)
    return DeleteResult(deleted=await QualityService(session).delete_records(form_type, payload.ids))


# PUBLIC_INTERFACE
@router.get(
    "/flow/{flow}",
    response_model=FlowStatusRead,
    summary="Quality flow status",
    description="Lock state of each module of the powder or liquid control flow.",
)
async def flow_status(
    flow: FlowType = Path(...),
    _: User = Depends(get_current_active_user),
    session: AsyncSession = Depends(get_session),
) -> FlowStatusRead:
    return FlowStatusRead(**await QualityFlowService(session).flow_status(flow))


# PUBLIC_INTERFACE
@router.post(
    "/flow/modules/{module_id}/override",
    response_model=OverrideResult,
    summary="Toggle manual unlock",
    description="Unlock a flow module manually, or return it to the automatic sequence.",
)
async def toggle_override(
    module_id: str = Path(...),
    user: User = Depends(require_roles(ADMINISTRATOR)),
    session: AsyncSession = Depends(get_session),
) -> OverrideResult:
    return OverrideResult(**await QualityFlowService(session).toggle_override(module_id, user))


# PUBLIC_INTERFACE
@router.post(
    "/flow/{flow}/archive",
    response_model=ArchiveResult,
    summary="Archive cycle",
    description="Archive the flow's active records into a new cycle and start a fresh one.",
)
async def archive_cycle(
    flow: FlowType = Path(...),
    user: User = Depends(require_roles(ADMINISTRATOR)),
    session: AsyncSession = Depends(get_session),
) -> ArchiveResult:
    return ArchiveResult(**await QualityFlowService(session).archive_cycle(flow, user))


# PUBLIC_INTERFACE
@router.get(
    "/print-cycle",
    response_model=List[PrintSection],
    summary="Printable cycle",
    description="Active records of every print module, in print order.",
)
async def print_cycle(
    _: User = Depends(get_current_active_user),
    session: AsyncSession = Depends(get_session),
) -> List[PrintSection]:
    return [PrintSection(**s) for s in await QualityFlowService(session).print_cycle()]


# PUBLIC_INTERFACE
@pcc_router.get(
    "/tabs",
    response_model=List[PccTabRead],
    summary="PCC tabs",
    description="Lock state of the PCC tabs for the current user.",
)
async def pcc_tabs(
    user: User = Depends(get_current_active_user),
    session: AsyncSession = Depends(get_session),
) -> List[PccTabRead]:
    return [PccTabRead(**t) for t in await QualityFlowService(session).pcc_tabs(user)]

from __future__ import annotations

from typing import Any, Dict, List, Literal, Optional

from fastapi import APIRouter, Body, Depends, Path, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from qms.core.deps import get_current_active_user, get_session, require_roles
from qms.core.roles import ADMINISTRATOR, QUALITY
from qms.db.models.security import User
from qms.schemas.common import BulkDelete, DeleteResult
from qms.schemas.production import ItemPage, LotStatusUpdate, NextInQueue, QueueOrder
from qms.services.production import ProductionService

router = APIRouter(prefix="/production", tags=["Production"])

LotType = Literal["powder", "liquid"]


# PUBLIC_INTERFACE
@router.get(
    "/lots",
    response_model=List[Dict[str, Any]],
    summary="List production lots",
    description="Production lots filtered by type, item, status or date; newest first.",
)
async def list_lots(
    type: Optional[LotType] = Query(None, description="powder | liquid"),
    item: Optional[str] = Query(None),
    status_filter: Optional[str] = Query(None, alias="status"),
    date: Optional[str] = Query(None, description="Exact date (YYYY-MM-DD)"),
    _: User = Depends(get_current_active_user),
    session: AsyncSession = Depends(get_session),
) -> List[Dict[str, Any]]:
    return await ProductionService(session).list_lots(lot_type=type, item=item, status=status_filter, date=date)


# PUBLIC_INTERFACE
@router.get(
    "/lots/{lot_id}",
    response_model=Dict[str, Any],
    summary="Get production lot",
)
async def get_lot(
    lot_id: str = Path(...),
    _: User = Depends(get_current_active_user),
    session: AsyncSession = Depends(get_session),
) -> Dict[str, Any]:
    return await ProductionService(session).get_lot(lot_id)


# PUBLIC_INTERFACE
@router.get(
    "/items/{item}",
    response_model=ItemPage,
    summary="Item lots",
    description="All lots of an item in queue order, with product name and type.",
)
async def item_page(
    item: str = Path(...),
    _: User = Depends(get_current_active_user),
    session: AsyncSession = Depends(get_session),
) -> ItemPage:
    return ItemPage(**await ProductionService(session).item_page(item))


# PUBLIC_INTERFACE
@router.get(
    "/template",
    response_model=Dict[str, Any],
    summary="New lot template",
    description="Defaults for a new lot; with clone_from, the recipe of an existing lot is copied.",
)
async def lot_template(
    type: LotType = Query("powder"),
    clone_from: Optional[str] = Query(None, description="Lot id to clone"),
    user: User = Depends(get_current_active_user),
    session: AsyncSession = Depends(get_session),
) -> Dict[str, Any]:
    return await ProductionService(session).template(type, user, clone_from=clone_from)


# PUBLIC_INTERFACE
@router.post(
    "/lots",
    response_model=Dict[str, Any],
    status_code=status.HTTP_201_CREATED,
    summary="Create production lot",
    description="Create a lot; everyone is notified. Powder lots get their performance computed.",
)
async def create_lot(
    data: Dict[str, Any] = Body(...),
    user: User = Depends(require_roles(ADMINISTRATOR)),
    session: AsyncSession = Depends(get_session),
) -> Dict[str, Any]:
    return await ProductionService(session).create_lot(data, user)


# PUBLIC_INTERFACE
@router.put(
    "/lots/{lot_id}",
    response_model=Dict[str, Any],
    summary="Update production lot",
    dependencies=[Depends(require_roles(ADMINISTRATOR))],
)
async def update_lot(
    lot_id: str = Path(...),
    data: Dict[str, Any] = Body(...),
    session: AsyncSession = Depends(get_session),
) -> Dict[str, Any]:
    return await ProductionService(session).update_lot(lot_id, data)


# PUBLIC_INTERFACE
@router.patch(
    "/lots/{lot_id}/status",
    response_model=Dict[str, Any],
    summary="Set lot status",
    description="Completing a lot notifies Production of the next lot of the same item.",
    dependencies=[Depends(require_roles(ADMINISTRATOR, QUALITY))],
)
async def set_lot_status(
    payload: LotStatusUpdate,
    lot_id: str = Path(...),
    session: AsyncSession = Depends(get_session),
) -> Dict[str, Any]:
    return await ProductionService(session).set_status(lot_id, payload.status)


# PUBLIC_INTERFACE
@router.delete(
    "/lots/{lot_id}",
    response_model=DeleteResult,
    summary="Delete production lot",
    dependencies=[Depends(require_roles(ADMINISTRATOR))],
)
async def delete_lot(
    lot_id: str = Path(...),
    session: AsyncSession = Depends(get_session),
) -> DeleteResult:
    return DeleteResult(deleted=int(await ProductionService(session).delete_lot(lot_id)))


# PUBLIC_INTERFACE
@router.delete(
    "/lots",
    response_model=DeleteResult,
    summary="Delete production lots",
    dependencies=[Depends(require_roles(ADMINISTRATOR))],
)
async def delete_lots(
    payload: BulkDelete,
    session: AsyncSession = Depends(get_session),
) -> DeleteResult:
    return DeleteResult(deleted=await ProductionService(session).delete_lots(payload.ids))


# PUBLIC_INTERFACE
@router.get(
    "/queue",
    response_model=List[Dict[str, Any]],
    summary="Production queue",
    description="Queued lots that are not completed, in priority order.",
)
async def get_queue(
    type: Optional[LotType] = Query(None),
    _: User = Depends(get_current_active_user),
    session: AsyncSession = Depends(get_session),
) -> List[Dict[str, Any]]:
    return await ProductionService(session).queue(type)


# PUBLIC_INTERFACE
@router.get(
    "/queue/next",
    response_model=NextInQueue,
    summary="Next lot per type",
)
async def get_next_in_queue(
    _: User = Depends(get_current_active_user),
    session: AsyncSession = Depends(get_session),
) -> NextInQueue:
    return NextInQueue(**await ProductionService(session).next_in_queue())


# PUBLIC_INTERFACE
@router.post(
    "/queue",
    response_model=List[Dict[str, Any]],
    summary="Save queue order",
    description="Assign productionOrder 1..n following the given ids; unknown ids are skipped.",
    dependencies=[Depends(require_roles(ADMINISTRATOR))],
)
async def save_queue(
    payload: QueueOrder,
    session: AsyncSession = Depends(get_session),
) -> List[Dict[str, Any]]:
    return await ProductionService(session).save_queue_order(payload.ids)

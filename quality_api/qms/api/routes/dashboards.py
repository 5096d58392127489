from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from qms.core import roles
from qms.core.deps import get_current_active_user, get_session, require_roles
from qms.db.models.security import User
from qms.schemas.dashboards import AdministratorDashboard, DashboardLink, QualityDashboard
from qms.schemas.production import ProductionDashboard
from qms.services.dashboards import DashboardService

router = APIRouter(prefix="/dashboard", tags=["Dashboards"])


# PUBLIC_INTERFACE
@router.get(
    "",
    response_model=DashboardLink,
    summary="Home dashboard",
    description="The dashboard route of the caller's role.",
)
async def home_dashboard(user: User = Depends(get_current_active_user)) -> DashboardLink:
    return DashboardLink(path=roles.dashboard_path(user.role), role=user.role)


# PUBLIC_INTERFACE
@router.get(
    "/production",
    response_model=ProductionDashboard,
    summary="Production dashboard",
    description="Queue, lots completed today, average performance and next lot per type.",
)
async def production_dashboard(
    _: User = Depends(get_current_active_user),
    session: AsyncSession = Depends(get_session),
) -> ProductionDashboard:
    return ProductionDashboard(**await DashboardService(session).production())


# PUBLIC_INTERFACE
@router.get(
    "/quality",
    response_model=QualityDashboard,
    summary="Quality dashboard",
)
async def quality_dashboard(
    _: User = Depends(get_current_active_user),
    session: AsyncSession = Depends(get_session),
) -> QualityDashboard:
    return QualityDashboard(**await DashboardService(session).quality())


# PUBLIC_INTERFACE
@router.get(
    "/administrator",
    response_model=AdministratorDashboard,
    summary="Administrator dashboard",
    description="Plant-wide counters, activity by module and the latest monitored records.",
    dependencies=[Depends(require_roles(roles.ADMINISTRATOR))],
)
async def administrator_dashboard(session: AsyncSession = Depends(get_session)) -> AdministratorDashboard:
    return AdministratorDashboard(**await DashboardService(session).administrator())

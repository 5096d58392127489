from __future__ import annotations

import logging
import time
from typing import Any, Dict, List, Mapping, Sequence, Set

from sqlalchemy.ext.asyncio import AsyncSession

from qms.core import roles
from qms.db.models.security import User
from qms.services.base import BaseService
from qms.services.catalog import (
    MODULE_OVERRIDES_COLLECTION,
    PCC_APPROVAL_STATUSES,
    PCC_TABS,
    PRINT_MODULES,
    FlowModule,
    flow_collections,
    flow_modules,
    get_flow_module,
)
from qms.services.notifications import NotificationService
from qms.services.status import is_record_approved, record_status, with_status_icon

logger = logging.getLogger(__name__)

LOCKED = "locked"
UNLOCKED = "unlocked"
COMPLETED_AND_LOCKED = "completed_and_locked"
COMPLETED = "completed"


def _module_approved(module: FlowModule, active: Mapping[str, Sequence[Dict[str, Any]]]) -> bool:
    records = [(name, r) for name in module.collection_names for r in active.get(name, [])]
    if not records:
        return False
    return all(is_record_approved(r, name) for name, r in records)


# PUBLIC_INTERFACE
def compute_flow_statuses(
    modules: Sequence[FlowModule],
    active: Mapping[str, Sequence[Dict[str, Any]]],
    overrides: Set[str],
) -> Dict[str, Any]:
    """
    Lock state of each module of a flow.

    Modules before the first unapproved one are completed, the first
    unapproved one is open and the rest wait. An override always opens a
    module. The cycle is complete when every module is approved and there is
    at least one active record.

    Parameters:
        modules: flow modules in control order
        active: collection name -> active (not archived) records
        overrides: ids of manually unlocked modules
    Returns:
        {"modules": [...], "cycleComplete": bool}
    """
    approved = [_module_approved(m, active) for m in modules]
    has_active = any(active.get(name) for m in modules for name in m.collection_names)
    first_incomplete = next((i for i, ok in enumerate(approved) if not ok), -1)

    cycle_complete = False
    if first_incomplete == -1:
        if has_active:
            cycle_complete = True
        else:
            first_incomplete = 0

    result: List[Dict[str, Any]] = []
    for index, module in enumerate(modules):
        if module.id in overrides:
            status = UNLOCKED
        elif first_incomplete == -1 or index < first_incomplete:
            status = COMPLETED_AND_LOCKED
        elif index == first_incomplete:
            status = UNLOCKED
        else:
            status = LOCKED
        result.append({**module.model_dump(), "isApproved": approved[index], "status": status})
    return {"modules": result, "cycleComplete": cycle_complete}


# PUBLIC_INTERFACE
def compute_pcc_tabs(records: Mapping[str, Sequence[Dict[str, Any]]], is_admin: bool) -> List[Dict[str, Any]]:
    """
    Lock state of the PCC tabs.

    Administrators see every tab open. Otherwise tabs open in order: a tab
    whose records are all conforming is completed, and only the first
    unfinished tab is open.
    """
    tabs: List[Dict[str, Any]] = []
    unlocked_seen = False
    for tab in PCC_TABS:
        entry = tab.model_dump()
        if is_admin:
            tabs.append({**entry, "status": UNLOCKED})
            continue
        tab_records = records.get(tab.collection_name, [])
        if tab_records and all(record_status(r) in PCC_APPROVAL_STATUSES for r in tab_records):
            status = COMPLETED
        elif not unlocked_seen:
            status = UNLOCKED
            unlocked_seen = True
        else:
            status = LOCKED
        tabs.append({**entry, "status": status})
    if tabs and not any(t["status"] == UNLOCKED for t in tabs):
        tabs[0]["status"] = UNLOCKED
    return tabs


class QualityFlowService(BaseService):
    """Sequential quality flows, manual overrides and production cycles."""

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session)
        self.notifications = NotificationService(session)

    async def _active_records(self, collections: Sequence[str]) -> Dict[str, List[Dict[str, Any]]]:
        return {name: await self.documents.get_all_active(name) for name in dict.fromkeys(collections)}

    async def _overrides(self) -> Set[str]:
        return {o["id"] for o in await self.documents.get_all(MODULE_OVERRIDES_COLLECTION)}

    # PUBLIC_INTERFACE
    async def flow_status(self, flow: str) -> Dict[str, Any]:
        modules = flow_modules(flow)
        active = await self._active_records(flow_collections(flow))
        statuses = compute_flow_statuses(modules, active, await self._overrides())
        return {"flow": flow, **statuses}

    # PUBLIC_INTERFACE
    async def toggle_override(self, module_id: str, user: User) -> Dict[str, Any]:
        """
        Manually unlock a module, or return it to the automatic sequence if it
        was already unlocked. Everyone is notified either way.
        """
        module = get_flow_module(module_id)
        existing = await self.documents.get_by_id(MODULE_OVERRIDES_COLLECTION, module.id)
        if existing:
            await self.documents.remove(MODULE_OVERRIDES_COLLECTION, module.id)
            overridden = False
            title = "Control Automático Restaurado"
            message = f'El módulo "{module.title}" vuelve a seguir la secuencia.'
        else:
            await self.documents.add_or_update(MODULE_OVERRIDES_COLLECTION, {"id": module.id, "status": UNLOCKED})
            overridden = True
            title = "Módulo Desbloqueado Manualmente"
            message = f'"{module.title}" ha sido desbloqueado para todos los roles.'
        logger.info("Override for module %s set to %s by %s", module.id, overridden, user.id)
        await self.notifications.notify_safely(
            title=title, message=message, sender_id=user.id, sender_name=user.name, recipient=roles.EVERYONE
        )
        return {"moduleId": module.id, "overridden": overridden}

    # PUBLIC_INTERFACE
    async def archive_cycle(self, flow: str, user: User) -> Dict[str, Any]:
        """Close the flow's current cycle by stamping a new cycle id on its active records."""
        cycle_id = f"cycle-{flow}-{int(time.time() * 1000)}"
        archived = await self.documents.archive_quality_records(flow_collections(flow), cycle_id)
        await self.notifications.notify_safely(
            title=f"Nuevo Ciclo de Calidad ({flow}) Iniciado",
            message="El ciclo anterior ha sido completado y archivado.",
            sender_id=user.id,
            sender_name=roles.SYSTEM_SENDER_NAME,
            recipient=roles.ADMINISTRATOR,
        )
        return {"cycleId": cycle_id, "archived": archived}

    # PUBLIC_INTERFACE
    async def print_cycle(self) -> List[Dict[str, Any]]:
        """Active records grouped by print module, in print order; empty modules are left out."""
        sections: List[Dict[str, Any]] = []
        for module in PRINT_MODULES:
            records: List[Dict[str, Any]] = []
            for name in module.collection_names:
                for record in await self.documents.get_all_active(name):
                    if module.production_type and record.get("type") != module.production_type:
                        continue
                    records.append({**with_status_icon(record), "collectionName": name})
            if records:
                sections.append({"id": module.id, "title": module.title, "records": records})
        return sections

    # PUBLIC_INTERFACE
    async def pcc_tabs(self, user: User) -> List[Dict[str, Any]]:
        records = {tab.collection_name: await self.documents.get_all(tab.collection_name) for tab in PCC_TABS}
        return compute_pcc_tabs(records, user.role == roles.ADMINISTRATOR)

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Sequence

from sqlalchemy.ext.asyncio import AsyncSession

from qms.core import roles
from qms.core.errors import NotFoundError
from qms.db.models.security import User
from qms.services.base import BaseService, now_hhmm, today_iso
from qms.services.catalog import QualityForm, form_template, get_quality_form
from qms.services.notifications import NotificationService
from qms.services.production import PRODUCTION_COLLECTION, sort_by_priority
from qms.services.status import with_status_icon

logger = logging.getLogger(__name__)

VERIFIED_STATUS = "Verificado"
PENDING_STATUS = "Pendiente"
COMPLETED_STATUS = "Completado"


def sort_by_date_desc(records: Sequence[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """Newest first by ISO ``date``; records without a date go last."""
    return sorted(records, key=lambda r: str(r.get("date") or ""), reverse=True)


def _responsible(user: User, with_role: bool = True) -> Dict[str, Any]:
    person = {"name": user.name, "id": user.id}
    if with_role:
        person["role"] = user.role
    return person


def hygiene_prefill(lots: Sequence[Dict[str, Any]], flow: str) -> Dict[str, Any]:
    """
    Product fields for a new hygiene log, taken from the production queue.

    The current lot is the first queued lot of the flow that is not completed;
    the lot queued right before it is reported as the last one fabricated.
    """
    queue = sort_by_priority([lot for lot in lots if lot.get("type") == flow])
    for index, lot in enumerate(queue):
        if lot.get("productionOrder") is None or lot.get("status") == COMPLETED_STATUS:
            continue
        previous = queue[index - 1] if index > 0 else None
        return {
            "product": lot.get("product", ""),
            "lot": lot.get("lot", ""),
            "item": lot.get("item", ""),
            "charge": lot.get("carga", ""),
            "client": lot.get("cliente", ""),
            "order": lot.get("orden", ""),
            "lastFabricationProduct": f"{previous.get('item', '')} - {previous.get('product', '')}" if previous else "",
            "lastFabricationLot": previous.get("lot", "") if previous else "",
        }
    return {}


class QualityService(BaseService):
    """Generic list/detail/form operations over the quality form collections."""

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session)
        self.notifications = NotificationService(session)

    # PUBLIC_INTERFACE
    async def list_records(
        self, form_type: str, date: Optional[str] = None, active_only: bool = False
    ) -> List[Dict[str, Any]]:
        """
        Records of a form, newest first, each with its statusIcon.

        Parameters:
            form_type: catalog key of the form
            date: keep only records whose ``date`` equals this YYYY-MM-DD value
            active_only: skip records already archived into a cycle
        """
        form = get_quality_form(form_type)
        if active_only:
            records = await self.documents.get_all_active(form.collection)
        else:
            records = await self.documents.get_all(form.collection)
        if date:
            records = [r for r in records if r.get("date") == date]
        return [with_status_icon(r) for r in sort_by_date_desc(records)]

    # PUBLIC_INTERFACE
    async def get_record(self, form_type: str, record_id: str) -> Dict[str, Any]:
        form = get_quality_form(form_type)
        record = await self.documents.get_by_id(form.collection, record_id)
        if record is None:
            raise NotFoundError(f"Record '{record_id}' not found in {form.title}")
        return with_status_icon(record)

    # PUBLIC_INTERFACE
    async def new_record_template(self, form_type: str, user: User) -> Dict[str, Any]:
        """Defaults for a new record of the form, prefilled for the given user."""
        form = get_quality_form(form_type)
        today = today_iso()
        if form.is_hygiene:
            return await self._hygiene_template(form, user, today)

        template: Dict[str, Any] = {
            "date": today,
            "responsible": _responsible(user, with_role=form_type != "in-process-liquids"),
            "signature": "",
            "status": PENDING_STATUS,
        }
        hygiene_log = await self._latest_hygiene_log(form)
        if hygiene_log:
            template.update(
                {
                    "hygieneLogId": hygiene_log["id"],
                    "product": hygiene_log.get("product", ""),
                    "lot": hygiene_log.get("lot", ""),
                    "item": hygiene_log.get("item", ""),
                    "client": hygiene_log.get("client", ""),
                    "order": hygiene_log.get("order", ""),
                }
            )
        template.update(form_template(form_type, user.name, today, now_hhmm()))
        return template

    async def _hygiene_template(self, form: QualityForm, user: User, today: str) -> Dict[str, Any]:
        template: Dict[str, Any] = {
            "date": today,
            "startTime": now_hhmm(),
            "status": PENDING_STATUS,
            "responsible": _responsible(user),
            "signature": "",
            "product": "",
            "lot": "",
            "charge": "",
            "client": "",
            "order": "",
            "allergen": "NO",
        }
        lots = await self.documents.get_all(PRODUCTION_COLLECTION)
        template.update(hygiene_prefill(lots, "liquid" if form.is_liquids else "powder"))
        return template

    async def _latest_hygiene_log(self, form: QualityForm) -> Optional[Dict[str, Any]]:
        collection = "hygiene_liquids" if form.is_liquids else "hygiene"
        logs = sort_by_date_desc(await self.documents.get_all_active(collection))
        return logs[0] if logs else None

    # PUBLIC_INTERFACE
    async def create_record(self, form_type: str, data: Dict[str, Any], user: User) -> Dict[str, Any]:
        """Store a new record; new hygiene logs notify Quality and Administrator."""
        form = get_quality_form(form_type)
        payload = {k: v for k, v in data.items() if k not in ("id", "statusIcon")}
        if form.is_hygiene:
            payload = self._apply_verifier(payload, None, user)
        saved = await self.documents.add_or_update(form.collection, payload)
        logger.info("Created %s record %s", form.collection, saved["id"])
        if form.is_hygiene:
            await self._notify_hygiene_created(form, saved, user)
        return with_status_icon(saved)

    # PUBLIC_INTERFACE
    async def update_record(
        self, form_type: str, record_id: str, data: Dict[str, Any], user: User
    ) -> Dict[str, Any]:
        """Merge changes into a record, keeping its cycle unless one is given."""
        form = get_quality_form(form_type)
        existing = await self.documents.get_by_id(form.collection, record_id)
        if existing is None:
            raise NotFoundError(f"Record '{record_id}' not found in {form.title}")
        payload = {k: v for k, v in data.items() if k != "statusIcon"}
        payload["id"] = record_id
        if "cycleId" not in payload:
            payload["cycleId"] = existing.get("cycleId")
        if form.is_hygiene:
            payload = self._apply_verifier(payload, existing, user)
        saved = await self.documents.add_or_update(form.collection, payload)
        return with_status_icon(saved)

    @staticmethod
    def _apply_verifier(payload: Dict[str, Any], existing: Optional[Dict[str, Any]], user: User) -> Dict[str, Any]:
        status = payload.get("status", (existing or {}).get("status"))
        if status == VERIFIED_STATUS:
            verifier = payload.get("verifier") or (existing or {}).get("verifier")
            payload["verifier"] = verifier or _responsible(user)
        else:
            payload["verifier"] = None
        return payload

    async def _notify_hygiene_created(self, form: QualityForm, record: Dict[str, Any], user: User) -> None:
        label = "Líquidos" if form.is_liquids else "Polvos"
        product = record.get("product", "")
        await self.notifications.notify_safely(
            title=f"Limpieza Pendiente ({label})",
            message=f'La limpieza para "{product}" (Lote: {record.get("lot", "")}) requiere verificación.',
            sender_id=user.id,
            sender_name=user.name,
            recipient=roles.QUALITY,
            link=form.path,
        )
        await self.notifications.notify_safely(
            title=f"Limpieza Registrada ({label})",
            message=f'{user.name} registró una nueva limpieza para "{product}".',
            sender_id=user.id,
            sender_name=user.name,
            recipient=roles.ADMINISTRATOR,
            link=form.path,
        )

    # PUBLIC_INTERFACE
    async def set_status(self, form_type: str, record_id: str, status: str, user: User) -> Dict[str, Any]:
        """
        Set both status and result of a record.

        Approving an attribute release closes the production cycle, which is
        announced to the administrators.
        """
        form = get_quality_form(form_type)
        existing = await self.documents.get_by_id(form.collection, record_id)
        if existing is None:
            raise NotFoundError(f"Record '{record_id}' not found in {form.title}")
        saved = await self.documents.add_or_update(
            form.collection,
            {"id": record_id, "status": status, "result": status, "cycleId": existing.get("cycleId")},
        )
        logger.info("Status of %s/%s set to %s", form.collection, record_id, status)
        if form_type == "attribute-release" and status == "Aprobado":
            await self.notifications.notify_safely(
                title="Ciclo de Fabricación Completado",
                message=(
                    "Todos los controles de calidad han sido aprobados. "
                    f"El ciclo de producción para el lote {saved.get('lot', '')} ha finalizado."
                ),
                sender_id=user.id,
                sender_name=roles.SYSTEM_SENDER_NAME,
                recipient=roles.ADMINISTRATOR,
                link="/quality",
            )
        return with_status_icon(saved)

    # PUBLIC_INTERFACE
    async def delete_record(self, form_type: str, record_id: str) -> bool:
        form = get_quality_form(form_type)
        return await self.documents.remove(form.collection, record_id)

    # PUBLIC_INTERFACE
    async def delete_records(self, form_type: str, record_ids: Sequence[str]) -> int:
        form = get_quality_form(form_type)
        deleted = await self.documents.remove_many(form.collection, record_ids)
        logger.info("Deleted %d records from %s", deleted, form.collection)
        return deleted

from __future__ import annotations

import logging
import math
from typing import Any, Dict, List, Optional, Sequence

from pydantic import ValidationError
from sqlalchemy.ext.asyncio import AsyncSession

from qms.core import roles
from qms.core.errors import NotFoundError, QmsError
from qms.db.models.security import User
from qms.schemas.production import LotNumbers
from qms.services.base import BaseService, now_hhmm, today_iso
from qms.services.notifications import NotificationService

logger = logging.getLogger(__name__)

PRODUCTION_COLLECTION = "production"
FORMULATIONS_COLLECTION = "formulations"

LOT_STATUSES = ("Pendiente", "En Progreso", "Completado")
COMPLETED = "Completado"

# Fields a cloned lot never inherits from its source.
_CLONE_EXCLUDED = (
    "id",
    "lot",
    "date",
    "startTime",
    "endTime",
    "signature",
    "supervisorSignature",
    "productionLeadSignature",
    "cycleId",
)

# Recipe lists a clone carries over instead of the empty defaults.
_RECIPE_FIELDS = ("ingredients", "stages", "packagingMaterials")


# PUBLIC_INTERFACE
def compute_performance(lot: Dict[str, Any]) -> float:
    """Real output over theoretical (powder + liquid) output, as a percentage with 2 decimals."""
    theoretical = float(lot.get("finalProductTheoreticalPowder") or 0) + float(
        lot.get("finalProductTheoreticalLiquid") or 0
    )
    if theoretical <= 0:
        return 0.0
    value = float(lot.get("finalProductReal") or 0) / theoretical * 100
    return 0.0 if math.isnan(value) else round(value, 2)


def _validated_numbers(payload: Dict[str, Any]) -> Dict[str, Any]:
    """Numeric lot fields present in the payload, coerced; 400 naming the bad fields otherwise."""
    try:
        numbers = LotNumbers.model_validate(payload)
    except ValidationError as exc:
        fields = sorted({str(err["loc"][0]) for err in exc.errors() if err["loc"]})
        raise QmsError(f"Lot fields must be numeric: {', '.join(fields)}", details={"fields": fields}) from exc
    return {name: getattr(numbers, name) for name in numbers.model_fields_set}


def _priority(lot: Dict[str, Any]) -> float:
    order = lot.get("productionOrder")
    return math.inf if order is None else float(order)


# PUBLIC_INTERFACE
def sort_by_priority(lots: Sequence[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """Ascending productionOrder; lots without an order go last."""
    return sorted(lots, key=_priority)


# PUBLIC_INTERFACE
def production_queue(lots: Sequence[Dict[str, Any]], lot_type: Optional[str] = None) -> List[Dict[str, Any]]:
    """Queued lots (with an order) that are not completed, in priority order."""
    queued = [
        lot
        for lot in lots
        if lot.get("status") != COMPLETED
        and lot.get("productionOrder") is not None
        and (lot_type is None or lot.get("type") == lot_type)
    ]
    return sort_by_priority(queued)


# PUBLIC_INTERFACE
def next_in_queue(lots: Sequence[Dict[str, Any]]) -> Dict[str, Optional[Dict[str, Any]]]:
    """Head of the queue for each production type."""
    return {t: next(iter(production_queue(lots, t)), None) for t in ("powder", "liquid")}


# PUBLIC_INTERFACE
def new_lot_template(lot_type: str, user: User, today: str, source: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    """
    Defaults for a new lot, optionally cloned from an existing one.

    Cloning keeps the recipe (ingredients, stages, packaging...) but never the
    lot number, dates, times or signatures.
    """
    defaults: Dict[str, Any] = {
        "type": lot_type,
        "date": today,
        "status": "Pendiente",
        "responsible": {"name": user.name, "id": user.id, "role": user.role},
        "signature": "",
        "supervisorSignature": "",
    }
    if lot_type == "powder":
        defaults.update(
            {
                "productionLeadSignature": "",
                "finalProductTheoreticalPowder": 0,
                "finalProductTheoreticalLiquid": 0,
                "finalProductReal": 0,
                "performance": 0,
                "observations": "",
                "ingredients": [],
                "packagingMaterials": [],
            }
        )
    else:
        defaults.update({"stages": [{"name": "Pre-Mezcla 1", "ingredients": []}], "packagingMaterials": []})

    if source is None:
        return defaults
    inherited = {k: v for k, v in source.items() if k not in _CLONE_EXCLUDED and k != "statusIcon"}
    recipe = {k: inherited[k] for k in _RECIPE_FIELDS if k in inherited}
    return {**inherited, **defaults, **recipe}


class ProductionService(BaseService):
    """
    Production lots: listing, saving, status changes and the priority queue.

    New lots and completed lots fan out notifications; those are best effort.
    """

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session)
        self.notifications = NotificationService(session)

    # PUBLIC_INTERFACE
    async def list_lots(
        self,
        lot_type: Optional[str] = None,
        item: Optional[str] = None,
        status: Optional[str] = None,
        date: Optional[str] = None,
    ) -> List[Dict[str, Any]]:
        """Lots matching the given filters, newest date first."""
        lots = await self.documents.get_all(PRODUCTION_COLLECTION)
        if lot_type:
            lots = [lot for lot in lots if lot.get("type") == lot_type]
        if item:
            lots = [lot for lot in lots if lot.get("item") == item]
        if status:
            lots = [lot for lot in lots if lot.get("status") == status]
        if date:
            lots = [lot for lot in lots if lot.get("date") == date]
        return sorted(lots, key=lambda lot: str(lot.get("date") or ""), reverse=True)

    # PUBLIC_INTERFACE
    async def get_lot(self, lot_id: str) -> Dict[str, Any]:
        lot = await self.documents.get_by_id(PRODUCTION_COLLECTION, lot_id)
        if lot is None:
            raise NotFoundError(f"Production lot '{lot_id}' not found")
        return lot

    # PUBLIC_INTERFACE
    async def item_page(self, item: str) -> Dict[str, Any]:
        """
        The lots of one item in priority order, with the product name and type.

        Product info comes from the item's first lot, else from a formulation
        with the same item, else it is unknown.
        """
        lots = [lot for lot in await self.documents.get_all(PRODUCTION_COLLECTION) if lot.get("item") == item]
        if lots:
            product = {"name": lots[0].get("product", ""), "type": lots[0].get("type", "powder")}
        else:
            formulations = await self.documents.get_all(FORMULATIONS_COLLECTION)
            formulation = next((f for f in formulations if f.get("item") == item), None)
            if formulation:
                name = formulation.get("name", "")
                product = {"name": name, "type": "liquid" if "líquido" in name.lower() else "powder"}
            else:
                product = {"name": "Producto Desconocido", "type": "powder"}
        return {"item": item, "product": product, "lots": sort_by_priority(lots)}

    # PUBLIC_INTERFACE
    async def template(self, lot_type: str, user: User, clone_from: Optional[str] = None) -> Dict[str, Any]:
        source = None
        if clone_from:
            source = await self.get_lot(clone_from)
        return new_lot_template(lot_type, user, today_iso(), source)

    def _prepare(self, data: Dict[str, Any]) -> Dict[str, Any]:
        payload = {k: v for k, v in data.items() if k != "statusIcon"}
        if payload.get("type") not in ("powder", "liquid"):
            raise QmsError("Lot type must be 'powder' or 'liquid'")
        if payload.get("status") is not None and payload["status"] not in LOT_STATUSES:
            raise QmsError(f"Unknown lot status '{payload['status']}'", details={"allowed": list(LOT_STATUSES)})
        payload.update(_validated_numbers(payload))
        if payload["type"] == "powder":
            payload["performance"] = compute_performance(payload)
            payload["endTime"] = payload.get("endTime") or now_hhmm()
        return payload

    # PUBLIC_INTERFACE
    async def create_lot(self, data: Dict[str, Any], user: User) -> Dict[str, Any]:
        """Save a new lot and announce it to everyone."""
        payload = self._prepare({k: v for k, v in data.items() if k != "id"})
        saved = await self.documents.add_or_update(PRODUCTION_COLLECTION, payload)
        logger.info("Created production lot %s (%s)", saved.get("lot"), saved["id"])
        if saved["type"] == "powder":
            title = "Nuevo Lote Registrado"
            message = f"Se ha creado el lote de polvos {saved.get('lot', '')} para el producto {saved.get('product', '')}."
        else:
            title = "Nuevo Lote Líquido Registrado"
            message = f"Se ha creado el lote {saved.get('lot', '')} para el producto {saved.get('product', '')}."
        await self.notifications.notify_safely(
            title=title,
            message=message,
            sender_id=user.id,
            sender_name=user.name,
            recipient=roles.EVERYONE,
            link=f"/production/{saved.get('item', '')}",
        )
        return saved

    # PUBLIC_INTERFACE
    async def update_lot(self, lot_id: str, data: Dict[str, Any]) -> Dict[str, Any]:
        existing = await self.get_lot(lot_id)
        merged = {**existing, **data, "id": lot_id}
        if "cycleId" not in data:
            merged["cycleId"] = existing.get("cycleId")
        return await self.documents.add_or_update(PRODUCTION_COLLECTION, self._prepare(merged))

    # PUBLIC_INTERFACE
    async def set_status(self, lot_id: str, status: str) -> Dict[str, Any]:
        """
        Change a lot's status.

        Completing a lot tells Production which lot of the same item is next.
        """
        if status not in LOT_STATUSES:
            raise QmsError(f"Unknown lot status '{status}'", details={"allowed": list(LOT_STATUSES)})
        lot = await self.get_lot(lot_id)
        saved = await self.documents.add_or_update(
            PRODUCTION_COLLECTION, {"id": lot_id, "status": status, "cycleId": lot.get("cycleId")}
        )
        if status == COMPLETED:
            await self._announce_next_lot(saved)
        return saved

    async def _announce_next_lot(self, lot: Dict[str, Any]) -> None:
        lots = await self.documents.get_all(PRODUCTION_COLLECTION)
        queue = sort_by_priority(
            [
                other
                for other in lots
                if other.get("item") == lot.get("item") and (other.get("status") != COMPLETED or other["id"] == lot["id"])
            ]
        )
        position = next((i for i, other in enumerate(queue) if other["id"] == lot["id"]), None)
        if position is None or position + 1 >= len(queue):
            return
        following = queue[position + 1]
        await self.notifications.notify_safely(
            title="Siguiente Lote en Cola",
            message=(
                f"La fabricación del lote {lot.get('lot', '')} ha terminado. "
                f"El siguiente en la cola es el lote {following.get('lot', '')} - {following.get('product', '')}."
            ),
            sender_id=roles.SYSTEM_SENDER_ID,
            sender_name=roles.SYSTEM_SENDER_NAME,
            recipient=roles.PRODUCTION,
            link=f"/production/{following.get('item', '')}",
        )

    # PUBLIC_INTERFACE
    async def delete_lot(self, lot_id: str) -> bool:
        return await self.documents.remove(PRODUCTION_COLLECTION, lot_id)

    # PUBLIC_INTERFACE
    async def delete_lots(self, lot_ids: Sequence[str]) -> int:
        return await self.documents.remove_many(PRODUCTION_COLLECTION, lot_ids)

    # PUBLIC_INTERFACE
    async def save_queue_order(self, lot_ids: Sequence[str]) -> List[Dict[str, Any]]:
        """Give each listed lot productionOrder = position + 1; unknown ids are skipped."""
        updated: List[Dict[str, Any]] = []
        for index, lot_id in enumerate(lot_ids):
            lot = await self.documents.get_by_id(PRODUCTION_COLLECTION, lot_id)
            if lot is None:
                logger.warning("Skipping unknown lot %s in queue order", lot_id)
                continue
            updated.append(
                await self.documents.add_or_update(
                    PRODUCTION_COLLECTION,
                    {"id": lot_id, "productionOrder": index + 1, "cycleId": lot.get("cycleId")},
                )
            )
        return updated

    # PUBLIC_INTERFACE
    async def queue(self, lot_type: Optional[str] = None) -> List[Dict[str, Any]]:
        return production_queue(await self.documents.get_all(PRODUCTION_COLLECTION), lot_type)

    # PUBLIC_INTERFACE
    async def next_in_queue(self) -> Dict[str, Optional[Dict[str, Any]]]:
        return next_in_queue(await self.documents.get_all(PRODUCTION_COLLECTION))

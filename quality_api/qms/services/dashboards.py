from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Sequence

from qms.repositories.security import UserRepository
from qms.services.base import BaseService, today_iso
from qms.services.catalog import ADMIN_MONITORED_COLLECTIONS, QUALITY_DASHBOARD_MODULES
from qms.services.notifications import detect_internal_link
from qms.services.production import PRODUCTION_COLLECTION, next_in_queue, production_queue
from qms.services.status import FAILURE_STATUSES, status_icon, with_status_icon

logger = logging.getLogger(__name__)

ADMIN_FAILURE_STATUSES = ("Falla", "No Conforme", "Retenido")


# PUBLIC_INTERFACE
def average_performance(lots: Sequence[Dict[str, Any]]) -> str:
    """Mean lot performance with 2 decimals; lots without one count as 0."""
    if not lots:
        return "0.00"
    total = sum(float(lot.get("performance") or 0) for lot in lots)
    return f"{total / len(lots):.2f}"


def _timestamp(record: Dict[str, Any]) -> str:
    return str(record.get("createdAt") or record.get("date") or "")


# PUBLIC_INTERFACE
def activity_description(record: Dict[str, Any]) -> str:
    """Who did what on a monitored record, without the status badge."""
    responsible = record.get("responsible") if isinstance(record.get("responsible"), dict) else {}
    who = responsible.get("name") or record.get("name") or "Sistema"
    module = record.get("module")
    if module == "Higiene" and record.get("area"):
        what = f'registró limpieza en el área "{record["area"]}"'
    elif module == "Calidad" and record.get("product"):
        what = f"evaluó {record['product']} (Lote: {record.get('lot')}) como {record.get('status') or record.get('result')}"
    else:
        what = next(
            (
                str(record[k])
                for k in ("observations", "status", "result", "area", "location", "pccId", "scale", "role")
                if record.get(k)
            ),
            "realizó una acción",
        )
    return f"{who} {what}"


class DashboardService(BaseService):
    """Role dashboards assembled from the document collections."""

    # PUBLIC_INTERFACE
    async def production(self, today: Optional[str] = None) -> Dict[str, Any]:
        today = today or today_iso()
        lots = await self.documents.get_all(PRODUCTION_COLLECTION)
        return {
            "queue": production_queue(lots),
            "completedToday": sum(1 for lot in lots if lot.get("status") == "Completado" and lot.get("date") == today),
            "averagePerformance": average_performance(lots),
            "nextInQueue": next_in_queue(lots),
        }

    # PUBLIC_INTERFACE
    async def quality(self) -> Dict[str, Any]:
        records: List[Dict[str, Any]] = []
        for collection, label in QUALITY_DASHBOARD_MODULES.items():
            for record in await self.documents.get_all(collection):
                records.append({**with_status_icon(record), "module": label, "collectionName": collection})

        recent = sorted(records, key=lambda r: str(r.get("date") or ""), reverse=True)[:5]
        return {
            "recentActivity": recent,
            "qualityFailures": sum(
                1 for r in records if (r.get("status") or r.get("result")) in FAILURE_STATUSES
            ),
            "pendingVerifications": sum(
                1 for r in records if r["module"] == "Higiene" and r.get("status") == "Pendiente"
            ),
            "retainedLots": sum(
                1 for r in records if r["module"] == "Producto Terminado" and r.get("status") == "Retenido"
            ),
        }

    # PUBLIC_INTERFACE
    async def administrator(self) -> Dict[str, Any]:
        """
        Plant-wide counters and the latest activity on the monitored collections.

        Each activity entry links to the screen its description refers to.
        """
        users = await UserRepository(self.session).count_users()
        lots = await self.documents.get_all(PRODUCTION_COLLECTION)

        records: List[Dict[str, Any]] = []
        for collection, label in ADMIN_MONITORED_COLLECTIONS.items():
            for record in await self.documents.get_all(collection):
                records.append({**record, "module": label})

        total_quality = sum(1 for r in records if r["module"] == "Calidad")
        failures = sum(
            1
            for r in records
            if r.get("status") in ADMIN_FAILURE_STATUSES or r.get("result") == "Rechazado"
        )

        activity = []
        for record in sorted(records, key=_timestamp, reverse=True)[:5]:
            description = activity_description(record)
            activity.append(
                {
                    "id": record["id"],
                    "module": record["module"],
                    "description": f"{description} {status_icon(record.get('status') or record.get('result') or '')}",
                    "timestamp": _timestamp(record) or None,
                    "link": detect_internal_link(description, lots, record.get("recipient")),
                }
            )

        return {
            "userCount": users,
            "lotCount": len(lots),
            "totalQualityDocs": total_quality,
            "qualityFailures": failures,
            "activityByModule": [
                {"name": "Producción", "total": len(lots)},
                {"name": "Calidad", "total": total_quality},
                {"name": "Higiene", "total": sum(1 for r in records if r["module"] == "Higiene")},
            ],
            "recentActivity": activity,
        }

"""Status vocabulary of quality records: badges, approval sets and record status lookup."""

from __future__ import annotations

from typing import Any, Dict, List, Mapping, Optional

NEGATIVE_STATUSES = ("Falla", "No Conforme", "Retenido", "No Cumple", "Rechazado")
POSITIVE_STATUSES = (
    "Pasa",
    "Aprobado",
    "Conforme",
    "Cumple",
    "Verificado",
    "Aprobado para Envasar",
    "Completado",
)

ICON_NEGATIVE = "🔴"
ICON_POSITIVE = "✅"
ICON_PENDING = "🔄️"

# Statuses counted as failures on the quality dashboard.
FAILURE_STATUSES = ("Falla", "No Conforme", "Rechazado")

DEFAULT_APPROVAL_STATUSES: List[str] = [
    "Completado",
    "Verificado",
    "Pasa",
    "Conforme",
    "Cumple",
    "Aprobado",
    "Aprobado para Envasar",
]

APPROVAL_STATUSES: Dict[str, List[str]] = {
    "hygiene": ["Verificado"],
    "hygiene_liquids": ["Verificado"],
    "quality_luminometry": ["Pasa"],
    "quality_luminometry_liquids": ["Pasa"],
    "quality_area_clearance_powders": ["Conforme"],
    "quality_area_clearance_liquids": ["Conforme"],
    "scales": ["Cumple"],
    "scales-liquids": ["Cumple"],
    "utensils_liquids": ["SI"],
    "pcc_liquids": ["SI"],
    "endowment": ["Conforme"],
    "utensils": ["Conforme"],
    "pcc": ["Conforme"],
    "quality_pcc_final_inspection": ["Conforme"],
    "quality_temp_humidity": ["Conforme"],
    "quality_in_process": ["Conforme"],
    "quality_in_process_liquids": ["Cumple"],
    "weighing": ["Conforme"],
    "quality_finished_product": ["Aprobado para Envasar"],
    "quality_final_bulk_inspection": ["SI"],
    "quality_magnet_inspection": ["Conforme"],
    "quality_attribute_release": ["Aprobado"],
}

# Fields that may carry a record's outcome, in lookup order.
_STATUS_FIELDS = ("status", "result", "checklistCompleted", "filterMeshState", "foreignParticlesEvidence")


# PUBLIC_INTERFACE
def status_icon(status: Optional[str]) -> str:
    """Emoji badge for a status: red for negative, check for positive, cycle otherwise."""
    if status in NEGATIVE_STATUSES:
        return ICON_NEGATIVE
    if status in POSITIVE_STATUSES:
        return ICON_POSITIVE
    return ICON_PENDING


# PUBLIC_INTERFACE
def record_status(record: Mapping[str, Any]) -> Optional[str]:
    """First non-empty outcome field of a record, or None."""
    for field in _STATUS_FIELDS:
        value = record.get(field)
        if value:
            return value
    return None


# PUBLIC_INTERFACE
def approval_statuses(collection: str) -> List[str]:
    """Statuses that count as approved for records of a collection."""
    return APPROVAL_STATUSES.get(collection, DEFAULT_APPROVAL_STATUSES)


# PUBLIC_INTERFACE
def is_record_approved(record: Mapping[str, Any], collection: str) -> bool:
    status = record_status(record)
    return bool(status) and status in approval_statuses(collection)


# PUBLIC_INTERFACE
def with_status_icon(record: Dict[str, Any]) -> Dict[str, Any]:
    """Return a copy of the record carrying its computed statusIcon."""
    return {**record, "statusIcon": status_icon(record_status(record))}

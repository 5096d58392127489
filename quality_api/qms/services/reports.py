from __future__ import annotations

import json
import logging
from datetime import date, datetime
from typing import Any, Dict, List, Optional, Sequence

import pandas as pd

from qms.db.models.security import User
from qms.repositories.security import UserRepository
from qms.services.base import BaseService
from qms.services.catalog import get_reportable_module

logger = logging.getLogger(__name__)

# Never exported: ids, drawn signatures and embedded binaries.
EXCLUDED_EXPORT_FIELDS = (
    "id",
    "signature",
    "supervisorSignature",
    "productionLeadSignature",
    "verificationSignature",
    "avatarUrl",
    "fileBase64",
    "data",
)


def _record_date(record: Dict[str, Any]) -> Optional[date]:
    value = record.get("date") or record.get("createdAt")
    if not value:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return datetime.fromisoformat(str(value)).date()
    except ValueError:
        try:
            return date.fromisoformat(str(value)[:10])
        except ValueError:
            return None


# PUBLIC_INTERFACE
def filter_by_user(records: Sequence[Dict[str, Any]], user_id: str) -> List[Dict[str, Any]]:
    """Records the user is responsible for, sent, verified, or that are the user."""

    def matches(record: Dict[str, Any]) -> bool:
        responsible = record.get("responsible") if isinstance(record.get("responsible"), dict) else {}
        verifier = record.get("verifier") if isinstance(record.get("verifier"), dict) else {}
        owner = responsible.get("id") or record.get("senderId")
        return owner == user_id or record.get("id") == user_id or verifier.get("id") == user_id

    return [r for r in records if matches(r)]


# PUBLIC_INTERFACE
def filter_by_date(
    records: Sequence[Dict[str, Any]], date_from: Optional[date], date_to: Optional[date]
) -> List[Dict[str, Any]]:
    """Records dated within [date_from, date_to], whole days; undated records are dropped."""
    kept = []
    for record in records:
        day = _record_date(record)
        if day is None:
            continue
        if date_from and day < date_from:
            continue
        if date_to and day > date_to:
            continue
        kept.append(record)
    return kept


# PUBLIC_INTERFACE
def flatten_record(record: Dict[str, Any]) -> Dict[str, Any]:
    """
    One spreadsheet row for a record.

    Nested objects collapse to their ``name`` when they have one; other
    objects and lists are written as JSON.
    """
    flat: Dict[str, Any] = {}
    for key, value in record.items():
        if key in EXCLUDED_EXPORT_FIELDS:
            continue
        if isinstance(value, dict):
            flat[key] = value["name"] if value.get("name") else json.dumps(value, ensure_ascii=False, default=str)
        elif isinstance(value, list):
            flat[key] = json.dumps(value, ensure_ascii=False, default=str)
        else:
            flat[key] = value
    return flat


# PUBLIC_INTERFACE
def report_dataframe(records: Sequence[Dict[str, Any]]) -> pd.DataFrame:
    return pd.DataFrame([flatten_record(r) for r in records])


def report_filename(module: str, on: Optional[date] = None) -> str:
    return f"Reporte_{module}_{(on or date.today()).isoformat()}"


def user_record(user: User) -> Dict[str, Any]:
    """A user in the same record shape as documents."""
    return {
        "id": user.id,
        "name": user.name,
        "email": user.email,
        "role": user.role,
        "documentType": user.document_type,
        "documentNumber": user.document_number,
        "avatarUrl": user.avatar_url,
        "isActive": user.is_active,
        "createdAt": user.created_at.isoformat() if user.created_at else None,
    }


class ReportService(BaseService):
    """Filtered record listings of any reportable module."""

    # PUBLIC_INTERFACE
    async def generate(
        self,
        module: str,
        user_id: Optional[str] = None,
        date_from: Optional[date] = None,
        date_to: Optional[date] = None,
    ) -> List[Dict[str, Any]]:
        get_reportable_module(module)
        if module == "users":
            records = [user_record(u) for u in await UserRepository(self.session).list_users()]
        else:
            records = await self.documents.get_all(module)
        if user_id and user_id != "all":
            records = filter_by_user(records, user_id)
        if date_from or date_to:
            records = filter_by_date(records, date_from, date_to)
        logger.info("Report for %s produced %d records", module, len(records))
        return records

from __future__ import annotations

import base64
import binascii
import io
import json
import logging
import os
from datetime import date, datetime
from typing import Any, Dict, List, Optional, Tuple

from openpyxl import load_workbook

from qms.core.errors import InvalidUploadError, NotFoundError
from qms.services.base import BaseService, today_iso
from qms.services.production import FORMULATIONS_COLLECTION

logger = logging.getLogger(__name__)

XLSX_CONTENT_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"

# Formulation sheets carry item/product in the first rows, the column header
# on row 4 and ingredient lines from row 5 on.
HEADER_ROW_INDEX = 3


def _cell_value(value: Any) -> Any:
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    return value


# PUBLIC_INTERFACE
def parse_formulation_workbook(content: bytes, file_name: str) -> Dict[str, Any]:
    """
    Extract item, product name and rows from the first sheet of an Excel file.

    B1 holds the item and B2 the product name. Without B2 the name is derived
    from the file name.
    """
    try:
        workbook = load_workbook(io.BytesIO(content), read_only=True, data_only=True)
    except Exception as exc:
        raise InvalidUploadError("The file is not a readable Excel workbook", details=str(exc)) from exc
    try:
        sheet = workbook.worksheets[0]
        rows: List[List[Any]] = [
            [_cell_value(v) for v in row] for row in sheet.iter_rows(values_only=True)
        ]
    finally:
        workbook.close()

    # drop trailing empty rows
    while rows and all(v is None for v in rows[-1]):
        rows.pop()
    if not rows:
        raise InvalidUploadError("The workbook's first sheet is empty")

    b1 = rows[0][1] if len(rows[0]) > 1 else None
    b2 = rows[1][1] if len(rows) > 1 and len(rows[1]) > 1 else None
    name = str(b2) if b2 not in (None, "") else os.path.splitext(file_name)[0].replace("_", " ")
    return {
        "item": str(b1) if b1 not in (None, "") else "N/A",
        "name": name,
        "ingredients": len(rows) - 1 if len(rows) > 1 else 0,
        "rows": rows,
    }


# PUBLIC_INTERFACE
def formulation_table(data: Optional[str]) -> Dict[str, List[Any]]:
    """Header and body rows of the stored sheet, empty when the data is missing or malformed."""
    try:
        rows = json.loads(data or "[]")
    except ValueError:
        logger.warning("Formulation data is not valid JSON")
        rows = []
    if not isinstance(rows, list):
        rows = []
    return {
        "header": rows[HEADER_ROW_INDEX] if len(rows) > HEADER_ROW_INDEX else [],
        "rows": rows[HEADER_ROW_INDEX + 1:],
    }


def to_data_url(content: bytes, content_type: str) -> str:
    return f"data:{content_type};base64,{base64.b64encode(content).decode('ascii')}"


def from_data_url(value: str) -> Tuple[bytes, Optional[str]]:
    """Decode a data URL (or bare base64) into bytes and its content type."""
    content_type = None
    if value.startswith("data:") and "," in value:
        header, value = value.split(",", 1)
        content_type = header[5:].split(";", 1)[0] or None
    try:
        return base64.b64decode(value), content_type
    except (binascii.Error, ValueError) as exc:
        raise InvalidUploadError("Stored formulation file is corrupt") from exc


def _summary(record: Dict[str, Any]) -> Dict[str, Any]:
    return {k: v for k, v in record.items() if k not in ("fileBase64", "data")}


class FormulationService(BaseService):
    """Product formulations uploaded as Excel sheets."""

    # PUBLIC_INTERFACE
    async def list_formulations(self) -> List[Dict[str, Any]]:
        records = await self.documents.get_all(FORMULATIONS_COLLECTION)
        return [_summary(r) for r in sorted(records, key=lambda r: str(r.get("name") or ""))]

    # PUBLIC_INTERFACE
    async def get_formulation(self, formulation_id: str) -> Dict[str, Any]:
        record = await self.documents.get_by_id(FORMULATIONS_COLLECTION, formulation_id)
        if record is None:
            raise NotFoundError(f"Formulation '{formulation_id}' not found")
        return {**_summary(record), "table": formulation_table(record.get("data"))}

    # PUBLIC_INTERFACE
    async def save_upload(
        self,
        content: bytes,
        file_name: str,
        content_type: Optional[str],
        formulation_id: Optional[str] = None,
    ) -> Dict[str, Any]:
        """
        Create or replace a formulation from an uploaded workbook.

        Replacing keeps the formulation's isInitial flag.
        """
        parsed = parse_formulation_workbook(content, file_name)
        existing = None
        if formulation_id:
            existing = await self.documents.get_by_id(FORMULATIONS_COLLECTION, formulation_id)
        file_type = content_type or XLSX_CONTENT_TYPE
        record = {
            "item": parsed["item"],
            "name": parsed["name"],
            "ingredients": parsed["ingredients"],
            "lastUpdated": today_iso(),
            "fileName": file_name,
            "fileType": file_type,
            "fileBase64": to_data_url(content, file_type),
            "data": json.dumps(parsed["rows"], default=str),
            "isInitial": bool(existing.get("isInitial")) if existing else False,
        }
        if formulation_id:
            record["id"] = formulation_id
        saved = await self.documents.add_or_update(FORMULATIONS_COLLECTION, record)
        logger.info("Saved formulation %s (%s) with %d ingredients", saved["id"], saved["name"], saved["ingredients"])
        return {**_summary(saved), "table": formulation_table(saved.get("data"))}

    # PUBLIC_INTERFACE
    async def file(self, formulation_id: str) -> Tuple[bytes, str, str]:
        """The original workbook as (content, file name, content type)."""
        record = await self.documents.get_by_id(FORMULATIONS_COLLECTION, formulation_id)
        if record is None:
            raise NotFoundError(f"Formulation '{formulation_id}' not found")
        if not record.get("fileBase64"):
            raise NotFoundError("This formulation has no attached file")
        content, embedded_type = from_data_url(record["fileBase64"])
        file_type = record.get("fileType") or embedded_type or XLSX_CONTENT_TYPE
        return content, record.get("fileName") or f"{formulation_id}.xlsx", file_type

    # PUBLIC_INTERFACE
    async def delete_formulation(self, formulation_id: str) -> bool:
        return await self.documents.remove(FORMULATIONS_COLLECTION, formulation_id)

from __future__ import annotations

import io
from datetime import date, datetime, timezone
from typing import List, Optional

import pandas as pd
from fastapi import APIRouter, Depends, Path, Query
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse, StreamingResponse
from reportlab.lib import colors
from reportlab.lib.pagesizes import landscape, letter
from reportlab.lib.styles import getSampleStyleSheet
from reportlab.platypus import Paragraph, SimpleDocTemplate, Table, TableStyle
from sqlalchemy.ext.asyncio import AsyncSession

from qms.core.deps import get_current_active_user, get_session
from qms.db.models.security import User
from qms.schemas.quality import ReportableModuleRead
from qms.services.catalog import REPORTABLE_MODULES
from qms.services.reports import ReportService, report_dataframe, report_filename

# PUBLIC_INTERFACE
router = APIRouter(
    prefix="/reports",
    tags=["Reports"],
)

XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"


def _attachment(filename: str) -> dict:
    return {"Content-Disposition": f'attachment; filename="{filename}"'}


def _export_dataframe(
    df: pd.DataFrame,
    filename_base: str,
    export_format: str,
) -> StreamingResponse:
    """
    Convert DataFrame to the requested format and return a StreamingResponse.

    Supported formats:
      - csv: text/csv
      - xlsx: application/vnd.openxmlformats-officedocument.spreadsheetml.sheet
      - pdf: application/pdf (one table, landscape)
    """
    export_format = (export_format or "csv").lower()

    if export_format == "xlsx":
        buffer = io.BytesIO()
        with pd.ExcelWriter(buffer, engine="openpyxl") as writer:
            df.to_excel(writer, index=False, sheet_name="Reporte")
        buffer.seek(0)
        return StreamingResponse(buffer, media_type=XLSX_MEDIA_TYPE, headers=_attachment(f"{filename_base}.xlsx"))

    if export_format == "pdf":
        buffer = io.BytesIO()
        doc = SimpleDocTemplate(
            buffer, pagesize=landscape(letter), leftMargin=18, rightMargin=18, topMargin=18, bottomMargin=18
        )
        styles = getSampleStyleSheet()
        generated = datetime.now(timezone.utc).strftime("%Y-%m-%d %H:%M UTC")
        elements: list = [Paragraph(f"{filename_base.replace('_', ' ')} ({generated})", styles["Title"])]

        if df.empty:
            elements.append(Paragraph("Sin registros", styles["Normal"]))
        else:
            data = [list(df.columns)] + df.fillna("").astype(str).values.tolist()
            table = Table(data, repeatRows=1)
            table.setStyle(
                TableStyle(
                    [
                        ("BACKGROUND", (0, 0), (-1, 0), colors.lightgrey),
                        ("TEXTCOLOR", (0, 0), (-1, 0), colors.black),
                        ("ALIGN", (0, 0), (-1, -1), "LEFT"),
                        ("FONTNAME", (0, 0), (-1, 0), "Helvetica-Bold"),
                        ("FONTSIZE", (0, 0), (-1, -1), 7),
                        ("BOTTOMPADDING", (0, 0), (-1, 0), 6),
                        ("GRID", (0, 0), (-1, -1), 0.25, colors.grey),
                    ]
                )
            )
            elements.append(table)
        doc.build(elements)
        buffer.seek(0)
        return StreamingResponse(buffer, media_type="application/pdf", headers=_attachment(f"{filename_base}.pdf"))

    buffer = io.StringIO()
    df.to_csv(buffer, index=False)
    buffer.seek(0)
    return StreamingResponse(buffer, media_type="text/csv", headers=_attachment(f"{filename_base}.csv"))


# PUBLIC_INTERFACE
@router.get(
    "/modules",
    response_model=List[ReportableModuleRead],
    summary="Reportable modules",
)
async def list_modules(_: User = Depends(get_current_active_user)) -> List[ReportableModuleRead]:
    return [ReportableModuleRead(**m.model_dump()) for m in REPORTABLE_MODULES]


# PUBLIC_INTERFACE
@router.get(
    "/{module}",
    summary="Module report",
    description=(
        "Records of a module filtered by user and an inclusive date range. "
        "format=json returns the records; csv, xlsx and pdf return a file."
    ),
    response_description="JSON list or file stream (CSV/XLSX/PDF)",
)
async def module_report(
    module: str = Path(..., description="Reportable module (collection) key"),
    user_id: Optional[str] = Query(None, description="User id, or 'all'"),
    date_from: Optional[date] = Query(None, description="First day, inclusive"),
    date_to: Optional[date] = Query(None, description="Last day, inclusive"),
    format: str = Query("json", pattern="^(json|csv|xlsx|pdf)$", description="json | csv | xlsx | pdf"),
    _: User = Depends(get_current_active_user),
    session: AsyncSession = Depends(get_session),
):
    """
    Generate a module report.

    Exported files drop ids, signatures and stored file contents; nested
    objects are flattened to their name or to JSON text.
    """
    records = await ReportService(session).generate(module, user_id=user_id, date_from=date_from, date_to=date_to)
    if format == "json":
        return JSONResponse(content=jsonable_encoder(records))
    return _export_dataframe(report_dataframe(records), report_filename(module), format)

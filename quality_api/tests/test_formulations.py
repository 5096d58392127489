import io

import pytest
from openpyxl import Workbook
from openpyxl.styles import Font

from qms.core.errors import InvalidUploadError, NotFoundError
from qms.repositories.documents import DocumentRepository
from qms.services.formulations import (
    XLSX_CONTENT_TYPE,
    FormulationService,
    formulation_table,
    from_data_url,
    parse_formulation_workbook,
    to_data_url,
)

HEADER = ["Referencia", "PRODUCTOS", "CANTIDAD", "Unidad"]


def _workbook(name="Sabor Carne en Polvo"):
    wb = Workbook()
    ws = wb.active
    ws.append(["Item", "PROD-SK-100", None, None])
    ws.append(["Producto", name, None, None])
    ws.append(["Fecha", "2024-05-20", None, None])
    ws.append(HEADER)
    ws.append(["SK-101", "Sal", 10, "kg"])
    ws.append(["SK-102", "Potenciador de Sabor", 5, "kg"])
    buf = io.BytesIO()
    wb.save(buf)
    return buf.getvalue()


def test_parse_reads_item_name_and_rows():
    parsed = parse_formulation_workbook(_workbook(), "Formulacion_Carne.xlsx")
    assert parsed["item"] == "PROD-SK-100"
    assert parsed["name"] == "Sabor Carne en Polvo"
    assert parsed["ingredients"] == 5
    assert parsed["rows"][3] == HEADER


def test_parse_derives_name_from_file_name():
    parsed = parse_formulation_workbook(_workbook(name=None), "Sabor_Pollo.xlsx")
    assert parsed["name"] == "Sabor Pollo"


def test_parse_counts_interior_blank_rows_but_not_trailing_ones():
    wb = Workbook()
    ws = wb.active
    ws.append(["Item", "PROD-SK-100", None, None])
    ws.append(["Producto", "Sabor Carne", None, None])
    ws.append([])
    ws.append(HEADER)
    ws.append(["SK-101", "Sal", 10, "kg"])
    ws.append([])
    ws.append(["SK-102", "Pimienta", 1, "kg"])
    # formatted but empty cell past the data
    ws.cell(row=10, column=1).font = Font(bold=True)
    buf = io.BytesIO()
    wb.save(buf)

    parsed = parse_formulation_workbook(buf.getvalue(), "x.xlsx")

    assert len(parsed["rows"]) == 7
    assert all(v is None for v in parsed["rows"][2])
    assert all(v is None for v in parsed["rows"][5])
    assert parsed["rows"][6][1] == "Pimienta"
    assert parsed["ingredients"] == 6


def test_parse_rejects_non_excel():
    with pytest.raises(InvalidUploadError):
        parse_formulation_workbook(b"not a workbook", "x.xlsx")


def test_formulation_table_tolerates_bad_data():
    assert formulation_table("{broken") == {"header": [], "rows": []}
    table = formulation_table('[[], [], [], ["Ref"], ["A"], ["B"]]')
    assert table == {"header": ["Ref"], "rows": [["A"], ["B"]]}


def test_data_url_round_trip_keeps_type():
    content, content_type = from_data_url(to_data_url(b"abc", "text/plain"))
    assert (content, content_type) == (b"abc", "text/plain")


async def test_upload_lists_without_binaries_and_serves_file(session):
    service = FormulationService(session)
    content = _workbook()

    saved = await service.save_upload(content, "Formulacion_Carne.xlsx", None)
    listed = await service.list_formulations()
    body, name, content_type = await service.file(saved["id"])

    assert saved["table"]["header"] == HEADER
    assert len(saved["table"]["rows"]) == 2
    assert "fileBase64" not in listed[0] and "data" not in listed[0]
    assert (body, name, content_type) == (content, "Formulacion_Carne.xlsx", XLSX_CONTENT_TYPE)


async def test_replacing_keeps_initial_flag(session):
    await DocumentRepository(session).add_or_update("formulations", {"id": "FORM-001", "name": "Viejo", "isInitial": True})

    saved = await FormulationService(session).save_upload(_workbook(), "nuevo.xlsx", XLSX_CONTENT_TYPE, "FORM-001")

    assert saved["id"] == "FORM-001"
    assert saved["isInitial"] is True
    assert saved["name"] == "Sabor Carne en Polvo"


async def test_missing_file(session):
    await DocumentRepository(session).add_or_update("formulations", {"id": "F1", "name": "Sin archivo"})
    service = FormulationService(session)
    with pytest.raises(NotFoundError):
        await service.file("F1")
    with pytest.raises(NotFoundError):
        await service.get_formulation("missing")

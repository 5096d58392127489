from datetime import date

import pytest

from qms.core.errors import NotFoundError
from qms.repositories.documents import DocumentRepository
from qms.services.reports import (
    ReportService,
    filter_by_date,
    filter_by_user,
    flatten_record,
    report_dataframe,
    report_filename,
)

RECORDS = [
    {"id": "1", "date": "2024-05-01", "responsible": {"id": "u1", "name": "Ana"}},
    {"id": "2", "date": "2024-05-15", "verifier": {"id": "u1", "name": "Ana"}},
    {"id": "3", "createdAt": "2024-05-31T18:30:00+00:00", "senderId": "u2"},
    {"id": "4"},
]


def test_filter_by_user_matches_responsible_verifier_and_sender():
    assert [r["id"] for r in filter_by_user(RECORDS, "u1")] == ["1", "2"]
    assert [r["id"] for r in filter_by_user(RECORDS, "u2")] == ["3"]


def test_filter_by_date_is_inclusive_and_drops_undated():
    kept = filter_by_date(RECORDS, date(2024, 5, 15), date(2024, 5, 31))
    assert [r["id"] for r in kept] == ["2", "3"]


def test_flatten_record_drops_binaries_and_names_nested_objects():
    flat = flatten_record(
        {
            "id": "x",
            "signature": "data:image/png;base64,AAA",
            "responsible": {"id": "u1", "name": "Ana"},
            "readings": {"p1": 20.0},
            "ingredients": [{"ref": "SK-101"}],
            "lot": "P-1",
        }
    )
    assert flat == {
        "responsible": "Ana",
        "readings": '{"p1": 20.0}',
        "ingredients": '[{"ref": "SK-101"}]',
        "lot": "P-1",
    }


def test_report_dataframe_and_filename():
    df = report_dataframe([{"id": "1", "lot": "A"}, {"id": "2", "status": "Pasa"}])
    assert list(df.columns) == ["lot", "status"]
    assert len(df) == 2
    assert report_filename("hygiene", date(2024, 5, 21)) == "Reporte_hygiene_2024-05-21"


async def test_generate_filters_documents(session):
    documents = DocumentRepository(session)
    for record in RECORDS:
        await documents.add_or_update("hygiene", dict(record))

    service = ReportService(session)
    everyone = await service.generate("hygiene", user_id="all")
    mine = await service.generate("hygiene", user_id="u1", date_from=date(2024, 5, 10))

    assert len(everyone) == 4
    assert [r["id"] for r in mine] == ["2"]


async def test_generate_users_module(session, admin, quality_user):
    rows = await ReportService(session).generate("users")
    assert {r["email"] for r in rows} == {admin.email, quality_user.email}


async def test_generate_unknown_module(session):
    with pytest.raises(NotFoundError):
        await ReportService(session).generate("module_overrides")

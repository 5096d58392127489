import pytest

from qms.core.errors import NotFoundError
from qms.repositories.documents import DocumentRepository
from qms.repositories.notifications import NotificationRepository
from qms.services.quality import QualityService, hygiene_prefill, sort_by_date_desc


def test_hygiene_prefill_uses_current_and_previous_lot():
    lots = [
        {"type": "powder", "productionOrder": 1, "status": "Completado", "item": "A", "product": "Carne", "lot": "L1"},
        {"type": "powder", "productionOrder": 2, "status": "Pendiente", "item": "B", "product": "Pollo", "lot": "L2", "cliente": "Tropical"},
        {"type": "liquid", "productionOrder": 1, "status": "Pendiente", "item": "C", "product": "Salsa", "lot": "L3"},
    ]
    prefill = hygiene_prefill(lots, "powder")
    assert prefill["lot"] == "L2"
    assert prefill["client"] == "Tropical"
    assert prefill["lastFabricationProduct"] == "A - Carne"
    assert prefill["lastFabricationLot"] == "L1"
    assert hygiene_prefill([], "liquid") == {}


def test_sort_by_date_desc_puts_undated_last():
    records = [{"id": 1, "date": "2024-05-01"}, {"id": 2}, {"id": 3, "date": "2024-05-20"}]
    assert [r["id"] for r in sort_by_date_desc(records)] == [3, 1, 2]


async def test_new_hygiene_log_sets_verifier_and_notifies(session, production_user):
    service = QualityService(session)

    saved = await service.create_record("hygiene", {"area": "Mezcladora #1", "status": "Pendiente", "product": "Carne"}, production_user)

    assert saved["verifier"] is None
    assert saved["statusIcon"] == "🔄️"
    recipients = {n.recipient for n in await NotificationRepository(session).list_all()}
    assert recipients == {"Quality", "Administrator"}


async def test_verifying_hygiene_records_the_verifier(session, production_user, quality_user):
    service = QualityService(session)
    saved = await service.create_record("hygiene", {"status": "Pendiente"}, production_user)

    verified = await service.update_record("hygiene", saved["id"], {"status": "Verificado"}, quality_user)

    assert verified["verifier"] == {"name": quality_user.name, "id": quality_user.id, "role": "Quality"}
    assert verified["statusIcon"] == "✅"


async def test_update_keeps_cycle(session, quality_user):
    await DocumentRepository(session).add_or_update("quality_sensory", {"id": "S1", "cycleId": "cycle-powder-1"})

    updated = await QualityService(session).update_record("sensory", "S1", {"odor": "Conforme"}, quality_user)

    assert updated["cycleId"] == "cycle-powder-1"


async def test_approving_attribute_release_closes_cycle(session, quality_user):
    service = QualityService(session)
    saved = await service.create_record("attribute-release", {"lot": "P-1", "status": "Pendiente"}, quality_user)

    approved = await service.set_status("attribute-release", saved["id"], "Aprobado", quality_user)

    assert approved["status"] == approved["result"] == "Aprobado"
    notifications = await NotificationRepository(session).list_all()
    assert [n.title for n in notifications] == ["Ciclo de Fabricación Completado"]
    assert "P-1" in notifications[0].message


async def test_template_copies_latest_hygiene_context(session, quality_user):
    await DocumentRepository(session).add_or_update(
        "hygiene", {"id": "H1", "date": "2024-05-21", "product": "Carne", "lot": "L1", "item": "A"}
    )

    template = await QualityService(session).new_record_template("luminometry", quality_user)

    assert template["hygieneLogId"] == "H1"
    assert template["lot"] == "L1"
    assert template["responsible"]["id"] == quality_user.id
    assert template["status"] == "Pendiente"


async def test_list_records_filters_and_decorates(session):
    documents = DocumentRepository(session)
    await documents.add_or_update("quality_luminometry", {"id": "Q1", "date": "2024-05-20", "status": "Pasa"})
    await documents.add_or_update("quality_luminometry", {"id": "Q2", "date": "2024-05-21", "status": "Falla", "cycleId": "c1"})
    service = QualityService(session)

    all_records = await service.list_records("luminometry")
    active = await service.list_records("luminometry", active_only=True)
    dated = await service.list_records("luminometry", date="2024-05-20")

    assert [r["id"] for r in all_records] == ["Q2", "Q1"]
    assert [r["id"] for r in active] == ["Q1"]
    assert [r["statusIcon"] for r in dated] == ["✅"]


async def test_missing_record(session, quality_user):
    with pytest.raises(NotFoundError):
        await QualityService(session).set_status("sensory", "missing", "Aprobado", quality_user)

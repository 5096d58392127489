import pytest

from qms.core.errors import NotFoundError, QmsError
from qms.repositories.documents import DocumentRepository
from qms.repositories.notifications import NotificationRepository
from qms.services.production import (
    ProductionService,
    compute_performance,
    new_lot_template,
    next_in_queue,
    production_queue,
    sort_by_priority,
)


def test_compute_performance():
    lot = {"finalProductReal": 19.7, "finalProductTheoreticalPowder": 15, "finalProductTheoreticalLiquid": 5}
    assert compute_performance(lot) == 98.5
    assert compute_performance({"finalProductReal": 10}) == 0.0


def test_sort_by_priority_puts_unordered_last():
    lots = [{"id": "a"}, {"id": "b", "productionOrder": 2}, {"id": "c", "productionOrder": 1}]
    assert [lot["id"] for lot in sort_by_priority(lots)] == ["c", "b", "a"]


def test_queue_skips_completed_and_unordered():
    lots = [
        {"id": "1", "type": "powder", "status": "Pendiente", "productionOrder": 2},
        {"id": "2", "type": "powder", "status": "Completado", "productionOrder": 1},
        {"id": "3", "type": "powder", "status": "Pendiente"},
        {"id": "4", "type": "liquid", "status": "En Progreso", "productionOrder": 1},
    ]
    assert [lot["id"] for lot in production_queue(lots)] == ["4", "1"]
    assert [lot["id"] for lot in production_queue(lots, "powder")] == ["1"]
    heads = next_in_queue(lots)
    assert heads["powder"]["id"] == "1"
    assert heads["liquid"]["id"] == "4"


def test_clone_keeps_recipe_but_not_identity():
    class _User:
        id, name, role = "u1", "Pedro", "Production"

    source = {
        "id": "L1",
        "lot": "P-1",
        "date": "2024-01-01",
        "signature": "data:x",
        "product": "Sabor Carne",
        "ingredients": [{"ref": "SK-101"}],
        "cycleId": "cycle-1",
    }
    template = new_lot_template("powder", _User(), "2024-06-01", source)

    assert template["product"] == "Sabor Carne"
    assert template["date"] == "2024-06-01"
    assert template["signature"] == ""
    assert template["ingredients"] == [{"ref": "SK-101"}]
    assert template["packagingMaterials"] == []
    for key in ("id", "lot", "cycleId"):
        assert key not in template


def test_liquid_template_starts_with_a_stage():
    class _User:
        id, name, role = "u1", "Pedro", "Production"

    template = new_lot_template("liquid", _User(), "2024-06-01")
    assert template["stages"] == [{"name": "Pre-Mezcla 1", "ingredients": []}]
    assert "finalProductReal" not in template


async def test_create_lot_computes_performance_and_announces(session, admin):
    service = ProductionService(session)
    saved = await service.create_lot(
        {
            "type": "powder",
            "item": "PROD-SK-100",
            "lot": "P-7",
            "product": "Sabor Carne",
            "status": "Pendiente",
            "finalProductReal": 9,
            "finalProductTheoreticalPowder": 10,
        },
        admin,
    )

    assert saved["performance"] == 90.0
    assert saved["endTime"]
    notifications = await NotificationRepository(session).list_all()
    assert notifications[0].title == "Nuevo Lote Registrado"
    assert notifications[0].link == "/production/PROD-SK-100"


async def test_create_lot_rejects_unknown_type(session, admin):
    with pytest.raises(QmsError):
        await ProductionService(session).create_lot({"type": "gas"}, admin)


@pytest.mark.parametrize(
    "body, field",
    [
        ({"type": "liquid", "productionOrder": "primero"}, "productionOrder"),
        ({"type": "powder", "finalProductReal": "n/a", "finalProductTheoreticalPowder": 10}, "finalProductReal"),
        ({"type": "liquid", "performance": "alto"}, "performance"),
    ],
)
async def test_create_lot_rejects_non_numeric_fields(session, admin, body, field):
    service = ProductionService(session)
    with pytest.raises(QmsError) as exc_info:
        await service.create_lot(body, admin)

    assert exc_info.value.status_code == 400
    assert exc_info.value.details == {"fields": [field]}
    assert await service.queue() == []


async def test_create_lot_coerces_numeric_strings(session, admin):
    service = ProductionService(session)
    saved = await service.create_lot(
        {"type": "powder", "productionOrder": "2", "finalProductReal": "9", "finalProductTheoreticalPowder": "10", "finalProductTheoreticalLiquid": ""},
        admin,
    )

    assert saved["productionOrder"] == 2
    assert saved["finalProductTheoreticalLiquid"] is None
    assert saved["performance"] == 90.0
    assert [lot["id"] for lot in await service.queue()] == [saved["id"]]


async def test_update_lot_rejects_non_numeric_order(session, admin):
    service = ProductionService(session)
    saved = await service.create_lot({"type": "liquid", "productionOrder": 1}, admin)

    with pytest.raises(QmsError):
        await service.update_lot(saved["id"], {"productionOrder": "ultimo"})

    assert (await service.get_lot(saved["id"]))["productionOrder"] == 1


async def test_completing_a_lot_announces_the_next_one(session):
    documents = DocumentRepository(session)
    await documents.add_or_update("production", {"id": "A", "item": "X", "lot": "L-A", "type": "powder", "status": "En Progreso", "productionOrder": 1})
    await documents.add_or_update("production", {"id": "B", "item": "X", "lot": "L-B", "product": "Sabor", "type": "powder", "status": "Pendiente", "productionOrder": 2})
    await documents.add_or_update("production", {"id": "C", "item": "Y", "lot": "L-C", "type": "powder", "status": "Pendiente", "productionOrder": 1})

    saved = await ProductionService(session).set_status("A", "Completado")

    assert saved["status"] == "Completado"
    notifications = await NotificationRepository(session).list_all()
    assert len(notifications) == 1
    assert notifications[0].recipient == "Production"
    assert "L-B" in notifications[0].message


async def test_completing_last_lot_sends_nothing(session):
    documents = DocumentRepository(session)
    await documents.add_or_update("production", {"id": "A", "item": "X", "type": "powder", "status": "Pendiente", "productionOrder": 1})

    await ProductionService(session).set_status("A", "Completado")

    assert await NotificationRepository(session).list_all() == []


async def test_queue_order_skips_unknown_ids(session):
    documents = DocumentRepository(session)
    await documents.add_or_update("production", {"id": "A", "type": "powder", "status": "Pendiente"})
    await documents.add_or_update("production", {"id": "B", "type": "powder", "status": "Pendiente"})
    service = ProductionService(session)

    updated = await service.save_queue_order(["B", "ghost", "A"])

    assert [(lot["id"], lot["productionOrder"]) for lot in updated] == [("B", 1), ("A", 3)]
    assert [lot["id"] for lot in await service.queue("powder")] == ["B", "A"]


async def test_item_page_falls_back_to_formulation(session):
    documents = DocumentRepository(session)
    await documents.add_or_update("formulations", {"id": "F1", "item": "LQ-1", "name": "Salsa Líquido"})
    service = ProductionService(session)

    page = await service.item_page("LQ-1")
    unknown = await service.item_page("NOPE")

    assert page["product"] == {"name": "Salsa Líquido", "type": "liquid"}
    assert page["lots"] == []
    assert unknown["product"]["name"] == "Producto Desconocido"


async def test_get_missing_lot(session):
    with pytest.raises(NotFoundError):
        await ProductionService(session).get_lot("missing")

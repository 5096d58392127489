from qms.repositories.documents import DocumentRepository
from qms.repositories.notifications import NotificationRepository
from qms.services.catalog import flow_modules
from qms.services.quality_flow import (
    COMPLETED,
    COMPLETED_AND_LOCKED,
    LOCKED,
    UNLOCKED,
    QualityFlowService,
    compute_flow_statuses,
    compute_pcc_tabs,
)

POWDER = flow_modules("powder")[:3]  # hygiene, luminometry, area clearance


def _statuses(result):
    return [m["status"] for m in result["modules"]]


def test_empty_flow_opens_first_module():
    result = compute_flow_statuses(POWDER, {}, set())
    assert _statuses(result) == [UNLOCKED, LOCKED, LOCKED]
    assert result["cycleComplete"] is False


def test_approved_modules_lock_behind_first_open_one():
    active = {
        "hygiene": [{"status": "Verificado"}],
        "quality_luminometry": [{"status": "Falla"}],
    }
    result = compute_flow_statuses(POWDER, active, set())
    assert _statuses(result) == [COMPLETED_AND_LOCKED, UNLOCKED, LOCKED]
    assert [m["isApproved"] for m in result["modules"]] == [True, False, False]


def test_one_unapproved_record_keeps_module_open():
    active = {"hygiene": [{"status": "Verificado"}, {"status": "Pendiente"}]}
    result = compute_flow_statuses(POWDER, active, set())
    assert _statuses(result)[0] == UNLOCKED


def test_override_unlocks_a_waiting_module():
    result = compute_flow_statuses(POWDER, {}, {"area_clearance_powders"})
    assert _statuses(result) == [UNLOCKED, LOCKED, UNLOCKED]


def test_cycle_complete_when_every_module_approved():
    active = {
        "hygiene": [{"status": "Verificado"}],
        "quality_luminometry": [{"result": "Pasa"}],
        "quality_area_clearance_powders": [{"status": "Conforme"}],
    }
    result = compute_flow_statuses(POWDER, active, set())
    assert result["cycleComplete"] is True
    assert set(_statuses(result)) == {COMPLETED_AND_LOCKED}


def test_pcc_tabs_open_in_order():
    records = {"pcc": [{"status": "Conforme"}], "endowment": [{"status": "No Conforme"}]}
    tabs = compute_pcc_tabs(records, is_admin=False)
    assert [t["status"] for t in tabs] == [COMPLETED, UNLOCKED, LOCKED, LOCKED, LOCKED]


def test_pcc_tabs_all_open_for_admin():
    tabs = compute_pcc_tabs({}, is_admin=True)
    assert {t["status"] for t in tabs} == {UNLOCKED}


def test_pcc_first_tab_reopens_when_all_completed():
    records = {name: [{"status": "Conforme"}] for name in ("pcc", "endowment", "utensils", "quality_pcc_final_inspection", "quality_magnet_inspection")}
    tabs = compute_pcc_tabs(records, is_admin=False)
    assert tabs[0]["status"] == UNLOCKED
    assert [t["status"] for t in tabs[1:]] == [COMPLETED] * 4


async def test_toggle_override_round_trip_notifies_everyone(session, admin):
    service = QualityFlowService(session)

    first = await service.toggle_override("scales_powders", admin)
    status = await service.flow_status("powder")
    scales = next(m for m in status["modules"] if m["id"] == "scales_powders")
    second = await service.toggle_override("scales_powders", admin)

    assert first == {"moduleId": "scales_powders", "overridden": True}
    assert scales["status"] == UNLOCKED
    assert second["overridden"] is False

    notifications = await NotificationRepository(session).list_all()
    assert len(notifications) == 2
    assert {n.recipient for n in notifications} == {"all"}


async def test_archive_cycle_starts_a_fresh_flow(session, admin):
    documents = DocumentRepository(session)
    await documents.add_or_update("hygiene", {"id": "H1", "status": "Verificado"})
    await documents.add_or_update("quality_luminometry", {"id": "Q1", "status": "Pasa"})
    await documents.add_or_update("quality_sensory", {"id": "S1", "result": "Aprobado"})
    service = QualityFlowService(session)

    result = await service.archive_cycle("powder", admin)
    status = await service.flow_status("powder")

    assert result["archived"] == 2
    assert result["cycleId"].startswith("cycle-powder-")
    assert status["modules"][0]["status"] == UNLOCKED
    # sensory is not part of the powder flow
    assert await documents.get_all_active("quality_sensory")
    notifications = await NotificationRepository(session).list_all()
    assert notifications[0].recipient == "Administrator"


async def test_print_cycle_groups_active_records(session):
    documents = DocumentRepository(session)
    await documents.add_or_update("hygiene", {"id": "H1", "status": "Verificado"})
    await documents.add_or_update("production", {"id": "L1", "type": "powder", "status": "Completado"})
    await documents.add_or_update("production", {"id": "L2", "type": "liquid", "status": "Pendiente"})

    sections = await QualityFlowService(session).print_cycle()

    by_id = {s["id"]: s for s in sections}
    assert list(by_id) == ["hygiene", "production_liquids", "production_powders"]
    assert by_id["hygiene"]["records"][0]["statusIcon"] == "✅"
    assert [r["id"] for r in by_id["production_powders"]["records"]] == ["L1"]

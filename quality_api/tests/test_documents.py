from qms.repositories.documents import DocumentRepository


async def test_add_or_update_generates_id_and_resets_cycle(session):
    repo = DocumentRepository(session)
    saved = await repo.add_or_update("hygiene", {"area": "Mezcladora #1", "cycleId": None})

    assert saved["id"]
    assert saved["area"] == "Mezcladora #1"
    assert saved["cycleId"] is None


async def test_add_or_update_merges_fields(session):
    repo = DocumentRepository(session)
    await repo.add_or_update("production", {"id": "L1", "lot": "P-1", "status": "Pendiente"})

    merged = await repo.add_or_update("production", {"id": "L1", "status": "Completado"})

    assert merged == {"id": "L1", "lot": "P-1", "status": "Completado", "cycleId": None}


async def test_add_or_update_without_cycle_id_clears_it(session):
    repo = DocumentRepository(session)
    await repo.add_or_update("pcc", {"id": "P1", "status": "Conforme", "cycleId": "cycle-powder-1"})

    kept = await repo.add_or_update("pcc", {"id": "P1", "status": "Conforme", "cycleId": "cycle-powder-1"})
    cleared = await repo.add_or_update("pcc", {"id": "P1", "status": "No Conforme"})

    assert kept["cycleId"] == "cycle-powder-1"
    assert cleared["cycleId"] is None


async def test_remove_missing_is_noop(session):
    repo = DocumentRepository(session)
    assert await repo.remove("hygiene", "missing") is False


async def test_archive_stamps_only_active_records_of_given_collections(session):
    repo = DocumentRepository(session)
    await repo.add_or_update("hygiene", {"id": "H1"})
    await repo.add_or_update("hygiene", {"id": "H2", "cycleId": "old-cycle"})
    await repo.add_or_update("quality_luminometry", {"id": "Q1"})
    await repo.add_or_update("utensils", {"id": "U1"})

    archived = await repo.archive_quality_records(["hygiene", "quality_luminometry"], "cycle-new")

    assert archived == 2
    assert await repo.get_all_active("hygiene") == []
    assert (await repo.get_by_id("hygiene", "H2"))["cycleId"] == "old-cycle"
    assert (await repo.get_by_id("utensils", "U1"))["cycleId"] is None


async def test_seed_initial_data_only_fills_empty_collections(session):
    repo = DocumentRepository(session)
    items = [{"customId": "UT-001", "name": "Cuchillo"}, {"name": "Espátula"}]

    assert await repo.seed_initial_data("utensils", items) == 2
    assert await repo.seed_initial_data("utensils", items) == 0

    first = await repo.get_by_id("utensils", "UT-001")
    assert first == {"id": "UT-001", "name": "Cuchillo", "cycleId": None}
    assert await repo.count("utensils") == 2

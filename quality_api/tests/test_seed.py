from qms.core.security import verify_password
from qms.db.seed import DOCUMENT_FIXTURES, USERS, seed_collections
from qms.repositories.documents import DocumentRepository
from qms.repositories.security import UserRepository


async def test_seed_fills_empty_database(session):
    counts = await seed_collections(session, "tropical123")

    assert counts["users"] == len(USERS)
    for collection, items in DOCUMENT_FIXTURES.items():
        assert counts[collection] == len(items)

    admin = await UserRepository(session).get_user_by_email("admin@tropical.com")
    assert admin.role == "Administrator"
    assert verify_password("tropical123", admin.hashed_password)

    lot = await DocumentRepository(session).get_by_id("production", "LOTE-2405-001")
    assert lot["formulationId"] == "FORM-001"
    assert lot["responsible"]["role"] == "Production"


async def test_seed_is_idempotent(session):
    await seed_collections(session, "tropical123")
    again = await seed_collections(session, "tropical123")

    assert set(again.values()) == {0}
    assert await UserRepository(session).count_users() == len(USERS)


async def test_seed_leaves_existing_collections_alone(session):
    await DocumentRepository(session).add_or_update("utensils", {"id": "mine", "name": "Pinza"})

    counts = await seed_collections(session, "tropical123")

    assert counts["utensils"] == 0
    assert counts["pcc"] == 1

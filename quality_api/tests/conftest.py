import os

os.environ.setdefault("RUN_MIGRATIONS_ON_STARTUP", "false")
os.environ.setdefault("AUTO_SEED", "false")
os.environ.setdefault("JWT_SECRET_KEY", "test-secret-key")
os.environ.setdefault("STORAGE_BACKEND", "local")

import pytest  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

import qms.db.models  # noqa: E402,F401
from qms.core.security import create_access_token, get_password_hash  # noqa: E402
from qms.db import session as db_session  # noqa: E402
from qms.db.base import Base  # noqa: E402
from qms.repositories.security import UserRepository  # noqa: E402

PASSWORD = "secret123"
_HASHED = get_password_hash(PASSWORD)


@pytest.fixture
async def engine(monkeypatch):
    """In-memory SQLite database installed in place of the PostgreSQL engine."""
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    maker = async_sessionmaker(bind=engine, expire_on_commit=False, autoflush=False, autocommit=False)
    monkeypatch.setattr(db_session, "_ENGINE", engine)
    monkeypatch.setattr(db_session, "_SESSION_MAKER", maker)
    yield engine
    await engine.dispose()


@pytest.fixture
async def session(engine):
    async with db_session.get_session_maker()() as s:
        yield s


@pytest.fixture
def make_user(session):
    """Factory creating users with the shared test password."""
    counter = {"n": 0}

    async def _make(role="Administrator", name=None, email=None, is_active=True, user_id=None):
        counter["n"] += 1
        n = counter["n"]
        return await UserRepository(session).create_user(
            user_id=user_id,
            name=name or f"{role} User {n}",
            email=email or f"{role.lower()}{n}@tropical.com",
            role=role,
            document_type="CC",
            document_number=f"1000{n:04d}",
            hashed_password=_HASHED,
            is_active=is_active,
        )

    return _make


@pytest.fixture
async def admin(make_user):
    return await make_user("Administrator", name="Ana Admin")


@pytest.fixture
async def quality_user(make_user):
    return await make_user("Quality", name="Iván de Calidad")


@pytest.fixture
async def production_user(make_user):
    return await make_user("Production", name="Pedro de Producción")


def auth_headers(user):
    return {"Authorization": f"Bearer {create_access_token(subject=user.id, role=user.role)}"}


@pytest.fixture
async def client(engine, tmp_path, monkeypatch):
    monkeypatch.setenv("STORAGE_LOCAL_DIR", str(tmp_path / "uploads"))
    from qms.api.main import app

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as c:
        yield c


@pytest.fixture
def auth():
    return auth_headers

from collections.abc import AsyncGenerator
from pathlib import Path

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlmodel.ext.asyncio.session import AsyncSession

from taskboard.auth.context import RequestContext
from taskboard.auth.credentials import CredentialVerifier
from taskboard.core.config import Settings
from taskboard.database import Database
from taskboard.rpc.app_router import app_router

TEST_SECRET = "test-signing-secret"


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    return Settings(
        environment="test",
        database_url=f"sqlite+aiosqlite:///{tmp_path / 'test.db'}",
        jwt_secret=TEST_SECRET,
        bcrypt_rounds=4,
        create_tables=False,
        fallback_identity=1,
    )


@pytest_asyncio.fixture
async def database(settings: Settings) -> AsyncGenerator[Database, None]:
    db = Database(settings.database_url)
    await db.create_all()
    yield db
    await db.dispose()


@pytest_asyncio.fixture
async def session(database: Database) -> AsyncGenerator[AsyncSession, None]:
    async with database.session() as s:
        yield s


@pytest.fixture
def verifier() -> CredentialVerifier:
    return CredentialVerifier(TEST_SECRET)


@pytest.fixture
def make_caller(session: AsyncSession, verifier: CredentialVerifier):
    """Build an in-process caller, authenticated when an identity is given."""

    def _make(identity: int | None = None):
        if identity is None:
            context = RequestContext()
        else:
            context = RequestContext.for_identity(identity)
        return app_router.create_caller(context, session, verifier, password_rounds=4)

    return _make


@pytest_asyncio.fixture
async def app(settings: Settings, database: Database):
    from taskboard.main import create_app

    return create_app(settings, database=database)


@pytest_asyncio.fixture
async def client(app) -> AsyncGenerator[AsyncClient, None]:
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac

"""Integration test fixtures with a real (in-memory SQLite) database."""

from collections.abc import AsyncGenerator
from decimal import Decimal
from uuid import UUID

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from staff_payroll.api.app import create_app
from staff_payroll.api.dependencies import get_db_session
from staff_payroll.config import Settings, StatutoryPolicy, load_policy
from staff_payroll.database import create_schema, create_session_factory, get_engine
from staff_payroll.models import StaffMember

TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

# Fixed staff IDs so assertions can name them
ALICE_ID = UUID("e5a4c9d3-4567-89ab-cdef-012345678901")
BOB_ID = UUID("f6b5dae4-5678-9abc-def0-123456789012")
CAROL_ID = UUID("a1b2c3d4-1111-2222-3333-444455556666")
DAVID_ID = UUID("b2c3d4e5-2222-3333-4444-555566667777")
ERIC_ID = UUID("c3d4e5f6-3333-4444-5555-666677778888")


@pytest_asyncio.fixture
async def test_engine() -> AsyncGenerator[AsyncEngine, None]:
    """Fresh in-memory database per test."""
    engine = get_engine(TEST_DATABASE_URL)
    await create_schema(engine)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(test_engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return create_session_factory(test_engine)


@pytest_asyncio.fixture
async def db_session(
    session_factory: async_sessionmaker[AsyncSession],
) -> AsyncGenerator[AsyncSession, None]:
    """Get database session for integration tests."""
    async with session_factory() as session:
        yield session
        await session.rollback()


@pytest.fixture
def policy() -> StatutoryPolicy:
    return load_policy()


@pytest_asyncio.fixture
async def roster(session_factory: async_sessionmaker[AsyncSession]) -> dict[str, UUID]:
    """Seed the staff roster.

    Alice and Bob are payable; Carol has a zero salary, David has none and
    Eric is inactive.
    """
    async with session_factory() as session:
        session.add_all(
            [
                StaffMember(
                    staff_member_id=ALICE_ID,
                    external_id="EMP001",
                    name="Alice Wanjiru",
                    department="Finance",
                    monthly_salary=Decimal("80000"),
                ),
                StaffMember(
                    staff_member_id=BOB_ID,
                    external_id="EMP002",
                    name="Bob Otieno",
                    department="Operations",
                    monthly_salary=Decimal("45000"),
                ),
                StaffMember(
                    staff_member_id=CAROL_ID,
                    external_id="EMP003",
                    name="Carol Njeri",
                    department="Operations",
                    monthly_salary=Decimal("0"),
                ),
                StaffMember(
                    staff_member_id=DAVID_ID,
                    external_id="EMP004",
                    name="David Kamau",
                    monthly_salary=None,
                ),
                StaffMember(
                    staff_member_id=ERIC_ID,
                    external_id="EMP005",
                    name="Eric Mwangi",
                    monthly_salary=Decimal("120000"),
                    is_active=False,
                ),
            ]
        )
        await session.commit()
    return {"alice": ALICE_ID, "bob": BOB_ID, "carol": CAROL_ID, "david": DAVID_ID}


@pytest_asyncio.fixture
async def client(
    session_factory: async_sessionmaker[AsyncSession],
    policy: StatutoryPolicy,
) -> AsyncGenerator[AsyncClient, None]:
    """Create async HTTP client for API testing."""
    settings = Settings(
        database_url=TEST_DATABASE_URL,
        engine_version="test",
        host="127.0.0.1",
        port=8000,
        debug=False,
        create_schema=False,
    )
    app = create_app(settings, policy=policy)

    async def override_get_db_session() -> AsyncGenerator[AsyncSession, None]:
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db_session] = override_get_db_session

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client

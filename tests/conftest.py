"""
Pytest configuration and fixtures.
Provides test app client, async DB session replacement and seeded users.
"""

import os

# Must be set before app modules read settings
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("RATE_LIMIT_ENABLED", "false")

from decimal import Decimal

import pytest
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker
from sqlalchemy.pool import StaticPool

from app.main import app
from app.api.v1.middleware import require_authentication
from app.db.base import Base
from app.db.session import get_db
from app.models.user import User, UserRole
from app.models.client import Client, Lead
from app.models.proposal import (
    Proposal,
    PaymentTerm,
    ProposalStatus,
    ClientApprovalStatus,
    UpfrontPaymentType,
)


# Test database URL (in-memory SQLite for testing)
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


@pytest.fixture(scope="function")
async def test_session_maker():
    """
    Fresh in-memory database per test.
    StaticPool keeps every session on the same connection so they see one database.
    """
    test_engine = create_async_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield async_sessionmaker(
        test_engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )

    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await test_engine.dispose()


@pytest.fixture(scope="function")
async def test_db_session(test_session_maker):
    """Session for seeding data and for service-level tests."""
    async with test_session_maker() as session:
        yield session


@pytest.fixture(scope="function")
async def test_client(test_session_maker):
    """
    HTTP client against the app with get_db pointed at the test database.
    Authenticate with the ``login`` fixture.
    """
    async def override_get_db():
        async with test_session_maker() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db] = override_get_db
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client
    app.dependency_overrides.clear()


@pytest.fixture
def login():
    """Make subsequent requests run as the given user."""
    def _login(user: User) -> None:
        app.dependency_overrides[require_authentication] = lambda: user
    return _login


async def _add(session: AsyncSession, instance):
    session.add(instance)
    await session.commit()
    return instance


@pytest.fixture
async def admin_user(test_db_session):
    return await _add(test_db_session, User(name="Ada Admin", email="admin@example.com", role=UserRole.ADMIN))


@pytest.fixture
async def manager_user(test_db_session):
    return await _add(test_db_session, User(name="Max Manager", email="manager@example.com", role=UserRole.MANAGER))


@pytest.fixture
async def staff_user(test_db_session):
    return await _add(test_db_session, User(name="Sam Staff", email="staff@example.com", role=UserRole.STAFF))


@pytest.fixture
async def client_record(test_db_session):
    return await _add(
        test_db_session,
        Client(name="Acme Ltd", email="billing@acme.example", company="Acme"),
    )


@pytest.fixture
async def client_user(test_db_session, client_record):
    """Portal user whose email matches client_record."""
    return await _add(
        test_db_session,
        User(name="Acme Billing", email="billing@acme.example", role=UserRole.CLIENT),
    )


@pytest.fixture
async def lead_record(test_db_session):
    return await _add(test_db_session, Lead(name="Future Co", email="hello@future.example"))


@pytest.fixture
def make_proposal(test_db_session, staff_user, client_record):
    """
    Persist a proposal with a single proposal-level payment term.
    Keyword arguments override proposal columns; ``term`` overrides payment term columns.
    """
    async def _make(term=None, **overrides):
        values = {
            "proposal_number": "PROP-2024-001",
            "client_id": client_record.id,
            "created_by": staff_user.id,
            "title": "Website Redesign",
            "amount": Decimal("1000"),
            "currency": "EUR",
            "client_discount_percent": Decimal("10"),
            "status": ProposalStatus.APPROVED,
            "client_approval_status": ClientApprovalStatus.APPROVED,
        }
        values.update(overrides)
        proposal = Proposal(**values)
        term_values = {
            "upfront_type": UpfrontPaymentType.PERCENT,
            "upfront_value": Decimal("20"),
        }
        if term is not None:
            term_values = term
        proposal.payment_terms = [PaymentTerm(**term_values)]
        return await _add(test_db_session, proposal)
    return _make

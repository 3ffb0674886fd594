"""
Pytest configuration and shared fixtures for backend tests.
"""

import sys
from pathlib import Path

# Add backend directory to path for imports
backend_dir = Path(__file__).parent.parent
sys.path.insert(0, str(backend_dir))

import pytest
from datetime import UTC, datetime, timedelta
from typing import AsyncGenerator
from unittest.mock import MagicMock
from uuid import uuid4

from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

# Import after path is set
from adapters.cms import SanityAdapter
from adapters.identity import SupabaseAdminAdapter
from adapters.payments import StripeAdapter
from api.dependencies import (
    get_identity_admin,
    get_sanity_adapter,
    get_stripe_adapter,
    token_service,
)
from api.middleware.rate_limit import limiter
from infrastructure.database.connection import get_db
from infrastructure.database.models import (
    Base,
    Payment,
    PaymentMethod,
    PaymentStatus,
    Profile,
)


# Database URL for testing (in-memory SQLite)
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


@pytest.fixture
async def db_engine():
    """Create a test database engine."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    # Create all tables
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    # Drop all tables
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


@pytest.fixture
async def db_session(db_engine) -> AsyncGenerator[AsyncSession, None]:
    """Create a test database session."""
    async_session = async_sessionmaker(
        db_engine, class_=AsyncSession, expire_on_commit=False
    )

    async with async_session() as session:
        yield session
        await session.rollback()


async def _make_profile(db_session: AsyncSession, **values) -> Profile:
    profile = Profile(id=str(uuid4()), **values)
    db_session.add(profile)
    await db_session.commit()
    await db_session.refresh(profile)
    return profile


def headers_for(profile: Profile) -> dict:
    """Bearer headers carrying a locally minted access token for ``profile``."""
    token = token_service.create_access_token(user_id=profile.id, email=profile.email)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
async def free_user(db_session: AsyncSession) -> Profile:
    """Free tier user with no payments."""
    return await _make_profile(db_session, email="free@example.com", tier="free")


@pytest.fixture
async def pro_user(db_session: AsyncSession) -> Profile:
    """
    Pro tier user with a completed Stripe payment.

    The payment period runs for another 20 days and carries a
    subscription id, so live lookups and cancellation have a target.
    """
    profile = await _make_profile(db_session, email="pro@example.com", tier="pro")
    now = datetime.now(UTC)
    db_session.add(
        Payment(
            user_id=profile.id,
            amount=9.99,
            currency="eur",
            status=PaymentStatus.COMPLETED.value,
            payment_method=PaymentMethod.STRIPE.value,
            subscription_period_start=now - timedelta(days=10),
            subscription_period_end=now + timedelta(days=20),
            next_payment_date=now + timedelta(days=20),
            tier_at_payment="pro",
            stripe_subscription_id="sub_pro_123",
        )
    )
    await db_session.commit()
    return profile


@pytest.fixture
async def admin_user(db_session: AsyncSession) -> Profile:
    """Profile with the admin role."""
    return await _make_profile(db_session, email="admin@example.com", role="admin", tier="free")


@pytest.fixture
def auth_headers(free_user: Profile) -> dict:
    """Authentication headers for the free user."""
    return headers_for(free_user)


@pytest.fixture
def pro_headers(pro_user: Profile) -> dict:
    return headers_for(pro_user)


@pytest.fixture
def admin_headers(admin_user: Profile) -> dict:
    return headers_for(admin_user)


@pytest.fixture
def stripe_mock() -> MagicMock:
    """Stripe adapter double. Async methods become AsyncMocks via spec=StripeAdapter."""
    adapter = MagicMock(spec=StripeAdapter)
    adapter.is_configured = True
    adapter.find_subscription_by_email.return_value = None
    return adapter


@pytest.fixture
def sanity_mock() -> MagicMock:
    adapter = MagicMock(spec=SanityAdapter)
    adapter.fetch_templates.return_value = []
    adapter.fetch_case_studies.return_value = []
    return adapter


@pytest.fixture
def identity_mock() -> MagicMock:
    adapter = MagicMock(spec=SupabaseAdminAdapter)
    adapter.find_user_by_email.return_value = None
    return adapter


@pytest.fixture
async def async_client(
    db_session: AsyncSession,
    stripe_mock: MagicMock,
    sanity_mock: MagicMock,
    identity_mock: MagicMock,
) -> AsyncGenerator[AsyncClient, None]:
    """Create an async HTTP client for testing."""
    # Import app here to avoid circular imports
    from main import app

    async def override_get_db() -> AsyncGenerator[AsyncSession, None]:
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_stripe_adapter] = lambda: stripe_mock
    app.dependency_overrides[get_sanity_adapter] = lambda: sanity_mock
    app.dependency_overrides[get_identity_admin] = lambda: identity_mock

    # Reset rate limiter state between tests to prevent cross-test 429s
    limiter.reset()

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client

    app.dependency_overrides.clear()

"""Integration test fixtures: API client over the test database."""

from collections.abc import AsyncGenerator

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from salon_settlement.api.app import create_app
from salon_settlement.api.dependencies import get_db_session
from salon_settlement.models import Booking, StaffMember


@pytest.fixture
async def client(
    session: AsyncSession,
    session_factory: async_sessionmaker[AsyncSession],
    test_booking: Booking,
    test_staff: dict[str, StaffMember],
) -> AsyncGenerator[AsyncClient, None]:
    """Create async HTTP client for API testing.

    The catalog, booking and staff fixtures are committed first so each
    request's own session sees them.
    """
    await session.commit()

    async def override_db_session() -> AsyncGenerator[AsyncSession, None]:
        async with session_factory() as request_session:
            yield request_session

    app = create_app()
    app.dependency_overrides[get_db_session] = override_db_session

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client

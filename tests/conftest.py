"""Pytest fixtures for settlement engine tests."""

from __future__ import annotations

from datetime import date
from decimal import Decimal
from typing import AsyncGenerator
from uuid import uuid4

import pytest
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from salon_settlement.config import Settings
from salon_settlement.models import (
    Base,
    Booking,
    SalaryComponent,
    Salon,
    SalonService,
    StaffMember,
)

# In-memory SQLite shared across sessions through a single connection
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


@pytest.fixture
async def engine():
    """Create a fresh test database per test."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        echo=False,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest.fixture
def session_factory(engine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )


@pytest.fixture
async def session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    """Create a database session for each test."""
    async with session_factory() as session:
        yield session
        await session.rollback()


@pytest.fixture
def test_settings() -> Settings:
    """Settings with the standard 18% rate and ₹1,00,000 tip ceiling."""
    return Settings(
        database_url=TEST_DATABASE_URL,
        engine_version="test",
        host="127.0.0.1",
        port=8000,
        debug=False,
        log_level="DEBUG",
        tax_rate=Decimal("0.18"),
        tip_ceiling_rupees=100_000,
    )


@pytest.fixture
async def test_salon(session: AsyncSession) -> Salon:
    """Create a test salon."""
    salon = Salon(salon_id=uuid4(), name="Glow Studio", is_active=True)
    session.add(salon)
    await session.flush()
    return salon


@pytest.fixture
async def other_salon(session: AsyncSession) -> Salon:
    """Create a second salon for isolation checks."""
    salon = Salon(salon_id=uuid4(), name="Other Salon", is_active=True)
    session.add(salon)
    await session.flush()
    return salon


@pytest.fixture
async def test_services(session: AsyncSession, test_salon: Salon) -> dict[str, SalonService]:
    """Create catalog services: two active, one retired."""
    haircut = SalonService(
        salon_service_id=uuid4(),
        salon_id=test_salon.salon_id,
        name="Haircut",
        price_paisa=50_000,  # ₹500.00
        duration_minutes=45,
        is_active=True,
    )
    colour = SalonService(
        salon_service_id=uuid4(),
        salon_id=test_salon.salon_id,
        name="Hair Colour",
        price_paisa=120_000,  # ₹1,200.00
        duration_minutes=90,
        is_active=True,
    )
    retired = SalonService(
        salon_service_id=uuid4(),
        salon_id=test_salon.salon_id,
        name="Old Facial",
        price_paisa=80_000,
        duration_minutes=60,
        is_active=False,
    )
    session.add_all([haircut, colour, retired])
    await session.flush()
    return {"haircut": haircut, "colour": colour, "retired": retired}


@pytest.fixture
async def test_booking(
    session: AsyncSession,
    test_salon: Salon,
    test_services: dict[str, SalonService],
) -> Booking:
    """Create a confirmed booking for a haircut."""
    booking = Booking(
        booking_id=uuid4(),
        salon_id=test_salon.salon_id,
        service_id=test_services["haircut"].salon_service_id,
        client_name="Priya Sharma",
        client_phone="+919800000001",
        client_email="priya@example.com",
        booking_date=date(2024, 3, 15),
        booking_time="10:30",
        status="confirmed",
        payment_status="pending",
    )
    session.add(booking)
    await session.flush()
    return booking


@pytest.fixture
async def test_staff(session: AsyncSession, test_salon: Salon) -> dict[str, StaffMember]:
    """Create staff with active salary components, plus one inactive member.

    Asha: gross ₹30,000.00, deductions ₹2,000.00
    Ravi: gross ₹19,000.00, deductions ₹135.00
    """
    asha = StaffMember(staff_id=uuid4(), salon_id=test_salon.salon_id, name="Asha", is_active=True)
    ravi = StaffMember(staff_id=uuid4(), salon_id=test_salon.salon_id, name="Ravi", is_active=True)
    former = StaffMember(
        staff_id=uuid4(), salon_id=test_salon.salon_id, name="Former", is_active=False
    )
    session.add_all([asha, ravi, former])
    await session.flush()

    session.add_all([
        SalaryComponent(
            salary_component_id=uuid4(),
            staff_id=asha.staff_id,
            salon_id=test_salon.salon_id,
            base_salary_paisa=2_500_000,
            hra_allowance_paisa=500_000,
            pf_deduction_paisa=180_000,
            professional_tax_paisa=20_000,
            effective_from=date(2024, 1, 1),
            is_active=True,
        ),
        SalaryComponent(
            salary_component_id=uuid4(),
            staff_id=ravi.staff_id,
            salon_id=test_salon.salon_id,
            base_salary_paisa=1_800_000,
            travel_allowance_paisa=100_000,
            esi_deduction_paisa=13_500,
            effective_from=date(2024, 1, 1),
            is_active=True,
        ),
        SalaryComponent(
            salary_component_id=uuid4(),
            staff_id=former.staff_id,
            salon_id=test_salon.salon_id,
            base_salary_paisa=1_000_000,
            effective_from=date(2023, 1, 1),
            is_active=True,
        ),
    ])
    await session.flush()
    return {"asha": asha, "ravi": ravi, "former": former}

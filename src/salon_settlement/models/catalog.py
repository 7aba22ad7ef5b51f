"""Salon and service catalog models (read-only to the engine)."""

from __future__ import annotations

from uuid import UUID, uuid4

from sqlalchemy import BigInteger, Boolean, CheckConstraint, ForeignKey, Integer, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from salon_settlement.models.base import Base, TimestampMixin


class Salon(Base, TimestampMixin):
    """A salon (the tenant boundary for every settlement operation)."""

    __tablename__ = "salon"

    salon_id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)
    name: Mapped[str] = mapped_column(String, nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    # Relationships
    services: Mapped[list[SalonService]] = relationship(back_populates="salon")


class SalonService(Base, TimestampMixin):
    """A priced service in a salon's catalog."""

    __tablename__ = "salon_service"

    salon_service_id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)
    salon_id: Mapped[UUID] = mapped_column(
        ForeignKey("salon.salon_id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    name: Mapped[str] = mapped_column(String, nullable=False)
    price_paisa: Mapped[int] = mapped_column(BigInteger, nullable=False)
    duration_minutes: Mapped[int | None] = mapped_column(Integer, nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    __table_args__ = (
        CheckConstraint("price_paisa >= 0", name="salon_service_price_non_negative"),
    )

    # Relationships
    salon: Mapped[Salon] = relationship(back_populates="services")

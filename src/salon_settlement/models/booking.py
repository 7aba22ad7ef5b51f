"""Booking model (external entity; checkout writes status and payment)."""

from __future__ import annotations

from datetime import date, datetime
from enum import Enum
from uuid import UUID, uuid4

from sqlalchemy import BigInteger, CheckConstraint, Date, DateTime, ForeignKey, String, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from salon_settlement.models.base import Base, TimestampMixin
from salon_settlement.models.catalog import SalonService


class BookingStatus(str, Enum):
    """Booking lifecycle states."""

    PENDING = "pending"
    CONFIRMED = "confirmed"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    NO_SHOW = "no_show"


class BookingPaymentStatus(str, Enum):
    """Booking payment markers."""

    PENDING = "pending"
    PAID = "paid"


# States from which a booking may be checked out
CHECKOUTABLE_STATUSES = (
    BookingStatus.PENDING.value,
    BookingStatus.CONFIRMED.value,
    BookingStatus.IN_PROGRESS.value,
)


class Booking(Base, TimestampMixin):
    """A client appointment at a salon."""

    __tablename__ = "booking"

    booking_id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)
    salon_id: Mapped[UUID] = mapped_column(
        ForeignKey("salon.salon_id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    service_id: Mapped[UUID | None] = mapped_column(
        ForeignKey("salon_service.salon_service_id"),
        nullable=True,
    )
    staff_id: Mapped[UUID | None] = mapped_column(
        ForeignKey("staff_member.staff_id"),
        nullable=True,
    )
    client_name: Mapped[str] = mapped_column(String, nullable=False)
    client_phone: Mapped[str | None] = mapped_column(String, nullable=True)
    client_email: Mapped[str | None] = mapped_column(String, nullable=True)
    booking_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    booking_time: Mapped[str | None] = mapped_column(String, nullable=True)
    status: Mapped[str] = mapped_column(
        String, nullable=False, default=BookingStatus.PENDING.value
    )
    payment_status: Mapped[str] = mapped_column(
        String, nullable=False, default=BookingPaymentStatus.PENDING.value
    )
    final_amount_paisa: Mapped[int | None] = mapped_column(BigInteger, nullable=True)
    updated_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True, onupdate=func.now()
    )

    __table_args__ = (
        CheckConstraint(
            "status IN ('pending', 'confirmed', 'in_progress', 'completed', 'cancelled', 'no_show')",
            name="booking_status_check",
        ),
        CheckConstraint(
            "payment_status IN ('pending', 'paid')",
            name="booking_payment_status_check",
        ),
        CheckConstraint(
            "final_amount_paisa IS NULL OR final_amount_paisa >= 0",
            name="booking_final_amount_non_negative",
        ),
    )

    # Relationships
    service: Mapped[SalonService | None] = relationship()

"""Persisted checkout receipts."""

from __future__ import annotations

from datetime import datetime
from typing import Any
from uuid import UUID, uuid4

from sqlalchemy import JSON, BigInteger, CheckConstraint, DateTime, ForeignKey, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from salon_settlement.models.base import Base, TimestampMixin


class CheckoutTransaction(Base, TimestampMixin):
    """One completed checkout. Insert-only: corrections are new rows."""

    __tablename__ = "checkout_transaction"

    checkout_transaction_id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)
    transaction_id: Mapped[str] = mapped_column(String, nullable=False, unique=True)
    salon_id: Mapped[UUID] = mapped_column(
        ForeignKey("salon.salon_id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    booking_id: Mapped[UUID | None] = mapped_column(
        ForeignKey("booking.booking_id"),
        nullable=True,
    )
    client_name: Mapped[str | None] = mapped_column(String, nullable=True)
    client_phone: Mapped[str | None] = mapped_column(String, nullable=True)
    items_json: Mapped[list[dict[str, Any]]] = mapped_column(JSON, nullable=False)

    subtotal_paisa: Mapped[int] = mapped_column(BigInteger, nullable=False)
    discount_paisa: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)
    discount_details_json: Mapped[dict[str, Any] | None] = mapped_column(JSON, nullable=True)
    tax_paisa: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)
    tip_paisa: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)
    total_paisa: Mapped[int] = mapped_column(BigInteger, nullable=False)

    payment_method: Mapped[str] = mapped_column(String, nullable=False)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    status: Mapped[str] = mapped_column(String, nullable=False, default="completed")
    processed_by: Mapped[UUID | None] = mapped_column(nullable=True)
    processed_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    __table_args__ = (
        CheckConstraint(
            "subtotal_paisa >= 0 AND discount_paisa >= 0 AND tax_paisa >= 0 "
            "AND tip_paisa >= 0 AND total_paisa >= 0",
            name="checkout_transaction_amounts_non_negative",
        ),
        CheckConstraint(
            "discount_paisa <= subtotal_paisa",
            name="checkout_transaction_discount_within_subtotal",
        ),
        CheckConstraint(
            "payment_method IN ('cash', 'card', 'upi', 'wallet', 'savedCard', 'split')",
            name="checkout_transaction_payment_method_check",
        ),
    )

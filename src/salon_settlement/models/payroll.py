"""Payroll cycle and entry models."""

from __future__ import annotations

from datetime import date, datetime
from typing import TYPE_CHECKING
from uuid import UUID, uuid4

from sqlalchemy import (
    BigInteger,
    CheckConstraint,
    Date,
    DateTime,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from salon_settlement.models.base import Base, TimestampMixin

if TYPE_CHECKING:
    from salon_settlement.models.staff import StaffMember


class PayrollCycle(Base, TimestampMixin):
    """One payroll period for a salon. Sole owner of its entries."""

    __tablename__ = "payroll_cycle"

    payroll_cycle_id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)
    salon_id: Mapped[UUID] = mapped_column(
        ForeignKey("salon.salon_id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    period_year: Mapped[int] = mapped_column(Integer, nullable=False)
    period_month: Mapped[int] = mapped_column(Integer, nullable=False)
    period_start_date: Mapped[date] = mapped_column(Date, nullable=False)
    period_end_date: Mapped[date] = mapped_column(Date, nullable=False)
    status: Mapped[str] = mapped_column(String, nullable=False, default="draft")

    total_staff_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    total_gross_salary_paisa: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)
    total_commissions_paisa: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)
    total_deductions_paisa: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)
    total_net_payable_paisa: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)

    created_by: Mapped[UUID | None] = mapped_column(nullable=True)
    processed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    processed_by: Mapped[UUID | None] = mapped_column(nullable=True)
    approved_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    approved_by: Mapped[UUID | None] = mapped_column(nullable=True)
    paid_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    __table_args__ = (
        UniqueConstraint(
            "salon_id", "period_year", "period_month", name="payroll_cycle_salon_period_unique"
        ),
        CheckConstraint(
            "status IN ('draft', 'processed', 'approved', 'paid')",
            name="payroll_cycle_status_check",
        ),
        CheckConstraint("period_month BETWEEN 1 AND 12", name="payroll_cycle_month_check"),
        CheckConstraint(
            "period_end_date >= period_start_date", name="payroll_cycle_dates_check"
        ),
    )

    # Relationships
    entries: Mapped[list[PayrollEntry]] = relationship(
        back_populates="cycle",
        cascade="all, delete-orphan",
        order_by="PayrollEntry.created_at",
    )


class PayrollEntry(Base, TimestampMixin):
    """One staff member's earnings, deductions and net payable for a cycle.

    Amount columns are written once when the cycle is processed. Only
    payment_status and paid_at change afterwards.
    """

    __tablename__ = "payroll_entry"

    payroll_entry_id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)
    payroll_cycle_id: Mapped[UUID] = mapped_column(
        ForeignKey("payroll_cycle.payroll_cycle_id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    staff_id: Mapped[UUID] = mapped_column(
        ForeignKey("staff_member.staff_id"),
        nullable=False,
    )
    salon_id: Mapped[UUID] = mapped_column(
        ForeignKey("salon.salon_id", ondelete="CASCADE"),
        nullable=False,
    )
    salary_component_id: Mapped[UUID | None] = mapped_column(
        ForeignKey("salary_component.salary_component_id"),
        nullable=True,
    )

    # Earnings
    base_salary_paisa: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)
    allowances_paisa: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)
    commission_earnings_paisa: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)
    tips_received_paisa: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)
    bonuses_paisa: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)

    # Deductions
    tds_deduction_paisa: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)
    pf_deduction_paisa: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)
    esi_deduction_paisa: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)
    professional_tax_paisa: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)
    loan_recovery_paisa: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)
    advance_deduction_paisa: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)
    other_deductions_paisa: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)

    # Derived at processing time
    gross_earnings_paisa: Mapped[int] = mapped_column(BigInteger, nullable=False)
    total_deductions_paisa: Mapped[int] = mapped_column(BigInteger, nullable=False)
    net_payable_paisa: Mapped[int] = mapped_column(BigInteger, nullable=False)

    payment_status: Mapped[str] = mapped_column(String, nullable=False, default="pending")
    paid_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    __table_args__ = (
        UniqueConstraint("payroll_cycle_id", "staff_id", name="payroll_entry_cycle_staff_unique"),
        CheckConstraint(
            "payment_status IN ('pending', 'paid')",
            name="payroll_entry_payment_status_check",
        ),
        CheckConstraint(
            "net_payable_paisa = gross_earnings_paisa - total_deductions_paisa",
            name="payroll_entry_net_check",
        ),
        CheckConstraint("net_payable_paisa >= 0", name="payroll_entry_net_non_negative"),
    )

    # Relationships
    cycle: Mapped[PayrollCycle] = relationship(back_populates="entries")
    staff: Mapped[StaffMember] = relationship()

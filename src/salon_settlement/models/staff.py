"""Staff and salary configuration models (read-only to the engine)."""

from __future__ import annotations

from datetime import date
from uuid import UUID, uuid4

from sqlalchemy import BigInteger, Boolean, CheckConstraint, Date, ForeignKey, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from salon_settlement.models.base import Base, TimestampMixin


class StaffMember(Base, TimestampMixin):
    """A staff member employed by a salon."""

    __tablename__ = "staff_member"

    staff_id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)
    salon_id: Mapped[UUID] = mapped_column(
        ForeignKey("salon.salon_id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    name: Mapped[str] = mapped_column(String, nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    # Relationships
    salary_components: Mapped[list[SalaryComponent]] = relationship(back_populates="staff")


class SalaryComponent(Base, TimestampMixin):
    """Monthly salary configuration for a staff member.

    Only one component per staff member is active at a time; older rows are
    kept with is_active = False for history.
    """

    __tablename__ = "salary_component"

    salary_component_id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)
    staff_id: Mapped[UUID] = mapped_column(
        ForeignKey("staff_member.staff_id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    salon_id: Mapped[UUID] = mapped_column(
        ForeignKey("salon.salon_id", ondelete="CASCADE"),
        nullable=False,
    )

    # Earnings
    base_salary_paisa: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)
    hra_allowance_paisa: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)
    travel_allowance_paisa: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)
    meal_allowance_paisa: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)
    other_allowances_paisa: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)

    # Statutory deductions
    pf_deduction_paisa: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)
    esi_deduction_paisa: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)
    professional_tax_paisa: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)
    tds_deduction_paisa: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)

    effective_from: Mapped[date | None] = mapped_column(Date, nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    __table_args__ = (
        CheckConstraint(
            "base_salary_paisa >= 0 AND hra_allowance_paisa >= 0 "
            "AND travel_allowance_paisa >= 0 AND meal_allowance_paisa >= 0 "
            "AND other_allowances_paisa >= 0",
            name="salary_component_earnings_non_negative",
        ),
        CheckConstraint(
            "pf_deduction_paisa >= 0 AND esi_deduction_paisa >= 0 "
            "AND professional_tax_paisa >= 0 AND tds_deduction_paisa >= 0",
            name="salary_component_deductions_non_negative",
        ),
    )

    # Relationships
    staff: Mapped[StaffMember] = relationship(back_populates="salary_components")

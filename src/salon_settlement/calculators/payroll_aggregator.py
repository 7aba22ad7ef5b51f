"""Payroll entry aggregation: gross, deductions and net payable."""

from __future__ import annotations

from collections.abc import Iterable
from typing import TYPE_CHECKING
from uuid import UUID

from salon_settlement.calculators import money
from salon_settlement.calculators.types import (
    CycleTotals,
    DeductionComponents,
    EarningsComponents,
    PayrollAdjustment,
    PayrollAggregate,
)
from salon_settlement.errors import NegativeNetPayableError, PayrollDataError

if TYPE_CHECKING:
    from salon_settlement.models.staff import SalaryComponent


class PayrollEntryAggregator:
    """Aggregates one staff member's components for one period.

    gross = base + allowances + commission + tips + bonuses
    deductions = TDS + PF + ESI + professional tax + loan recovery
                 + advances + other
    net = gross - deductions

    A negative net is a data-entry error and is rejected, never clamped.
    Aggregation happens once, when the cycle is processed; the stored entry
    is the durable record of what was owed.
    """

    @staticmethod
    def _validate(amounts: dict[str, int]) -> None:
        for name, amount in amounts.items():
            try:
                money.add(amount)
            except ValueError as e:
                raise PayrollDataError(f"Invalid {name}: {e}", {"field": name}) from e

    @classmethod
    def aggregate(
        cls,
        earnings: EarningsComponents,
        deductions: DeductionComponents,
        staff_id: UUID | None = None,
    ) -> PayrollAggregate:
        """Aggregate components into gross, total deductions and net payable.

        Raises:
            PayrollDataError: a component is negative or not an integer
            NegativeNetPayableError: deductions exceed gross earnings
        """
        earning_amounts = earnings.amounts()
        deduction_amounts = deductions.amounts()
        cls._validate(earning_amounts)
        cls._validate(deduction_amounts)

        gross = money.add(*earning_amounts.values())
        total_deductions = money.add(*deduction_amounts.values())
        if total_deductions > gross:
            raise NegativeNetPayableError(gross, total_deductions, staff_id)

        return PayrollAggregate(
            earnings=earnings,
            deductions=deductions,
            gross_earnings_paisa=gross,
            total_deductions_paisa=total_deductions,
            net_payable_paisa=gross - total_deductions,
        )

    @staticmethod
    def components_from_salary(
        component: SalaryComponent,
        adjustment: PayrollAdjustment | None = None,
    ) -> tuple[EarningsComponents, DeductionComponents]:
        """Build component sets from a salary configuration row.

        Allowances are HRA + travel + meal + other. Commission, tips, bonus,
        loan recovery, advances and other deductions come from the optional
        per-staff adjustment.
        """
        adj = adjustment or PayrollAdjustment(staff_id=component.staff_id)

        earnings = EarningsComponents(
            base_salary_paisa=component.base_salary_paisa or 0,
            allowances_paisa=(
                (component.hra_allowance_paisa or 0)
                + (component.travel_allowance_paisa or 0)
                + (component.meal_allowance_paisa or 0)
                + (component.other_allowances_paisa or 0)
            ),
            commission_earnings_paisa=adj.commission_paisa,
            tips_received_paisa=adj.tips_paisa,
            bonuses_paisa=adj.bonus_paisa,
        )
        deductions = DeductionComponents(
            tds_paisa=component.tds_deduction_paisa or 0,
            pf_paisa=component.pf_deduction_paisa or 0,
            esi_paisa=component.esi_deduction_paisa or 0,
            professional_tax_paisa=component.professional_tax_paisa or 0,
            loan_recovery_paisa=adj.loan_recovery_paisa,
            advances_paisa=adj.advance_paisa,
            other_paisa=adj.other_deduction_paisa,
        )
        return earnings, deductions

    @classmethod
    def from_salary_component(
        cls,
        component: SalaryComponent,
        adjustment: PayrollAdjustment | None = None,
    ) -> PayrollAggregate:
        earnings, deductions = cls.components_from_salary(component, adjustment)
        return cls.aggregate(earnings, deductions, staff_id=component.staff_id)

    @staticmethod
    def summarize(aggregates: Iterable[tuple[UUID, PayrollAggregate]]) -> CycleTotals:
        """Roll entry aggregates up into cycle totals."""
        totals = CycleTotals()
        for staff_id, agg in aggregates:
            totals.staff_count += 1
            totals.staff_ids.append(staff_id)
            totals.gross_paisa += agg.gross_earnings_paisa
            totals.commissions_paisa += agg.earnings.commission_earnings_paisa
            totals.deductions_paisa += agg.total_deductions_paisa
            totals.net_payable_paisa += agg.net_payable_paisa
        return totals

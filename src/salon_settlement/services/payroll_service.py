"""Payroll cycle service - orchestrates the cycle lifecycle and entry payments."""

from __future__ import annotations

import calendar
import logging
from collections.abc import Sequence
from dataclasses import dataclass
from datetime import date, datetime, timezone
from typing import Any
from uuid import UUID

from sqlalchemy import func, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from salon_settlement.calculators import money
from salon_settlement.calculators.payroll_aggregator import PayrollEntryAggregator
from salon_settlement.calculators.types import PayrollAdjustment, PayrollAggregate
from salon_settlement.errors import (
    AlreadyPaidError,
    CycleAlreadyExistsError,
    InvalidTransitionError,
    PayrollCycleNotFoundError,
    PayrollDataError,
    PayrollEntryNotFoundError,
)
from salon_settlement.models import (
    AuditEvent,
    PayrollCycle,
    PayrollEntry,
    SalaryComponent,
    Salon,
    StaffMember,
)
from salon_settlement.services.state_machine import (
    EntryPaymentStatus,
    PayrollCycleAction,
    PayrollCycleStateMachine,
    PayrollCycleStatus,
)

logger = logging.getLogger(__name__)

MIN_PERIOD_YEAR = 2020
MAX_PERIOD_YEAR = 2100


@dataclass(frozen=True)
class Payslip:
    """Read-only breakdown of one payroll entry."""

    entry_id: UUID
    cycle_id: UUID
    period_year: int
    period_month: int
    staff_id: UUID
    staff_name: str
    salon_id: UUID
    salon_name: str
    earnings: dict[str, int]
    deductions: dict[str, int]
    gross_earnings_paisa: int
    total_deductions_paisa: int
    net_payable_paisa: int
    payment_status: str
    paid_at: datetime | None


@dataclass(frozen=True)
class PayrollSummary:
    """Salon-level payroll overview."""

    total_staff: int
    monthly_payable_paisa: int
    latest_cycle_id: UUID | None
    latest_cycle_status: str | None
    latest_period_year: int | None
    latest_period_month: int | None
    last_paid_at: datetime | None


class PayrollCycleService:
    """Service for managing payroll cycle lifecycle.

    Operations:
    - create_cycle: new draft cycle for a salon period
    - process_cycle: aggregate one entry per staff member, draft → processed
    - approve_cycle: processed → approved
    - pay_cycle: approved → paid, cascading paid to every entry
    - mark_entry_paid: off-cycle payment of a single entry
    - get_payslip / list_cycles / get_cycle_details / get_payroll_summary: reads

    Every status write is a conditional UPDATE on the required current
    status, so concurrent transitions cannot both succeed.
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    # ===== Reads =====

    async def get_cycle(
        self,
        salon_id: UUID,
        cycle_id: UUID,
        load_entries: bool = False,
    ) -> PayrollCycle:
        """Load a salon's payroll cycle, raising if missing."""
        query = (
            select(PayrollCycle)
            .where(
                PayrollCycle.payroll_cycle_id == cycle_id,
                PayrollCycle.salon_id == salon_id,
            )
            .execution_options(populate_existing=True)
        )
        if load_entries:
            query = query.options(selectinload(PayrollCycle.entries))

        result = await self.session.execute(query)
        cycle = result.scalar_one_or_none()
        if cycle is None:
            raise PayrollCycleNotFoundError(cycle_id)
        return cycle

    async def list_cycles(self, salon_id: UUID, year: int | None = None) -> list[PayrollCycle]:
        """List a salon's cycles, newest period first."""
        query = select(PayrollCycle).where(PayrollCycle.salon_id == salon_id)
        if year is not None:
            query = query.where(PayrollCycle.period_year == year)
        query = query.order_by(PayrollCycle.period_year.desc(), PayrollCycle.period_month.desc())

        result = await self.session.execute(query)
        return list(result.scalars().all())

    async def get_cycle_details(
        self, salon_id: UUID, cycle_id: UUID
    ) -> tuple[PayrollCycle, list[tuple[PayrollEntry, str]]]:
        """A cycle with its entries and each entry's staff name."""
        cycle = await self.get_cycle(salon_id, cycle_id)
        result = await self.session.execute(
            select(PayrollEntry, StaffMember.name)
            .join(StaffMember, PayrollEntry.staff_id == StaffMember.staff_id)
            .where(PayrollEntry.payroll_cycle_id == cycle_id)
            .order_by(StaffMember.name)
            .execution_options(populate_existing=True)
        )
        return cycle, [(entry, name) for entry, name in result.all()]

    async def get_payslip(self, salon_id: UUID, entry_id: UUID) -> Payslip:
        """Read-only payslip for one entry."""
        result = await self.session.execute(
            select(PayrollEntry, PayrollCycle, StaffMember, Salon)
            .join(PayrollCycle, PayrollEntry.payroll_cycle_id == PayrollCycle.payroll_cycle_id)
            .join(StaffMember, PayrollEntry.staff_id == StaffMember.staff_id)
            .join(Salon, PayrollEntry.salon_id == Salon.salon_id)
            .where(
                PayrollEntry.payroll_entry_id == entry_id,
                PayrollEntry.salon_id == salon_id,
            )
            .execution_options(populate_existing=True)
        )
        row = result.one_or_none()
        if row is None:
            raise PayrollEntryNotFoundError(entry_id)
        entry, cycle, staff, salon = row

        return Payslip(
            entry_id=entry.payroll_entry_id,
            cycle_id=cycle.payroll_cycle_id,
            period_year=cycle.period_year,
            period_month=cycle.period_month,
            staff_id=staff.staff_id,
            staff_name=staff.name,
            salon_id=salon.salon_id,
            salon_name=salon.name,
            earnings={
                "base_salary_paisa": entry.base_salary_paisa,
                "allowances_paisa": entry.allowances_paisa,
                "commission_earnings_paisa": entry.commission_earnings_paisa,
                "tips_received_paisa": entry.tips_received_paisa,
                "bonuses_paisa": entry.bonuses_paisa,
            },
            deductions={
                "tds_paisa": entry.tds_deduction_paisa,
                "pf_paisa": entry.pf_deduction_paisa,
                "esi_paisa": entry.esi_deduction_paisa,
                "professional_tax_paisa": entry.professional_tax_paisa,
                "loan_recovery_paisa": entry.loan_recovery_paisa,
                "advances_paisa": entry.advance_deduction_paisa,
                "other_paisa": entry.other_deductions_paisa,
            },
            gross_earnings_paisa=entry.gross_earnings_paisa,
            total_deductions_paisa=entry.total_deductions_paisa,
            net_payable_paisa=entry.net_payable_paisa,
            payment_status=entry.payment_status,
            paid_at=entry.paid_at,
        )

    async def get_payroll_summary(self, salon_id: UUID) -> PayrollSummary:
        """Headcount, configured monthly payable, latest cycle and last payout.

        The monthly payable is the gross of each active staff member's current
        salary configuration, before commissions, tips and deductions.
        """
        total_staff = await self.session.scalar(
            select(func.count())
            .select_from(StaffMember)
            .where(StaffMember.salon_id == salon_id, StaffMember.is_active.is_(True))
        )

        components = await self._active_salary_components(salon_id)
        monthly_payable = money.add(
            *(
                money.add(
                    c.base_salary_paisa,
                    c.hra_allowance_paisa,
                    c.travel_allowance_paisa,
                    c.meal_allowance_paisa,
                    c.other_allowances_paisa,
                )
                for c in components.values()
            )
        )

        latest = (
            await self.session.execute(
                select(PayrollCycle)
                .where(PayrollCycle.salon_id == salon_id)
                .order_by(PayrollCycle.period_year.desc(), PayrollCycle.period_month.desc())
                .limit(1)
                .execution_options(populate_existing=True)
            )
        ).scalar_one_or_none()

        last_paid_at = await self.session.scalar(
            select(func.max(PayrollCycle.paid_at)).where(
                PayrollCycle.salon_id == salon_id,
                PayrollCycle.status == PayrollCycleStatus.PAID.value,
            )
        )

        return PayrollSummary(
            total_staff=total_staff or 0,
            monthly_payable_paisa=monthly_payable,
            latest_cycle_id=latest.payroll_cycle_id if latest else None,
            latest_cycle_status=latest.status if latest else None,
            latest_period_year=latest.period_year if latest else None,
            latest_period_month=latest.period_month if latest else None,
            last_paid_at=last_paid_at,
        )

    # ===== Lifecycle =====

    async def create_cycle(
        self,
        salon_id: UUID,
        period_year: int,
        period_month: int,
        actor_user_id: UUID | None = None,
    ) -> PayrollCycle:
        """Create a draft cycle for a calendar month."""
        if not MIN_PERIOD_YEAR <= period_year <= MAX_PERIOD_YEAR:
            raise PayrollDataError(
                f"period_year must be between {MIN_PERIOD_YEAR} and {MAX_PERIOD_YEAR}",
                {"field": "period_year"},
            )
        if not 1 <= period_month <= 12:
            raise PayrollDataError(
                "period_month must be between 1 and 12", {"field": "period_month"}
            )

        if await self._find_cycle_for_period(salon_id, period_year, period_month) is not None:
            raise CycleAlreadyExistsError(period_year, period_month)

        last_day = calendar.monthrange(period_year, period_month)[1]
        cycle = PayrollCycle(
            salon_id=salon_id,
            period_year=period_year,
            period_month=period_month,
            period_start_date=date(period_year, period_month, 1),
            period_end_date=date(period_year, period_month, last_day),
            status=PayrollCycleStatus.DRAFT.value,
            created_by=actor_user_id,
        )
        try:
            async with self.session.begin_nested():
                self.session.add(cycle)
        except IntegrityError:
            # A concurrent create for the same period committed first
            logger.warning(
                "Rejected duplicate payroll cycle for salon %s (%d-%02d)",
                salon_id,
                period_year,
                period_month,
            )
            raise CycleAlreadyExistsError(period_year, period_month) from None

        await self._record_audit(cycle, "created", actor_user_id)
        logger.info(
            "Created payroll cycle %s for salon %s (%d-%02d)",
            cycle.payroll_cycle_id,
            salon_id,
            period_year,
            period_month,
        )
        return cycle

    async def process_cycle(
        self,
        salon_id: UUID,
        cycle_id: UUID,
        actor_user_id: UUID | None = None,
        adjustments: Sequence[PayrollAdjustment] = (),
    ) -> PayrollCycle:
        """Materialize one entry per active staff member and mark processed.

        All entries are aggregated before anything is written; one bad
        entry (e.g. negative net payable) rejects the whole run.
        """
        cycle = await self.get_cycle(salon_id, cycle_id)
        PayrollCycleStateMachine.target_for(PayrollCycleAction.PROCESS, cycle.status)

        components = await self._active_salary_components(salon_id)
        by_staff = {adj.staff_id: adj for adj in adjustments}
        unknown = [str(staff_id) for staff_id in by_staff if staff_id not in components]
        if unknown:
            raise PayrollDataError(
                f"Adjustments reference staff without an active salary: {', '.join(unknown)}",
                {"staff_ids": unknown},
            )

        aggregates: list[tuple[SalaryComponent, PayrollAggregate, PayrollAdjustment | None]] = []
        for staff_id, component in components.items():
            adjustment = by_staff.get(staff_id)
            aggregate = PayrollEntryAggregator.from_salary_component(component, adjustment)
            aggregates.append((component, aggregate, adjustment))

        totals = PayrollEntryAggregator.summarize(
            (component.staff_id, aggregate) for component, aggregate, _ in aggregates
        )

        now = datetime.now(timezone.utc)
        await self._apply_transition(
            cycle,
            PayrollCycleAction.PROCESS,
            {
                "total_staff_count": totals.staff_count,
                "total_gross_salary_paisa": totals.gross_paisa,
                "total_commissions_paisa": totals.commissions_paisa,
                "total_deductions_paisa": totals.deductions_paisa,
                "total_net_payable_paisa": totals.net_payable_paisa,
                "processed_at": now,
                "processed_by": actor_user_id,
            },
        )

        for component, aggregate, adjustment in aggregates:
            self.session.add(self._build_entry(cycle, component, aggregate, adjustment))
        await self.session.flush()

        await self._record_audit(
            cycle,
            "status_change:draft:processed",
            actor_user_id,
            {"staff_count": totals.staff_count, "net_payable_paisa": totals.net_payable_paisa},
        )
        logger.info(
            "Processed payroll cycle %s: %d staff, gross=%s deductions=%s net=%s paisa",
            cycle_id,
            totals.staff_count,
            totals.gross_paisa,
            totals.deductions_paisa,
            totals.net_payable_paisa,
        )
        return cycle

    async def approve_cycle(
        self,
        salon_id: UUID,
        cycle_id: UUID,
        actor_user_id: UUID | None = None,
    ) -> PayrollCycle:
        """Approve a processed cycle."""
        cycle = await self.get_cycle(salon_id, cycle_id)
        await self._apply_transition(
            cycle,
            PayrollCycleAction.APPROVE,
            {"approved_at": datetime.now(timezone.utc), "approved_by": actor_user_id},
        )
        await self._record_audit(cycle, "status_change:processed:approved", actor_user_id)
        logger.info("Approved payroll cycle %s by %s", cycle_id, actor_user_id)
        return cycle

    async def pay_cycle(
        self,
        salon_id: UUID,
        cycle_id: UUID,
        actor_user_id: UUID | None = None,
    ) -> PayrollCycle:
        """Mark an approved cycle paid and cascade paid to its entries.

        Entries already paid off-cycle keep their original paid_at.
        """
        cycle = await self.get_cycle(salon_id, cycle_id)
        now = datetime.now(timezone.utc)
        await self._apply_transition(cycle, PayrollCycleAction.PAY, {"paid_at": now})

        result = await self.session.execute(
            update(PayrollEntry)
            .where(
                PayrollEntry.payroll_cycle_id == cycle_id,
                PayrollEntry.payment_status == EntryPaymentStatus.PENDING.value,
            )
            .values(payment_status=EntryPaymentStatus.PAID.value, paid_at=now)
            .execution_options(synchronize_session=False)
        )
        entries_paid = result.rowcount or 0

        await self._record_audit(
            cycle,
            "status_change:approved:paid",
            actor_user_id,
            {"entries_paid": entries_paid},
        )
        logger.info("Paid payroll cycle %s: %d entries marked paid", cycle_id, entries_paid)
        return cycle

    async def transition(
        self,
        salon_id: UUID,
        cycle_id: UUID,
        action: PayrollCycleAction | str,
        actor_user_id: UUID | None = None,
        adjustments: Sequence[PayrollAdjustment] = (),
    ) -> PayrollCycle:
        """Apply a lifecycle action to a cycle."""
        action = PayrollCycleAction(action)
        if action == PayrollCycleAction.PROCESS:
            return await self.process_cycle(salon_id, cycle_id, actor_user_id, adjustments)
        if action == PayrollCycleAction.APPROVE:
            return await self.approve_cycle(salon_id, cycle_id, actor_user_id)
        return await self.pay_cycle(salon_id, cycle_id, actor_user_id)

    async def mark_entry_paid(
        self,
        salon_id: UUID,
        entry_id: UUID,
        actor_user_id: UUID | None = None,
    ) -> PayrollEntry:
        """Mark a single entry paid outside the cycle cascade.

        Raises AlreadyPaidError if the entry is already paid. The check and
        the write are one conditional UPDATE.
        """
        now = datetime.now(timezone.utc)
        result = await self.session.execute(
            update(PayrollEntry)
            .where(
                PayrollEntry.payroll_entry_id == entry_id,
                PayrollEntry.salon_id == salon_id,
                PayrollEntry.payment_status == EntryPaymentStatus.PENDING.value,
            )
            .values(payment_status=EntryPaymentStatus.PAID.value, paid_at=now)
            .execution_options(synchronize_session=False)
        )

        entry = await self._get_entry(salon_id, entry_id)
        if entry is None:
            raise PayrollEntryNotFoundError(entry_id)
        if result.rowcount == 0:
            logger.warning("Rejected duplicate payment of payroll entry %s", entry_id)
            raise AlreadyPaidError(entry_id)

        self.session.add(
            AuditEvent(
                salon_id=salon_id,
                actor_user_id=actor_user_id,
                entity_type="payroll_entry",
                entity_id=str(entry_id),
                action="marked_paid",
                details_json={"net_payable_paisa": entry.net_payable_paisa},
            )
        )
        await self.session.flush()
        logger.info(
            "Payroll entry %s marked paid (%s paisa)", entry_id, entry.net_payable_paisa
        )
        return entry

    # ===== Internals =====

    async def _find_cycle_for_period(
        self, salon_id: UUID, period_year: int, period_month: int
    ) -> UUID | None:
        result = await self.session.execute(
            select(PayrollCycle.payroll_cycle_id).where(
                PayrollCycle.salon_id == salon_id,
                PayrollCycle.period_year == period_year,
                PayrollCycle.period_month == period_month,
            )
        )
        return result.scalar_one_or_none()

    async def _get_entry(self, salon_id: UUID, entry_id: UUID) -> PayrollEntry | None:
        result = await self.session.execute(
            select(PayrollEntry)
            .where(
                PayrollEntry.payroll_entry_id == entry_id,
                PayrollEntry.salon_id == salon_id,
            )
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def _active_salary_components(self, salon_id: UUID) -> dict[UUID, SalaryComponent]:
        """Latest active salary component per active staff member."""
        result = await self.session.execute(
            select(SalaryComponent)
            .join(StaffMember, SalaryComponent.staff_id == StaffMember.staff_id)
            .where(
                StaffMember.salon_id == salon_id,
                StaffMember.is_active.is_(True),
                SalaryComponent.salon_id == salon_id,
                SalaryComponent.is_active.is_(True),
            )
            .order_by(
                SalaryComponent.staff_id,
                SalaryComponent.effective_from.desc(),
                SalaryComponent.created_at.desc(),
            )
        )
        components: dict[UUID, SalaryComponent] = {}
        for component in result.scalars().all():
            components.setdefault(component.staff_id, component)
        return components

    async def _apply_transition(
        self,
        cycle: PayrollCycle,
        action: PayrollCycleAction,
        values: dict[str, Any],
    ) -> None:
        """Conditionally move cycle along one edge, raising on conflict."""
        transition = PayrollCycleStateMachine.transition_for(action)
        target = PayrollCycleStateMachine.target_for(action, cycle.status)

        result = await self.session.execute(
            update(PayrollCycle)
            .where(
                PayrollCycle.payroll_cycle_id == cycle.payroll_cycle_id,
                PayrollCycle.status == transition.source.value,
            )
            .values(status=target.value, **values)
            .execution_options(synchronize_session=False)
        )
        await self.session.refresh(cycle)

        if result.rowcount == 0:
            # Another transition won the race
            logger.warning(
                "Payroll cycle %s: %s lost to concurrent change (now %s)",
                cycle.payroll_cycle_id,
                action.value,
                cycle.status,
            )
            raise InvalidTransitionError(action.value, cycle.status, transition.source.value)

    @staticmethod
    def _build_entry(
        cycle: PayrollCycle,
        component: SalaryComponent,
        aggregate: PayrollAggregate,
        adjustment: PayrollAdjustment | None,
    ) -> PayrollEntry:
        earnings = aggregate.earnings
        deductions = aggregate.deductions
        return PayrollEntry(
            payroll_cycle_id=cycle.payroll_cycle_id,
            staff_id=component.staff_id,
            salon_id=cycle.salon_id,
            salary_component_id=component.salary_component_id,
            base_salary_paisa=earnings.base_salary_paisa,
            allowances_paisa=earnings.allowances_paisa,
            commission_earnings_paisa=earnings.commission_earnings_paisa,
            tips_received_paisa=earnings.tips_received_paisa,
            bonuses_paisa=earnings.bonuses_paisa,
            tds_deduction_paisa=deductions.tds_paisa,
            pf_deduction_paisa=deductions.pf_paisa,
            esi_deduction_paisa=deductions.esi_paisa,
            professional_tax_paisa=deductions.professional_tax_paisa,
            loan_recovery_paisa=deductions.loan_recovery_paisa,
            advance_deduction_paisa=deductions.advances_paisa,
            other_deductions_paisa=deductions.other_paisa,
            gross_earnings_paisa=aggregate.gross_earnings_paisa,
            total_deductions_paisa=aggregate.total_deductions_paisa,
            net_payable_paisa=aggregate.net_payable_paisa,
            payment_status=EntryPaymentStatus.PENDING.value,
            notes=adjustment.notes if adjustment else None,
        )

    async def _record_audit(
        self,
        cycle: PayrollCycle,
        action: str,
        actor_user_id: UUID | None = None,
        details: dict | None = None,
    ) -> None:
        """Record an audit event for a payroll cycle action."""
        event = AuditEvent(
            salon_id=cycle.salon_id,
            actor_user_id=actor_user_id,
            entity_type="payroll_cycle",
            entity_id=str(cycle.payroll_cycle_id),
            action=action,
            details_json=details,
        )
        self.session.add(event)

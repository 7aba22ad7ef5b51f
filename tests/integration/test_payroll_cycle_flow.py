"""Payroll cycle lifecycle tests against the database.

create → process → approve → pay, with the entry cascade, off-cycle
payments and rejection of out-of-order actions.
"""

from uuid import uuid4

import pytest
from sqlalchemy import func, select

from salon_settlement.calculators.types import PayrollAdjustment
from salon_settlement.errors import (
    AlreadyPaidError,
    CycleAlreadyExistsError,
    InvalidTransitionError,
    NegativeNetPayableError,
    PayrollCycleNotFoundError,
    PayrollDataError,
    PayrollEntryNotFoundError,
)
from salon_settlement.models import AuditEvent, PayrollEntry
from salon_settlement.services.payroll_service import PayrollCycleService

ACTOR = uuid4()


async def count_entries(session) -> int:
    return await session.scalar(select(func.count()).select_from(PayrollEntry))


@pytest.fixture
async def draft_cycle(session, test_salon, test_staff):
    service = PayrollCycleService(session)
    cycle = await service.create_cycle(test_salon.salon_id, 2024, 2, ACTOR)
    await session.commit()
    return cycle


@pytest.fixture
async def processed_cycle(session, test_salon, draft_cycle):
    service = PayrollCycleService(session)
    cycle = await service.process_cycle(test_salon.salon_id, draft_cycle.payroll_cycle_id, ACTOR)
    await session.commit()
    return cycle


class TestCreateCycle:
    """Test draft cycle creation."""

    async def test_period_dates(self, session, test_salon, draft_cycle):
        assert draft_cycle.status == "draft"
        assert draft_cycle.period_start_date.isoformat() == "2024-02-01"
        # Leap year
        assert draft_cycle.period_end_date.isoformat() == "2024-02-29"
        assert draft_cycle.created_by == ACTOR

    async def test_one_cycle_per_period(self, session, test_salon, draft_cycle):
        with pytest.raises(CycleAlreadyExistsError):
            await PayrollCycleService(session).create_cycle(test_salon.salon_id, 2024, 2)

    @pytest.mark.parametrize("year,month", [(2019, 5), (2024, 0), (2024, 13)])
    async def test_invalid_period(self, session, test_salon, year, month):
        with pytest.raises(PayrollDataError):
            await PayrollCycleService(session).create_cycle(test_salon.salon_id, year, month)

    async def test_list_newest_first(self, session, test_salon, other_salon):
        service = PayrollCycleService(session)
        await service.create_cycle(test_salon.salon_id, 2024, 1)
        await service.create_cycle(test_salon.salon_id, 2024, 3)
        await service.create_cycle(test_salon.salon_id, 2023, 12)
        await service.create_cycle(other_salon.salon_id, 2024, 6)

        cycles = await service.list_cycles(test_salon.salon_id)
        assert [(c.period_year, c.period_month) for c in cycles] == [
            (2024, 3),
            (2024, 1),
            (2023, 12),
        ]

        only_2023 = await service.list_cycles(test_salon.salon_id, year=2023)
        assert [(c.period_year, c.period_month) for c in only_2023] == [(2023, 12)]


class TestProcessCycle:
    """Test entry aggregation at processing."""

    async def test_one_entry_per_active_staff(
        self, session, test_salon, test_staff, processed_cycle
    ):
        assert processed_cycle.status == "processed"
        assert processed_cycle.processed_by == ACTOR
        assert processed_cycle.total_staff_count == 2
        # Asha 30,00,000 + Ravi 19,00,000
        assert processed_cycle.total_gross_salary_paisa == 4_900_000
        assert processed_cycle.total_deductions_paisa == 213_500
        assert processed_cycle.total_net_payable_paisa == 4_686_500

        _, entries = await PayrollCycleService(session).get_cycle_details(
            test_salon.salon_id, processed_cycle.payroll_cycle_id
        )
        by_name = {name: entry for entry, name in entries}
        assert set(by_name) == {"Asha", "Ravi"}
        assert by_name["Asha"].allowances_paisa == 500_000
        assert by_name["Asha"].net_payable_paisa == 2_800_000
        assert by_name["Ravi"].net_payable_paisa == 1_886_500
        assert all(e.payment_status == "pending" for e in by_name.values())

    async def test_adjustments_applied(self, session, test_salon, test_staff, draft_cycle):
        asha = test_staff["asha"]
        service = PayrollCycleService(session)

        cycle = await service.process_cycle(
            test_salon.salon_id,
            draft_cycle.payroll_cycle_id,
            ACTOR,
            adjustments=[
                PayrollAdjustment(
                    staff_id=asha.staff_id,
                    commission_paisa=150_000,
                    tips_paisa=20_000,
                    advance_paisa=70_000,
                    notes="Festival advance",
                )
            ],
        )

        assert cycle.total_commissions_paisa == 150_000
        _, entries = await service.get_cycle_details(test_salon.salon_id, cycle.payroll_cycle_id)
        asha_entry = next(e for e, name in entries if name == "Asha")
        assert asha_entry.gross_earnings_paisa == 3_170_000
        assert asha_entry.total_deductions_paisa == 270_000
        assert asha_entry.net_payable_paisa == 2_900_000
        assert asha_entry.notes == "Festival advance"

    async def test_negative_net_rejects_whole_run(
        self, session, test_salon, test_staff, draft_cycle
    ):
        service = PayrollCycleService(session)

        with pytest.raises(NegativeNetPayableError) as exc_info:
            await service.process_cycle(
                test_salon.salon_id,
                draft_cycle.payroll_cycle_id,
                ACTOR,
                adjustments=[
                    PayrollAdjustment(
                        staff_id=test_staff["ravi"].staff_id, loan_recovery_paisa=5_000_000
                    )
                ],
            )
        assert exc_info.value.staff_id == test_staff["ravi"].staff_id
        await session.rollback()

        assert await count_entries(session) == 0
        cycle = await service.get_cycle(test_salon.salon_id, draft_cycle.payroll_cycle_id)
        assert cycle.status == "draft"

    async def test_adjustment_for_unknown_staff(
        self, session, test_salon, test_staff, draft_cycle
    ):
        with pytest.raises(PayrollDataError):
            await PayrollCycleService(session).process_cycle(
                test_salon.salon_id,
                draft_cycle.payroll_cycle_id,
                ACTOR,
                adjustments=[PayrollAdjustment(staff_id=uuid4(), bonus_paisa=1)],
            )

    async def test_process_twice_rejected(self, session, test_salon, processed_cycle):
        with pytest.raises(InvalidTransitionError) as exc_info:
            await PayrollCycleService(session).process_cycle(
                test_salon.salon_id, processed_cycle.payroll_cycle_id, ACTOR
            )
        assert exc_info.value.current_status == "processed"
        assert exc_info.value.required_status == "draft"


class TestApproveAndPay:
    """Test the approval workflow and the paid cascade."""

    async def test_full_lifecycle(self, session, test_salon, processed_cycle):
        service = PayrollCycleService(session)
        cycle_id = processed_cycle.payroll_cycle_id

        approved = await service.transition(test_salon.salon_id, cycle_id, "approve", ACTOR)
        assert approved.status == "approved"
        assert approved.approved_by == ACTOR
        assert approved.approved_at is not None

        paid = await service.transition(test_salon.salon_id, cycle_id, "pay", ACTOR)
        await session.commit()
        assert paid.status == "paid"
        assert paid.paid_at is not None

        _, entries = await service.get_cycle_details(test_salon.salon_id, cycle_id)
        assert entries
        assert all(entry.payment_status == "paid" for entry, _ in entries)
        assert all(entry.paid_at is not None for entry, _ in entries)

        actions = (
            await session.execute(
                select(AuditEvent.action)
                .where(AuditEvent.entity_type == "payroll_cycle")
                .order_by(AuditEvent.created_at)
            )
        ).scalars().all()
        assert set(actions) == {
            "created",
            "status_change:draft:processed",
            "status_change:processed:approved",
            "status_change:approved:paid",
        }

    async def test_pay_from_processed_rejected(self, session, test_salon, processed_cycle):
        """Payment requires approval first."""
        with pytest.raises(InvalidTransitionError) as exc_info:
            await PayrollCycleService(session).pay_cycle(
                test_salon.salon_id, processed_cycle.payroll_cycle_id, ACTOR
            )

        assert exc_info.value.current_status == "processed"
        assert exc_info.value.required_status == "approved"

    async def test_paid_is_terminal(self, session, test_salon, processed_cycle):
        service = PayrollCycleService(session)
        cycle_id = processed_cycle.payroll_cycle_id
        await service.approve_cycle(test_salon.salon_id, cycle_id, ACTOR)
        await service.pay_cycle(test_salon.salon_id, cycle_id, ACTOR)

        for action in ("process", "approve", "pay"):
            with pytest.raises(InvalidTransitionError):
                await service.transition(test_salon.salon_id, cycle_id, action, ACTOR)

    async def test_approve_draft_rejected(self, session, test_salon, draft_cycle):
        with pytest.raises(InvalidTransitionError):
            await PayrollCycleService(session).approve_cycle(
                test_salon.salon_id, draft_cycle.payroll_cycle_id, ACTOR
            )

    async def test_concurrent_create_reports_conflict(
        self, session, test_salon, draft_cycle, monkeypatch
    ):
        """A create that misses a just-committed cycle still reports the conflict."""
        service = PayrollCycleService(session)

        async def period_looks_free(*args):
            return None

        monkeypatch.setattr(service, "_find_cycle_for_period", period_looks_free)

        with pytest.raises(CycleAlreadyExistsError):
            await service.create_cycle(test_salon.salon_id, 2024, 2, ACTOR)

        # Session stays usable and the first cycle is untouched
        cycles = await service.list_cycles(test_salon.salon_id)
        assert [c.payroll_cycle_id for c in cycles] == [draft_cycle.payroll_cycle_id]

    async def test_cycle_of_another_salon_not_found(
        self, session, other_salon, draft_cycle
    ):
        with pytest.raises(PayrollCycleNotFoundError):
            await PayrollCycleService(session).approve_cycle(
                other_salon.salon_id, draft_cycle.payroll_cycle_id, ACTOR
            )


class TestEntryPayments:
    """Test off-cycle entry payment and payslips."""

    async def _first_entry(self, session, salon_id, cycle_id) -> PayrollEntry:
        _, entries = await PayrollCycleService(session).get_cycle_details(salon_id, cycle_id)
        return entries[0][0]

    async def test_mark_paid_once(self, session, test_salon, processed_cycle):
        service = PayrollCycleService(session)
        entry = await self._first_entry(
            session, test_salon.salon_id, processed_cycle.payroll_cycle_id
        )

        paid = await service.mark_entry_paid(test_salon.salon_id, entry.payroll_entry_id, ACTOR)
        assert paid.payment_status == "paid"
        assert paid.paid_at is not None

        with pytest.raises(AlreadyPaidError):
            await service.mark_entry_paid(test_salon.salon_id, entry.payroll_entry_id, ACTOR)

    async def test_mark_paid_after_cycle_pay_rejected(
        self, session, test_salon, processed_cycle
    ):
        """An entry paid by the cycle cascade cannot be paid again."""
        service = PayrollCycleService(session)
        cycle_id = processed_cycle.payroll_cycle_id
        await service.approve_cycle(test_salon.salon_id, cycle_id, ACTOR)
        await service.pay_cycle(test_salon.salon_id, cycle_id, ACTOR)

        entry = await self._first_entry(session, test_salon.salon_id, cycle_id)
        assert entry.payment_status == "paid"

        with pytest.raises(AlreadyPaidError):
            await service.mark_entry_paid(test_salon.salon_id, entry.payroll_entry_id, ACTOR)

    async def test_cycle_pay_keeps_earlier_entry_payment(
        self, session, test_salon, processed_cycle
    ):
        service = PayrollCycleService(session)
        cycle_id = processed_cycle.payroll_cycle_id
        entry = await self._first_entry(session, test_salon.salon_id, cycle_id)
        early = await service.mark_entry_paid(test_salon.salon_id, entry.payroll_entry_id, ACTOR)
        early_paid_at = early.paid_at

        await service.approve_cycle(test_salon.salon_id, cycle_id, ACTOR)
        await service.pay_cycle(test_salon.salon_id, cycle_id, ACTOR)

        _, entries = await service.get_cycle_details(test_salon.salon_id, cycle_id)
        again = next(e for e, _ in entries if e.payroll_entry_id == entry.payroll_entry_id)
        assert again.paid_at == early_paid_at
        assert all(e.payment_status == "paid" for e, _ in entries)

    async def test_unknown_entry(self, session, test_salon):
        with pytest.raises(PayrollEntryNotFoundError):
            await PayrollCycleService(session).mark_entry_paid(test_salon.salon_id, uuid4())

    async def test_payslip(self, session, test_salon, test_staff, processed_cycle):
        service = PayrollCycleService(session)
        _, entries = await service.get_cycle_details(
            test_salon.salon_id, processed_cycle.payroll_cycle_id
        )
        entry = next(e for e, name in entries if name == "Asha")

        payslip = await service.get_payslip(test_salon.salon_id, entry.payroll_entry_id)

        assert payslip.staff_name == "Asha"
        assert payslip.salon_name == "Glow Studio"
        assert (payslip.period_year, payslip.period_month) == (2024, 2)
        assert payslip.earnings["base_salary_paisa"] == 2_500_000
        assert payslip.deductions["pf_paisa"] == 180_000
        assert payslip.net_payable_paisa == 2_800_000
        assert payslip.payment_status == "pending"

    async def test_payslip_of_another_salon(self, session, other_salon, processed_cycle):
        service = PayrollCycleService(session)
        entry = await self._first_entry(
            session, processed_cycle.salon_id, processed_cycle.payroll_cycle_id
        )
        with pytest.raises(PayrollEntryNotFoundError):
            await service.get_payslip(other_salon.salon_id, entry.payroll_entry_id)


class TestPayrollSummary:
    """Test the salon payroll overview."""

    async def test_before_any_cycle(self, session, test_salon, test_staff):
        summary = await PayrollCycleService(session).get_payroll_summary(test_salon.salon_id)

        # Former staff are not counted
        assert summary.total_staff == 2
        # Asha 25,000 + 5,000 HRA; Ravi 18,000 + 1,000 travel
        assert summary.monthly_payable_paisa == 4_900_000
        assert summary.latest_cycle_id is None
        assert summary.latest_cycle_status is None
        assert summary.last_paid_at is None

    async def test_latest_cycle_and_last_payout(
        self, session, test_salon, processed_cycle
    ):
        service = PayrollCycleService(session)
        cycle_id = processed_cycle.payroll_cycle_id
        await service.approve_cycle(test_salon.salon_id, cycle_id, ACTOR)
        paid = await service.pay_cycle(test_salon.salon_id, cycle_id, ACTOR)
        later = await service.create_cycle(test_salon.salon_id, 2024, 3, ACTOR)

        summary = await service.get_payroll_summary(test_salon.salon_id)

        assert summary.latest_cycle_id == later.payroll_cycle_id
        assert summary.latest_cycle_status == "draft"
        assert (summary.latest_period_year, summary.latest_period_month) == (2024, 3)
        assert summary.last_paid_at is not None
        assert summary.last_paid_at.replace(tzinfo=None) == paid.paid_at.replace(tzinfo=None)

    async def test_other_salon_is_empty(self, session, other_salon, processed_cycle):
        summary = await PayrollCycleService(session).get_payroll_summary(other_salon.salon_id)

        assert summary.total_staff == 0
        assert summary.monthly_payable_paisa == 0
        assert summary.latest_cycle_id is None

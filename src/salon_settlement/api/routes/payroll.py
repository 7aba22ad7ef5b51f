"""Payroll cycle API endpoints."""

from dataclasses import asdict
from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Path, Query, status

from salon_settlement.api.dependencies import ActorId, DbSession, SalonId
from salon_settlement.api.schemas import (
    ErrorResponse,
    PayrollCycleCreate,
    PayrollCycleDetailsResponse,
    PayrollCycleListResponse,
    PayrollCycleResponse,
    PayrollEntryResponse,
    PayrollSummaryResponse,
    PayslipResponse,
    ProcessCycleRequest,
    TransitionRequest,
)
from salon_settlement.calculators import money
from salon_settlement.services.payroll_service import PayrollCycleService
from salon_settlement.services.state_machine import PayrollCycleStateMachine

router = APIRouter(prefix="/payroll", tags=["payroll"])


# ============================================================================
# Payroll cycles
# ============================================================================


@router.post(
    "/cycles",
    response_model=PayrollCycleResponse,
    status_code=status.HTTP_201_CREATED,
    responses={400: {"model": ErrorResponse}, 409: {"model": ErrorResponse}},
)
async def create_cycle(
    db: DbSession,
    salon_id: SalonId,
    actor_id: ActorId,
    payload: PayrollCycleCreate,
) -> PayrollCycleResponse:
    """Create a payroll cycle in draft status."""
    cycle = await PayrollCycleService(db).create_cycle(
        salon_id, payload.period_year, payload.period_month, actor_id
    )
    await db.commit()
    await db.refresh(cycle)
    return PayrollCycleResponse.model_validate(cycle)


@router.get(
    "/cycles",
    response_model=PayrollCycleListResponse,
)
async def list_cycles(
    db: DbSession,
    salon_id: SalonId,
    year: Annotated[int | None, Query(ge=2020, le=2100)] = None,
) -> PayrollCycleListResponse:
    """List a salon's payroll cycles, newest period first."""
    cycles = await PayrollCycleService(db).list_cycles(salon_id, year)
    return PayrollCycleListResponse(
        items=[PayrollCycleResponse.model_validate(c) for c in cycles],
        total=len(cycles),
    )


@router.get("/summary", response_model=PayrollSummaryResponse)
async def get_payroll_summary(
    db: DbSession,
    salon_id: SalonId,
) -> PayrollSummaryResponse:
    """Staff count, monthly payable, latest cycle and last payout."""
    summary = await PayrollCycleService(db).get_payroll_summary(salon_id)
    return PayrollSummaryResponse(
        **asdict(summary),
        monthly_payable_display=money.format_rupees(summary.monthly_payable_paisa),
    )


@router.get(
    "/cycles/{cycle_id}",
    response_model=PayrollCycleDetailsResponse,
    responses={404: {"model": ErrorResponse}},
)
async def get_cycle_details(
    db: DbSession,
    salon_id: SalonId,
    cycle_id: Annotated[UUID, Path()],
) -> PayrollCycleDetailsResponse:
    """Get a payroll cycle with its entries."""
    cycle, entries = await PayrollCycleService(db).get_cycle_details(salon_id, cycle_id)

    items = []
    for entry, staff_name in entries:
        resp = PayrollEntryResponse.model_validate(entry)
        resp.staff_name = staff_name
        items.append(resp)

    return PayrollCycleDetailsResponse(
        cycle=PayrollCycleResponse.model_validate(cycle),
        entries=items,
        next_actions=[a.value for a in PayrollCycleStateMachine.get_next_actions(cycle.status)],
    )


# ============================================================================
# Payroll cycle transitions
# ============================================================================


@router.post(
    "/cycles/{cycle_id}/process",
    response_model=PayrollCycleResponse,
    responses={
        400: {"model": ErrorResponse},
        404: {"model": ErrorResponse},
        409: {"model": ErrorResponse},
    },
)
async def process_cycle(
    db: DbSession,
    salon_id: SalonId,
    actor_id: ActorId,
    cycle_id: Annotated[UUID, Path()],
    payload: ProcessCycleRequest | None = None,
) -> PayrollCycleResponse:
    """Aggregate one entry per active staff member. Draft cycles only."""
    adjustments = [a.to_adjustment() for a in payload.adjustments] if payload else []
    cycle = await PayrollCycleService(db).process_cycle(
        salon_id, cycle_id, actor_id, adjustments
    )
    await db.commit()
    return PayrollCycleResponse.model_validate(cycle)


@router.post(
    "/cycles/{cycle_id}/transition",
    response_model=PayrollCycleResponse,
    responses={404: {"model": ErrorResponse}, 409: {"model": ErrorResponse}},
)
async def transition_cycle(
    db: DbSession,
    salon_id: SalonId,
    actor_id: ActorId,
    cycle_id: Annotated[UUID, Path()],
    payload: TransitionRequest,
) -> PayrollCycleResponse:
    """Approve a processed cycle or pay an approved one."""
    cycle = await PayrollCycleService(db).transition(
        salon_id, cycle_id, payload.action, actor_id
    )
    await db.commit()
    return PayrollCycleResponse.model_validate(cycle)


# ============================================================================
# Payroll entries
# ============================================================================


@router.post(
    "/entries/{entry_id}/pay",
    response_model=PayrollEntryResponse,
    responses={404: {"model": ErrorResponse}, 409: {"model": ErrorResponse}},
)
async def mark_entry_paid(
    db: DbSession,
    salon_id: SalonId,
    actor_id: ActorId,
    entry_id: Annotated[UUID, Path()],
) -> PayrollEntryResponse:
    """Mark a single payroll entry paid."""
    entry = await PayrollCycleService(db).mark_entry_paid(salon_id, entry_id, actor_id)
    await db.commit()
    return PayrollEntryResponse.model_validate(entry)


@router.get(
    "/entries/{entry_id}/payslip",
    response_model=PayslipResponse,
    responses={404: {"model": ErrorResponse}},
)
async def get_payslip(
    db: DbSession,
    salon_id: SalonId,
    entry_id: Annotated[UUID, Path()],
) -> PayslipResponse:
    """Get the payslip for a payroll entry."""
    payslip = await PayrollCycleService(db).get_payslip(salon_id, entry_id)
    return PayslipResponse(
        **asdict(payslip),
        net_payable_display=money.format_rupees(payslip.net_payable_paisa),
    )

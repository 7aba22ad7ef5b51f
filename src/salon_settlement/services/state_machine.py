"""Payroll cycle state machine with transition validation."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from salon_settlement.errors import InvalidTransitionError


class PayrollCycleStatus(str, Enum):
    """Payroll cycle status values."""

    DRAFT = "draft"
    PROCESSED = "processed"
    APPROVED = "approved"
    PAID = "paid"


class PayrollCycleAction(str, Enum):
    """Actions that move a payroll cycle forward."""

    PROCESS = "process"
    APPROVE = "approve"
    PAY = "pay"


class EntryPaymentStatus(str, Enum):
    """Payroll entry payment status values."""

    PENDING = "pending"
    PAID = "paid"


@dataclass(frozen=True)
class Transition:
    """One edge of the cycle lifecycle."""

    action: PayrollCycleAction
    source: PayrollCycleStatus
    target: PayrollCycleStatus


class PayrollCycleStateMachine:
    """State machine for payroll cycle status transitions.

    Allowed transitions (forward only, no skipping):
    - process: draft → processed
    - approve: processed → approved
    - pay: approved → paid

    Callers request an action, never a target status, so only the edges in
    TRANSITIONS can ever be taken. Paid is terminal.
    """

    TRANSITIONS: dict[PayrollCycleAction, Transition] = {
        PayrollCycleAction.PROCESS: Transition(
            PayrollCycleAction.PROCESS, PayrollCycleStatus.DRAFT, PayrollCycleStatus.PROCESSED
        ),
        PayrollCycleAction.APPROVE: Transition(
            PayrollCycleAction.APPROVE, PayrollCycleStatus.PROCESSED, PayrollCycleStatus.APPROVED
        ),
        PayrollCycleAction.PAY: Transition(
            PayrollCycleAction.PAY, PayrollCycleStatus.APPROVED, PayrollCycleStatus.PAID
        ),
    }

    @classmethod
    def transition_for(cls, action: PayrollCycleAction | str) -> Transition:
        return cls.TRANSITIONS[PayrollCycleAction(action)]

    @classmethod
    def target_for(
        cls, action: PayrollCycleAction | str, current_status: str
    ) -> PayrollCycleStatus:
        """Return the status action leads to, raising if not allowed."""
        transition = cls.transition_for(action)
        if current_status != transition.source:
            raise InvalidTransitionError(
                transition.action.value,
                PayrollCycleStatus(current_status).value,
                transition.source.value,
            )
        return transition.target

    @classmethod
    def get_next_actions(cls, current_status: str) -> list[PayrollCycleAction]:
        """Actions allowed from current_status."""
        return [t.action for t in cls.TRANSITIONS.values() if t.source == current_status]

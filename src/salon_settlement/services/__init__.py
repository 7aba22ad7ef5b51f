"""Settlement engine services."""

from salon_settlement.services.booking_sync import BookingStatusSynchronizer
from salon_settlement.services.checkout_service import CheckoutService
from salon_settlement.services.payroll_service import (
    Payslip,
    PayrollCycleService,
    PayrollSummary,
)
from salon_settlement.services.state_machine import (
    EntryPaymentStatus,
    PayrollCycleAction,
    PayrollCycleStateMachine,
    PayrollCycleStatus,
)

__all__ = [
    "BookingStatusSynchronizer",
    "CheckoutService",
    "Payslip",
    "PayrollSummary",
    "PayrollCycleService",
    "EntryPaymentStatus",
    "PayrollCycleAction",
    "PayrollCycleStateMachine",
    "PayrollCycleStatus",
]

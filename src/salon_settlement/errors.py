"""Error taxonomy for the settlement engine.

Every rejection raised by the engine derives from SettlementError and belongs
to exactly one category:

- ValidationError: malformed or out-of-range input, rejected before any
  resolution or persistence
- ResolutionError: catalog lookup failures, rejected before any pricing
- ReferentialError: a referenced record does not exist for the salon
- StateConflictError: a mutation attempted against the wrong lifecycle state

None of these are transient. The engine never retries them.
"""

from __future__ import annotations

from typing import Any


class SettlementError(Exception):
    """Base class for all settlement engine rejections."""

    code = "SETTLEMENT_ERROR"

    def __init__(self, message: str, context: dict[str, Any] | None = None):
        self.message = message
        self.context = context or {}
        super().__init__(message)


class ValidationError(SettlementError):
    """Input failed validation."""

    code = "VALIDATION_ERROR"


class ResolutionError(SettlementError):
    """Requested items could not be resolved against the catalog."""

    code = "RESOLUTION_ERROR"


class ReferentialError(SettlementError):
    """A referenced record was not found."""

    code = "NOT_FOUND"


class StateConflictError(SettlementError):
    """A mutation was attempted against an incompatible state."""

    code = "STATE_CONFLICT"


# ===== Validation =====


class CheckoutValidationError(ValidationError):
    """Raised when a checkout request field is out of range."""

    code = "INVALID_CHECKOUT_FIELD"

    def __init__(self, field: str, reason: str):
        self.field = field
        self.reason = reason
        super().__init__(f"Invalid '{field}': {reason}", {"field": field})


class PayrollDataError(ValidationError):
    """Raised when payroll input components are malformed."""

    code = "INVALID_PAYROLL_DATA"


class NegativeNetPayableError(PayrollDataError):
    """Raised when deductions exceed gross earnings for an entry."""

    code = "NEGATIVE_NET_PAYABLE"

    def __init__(self, gross_earnings_paisa: int, total_deductions_paisa: int, staff_id: Any = None):
        self.gross_earnings_paisa = gross_earnings_paisa
        self.total_deductions_paisa = total_deductions_paisa
        self.staff_id = staff_id
        msg = (
            f"Deductions ({total_deductions_paisa}) exceed gross earnings "
            f"({gross_earnings_paisa})"
        )
        if staff_id is not None:
            msg += f" for staff {staff_id}"
        super().__init__(
            msg,
            {
                "gross_earnings_paisa": gross_earnings_paisa,
                "total_deductions_paisa": total_deductions_paisa,
                "staff_id": str(staff_id) if staff_id is not None else None,
            },
        )


# ===== Resolution =====


class ItemNotFoundError(ResolutionError):
    """Raised when requested items are not in the salon's active catalog."""

    code = "ITEM_NOT_FOUND"

    def __init__(self, item_ids: list[str]):
        self.item_ids = item_ids
        super().__init__(
            f"Items not found in active catalog: {', '.join(item_ids)}",
            {"item_ids": item_ids},
        )


class UnsupportedItemTypeError(ResolutionError):
    """Raised when a line item is not a service."""

    code = "UNSUPPORTED_ITEM_TYPE"

    def __init__(self, item_ids: list[str], item_type: str):
        self.item_ids = item_ids
        self.item_type = item_type
        super().__init__(
            f"Item type '{item_type}' is not supported at checkout: {', '.join(item_ids)}",
            {"item_ids": item_ids, "item_type": item_type},
        )


# ===== Referential =====


class BookingNotFoundError(ReferentialError):
    """Raised when a booking does not exist for the salon."""

    code = "BOOKING_NOT_FOUND"

    def __init__(self, booking_id: Any):
        self.booking_id = booking_id
        super().__init__(f"Booking {booking_id} not found", {"booking_id": str(booking_id)})


class TransactionNotFoundError(ReferentialError):
    """Raised when a checkout transaction does not exist for the salon."""

    code = "TRANSACTION_NOT_FOUND"

    def __init__(self, transaction_id: str):
        self.transaction_id = transaction_id
        super().__init__(
            f"Transaction {transaction_id} not found", {"transaction_id": transaction_id}
        )


class PayrollCycleNotFoundError(ReferentialError):
    """Raised when a payroll cycle does not exist for the salon."""

    code = "PAYROLL_CYCLE_NOT_FOUND"

    def __init__(self, cycle_id: Any):
        self.cycle_id = cycle_id
        super().__init__(f"Payroll cycle {cycle_id} not found", {"cycle_id": str(cycle_id)})


class PayrollEntryNotFoundError(ReferentialError):
    """Raised when a payroll entry does not exist for the salon."""

    code = "PAYROLL_ENTRY_NOT_FOUND"

    def __init__(self, entry_id: Any):
        self.entry_id = entry_id
        super().__init__(f"Payroll entry {entry_id} not found", {"entry_id": str(entry_id)})


# ===== State conflicts =====


class InvalidTransitionError(StateConflictError):
    """Raised when a payroll cycle action is attempted from the wrong state."""

    code = "INVALID_TRANSITION"

    def __init__(self, action: str, current_status: str, required_status: str):
        self.action = str(action)
        self.current_status = str(current_status)
        self.required_status = str(required_status)
        super().__init__(
            f"Cannot {self.action} payroll cycle in status '{self.current_status}' "
            f"(requires '{self.required_status}')",
            {
                "action": self.action,
                "current_status": self.current_status,
                "required_status": self.required_status,
            },
        )


class AlreadyPaidError(StateConflictError):
    """Raised when a payroll entry is marked paid a second time."""

    code = "ALREADY_PAID"

    def __init__(self, entry_id: Any):
        self.entry_id = entry_id
        super().__init__(
            f"Payroll entry {entry_id} is already paid",
            {"entry_id": str(entry_id), "current_status": "paid", "required_status": "pending"},
        )


class BookingAlreadyCompletedError(StateConflictError):
    """Raised when a checkout targets a booking that is already completed."""

    code = "BOOKING_ALREADY_COMPLETED"

    def __init__(self, booking_id: Any):
        self.booking_id = booking_id
        super().__init__(
            f"Booking {booking_id} is already completed",
            {"booking_id": str(booking_id), "current_status": "completed"},
        )


class BookingNotCheckoutableError(StateConflictError):
    """Raised when a checkout targets a cancelled or no-show booking."""

    code = "BOOKING_NOT_CHECKOUTABLE"

    def __init__(self, booking_id: Any, current_status: str):
        self.booking_id = booking_id
        self.current_status = current_status
        super().__init__(
            f"Booking {booking_id} cannot be checked out in status '{current_status}'",
            {"booking_id": str(booking_id), "current_status": current_status},
        )


class CycleAlreadyExistsError(StateConflictError):
    """Raised when a payroll cycle already exists for a period."""

    code = "CYCLE_ALREADY_EXISTS"

    def __init__(self, period_year: int, period_month: int):
        self.period_year = period_year
        self.period_month = period_month
        super().__init__(
            f"Payroll cycle already exists for {period_year}-{period_month:02d}",
            {"period_year": period_year, "period_month": period_month},
        )

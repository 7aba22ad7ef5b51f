"""ORM models for the settlement engine."""

from salon_settlement.models.audit import AuditEvent
from salon_settlement.models.base import Base, TimestampMixin
from salon_settlement.models.booking import (
    CHECKOUTABLE_STATUSES,
    Booking,
    BookingPaymentStatus,
    BookingStatus,
)
from salon_settlement.models.catalog import Salon, SalonService
from salon_settlement.models.checkout import CheckoutTransaction
from salon_settlement.models.payroll import PayrollCycle, PayrollEntry
from salon_settlement.models.staff import SalaryComponent, StaffMember

__all__ = [
    "AuditEvent",
    "Base",
    "TimestampMixin",
    "CHECKOUTABLE_STATUSES",
    "Booking",
    "BookingPaymentStatus",
    "BookingStatus",
    "Salon",
    "SalonService",
    "CheckoutTransaction",
    "PayrollCycle",
    "PayrollEntry",
    "SalaryComponent",
    "StaffMember",
]

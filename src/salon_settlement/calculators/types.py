"""Type definitions for the settlement pipelines."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Any
from uuid import UUID


class ItemType(str, Enum):
    """Checkout line item types."""

    SERVICE = "service"
    PRODUCT = "product"


class DiscountType(str, Enum):
    """Checkout discount types."""

    PERCENTAGE = "percentage"
    FIXED = "fixed"


class PaymentMethod(str, Enum):
    """Payment method tags recorded on a receipt."""

    CASH = "cash"
    CARD = "card"
    UPI = "upi"
    WALLET = "wallet"
    SAVED_CARD = "savedCard"
    SPLIT = "split"


# ===== Checkout =====


@dataclass(frozen=True)
class LineItemRequest:
    """An untrusted line item as sent by the point-of-sale device.

    Carries no price: prices only ever come from the catalog.
    """

    id: str
    quantity: int = 1
    type: str = ItemType.SERVICE.value


@dataclass(frozen=True)
class CatalogEntry:
    """Authoritative catalog data for one service."""

    id: str
    salon_id: UUID
    name: str
    price_paisa: int
    duration_minutes: int | None = None


@dataclass(frozen=True)
class ResolvedLineItem:
    """A line item whose price was substituted from the catalog."""

    id: str
    name: str
    unit_price_paisa: int
    quantity: int
    duration_minutes: int | None = None
    item_type: str = ItemType.SERVICE.value

    @property
    def line_total_paisa(self) -> int:
        return self.unit_price_paisa * self.quantity

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "unit_price_paisa": self.unit_price_paisa,
            "quantity": self.quantity,
            "duration_minutes": self.duration_minutes,
            "item_type": self.item_type,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ResolvedLineItem:
        return cls(
            id=data["id"],
            name=data["name"],
            unit_price_paisa=int(data["unit_price_paisa"]),
            quantity=int(data["quantity"]),
            duration_minutes=data.get("duration_minutes"),
            item_type=data.get("item_type", ItemType.SERVICE.value),
        )


@dataclass(frozen=True)
class Discount:
    """A discount request.

    value is a percentage (0..100) for PERCENTAGE and rupees for FIXED.
    """

    type: DiscountType
    value: Decimal
    code: str | None = None
    reason: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": DiscountType(self.type).value,
            "value": str(self.value),
            "code": self.code,
            "reason": self.reason,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Discount:
        return cls(
            type=DiscountType(data["type"]),
            value=Decimal(str(data["value"])),
            code=data.get("code"),
            reason=data.get("reason"),
        )


@dataclass(frozen=True)
class CheckoutRequest:
    """A checkout as submitted by the point-of-sale device."""

    items: tuple[LineItemRequest, ...]
    payment_method: str
    client_name: str | None = None
    client_phone: str | None = None
    booking_id: UUID | None = None
    discount: Discount | None = None
    tip_amount: Decimal | None = None  # Rupees
    notes: str | None = None


@dataclass(frozen=True)
class PriceBreakdown:
    """Deterministic monetary result of pricing a cart (all paisa)."""

    subtotal_paisa: int
    discount_paisa: int
    after_discount_paisa: int
    tax_paisa: int
    tip_paisa: int
    total_paisa: int


@dataclass(frozen=True)
class Receipt:
    """Immutable record of one completed checkout.

    Corrections are new receipts, never edits to this one.
    """

    transaction_id: str
    salon_id: UUID
    items: tuple[ResolvedLineItem, ...]
    subtotal_paisa: int
    discount_paisa: int
    discount_details: Discount | None
    tax_paisa: int
    tip_paisa: int
    total_paisa: int
    payment_method: str
    processed_by: UUID | None
    processed_at: datetime
    booking_id: UUID | None = None
    client_name: str | None = None
    client_phone: str | None = None
    notes: str | None = None

    @property
    def after_discount_paisa(self) -> int:
        return self.subtotal_paisa - self.discount_paisa


# ===== Payroll =====


@dataclass(frozen=True)
class EarningsComponents:
    """Earnings for one staff member for one period (paisa)."""

    base_salary_paisa: int = 0
    allowances_paisa: int = 0
    commission_earnings_paisa: int = 0
    tips_received_paisa: int = 0
    bonuses_paisa: int = 0

    def amounts(self) -> dict[str, int]:
        return {
            "base_salary_paisa": self.base_salary_paisa,
            "allowances_paisa": self.allowances_paisa,
            "commission_earnings_paisa": self.commission_earnings_paisa,
            "tips_received_paisa": self.tips_received_paisa,
            "bonuses_paisa": self.bonuses_paisa,
        }


@dataclass(frozen=True)
class DeductionComponents:
    """Deductions for one staff member for one period (paisa)."""

    tds_paisa: int = 0
    pf_paisa: int = 0
    esi_paisa: int = 0
    professional_tax_paisa: int = 0
    loan_recovery_paisa: int = 0
    advances_paisa: int = 0
    other_paisa: int = 0

    def amounts(self) -> dict[str, int]:
        return {
            "tds_paisa": self.tds_paisa,
            "pf_paisa": self.pf_paisa,
            "esi_paisa": self.esi_paisa,
            "professional_tax_paisa": self.professional_tax_paisa,
            "loan_recovery_paisa": self.loan_recovery_paisa,
            "advances_paisa": self.advances_paisa,
            "other_paisa": self.other_paisa,
        }


@dataclass(frozen=True)
class PayrollAggregate:
    """Aggregated totals for one payroll entry."""

    earnings: EarningsComponents
    deductions: DeductionComponents
    gross_earnings_paisa: int
    total_deductions_paisa: int
    net_payable_paisa: int


@dataclass(frozen=True)
class PayrollAdjustment:
    """Per-staff amounts supplied when a cycle is processed (paisa)."""

    staff_id: UUID
    commission_paisa: int = 0
    tips_paisa: int = 0
    bonus_paisa: int = 0
    loan_recovery_paisa: int = 0
    advance_paisa: int = 0
    other_deduction_paisa: int = 0
    notes: str | None = None


@dataclass
class CycleTotals:
    """Running totals for a payroll cycle."""

    staff_count: int = 0
    gross_paisa: int = 0
    commissions_paisa: int = 0
    deductions_paisa: int = 0
    net_payable_paisa: int = 0
    staff_ids: list[UUID] = field(default_factory=list)

"""Pydantic schemas for API request/response models."""

from datetime import date, datetime
from decimal import Decimal
from typing import Any, Literal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from salon_settlement.calculators import money
from salon_settlement.calculators.price_resolver import MAX_QUANTITY, MIN_QUANTITY
from salon_settlement.calculators.types import (
    CheckoutRequest as CheckoutCommand,
    Discount,
    DiscountType,
    LineItemRequest,
    PayrollAdjustment,
    Receipt,
)


# ============================================================================
# Checkout schemas
# ============================================================================


class CheckoutItemRequest(BaseModel):
    """A cart line as sent by the point-of-sale device. Carries no price."""

    id: str = Field(min_length=1)
    type: Literal["service", "product"] = "service"
    quantity: int = Field(default=1, ge=MIN_QUANTITY, le=MAX_QUANTITY)


class DiscountRequest(BaseModel):
    """Discount applied at checkout. Fixed values are rupees."""

    type: DiscountType
    value: Decimal = Field(ge=0)
    code: str | None = None
    reason: str | None = None


class CheckoutRequest(BaseModel):
    """Schema for submitting a checkout."""

    booking_id: UUID | None = None
    client_name: str | None = None
    client_phone: str | None = None
    items: list[CheckoutItemRequest] = Field(min_length=1)
    payment_method: Literal["cash", "card", "upi", "wallet", "savedCard", "split"]
    discount: DiscountRequest | None = None
    tip_amount: Decimal | None = Field(default=None, ge=0)
    notes: str | None = None

    def to_command(self) -> CheckoutCommand:
        return CheckoutCommand(
            items=tuple(
                LineItemRequest(id=item.id, quantity=item.quantity, type=item.type)
                for item in self.items
            ),
            payment_method=self.payment_method,
            client_name=self.client_name,
            client_phone=self.client_phone,
            booking_id=self.booking_id,
            discount=(
                Discount(
                    type=self.discount.type,
                    value=self.discount.value,
                    code=self.discount.code,
                    reason=self.discount.reason,
                )
                if self.discount
                else None
            ),
            tip_amount=self.tip_amount,
            notes=self.notes,
        )


class ReceiptItemResponse(BaseModel):
    """A resolved receipt line."""

    id: str
    name: str
    type: str
    quantity: int
    unit_price_paisa: int
    line_total_paisa: int
    unit_price_display: str
    line_total_display: str
    duration_minutes: int | None = None


class DiscountDetailsResponse(BaseModel):
    """The discount as requested."""

    type: str
    value: Decimal
    code: str | None = None
    reason: str | None = None


class ReceiptResponse(BaseModel):
    """Schema for a checkout receipt.

    Every money field is paisa with a formatted rupee twin (*_display).
    """

    transaction_id: str
    salon_id: UUID
    booking_id: UUID | None = None
    client_name: str | None = None
    client_phone: str | None = None
    items: list[ReceiptItemResponse]
    subtotal_paisa: int
    discount_paisa: int
    after_discount_paisa: int
    tax_paisa: int
    tip_paisa: int
    total_paisa: int
    subtotal_display: str
    discount_display: str
    after_discount_display: str
    tax_display: str
    tip_display: str
    total_display: str
    discount_details: DiscountDetailsResponse | None = None
    payment_method: str
    notes: str | None = None
    processed_by: UUID | None = None
    processed_at: datetime

    @classmethod
    def from_receipt(cls, receipt: Receipt) -> "ReceiptResponse":
        return cls(
            transaction_id=receipt.transaction_id,
            salon_id=receipt.salon_id,
            booking_id=receipt.booking_id,
            client_name=receipt.client_name,
            client_phone=receipt.client_phone,
            items=[
                ReceiptItemResponse(
                    id=item.id,
                    name=item.name,
                    type=item.item_type,
                    quantity=item.quantity,
                    unit_price_paisa=item.unit_price_paisa,
                    line_total_paisa=item.line_total_paisa,
                    unit_price_display=money.format_rupees(item.unit_price_paisa),
                    line_total_display=money.format_rupees(item.line_total_paisa),
                    duration_minutes=item.duration_minutes,
                )
                for item in receipt.items
            ],
            subtotal_paisa=receipt.subtotal_paisa,
            discount_paisa=receipt.discount_paisa,
            after_discount_paisa=receipt.after_discount_paisa,
            tax_paisa=receipt.tax_paisa,
            tip_paisa=receipt.tip_paisa,
            total_paisa=receipt.total_paisa,
            subtotal_display=money.format_rupees(receipt.subtotal_paisa),
            discount_display=money.format_rupees(receipt.discount_paisa),
            after_discount_display=money.format_rupees(receipt.after_discount_paisa),
            tax_display=money.format_rupees(receipt.tax_paisa),
            tip_display=money.format_rupees(receipt.tip_paisa),
            total_display=money.format_rupees(receipt.total_paisa),
            discount_details=(
                DiscountDetailsResponse(**receipt.discount_details.to_dict())
                if receipt.discount_details
                else None
            ),
            payment_method=receipt.payment_method,
            notes=receipt.notes,
            processed_by=receipt.processed_by,
            processed_at=receipt.processed_at,
        )


class CheckoutPrefillItem(BaseModel):
    """Cart line suggested from a booking, priced for display only."""

    id: str
    type: str
    name: str
    unit_price_paisa: int
    unit_price_display: str
    quantity: int
    duration_minutes: int | None = None


class CheckoutPrefillResponse(BaseModel):
    """Schema for the checkout screen prefill of a booking."""

    booking: dict[str, Any]
    client: dict[str, Any]
    cart_items: list[CheckoutPrefillItem]


# ============================================================================
# Payroll cycle schemas
# ============================================================================


class PayrollCycleCreate(BaseModel):
    """Schema for creating a draft payroll cycle."""

    period_year: int = Field(ge=2020, le=2100)
    period_month: int = Field(ge=1, le=12)


class PayrollCycleResponse(BaseModel):
    """Schema for payroll cycle response."""

    model_config = ConfigDict(from_attributes=True)

    payroll_cycle_id: UUID
    salon_id: UUID
    period_year: int
    period_month: int
    period_start_date: date
    period_end_date: date
    status: str
    total_staff_count: int
    total_gross_salary_paisa: int
    total_commissions_paisa: int
    total_deductions_paisa: int
    total_net_payable_paisa: int
    created_by: UUID | None = None
    processed_at: datetime | None = None
    processed_by: UUID | None = None
    approved_at: datetime | None = None
    approved_by: UUID | None = None
    paid_at: datetime | None = None
    created_at: datetime | None = None


class PayrollCycleListResponse(BaseModel):
    """Schema for listing payroll cycles."""

    items: list[PayrollCycleResponse]
    total: int


class PayrollEntryResponse(BaseModel):
    """Schema for payroll entry response."""

    model_config = ConfigDict(from_attributes=True)

    payroll_entry_id: UUID
    payroll_cycle_id: UUID
    staff_id: UUID
    staff_name: str | None = None
    base_salary_paisa: int
    allowances_paisa: int
    commission_earnings_paisa: int
    tips_received_paisa: int
    bonuses_paisa: int
    tds_deduction_paisa: int
    pf_deduction_paisa: int
    esi_deduction_paisa: int
    professional_tax_paisa: int
    loan_recovery_paisa: int
    advance_deduction_paisa: int
    other_deductions_paisa: int
    gross_earnings_paisa: int
    total_deductions_paisa: int
    net_payable_paisa: int
    payment_status: str
    paid_at: datetime | None = None
    notes: str | None = None


class PayrollCycleDetailsResponse(BaseModel):
    """Schema for a payroll cycle with its entries."""

    cycle: PayrollCycleResponse
    entries: list[PayrollEntryResponse]
    next_actions: list[str]


class PayrollAdjustmentRequest(BaseModel):
    """Per-staff amounts supplied at processing (paisa)."""

    staff_id: UUID
    commission_paisa: int = Field(default=0, ge=0)
    tips_paisa: int = Field(default=0, ge=0)
    bonus_paisa: int = Field(default=0, ge=0)
    loan_recovery_paisa: int = Field(default=0, ge=0)
    advance_paisa: int = Field(default=0, ge=0)
    other_deduction_paisa: int = Field(default=0, ge=0)
    notes: str | None = None

    def to_adjustment(self) -> PayrollAdjustment:
        return PayrollAdjustment(**self.model_dump())


class ProcessCycleRequest(BaseModel):
    """Schema for processing a draft cycle."""

    adjustments: list[PayrollAdjustmentRequest] = Field(default_factory=list)


class TransitionRequest(BaseModel):
    """Schema for moving a cycle forward. Process has its own endpoint."""

    action: Literal["approve", "pay"]


class PayslipResponse(BaseModel):
    """Schema for a payslip read."""

    model_config = ConfigDict(from_attributes=True)

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
    net_payable_display: str
    payment_status: str
    paid_at: datetime | None = None


class PayrollSummaryResponse(BaseModel):
    """Schema for the salon payroll overview."""

    total_staff: int
    monthly_payable_paisa: int
    monthly_payable_display: str
    latest_cycle_id: UUID | None = None
    latest_cycle_status: str | None = None
    latest_period_year: int | None = None
    latest_period_month: int | None = None
    last_paid_at: datetime | None = None


# ============================================================================
# Error schemas
# ============================================================================


class ErrorResponse(BaseModel):
    """Schema for error responses."""

    detail: str
    code: str | None = None
    context: dict[str, Any] | None = None

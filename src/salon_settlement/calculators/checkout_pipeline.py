"""Checkout pricing pipeline."""

from __future__ import annotations

import secrets
import string
import time
from collections.abc import Sequence
from datetime import datetime, timezone
from decimal import Decimal, InvalidOperation
from uuid import UUID

from salon_settlement.calculators import money
from salon_settlement.calculators.types import (
    Discount,
    DiscountType,
    ItemType,
    PaymentMethod,
    PriceBreakdown,
    Receipt,
    ResolvedLineItem,
)
from salon_settlement.errors import CheckoutValidationError, UnsupportedItemTypeError

DEFAULT_TAX_RATE = Decimal("0.18")
DEFAULT_TIP_CEILING_PAISA = 100_000 * money.PAISA_PER_RUPEE

_SUFFIX_ALPHABET = string.ascii_uppercase + string.digits
_SUFFIX_LENGTH = 8


def generate_transaction_id() -> str:
    """Mint a transaction id: TXN-<epoch millis>-<random suffix>."""
    millis = time.time_ns() // 1_000_000
    suffix = "".join(secrets.choice(_SUFFIX_ALPHABET) for _ in range(_SUFFIX_LENGTH))
    return f"TXN-{millis}-{suffix}"


class CheckoutPricingPipeline:
    """Turns catalog-resolved line items into a receipt.

    Pricing order is fixed; each stage feeds the next:
    1) subtotal = sum(unit price x quantity)
    2) discount (percentage of subtotal, or fixed rupees capped at subtotal)
    3) after discount = max(0, subtotal - discount)
    4) tax on the after-discount amount
    5) tip (rupees, capped, untaxed)
    6) total = after discount + tax + tip

    price() is pure. issue_receipt() is the only place a transaction id
    and timestamp are minted.
    """

    def __init__(
        self,
        tax_rate: Decimal = DEFAULT_TAX_RATE,
        tip_ceiling_paisa: int = DEFAULT_TIP_CEILING_PAISA,
    ):
        if not Decimal("0") <= Decimal(tax_rate) <= Decimal("1"):
            raise ValueError("tax_rate must be between 0 and 1")
        self.tax_rate = Decimal(tax_rate)
        self.tip_ceiling_paisa = tip_ceiling_paisa

    @staticmethod
    def compute_subtotal(items: Sequence[ResolvedLineItem]) -> int:
        return money.add(*(item.line_total_paisa for item in items))

    @staticmethod
    def compute_discount(subtotal_paisa: int, discount: Discount | None) -> int:
        """Discount in paisa, never more than the subtotal."""
        if discount is None:
            return 0

        try:
            discount_type = DiscountType(discount.type)
        except ValueError:
            raise CheckoutValidationError(
                "discount.type", f"unknown discount type {discount.type!r}"
            )
        try:
            value = Decimal(str(discount.value))
        except InvalidOperation:
            raise CheckoutValidationError("discount.value", "must be a number")
        if not value.is_finite():
            raise CheckoutValidationError("discount.value", "must be a finite number")

        if discount_type == DiscountType.PERCENTAGE:
            if not Decimal("0") <= value <= Decimal("100"):
                raise CheckoutValidationError(
                    "discount.value", f"percentage must be between 0 and 100, got {value}"
                )
            return money.percentage_of(subtotal_paisa, value)

        if value < 0:
            raise CheckoutValidationError(
                "discount.value", f"fixed discount must be non-negative, got {value}"
            )
        return money.rupees_to_paisa(value, ceiling=subtotal_paisa)

    def compute_tax(self, after_discount_paisa: int) -> int:
        return money.apply_rate(after_discount_paisa, self.tax_rate)

    def compute_tip(self, tip_rupees: Decimal | int | float | None) -> int:
        if tip_rupees is None:
            return 0
        try:
            return money.rupees_to_paisa(tip_rupees, ceiling=self.tip_ceiling_paisa)
        except ValueError as e:
            raise CheckoutValidationError("tip_amount", str(e)) from e

    def price(
        self,
        items: Sequence[ResolvedLineItem],
        discount: Discount | None = None,
        tip_rupees: Decimal | int | float | None = None,
    ) -> PriceBreakdown:
        """Compute the monetary fields of a checkout.

        Deterministic: the same items, discount and tip always produce the
        same breakdown.
        """
        if not items:
            raise CheckoutValidationError("items", "at least one resolved item is required")

        unsupported = [item.id for item in items if item.item_type != ItemType.SERVICE.value]
        if unsupported:
            bad_type = next(i.item_type for i in items if i.item_type != ItemType.SERVICE.value)
            raise UnsupportedItemTypeError(unsupported, bad_type)

        subtotal = self.compute_subtotal(items)
        discount_paisa = self.compute_discount(subtotal, discount)
        after_discount = money.subtract(subtotal, discount_paisa)
        tax = self.compute_tax(after_discount)
        tip = self.compute_tip(tip_rupees)
        total = money.add(after_discount, tax, tip)

        return PriceBreakdown(
            subtotal_paisa=subtotal,
            discount_paisa=discount_paisa,
            after_discount_paisa=after_discount,
            tax_paisa=tax,
            tip_paisa=tip,
            total_paisa=total,
        )

    def issue_receipt(
        self,
        breakdown: PriceBreakdown,
        items: Sequence[ResolvedLineItem],
        *,
        salon_id: UUID,
        payment_method: str,
        processed_by: UUID | None,
        discount: Discount | None = None,
        booking_id: UUID | None = None,
        client_name: str | None = None,
        client_phone: str | None = None,
        notes: str | None = None,
    ) -> Receipt:
        """Mint the transaction id and timestamp for a priced checkout."""
        try:
            method = PaymentMethod(payment_method).value
        except ValueError:
            raise CheckoutValidationError(
                "payment_method", f"unknown payment method {payment_method!r}"
            )

        return Receipt(
            transaction_id=generate_transaction_id(),
            salon_id=salon_id,
            items=tuple(items),
            subtotal_paisa=breakdown.subtotal_paisa,
            discount_paisa=breakdown.discount_paisa,
            discount_details=discount,
            tax_paisa=breakdown.tax_paisa,
            tip_paisa=breakdown.tip_paisa,
            total_paisa=breakdown.total_paisa,
            payment_method=method,
            processed_by=processed_by,
            processed_at=datetime.now(timezone.utc),
            booking_id=booking_id,
            client_name=client_name,
            client_phone=client_phone,
            notes=notes,
        )

    def run(
        self,
        items: Sequence[ResolvedLineItem],
        *,
        salon_id: UUID,
        payment_method: str,
        processed_by: UUID | None,
        discount: Discount | None = None,
        tip_rupees: Decimal | int | float | None = None,
        booking_id: UUID | None = None,
        client_name: str | None = None,
        client_phone: str | None = None,
        notes: str | None = None,
    ) -> Receipt:
        """Price and issue a receipt in one step."""
        breakdown = self.price(items, discount, tip_rupees)
        return self.issue_receipt(
            breakdown,
            items,
            salon_id=salon_id,
            payment_method=payment_method,
            processed_by=processed_by,
            discount=discount,
            booking_id=booking_id,
            client_name=client_name,
            client_phone=client_phone,
            notes=notes,
        )

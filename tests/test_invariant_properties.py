"""Property-based tests for settlement invariants.

These tests use hypothesis to generate carts, discounts and payroll
components and check the arithmetic identities that must always hold.
"""

import asyncio
from decimal import ROUND_HALF_UP, Decimal
from uuid import uuid4

import pytest
from hypothesis import given, settings, strategies as st

from salon_settlement.calculators import money
from salon_settlement.calculators.checkout_pipeline import CheckoutPricingPipeline
from salon_settlement.calculators.payroll_aggregator import PayrollEntryAggregator
from salon_settlement.calculators.price_resolver import CatalogPriceResolver
from salon_settlement.calculators.types import (
    CatalogEntry,
    DeductionComponents,
    Discount,
    DiscountType,
    EarningsComponents,
    LineItemRequest,
    ResolvedLineItem,
)
from salon_settlement.errors import ItemNotFoundError, NegativeNetPayableError

TAX_RATE = Decimal("0.18")
PIPELINE = CheckoutPricingPipeline(tax_rate=TAX_RATE, tip_ceiling_paisa=10_000_000)

paisa = st.integers(min_value=0, max_value=10_000_000)

line_items = st.lists(
    st.builds(
        ResolvedLineItem,
        id=st.text(alphabet="abcdef0123456789", min_size=4, max_size=8),
        name=st.just("Service"),
        unit_price_paisa=st.integers(min_value=0, max_value=5_000_000),
        quantity=st.integers(min_value=1, max_value=100),
    ),
    min_size=1,
    max_size=10,
)

tips = st.decimals(min_value=Decimal("0"), max_value=Decimal("200000"), places=2)


def half_up(value: Decimal) -> int:
    return int(value.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


class TestCheckoutProperties:
    """Invariants of the pricing chain."""

    @given(items=line_items, tip=tips)
    @settings(max_examples=200)
    def test_discount_free_total(self, items, tip):
        """total == subtotal + round(subtotal x rate) + tip."""
        breakdown = PIPELINE.price(items, None, tip)

        subtotal = sum(i.unit_price_paisa * i.quantity for i in items)
        assert breakdown.subtotal_paisa == subtotal
        assert breakdown.tax_paisa == half_up(Decimal(subtotal) * TAX_RATE)
        assert breakdown.total_paisa == subtotal + breakdown.tax_paisa + breakdown.tip_paisa

    @given(
        items=line_items,
        pct=st.decimals(min_value=Decimal("0"), max_value=Decimal("100"), places=2),
    )
    @settings(max_examples=200)
    def test_percentage_discount_bounded(self, items, pct):
        breakdown = PIPELINE.price(items, Discount(type=DiscountType.PERCENTAGE, value=pct))

        expected = half_up(Decimal(breakdown.subtotal_paisa) * pct / 100)
        assert breakdown.discount_paisa == expected
        assert 0 <= breakdown.discount_paisa <= breakdown.subtotal_paisa

    @given(
        items=line_items,
        rupees=st.decimals(min_value=Decimal("0"), max_value=Decimal("10000000"), places=2),
    )
    @settings(max_examples=200)
    def test_fixed_discount_capped(self, items, rupees):
        breakdown = PIPELINE.price(items, Discount(type=DiscountType.FIXED, value=rupees))

        expected = min(half_up(rupees * 100), breakdown.subtotal_paisa)
        assert breakdown.discount_paisa == expected
        assert breakdown.after_discount_paisa == breakdown.subtotal_paisa - expected

    @given(items=line_items, tip=tips)
    @settings(max_examples=100)
    def test_tip_never_exceeds_ceiling_and_is_untaxed(self, items, tip):
        breakdown = PIPELINE.price(items, None, tip)
        assert 0 <= breakdown.tip_paisa <= 10_000_000
        assert breakdown.tax_paisa == PIPELINE.price(items).tax_paisa

    @given(items=line_items)
    @settings(max_examples=100)
    def test_all_fields_non_negative(self, items):
        breakdown = PIPELINE.price(items, Discount(type=DiscountType.FIXED, value=Decimal("1e9")))
        assert breakdown.after_discount_paisa == 0
        assert breakdown.total_paisa >= 0


class TestResolutionProperties:
    """Invariants of catalog resolution."""

    @given(
        prices=st.dictionaries(
            keys=st.text(alphabet="abcdefghij", min_size=3, max_size=6),
            values=st.integers(min_value=0, max_value=1_000_000),
            min_size=1,
            max_size=8,
        ),
        extra=st.text(alphabet="klmnop", min_size=3, max_size=6),
    )
    @settings(max_examples=100)
    def test_unknown_id_rejects_whole_cart(self, prices, extra):
        salon_id = uuid4()

        class Catalog:
            async def get_active_services(self, salon_id_, service_ids):
                return [
                    CatalogEntry(id=sid, salon_id=salon_id, name=sid, price_paisa=prices[sid])
                    for sid in service_ids
                    if sid in prices
                ]

        resolver = CatalogPriceResolver(Catalog())
        request = [LineItemRequest(id=sid) for sid in prices]

        resolved = asyncio.run(resolver.resolve(salon_id, request))
        assert [r.unit_price_paisa for r in resolved] == list(prices.values())
        assert asyncio.run(resolver.resolve(salon_id, request)) == resolved

        with pytest.raises(ItemNotFoundError) as exc_info:
            asyncio.run(resolver.resolve(salon_id, request + [LineItemRequest(id=extra)]))
        assert exc_info.value.item_ids == [extra]


class TestPayrollProperties:
    """Invariants of payroll aggregation."""

    @given(
        base=st.integers(min_value=14_000_000, max_value=20_000_000),
        others=st.lists(paisa, min_size=4, max_size=4),
        deductions=st.lists(st.integers(min_value=0, max_value=2_000_000), min_size=7, max_size=7),
    )
    @settings(max_examples=200)
    def test_net_is_gross_minus_deductions(self, base, others, deductions):
        earnings = [base, *others]

        result = PayrollEntryAggregator.aggregate(
            EarningsComponents(*earnings), DeductionComponents(*deductions)
        )

        assert result.gross_earnings_paisa == sum(earnings)
        assert result.total_deductions_paisa == sum(deductions)
        assert result.net_payable_paisa == sum(earnings) - sum(deductions)
        assert result.net_payable_paisa >= 0

    @given(gross=paisa, excess=st.integers(min_value=1, max_value=1_000_000))
    @settings(max_examples=100)
    def test_negative_net_always_rejected(self, gross, excess):
        with pytest.raises(NegativeNetPayableError):
            PayrollEntryAggregator.aggregate(
                EarningsComponents(base_salary_paisa=gross),
                DeductionComponents(other_paisa=gross + excess),
            )


class TestMoneyProperties:
    """Invariants of paisa conversion."""

    @given(amount=paisa)
    def test_format_round_trips_through_rupees(self, amount):
        text = money.format_rupees(amount)
        assert text.startswith("₹")
        assert Decimal(text[1:].replace(",", "")) == money.paisa_to_rupees(amount)

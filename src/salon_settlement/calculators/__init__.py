"""Settlement calculators: money, pricing and payroll aggregation."""

from salon_settlement.calculators.checkout_pipeline import (
    CheckoutPricingPipeline,
    generate_transaction_id,
)
from salon_settlement.calculators.payroll_aggregator import PayrollEntryAggregator
from salon_settlement.calculators.price_resolver import (
    CatalogPriceResolver,
    CatalogReader,
    SqlCatalogReader,
)

__all__ = [
    "CheckoutPricingPipeline",
    "generate_transaction_id",
    "PayrollEntryAggregator",
    "CatalogPriceResolver",
    "CatalogReader",
    "SqlCatalogReader",
]

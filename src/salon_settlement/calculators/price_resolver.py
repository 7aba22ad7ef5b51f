"""Catalog price resolution for checkout line items."""

from __future__ import annotations

from collections.abc import Sequence
from typing import Protocol, runtime_checkable
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from salon_settlement.calculators.types import (
    CatalogEntry,
    ItemType,
    LineItemRequest,
    ResolvedLineItem,
)
from salon_settlement.errors import (
    CheckoutValidationError,
    ItemNotFoundError,
    UnsupportedItemTypeError,
)
from salon_settlement.models.catalog import SalonService

MIN_QUANTITY = 1
MAX_QUANTITY = 100


@runtime_checkable
class CatalogReader(Protocol):
    """Read-only lookup into a salon's service catalog."""

    async def get_active_services(
        self, salon_id: UUID, service_ids: Sequence[str]
    ) -> list[CatalogEntry]:
        """Return the active catalog entries of salon_id among service_ids."""
        ...


class SqlCatalogReader:
    """CatalogReader backed by the salon_service table."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_active_services(
        self, salon_id: UUID, service_ids: Sequence[str]
    ) -> list[CatalogEntry]:
        # Entries are keyed by the id exactly as requested
        requested: dict[UUID, list[str]] = {}
        for raw in service_ids:
            try:
                requested.setdefault(UUID(str(raw)), []).append(raw)
            except ValueError:
                # Not a UUID, so it cannot be in the catalog
                continue
        if not requested:
            return []

        result = await self.session.execute(
            select(SalonService).where(
                SalonService.salon_id == salon_id,
                SalonService.salon_service_id.in_(list(requested)),
                SalonService.is_active.is_(True),
            )
        )
        return [
            CatalogEntry(
                id=raw,
                salon_id=svc.salon_id,
                name=svc.name,
                price_paisa=svc.price_paisa,
                duration_minutes=svc.duration_minutes,
            )
            for svc in result.scalars().all()
            for raw in requested[svc.salon_service_id]
        ]


class CatalogPriceResolver:
    """Replaces untrusted line items with authoritative catalog prices.

    Resolution is all-or-nothing:
    1. Validate quantities (1..100) and item types (services only)
    2. Confirm every requested id is in the salon's active catalog
    3. Substitute name/price/duration from the catalog

    If any id is missing the whole request is rejected, naming every
    missing id. Nothing is partially priced.
    """

    def __init__(self, catalog: CatalogReader):
        self.catalog = catalog

    @staticmethod
    def validate_requests(items: Sequence[LineItemRequest]) -> None:
        """Validate request shape before any catalog lookup."""
        if not items:
            raise CheckoutValidationError("items", "at least one item is required")

        for i, item in enumerate(items):
            qty = item.quantity
            if isinstance(qty, bool) or not isinstance(qty, int):
                raise CheckoutValidationError(f"items[{i}].quantity", "must be an integer")
            if not MIN_QUANTITY <= qty <= MAX_QUANTITY:
                raise CheckoutValidationError(
                    f"items[{i}].quantity",
                    f"must be between {MIN_QUANTITY} and {MAX_QUANTITY}, got {qty}",
                )

        unsupported = [item for item in items if item.type != ItemType.SERVICE.value]
        if unsupported:
            raise UnsupportedItemTypeError(
                [item.id for item in unsupported], str(unsupported[0].type)
            )

    async def resolve(
        self,
        salon_id: UUID,
        items: Sequence[LineItemRequest],
    ) -> list[ResolvedLineItem]:
        """Resolve requested items to catalog-priced line items.

        Raises:
            CheckoutValidationError: empty list or quantity out of range
            UnsupportedItemTypeError: a non-service item was requested
            ItemNotFoundError: one or more ids are not in the active catalog
        """
        self.validate_requests(items)

        # Distinct ids in first-requested order
        requested_ids = list(dict.fromkeys(item.id for item in items))
        entries = await self.catalog.get_active_services(salon_id, requested_ids)
        by_id = {entry.id: entry for entry in entries if entry.salon_id == salon_id}

        missing = [item_id for item_id in requested_ids if item_id not in by_id]
        if missing:
            raise ItemNotFoundError(missing)

        return [
            ResolvedLineItem(
                id=item.id,
                name=by_id[item.id].name,
                unit_price_paisa=by_id[item.id].price_paisa,
                quantity=item.quantity,
                duration_minutes=by_id[item.id].duration_minutes,
            )
            for item in items
        ]

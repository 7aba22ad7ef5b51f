"""Checkout service - orchestrates pricing, booking completion and receipt persistence."""

from __future__ import annotations

import logging
from typing import Any
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from salon_settlement.calculators import money
from salon_settlement.calculators.checkout_pipeline import CheckoutPricingPipeline
from salon_settlement.calculators.price_resolver import (
    CatalogPriceResolver,
    CatalogReader,
    SqlCatalogReader,
)
from salon_settlement.calculators.types import (
    CheckoutRequest,
    Discount,
    Receipt,
    ResolvedLineItem,
)
from salon_settlement.config import Settings, get_settings
from salon_settlement.errors import SettlementError, TransactionNotFoundError
from salon_settlement.models import AuditEvent, CheckoutTransaction, SalonService
from salon_settlement.services.booking_sync import BookingStatusSynchronizer

logger = logging.getLogger(__name__)


class CheckoutService:
    """Service for processing point-of-sale checkouts.

    process_checkout runs as one unit of work:
    1) Resolve items against the catalog (prices never come from the client)
    2) Price the cart
    3) Verify the linked booking, if any, can be completed
    4) Issue the receipt (transaction id minted here, once)
    5) Complete the booking with a conditional update
    6) Insert the receipt and an audit event

    Nothing is committed here. The caller commits once after this returns,
    so the receipt and the booking update land together or not at all.
    """

    def __init__(
        self,
        session: AsyncSession,
        settings: Settings | None = None,
        catalog: CatalogReader | None = None,
    ):
        self.session = session
        self.settings = settings or get_settings()
        self.resolver = CatalogPriceResolver(catalog or SqlCatalogReader(session))
        self.pipeline = CheckoutPricingPipeline(
            tax_rate=self.settings.tax_rate,
            tip_ceiling_paisa=self.settings.tip_ceiling_paisa,
        )
        self.booking_sync = BookingStatusSynchronizer(session)

    async def process_checkout(
        self,
        salon_id: UUID,
        request: CheckoutRequest,
        processed_by: UUID | None = None,
    ) -> Receipt:
        """Price a checkout, complete its booking and persist the receipt.

        Raises:
            CheckoutValidationError: out-of-range quantity, discount, tip or
                payment method
            ItemNotFoundError / UnsupportedItemTypeError: catalog resolution
            BookingNotFoundError: booking missing or foreign to the salon
            BookingAlreadyCompletedError / BookingNotCheckoutableError:
                booking not in a checkoutable state
        """
        try:
            receipt = await self._settle(salon_id, request, processed_by)
        except SettlementError as e:
            logger.warning(
                "Checkout rejected for salon %s: %s (%s)", salon_id, e.message, e.code
            )
            raise

        self.session.add(self._to_row(receipt))
        self.session.add(self._audit(receipt))
        await self.session.flush()

        logger.info(
            "Checkout %s for salon %s: subtotal=%s discount=%s tax=%s tip=%s total=%s (%s)",
            receipt.transaction_id,
            salon_id,
            receipt.subtotal_paisa,
            receipt.discount_paisa,
            receipt.tax_paisa,
            receipt.tip_paisa,
            receipt.total_paisa,
            money.format_rupees(receipt.total_paisa),
        )
        return receipt

    async def _settle(
        self,
        salon_id: UUID,
        request: CheckoutRequest,
        processed_by: UUID | None,
    ) -> Receipt:
        items = await self.resolver.resolve(salon_id, request.items)
        breakdown = self.pipeline.price(items, request.discount, request.tip_amount)

        # Reject before a transaction id exists for a checkout that cannot complete
        if request.booking_id is not None:
            await self.booking_sync.get_checkout_booking(salon_id, request.booking_id)

        receipt = self.pipeline.issue_receipt(
            breakdown,
            items,
            salon_id=salon_id,
            payment_method=request.payment_method,
            processed_by=processed_by,
            discount=request.discount,
            booking_id=request.booking_id,
            client_name=request.client_name,
            client_phone=request.client_phone,
            notes=request.notes,
        )

        if request.booking_id is not None:
            await self.booking_sync.complete_booking(salon_id, request.booking_id, receipt)

        return receipt

    async def get_transaction(self, salon_id: UUID, transaction_id: str) -> Receipt:
        """Read back a persisted receipt."""
        result = await self.session.execute(
            select(CheckoutTransaction).where(
                CheckoutTransaction.transaction_id == transaction_id,
                CheckoutTransaction.salon_id == salon_id,
            )
        )
        row = result.scalar_one_or_none()
        if row is None:
            raise TransactionNotFoundError(transaction_id)
        return self._from_row(row)

    async def get_checkout_prefill(self, salon_id: UUID, booking_id: UUID) -> dict[str, Any]:
        """Booking, client and cart line for the checkout screen.

        The cart line carries the current catalog price for display only;
        process_checkout re-resolves it.
        """
        booking = await self.booking_sync.get_checkout_booking(salon_id, booking_id)
        service = (
            await self.session.get(SalonService, booking.service_id)
            if booking.service_id is not None
            else None
        )

        cart_items: list[dict[str, Any]] = []
        if service is not None and service.is_active and service.salon_id == salon_id:
            cart_items.append(
                {
                    "id": str(service.salon_service_id),
                    "type": "service",
                    "name": service.name,
                    "unit_price_paisa": service.price_paisa,
                    "quantity": 1,
                    "duration_minutes": service.duration_minutes,
                }
            )

        return {
            "booking": {
                "id": booking.booking_id,
                "date": booking.booking_date,
                "time": booking.booking_time,
                "status": booking.status,
            },
            "client": {
                "name": booking.client_name,
                "phone": booking.client_phone,
                "email": booking.client_email,
            },
            "cart_items": cart_items,
        }

    @staticmethod
    def _to_row(receipt: Receipt) -> CheckoutTransaction:
        return CheckoutTransaction(
            transaction_id=receipt.transaction_id,
            salon_id=receipt.salon_id,
            booking_id=receipt.booking_id,
            client_name=receipt.client_name,
            client_phone=receipt.client_phone,
            items_json=[item.to_dict() for item in receipt.items],
            subtotal_paisa=receipt.subtotal_paisa,
            discount_paisa=receipt.discount_paisa,
            discount_details_json=(
                receipt.discount_details.to_dict() if receipt.discount_details else None
            ),
            tax_paisa=receipt.tax_paisa,
            tip_paisa=receipt.tip_paisa,
            total_paisa=receipt.total_paisa,
            payment_method=receipt.payment_method,
            notes=receipt.notes,
            status="completed",
            processed_by=receipt.processed_by,
            processed_at=receipt.processed_at,
        )

    @staticmethod
    def _from_row(row: CheckoutTransaction) -> Receipt:
        return Receipt(
            transaction_id=row.transaction_id,
            salon_id=row.salon_id,
            items=tuple(ResolvedLineItem.from_dict(item) for item in row.items_json),
            subtotal_paisa=row.subtotal_paisa,
            discount_paisa=row.discount_paisa,
            discount_details=(
                Discount.from_dict(row.discount_details_json)
                if row.discount_details_json
                else None
            ),
            tax_paisa=row.tax_paisa,
            tip_paisa=row.tip_paisa,
            total_paisa=row.total_paisa,
            payment_method=row.payment_method,
            processed_by=row.processed_by,
            processed_at=row.processed_at,
            booking_id=row.booking_id,
            client_name=row.client_name,
            client_phone=row.client_phone,
            notes=row.notes,
        )

    @staticmethod
    def _audit(receipt: Receipt) -> AuditEvent:
        return AuditEvent(
            salon_id=receipt.salon_id,
            actor_user_id=receipt.processed_by,
            entity_type="checkout_transaction",
            entity_id=receipt.transaction_id,
            action="checkout_completed",
            details_json={
                "booking_id": str(receipt.booking_id) if receipt.booking_id else None,
                "total_paisa": receipt.total_paisa,
                "payment_method": receipt.payment_method,
            },
        )

"""Booking status synchronization for checkouts."""

from __future__ import annotations

import logging
from uuid import UUID

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from salon_settlement.calculators.types import Receipt
from salon_settlement.errors import (
    BookingAlreadyCompletedError,
    BookingNotCheckoutableError,
    BookingNotFoundError,
)
from salon_settlement.models import (
    CHECKOUTABLE_STATUSES,
    Booking,
    BookingPaymentStatus,
    BookingStatus,
)

logger = logging.getLogger(__name__)


class BookingStatusSynchronizer:
    """Completes the booking a checkout refers to.

    The completion is a single conditional UPDATE keyed on the booking still
    being checkoutable, so of two concurrent checkouts of one booking exactly
    one sees a row updated; the other gets BookingAlreadyCompletedError.
    The caller owns the transaction: the receipt insert and this update
    commit or roll back together.
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    async def _load(self, salon_id: UUID, booking_id: UUID) -> Booking | None:
        result = await self.session.execute(
            select(Booking).where(
                Booking.booking_id == booking_id,
                Booking.salon_id == salon_id,
            )
        )
        return result.scalar_one_or_none()

    @staticmethod
    def _raise_for_status(booking: Booking) -> None:
        if booking.status == BookingStatus.COMPLETED:
            raise BookingAlreadyCompletedError(booking.booking_id)
        if booking.status not in CHECKOUTABLE_STATUSES:
            raise BookingNotCheckoutableError(booking.booking_id, booking.status)

    async def get_checkout_booking(self, salon_id: UUID, booking_id: UUID) -> Booking:
        """Load a booking that can still be checked out.

        Raises:
            BookingNotFoundError: missing, or belongs to another salon
            BookingAlreadyCompletedError: already completed
            BookingNotCheckoutableError: cancelled or no-show
        """
        booking = await self._load(salon_id, booking_id)
        if booking is None:
            raise BookingNotFoundError(booking_id)
        self._raise_for_status(booking)
        return booking

    async def complete_booking(
        self,
        salon_id: UUID,
        booking_id: UUID,
        receipt: Receipt,
    ) -> Booking:
        """Mark the booking completed and paid with the receipt total."""
        result = await self.session.execute(
            update(Booking)
            .where(
                Booking.booking_id == booking_id,
                Booking.salon_id == salon_id,
                Booking.status.in_(CHECKOUTABLE_STATUSES),
            )
            .values(
                status=BookingStatus.COMPLETED.value,
                payment_status=BookingPaymentStatus.PAID.value,
                final_amount_paisa=receipt.total_paisa,
                updated_at=receipt.processed_at,
            )
            .execution_options(synchronize_session=False)
        )

        booking = await self._load(salon_id, booking_id)
        if booking is None:
            raise BookingNotFoundError(booking_id)
        await self.session.refresh(booking)
        if result.rowcount == 0:
            # Lost the race or the booking was never checkoutable
            self._raise_for_status(booking)
            raise BookingAlreadyCompletedError(booking_id)

        logger.info(
            "Booking %s completed by transaction %s (total %s paisa)",
            booking_id,
            receipt.transaction_id,
            receipt.total_paisa,
        )
        return booking

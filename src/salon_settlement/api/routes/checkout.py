"""Checkout API endpoints."""

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Path, status

from salon_settlement.api.dependencies import ActorId, DbSession, SalonId
from salon_settlement.api.schemas import (
    CheckoutPrefillItem,
    CheckoutPrefillResponse,
    CheckoutRequest,
    ErrorResponse,
    ReceiptResponse,
)
from salon_settlement.calculators import money
from salon_settlement.services.checkout_service import CheckoutService

router = APIRouter(prefix="/checkout", tags=["checkout"])


@router.post(
    "",
    response_model=ReceiptResponse,
    status_code=status.HTTP_201_CREATED,
    responses={
        400: {"model": ErrorResponse},
        404: {"model": ErrorResponse},
        409: {"model": ErrorResponse},
        422: {"model": ErrorResponse},
    },
)
async def process_checkout(
    db: DbSession,
    salon_id: SalonId,
    actor_id: ActorId,
    payload: CheckoutRequest,
) -> ReceiptResponse:
    """Price a cart, complete its booking and record the receipt.

    The receipt and the booking update are committed together; the response
    is only sent once both are durable.
    """
    service = CheckoutService(db)
    receipt = await service.process_checkout(salon_id, payload.to_command(), actor_id)
    await db.commit()
    return ReceiptResponse.from_receipt(receipt)


@router.get(
    "/transactions/{transaction_id}",
    response_model=ReceiptResponse,
    responses={404: {"model": ErrorResponse}},
)
async def get_transaction(
    db: DbSession,
    salon_id: SalonId,
    transaction_id: Annotated[str, Path()],
) -> ReceiptResponse:
    """Read back a recorded receipt."""
    receipt = await CheckoutService(db).get_transaction(salon_id, transaction_id)
    return ReceiptResponse.from_receipt(receipt)


@router.get(
    "/appointment/{booking_id}",
    response_model=CheckoutPrefillResponse,
    responses={404: {"model": ErrorResponse}, 409: {"model": ErrorResponse}},
)
async def get_checkout_prefill(
    db: DbSession,
    salon_id: SalonId,
    booking_id: Annotated[UUID, Path()],
) -> CheckoutPrefillResponse:
    """Booking and client details to prefill the checkout screen."""
    prefill = await CheckoutService(db).get_checkout_prefill(salon_id, booking_id)
    return CheckoutPrefillResponse(
        booking=prefill["booking"],
        client=prefill["client"],
        cart_items=[
            CheckoutPrefillItem(
                **item,
                unit_price_display=money.format_rupees(item["unit_price_paisa"]),
            )
            for item in prefill["cart_items"]
        ],
    )

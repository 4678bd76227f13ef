from typing import Optional

from fastapi import APIRouter, BackgroundTasks, Depends, Request
from fastapi.responses import JSONResponse

from storefront_pay.data.models.enum.order_status import OrderStatus
from storefront_pay.payment_callback import callback_logger
from storefront_pay.payment_callback.dependencies import get_callback_service, get_stripe_gateway
from storefront_pay.payment_callback.schemas import CreatePaymentUrlResponse, StripePaymentIntentRequest
from storefront_pay.payment_callback.services.callback_service import CallbackService
from storefront_pay.payment_gateway.errors import GatewayRequestFailed
from storefront_pay.payment_gateway.gateways import StripeGateway

router = APIRouter(prefix="/stripe", tags=["Stripe"])


def _failure(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=CreatePaymentUrlResponse(success=False, message=message).to_dict()
    )


@router.post("/create_payment_url")
async def create_payment_intent(
    data: StripePaymentIntentRequest,
    gateway: Optional[StripeGateway] = Depends(get_stripe_gateway),
    service: CallbackService = Depends(get_callback_service),
):
    """
    Create a PaymentIntent for a pending order.

    The amount is the order total from the store, never a client value.
    """
    if gateway is None or not gateway.can_create_payments:
        return _failure(503, "Stripe config missing")

    try:
        order = await service.reconciler.store.find_by_id(data.order_id)
    except Exception as e:
        callback_logger.error(f"Failed to load order {data.order_id} for Stripe: {e}")
        return _failure(500, "Failed to create payment")

    if order is None:
        return _failure(404, "Order not found")
    if order.status != OrderStatus.PENDING_PAYMENT:
        return _failure(400, "Order already paid or cannot be paid")

    try:
        intent = await gateway.create_payment_intent(data.order_id, order.total_price)
    except GatewayRequestFailed as e:
        return _failure(502, str(e))

    return JSONResponse(content=CreatePaymentUrlResponse(success=True, **intent).to_dict())


@router.post("/webhook")
async def stripe_webhook(
    request: Request,
    background_tasks: BackgroundTasks,
    gateway: Optional[StripeGateway] = Depends(get_stripe_gateway),
    service: CallbackService = Depends(get_callback_service),
):
    """Verify the Stripe-Signature header over the raw body and reconcile."""
    if gateway is None:
        return JSONResponse(status_code=503, content={"received": False, "error": "Stripe webhook disabled"})

    payload = await request.body()
    status_code, body = await service.process_stripe(
        gateway, payload, request.headers.get("stripe-signature", ""), background_tasks
    )
    return JSONResponse(status_code=status_code, content=body)

"""Gateway-agnostic handling of return redirects and IPN webhooks.

Every failure is converted into an acknowledgement code here. Nothing raised
while handling a callback reaches FastAPI, because a 500 makes the gateway
retry the IPN over and over.
"""

from dataclasses import dataclass
from typing import Mapping, Optional
from urllib.parse import urlencode

from storefront_pay.config import PaymentSettings
from storefront_pay.payment_callback import callback_logger as logger
from storefront_pay.payment_gateway.errors import MalformedCallback, SignatureInvalid
from storefront_pay.payment_gateway.gateways.base import PaymentGateway
from storefront_pay.payment_gateway.gateways.stripe_gateway import StripeGateway
from storefront_pay.payment_gateway.reconciler import (
    OrderReconciler,
    ReconcileOutcome,
    ReconcileResult,
    SUCCESS_CODE,
)
from storefront_pay.utils.status import RspCode

_OUTCOME_ACK = {
    ReconcileOutcome.CONFIRMED: (RspCode.SUCCESS, "Success"),
    ReconcileOutcome.ALREADY_PROCESSED: (RspCode.SUCCESS, "Order already confirmed"),
    # failed payment is still a delivered notification; ack so the gateway stops
    ReconcileOutcome.PAYMENT_FAILED: (RspCode.SUCCESS, "Success"),
    ReconcileOutcome.ORDER_NOT_FOUND: (RspCode.ORDER_NOT_FOUND, "Order not found"),
    ReconcileOutcome.ORDER_CLOSED: (RspCode.ORDER_ALREADY_CONFIRMED, "Order already confirmed"),
}


@dataclass(frozen=True)
class CallbackResult:
    code: RspCode
    message: str
    order_id: Optional[str] = None
    reconcile: Optional[ReconcileResult] = None

    @property
    def payment_accepted(self) -> bool:
        return self.reconcile is not None and self.reconcile.payment_accepted


class CallbackService:

    def __init__(self, reconciler: OrderReconciler, settings: PaymentSettings):
        self.reconciler = reconciler
        self.settings = settings

    async def process(self, gateway: PaymentGateway, raw: Mapping[str, str], background_tasks=None) -> CallbackResult:
        """
        Verify a gateway callback and reconcile the order it refers to.

        Args:
            gateway: Gateway the callback claims to come from
            raw: All callback parameters, signature included, decoded once
            background_tasks: FastAPI BackgroundTasks for the notification

        Returns:
            CallbackResult with the acknowledgement code for the gateway
        """
        order_id = None
        try:
            order_id = gateway.order_id(raw)
            signed = gateway.parse(raw)
            if not gateway.verify(signed):
                raise SignatureInvalid(gateway.name, order_id)
            if not order_id:
                raise MalformedCallback(f"{gateway.name} callback carries no order id")

            result = await self.reconciler.confirm(
                order_id, gateway.response_code(signed.params), background_tasks
            )
        except (SignatureInvalid, MalformedCallback) as e:
            logger.warning(f"Rejected {gateway.name} callback for order {order_id}: {e}")
            return CallbackResult(RspCode.CHECKSUM_FAILED, "Checksum failed", order_id)
        except Exception:
            logger.exception(f"Error handling {gateway.name} callback for order {order_id}")
            return CallbackResult(RspCode.UNKNOWN_ERROR, "Unknown error", order_id)

        code, message = _OUTCOME_ACK[result.outcome]
        logger.info(
            f"{gateway.name} callback order={order_id} outcome={result.outcome.value} ack={code.value}"
        )
        return CallbackResult(code, message, order_id, result)

    def redirect_url(self, result: CallbackResult) -> str:
        """Frontend page for the shopper; never exposes gateway codes."""
        base = self.settings.frontend_success_url if result.payment_accepted else self.settings.frontend_failure_url
        if not result.order_id:
            return base
        separator = "&" if "?" in base else "?"
        return f"{base}{separator}{urlencode({'orderId': result.order_id})}"

    async def process_stripe(self, gateway: StripeGateway, payload: bytes, signature_header: str,
                             background_tasks=None) -> tuple[int, dict]:
        """
        Handle a Stripe webhook.

        Returns:
            (HTTP status, JSON body). 400 for an unverifiable event, 500 when
            the order store failed so Stripe retries later.
        """
        try:
            event = gateway.construct_event(payload, signature_header)
        except (SignatureInvalid, MalformedCallback) as e:
            logger.warning(f"Rejected stripe webhook: {e}")
            return 400, {"received": False, "error": "Webhook signature verification failed"}

        event_type = event["type"]
        order_id = gateway.order_id(event)

        if event_type == StripeGateway.SUCCEEDED:
            if not order_id:
                logger.warning(f"Stripe {event_type} without metadata.orderId")
                return 200, {"received": True}
            try:
                result = await self.reconciler.confirm(order_id, SUCCESS_CODE, background_tasks)
            except Exception:
                logger.exception(f"Error reconciling stripe payment for order {order_id}")
                return 500, {"received": False}
            logger.info(f"stripe webhook order={order_id} outcome={result.outcome.value}")

        elif event_type == StripeGateway.FAILED:
            logger.info(f"Stripe payment failed for order {order_id}; order left unchanged")

        else:
            logger.info(f"Unhandled stripe event {event_type}")

        return 200, {"received": True}

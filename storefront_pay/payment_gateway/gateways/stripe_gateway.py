import asyncio
from typing import Optional

import stripe

from storefront_pay.config import STRIPE
from storefront_pay.payment_gateway.errors import GatewayRequestFailed, MalformedCallback, SignatureInvalid
from storefront_pay.utils.logger import get_current_logger


class StripeGateway:
    """Stripe webhooks carry their own signature scheme, verified by the SDK."""

    name = STRIPE

    SUCCEEDED = "payment_intent.succeeded"
    FAILED = "payment_intent.payment_failed"

    # VND is a zero-decimal currency for Stripe: amounts are sent as whole dong
    currency = "vnd"

    def __init__(self, webhook_secret: str, api_key: Optional[str] = None):
        self.webhook_secret = webhook_secret
        self.api_key = api_key
        if api_key:
            stripe.api_key = api_key

    @property
    def can_create_payments(self) -> bool:
        return bool(self.api_key)

    async def create_payment_intent(self, order_id: str, amount: int) -> dict:
        """
        Create a PaymentIntent tagged with our order id.

        The webhook finds the order again through ``metadata.orderId``.

        Args:
            order_id: Our order id
            amount: Amount in VND

        Returns:
            {"clientSecret": ..., "paymentIntentId": ...}

        Raises:
            GatewayRequestFailed: If no API key is configured or Stripe refuses
        """
        logger = get_current_logger()
        if not self.api_key:
            raise GatewayRequestFailed("Stripe API key not configured")

        try:
            intent = await asyncio.to_thread(
                stripe.PaymentIntent.create,
                amount=int(amount),
                currency=self.currency,
                metadata={"orderId": str(order_id)},
            )
        except stripe.StripeError as e:
            logger.error(f"Stripe refused payment intent for order {order_id}: {e}")
            raise GatewayRequestFailed(f"Stripe request failed: {e}") from e

        logger.info(f"Stripe payment intent {intent['id']} created for order {order_id}")
        return {"clientSecret": intent["client_secret"], "paymentIntentId": intent["id"]}

    def construct_event(self, payload: bytes, signature_header: str):
        """
        Verify and parse a webhook body.

        Raises:
            SignatureInvalid: If the Stripe-Signature header does not match
            MalformedCallback: If the body is not a Stripe event
        """
        if not signature_header:
            raise SignatureInvalid(STRIPE)
        try:
            return stripe.Webhook.construct_event(payload, signature_header, self.webhook_secret)
        except stripe.SignatureVerificationError as e:
            raise SignatureInvalid(STRIPE) from e
        except ValueError as e:
            raise MalformedCallback(f"Invalid Stripe payload: {e}") from e

    @staticmethod
    def order_id(event) -> Optional[str]:
        try:
            value = event["data"]["object"]["metadata"]["orderId"]
        except (KeyError, TypeError):
            return None
        return str(value) if value else None

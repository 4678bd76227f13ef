"""Error taxonomy for gateway callbacks.

Only ConfigMissing ever escapes to the process (at startup). The others are
raised inside the callback service and turned into the gateway's own
response shape before anything reaches the HTTP layer.
"""


class PaymentError(Exception):
    """Base class for payment slice errors."""


class ConfigMissing(PaymentError):
    def __init__(self, gateway: str, missing: list[str]):
        self.gateway = gateway
        self.missing = list(missing)
        super().__init__(f"{gateway} config missing: {', '.join(self.missing)}")


class MalformedCallback(PaymentError, ValueError):
    """Callback payload cannot be verified at all (empty, missing fields, no secret)."""


class SignatureInvalid(PaymentError):
    def __init__(self, gateway: str, order_id: str | None = None):
        self.gateway = gateway
        self.order_id = order_id
        super().__init__(f"Invalid {gateway} signature for order {order_id}")


class OrderNotFound(PaymentError):
    def __init__(self, order_id: str):
        self.order_id = order_id
        super().__init__(f"Order {order_id} not found")


class NotificationDeliveryFailed(PaymentError):
    def __init__(self, order_id, cause: Exception):
        self.order_id = order_id
        self.cause = cause
        super().__init__(f"Notification for order {order_id} failed: {cause}")


class GatewayRequestFailed(PaymentError):
    """Outbound call to a gateway API failed or was refused."""

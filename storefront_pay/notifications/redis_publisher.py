import datetime
import json

from storefront_pay.data.models.enum.order_status import OrderStatus
from storefront_pay.data.redis.cache_keys import CacheKeys
from storefront_pay.data.redis.connection import RedisConnection
from storefront_pay.utils.logger import get_current_logger


def build_order_message(order, new_status: OrderStatus) -> dict:
    """Flatten an order into the notification message the email worker consumes."""
    user = getattr(order, "user", None)
    total = getattr(order, "total_price", None)
    return {
        "order_id": order.id,
        "order_number": getattr(order, "order_number", None),
        "status": new_status.value,
        "total_price": float(total) if total is not None else None,
        "shipping_address": getattr(order, "shipping_address", None),
        "email": getattr(user, "email", None),
        "name": getattr(user, "name", None),
        "timestamp": datetime.datetime.now(datetime.UTC).isoformat(),
    }


class RedisNotificationPublisher:
    """
    Publishes order status notifications to Redis.

    The callback service never talks SMTP itself; the notification worker
    subscribed to the channel sends the email.
    """

    def __init__(self, redis_connection: RedisConnection, channel: str = None):
        self.redis_connection = redis_connection
        self.channel = channel or CacheKeys.order_notification()

    async def send_order_email(self, order, new_status: OrderStatus) -> None:
        """
        Publish a notification for an order status change.

        Args:
            order: Order that changed status
            new_status: Status the email should announce

        Raises:
            redis.RedisError: If the message cannot be published
        """
        logger = get_current_logger()
        redis_client = await self.redis_connection.get_client()
        message = build_order_message(order, new_status)

        await redis_client.publish(self.channel, json.dumps(message))
        logger.info(f"Published {new_status.value} notification for order_id={order.id}")

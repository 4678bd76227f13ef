"""
Redis Pub/Sub subscriber that turns order notifications into emails.

Flow:
1. Callback service confirms a payment and publishes to order:notification
2. This worker receives the message
3. EmailSender renders the status template and sends it over SMTP

Run standalone with ``python -m storefront_pay.notifications.subscriber``.
"""
import asyncio
import json
from typing import Optional

from storefront_pay.data.redis.cache_keys import CacheKeys
from storefront_pay.data.redis.connection import RedisConnection
from storefront_pay.notifications import notification_logger as logger
from storefront_pay.notifications.email_service import EmailSender
from storefront_pay.utils.logger import set_app_context, AppLogger


async def process_notification(data: dict, sender: EmailSender) -> bool:
    """
    Send the email for one notification message.

    Args:
        data: Decoded notification message
        sender: Email sender to use

    Returns:
        True if processed successfully, False otherwise
    """
    try:
        status = data.get("status")
        if not status:
            logger.warning(f"Notification without status ignored: {data}")
            return False
        return await sender.send(data, status)
    except Exception as e:
        logger.error(f"Failed to send notification for order_id={data.get('order_id')}: {e}")
        return False


async def start_notification_subscriber(redis_connection: RedisConnection, sender: EmailSender) -> None:
    """
    Subscribe to the order notification channel and process messages indefinitely.
    """
    channel = CacheKeys.order_notification()
    logger.info(f"Starting notification subscriber on channel: {channel}")

    try:
        redis_client = await redis_connection.get_client()
        pubsub = redis_client.pubsub()

        await pubsub.subscribe(channel)
        logger.info(f"Subscribed to Redis channel: {channel}")

        async for message in pubsub.listen():
            if message["type"] != "message":
                continue
            try:
                data = message["data"]
                if isinstance(data, bytes):
                    data = data.decode("utf-8")

                notification = json.loads(data)
                logger.debug(f"Received notification message: {notification}")

                asyncio.create_task(process_notification(notification, sender))

            except json.JSONDecodeError as e:
                logger.error(f"Failed to parse notification message: {e}")

    except asyncio.CancelledError:
        logger.info("Notification subscriber cancelled")
        raise
    except Exception as e:
        logger.error(f"Notification subscriber error: {e}")
        raise
    finally:
        logger.info("Notification subscriber stopped")


async def main(redis_connection: Optional[RedisConnection] = None) -> None:
    redis_connection = redis_connection or RedisConnection()
    with set_app_context(AppLogger.NOTIFICATION_WORKER):
        try:
            await start_notification_subscriber(redis_connection, EmailSender())
        finally:
            await redis_connection.close()


if __name__ == "__main__":
    asyncio.run(main())

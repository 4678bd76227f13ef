class CacheKeys:
    """Key and channel name generators for all Redis keys."""

    @staticmethod
    def order_notification() -> str:
        """Pub/Sub channel carrying order status emails to the notification worker."""
        return "order:notification"

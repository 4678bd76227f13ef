"""Redis module for pub/sub messaging."""

from storefront_pay.data.redis.connection import RedisConnection
from storefront_pay.data.redis.cache_keys import CacheKeys

__all__ = ["RedisConnection", "CacheKeys"]

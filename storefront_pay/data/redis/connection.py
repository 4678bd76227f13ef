from typing import Optional

import redis.asyncio as redis
from redis.asyncio.connection import ConnectionPool

import storefront_pay.config as config
from storefront_pay.utils.logger import get_current_logger

_POOL_OPTIONS = dict(
    decode_responses=True,
    max_connections=20,
    socket_keepalive=True,
    socket_connect_timeout=5,
    retry_on_timeout=True,
)


class RedisConnection:
    """
    Lazily connected ``redis.asyncio`` client over a shared pool.

    The pool is created eagerly but no socket is opened until the first
    ``get_client()``; the callback service can start while Redis is down and
    report it through ``/health``.
    """

    def __init__(
        self,
        host: str = config.REDIS_HOST,
        port: int = config.REDIS_PORT,
        password: Optional[str] = config.REDIS_PASSWORD,
        db: int = config.REDIS_DB,
        url: Optional[str] = config.REDIS_URL,
    ):
        """
        Args:
            host, port, password, db: Server settings (REDIS_* variables)
            url: ``redis://`` URL, overrides the individual settings
        """
        logger = get_current_logger()
        if url:
            self.pool = ConnectionPool.from_url(url, **_POOL_OPTIONS)
            target = url.rsplit("@", 1)[-1]
        else:
            self.pool = ConnectionPool(host=host, port=port, password=password or None, db=db, **_POOL_OPTIONS)
            target = f"{host}:{port}/{db}"
        self.client: Optional[redis.Redis] = None
        logger.info(f"✅ Redis connection pool ready: {target}")

    async def get_client(self) -> redis.Redis:
        if self.client is None:
            client = redis.Redis(connection_pool=self.pool)
            await client.ping()
            self.client = client
            get_current_logger().info("✅ Redis client connected")
        return self.client

    async def health_check(self) -> bool:
        try:
            client = await self.get_client()
            return bool(await client.ping())
        except redis.RedisError as e:
            get_current_logger().error(f"❌ Redis health check failed: {e}")
            return False

    async def close(self):
        if self.client is not None:
            await self.client.aclose()
            self.client = None
        await self.pool.aclose()
        get_current_logger().info("✅ Redis connection closed")

from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker, AsyncSession
import storefront_pay.config as config
from storefront_pay.utils.logger import get_current_logger


class PostgresConnection:
    """
    PostgreSQL async connection manager using SQLAlchemy.

    Provides async connection pooling and session management for database operations.
    """

    def __init__(self, database: str = None, url: str = None):
        """
        Initialize PostgreSQL async connection.

        Args:
            database: Database name to connect to (defaults to POSTGRES_DB)
            url: Full SQLAlchemy URL, overrides the POSTGRES_* settings
        """
        logger = get_current_logger()
        database = database or config.POSTGRES_DB
        if url is None:
            url = (
                f"postgresql+asyncpg://{config.POSTGRES_USER}:{config.POSTGRES_PASSWORD}"
                f"@{config.POSTGRES_HOST}:{config.POSTGRES_PORT}/{database}"
            )

        self.engine = create_async_engine(
            url,
            pool_size=20,
            max_overflow=10,
            echo=False,  # Set to True for SQL query logging
        )
        self.AsyncSessionLocal = async_sessionmaker(
            self.engine,
            class_=AsyncSession,
            expire_on_commit=False
        )
        logger.info(f"✅ PostgreSQL async engine initialized: {config.POSTGRES_HOST}:{config.POSTGRES_PORT}/{database}")

    def get_session(self) -> AsyncSession:
        """
        Get a new async database session.

        Returns:
            SQLAlchemy AsyncSession object
        """
        return self.AsyncSessionLocal()

    async def health_check(self) -> bool:
        logger = get_current_logger()
        try:
            async with self.engine.connect() as conn:
                await conn.exec_driver_sql("SELECT 1")
            return True
        except Exception as e:
            logger.error(f"PostgreSQL health check failed: {e}")
            return False

    async def close(self):
        """Close database engine and cleanup resources."""
        logger = get_current_logger()
        await self.engine.dispose()
        logger.info("✅ PostgreSQL async engine disposed")

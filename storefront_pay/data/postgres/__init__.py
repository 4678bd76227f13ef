"""PostgreSQL module for database operations."""

from storefront_pay.data.postgres.connection import PostgresConnection
from storefront_pay.data.postgres.order_ops import PostgresOrderStore

__all__ = ["PostgresConnection", "PostgresOrderStore"]

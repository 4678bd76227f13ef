"""Database operations for the Order model."""

from sqlalchemy import select, update
from sqlalchemy.orm import selectinload

from storefront_pay.data.postgres.connection import PostgresConnection
from storefront_pay.data.models.db_entity import Order
from storefront_pay.data.models.enum.order_status import OrderStatus
from storefront_pay.utils.logger import get_current_logger


def _parse_order_id(order_id) -> int | None:
    try:
        return int(str(order_id).strip())
    except (TypeError, ValueError):
        return None


async def get_order_by_id(db: PostgresConnection, order_id) -> Order | None:
    """
    Get an order by its ID with the buyer eagerly loaded.

    Args:
        db: Connection to run the query on
        order_id: Order ID as sent by the gateway (string or int)

    Returns:
        Order object if found, None otherwise (also for non-numeric ids)
    """
    logger = get_current_logger()
    oid = _parse_order_id(order_id)
    if oid is None:
        logger.warning(f"Ignoring non-numeric order id {order_id!r}")
        return None

    session = db.get_session()
    try:
        async with session:
            result = await session.execute(
                select(Order)
                .options(selectinload(Order.user))
                .filter(Order.id == oid)
            )
            return result.scalar_one_or_none()
    except Exception as e:
        logger.error(f"Error getting order by ID {order_id}: {e}")
        raise


async def update_order_status(
    db: PostgresConnection,
    order_id,
    expected: OrderStatus,
    new_status: OrderStatus,
) -> bool:
    """
    Move an order to ``new_status`` only if it is currently ``expected``.

    The check and the write are one UPDATE statement, so two callbacks racing
    on the same order can never both apply.

    Returns:
        True if this call performed the transition, False otherwise
    """
    logger = get_current_logger()
    oid = _parse_order_id(order_id)
    if oid is None:
        return False

    session = db.get_session()
    try:
        async with session:
            result = await session.execute(
                update(Order)
                .where(Order.id == oid, Order.status == expected)
                .values(status=new_status)
                .execution_options(synchronize_session=False)
            )
            await session.commit()
            applied = result.rowcount == 1
            logger.debug(
                f"Conditional status update order={oid} {expected.value}->{new_status.value} applied={applied}"
            )
            return applied
    except Exception as e:
        logger.error(f"Error updating status of order {order_id}: {e}")
        raise


class PostgresOrderStore:
    """Order store backed by PostgreSQL conditional updates."""

    def __init__(self, db: PostgresConnection):
        self.db = db

    async def find_by_id(self, order_id) -> Order | None:
        return await get_order_by_id(self.db, order_id)

    async def update_status(self, order_id, expected: OrderStatus, new_status: OrderStatus) -> bool:
        return await update_order_status(self.db, order_id, expected, new_status)

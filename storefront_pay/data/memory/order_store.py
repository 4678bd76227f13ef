"""Process-local order store for development and tests.

A plain dict cannot express a conditional write, so every read-modify-write
on an order runs under a lock keyed by that order's id. A lock lives only
while some task holds or waits for it.
"""

import asyncio
from contextlib import asynccontextmanager

from storefront_pay.data.models.db_entity import Order
from storefront_pay.data.models.enum.order_status import OrderStatus
from storefront_pay.utils.logger import get_current_logger


class InMemoryOrderStore:

    def __init__(self, orders=None):
        self._orders: dict[str, Order] = {}
        # order id -> (lock, number of tasks holding or waiting for it)
        self._locks: dict[str, tuple[asyncio.Lock, int]] = {}
        for order in orders or []:
            self.add(order)

    def add(self, order: Order) -> None:
        self._orders[str(order.id)] = order

    @property
    def active_locks(self) -> int:
        return len(self._locks)

    @asynccontextmanager
    async def _order_lock(self, key: str):
        lock, users = self._locks.get(key, (None, 0))
        lock = lock or asyncio.Lock()
        self._locks[key] = (lock, users + 1)
        try:
            async with lock:
                yield
        finally:
            lock, users = self._locks[key]
            if users == 1:
                del self._locks[key]
            else:
                self._locks[key] = (lock, users - 1)

    async def find_by_id(self, order_id) -> Order | None:
        return self._orders.get(str(order_id))

    async def update_status(self, order_id, expected: OrderStatus, new_status: OrderStatus) -> bool:
        key = str(order_id)
        async with self._order_lock(key):
            order = self._orders.get(key)
            if order is None or order.status != expected:
                return False
            # concurrent callers for this order queue on the lock here
            await asyncio.sleep(0)
            order.status = new_status
            get_current_logger().debug(
                f"Order {key} status {expected.value} -> {new_status.value}"
            )
            return True

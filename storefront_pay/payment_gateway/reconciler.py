"""Turns a verified gateway callback into an order status transition.

The browser redirect and the IPN webhook both deliver the same payment
result, often within milliseconds of each other. The only write the
reconciler performs is the store's conditional update
Pending_Payment -> Waiting_Approval, so whichever callback loses the race
sees ALREADY_PROCESSED and fires no second notification.
"""

import asyncio
import enum
from dataclasses import dataclass
from typing import Any, Optional, Protocol

from storefront_pay.data.models.enum.order_status import OrderStatus, PAYMENT_CONFIRMED_STATUSES
from storefront_pay.payment_gateway.errors import NotificationDeliveryFailed, OrderNotFound
from storefront_pay.utils.logger import get_current_logger

SUCCESS_CODE = "00"


class OrderStore(Protocol):
    async def find_by_id(self, order_id) -> Any: ...

    async def update_status(self, order_id, expected: OrderStatus, new_status: OrderStatus) -> bool: ...


class NotificationSender(Protocol):
    async def send_order_email(self, order, new_status: OrderStatus) -> None: ...


class ReconcileOutcome(enum.Enum):
    CONFIRMED = "confirmed"
    ALREADY_PROCESSED = "already_processed"
    PAYMENT_FAILED = "payment_failed"
    ORDER_NOT_FOUND = "order_not_found"
    ORDER_CLOSED = "order_closed"


@dataclass(frozen=True)
class ReconcileResult:
    outcome: ReconcileOutcome
    order_id: str
    order: Any = None

    @property
    def payment_accepted(self) -> bool:
        """True when the shopper's payment is (now or already) recorded."""
        return self.outcome in (ReconcileOutcome.CONFIRMED, ReconcileOutcome.ALREADY_PROCESSED)


class OrderReconciler:

    def __init__(self, store: OrderStore, notifier: Optional[NotificationSender] = None):
        self.store = store
        self.notifier = notifier
        self._pending: set[asyncio.Task] = set()

    async def confirm(self, order_id, response_code: str, background_tasks=None) -> ReconcileResult:
        """
        Apply a gateway payment result to an order, at most once.

        Args:
            order_id: Our order id as echoed back by the gateway
            response_code: Normalized gateway response code ("00" is success)
            background_tasks: Optional FastAPI BackgroundTasks; when given the
                notification runs after the HTTP response has been sent

        Returns:
            ReconcileResult describing what happened. Never raises for
            business outcomes; store errors propagate to the caller.
        """
        logger = get_current_logger()
        order_id = str(order_id)

        try:
            order = await self._load(order_id)
        except OrderNotFound as e:
            logger.warning(f"Payment callback ignored: {e}")
            return ReconcileResult(ReconcileOutcome.ORDER_NOT_FOUND, order_id)

        if order.status in PAYMENT_CONFIRMED_STATUSES:
            logger.info(f"Order {order_id} already at {order.status.value}, callback ignored")
            return ReconcileResult(ReconcileOutcome.ALREADY_PROCESSED, order_id, order)

        if order.status == OrderStatus.CANCELLED:
            logger.warning(f"Payment callback (code={response_code}) for cancelled order {order_id}")
            return ReconcileResult(ReconcileOutcome.ORDER_CLOSED, order_id, order)

        if response_code != SUCCESS_CODE:
            # shopper may retry; order stays Pending_Payment
            logger.info(f"Payment for order {order_id} not successful (code={response_code})")
            return ReconcileResult(ReconcileOutcome.PAYMENT_FAILED, order_id, order)

        applied = await self.store.update_status(
            order_id, OrderStatus.PENDING_PAYMENT, OrderStatus.WAITING_APPROVAL
        )
        if not applied:
            logger.info(f"Order {order_id} confirmed concurrently by another callback")
            return ReconcileResult(ReconcileOutcome.ALREADY_PROCESSED, order_id, order)

        order.status = OrderStatus.WAITING_APPROVAL
        logger.info(f"Order {order_id} payment confirmed -> {OrderStatus.WAITING_APPROVAL.value}")
        self._dispatch_notification(order, background_tasks)
        return ReconcileResult(ReconcileOutcome.CONFIRMED, order_id, order)

    async def _load(self, order_id):
        order = await self.store.find_by_id(order_id)
        if order is None:
            raise OrderNotFound(order_id)
        return order

    def _dispatch_notification(self, order, background_tasks=None) -> None:
        if self.notifier is None:
            return
        if background_tasks is not None:
            background_tasks.add_task(self._send_notification, order, OrderStatus.WAITING_APPROVAL)
            return
        task = asyncio.create_task(self._send_notification(order, OrderStatus.WAITING_APPROVAL))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    async def _send_notification(self, order, new_status: OrderStatus) -> None:
        logger = get_current_logger()
        try:
            await self.notifier.send_order_email(order, new_status)
        except Exception as e:
            error = NotificationDeliveryFailed(getattr(order, "id", None), e)
            logger.error(str(error))

    async def wait_for_notifications(self) -> None:
        """Wait for notifications dispatched without BackgroundTasks."""
        if self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)

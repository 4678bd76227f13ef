import enum


class OrderStatus(enum.Enum):
    PENDING_PAYMENT = "Pending_Payment"
    WAITING_APPROVAL = "Waiting_Approval"
    PROCESSING = "Processing"
    SHIPPED = "Shipped"
    DELIVERED = "Delivered"
    CANCELLED = "Cancelled"


# Statuses at or beyond a confirmed payment; a replayed callback must not touch them
PAYMENT_CONFIRMED_STATUSES = frozenset({
    OrderStatus.WAITING_APPROVAL,
    OrderStatus.PROCESSING,
    OrderStatus.SHIPPED,
    OrderStatus.DELIVERED,
})

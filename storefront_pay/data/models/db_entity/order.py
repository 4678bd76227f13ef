from sqlalchemy import Column, Integer, String, ForeignKey, DateTime, func, DECIMAL, Enum, Index
from sqlalchemy.orm import relationship
from storefront_pay.data.models import Base

from storefront_pay.data.models.enum.order_status import OrderStatus


class Order(Base):
    """Storefront order. Payment callbacks only ever touch ``status``."""
    __tablename__ = "order"

    id = Column(Integer, primary_key=True, autoincrement=True)
    order_number = Column(String(64), nullable=False, unique=True)
    user_id = Column(Integer, ForeignKey("user.id"), nullable=False)
    total_price = Column(DECIMAL(18, 2), nullable=False)
    status = Column(
        Enum(OrderStatus, name="order_status_enum", values_callable=lambda e: [m.value for m in e]),
        nullable=False,
        default=OrderStatus.PENDING_PAYMENT,
    )
    payment_method = Column(String(32), nullable=True)
    shipping_address = Column(String, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    user = relationship("User", backref="orders")

    __table_args__ = (
        Index("idx_order_user_status", "user_id", "status"),
    )

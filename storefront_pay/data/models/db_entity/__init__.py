from storefront_pay.data.models.db_entity.user import User
from storefront_pay.data.models.db_entity.order import Order

__all__ = ["User", "Order"]

from storefront_pay.data.memory.order_store import InMemoryOrderStore

__all__ = ["InMemoryOrderStore"]

from storefront_pay.payment_callback.api.vnpay_router import router as vnpay_router
from storefront_pay.payment_callback.api.momo_router import router as momo_router
from storefront_pay.payment_callback.api.stripe_router import router as stripe_router
from storefront_pay.payment_callback.api.health_router import router as health_router

__all__ = ["vnpay_router", "momo_router", "stripe_router", "health_router"]

from storefront_pay.payment_callback.services.callback_service import CallbackResult, CallbackService

__all__ = ["CallbackResult", "CallbackService"]

from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exception_handlers import request_validation_exception_handler
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

from storefront_pay.config import (
    CALLBACK_SERVICE_HOST,
    CALLBACK_SERVICE_PORT,
    MOMO,
    VNPAY,
    PaymentSettings,
    load_settings,
)
from storefront_pay.payment_callback import callback_logger
from storefront_pay.payment_callback.api import health_router, momo_router, stripe_router, vnpay_router
from storefront_pay.payment_callback.schemas import CreatePaymentUrlResponse
from storefront_pay.payment_callback.services.callback_service import CallbackService
from storefront_pay.payment_gateway.gateways import MomoGateway, StripeGateway, VnpayGateway
from storefront_pay.payment_gateway.reconciler import NotificationSender, OrderReconciler, OrderStore
from storefront_pay.utils.logger import set_app_context, AppLogger


class AppContextMiddleware(BaseHTTPMiddleware):
    """Middleware to set app logger context for all requests."""

    async def dispatch(self, request, call_next):
        with set_app_context(AppLogger.PAYMENT_CALLBACK):
            response = await call_next(request)
        return response


CREATE_PAYMENT_PATH = "/create_payment_url"


async def validation_error_handler(request: Request, exc: RequestValidationError):
    """Create-payment endpoints answer invalid bodies in their own {success, message} shape."""
    if not request.url.path.endswith(CREATE_PAYMENT_PATH):
        return await request_validation_exception_handler(request, exc)

    errors = exc.errors()
    first = errors[0] if errors else {}
    field = ".".join(str(part) for part in first.get("loc", ())[1:]) or "body"
    message = f"Invalid {field}: {first.get('msg', 'invalid request')}"
    callback_logger.warning(f"Rejected {request.url.path} request: {message}")
    return JSONResponse(
        status_code=400,
        content=CreatePaymentUrlResponse(success=False, message=message).to_dict()
    )


def _build_gateways(settings: PaymentSettings) -> dict:
    gateways = {}
    if settings.gateway(VNPAY):
        gateways[VNPAY] = VnpayGateway(settings.gateway(VNPAY))
    if settings.gateway(MOMO):
        gateways[MOMO] = MomoGateway(settings.gateway(MOMO))
    return gateways


def create_app(
    settings: Optional[PaymentSettings] = None,
    store: Optional[OrderStore] = None,
    notifier: Optional[NotificationSender] = None,
) -> FastAPI:
    """
    Build the payment callback service.

    Settings are resolved here, once; a missing mandatory gateway raises
    ConfigMissing before the server starts listening. When no store or
    notifier is given, PostgreSQL and Redis backed ones are opened in the
    lifespan.
    """
    settings = settings or load_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        with set_app_context(AppLogger.PAYMENT_CALLBACK):
            callback_logger.info(
                f"Payment Callback Service starting on {CALLBACK_SERVICE_HOST}:{CALLBACK_SERVICE_PORT} "
                f"(gateways: {', '.join(sorted(app.state.gateways)) or 'none'})"
            )
            if app.state.callback_service is None:
                # drivers are only imported when no store was injected
                from storefront_pay.data.postgres import PostgresConnection, PostgresOrderStore
                from storefront_pay.data.redis import RedisConnection
                from storefront_pay.notifications.redis_publisher import RedisNotificationPublisher

                app.state.db = PostgresConnection()
                app.state.redis = RedisConnection()
                reconciler = OrderReconciler(
                    PostgresOrderStore(app.state.db),
                    RedisNotificationPublisher(app.state.redis),
                )
                app.state.callback_service = CallbackService(reconciler, settings)

        yield

        with set_app_context(AppLogger.PAYMENT_CALLBACK):
            await app.state.callback_service.reconciler.wait_for_notifications()
            if app.state.db is not None:
                await app.state.db.close()
            if app.state.redis is not None:
                await app.state.redis.close()
            callback_logger.info("Payment Callback Service shutting down")

    app = FastAPI(
        title="Payment Callback Service",
        description="Verifies payment gateway callbacks (return + IPN) and reconciles order status",
        version="1.0.0",
        lifespan=lifespan
    )

    app.state.settings = settings
    app.state.gateways = _build_gateways(settings)
    app.state.stripe_gateway = (
        StripeGateway(settings.stripe_webhook_secret, settings.stripe_api_key)
        if settings.stripe_webhook_secret else None
    )
    app.state.db = None
    app.state.redis = None
    app.state.callback_service = (
        CallbackService(OrderReconciler(store, notifier), settings) if store is not None else None
    )

    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_middleware(AppContextMiddleware)

    app.include_router(vnpay_router)
    app.include_router(momo_router)
    app.include_router(stripe_router)
    app.include_router(health_router)

    return app


if __name__ == "__main__":
    import uvicorn
    callback_logger.info(f"Starting Payment Callback Service on {CALLBACK_SERVICE_HOST}:{CALLBACK_SERVICE_PORT}")
    uvicorn.run(
        "storefront_pay.payment_callback.callback_app:create_app",
        factory=True,
        host=CALLBACK_SERVICE_HOST,
        port=CALLBACK_SERVICE_PORT,
    )

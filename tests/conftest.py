"""Shared fixtures plus a pytest plugin to execute asyncio marked tests without external dependencies."""

from __future__ import annotations

import asyncio
import inspect
from decimal import Decimal
from unittest.mock import AsyncMock

import pytest

from storefront_pay.config import GatewayConfig, MOMO, PaymentSettings, VNPAY
from storefront_pay.data.memory import InMemoryOrderStore
from storefront_pay.data.models.db_entity import Order, User
from storefront_pay.data.models.enum.order_status import OrderStatus

VNPAY_SECRET = "VNPAYSECRETKEYFORTESTS0123456789"
MOMO_SECRET = "momo-secret-key-for-tests"
MOMO_ACCESS_KEY = "momo-access-key"
STRIPE_WEBHOOK_SECRET = "whsec_test_secret"


@pytest.hookimpl
def pytest_configure(config: pytest.Config) -> None:  # pragma: no cover - pytest hook
    config.addinivalue_line(
        "markers",
        "asyncio: mark test to run inside an event loop",
    )


@pytest.hookimpl(tryfirst=True)
def pytest_pyfunc_call(pyfuncitem: pytest.Function) -> bool | None:  # pragma: no cover - pytest hook
    if "asyncio" not in pyfuncitem.keywords:
        return None

    test_function = pyfuncitem.obj
    if not inspect.iscoroutinefunction(test_function):
        return None

    funcargs = {name: pyfuncitem.funcargs[name] for name in pyfuncitem._fixtureinfo.argnames}
    loop = asyncio.new_event_loop()
    try:
        loop.run_until_complete(test_function(**funcargs))
    finally:
        loop.close()
    return True


def make_order(order_id: int = 123, status: OrderStatus = OrderStatus.PENDING_PAYMENT, email: str = "lan@example.com") -> Order:
    user = User(id=1, name="Nguyen Lan", email=email)
    return Order(
        id=order_id,
        order_number=f"ORD-{order_id}",
        user_id=user.id,
        user=user,
        total_price=Decimal("150000"),
        status=status,
        payment_method="VNPAY",
        shipping_address="12 Ly Thuong Kiet, Ha Noi",
    )


@pytest.fixture
def vnpay_config() -> GatewayConfig:
    return GatewayConfig(
        name=VNPAY,
        merchant_code="TESTTMN1",
        secret_key=VNPAY_SECRET,
        gateway_base_url="https://sandbox.vnpayment.vn/paymentv2/vpcpay.html",
        return_url="http://localhost:8083/vnpay/return",
    )


@pytest.fixture
def momo_config() -> GatewayConfig:
    return GatewayConfig(
        name=MOMO,
        merchant_code="MOMOTEST01",
        secret_key=MOMO_SECRET,
        access_key=MOMO_ACCESS_KEY,
        gateway_base_url="https://test-payment.momo.vn",
        return_url="http://localhost:8083/momo/return",
        ipn_url="http://localhost:8083/momo/ipn",
    )


@pytest.fixture
def settings(vnpay_config, momo_config) -> PaymentSettings:
    return PaymentSettings(
        gateways={VNPAY: vnpay_config, MOMO: momo_config},
        frontend_success_url="http://shop.test/payment/success",
        frontend_failure_url="http://shop.test/payment/failure",
        stripe_webhook_secret=STRIPE_WEBHOOK_SECRET,
    )


@pytest.fixture
def order() -> Order:
    return make_order()


@pytest.fixture
def store(order) -> InMemoryOrderStore:
    return InMemoryOrderStore([order])


@pytest.fixture
def notifier() -> AsyncMock:
    return AsyncMock()

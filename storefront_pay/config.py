import os
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Optional

from dotenv import load_dotenv

from storefront_pay.payment_gateway.errors import ConfigMissing
from storefront_pay.utils.logger import logger

load_dotenv()

CALLBACK_SERVICE_HOST = os.getenv("CALLBACK_SERVICE_HOST", "0.0.0.0")
CALLBACK_SERVICE_PORT = int(os.getenv("CALLBACK_SERVICE_PORT", "8083"))

POSTGRES_HOST = os.getenv("POSTGRES_HOST", "localhost")
POSTGRES_DB = os.getenv("POSTGRES_DB", "shop_db")
POSTGRES_PORT = os.getenv("POSTGRES_PORT", "5432")
POSTGRES_PASSWORD = os.getenv("POSTGRES_PASSWORD")
POSTGRES_USER = os.getenv("POSTGRES_USER")

REDIS_HOST = os.getenv("REDIS_HOST", "localhost")
REDIS_PORT = int(os.getenv("REDIS_PORT", "6379"))
REDIS_PASSWORD = os.getenv("REDIS_PASSWORD", None)
REDIS_DB = int(os.getenv("REDIS_DB", "0"))
REDIS_URL = os.getenv("REDIS_URL")

SMTP_HOST = os.getenv("SMTP_HOST", "smtp.gmail.com")
SMTP_PORT = int(os.getenv("SMTP_PORT", "587"))
SMTP_USER = os.getenv("EMAIL_USER")
SMTP_PASSWORD = os.getenv("EMAIL_PASS")
EMAIL_FROM = os.getenv("EMAIL_FROM", '"FashionStore" <no-reply@fashionstore.com>')

VNPAY = "vnpay"
MOMO = "momo"
STRIPE = "stripe"


@dataclass(frozen=True)
class GatewayConfig:
    """Static credentials and endpoints of one payment gateway."""
    name: str
    merchant_code: str
    secret_key: str
    gateway_base_url: str
    return_url: str
    access_key: Optional[str] = None
    ipn_url: Optional[str] = None


@dataclass(frozen=True)
class PaymentSettings:
    """Everything the callback service needs, resolved once at startup."""
    gateways: dict = field(default_factory=dict)
    frontend_success_url: str = "http://localhost:3000/payment/success"
    frontend_failure_url: str = "http://localhost:3000/payment/failure"
    stripe_webhook_secret: Optional[str] = None
    stripe_api_key: Optional[str] = None

    def gateway(self, name: str) -> Optional[GatewayConfig]:
        return self.gateways.get(name)

    def is_enabled(self, name: str) -> bool:
        if name == STRIPE:
            return bool(self.stripe_webhook_secret)
        return name in self.gateways


# env var -> GatewayConfig field, per gateway
_GATEWAY_ENV = {
    VNPAY: {
        "merchant_code": "VNP_TMNCODE",
        "secret_key": "VNP_HASHSECRET",
        "gateway_base_url": "VNP_URL",
        "return_url": "VNP_RETURNURL",
    },
    MOMO: {
        "merchant_code": "MOMO_PARTNER_CODE",
        "secret_key": "MOMO_SECRET_KEY",
        "access_key": "MOMO_ACCESS_KEY",
        "gateway_base_url": "MOMO_ENDPOINT",
        "return_url": "MOMO_REDIRECT_URL",
        "ipn_url": "MOMO_IPN_URL",
    },
}


def _load_gateway(name: str, environ) -> GatewayConfig:
    mapping = _GATEWAY_ENV[name]
    values = {attr: environ.get(var) for attr, var in mapping.items()}
    missing = [mapping[attr] for attr, value in values.items() if not value]
    if missing:
        raise ConfigMissing(name, missing)
    return GatewayConfig(name=name, **values)


def load_settings(environ=None, required: Optional[list[str]] = None) -> PaymentSettings:
    """
    Build the immutable payment settings from the environment.

    Args:
        environ: Mapping to read from (defaults to os.environ)
        required: Gateways that must be configured. Defaults to the
            comma separated PAYMENT_REQUIRED_GATEWAYS variable ("vnpay").

    Returns:
        PaymentSettings with every configured gateway enabled

    Raises:
        ConfigMissing: If a required gateway lacks any of its variables
    """
    environ = os.environ if environ is None else environ
    if required is None:
        raw = environ.get("PAYMENT_REQUIRED_GATEWAYS", VNPAY)
        required = [item.strip().lower() for item in raw.split(",") if item.strip()]

    gateways = {}
    for name in _GATEWAY_ENV:
        try:
            gateways[name] = _load_gateway(name, environ)
        except ConfigMissing as e:
            if name in required:
                logger.error(f"Mandatory gateway misconfigured: {e}")
                raise
            logger.warning(f"{e}; {name} payments disabled")

    stripe_webhook_secret = environ.get("STRIPE_WEBHOOK_SECRET")
    if not stripe_webhook_secret:
        if STRIPE in required:
            raise ConfigMissing(STRIPE, ["STRIPE_WEBHOOK_SECRET"])
        logger.warning("STRIPE_WEBHOOK_SECRET not set; stripe webhook disabled")

    return PaymentSettings(
        gateways=MappingProxyType(gateways),
        frontend_success_url=environ.get(
            "FRONTEND_PAYMENT_SUCCESS_URL", "http://localhost:3000/payment/success"
        ),
        frontend_failure_url=environ.get(
            "FRONTEND_PAYMENT_FAILURE_URL", "http://localhost:3000/payment/failure"
        ),
        stripe_webhook_secret=stripe_webhook_secret or None,
        stripe_api_key=environ.get("STRIPE_SECRET_KEY") or None,
    )

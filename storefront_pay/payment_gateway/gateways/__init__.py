from storefront_pay.payment_gateway.gateways.base import PaymentGateway
from storefront_pay.payment_gateway.gateways.vnpay import VnpayGateway
from storefront_pay.payment_gateway.gateways.momo import MomoGateway
from storefront_pay.payment_gateway.gateways.stripe_gateway import StripeGateway

__all__ = ["PaymentGateway", "VnpayGateway", "MomoGateway", "StripeGateway"]

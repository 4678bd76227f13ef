"""
FastAPI dependencies resolving the objects built once by create_app().
"""
from typing import Optional

from fastapi import Request

from storefront_pay.config import MOMO, VNPAY
from storefront_pay.payment_callback.services.callback_service import CallbackService
from storefront_pay.payment_gateway.gateways import MomoGateway, StripeGateway, VnpayGateway


def get_callback_service(request: Request) -> CallbackService:
    return request.app.state.callback_service


def get_vnpay_gateway(request: Request) -> Optional[VnpayGateway]:
    """VNPay gateway, or None when it is disabled by configuration."""
    return request.app.state.gateways.get(VNPAY)


def get_momo_gateway(request: Request) -> Optional[MomoGateway]:
    """MoMo gateway, or None when it is disabled by configuration."""
    return request.app.state.gateways.get(MOMO)


def get_stripe_gateway(request: Request) -> Optional[StripeGateway]:
    return request.app.state.stripe_gateway


def client_ip(request: Request) -> str:
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        return forwarded.split(",")[0].strip()
    if request.client and request.client.host:
        return request.client.host
    return "127.0.0.1"

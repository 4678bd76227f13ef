import time
from typing import Mapping, Optional

import httpx

from storefront_pay.config import GatewayConfig, MOMO
from storefront_pay.payment_gateway.errors import GatewayRequestFailed
from storefront_pay.payment_gateway.gateways.base import PaymentGateway
from storefront_pay.payment_gateway.signing import (
    MOMO_CALLBACK_FIELDS,
    MOMO_CREATE_FIELDS,
    TemplateSigningStrategy,
)
from storefront_pay.payment_gateway.verifier import GatewayVerifier
from storefront_pay.utils.logger import get_current_logger
from storefront_pay.utils.status import RspCode

CREATE_PATH = "/v2/gateway/api/create"


class MomoGateway(PaymentGateway):
    name = MOMO
    signature_field = "signature"
    request_type = "captureWallet"

    def __init__(self, config: GatewayConfig, http_client: Optional[httpx.AsyncClient] = None):
        self.config = config
        self.http_client = http_client
        self.verifier = GatewayVerifier(
            TemplateSigningStrategy(MOMO_CALLBACK_FIELDS, access_key=config.access_key),
            config.secret_key,
            gateway=MOMO,
        )
        self.create_signer = GatewayVerifier(
            TemplateSigningStrategy(MOMO_CREATE_FIELDS, access_key=config.access_key),
            config.secret_key,
            gateway=MOMO,
        )

    def build_create_request(self, order_id: str, amount: int, order_info: Optional[str] = None,
                             now_ms: Optional[int] = None) -> dict:
        """Signed body for MoMo's create-payment API."""
        now_ms = now_ms if now_ms is not None else int(time.time() * 1000)
        body = {
            "partnerCode": self.config.merchant_code,
            "accessKey": self.config.access_key,
            "requestId": f"{self.config.merchant_code}{now_ms}",
            "amount": str(int(amount)),
            "orderId": str(order_id),
            "orderInfo": order_info or f"Thanh toan don hang {order_id}",
            "redirectUrl": self.config.return_url,
            "ipnUrl": self.config.ipn_url,
            "extraData": "",
            "requestType": self.request_type,
            "lang": "vi",
        }
        body["signature"] = self.create_signer.sign(body)
        return body

    async def create_payment(self, order_id: str, amount: int, order_info: Optional[str] = None) -> str:
        """
        Register a payment with MoMo and return the URL the shopper pays at.

        Raises:
            GatewayRequestFailed: On transport errors, non-JSON replies or a
                non-zero MoMo resultCode
        """
        logger = get_current_logger()
        body = self.build_create_request(order_id, amount, order_info)
        url = f"{self.config.gateway_base_url.rstrip('/')}{CREATE_PATH}"

        try:
            if self.http_client is not None:
                resp = await self.http_client.post(url, json=body)
            else:
                async with httpx.AsyncClient(timeout=30) as client:
                    resp = await client.post(url, json=body)
            data = resp.json()
        except (httpx.HTTPError, ValueError) as e:
            logger.error(f"MoMo create request for order {order_id} failed: {e}")
            raise GatewayRequestFailed(f"MoMo request failed: {e}") from e

        if data.get("resultCode") != 0 or not data.get("payUrl"):
            logger.error(f"MoMo refused order {order_id}: {data.get('resultCode')} {data.get('message')}")
            raise GatewayRequestFailed(f"MoMo refused payment: {data.get('message')}")

        logger.info(f"MoMo payment created for order {order_id} (requestId={body['requestId']})")
        return data["payUrl"]

    def order_id(self, params: Mapping[str, str]) -> Optional[str]:
        value = params.get("orderId")
        return str(value) if value not in (None, "") else None

    def response_code(self, params: Mapping[str, str]) -> str:
        code = str(params.get("resultCode", ""))
        return "00" if code in ("0", "00") else code

    def ipn_response(self, code: RspCode, message: str, params: Mapping[str, str]) -> dict:
        return {
            "partnerCode": self.config.merchant_code,
            "orderId": params.get("orderId"),
            "requestId": params.get("requestId"),
            "resultCode": int(code.value),
            "message": message,
        }

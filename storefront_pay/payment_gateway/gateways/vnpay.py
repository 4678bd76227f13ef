from datetime import datetime, timedelta, timezone
from typing import Mapping, Optional

from storefront_pay.config import GatewayConfig, VNPAY
from storefront_pay.payment_gateway.canonicalizer import canonicalize
from storefront_pay.payment_gateway.gateways.base import PaymentGateway
from storefront_pay.payment_gateway.signing import VNPAY_SIGNING
from storefront_pay.payment_gateway.verifier import GatewayVerifier
from storefront_pay.utils.status import RspCode

# VNPay timestamps are Vietnam local time (UTC+7, no DST)
VN_TZ = timezone(timedelta(hours=7))


class VnpayGateway(PaymentGateway):
    name = VNPAY
    signature_field = "vnp_SecureHash"
    version = "2.1.0"

    def __init__(self, config: GatewayConfig):
        self.config = config
        self.verifier = GatewayVerifier(VNPAY_SIGNING, config.secret_key, gateway=VNPAY)

    def build_payment_url(
        self,
        order_id: str,
        amount: int,
        client_ip: str,
        bank_code: Optional[str] = None,
        language: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> str:
        """
        Build the signed VNPay checkout URL for an order.

        Args:
            order_id: Our order id, sent as vnp_TxnRef
            amount: Amount in VND (VNPay expects it multiplied by 100)
            client_ip: Shopper IP address
            bank_code: Optional bank to preselect
            language: "vn" (default) or "en"
            now: Creation time, defaults to the current Vietnam time

        Returns:
            The full payment URL including vnp_SecureHash
        """
        now = (now or datetime.now(VN_TZ)).astimezone(VN_TZ)
        params = {
            "vnp_Version": self.version,
            "vnp_Command": "pay",
            "vnp_TmnCode": self.config.merchant_code,
            "vnp_Locale": language or "vn",
            "vnp_CurrCode": "VND",
            "vnp_TxnRef": str(order_id),
            "vnp_OrderInfo": f"Thanh toan don hang {order_id}",
            "vnp_OrderType": "other",
            "vnp_Amount": str(int(amount) * 100),
            "vnp_ReturnUrl": self.config.return_url,
            "vnp_IpAddr": client_ip,
            "vnp_CreateDate": now.strftime("%Y%m%d%H%M%S"),
        }
        if bank_code:
            params["vnp_BankCode"] = bank_code

        secure_hash = self.verifier.sign(params)
        return f"{self.config.gateway_base_url}?{canonicalize(params)}&vnp_SecureHash={secure_hash}"

    def order_id(self, params: Mapping[str, str]) -> Optional[str]:
        return params.get("vnp_TxnRef") or None

    def response_code(self, params: Mapping[str, str]) -> str:
        code = str(params.get("vnp_ResponseCode", ""))
        transaction_status = params.get("vnp_TransactionStatus")
        if code == "00" and transaction_status is not None and transaction_status != "00":
            return str(transaction_status)
        return code

    def ipn_response(self, code: RspCode, message: str, params: Mapping[str, str]) -> dict:
        return {"RspCode": code.value, "Message": message}

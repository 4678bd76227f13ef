import json
from datetime import datetime, timezone
from urllib.parse import parse_qsl, urlsplit

import httpx
import pytest

from storefront_pay.payment_gateway.errors import GatewayRequestFailed
from storefront_pay.payment_gateway.gateways import MomoGateway, VnpayGateway
from storefront_pay.payment_gateway.signing import MOMO_CREATE_FIELDS
from storefront_pay.utils.status import RspCode


def test_vnpay_payment_url_is_signed_and_verifiable(vnpay_config) -> None:
    gateway = VnpayGateway(vnpay_config)
    now = datetime(2024, 5, 1, 3, 4, 5, tzinfo=timezone.utc)

    url = gateway.build_payment_url("123", 150000, "127.0.0.1", bank_code="NCB", now=now)

    parts = urlsplit(url)
    assert f"{parts.scheme}://{parts.netloc}{parts.path}" == vnpay_config.gateway_base_url
    params = dict(parse_qsl(parts.query, keep_blank_values=True))
    assert params["vnp_Amount"] == "15000000"
    assert params["vnp_TxnRef"] == "123"
    assert params["vnp_TmnCode"] == "TESTTMN1"
    assert params["vnp_BankCode"] == "NCB"
    assert params["vnp_Locale"] == "vn"
    # Vietnam local time
    assert params["vnp_CreateDate"] == "20240501100405"
    assert params["vnp_ReturnUrl"] == vnpay_config.return_url
    assert gateway.verify(gateway.parse(params))


def test_vnpay_response_code_prefers_failed_transaction_status(vnpay_config) -> None:
    gateway = VnpayGateway(vnpay_config)

    assert gateway.response_code({"vnp_ResponseCode": "00", "vnp_TransactionStatus": "00"}) == "00"
    assert gateway.response_code({"vnp_ResponseCode": "00", "vnp_TransactionStatus": "02"}) == "02"
    assert gateway.response_code({"vnp_ResponseCode": "24"}) == "24"
    assert gateway.ipn_response(RspCode.CHECKSUM_FAILED, "Checksum failed", {}) == {
        "RspCode": "97",
        "Message": "Checksum failed",
    }


def test_momo_create_request_signature(momo_config) -> None:
    gateway = MomoGateway(momo_config)

    body = gateway.build_create_request("42", 50000, now_ms=1700000000000)

    assert body["requestId"] == "MOMOTEST011700000000000"
    assert body["amount"] == "50000"
    assert body["ipnUrl"] == momo_config.ipn_url
    assert body["redirectUrl"] == momo_config.return_url
    expected_message = "&".join(
        f"{name}={momo_config.access_key if name == 'accessKey' else body[name]}" for name in MOMO_CREATE_FIELDS
    )
    assert gateway.create_signer.strategy.canonicalize(body) == expected_message
    assert body["signature"] == gateway.create_signer.sign(body)


def test_momo_normalizes_result_code(momo_config) -> None:
    gateway = MomoGateway(momo_config)

    assert gateway.response_code({"resultCode": 0}) == "00"
    assert gateway.response_code({"resultCode": "1006"}) == "1006"
    response = gateway.ipn_response(RspCode.SUCCESS, "Success", {"orderId": "42", "requestId": "r1"})
    assert response["resultCode"] == 0
    assert response["partnerCode"] == momo_config.merchant_code


@pytest.mark.asyncio
async def test_momo_create_payment_posts_signed_body(momo_config) -> None:
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["url"] = str(request.url)
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json={"resultCode": 0, "payUrl": "https://test-payment.momo.vn/pay/abc"})

    async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
        gateway = MomoGateway(momo_config, http_client=client)
        pay_url = await gateway.create_payment("42", 50000)

    assert pay_url == "https://test-payment.momo.vn/pay/abc"
    assert seen["url"] == "https://test-payment.momo.vn/v2/gateway/api/create"
    assert seen["body"]["orderId"] == "42"
    assert seen["body"]["signature"] == gateway.create_signer.sign(seen["body"])


@pytest.mark.asyncio
async def test_momo_create_payment_refused(momo_config) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"resultCode": 22, "message": "Invalid amount"})

    async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
        gateway = MomoGateway(momo_config, http_client=client)
        with pytest.raises(GatewayRequestFailed, match="Invalid amount"):
            await gateway.create_payment("42", 50000)

from urllib.parse import parse_qsl, urlsplit

import pytest
from fastapi.testclient import TestClient

from storefront_pay.config import PaymentSettings
from storefront_pay.data.memory import InMemoryOrderStore
from storefront_pay.data.models.enum.order_status import OrderStatus
from storefront_pay.payment_callback.callback_app import create_app
from storefront_pay.payment_gateway import sign
from storefront_pay.payment_gateway.signing import MOMO_CALLBACK_FIELDS, TemplateSigningStrategy
from storefront_pay.utils.response_format import ResponseFormat
from storefront_pay.utils.status import Status

from conftest import MOMO_ACCESS_KEY, MOMO_SECRET, VNPAY_SECRET, make_order


@pytest.fixture
def client(settings, store, notifier):
    app = create_app(settings=settings, store=store, notifier=notifier)
    with TestClient(app) as test_client:
        yield test_client


def _vnpay_callback(order_id: str = "123", response_code: str = "00", amount: str = "15000000") -> dict:
    params = {
        "vnp_Amount": amount,
        "vnp_BankCode": "NCB",
        "vnp_OrderInfo": f"Thanh toan don hang {order_id}",
        "vnp_PayDate": "20240501100405",
        "vnp_ResponseCode": response_code,
        "vnp_TmnCode": "TESTTMN1",
        "vnp_TransactionNo": "14012345",
        "vnp_TransactionStatus": response_code,
        "vnp_TxnRef": order_id,
    }
    params["vnp_SecureHash"] = sign(params, VNPAY_SECRET)
    return params


def _momo_callback(order_id: str = "123", result_code: int = 0) -> dict:
    params = {
        "partnerCode": "MOMOTEST01",
        "orderId": order_id,
        "requestId": f"MOMOTEST01{order_id}",
        "amount": 150000,
        "orderInfo": f"Thanh toan don hang {order_id}",
        "orderType": "momo_wallet",
        "transId": 4088878653,
        "resultCode": result_code,
        "message": "Successful.",
        "payType": "qr",
        "responseTime": 1714532645000,
        "extraData": "",
    }
    strategy = TemplateSigningStrategy(MOMO_CALLBACK_FIELDS, access_key=MOMO_ACCESS_KEY)
    params["signature"] = sign(params, MOMO_SECRET, strategy)
    return params


def test_vnpay_ipn_confirms_order(client, order, notifier) -> None:
    response = client.get("/vnpay/ipn", params=_vnpay_callback())

    assert response.status_code == 200
    assert response.json() == {"RspCode": "00", "Message": "Success"}
    assert order.status == OrderStatus.WAITING_APPROVAL
    notifier.send_order_email.assert_awaited_once_with(order, OrderStatus.WAITING_APPROVAL)


def test_vnpay_ipn_accepts_form_post(client, order) -> None:
    response = client.post("/vnpay/ipn", data=_vnpay_callback())

    assert response.json()["RspCode"] == "00"
    assert order.status == OrderStatus.WAITING_APPROVAL


def test_vnpay_ipn_tampered_amount_is_rejected(client, order, notifier) -> None:
    params = _vnpay_callback()
    params["vnp_Amount"] = "100"

    response = client.get("/vnpay/ipn", params=params)

    assert response.status_code == 200
    assert response.json() == {"RspCode": "97", "Message": "Checksum failed"}
    assert order.status == OrderStatus.PENDING_PAYMENT
    notifier.send_order_email.assert_not_awaited()


def test_vnpay_ipn_without_signature_is_rejected(client, order) -> None:
    params = _vnpay_callback()
    del params["vnp_SecureHash"]

    assert client.get("/vnpay/ipn", params=params).json()["RspCode"] == "97"
    assert order.status == OrderStatus.PENDING_PAYMENT


def test_vnpay_duplicate_ipn_is_acknowledged_once(client, order, notifier) -> None:
    params = _vnpay_callback()

    first = client.get("/vnpay/ipn", params=params).json()
    second = client.get("/vnpay/ipn", params=params).json()

    assert first == {"RspCode": "00", "Message": "Success"}
    assert second == {"RspCode": "00", "Message": "Order already confirmed"}
    assert notifier.send_order_email.await_count == 1


def test_vnpay_ipn_unknown_order(client) -> None:
    response = client.get("/vnpay/ipn", params=_vnpay_callback(order_id="999"))

    assert response.json() == {"RspCode": "01", "Message": "Order not found"}


def test_vnpay_ipn_failed_payment_keeps_order_pending(client, order, notifier) -> None:
    response = client.get("/vnpay/ipn", params=_vnpay_callback(response_code="24"))

    assert response.json()["RspCode"] == "00"
    assert order.status == OrderStatus.PENDING_PAYMENT
    notifier.send_order_email.assert_not_awaited()


def test_vnpay_ipn_for_cancelled_order(settings, notifier) -> None:
    store = InMemoryOrderStore([make_order(8, OrderStatus.CANCELLED)])
    with TestClient(create_app(settings=settings, store=store, notifier=notifier)) as client:
        response = client.get("/vnpay/ipn", params=_vnpay_callback(order_id="8"))

    assert response.json()["RspCode"] == "02"


def test_vnpay_return_redirects_to_success_page(client, order) -> None:
    response = client.get("/vnpay/return", params=_vnpay_callback(), follow_redirects=False)

    assert response.status_code == 302
    assert response.headers["location"] == "http://shop.test/payment/success?orderId=123"
    assert order.status == OrderStatus.WAITING_APPROVAL


def test_vnpay_return_then_ipn_confirms_once(client, order, notifier) -> None:
    params = _vnpay_callback()

    client.get("/vnpay/return", params=params, follow_redirects=False)
    ipn = client.get("/vnpay/ipn", params=params).json()

    assert ipn["RspCode"] == "00"
    assert notifier.send_order_email.await_count == 1


def test_vnpay_return_with_bad_signature_redirects_to_failure(client, order) -> None:
    params = _vnpay_callback()
    params["vnp_ResponseCode"] = "01"

    response = client.get("/vnpay/return", params=params, follow_redirects=False)

    assert response.status_code == 302
    assert response.headers["location"] == "http://shop.test/payment/failure?orderId=123"
    assert order.status == OrderStatus.PENDING_PAYMENT


def test_vnpay_create_payment_url(client) -> None:
    response = client.post("/vnpay/create_payment_url", json={"orderId": 123, "amount": 150000})

    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert "message" not in body
    query = dict(parse_qsl(urlsplit(body["paymentUrl"]).query))
    assert query["vnp_TxnRef"] == "123"
    assert query["vnp_Amount"] == "15000000"
    assert "vnp_SecureHash" in query


def test_vnpay_create_payment_url_rejects_bad_amount(client) -> None:
    response = client.post("/vnpay/create_payment_url", json={"orderId": "123", "amount": 0})

    assert response.status_code == 400
    body = response.json()
    assert body["success"] is False
    assert body["message"].startswith("Invalid amount")
    assert "detail" not in body


def test_momo_create_payment_url_requires_order_id(client) -> None:
    response = client.post("/momo/create_payment_url", json={"amount": 1000})

    assert response.status_code == 400
    body = response.json()
    assert body["success"] is False
    assert set(body) == {"success", "message"}
    assert "orderId" in body["message"]


def test_disabled_gateway_reports_config_missing(store, notifier) -> None:
    settings = PaymentSettings(gateways={})
    with TestClient(create_app(settings=settings, store=store, notifier=notifier)) as client:
        create = client.post("/vnpay/create_payment_url", json={"orderId": "123", "amount": 1000})
        ipn = client.get("/vnpay/ipn", params=_vnpay_callback())
        webhook = client.post("/stripe/webhook", content=b"{}")

    assert create.status_code == 503
    assert create.json() == {"success": False, "message": "VNPay config missing"}
    assert ipn.json()["RspCode"] == "99"
    assert webhook.status_code == 503


def test_momo_ipn_confirms_order(client, order, notifier) -> None:
    params = _momo_callback()

    response = client.post("/momo/ipn", json=params)

    assert response.status_code == 200
    body = response.json()
    assert body["resultCode"] == 0
    assert body["orderId"] == "123"
    assert body["requestId"] == params["requestId"]
    assert order.status == OrderStatus.WAITING_APPROVAL
    notifier.send_order_email.assert_awaited_once()


def test_momo_ipn_with_forged_signature(client, order) -> None:
    params = _momo_callback()
    params["amount"] = 1000

    body = client.post("/momo/ipn", json=params).json()

    assert body["resultCode"] == 97
    assert body["message"] == "Checksum failed"
    assert order.status == OrderStatus.PENDING_PAYMENT


def test_momo_ipn_rejects_non_object_body(client) -> None:
    response = client.post("/momo/ipn", json=["not", "an", "object"])

    assert response.status_code == 200
    assert response.json()["resultCode"] == 97


def test_momo_return_redirects(client, order) -> None:
    response = client.get("/momo/return", params=_momo_callback(), follow_redirects=False)

    assert response.status_code == 302
    assert response.headers["location"].startswith("http://shop.test/payment/success")
    assert order.status == OrderStatus.WAITING_APPROVAL


def test_health_without_backing_services(client) -> None:
    response = client.get("/health")

    assert response.status_code == 200
    envelope = ResponseFormat.model_validate(response.json())
    assert envelope.status == Status.SUCCESS
    assert envelope.data["postgres"] is None
    assert envelope.data["gateways"] == ["momo", "vnpay"]

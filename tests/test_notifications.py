import json
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from storefront_pay.data.models.enum.order_status import OrderStatus
from storefront_pay.notifications.email_service import EmailSender, build_email
from storefront_pay.notifications.redis_publisher import RedisNotificationPublisher, build_order_message
from storefront_pay.notifications.subscriber import process_notification


def _message(**overrides) -> dict:
    message = {
        "order_id": 123,
        "order_number": "ORD-123",
        "status": "Waiting_Approval",
        "total_price": 150000.0,
        "shipping_address": "12 Ly Thuong Kiet, Ha Noi",
        "email": "lan@example.com",
        "name": "Nguyen Lan",
    }
    message.update(overrides)
    return message


def test_build_order_message(order) -> None:
    message = build_order_message(order, OrderStatus.WAITING_APPROVAL)

    assert message["order_id"] == 123
    assert message["status"] == "Waiting_Approval"
    assert message["email"] == "lan@example.com"
    assert message["total_price"] == 150000.0
    json.dumps(message)


@pytest.mark.asyncio
async def test_publisher_sends_to_notification_channel(order) -> None:
    redis_client = AsyncMock()
    connection = MagicMock()
    connection.get_client = AsyncMock(return_value=redis_client)

    await RedisNotificationPublisher(connection).send_order_email(order, OrderStatus.WAITING_APPROVAL)

    redis_client.publish.assert_awaited_once()
    channel, payload = redis_client.publish.await_args.args
    assert channel == "order:notification"
    assert json.loads(payload)["order_number"] == "ORD-123"


def test_build_email_renders_status_template() -> None:
    subject, html = build_email(_message(), "Waiting_Approval")

    assert subject == "[FashionStore] Da nhan don hang #ORD-123"
    assert "Nguyen Lan" in html
    assert "150.000d" in html
    assert build_email(_message(), "Unknown") is None


@pytest.mark.asyncio
async def test_email_sender_uses_smtp() -> None:
    sender = EmailSender(host="smtp.test", port=587, username="user", password="pass", sender="shop@test")

    with patch("storefront_pay.notifications.email_service.smtplib.SMTP") as smtp:
        sent = await sender.send(_message(), "Waiting_Approval")

    assert sent is True
    server = smtp.return_value.__enter__.return_value
    server.login.assert_called_once_with("user", "pass")
    message = server.send_message.call_args.args[0]
    assert message["To"] == "lan@example.com"


@pytest.mark.asyncio
async def test_email_sender_skips_without_recipient() -> None:
    with patch("storefront_pay.notifications.email_service.smtplib.SMTP") as smtp:
        sent = await EmailSender(host="smtp.test").send(_message(email=None), "Waiting_Approval")

    assert sent is False
    smtp.assert_not_called()


@pytest.mark.asyncio
async def test_process_notification_reports_failures() -> None:
    sender = AsyncMock()
    sender.send.return_value = True
    assert await process_notification(_message(), sender) is True
    sender.send.assert_awaited_once_with(_message(), "Waiting_Approval")

    assert await process_notification(_message(status=None), sender) is False

    sender.send.side_effect = OSError("connection refused")
    assert await process_notification(_message(), sender) is False

import asyncio
import smtplib
import ssl
from email.message import EmailMessage
from typing import Optional

import storefront_pay.config as config
from storefront_pay.utils.logger import get_current_logger

# status -> (subject, title, message, header color)
_TEMPLATES = {
    "Pending_Payment": (
        "[FashionStore] Xac nhan don hang #{order_number} - Cho thanh toan",
        "Dat hang thanh cong",
        "Cam on ban da dat hang. Vui long hoan tat thanh toan de chung toi xu ly don hang som nhat.",
        "#6b7280",
    ),
    "Waiting_Approval": (
        "[FashionStore] Da nhan don hang #{order_number}",
        "Don hang dang duoc xu ly",
        "Chung toi da nhan duoc thanh toan. Shop se som xac nhan don hang cua ban.",
        "#f59e0b",
    ),
    "Processing": (
        "[FashionStore] Don hang #{order_number} da duoc xac nhan",
        "Don hang da duoc duyet!",
        "Shop da nhan don va dang chuan bi hang.",
        "#3b82f6",
    ),
    "Shipped": (
        "[FashionStore] Don hang #{order_number} dang van chuyen",
        "Don hang dang giao!",
        "Shipper da nhan hang.",
        "#8b5cf6",
    ),
    "Delivered": (
        "[FashionStore] Giao hang thanh cong #{order_number}",
        "Giao hang thanh cong!",
        "Cam on ban da tin tuong FashionStore.",
        "#22c55e",
    ),
    "Cancelled": (
        "[FashionStore] Don hang #{order_number} da huy",
        "Don hang da huy",
        "Don hang cua ban da bi huy.",
        "#ef4444",
    ),
}


def _format_price(price) -> str:
    if not price:
        return "0d"
    return f"{int(price):,}".replace(",", ".") + "d"


def build_email(data: dict, status: str) -> Optional[tuple[str, str]]:
    """
    Render subject and HTML body for an order notification.

    Args:
        data: Notification message (see redis_publisher.build_order_message)
        status: Order status the email announces

    Returns:
        (subject, html) or None when there is no template for the status
    """
    template = _TEMPLATES.get(status)
    if template is None:
        return None

    subject, title, message, color = template
    order_number = data.get("order_number") or data.get("order_id")
    html = f"""
    <div style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto; border: 1px solid #eee; border-radius: 8px; overflow: hidden;">
      <div style="background-color: {color}; padding: 20px; text-align: center; color: white;">
        <h2 style="margin: 0;">{title}</h2>
      </div>
      <div style="padding: 20px;">
        <p>Xin chao <strong>{data.get("name") or "Ban"}</strong>,</p>
        <div>{message}</div>
        <div style="background: #f9fafb; padding: 15px; border-radius: 8px; margin: 20px 0;">
          <p style="margin: 5px 0;"><strong>Ma don:</strong> {order_number}</p>
          <p style="margin: 5px 0;"><strong>Tong tien:</strong> {_format_price(data.get("total_price"))}</p>
          <p style="margin: 5px 0;"><strong>Dia chi:</strong> {data.get("shipping_address") or ""}</p>
        </div>
        <p style="font-size: 12px; color: #888; text-align: center; margin-top: 30px;">
          Day la email tu dong, vui long khong tra loi.<br/>FashionStore Team.
        </p>
      </div>
    </div>
    """
    return subject.format(order_number=order_number), html


class EmailSender:
    """Sends order notification emails over SMTP (STARTTLS)."""

    def __init__(
        self,
        host: str = config.SMTP_HOST,
        port: int = config.SMTP_PORT,
        username: Optional[str] = config.SMTP_USER,
        password: Optional[str] = config.SMTP_PASSWORD,
        sender: str = config.EMAIL_FROM,
    ):
        self.host = host
        self.port = port
        self.username = username
        self.password = password
        self.sender = sender

    def _send(self, message: EmailMessage) -> None:
        context = ssl.create_default_context()
        with smtplib.SMTP(self.host, self.port, timeout=30) as server:
            server.starttls(context=context)
            if self.username:
                server.login(self.username, self.password or "")
            server.send_message(message)

    async def send(self, data: dict, status: str) -> bool:
        """
        Send the email for one notification message.

        Returns:
            True if an email was sent, False when skipped (no recipient or
            no template). SMTP errors propagate to the caller.
        """
        logger = get_current_logger()
        recipient = data.get("email")
        if not recipient:
            logger.warning(f"[Email] No recipient for order {data.get('order_id')}, skipped")
            return False

        rendered = build_email(data, status)
        if rendered is None:
            logger.info(f"[Email] No template for status {status}")
            return False

        subject, html = rendered
        message = EmailMessage()
        message["From"] = self.sender
        message["To"] = recipient
        message["Subject"] = subject
        message.set_content(subject)
        message.add_alternative(html, subtype="html")

        await asyncio.to_thread(self._send, message)
        logger.info(f"[Email] Sent to {recipient} [{status}]")
        return True

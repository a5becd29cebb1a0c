"""Email service using Resend for order notifications."""

import logging
from html import escape
from typing import Any

import resend

from src.core.config import get_settings
from src.core.encryption import EncryptionError, decrypt_customer_data

logger = logging.getLogger(__name__)


def _format_amount(amount: Any, currency: str | None) -> str:
    return f"{amount} {currency or 'USDC'}"


def _item_rows_html(items: list[dict[str, Any]]) -> str:
    rows = []
    for item in items:
        variant = f" ({escape(str(item['variant']))})" if item.get("variant") else ""
        rows.append(
            f"""
            <tr>
                <td style="padding: 8px 0; border-bottom: 1px solid #e5e7eb;">{escape(str(item.get("title", "")))}{variant}</td>
                <td style="padding: 8px 0; border-bottom: 1px solid #e5e7eb; text-align: center;">{item.get("quantity", 1)}</td>
                <td style="padding: 8px 0; border-bottom: 1px solid #e5e7eb; text-align: right;">${escape(str(item.get("price", "")))}</td>
            </tr>"""
        )
    return "".join(rows)


def _item_lines_text(items: list[dict[str, Any]]) -> str:
    return "\n".join(
        f"- {item.get('title', '')} x{item.get('quantity', 1)} @ ${item.get('price', '')}"
        for item in items
    )


class EmailService:
    """Service for sending order notification emails via Resend."""

    def __init__(self) -> None:
        """Initialize email service with Resend API key."""
        settings = get_settings()
        resend.api_key = settings.resend_api_key
        self.from_email = settings.email_from_address
        self.admin_email = settings.admin_notification_email
        self.frontend_url = settings.frontend_url

    async def send_admin_order_notification(
        self,
        order: dict[str, Any],
        payment_hash: str,
    ) -> dict[str, Any]:
        """Notify the store admin about a newly paid order.

        Args:
            order: The confirmed order row.
            payment_hash: Transaction hash proving payment.

        Returns:
            dict: success flag with email id, or the error.
        """
        order_reference = order.get("order_reference", "")

        if not self.admin_email:
            logger.warning("Admin notification email is not configured, skipping order %s", order_reference)
            return {"success": False, "error": "Admin notification email is not configured"}

        items = order.get("order_items") or []
        total = _format_amount(order.get("total_amount"), order.get("currency"))
        buyer = order.get("farcaster_username") or order.get("farcaster_fid") or "anonymous"
        admin_url = f"{self.frontend_url}/admin"

        html_content = f"""
<!DOCTYPE html>
<html>
<head>
    <meta charset="utf-8">
    <title>New paid order {escape(order_reference)}</title>
</head>
<body style="font-family: -apple-system, BlinkMacSystemFont, 'Segoe UI', Roboto, sans-serif; line-height: 1.6; color: #333; max-width: 600px; margin: 0 auto; padding: 20px;">
    <h1 style="color: #0052ff; font-size: 22px;">New paid order {escape(order_reference)}</h1>

    <table style="width: 100%; border-collapse: collapse; font-size: 14px;">
        <tr>
            <th style="text-align: left;">Item</th>
            <th style="text-align: center;">Qty</th>
            <th style="text-align: right;">Price</th>
        </tr>
        {_item_rows_html(items)}
    </table>

    <p style="font-size: 16px;"><strong>Total:</strong> {escape(total)}</p>
    <p style="font-size: 14px; color: #6b7280;">
        Wallet: {escape(str(order.get("customer_wallet", "")))}<br>
        Buyer: {escape(str(buyer))}<br>
        Payment hash: {escape(payment_hash)}
    </p>

    <div style="text-align: center; margin: 30px 0;">
        <a href="{admin_url}" style="background: #0052ff; color: white; padding: 12px 28px; text-decoration: none; border-radius: 6px; font-weight: 600;">
            Open admin dashboard
        </a>
    </div>
</body>
</html>
"""

        text_content = f"""
New paid order {order_reference}

{_item_lines_text(items)}

Total: {total}
Wallet: {order.get("customer_wallet", "")}
Buyer: {buyer}
Payment hash: {payment_hash}

{admin_url}
"""

        try:
            response = resend.Emails.send({
                "from": self.from_email,
                "to": [self.admin_email],
                "subject": f"New order {order_reference} paid",
                "html": html_content,
                "text": text_content,
            })

            logger.info("Admin notification sent for order %s, id: %s", order_reference, response.get("id"))
            return {"success": True, "email_id": response.get("id")}

        except Exception as e:
            logger.error("Failed to send admin notification for order %s: %s", order_reference, str(e))
            return {"success": False, "error": str(e)}

    async def send_customer_order_confirmation(
        self,
        order: dict[str, Any],
        payment_hash: str,
    ) -> dict[str, Any]:
        """Send the buyer a payment confirmation for their order.

        The recipient address is read from the order's encrypted
        customer data.

        Args:
            order: The confirmed order row.
            payment_hash: Transaction hash proving payment.

        Returns:
            dict: success flag with email id, or the error.
        """
        order_reference = order.get("order_reference", "")

        try:
            customer = decrypt_customer_data(order.get("encrypted_customer_data") or "")
        except EncryptionError as e:
            logger.error("Cannot read customer data for order %s: %s", order_reference, str(e))
            return {"success": False, "error": str(e)}

        to_email = customer.get("email")
        if not to_email:
            return {"success": False, "error": "Customer email missing from order"}

        name = (customer.get("shippingAddress") or {}).get("name") or "there"
        items = order.get("order_items") or []
        total = _format_amount(order.get("total_amount"), order.get("currency"))
        orders_url = f"{self.frontend_url}/orders"

        html_content = f"""
<!DOCTYPE html>
<html>
<head>
    <meta charset="utf-8">
    <title>Your order is confirmed</title>
</head>
<body style="font-family: -apple-system, BlinkMacSystemFont, 'Segoe UI', Roboto, sans-serif; line-height: 1.6; color: #333; max-width: 600px; margin: 0 auto; padding: 20px;">
    <div style="text-align: center; padding: 30px 0;">
        <h1 style="color: #0052ff; margin-bottom: 10px;">Thanks for your order!</h1>
        <p style="font-size: 18px; color: #6b7280;">Hi {escape(name)}, your payment for order {escape(order_reference)} is confirmed.</p>
    </div>

    <div style="background: #f9fafb; padding: 25px; border-radius: 10px; margin: 20px 0;">
        <table style="width: 100%; border-collapse: collapse; font-size: 14px;">
            {_item_rows_html(items)}
        </table>
        <p style="font-size: 16px;"><strong>Total:</strong> {escape(total)}</p>
        <p style="font-size: 12px; color: #9ca3af; word-break: break-all;">Payment: {escape(payment_hash)}</p>
    </div>

    <div style="text-align: center; margin: 30px 0;">
        <a href="{orders_url}" style="background: #0052ff; color: white; padding: 12px 28px; text-decoration: none; border-radius: 6px; font-weight: 600;">
            View your orders
        </a>
    </div>
</body>
</html>
"""

        text_content = f"""
Thanks for your order!

Hi {name}, your payment for order {order_reference} is confirmed.

{_item_lines_text(items)}

Total: {total}
Payment: {payment_hash}

View your orders: {orders_url}
"""

        try:
            response = resend.Emails.send({
                "from": self.from_email,
                "to": [to_email],
                "subject": f"Order {order_reference} confirmed",
                "html": html_content,
                "text": text_content,
            })

            logger.info("Order confirmation sent for order %s, id: %s", order_reference, response.get("id"))
            return {"success": True, "email_id": response.get("id")}

        except Exception as e:
            logger.error("Failed to send order confirmation for order %s: %s", order_reference, str(e))
            return {"success": False, "error": str(e)}

"""
Storefront - Notification Dispatcher
=====================================
Outbound customer and admin messages: email (SMTP), WhatsApp (HTTP bridge)
and Telegram (Bot API).

Delivery is best effort. `notify` raises NotificationError so a caller can
decide; `send_order_confirmation` logs each channel failure and moves on.
"""

import logging
import smtplib
from dataclasses import dataclass
from email.message import EmailMessage
from typing import Dict, Optional

import requests
from jinja2 import TemplateError

from config import settings
from common.exceptions import NotificationError
from common.helpers import format_whatsapp_phone
from common.templating import render

logger = logging.getLogger("storefront.notification")

EMAIL = "email"
WHATSAPP = "whatsapp"
TELEGRAM = "telegram"

TELEGRAM_API_URL = "https://api.telegram.org"


@dataclass
class NotificationConfig:
    base_url: str = "http://127.0.0.1:8000"

    smtp_host: str = ""
    smtp_port: int = 587
    smtp_username: str = ""
    smtp_password: str = ""
    smtp_from: str = ""

    whatsapp_host: str = ""
    whatsapp_username: str = ""
    whatsapp_password: str = ""

    telegram_bot_token: str = ""
    telegram_chat_id: str = ""

    timeout: float = 10

    @classmethod
    def from_settings(cls) -> "NotificationConfig":
        return cls(
            base_url=settings.BASE_URL,
            smtp_host=settings.SMTP_HOST,
            smtp_port=settings.SMTP_PORT,
            smtp_username=settings.SMTP_USERNAME,
            smtp_password=settings.SMTP_PASSWORD,
            smtp_from=settings.SMTP_FROM,
            whatsapp_host=settings.WHATSAPP_HOST,
            whatsapp_username=settings.WHATSAPP_USERNAME,
            whatsapp_password=settings.WHATSAPP_PASSWORD,
            telegram_bot_token=settings.TELEGRAM_BOT_TOKEN,
            telegram_chat_id=settings.TELEGRAM_CHAT_ID,
            timeout=settings.NOTIFICATION_TIMEOUT_SECONDS,
        )

    @property
    def sender(self) -> str:
        return self.smtp_from or self.smtp_username or "no-reply@example.com"


class NotificationDispatcher:

    def __init__(self, config: NotificationConfig):
        self.config = config

    # ------------------------------------------------------------------
    # Core: single message
    # ------------------------------------------------------------------

    def notify(self, channel: str, recipient: str, message: str, subject: Optional[str] = None) -> None:
        """
        Send one message on one channel.

        Args:
            channel: "email", "whatsapp" or "telegram"
            recipient: email address, phone number, or Telegram chat id
                (empty means the configured admin chat)
            message: body (HTML for email, Markdown for Telegram)
            subject: email subject

        Raises NotificationError on missing configuration or provider failure.
        """
        if channel == EMAIL:
            self._send_email(recipient, subject or "", message)
        elif channel == WHATSAPP:
            self._send_whatsapp(recipient, message)
        elif channel == TELEGRAM:
            self._send_telegram(recipient or self.config.telegram_chat_id, message)
        else:
            raise NotificationError(channel, "unknown notification channel")

    # ------------------------------------------------------------------
    # Order confirmation (email + WhatsApp, admin alert on Telegram)
    # ------------------------------------------------------------------

    def send_order_confirmation(self, order) -> Dict[str, bool]:
        """Returns channel -> delivered. Never raises for a channel failure."""
        context = self._order_context(order)
        results = {}

        results[EMAIL] = self._deliver(
            EMAIL, order.customer_email,
            lambda: render("notifications/order_confirmation.html", **context),
            subject=f"Order Confirmation #{order.order_number}",
        )
        results[WHATSAPP] = self._deliver(
            WHATSAPP, format_whatsapp_phone(order.customer_phone),
            lambda: render("notifications/whatsapp.txt", **context),
        )
        if self.config.telegram_chat_id:
            results[TELEGRAM] = self._deliver(
                TELEGRAM, self.config.telegram_chat_id,
                lambda: render("notifications/admin_alert.txt", **context),
            )
        return results

    def order_confirmation_link(self, order_id: str) -> str:
        return f"{self.config.base_url.rstrip('/')}/order-confirmation/{order_id}"

    # ------------------------------------------------------------------
    # Channels
    # ------------------------------------------------------------------

    def _send_email(self, to: str, subject: str, html: str):
        cfg = self.config
        if not cfg.smtp_host:
            raise NotificationError(EMAIL, "SMTP is not configured")
        if not to:
            raise NotificationError(EMAIL, "customer email is empty")

        msg = EmailMessage()
        msg["From"] = cfg.sender
        msg["To"] = to
        msg["Subject"] = subject
        msg.set_content(html, subtype="html")

        try:
            with smtplib.SMTP(cfg.smtp_host, cfg.smtp_port, timeout=cfg.timeout) as smtp:
                if cfg.smtp_username:
                    smtp.starttls()
                    smtp.login(cfg.smtp_username, cfg.smtp_password)
                smtp.send_message(msg)
        except (smtplib.SMTPException, OSError) as e:
            raise NotificationError(EMAIL, f"SMTP send failed: {e}") from e

        logger.info(f"Email sent to {to}: {subject}")

    def _send_whatsapp(self, phone: str, message: str):
        cfg = self.config
        if not (cfg.whatsapp_host and cfg.whatsapp_username and cfg.whatsapp_password):
            raise NotificationError(WHATSAPP, "WhatsApp API is not configured")

        try:
            response = requests.post(
                f"{cfg.whatsapp_host.rstrip('/')}/send/message",
                json={"phone": phone, "message": message},
                auth=(cfg.whatsapp_username, cfg.whatsapp_password),
                timeout=cfg.timeout,
            )
        except requests.exceptions.Timeout as e:
            raise NotificationError(WHATSAPP, "WhatsApp API timeout") from e
        except requests.exceptions.RequestException as e:
            raise NotificationError(WHATSAPP, f"failed to send message: {e}") from e

        if response.status_code != 200:
            raise NotificationError(WHATSAPP, f"API returned {response.status_code} - {response.text}")

        logger.info(f"WhatsApp message sent to {phone}")

    def _send_telegram(self, chat_id: str, message: str):
        cfg = self.config
        if not cfg.telegram_bot_token:
            raise NotificationError(TELEGRAM, "bot token is not configured")
        if not chat_id:
            raise NotificationError(TELEGRAM, "chat id is empty")

        try:
            response = requests.post(
                f"{TELEGRAM_API_URL}/bot{cfg.telegram_bot_token}/sendMessage",
                json={"chat_id": chat_id, "text": message, "parse_mode": "Markdown"},
                timeout=cfg.timeout,
            )
            data = response.json()
        except requests.exceptions.RequestException as e:
            raise NotificationError(TELEGRAM, f"failed to send message: {e}") from e
        except ValueError as e:
            raise NotificationError(TELEGRAM, "invalid response body") from e

        if response.status_code != 200 or not data.get("ok"):
            raise NotificationError(TELEGRAM, f"API error: {data.get('description', response.status_code)}")

        logger.info(f"Telegram message sent to chat {chat_id}")

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _deliver(self, channel: str, recipient: str, build_message, subject: Optional[str] = None) -> bool:
        try:
            self.notify(channel, recipient, build_message(), subject=subject)
            return True
        except NotificationError as e:
            logger.warning(f"Notification skipped ({e.message})")
        except TemplateError as e:
            logger.error(f"Failed to render {channel} template: {e}")
        return False

    def _order_context(self, order) -> dict:
        items = [
            {
                "name": item.variant.name if item.variant else "",
                "quantity": item.quantity,
                "price": item.price_at_purchase,
            }
            for item in order.items
        ]
        return {
            "customer_name": order.customer_name,
            "customer_email": order.customer_email,
            "customer_phone": order.customer_phone,
            "order_number": order.order_number,
            "items": items,
            "subtotal": order.subtotal,
            "shipping_cost": order.shipping_cost,
            "total_amount": order.total_amount,
            "shipping_address": order.shipping_address_line,
            "shipping_courier": order.shipping_courier or "",
            "shipping_service": order.shipping_service or "",
            "confirmation_link": self.order_confirmation_link(order.id),
        }


# Singleton
notification_dispatcher = NotificationDispatcher(NotificationConfig.from_settings())

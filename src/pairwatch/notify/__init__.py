"""Notification channels -- Telegram chat, Resend batch email, and the dispatcher."""

from pairwatch.notify.dispatcher import NotificationDispatcher
from pairwatch.notify.email import EmailNotifier, render_alert_email
from pairwatch.notify.telegram import TelegramNotifier, format_alert_message

__all__ = [
    "EmailNotifier",
    "NotificationDispatcher",
    "TelegramNotifier",
    "format_alert_message",
    "render_alert_email",
]

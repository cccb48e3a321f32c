"""
aqfetch/notifications package marker.
"""

from aqfetch.notifications.dispatcher import NotificationDispatcher
from aqfetch.notifications.mailer import SMTPMailer
from aqfetch.notifications.webhook import DATABASE_UPDATED_ACTION, WebhookClient

__all__ = [
    "DATABASE_UPDATED_ACTION",
    "NotificationDispatcher",
    "SMTPMailer",
    "WebhookClient",
]

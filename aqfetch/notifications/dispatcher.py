"""
aqfetch/notifications/dispatcher.py

Routes failure and cycle-completion events to their channels.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence

from aqfetch.errors import NotificationError
from aqfetch.logging_utils import log_event
from aqfetch.notifications.mailer import SMTPMailer
from aqfetch.notifications.webhook import WebhookClient

logger = logging.getLogger(__name__)


class NotificationDispatcher:
    """
    Best-effort notifications: channel failures are logged, never raised.

    Dry-run suppresses both channels. `mail_enabled=False` suppresses only
    failure e-mails.
    """

    def __init__(
        self,
        *,
        mailer: SMTPMailer,
        webhook: WebhookClient,
        dry_run: bool = False,
        mail_enabled: bool = True,
    ) -> None:
        self._mailer = mailer
        self._webhook = webhook
        self._dry_run = dry_run
        self._mail_enabled = mail_enabled

    @property
    def dry_run(self) -> bool:
        return self._dry_run

    def notify_failure(self, contacts: Sequence[str], source_name: str, error: str) -> None:
        if self._dry_run or not self._mail_enabled:
            return
        if not contacts:
            log_event(logger, logging.WARNING, "failure_email_skipped", source=source_name, reason="no contacts")
            return

        try:
            self._mailer.send_failure_email(contacts, source_name, error)
        except NotificationError as exc:
            log_event(logger, logging.ERROR, "failure_email_failed", source=source_name, error=str(exc))
        except Exception:
            logger.exception("Unexpected error sending failure e-mail source=%s", source_name)
        else:
            log_event(logger, logging.INFO, "failure_email_sent", source=source_name, contacts=len(contacts))

    def notify_cycle_complete(self) -> None:
        if self._dry_run:
            return

        try:
            self._webhook.post_database_updated()
        except NotificationError as exc:
            log_event(logger, logging.ERROR, "webhook_failed", error=str(exc))
        except Exception:
            logger.exception("Unexpected error posting completion webhook")
        else:
            log_event(logger, logging.INFO, "webhook_posted")

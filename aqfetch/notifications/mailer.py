"""
aqfetch/notifications/mailer.py

SMTP channel for per-source failure e-mails.
"""

from __future__ import annotations

import smtplib
from collections.abc import Sequence
from email.message import EmailMessage

from aqfetch.config import MailSettings
from aqfetch.errors import NotificationError


class SMTPMailer:
    """
    Send failure e-mails to a source's contacts.
    """

    def __init__(self, *, settings: MailSettings) -> None:
        self._settings = settings

    def build_failure_message(
        self,
        *,
        contacts: Sequence[str],
        source_name: str,
        error: str,
    ) -> EmailMessage:
        message = EmailMessage()
        message["Subject"] = f"[aqfetch] Fetch failure for {source_name}"
        message["From"] = self._settings.sender
        message["To"] = ", ".join(contacts)
        message.set_content(
            f"The latest fetch for source '{source_name}' failed.\n\n"
            f"Error: {error}\n\n"
            "Measurements from this source were not updated in this cycle. "
            "The next cycle will try again automatically.\n"
        )
        return message

    def send_failure_email(self, contacts: Sequence[str], source_name: str, error: str) -> None:
        if not contacts:
            return

        message = self.build_failure_message(contacts=contacts, source_name=source_name, error=error)
        try:
            with smtplib.SMTP(
                self._settings.host,
                self._settings.port,
                timeout=self._settings.timeout_seconds,
            ) as client:
                if self._settings.use_tls:
                    client.starttls()
                if self._settings.username and self._settings.password:
                    client.login(self._settings.username, self._settings.password)
                client.send_message(message)
        except (smtplib.SMTPException, OSError) as exc:
            raise NotificationError(f"Failure e-mail for {source_name} was not delivered: {exc}") from exc

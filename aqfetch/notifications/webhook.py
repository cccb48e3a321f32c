"""
aqfetch/notifications/webhook.py

HTTP channel announcing that a cycle finished writing to the store.
"""

from __future__ import annotations

import requests

from aqfetch.config import WebhookSettings
from aqfetch.errors import NotificationError

DATABASE_UPDATED_ACTION = "DATABASE_UPDATED"


class WebhookClient:
    """
    POST the shared key and action identifier as a form to the webhook URL.
    """

    def __init__(
        self,
        *,
        settings: WebhookSettings,
        session: requests.Session | None = None,
    ) -> None:
        self._settings = settings
        self._session = session or requests.Session()

    def post_database_updated(self) -> None:
        form = {"key": self._settings.key, "action": DATABASE_UPDATED_ACTION}
        try:
            response = self._session.post(
                self._settings.url,
                data=form,
                timeout=self._settings.timeout_seconds,
            )
            response.raise_for_status()
        except requests.RequestException as exc:
            raise NotificationError(f"Webhook post to {self._settings.url} failed: {exc}") from exc

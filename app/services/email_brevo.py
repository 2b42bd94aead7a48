# app/services/email_brevo.py
from __future__ import annotations

import logging
from html import escape
from typing import Protocol

import requests

from app.core.config import settings
from app.core.exceptions import NotificationFailure

logger = logging.getLogger(__name__)

BREVO_API = "https://api.brevo.com/v3/smtp/email"


class NotificationSink(Protocol):
    def send(self, to_email: str, subject: str, html_content: str) -> None: ...


class BrevoNotificationSink:
    """Sends transactional email through Brevo. Raises NotificationFailure on any problem."""

    def __init__(self, api_key: str | None = None, timeout: float | None = None):
        self.api_key = api_key if api_key is not None else settings.BREVO_API_KEY
        self.timeout = timeout if timeout is not None else settings.NOTIFY_TIMEOUT_SECONDS

    def send(self, to_email: str, subject: str, html_content: str) -> None:
        if not self.api_key:
            raise NotificationFailure("BREVO_API_KEY missing; email not sent")

        payload = {
            "sender": {"email": settings.MAIL_FROM_EMAIL, "name": settings.MAIL_FROM_NAME},
            "to": [{"email": to_email}],
            "subject": subject,
            "htmlContent": html_content,
        }

        try:
            r = requests.post(
                BREVO_API,
                json=payload,
                headers={
                    "api-key": self.api_key,
                    "accept": "application/json",
                    "content-type": "application/json",
                },
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            raise NotificationFailure(f"Brevo request failed: {e}") from e

        if r.status_code >= 400:
            raise NotificationFailure(f"Brevo error {r.status_code} body={r.text}")
        logger.info("Brevo accepted email to %s (%s)", to_email, subject)


def approval_email(inquiry) -> tuple[str, str]:
    """Subject and HTML body telling the inquirer their inquiry was approved."""
    subject = f"Your inquiry for room {inquiry.room_number} has been approved"
    html = (
        f"<p>Hi {escape(inquiry.full_name)},</p>"
        f"<p>Your inquiry for room <strong>{escape(inquiry.room_number)}</strong> "
        f"at {escape(str(inquiry.price))} has been updated to "
        f"<strong>{escape(inquiry.inquiry_status)}</strong>.</p>"
        f"<p>Thank you,<br>{escape(settings.MAIL_FROM_NAME)}</p>"
    )
    return subject, html

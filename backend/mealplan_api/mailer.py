"""Outbound mail for the forgot-password flow."""
from __future__ import annotations

import smtplib
import ssl
from email.mime.text import MIMEText

from loguru import logger

from .config import Settings


def redact_email(email: str) -> str:
    if "@" not in email:
        return "redacted"
    local, domain = email.split("@", 1)
    return f"{local[:2]}***@{domain}"


class Mailer:
    """SMTP sender. Without an SMTP host it only logs what it would send."""

    def __init__(
        self,
        *,
        smtp_host: str | None = None,
        smtp_port: int = 587,
        smtp_user: str | None = None,
        smtp_password: str | None = None,
        from_email: str | None = None,
    ) -> None:
        self.smtp_host = smtp_host
        self.smtp_port = smtp_port
        self.smtp_user = smtp_user
        self.smtp_password = smtp_password
        self.from_email = from_email or smtp_user

    @classmethod
    def from_settings(cls, settings: Settings) -> "Mailer":
        return cls(
            smtp_host=settings.smtp_host,
            smtp_port=settings.smtp_port,
            smtp_user=settings.smtp_user,
            smtp_password=settings.smtp_password,
            from_email=settings.smtp_from,
        )

    @property
    def is_configured(self) -> bool:
        return bool(self.smtp_host and self.from_email)

    def send_account_recovery(self, to_email: str, username: str) -> None:
        """Remind the owner of ``to_email`` which username the account uses."""

        body = (
            f"Hello {username},\n\n"
            "We received a request to recover your Meal Planner account.\n"
            f"Your username is: {username}\n\n"
            "If you did not make this request you can ignore this email."
        )
        self._send(to_email, "Meal Planner account recovery", body)

    def _send(self, to_email: str, subject: str, body: str) -> None:
        if not self.is_configured:
            logger.info(
                f"SMTP not configured, recovery mail not sent: to={redact_email(to_email)} subject={subject!r}"
            )
            return

        msg = MIMEText(body, "plain")
        msg["Subject"] = subject
        msg["From"] = self.from_email
        msg["To"] = to_email

        context = ssl.create_default_context()
        with smtplib.SMTP(self.smtp_host, self.smtp_port, timeout=30) as server:
            server.starttls(context=context)
            if self.smtp_user and self.smtp_password:
                server.login(self.smtp_user, self.smtp_password)
            server.sendmail(self.from_email, [to_email], msg.as_string())
        logger.info(f"Recovery mail sent: to={redact_email(to_email)}")

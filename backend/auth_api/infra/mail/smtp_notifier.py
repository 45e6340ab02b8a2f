"""Email delivery adapters for the :class:`Notifier` port."""

from __future__ import annotations

import logging
import smtplib
import ssl
from dataclasses import dataclass
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText

from auth_api.core.config import MailSettings
from auth_api.services._shared.errors import NotificationError
from auth_api.services._shared.ports import Notifier

log = logging.getLogger(__name__)


def redact_email(email: str) -> str:
    """Redact an email address for logging to avoid PII leakage."""
    if "@" not in email:
        return "redacted"
    local, domain = email.split("@", 1)
    return f"{local[:2]}***@{domain}"


@dataclass(slots=True)
class SMTPNotifier(Notifier):
    """
    Send HTML emails through an SMTP server.

    ``use_ssl`` selects implicit TLS (``SMTP_SSL``); otherwise a plain
    connection is opened and upgraded with STARTTLS when ``use_tls`` is set.

    :param settings: SMTP transport settings.
    """

    settings: MailSettings

    def _message(self, to: str, subject: str, html: str) -> MIMEMultipart:
        msg = MIMEMultipart("alternative")
        msg["Subject"] = subject
        msg["From"] = self.settings.sender
        msg["To"] = to
        msg.attach(MIMEText(html, "html", "utf-8"))
        return msg

    def _connect(self) -> smtplib.SMTP:
        s = self.settings
        context = ssl.create_default_context()
        if s.use_ssl:
            return smtplib.SMTP_SSL(s.server or "", s.port, context=context, timeout=s.timeout)
        server = smtplib.SMTP(s.server or "", s.port, timeout=s.timeout)
        if s.use_tls:
            server.starttls(context=context)
        return server

    def send(self, to: str, subject: str, html: str) -> None:
        if not self.settings.configured:
            raise NotificationError("Mail transport is not configured.")

        msg = self._message(to, subject, html)
        try:
            with self._connect() as server:
                if self.settings.username and self.settings.password:
                    server.login(self.settings.username, self.settings.password)
                server.sendmail(self.settings.sender, [to], msg.as_string())
        except (smtplib.SMTPException, ssl.SSLError, OSError) as exc:
            log.error(
                "Email delivery failed: to=%s host=%s error=%s",
                redact_email(to),
                self.settings.server,
                type(exc).__name__,
            )
            raise NotificationError("Email delivery failed.") from exc

        log.info("Email sent", extra={"email": redact_email(to), "event": "email_sent"})


@dataclass(slots=True)
class LoggingNotifier(Notifier):
    """
    Development notifier: logs the message instead of sending it.

    Selected when ``MAIL_SERVER`` is unset and accounts are auto-verified.
    The body may carry one-shot links, so only the subject is logged.
    """

    def send(self, to: str, subject: str, html: str) -> None:
        log.info(
            "Email not sent (no MAIL_SERVER): subject=%s",
            subject,
            extra={"email": redact_email(to), "event": "email_logged"},
        )

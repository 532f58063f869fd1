from __future__ import annotations

import logging
import smtplib
from dataclasses import dataclass
from email.message import EmailMessage
from typing import Any, Callable, Optional

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MailSettings:
    enabled: bool = False
    host: str = "smtp.gmail.com"
    port: int = 465
    use_ssl: bool = True
    use_tls: bool = False
    username: Optional[str] = None
    password: Optional[str] = None
    sender: Optional[str] = None
    timeout: int = 10

    @classmethod
    def from_settings(cls, settings: Any) -> "MailSettings":
        return cls(
            enabled=bool(getattr(settings, "MAIL_ENABLED", False)),
            host=getattr(settings, "MAIL_HOST", cls.host),
            port=int(getattr(settings, "MAIL_PORT", cls.port)),
            use_ssl=bool(getattr(settings, "MAIL_USE_SSL", cls.use_ssl)),
            use_tls=bool(getattr(settings, "MAIL_USE_TLS", cls.use_tls)),
            username=getattr(settings, "MAIL_USERNAME", None) or None,
            password=getattr(settings, "MAIL_PASSWORD", None) or None,
            sender=getattr(settings, "MAIL_FROM", None) or getattr(settings, "MAIL_USERNAME", None) or None,
            timeout=int(getattr(settings, "MAIL_TIMEOUT", cls.timeout)),
        )


def _open_smtp(settings: MailSettings):
    if settings.use_ssl:
        return smtplib.SMTP_SSL(settings.host, settings.port, timeout=settings.timeout)
    return smtplib.SMTP(settings.host, settings.port, timeout=settings.timeout)


class Mailer:
    """Plain-text mail over SMTP. Send failures are logged and reported as ``False``."""

    def __init__(self, settings: MailSettings, *, smtp_factory: Callable[[MailSettings], Any] = _open_smtp):
        self._settings = settings
        self._smtp_factory = smtp_factory

    @property
    def enabled(self) -> bool:
        return self._settings.enabled and bool(self._settings.sender)

    def send(self, to: str, subject: str, body: str) -> bool:
        if not self.enabled:
            logger.info("Mail disabled, not sending %r to %s", subject, to)
            return False

        msg = EmailMessage()
        msg["Subject"] = subject
        msg["From"] = self._settings.sender
        msg["To"] = to
        msg.set_content(body)

        try:
            with self._smtp_factory(self._settings) as smtp:
                if self._settings.use_tls and not self._settings.use_ssl:
                    smtp.starttls()
                if self._settings.username and self._settings.password:
                    smtp.login(self._settings.username, self._settings.password)
                smtp.send_message(msg)
        except (smtplib.SMTPException, OSError):
            logger.exception("Could not send %r to %s", subject, to)
            return False
        logger.info("Sent %r to %s", subject, to)
        return True

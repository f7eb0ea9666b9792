# app/services/notifications.py
"""
Best-effort outbound notifications for follow-up work.

Two senders share one small interface: SMTP when SMTP_HOST is configured,
otherwise a sender that only writes to the log. SMS has no gateway; an SMS
request is delivered as an email to the configured follow-up inbox that
describes the text to send.
"""
from __future__ import annotations

import logging
import smtplib
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from typing import List, Optional, Protocol

from app.config import Settings, get_settings

logger = logging.getLogger(__name__)


class NotificationSender(Protocol):
    def send_email(self, to_addrs: List[str], subject: str, body: str) -> None: ...

    def send_sms(self, phone: str, message: str) -> None: ...


class LoggingNotificationSender:
    """Used when no mail server is configured (dev, tests)."""

    def send_email(self, to_addrs: List[str], subject: str, body: str) -> None:
        logger.info("email (not sent) to=%s subject=%r body=%r", to_addrs, subject, body)

    def send_sms(self, phone: str, message: str) -> None:
        logger.info("sms (not sent) to=%s message=%r", phone, message)


class SmtpNotificationSender:
    def __init__(self, settings: Settings):
        self.host = settings.smtp_host
        self.port = settings.smtp_port
        self.user = settings.smtp_user
        self.password = settings.smtp_password
        self.sender = settings.smtp_from
        self.tls = settings.smtp_tls
        self.sms_inbox = settings.follow_up_notify_to or settings.smtp_from

    def send_email(self, to_addrs: List[str], subject: str, body: str) -> None:
        msg = MIMEMultipart()
        msg["From"] = self.sender
        msg["To"] = ", ".join(to_addrs)
        msg["Subject"] = subject
        msg.attach(MIMEText(body, "plain", "utf-8"))

        with smtplib.SMTP(self.host, self.port, timeout=15) as server:
            if self.tls:
                server.starttls()
            if self.user and self.password:
                server.login(self.user, self.password)
            server.sendmail(self.sender, to_addrs, msg.as_string())
        logger.info("email sent to=%s subject=%r", to_addrs, subject)

    def send_sms(self, phone: str, message: str) -> None:
        body = (
            "An SMS follow-up was requested.\n\n"
            f"Recipient: {phone}\n"
            f"Message:\n{message}\n"
        )
        self.send_email([self.sms_inbox], f"SMS follow-up for {phone}", body)


def build_notifier(settings: Optional[Settings] = None) -> NotificationSender:
    """Pick the sender once at startup from configuration."""
    settings = settings or get_settings()
    if settings.smtp_host:
        logger.info("notifications: SMTP via %s:%s", settings.smtp_host, settings.smtp_port)
        return SmtpNotificationSender(settings)
    logger.info("notifications: SMTP_HOST not set, logging only")
    return LoggingNotificationSender()


def notify_safely(notifier: NotificationSender, channel: str, to: str, subject: str, body: str) -> bool:
    """Send one message; failures are logged and reported as False, never raised."""
    try:
        if channel == "sms":
            notifier.send_sms(to, body)
        else:
            notifier.send_email([to], subject, body)
        return True
    except Exception:
        logger.exception("notification failed channel=%s to=%s", channel, to)
        return False

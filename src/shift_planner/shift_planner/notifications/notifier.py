"""Vacation request notifications.

One-way calls: the lifecycle only observes failures to log them. When no SMTP
server is configured the message is logged instead of sent (dev/test mode).
"""

from __future__ import annotations

import logging
import smtplib
from dataclasses import dataclass
from email.mime.text import MIMEText
from typing import List, Optional, Protocol, Tuple

from ..core.enums import NotificationEvent
from ..core.exceptions import NotificationDeliveryFailure

logger = logging.getLogger(__name__)

_SUBJECTS = {
    NotificationEvent.REQUEST: "[Shift Planner] New vacation request #{request_id}",
    NotificationEvent.APPROVAL: "[Shift Planner] Vacation request #{request_id} approved",
    NotificationEvent.REJECTION: "[Shift Planner] Vacation request #{request_id} rejected",
}


class Notifier(Protocol):
    def notify(self, request_id: int, event: NotificationEvent) -> None:
        raise NotImplementedError


class LogOnlyNotifier(Notifier):
    """Records notifications in the log; also handy as a test double via `sent`."""

    def __init__(self) -> None:
        self.sent: List[Tuple[int, NotificationEvent]] = []

    def notify(self, request_id: int, event: NotificationEvent) -> None:
        self.sent.append((int(request_id), NotificationEvent(event)))
        logger.info("[log-only] notification %s for vacation request %s", NotificationEvent(event).value, request_id)


@dataclass
class SmtpSettings:
    server: str
    port: int = 587
    use_tls: bool = True
    username: Optional[str] = None
    password: Optional[str] = None
    sender: str = "noreply@shift-planner.local"
    recipient: str = ""
    timeout: float = 10.0


class SmtpNotifier(Notifier):
    def __init__(self, settings: SmtpSettings):
        self._settings = settings

    def _build_message(self, request_id: int, event: NotificationEvent) -> MIMEText:
        subject = _SUBJECTS[event].format(request_id=request_id)
        body = f"Vacation request {request_id}: {event.value}.\nOpen Shift Planner to see the details."
        msg = MIMEText(body, "plain", "utf-8")
        msg["Subject"] = subject
        msg["From"] = self._settings.sender
        msg["To"] = self._settings.recipient
        return msg

    def notify(self, request_id: int, event: NotificationEvent) -> None:
        event = NotificationEvent(event)
        if not self._settings.recipient:
            raise NotificationDeliveryFailure("No notification recipient configured")

        msg = self._build_message(int(request_id), event)
        try:
            with smtplib.SMTP(self._settings.server, self._settings.port, timeout=self._settings.timeout) as smtp:
                if self._settings.use_tls:
                    smtp.starttls()
                if self._settings.username:
                    smtp.login(self._settings.username, self._settings.password or "")
                smtp.sendmail(self._settings.sender, [self._settings.recipient], msg.as_string())
        except (smtplib.SMTPException, OSError) as exc:
            raise NotificationDeliveryFailure(f"SMTP delivery failed: {exc}") from exc

        logger.info("Notification %s sent for vacation request %s", event.value, request_id)


def build_notifier(settings: object) -> Notifier:
    """SMTP when MAIL_SERVER is configured, log-only otherwise."""
    server = getattr(settings, "MAIL_SERVER", None)
    if not server:
        return LogOnlyNotifier()

    return SmtpNotifier(
        SmtpSettings(
            server=str(server),
            port=int(getattr(settings, "MAIL_PORT", 587)),
            use_tls=bool(getattr(settings, "MAIL_USE_TLS", True)),
            username=getattr(settings, "MAIL_USERNAME", None),
            password=getattr(settings, "MAIL_PASSWORD", None),
            sender=str(getattr(settings, "MAIL_DEFAULT_SENDER", "noreply@shift-planner.local")),
            recipient=str(getattr(settings, "MAIL_NOTIFY_ADDRESS", "")),
        )
    )

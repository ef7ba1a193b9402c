"""Notification senders.

``send_message`` raises on failure; callers decide whether that matters.
The booking flow treats every send as best-effort.
"""

import logging
import smtplib
import ssl
from email import encoders
from email.mime.base import MIMEBase
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText

from timeline.core import config

logger = logging.getLogger(__name__)

REMINDER_TYPE = 'reminder'

SUBJECTS = {
    REMINDER_TYPE: 'Your booking reminder',
}


class Notifier:
    def send_message(self, recipient: str, template_type: str, payload: dict, attach: bool = False) -> None:
        raise NotImplementedError


class LoggingNotifier(Notifier):
    """Used when no mail server is configured."""

    def send_message(self, recipient: str, template_type: str, payload: dict, attach: bool = False) -> None:
        logger.info('Notification %s for %s: %s (attach=%s)', template_type, recipient, payload, attach)


def render_body(template_type: str, payload: dict) -> str:
    if template_type == REMINDER_TYPE:
        return (
            f"Hello!\n\n"
            f"You are booked for {payload.get('service', 'a service')} "
            f"at {payload.get('org', 'the organization')} "
            f"with {payload.get('worker', 'our specialist')}.\n"
            f"Starts: {payload.get('start_time')}\n"
            f"Ends: {payload.get('end_time')}\n"
        )
    return '\n'.join(f'{key}: {value}' for key, value in payload.items())


def render_calendar(payload: dict) -> str:
    def stamp(value) -> str:
        return value.strftime('%Y%m%dT%H%M%S') if hasattr(value, 'strftime') else str(value)

    return '\r\n'.join([
        'BEGIN:VCALENDAR',
        'VERSION:2.0',
        'PRODID:-//timeline//booking//EN',
        'BEGIN:VEVENT',
        f"UID:record-{payload.get('record_id')}@timeline",
        f"DTSTART:{stamp(payload.get('start_time'))}",
        f"DTEND:{stamp(payload.get('end_time'))}",
        f"SUMMARY:{payload.get('service', 'Booking')}",
        'END:VEVENT',
        'END:VCALENDAR',
        '',
    ])


class SmtpNotifier(Notifier):
    def __init__(self, host: str, port: int, user: str, password: str, sender: str, use_tls: bool = True):
        self.host = host
        self.port = port
        self.user = user
        self.password = password
        self.sender = sender or user
        self.use_tls = use_tls

    def build_message(self, recipient: str, template_type: str, payload: dict, attach: bool) -> MIMEMultipart:
        message = MIMEMultipart()
        message['From'] = self.sender
        message['To'] = recipient
        message['Subject'] = SUBJECTS.get(template_type, 'Notification')
        message.attach(MIMEText(render_body(template_type, payload), 'plain', 'utf-8'))

        if attach:
            part = MIMEBase('text', 'calendar', method='PUBLISH')
            part.set_payload(render_calendar(payload).encode('utf-8'))
            encoders.encode_base64(part)
            part.add_header('Content-Disposition', 'attachment', filename='booking.ics')
            message.attach(part)

        return message

    def send_message(self, recipient: str, template_type: str, payload: dict, attach: bool = False) -> None:
        message = self.build_message(recipient, template_type, payload, attach)

        with smtplib.SMTP(self.host, self.port, timeout=10) as server:
            if self.use_tls:
                server.starttls(context=ssl.create_default_context())
            if self.user:
                server.login(self.user, self.password)
            server.send_message(message)

        logger.info('Sent %s mail to %s', template_type, recipient)


_notifier: Notifier | None = None


def get_notifier() -> Notifier:
    global _notifier

    if _notifier is None:
        if config.MAIL_HOST:
            _notifier = SmtpNotifier(
                host=config.MAIL_HOST,
                port=config.MAIL_PORT,
                user=config.MAIL_USER,
                password=config.MAIL_PASSWD,
                sender=config.MAIL_FROM,
                use_tls=config.MAIL_USE_TLS,
            )
        else:
            _notifier = LoggingNotifier()

    return _notifier

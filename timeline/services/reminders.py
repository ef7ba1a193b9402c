"""Reminder sweep for records starting soon."""

import logging
from datetime import datetime, timedelta

from sqlalchemy.orm import Session

from timeline.core import config
from timeline.database import transaction
from timeline.services.booking import reminder_payload
from timeline.services.notifications import REMINDER_TYPE, Notifier, get_notifier
from timeline.stores.records import RecordStore

logger = logging.getLogger(__name__)


def send_upcoming_reminders(
    db: Session,
    notifier: Notifier | None = None,
    now: datetime | None = None,
    records: RecordStore | None = None,
) -> int:
    """Send one reminder per upcoming record; returns how many went out.

    A record is marked only after its mail was handed over, so a failed
    send is retried on the next pass.
    """
    notifier = notifier or get_notifier()
    records = records or RecordStore()
    now = now or datetime.now()
    window_end = now + timedelta(hours=config.REMINDER_WINDOW_HOURS)

    with transaction(db, 'upcoming_records'):
        pending = [
            (record.id, record.user.email, reminder_payload(record))
            for record in records.upcoming(db, now, window_end)
            if not record.reminder_sent
        ]

    sent = 0
    for record_id, recipient, payload in pending:
        try:
            notifier.send_message(recipient, REMINDER_TYPE, payload, attach=True)
        except Exception:
            logger.exception('Reminder for record %s failed', record_id)
            continue

        with transaction(db, 'mark_reminded'):
            record = records.record(db, record_id)
            if record is not None:
                record.reminder_sent = True
        sent += 1

    if pending:
        logger.info('Sent %s of %s reminders', sent, len(pending))
    return sent

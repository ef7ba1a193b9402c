"""Booking service - records bound to slots.

Creating a record claims its slot and inserts the row in one transaction;
cancelling releases the slot and deletes the row in one transaction.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Callable

from sqlalchemy.orm import Session

from timeline.core import config
from timeline.core.errors import ConflictError, InvalidInputError, NotFoundError
from timeline.database import transaction
from timeline.models.record import Feedback, Record
from timeline.services.notifications import REMINDER_TYPE, Notifier, get_notifier
from timeline.stores.accounts import AccountStore
from timeline.stores.catalog import CatalogStore
from timeline.stores.records import RecordStore
from timeline.stores.slots import SlotStore

logger = logging.getLogger(__name__)


@dataclass
class NewRecord:
    org_id: int
    user_id: int
    slot_id: int
    service_id: int
    worker_id: int


def run_now(func: Callable, *args) -> None:
    func(*args)


def reminder_payload(record: Record) -> dict:
    worker_name = ' '.join(part for part in (record.worker.first_name, record.worker.last_name) if part)
    return {
        'record_id': record.id,
        'org': record.org.name,
        'service': record.service.name,
        'worker': worker_name,
        'start_time': record.slot.start_time,
        'end_time': record.slot.end_time,
    }


class BookingService:

    def __init__(
        self,
        db: Session,
        slots: SlotStore | None = None,
        records: RecordStore | None = None,
        catalog: CatalogStore | None = None,
        accounts: AccountStore | None = None,
        notifier: Notifier | None = None,
        dispatch: Callable | None = None,
    ):
        """``dispatch(func, *args)`` runs post-commit work; routes pass ``BackgroundTasks.add_task``."""
        self.db = db
        self.slots = slots or SlotStore()
        self.records = records or RecordStore()
        self.catalog = catalog or CatalogStore()
        self.accounts = accounts or AccountStore()
        self.notifier = notifier or get_notifier()
        self.dispatch = dispatch or run_now

    def record_add(self, data: NewRecord, now: datetime | None = None) -> Record:
        """Book ``data.slot_id``. Raises ``SlotBusyError`` when someone else holds it."""
        now = now or datetime.now()

        with transaction(self.db, 'record_add'):
            slot = self.slots.slot(self.db, data.slot_id)
            if slot is None:
                raise NotFoundError(f'Slot {data.slot_id} not found.')
            if slot.org_id != data.org_id or slot.worker_id != data.worker_id:
                raise InvalidInputError('Slot does not belong to this worker.')
            if slot.start_time <= now:
                raise InvalidInputError('Slot has already started.')

            if self.catalog.service(self.db, data.org_id, data.service_id) is None:
                raise NotFoundError(f'Service {data.service_id} not found.')
            if not self.catalog.provides(self.db, data.worker_id, data.service_id):
                raise InvalidInputError('Worker does not provide this service.')
            user = self.accounts.user(self.db, data.user_id)
            if user is None:
                raise NotFoundError(f'User {data.user_id} not found.')

            self.slots.update_slot(self.db, data.slot_id, busy=True)

            record = self.records.add(
                self.db,
                Record(
                    org_id=data.org_id,
                    user_id=data.user_id,
                    slot_id=data.slot_id,
                    service_id=data.service_id,
                    worker_id=data.worker_id,
                    reviewed=False,
                ),
            )
            recipient = user.email
            payload = reminder_payload(record)

        logger.info('Record %s booked slot %s for user %s', record.id, data.slot_id, data.user_id)
        self.dispatch(self._notify, recipient, payload)
        return record

    def _notify(self, recipient: str, payload: dict) -> None:
        try:
            self.notifier.send_message(recipient, REMINDER_TYPE, payload, attach=True)
        except Exception:
            logger.exception('Failed to send reminder for record %s', payload.get('record_id'))

    def record(self, record_id: int) -> Record:
        with transaction(self.db, 'record'):
            record = self.records.record_detail(self.db, record_id)
            if record is None:
                raise NotFoundError(f'Record {record_id} not found.')
        return record

    def record_list(
        self,
        org_id: int | None = None,
        user_id: int | None = None,
        reviewed: bool | None = None,
        limit: int = 50,
        offset: int = 0,
    ) -> tuple[list[Record], int]:
        if org_id is None and user_id is None:
            raise InvalidInputError('Either org_id or user_id is required.')

        with transaction(self.db, 'record_list'):
            return self.records.record_list(self.db, org_id, user_id, reviewed, limit, offset)

    def record_patch(self, record_id: int, reviewed: bool) -> Record:
        """Update mutable record fields. Slot state is never touched here.

        ``reviewed`` must agree with whether feedback exists; feedback itself
        goes through ``feedback_add``.
        """
        with transaction(self.db, 'record_patch'):
            record = self.records.record(self.db, record_id)
            if record is None:
                raise NotFoundError(f'Record {record_id} not found.')
            if reviewed != (record.feedback is not None):
                raise InvalidInputError('A record is reviewed exactly when it has feedback.')
            record.reviewed = reviewed
            self.db.flush()
        return record

    def record_delete(self, record_id: int) -> None:
        with transaction(self.db, 'record_delete'):
            record = self.records.record(self.db, record_id)
            if record is None:
                raise NotFoundError(f'Record {record_id} not found.')
            slot_id = record.slot_id

            self.slots.update_slot(self.db, slot_id, busy=False)
            if self.records.delete(self.db, record_id) != 1:
                raise ConflictError(f'Record {record_id} was removed concurrently.')

        logger.info('Record %s cancelled, slot %s released', record_id, slot_id)

    def upcoming_records(self, now: datetime | None = None, window_hours: int | None = None) -> list[Record]:
        now = now or datetime.now()
        if window_hours is None:
            window_hours = config.REMINDER_WINDOW_HOURS
        window = timedelta(hours=window_hours)

        with transaction(self.db, 'upcoming_records'):
            return self.records.upcoming(self.db, now, now + window)

    def feedback_add(self, record_id: int, rating: int, comment: str | None, now: datetime | None = None) -> Feedback:
        now = now or datetime.now()

        with transaction(self.db, 'feedback_add'):
            record = self.records.record(self.db, record_id)
            if record is None:
                raise NotFoundError(f'Record {record_id} not found.')
            if record.feedback is not None:
                raise ConflictError('Feedback already left for this record.')
            if record.slot.end_time > now:
                raise InvalidInputError('Feedback can be left once the appointment is over.')

            feedback = self.records.add_feedback(
                self.db,
                Feedback(record_id=record_id, rating=rating, comment=comment),
            )
            record.reviewed = True
            self.db.flush()

        return feedback

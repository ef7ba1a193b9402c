"""Slot store - materialized slots and the atomic claim."""

from datetime import date, datetime, time, timedelta

from sqlalchemy import select
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.orm import Session

from timeline.core.errors import NotFoundError, SlotBusyError
from timeline.models.record import Feedback, Record
from timeline.models.slot import Slot

_UPSERT_DIALECTS = {
    'postgresql': postgresql.insert,
    'sqlite': sqlite.insert,
}


class SlotStore:
    """Slot reads and writes. Callers own the transaction."""

    def slots(self, db: Session, worker_id: int, date_from: date, date_to: date) -> list[Slot]:
        """Slots of a worker starting on any day in ``[date_from, date_to]``."""
        range_start = datetime.combine(date_from, time.min)
        range_end = datetime.combine(date_to + timedelta(days=1), time.min)
        return (
            db.query(Slot)
            .filter(
                Slot.worker_id == worker_id,
                Slot.start_time >= range_start,
                Slot.start_time < range_end,
            )
            .order_by(Slot.start_time.asc())
            .all()
        )

    def slot(self, db: Session, slot_id: int) -> Slot | None:
        return db.query(Slot).filter(Slot.id == slot_id).first()

    def update_slot(self, db: Session, slot_id: int, busy: bool) -> None:
        """Claim (``busy=True``) or release (``busy=False``) a slot.

        A claim is one conditional UPDATE; whoever sees zero affected rows
        lost the race and gets ``SlotBusyError``. A release is unconditional.
        """
        query = db.query(Slot).filter(Slot.id == slot_id)

        if busy:
            claimed = query.filter(Slot.is_busy.is_(False)).update(
                {Slot.is_busy: True}, synchronize_session=False
            )
            if claimed == 1:
                return
            if query.count() == 0:
                raise NotFoundError(f'Slot {slot_id} not found.')
            raise SlotBusyError(slot_id)

        released = query.update({Slot.is_busy: False}, synchronize_session=False)
        if released == 0:
            raise NotFoundError(f'Slot {slot_id} not found.')

    def insert_missing(self, db: Session, rows: list[dict]) -> int:
        """Insert slots, silently skipping any (worker_id, start_time) already present.

        Returns the number of rows actually inserted.
        """
        if not rows:
            return 0

        dialect = db.get_bind().dialect.name
        insert = _UPSERT_DIALECTS.get(dialect)
        if insert is None:
            return self._insert_checked(db, rows)

        statement = insert(Slot).values(rows).on_conflict_do_nothing(
            index_elements=['worker_id', 'start_time']
        )
        return db.execute(statement).rowcount

    def _insert_checked(self, db: Session, rows: list[dict]) -> int:
        worker_ids = {row['worker_id'] for row in rows}
        starts = [row['start_time'] for row in rows]
        existing = set(
            db.query(Slot.worker_id, Slot.start_time)
            .filter(
                Slot.worker_id.in_(worker_ids),
                Slot.start_time >= min(starts),
                Slot.start_time <= max(starts),
            )
            .all()
        )
        fresh = [row for row in rows if (row['worker_id'], row['start_time']) not in existing]
        db.add_all(Slot(**row) for row in fresh)
        db.flush()
        return len(fresh)

    def delete_expired_slots(self, db: Session, now: datetime) -> int:
        """Remove every slot that ended before ``now``, busy or not, with its record."""
        expired_slots = select(Slot.id).where(Slot.end_time < now)
        expired_records = select(Record.id).where(Record.slot_id.in_(expired_slots))

        db.query(Feedback).filter(Feedback.record_id.in_(expired_records)).delete(
            synchronize_session=False
        )
        db.query(Record).filter(Record.slot_id.in_(expired_slots)).delete(synchronize_session=False)
        return db.query(Slot).filter(Slot.end_time < now).delete(synchronize_session=False)

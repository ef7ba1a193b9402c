"""Record store - booking records and their feedback."""

from datetime import datetime

from sqlalchemy.orm import Session, joinedload

from timeline.models.record import Feedback, Record
from timeline.models.slot import Slot


class RecordStore:

    def add(self, db: Session, record: Record) -> Record:
        db.add(record)
        db.flush()
        return record

    def record(self, db: Session, record_id: int) -> Record | None:
        return db.query(Record).filter(Record.id == record_id).first()

    def record_detail(self, db: Session, record_id: int) -> Record | None:
        """Record with its org, user, slot, service, worker and feedback loaded."""
        return (
            db.query(Record)
            .options(
                joinedload(Record.org),
                joinedload(Record.user),
                joinedload(Record.slot),
                joinedload(Record.service),
                joinedload(Record.worker),
                joinedload(Record.feedback),
            )
            .filter(Record.id == record_id)
            .first()
        )

    def record_list(
        self,
        db: Session,
        org_id: int | None = None,
        user_id: int | None = None,
        reviewed: bool | None = None,
        limit: int = 50,
        offset: int = 0,
    ) -> tuple[list[Record], int]:
        """Records filtered by owner and review state, newest slot first, plus total found."""
        query = db.query(Record).join(Slot, Record.slot_id == Slot.id)
        if org_id is not None:
            query = query.filter(Record.org_id == org_id)
        if user_id is not None:
            query = query.filter(Record.user_id == user_id)
        if reviewed is not None:
            query = query.filter(Record.reviewed.is_(reviewed))

        found = query.count()
        records = (
            query.options(joinedload(Record.slot), joinedload(Record.feedback))
            .order_by(Slot.start_time.desc())
            .limit(limit)
            .offset(offset)
            .all()
        )
        return records, found

    def delete(self, db: Session, record_id: int) -> int:
        db.query(Feedback).filter(Feedback.record_id == record_id).delete(synchronize_session=False)
        return db.query(Record).filter(Record.id == record_id).delete(synchronize_session=False)

    def upcoming(self, db: Session, window_start: datetime, window_end: datetime) -> list[Record]:
        """Records whose slot starts in ``[window_start, window_end)``."""
        return (
            db.query(Record)
            .join(Slot, Record.slot_id == Slot.id)
            .options(joinedload(Record.slot), joinedload(Record.user))
            .filter(Slot.start_time >= window_start, Slot.start_time < window_end)
            .order_by(Slot.start_time.asc())
            .all()
        )

    def add_feedback(self, db: Session, feedback: Feedback) -> Feedback:
        db.add(feedback)
        db.flush()
        return feedback

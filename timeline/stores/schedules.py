"""Schedule store - weekly worker availability windows."""

from sqlalchemy.orm import Session

from timeline.models.schedule import WorkerSchedule


class ScheduleStore:

    def all_schedules(self, db: Session) -> list[WorkerSchedule]:
        return db.query(WorkerSchedule).order_by(WorkerSchedule.worker_id, WorkerSchedule.weekday).all()

    def schedules(self, db: Session, org_id: int, worker_id: int) -> list[WorkerSchedule]:
        return (
            db.query(WorkerSchedule)
            .filter(WorkerSchedule.org_id == org_id, WorkerSchedule.worker_id == worker_id)
            .order_by(WorkerSchedule.weekday.asc())
            .all()
        )

    def schedule(self, db: Session, org_id: int, worker_id: int, weekday: int) -> WorkerSchedule | None:
        return (
            db.query(WorkerSchedule)
            .filter(
                WorkerSchedule.org_id == org_id,
                WorkerSchedule.worker_id == worker_id,
                WorkerSchedule.weekday == weekday,
            )
            .first()
        )

    def add(self, db: Session, schedule: WorkerSchedule) -> WorkerSchedule:
        db.add(schedule)
        db.flush()
        return schedule

    def delete(self, db: Session, org_id: int, worker_id: int, weekday: int | None = None) -> int:
        """Delete one weekday, or the whole week when ``weekday`` is None."""
        query = db.query(WorkerSchedule).filter(
            WorkerSchedule.org_id == org_id,
            WorkerSchedule.worker_id == worker_id,
        )
        if weekday is not None:
            query = query.filter(WorkerSchedule.weekday == weekday)
        return query.delete(synchronize_session=False)

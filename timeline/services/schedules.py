"""Worker schedule management. One entry per worker and weekday."""

import logging
from dataclasses import dataclass
from datetime import time

from sqlalchemy.orm import Session

from timeline.core.errors import ConflictError, InvalidScheduleError, NotFoundError
from timeline.database import transaction
from timeline.models.schedule import WorkerSchedule
from timeline.services.slot_generator import schedule_problem
from timeline.stores.catalog import CatalogStore
from timeline.stores.schedules import ScheduleStore

logger = logging.getLogger(__name__)


@dataclass
class ScheduleEntry:
    weekday: int
    start: time
    over: time
    break_start: time | None = None
    break_end: time | None = None


def validate_entry(entry: ScheduleEntry) -> None:
    if not 1 <= entry.weekday <= 7:
        raise InvalidScheduleError('Weekday must be between 1 (Monday) and 7 (Sunday).')

    problem = schedule_problem(entry.start, entry.over, entry.break_start, entry.break_end)
    if problem:
        raise InvalidScheduleError(f'Invalid schedule for weekday {entry.weekday}: {problem}.')


class ScheduleService:

    def __init__(self, db: Session, schedules: ScheduleStore | None = None, catalog: CatalogStore | None = None):
        self.db = db
        self.schedules = schedules or ScheduleStore()
        self.catalog = catalog or CatalogStore()

    def _require_worker(self, org_id: int, worker_id: int) -> None:
        if self.catalog.worker(self.db, org_id, worker_id) is None:
            raise NotFoundError(f'Worker {worker_id} not found.')

    def schedule(self, org_id: int, worker_id: int) -> list[WorkerSchedule]:
        with transaction(self.db, 'schedule'):
            self._require_worker(org_id, worker_id)
            return self.schedules.schedules(self.db, org_id, worker_id)

    def schedule_add(self, org_id: int, worker_id: int, entries: list[ScheduleEntry]) -> list[WorkerSchedule]:
        for entry in entries:
            validate_entry(entry)
        weekdays = [entry.weekday for entry in entries]
        if len(set(weekdays)) != len(weekdays):
            raise InvalidScheduleError('Each weekday may appear only once.')

        with transaction(self.db, 'schedule_add'):
            self._require_worker(org_id, worker_id)
            added = []
            for entry in entries:
                if self.schedules.schedule(self.db, org_id, worker_id, entry.weekday) is not None:
                    raise ConflictError(f'Worker {worker_id} already has a schedule for weekday {entry.weekday}.')
                added.append(
                    self.schedules.add(
                        self.db,
                        WorkerSchedule(
                            org_id=org_id,
                            worker_id=worker_id,
                            weekday=entry.weekday,
                            start=entry.start,
                            over=entry.over,
                            break_start=entry.break_start,
                            break_end=entry.break_end,
                        ),
                    )
                )

        logger.info('Added %s schedule entries for worker %s', len(added), worker_id)
        return added

    def schedule_update(self, org_id: int, worker_id: int, entries: list[ScheduleEntry]) -> list[WorkerSchedule]:
        """Replace the windows of existing weekdays. Already generated slots are kept."""
        for entry in entries:
            validate_entry(entry)

        with transaction(self.db, 'schedule_update'):
            self._require_worker(org_id, worker_id)
            updated = []
            for entry in entries:
                schedule = self.schedules.schedule(self.db, org_id, worker_id, entry.weekday)
                if schedule is None:
                    raise NotFoundError(f'No schedule for weekday {entry.weekday}.')
                schedule.start = entry.start
                schedule.over = entry.over
                schedule.break_start = entry.break_start
                schedule.break_end = entry.break_end
                updated.append(schedule)
            self.db.flush()

        return updated

    def schedule_delete(self, org_id: int, worker_id: int, weekday: int | None = None) -> int:
        with transaction(self.db, 'schedule_delete'):
            self._require_worker(org_id, worker_id)
            deleted = self.schedules.delete(self.db, org_id, worker_id, weekday)
            if deleted == 0:
                raise NotFoundError('Schedule not found.')
        return deleted

"""Slot generation from weekly worker schedules.

Every run looks ``SLOT_HORIZON_DAYS`` ahead, expands each schedule into
fixed-length slots on the matching weekdays and inserts whatever is not
there yet. Running it again is a no-op for slots that already exist.
"""

import logging
from dataclasses import dataclass, field
from datetime import date, datetime, time, timedelta

from sqlalchemy.orm import Session

from timeline.core import config
from timeline.core.errors import InvalidInputError
from timeline.database import transaction
from timeline.models.schedule import WorkerSchedule
from timeline.stores.schedules import ScheduleStore
from timeline.stores.slots import SlotStore

logger = logging.getLogger(__name__)


@dataclass
class GenerationReport:
    created: int = 0
    schedules: int = 0
    skipped_schedule_ids: list[int] = field(default_factory=list)


def schedule_problem(
    start: time,
    over: time,
    break_start: time | None = None,
    break_end: time | None = None,
) -> str | None:
    """Describe what is wrong with a schedule window, or None when it is usable."""
    if over <= start:
        return 'end must be after start'

    if (break_start is None) != (break_end is None):
        return 'break needs both start and end'

    if break_start is not None:
        if break_end <= break_start:
            return 'break end must be after break start'
        if break_start < start or break_end > over:
            return 'break must lie inside the working window'

    return None


def slot_bounds(
    day: date,
    start: time,
    over: time,
    break_start: time | None,
    break_end: time | None,
    duration_minutes: int,
) -> list[tuple[datetime, datetime]]:
    """Consecutive slots of ``duration_minutes`` from ``start`` until ``over`` on ``day``.

    Slots overlapping the break are left out and a trailing piece shorter
    than one slot is dropped.
    """
    step = timedelta(minutes=duration_minutes)
    window_end = datetime.combine(day, over)
    break_window = None
    if break_start is not None and break_end is not None:
        break_window = (datetime.combine(day, break_start), datetime.combine(day, break_end))

    bounds: list[tuple[datetime, datetime]] = []
    current = datetime.combine(day, start)

    while current + step <= window_end:
        slot_end = current + step
        overlaps_break = break_window is not None and current < break_window[1] and slot_end > break_window[0]
        if not overlaps_break:
            bounds.append((current, slot_end))
        current = slot_end

    return bounds


def occurrence_days(first_day: date, horizon_days: int, weekday: int) -> list[date]:
    """Days in ``[first_day, first_day + horizon_days)`` falling on ISO ``weekday``."""
    return [
        first_day + timedelta(days=offset)
        for offset in range(horizon_days)
        if (first_day + timedelta(days=offset)).isoweekday() == weekday
    ]


def schedule_slot_rows(
    schedule: WorkerSchedule,
    now: datetime,
    horizon_days: int,
    duration_minutes: int,
) -> list[dict]:
    rows = []
    for day in occurrence_days(now.date(), horizon_days, schedule.weekday):
        for slot_start, slot_end in slot_bounds(
            day,
            schedule.start,
            schedule.over,
            schedule.break_start,
            schedule.break_end,
            duration_minutes,
        ):
            if slot_start < now:
                continue
            rows.append({
                'worker_id': schedule.worker_id,
                'org_id': schedule.org_id,
                'start_time': slot_start,
                'end_time': slot_end,
                'is_busy': False,
            })
    return rows


def generate_slots(
    db: Session,
    now: datetime | None = None,
    horizon_days: int | None = None,
    duration_minutes: int | None = None,
    schedules: ScheduleStore | None = None,
    slots: SlotStore | None = None,
) -> GenerationReport:
    now = (now or datetime.now()).replace(second=0, microsecond=0)
    if horizon_days is None:
        horizon_days = config.SLOT_HORIZON_DAYS
    if duration_minutes is None:
        duration_minutes = config.SLOT_DURATION_MINUTES
    if duration_minutes <= 0:
        raise InvalidInputError('Slot duration must be positive.')
    if horizon_days < 0:
        raise InvalidInputError('Horizon cannot be negative.')
    schedules = schedules or ScheduleStore()
    slots = slots or SlotStore()

    report = GenerationReport()

    with transaction(db, 'generate_slots'):
        for schedule in schedules.all_schedules(db):
            report.schedules += 1

            problem = schedule_problem(schedule.start, schedule.over, schedule.break_start, schedule.break_end)
            if problem is None and not 1 <= schedule.weekday <= 7:
                problem = 'weekday must be between 1 and 7'
            if problem:
                logger.warning(
                    'Skipping schedule %s of worker %s: %s',
                    schedule.id,
                    schedule.worker_id,
                    problem,
                )
                report.skipped_schedule_ids.append(schedule.id)
                continue

            rows = schedule_slot_rows(schedule, now, horizon_days, duration_minutes)
            report.created += slots.insert_missing(db, rows)

    logger.info(
        'Slot generation finished: %s new slots from %s schedules (%s skipped)',
        report.created,
        report.schedules,
        len(report.skipped_schedule_ids),
    )
    return report

from datetime import date, datetime, time

import pytest

from timeline.core.errors import InvalidInputError
from timeline.models.schedule import WorkerSchedule
from timeline.models.slot import Slot
from timeline.services.slot_generator import (
    generate_slots,
    occurrence_days,
    schedule_problem,
    slot_bounds,
)

MONDAY = date(2026, 1, 5)
SUNDAY_EVENING = datetime(2026, 1, 4, 20, 0)


def add_schedule(db, seeded, weekday, start, over, break_start=None, break_end=None) -> WorkerSchedule:
    schedule = WorkerSchedule(
        org_id=seeded.org_id,
        worker_id=seeded.worker_id,
        weekday=weekday,
        start=start,
        over=over,
        break_start=break_start,
        break_end=break_end,
    )
    db.add(schedule)
    db.commit()
    return schedule


def slot_starts(db) -> list[datetime]:
    return [start for (start,) in db.query(Slot.start_time).order_by(Slot.start_time.asc()).all()]


def test_slot_bounds_skips_slots_overlapping_the_break() -> None:
    bounds = slot_bounds(MONDAY, time(9, 0), time(12, 0), time(10, 0), time(10, 30), 30)

    assert [start.time() for start, _ in bounds] == [
        time(9, 0),
        time(9, 30),
        time(10, 30),
        time(11, 0),
        time(11, 30),
    ]
    assert all((end - start).total_seconds() == 1800 for start, end in bounds)


def test_slot_bounds_drops_trailing_partial_interval() -> None:
    bounds = slot_bounds(MONDAY, time(9, 0), time(10, 45), None, None, 30)

    assert [start.time() for start, _ in bounds] == [time(9, 0), time(9, 30), time(10, 0)]
    assert bounds[-1][1] == datetime(2026, 1, 5, 10, 30)


def test_occurrence_days_matches_iso_weekday() -> None:
    days = occurrence_days(date(2026, 1, 1), 14, 1)

    assert days == [date(2026, 1, 5), date(2026, 1, 12)]


@pytest.mark.parametrize(
    ('start', 'over', 'break_start', 'break_end', 'problem'),
    [
        (time(12, 0), time(9, 0), None, None, 'end must be after start'),
        (time(9, 0), time(9, 0), None, None, 'end must be after start'),
        (time(9, 0), time(12, 0), time(10, 0), None, 'break needs both start and end'),
        (time(9, 0), time(12, 0), time(10, 30), time(10, 0), 'break end must be after break start'),
        (time(9, 0), time(12, 0), time(8, 0), time(9, 30), 'break must lie inside the working window'),
    ],
)
def test_schedule_problem_reports_malformed_windows(start, over, break_start, break_end, problem) -> None:
    assert schedule_problem(start, over, break_start, break_end) == problem


def test_schedule_problem_accepts_valid_window() -> None:
    assert schedule_problem(time(9, 0), time(18, 0), time(13, 0), time(14, 0)) is None


def test_generate_slots_builds_monday_scenario(db, seeded) -> None:
    add_schedule(db, seeded, 1, time(9, 0), time(12, 0), time(10, 0), time(10, 30))

    report = generate_slots(db, now=SUNDAY_EVENING, horizon_days=7, duration_minutes=30)

    assert report.created == 5
    assert slot_starts(db) == [
        datetime(2026, 1, 5, 9, 0),
        datetime(2026, 1, 5, 9, 30),
        datetime(2026, 1, 5, 10, 30),
        datetime(2026, 1, 5, 11, 0),
        datetime(2026, 1, 5, 11, 30),
    ]
    assert all(not slot.is_busy for slot in db.query(Slot).all())


def test_generate_slots_is_idempotent(db, seeded) -> None:
    add_schedule(db, seeded, 1, time(9, 0), time(12, 0), time(10, 0), time(10, 30))
    add_schedule(db, seeded, 3, time(14, 0), time(16, 0))

    first = generate_slots(db, now=SUNDAY_EVENING, horizon_days=14, duration_minutes=30)
    slots_after_first = slot_starts(db)
    second = generate_slots(db, now=SUNDAY_EVENING, horizon_days=14, duration_minutes=30)

    assert first.created == len(slots_after_first) == 2 * 5 + 2 * 4
    assert second.created == 0
    assert slot_starts(db) == slots_after_first


def test_generate_slots_keeps_busy_flag_of_existing_slots(db, seeded) -> None:
    add_schedule(db, seeded, 1, time(9, 0), time(10, 0))
    generate_slots(db, now=SUNDAY_EVENING, horizon_days=7, duration_minutes=30)

    slot = db.query(Slot).order_by(Slot.start_time.asc()).first()
    slot.is_busy = True
    db.commit()

    generate_slots(db, now=SUNDAY_EVENING, horizon_days=7, duration_minutes=30)

    db.expire_all()
    assert db.query(Slot).filter(Slot.is_busy.is_(True)).count() == 1
    assert db.query(Slot).count() == 2


def test_generate_slots_skips_malformed_schedule_and_continues(db, seeded, caplog) -> None:
    broken = add_schedule(db, seeded, 2, time(12, 0), time(9, 0))
    add_schedule(db, seeded, 1, time(9, 0), time(10, 0))

    report = generate_slots(db, now=SUNDAY_EVENING, horizon_days=7, duration_minutes=30)

    assert report.skipped_schedule_ids == [broken.id]
    assert report.created == 2
    assert 'end must be after start' in caplog.text


def test_generate_slots_does_not_create_slots_in_the_past(db, seeded) -> None:
    add_schedule(db, seeded, 1, time(9, 0), time(12, 0))

    generate_slots(db, now=datetime(2026, 1, 5, 10, 10), horizon_days=1, duration_minutes=30)

    assert slot_starts(db) == [
        datetime(2026, 1, 5, 10, 30),
        datetime(2026, 1, 5, 11, 0),
        datetime(2026, 1, 5, 11, 30),
    ]


def test_generate_slots_with_zero_horizon_creates_nothing(db, seeded) -> None:
    add_schedule(db, seeded, 1, time(9, 0), time(12, 0))

    report = generate_slots(db, now=SUNDAY_EVENING, horizon_days=0, duration_minutes=30)

    assert report.created == 0
    assert slot_starts(db) == []


def test_generate_slots_rejects_zero_duration(db, seeded) -> None:
    add_schedule(db, seeded, 1, time(9, 0), time(12, 0))

    with pytest.raises(InvalidInputError):
        generate_slots(db, now=SUNDAY_EVENING, horizon_days=7, duration_minutes=0)

    assert slot_starts(db) == []

from datetime import date, datetime, time

import pytest
from fastapi import HTTPException
from pydantic import ValidationError

from timeline.routes.schedule_routes import (
    ScheduleEntryRequest,
    ScheduleRequest,
    worker_schedule,
    worker_schedule_add,
    worker_slots,
)


@pytest.fixture(autouse=True)
def skip_schema_check(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr('timeline.routes.schedule_routes.ensure_database_ready', lambda: None)


@pytest.mark.parametrize(
    'payload',
    [
        {'weekday': 0, 'start': '09:00', 'over': '18:00'},
        {'weekday': 1, 'start': '18:00', 'over': '09:00'},
        {'weekday': 1, 'start': '09:00', 'over': '18:00', 'break_start': '13:00'},
    ],
)
def test_schedule_entry_request_rejects_malformed_entries(payload: dict) -> None:
    with pytest.raises(ValidationError):
        ScheduleEntryRequest(**payload)


def test_schedule_request_requires_entries() -> None:
    with pytest.raises(ValidationError):
        ScheduleRequest(schedule=[])


def test_worker_schedule_add_then_read(db, seeded) -> None:
    data = ScheduleRequest(schedule=[{'weekday': 2, 'start': '09:00', 'over': '12:00'}])

    created = worker_schedule_add(seeded.org_id, seeded.worker_id, data, db=db)
    listed = worker_schedule(seeded.org_id, seeded.worker_id, db=db)

    assert [entry.weekday for entry in created] == [2]
    assert listed[0].over == time(12, 0)


def test_worker_schedule_add_duplicate_weekday_conflicts(db, seeded) -> None:
    data = ScheduleRequest(schedule=[{'weekday': 2, 'start': '09:00', 'over': '12:00'}])
    worker_schedule_add(seeded.org_id, seeded.worker_id, data, db=db)

    with pytest.raises(HTTPException) as exception_info:
        worker_schedule_add(seeded.org_id, seeded.worker_id, data, db=db)

    assert exception_info.value.status_code == 409


def test_worker_slots_lists_range(db, seeded, make_slot) -> None:
    make_slot(datetime(2026, 1, 5, 9, 0))
    make_slot(datetime(2026, 1, 5, 9, 30), busy=True)

    slots = worker_slots(
        seeded.org_id,
        seeded.worker_id,
        date_from=date(2026, 1, 5),
        date_to=date(2026, 1, 5),
        db=db,
    )

    assert [(slot.start_time, slot.is_busy) for slot in slots] == [
        (datetime(2026, 1, 5, 9, 0), False),
        (datetime(2026, 1, 5, 9, 30), True),
    ]


def test_worker_slots_rejects_inverted_range(db, seeded) -> None:
    with pytest.raises(HTTPException) as exception_info:
        worker_slots(seeded.org_id, seeded.worker_id, date_from=date(2026, 1, 6), date_to=date(2026, 1, 5), db=db)

    assert exception_info.value.status_code == 400


def test_worker_slots_unknown_worker_is_not_found(db, seeded) -> None:
    with pytest.raises(HTTPException) as exception_info:
        worker_slots(seeded.org_id, 999, date_from=date(2026, 1, 5), date_to=date(2026, 1, 5), db=db)

    assert exception_info.value.status_code == 404

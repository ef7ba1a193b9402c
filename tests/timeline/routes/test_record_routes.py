from datetime import datetime, timedelta

import pytest
from fastapi import BackgroundTasks, HTTPException
from pydantic import ValidationError

from timeline.routes.record_routes import (
    CreateRecordRequest,
    FeedbackRequest,
    PatchRecordRequest,
    record,
    record_add,
    record_delete,
    record_list,
    record_patch,
)


@pytest.fixture(autouse=True)
def skip_schema_check(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr('timeline.routes.record_routes.ensure_database_ready', lambda: None)


@pytest.fixture
def future_slot(make_slot) -> int:
    start = (datetime.now() + timedelta(days=2)).replace(hour=9, minute=0, second=0, microsecond=0)
    return make_slot(start)


def create_request(seeded, slot_id: int) -> CreateRecordRequest:
    return CreateRecordRequest(
        org_id=seeded.org_id,
        user_id=seeded.user_id,
        slot_id=slot_id,
        service_id=seeded.service_id,
        worker_id=seeded.worker_id,
    )


def test_create_record_request_rejects_non_positive_ids() -> None:
    with pytest.raises(ValidationError):
        CreateRecordRequest(org_id=1, user_id=0, slot_id=1, service_id=1, worker_id=1)


@pytest.mark.parametrize('rating', [0, 6])
def test_feedback_request_rejects_rating_out_of_range(rating: int) -> None:
    with pytest.raises(ValidationError):
        FeedbackRequest(rating=rating)


def test_feedback_request_normalizes_blank_comment() -> None:
    assert FeedbackRequest(rating=4, comment='   ').comment is None


def test_record_add_sends_notification_in_background(db, seeded, future_slot, notifier) -> None:
    background_tasks = BackgroundTasks()

    response = record_add(create_request(seeded, future_slot), background_tasks, db=db, notifier=notifier)

    assert response.slot_id == future_slot
    assert response.reviewed is False
    assert notifier.sent == []
    assert len(background_tasks.tasks) == 1

    for task in background_tasks.tasks:
        task.func(*task.args, **task.kwargs)
    assert len(notifier.sent) == 1


def test_record_add_for_taken_slot_returns_stable_conflict(db, seeded, future_slot, notifier) -> None:
    record_add(create_request(seeded, future_slot), BackgroundTasks(), db=db, notifier=notifier)

    with pytest.raises(HTTPException) as exception_info:
        record_add(create_request(seeded, future_slot), BackgroundTasks(), db=db, notifier=notifier)

    assert exception_info.value.status_code == 409
    assert exception_info.value.detail['code'] == 'slot_unavailable'


def test_record_detail_includes_related_names(db, seeded, future_slot, notifier) -> None:
    created = record_add(create_request(seeded, future_slot), BackgroundTasks(), db=db, notifier=notifier)

    detail = record(record_id=created.id, db=db)

    assert detail.org_name == 'Fade Street'
    assert detail.service_name == 'Haircut'
    assert detail.worker_name == 'Anna Petrova'
    assert detail.user_email == seeded.user_email
    assert detail.feedback is None


def test_record_list_requires_owner_filter(db, seeded) -> None:
    with pytest.raises(HTTPException) as exception_info:
        record_list(org_id=None, user_id=None, reviewed=None, limit=20, offset=0, db=db)

    assert exception_info.value.status_code == 400


def test_record_patch_and_delete(db, seeded, future_slot, notifier) -> None:
    created = record_add(create_request(seeded, future_slot), BackgroundTasks(), db=db, notifier=notifier)

    with pytest.raises(HTTPException) as exception_info:
        record_patch(record_id=created.id, data=PatchRecordRequest(reviewed=True), db=db)
    assert exception_info.value.status_code == 400

    patched = record_patch(record_id=created.id, data=PatchRecordRequest(reviewed=False), db=db)
    assert patched.reviewed is False

    record_delete(record_id=created.id, db=db)

    listed = record_list(org_id=seeded.org_id, user_id=None, reviewed=None, limit=20, offset=0, db=db)
    assert listed.found == 0

    with pytest.raises(HTTPException) as exception_info:
        record_delete(record_id=created.id, db=db)
    assert exception_info.value.status_code == 404

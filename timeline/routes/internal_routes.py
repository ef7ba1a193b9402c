"""Trigger endpoints for the cron/scheduler collaborator.

Guarded by the ``X-Internal-Token`` header when ``INTERNAL_API_TOKEN`` is set.
"""

from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlalchemy.orm import Session

from timeline.core.errors import TimelineError
from timeline.database import SessionLocal
from timeline.routes.common import ensure_database_ready, get_db, http_error, require_internal_token
from timeline.services.notifications import Notifier, get_notifier
from timeline.services.reminders import send_upcoming_reminders
from timeline.services.slot_generator import generate_slots
from timeline.services.sweeper import sweep

router = APIRouter(prefix='/internal', tags=['internal'], dependencies=[Depends(require_internal_token)])


class GenerationResponse(BaseModel):
    created: int
    schedules: int
    skipped_schedule_ids: list[int]


class SweepResponse(BaseModel):
    deleted: dict[str, int]
    failed: list[str]


class ReminderResponse(BaseModel):
    sent: int


def get_session_factory():
    return SessionLocal


@router.post('/slots/generate', response_model=GenerationResponse)
def trigger_generation(db: Session = Depends(get_db)):
    ensure_database_ready()

    try:
        report = generate_slots(db)
    except TimelineError as exc:
        raise http_error(exc) from exc

    return GenerationResponse(
        created=report.created,
        schedules=report.schedules,
        skipped_schedule_ids=report.skipped_schedule_ids,
    )


@router.post('/sweep', response_model=SweepResponse)
def trigger_sweep(session_factory=Depends(get_session_factory)):
    ensure_database_ready()

    report = sweep(session_factory)
    return SweepResponse(deleted=report.deleted, failed=report.failed)


@router.post('/reminders', response_model=ReminderResponse)
def trigger_reminders(db: Session = Depends(get_db), notifier: Notifier = Depends(get_notifier)):
    ensure_database_ready()

    try:
        sent = send_upcoming_reminders(db, notifier)
    except TimelineError as exc:
        raise http_error(exc) from exc

    return ReminderResponse(sent=sent)

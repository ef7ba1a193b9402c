from datetime import datetime

from fastapi import APIRouter, BackgroundTasks, Depends, Query, status
from pydantic import BaseModel, field_validator
from sqlalchemy.orm import Session

from timeline.core.errors import TimelineError
from timeline.routes.common import ensure_database_ready, get_db, http_error
from timeline.services.booking import BookingService, NewRecord
from timeline.services.notifications import Notifier, get_notifier

router = APIRouter(tags=['records'])

MAX_COMMENT_LENGTH = 1000
MAX_PAGE_SIZE = 100


class CreateRecordRequest(BaseModel):
    org_id: int
    user_id: int
    slot_id: int
    service_id: int
    worker_id: int

    @field_validator('org_id', 'user_id', 'slot_id', 'service_id', 'worker_id')
    @classmethod
    def validate_identifier(cls, value: int) -> int:
        if value <= 0:
            raise ValueError('Identifiers must be positive.')
        return value


class PatchRecordRequest(BaseModel):
    reviewed: bool


class FeedbackRequest(BaseModel):
    rating: int
    comment: str | None = None

    @field_validator('rating')
    @classmethod
    def validate_rating(cls, value: int) -> int:
        if not 1 <= value <= 5:
            raise ValueError('Rating must be between 1 and 5.')
        return value

    @field_validator('comment')
    @classmethod
    def validate_comment(cls, value: str | None) -> str | None:
        if value is None:
            return None

        normalized = value.strip()
        if not normalized:
            return None

        if len(normalized) > MAX_COMMENT_LENGTH:
            raise ValueError(f'Comment must be {MAX_COMMENT_LENGTH} characters or fewer.')

        return normalized


class FeedbackResponse(BaseModel):
    record_id: int
    rating: int
    comment: str | None = None

    class Config:
        from_attributes = True


class RecordResponse(BaseModel):
    id: int
    org_id: int
    user_id: int
    slot_id: int
    service_id: int
    worker_id: int
    reviewed: bool

    class Config:
        from_attributes = True


class RecordSummaryResponse(RecordResponse):
    start_time: datetime
    end_time: datetime
    feedback: FeedbackResponse | None = None


class RecordDetailResponse(RecordSummaryResponse):
    org_name: str | None = None
    user_email: str | None = None
    service_name: str | None = None
    worker_name: str | None = None


class RecordListResponse(BaseModel):
    records: list[RecordSummaryResponse]
    found: int


def record_summary(record) -> RecordSummaryResponse:
    return RecordSummaryResponse(
        id=record.id,
        org_id=record.org_id,
        user_id=record.user_id,
        slot_id=record.slot_id,
        service_id=record.service_id,
        worker_id=record.worker_id,
        reviewed=record.reviewed,
        start_time=record.slot.start_time,
        end_time=record.slot.end_time,
        feedback=FeedbackResponse.model_validate(record.feedback) if record.feedback else None,
    )


def record_detail(record) -> RecordDetailResponse:
    summary = record_summary(record)
    worker_name = ' '.join(part for part in (record.worker.first_name, record.worker.last_name) if part)
    return RecordDetailResponse(
        **summary.model_dump(),
        org_name=record.org.name,
        user_email=record.user.email,
        service_name=record.service.name,
        worker_name=worker_name or None,
    )


@router.post('/records', response_model=RecordResponse, status_code=status.HTTP_201_CREATED)
def record_add(
    data: CreateRecordRequest,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    notifier: Notifier = Depends(get_notifier),
):
    ensure_database_ready()

    try:
        record = BookingService(db, notifier=notifier, dispatch=background_tasks.add_task).record_add(
            NewRecord(
                org_id=data.org_id,
                user_id=data.user_id,
                slot_id=data.slot_id,
                service_id=data.service_id,
                worker_id=data.worker_id,
            )
        )
        return RecordResponse.model_validate(record)
    except TimelineError as exc:
        raise http_error(exc) from exc


@router.get('/records', response_model=RecordListResponse)
def record_list(
    org_id: int | None = Query(default=None),
    user_id: int | None = Query(default=None),
    reviewed: bool | None = Query(default=None),
    limit: int = Query(default=20, ge=1, le=MAX_PAGE_SIZE),
    offset: int = Query(default=0, ge=0),
    db: Session = Depends(get_db),
):
    ensure_database_ready()

    try:
        records, found = BookingService(db).record_list(org_id, user_id, reviewed, limit, offset)
        return RecordListResponse(records=[record_summary(record) for record in records], found=found)
    except TimelineError as exc:
        raise http_error(exc) from exc


@router.get('/records/{record_id}', response_model=RecordDetailResponse)
def record(record_id: int, db: Session = Depends(get_db)):
    ensure_database_ready()

    try:
        return record_detail(BookingService(db).record(record_id))
    except TimelineError as exc:
        raise http_error(exc) from exc


@router.patch('/records/{record_id}', response_model=RecordResponse)
def record_patch(record_id: int, data: PatchRecordRequest, db: Session = Depends(get_db)):
    ensure_database_ready()

    try:
        return RecordResponse.model_validate(BookingService(db).record_patch(record_id, data.reviewed))
    except TimelineError as exc:
        raise http_error(exc) from exc


@router.delete('/records/{record_id}', status_code=status.HTTP_204_NO_CONTENT)
def record_delete(record_id: int, db: Session = Depends(get_db)):
    ensure_database_ready()

    try:
        BookingService(db).record_delete(record_id)
    except TimelineError as exc:
        raise http_error(exc) from exc


@router.post(
    '/records/{record_id}/feedback',
    response_model=FeedbackResponse,
    status_code=status.HTTP_201_CREATED,
)
def feedback_add(record_id: int, data: FeedbackRequest, db: Session = Depends(get_db)):
    ensure_database_ready()

    try:
        feedback = BookingService(db).feedback_add(record_id, data.rating, data.comment)
        return FeedbackResponse.model_validate(feedback)
    except TimelineError as exc:
        raise http_error(exc) from exc

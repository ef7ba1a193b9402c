from datetime import date, datetime, time, timedelta

from fastapi import APIRouter, Depends, HTTPException, Query, status
from pydantic import BaseModel, field_validator, model_validator
from sqlalchemy.orm import Session

from timeline.core import config
from timeline.core.errors import NotFoundError, TimelineError
from timeline.database import transaction
from timeline.routes.common import ensure_database_ready, get_db, http_error
from timeline.services.schedules import ScheduleEntry, ScheduleService
from timeline.stores.catalog import CatalogStore
from timeline.stores.slots import SlotStore

router = APIRouter(tags=['schedules'])

MAX_SLOT_RANGE_DAYS = 31

catalog = CatalogStore()
slot_store = SlotStore()


class ScheduleEntryRequest(BaseModel):
    weekday: int
    start: time
    over: time
    break_start: time | None = None
    break_end: time | None = None

    @field_validator('weekday')
    @classmethod
    def validate_weekday(cls, value: int) -> int:
        if not 1 <= value <= 7:
            raise ValueError('Weekday must be between 1 (Monday) and 7 (Sunday).')
        return value

    @model_validator(mode='after')
    def validate_window(self) -> 'ScheduleEntryRequest':
        if self.over <= self.start:
            raise ValueError('Schedule end must be after its start.')
        if (self.break_start is None) != (self.break_end is None):
            raise ValueError('Break needs both a start and an end.')
        return self

    def to_entry(self) -> ScheduleEntry:
        return ScheduleEntry(
            weekday=self.weekday,
            start=self.start,
            over=self.over,
            break_start=self.break_start,
            break_end=self.break_end,
        )


class ScheduleRequest(BaseModel):
    schedule: list[ScheduleEntryRequest]

    @field_validator('schedule')
    @classmethod
    def validate_schedule(cls, value: list[ScheduleEntryRequest]) -> list[ScheduleEntryRequest]:
        if not value:
            raise ValueError('At least one weekday is required.')
        return value


class ScheduleEntryResponse(BaseModel):
    id: int
    worker_id: int
    org_id: int
    weekday: int
    start: time
    over: time
    break_start: time | None = None
    break_end: time | None = None

    class Config:
        from_attributes = True


class SlotResponse(BaseModel):
    id: int
    worker_id: int
    org_id: int
    start_time: datetime
    end_time: datetime
    is_busy: bool

    class Config:
        from_attributes = True


@router.get('/orgs/{org_id}/workers/{worker_id}/schedule', response_model=list[ScheduleEntryResponse])
def worker_schedule(org_id: int, worker_id: int, db: Session = Depends(get_db)):
    ensure_database_ready()

    try:
        entries = ScheduleService(db).schedule(org_id, worker_id)
        return [ScheduleEntryResponse.model_validate(entry) for entry in entries]
    except TimelineError as exc:
        raise http_error(exc) from exc


@router.post(
    '/orgs/{org_id}/workers/{worker_id}/schedule',
    response_model=list[ScheduleEntryResponse],
    status_code=status.HTTP_201_CREATED,
)
def worker_schedule_add(org_id: int, worker_id: int, data: ScheduleRequest, db: Session = Depends(get_db)):
    ensure_database_ready()

    try:
        entries = ScheduleService(db).schedule_add(org_id, worker_id, [item.to_entry() for item in data.schedule])
        return [ScheduleEntryResponse.model_validate(entry) for entry in entries]
    except TimelineError as exc:
        raise http_error(exc) from exc


@router.put('/orgs/{org_id}/workers/{worker_id}/schedule', response_model=list[ScheduleEntryResponse])
def worker_schedule_update(org_id: int, worker_id: int, data: ScheduleRequest, db: Session = Depends(get_db)):
    ensure_database_ready()

    try:
        entries = ScheduleService(db).schedule_update(org_id, worker_id, [item.to_entry() for item in data.schedule])
        return [ScheduleEntryResponse.model_validate(entry) for entry in entries]
    except TimelineError as exc:
        raise http_error(exc) from exc


@router.delete('/orgs/{org_id}/workers/{worker_id}/schedule', status_code=status.HTTP_204_NO_CONTENT)
def worker_schedule_delete(
    org_id: int,
    worker_id: int,
    weekday: int | None = Query(default=None, ge=1, le=7),
    db: Session = Depends(get_db),
):
    ensure_database_ready()

    try:
        ScheduleService(db).schedule_delete(org_id, worker_id, weekday)
    except TimelineError as exc:
        raise http_error(exc) from exc


@router.get('/orgs/{org_id}/workers/{worker_id}/slots', response_model=list[SlotResponse])
def worker_slots(
    org_id: int,
    worker_id: int,
    date_from: date | None = Query(default=None),
    date_to: date | None = Query(default=None),
    db: Session = Depends(get_db),
):
    date_from = date_from or date.today()
    date_to = date_to or date_from + timedelta(days=config.SLOT_HORIZON_DAYS - 1)

    if date_to < date_from:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail='date_to must not be before date_from.',
        )
    if (date_to - date_from).days >= MAX_SLOT_RANGE_DAYS:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f'Slots can be listed for at most {MAX_SLOT_RANGE_DAYS} days at a time.',
        )

    ensure_database_ready()

    try:
        with transaction(db, 'slots'):
            if catalog.worker(db, org_id, worker_id) is None:
                raise NotFoundError(f'Worker {worker_id} not found.')
            slots = slot_store.slots(db, worker_id, date_from, date_to)
            return [SlotResponse.model_validate(slot) for slot in slots]
    except TimelineError as exc:
        raise http_error(exc) from exc

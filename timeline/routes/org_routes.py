from fastapi import APIRouter, Depends, HTTPException, Query, status
from pydantic import BaseModel
from sqlalchemy.orm import Session

from timeline.core.errors import TimelineError
from timeline.database import transaction
from timeline.routes.common import ensure_database_ready, get_db, http_error
from timeline.stores.accounts import AccountStore

router = APIRouter(tags=['orgs'])

MAX_PAGE_SIZE = 100

accounts = AccountStore()


class OrgResponse(BaseModel):
    id: int
    name: str | None = None
    type: str | None = None
    address: str | None = None
    lat: float | None = None
    long: float | None = None

    class Config:
        from_attributes = True


class OrgSearchResponse(BaseModel):
    orgs: list[OrgResponse]
    found: int


@router.get('/orgs', response_model=OrgSearchResponse)
def org_search(
    name: str | None = Query(default=None, max_length=100),
    type: str | None = Query(default=None, max_length=100),
    limit: int = Query(default=20, ge=1, le=MAX_PAGE_SIZE),
    offset: int = Query(default=0, ge=0),
    db: Session = Depends(get_db),
):
    ensure_database_ready()

    try:
        with transaction(db, 'org_search'):
            orgs, found = accounts.orgs_by_search(db, name, type, limit, offset)
            return OrgSearchResponse(orgs=[OrgResponse.model_validate(org) for org in orgs], found=found)
    except TimelineError as exc:
        raise http_error(exc) from exc


@router.get('/orgs/area', response_model=list[OrgResponse])
def orgs_in_area(
    min_lat: float = Query(ge=-90, le=90),
    min_long: float = Query(ge=-180, le=180),
    max_lat: float = Query(ge=-90, le=90),
    max_long: float = Query(ge=-180, le=180),
    db: Session = Depends(get_db),
):
    if min_lat > max_lat or min_long > max_long:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail='The lower corner of the area must not lie above or right of the upper corner.',
        )

    ensure_database_ready()

    try:
        with transaction(db, 'orgs_in_area'):
            orgs = accounts.orgs_in_area(db, min_lat, min_long, max_lat, max_long)
            return [OrgResponse.model_validate(org) for org in orgs]
    except TimelineError as exc:
        raise http_error(exc) from exc

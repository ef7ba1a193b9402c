from decimal import Decimal

from fastapi import APIRouter, Depends, status
from pydantic import BaseModel, field_validator
from sqlalchemy.orm import Session

from timeline.core.errors import ConflictError, NotFoundError, TimelineError
from timeline.database import transaction
from timeline.models.catalog import Service, Worker
from timeline.models.record import Record
from timeline.routes.common import ensure_database_ready, get_db, http_error
from timeline.stores.accounts import AccountStore
from timeline.stores.catalog import CatalogStore

router = APIRouter(tags=['catalog'])

MAX_SERVICE_NAME_LENGTH = 100
MAX_DESCRIPTION_LENGTH = 1500

catalog = CatalogStore()
accounts = AccountStore()


class ServiceRequest(BaseModel):
    name: str
    cost: Decimal | None = None
    description: str | None = None

    @field_validator('name')
    @classmethod
    def validate_name(cls, value: str) -> str:
        normalized = value.strip()
        if not normalized:
            raise ValueError('Service name is required.')
        if len(normalized) > MAX_SERVICE_NAME_LENGTH:
            raise ValueError(f'Service name must be {MAX_SERVICE_NAME_LENGTH} characters or fewer.')
        return normalized

    @field_validator('cost')
    @classmethod
    def validate_cost(cls, value: Decimal | None) -> Decimal | None:
        if value is not None and value < 0:
            raise ValueError('Cost cannot be negative.')
        return value

    @field_validator('description')
    @classmethod
    def validate_description(cls, value: str | None) -> str | None:
        if value is None:
            return None
        normalized = value.strip()
        if len(normalized) > MAX_DESCRIPTION_LENGTH:
            raise ValueError(f'Description must be {MAX_DESCRIPTION_LENGTH} characters or fewer.')
        return normalized or None


class ServiceResponse(BaseModel):
    id: int
    org_id: int
    name: str
    cost: Decimal | None = None
    description: str | None = None

    class Config:
        from_attributes = True


class WorkerRequest(BaseModel):
    first_name: str
    last_name: str
    position: str
    degree: str | None = None

    @field_validator('first_name', 'last_name', 'position')
    @classmethod
    def validate_required(cls, value: str) -> str:
        normalized = value.strip()
        if not normalized:
            raise ValueError('Field is required.')
        return normalized


class WorkerResponse(BaseModel):
    id: int
    org_id: int
    first_name: str
    last_name: str
    position: str
    degree: str | None = None

    class Config:
        from_attributes = True


def require_org(org_id: int, db: Session) -> None:
    if accounts.org(db, org_id) is None:
        raise NotFoundError(f'Organization {org_id} not found.')


def require_service(org_id: int, service_id: int, db: Session) -> Service:
    service = catalog.service(db, org_id, service_id)
    if service is None:
        raise NotFoundError(f'Service {service_id} not found.')
    return service


@router.get('/orgs/{org_id}/services', response_model=list[ServiceResponse])
def service_list(org_id: int, db: Session = Depends(get_db)):
    ensure_database_ready()

    try:
        with transaction(db, 'service_list'):
            require_org(org_id, db)
            services = catalog.service_list(db, org_id)
        return [ServiceResponse.model_validate(service) for service in services]
    except TimelineError as exc:
        raise http_error(exc) from exc


@router.post('/orgs/{org_id}/services', response_model=ServiceResponse, status_code=status.HTTP_201_CREATED)
def service_add(org_id: int, data: ServiceRequest, db: Session = Depends(get_db)):
    ensure_database_ready()

    try:
        with transaction(db, 'service_add'):
            require_org(org_id, db)
            service = catalog.service_add(
                db,
                Service(org_id=org_id, name=data.name, cost=data.cost, description=data.description),
            )
        return ServiceResponse.model_validate(service)
    except TimelineError as exc:
        raise http_error(exc) from exc


@router.get('/orgs/{org_id}/services/{service_id}', response_model=ServiceResponse)
def service_detail(org_id: int, service_id: int, db: Session = Depends(get_db)):
    ensure_database_ready()

    try:
        with transaction(db, 'service'):
            found = require_service(org_id, service_id, db)
        return ServiceResponse.model_validate(found)
    except TimelineError as exc:
        raise http_error(exc) from exc


@router.put('/orgs/{org_id}/services/{service_id}', response_model=ServiceResponse)
def service_update(org_id: int, service_id: int, data: ServiceRequest, db: Session = Depends(get_db)):
    ensure_database_ready()

    try:
        with transaction(db, 'service_update'):
            found = require_service(org_id, service_id, db)
            found.name = data.name
            found.cost = data.cost
            found.description = data.description
        return ServiceResponse.model_validate(found)
    except TimelineError as exc:
        raise http_error(exc) from exc


@router.delete('/orgs/{org_id}/services/{service_id}', status_code=status.HTTP_204_NO_CONTENT)
def service_delete(org_id: int, service_id: int, db: Session = Depends(get_db)):
    ensure_database_ready()

    try:
        with transaction(db, 'service_delete'):
            require_service(org_id, service_id, db)
            if db.query(Record).filter(Record.service_id == service_id).count() > 0:
                raise ConflictError('Service has booked records; cancel them first.')
            catalog.service_delete(db, org_id, service_id)
    except TimelineError as exc:
        raise http_error(exc) from exc


@router.get('/orgs/{org_id}/services/{service_id}/workers', response_model=list[WorkerResponse])
def service_workers(org_id: int, service_id: int, db: Session = Depends(get_db)):
    ensure_database_ready()

    try:
        with transaction(db, 'service_workers'):
            require_service(org_id, service_id, db)
            workers = catalog.service_workers(db, org_id, service_id)
        return [WorkerResponse.model_validate(worker) for worker in workers]
    except TimelineError as exc:
        raise http_error(exc) from exc


@router.get('/orgs/{org_id}/workers', response_model=list[WorkerResponse])
def worker_list(org_id: int, db: Session = Depends(get_db)):
    ensure_database_ready()

    try:
        with transaction(db, 'worker_list'):
            require_org(org_id, db)
            workers = catalog.workers(db, org_id)
        return [WorkerResponse.model_validate(worker) for worker in workers]
    except TimelineError as exc:
        raise http_error(exc) from exc


@router.post('/orgs/{org_id}/workers', response_model=WorkerResponse, status_code=status.HTTP_201_CREATED)
def worker_add(org_id: int, data: WorkerRequest, db: Session = Depends(get_db)):
    ensure_database_ready()

    try:
        with transaction(db, 'worker_add'):
            require_org(org_id, db)
            worker = catalog.worker_add(
                db,
                Worker(
                    org_id=org_id,
                    first_name=data.first_name,
                    last_name=data.last_name,
                    position=data.position,
                    degree=data.degree,
                ),
            )
        return WorkerResponse.model_validate(worker)
    except TimelineError as exc:
        raise http_error(exc) from exc


@router.post(
    '/orgs/{org_id}/workers/{worker_id}/services/{service_id}',
    status_code=status.HTTP_204_NO_CONTENT,
)
def worker_assign_service(org_id: int, worker_id: int, service_id: int, db: Session = Depends(get_db)):
    ensure_database_ready()

    try:
        with transaction(db, 'worker_assign_service'):
            if catalog.worker(db, org_id, worker_id) is None:
                raise NotFoundError(f'Worker {worker_id} not found.')
            require_service(org_id, service_id, db)
            catalog.worker_assign_service(db, worker_id, service_id)
    except TimelineError as exc:
        raise http_error(exc) from exc

import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy.exc import SQLAlchemyError

from timeline import jobs
from timeline.core import config
from timeline.database import Base, engine, ensure_booking_schema
from timeline.models import account, catalog, record, schedule, slot  # noqa: F401
from timeline.routes import catalog_routes, internal_routes, org_routes, record_routes, schedule_routes

logging.basicConfig(
    level=config.LOG_LEVEL,
    format='%(asctime)s %(levelname)s %(name)s: %(message)s',
)

config.validate_runtime_config()

app = FastAPI(title='Timeline Booking API')

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=['*'],
    allow_headers=['*'],
)

logger = logging.getLogger(__name__)

_job_tasks = []


@app.on_event('startup')
def initialize_database() -> None:
    try:
        Base.metadata.create_all(bind=engine)
        ensure_booking_schema()
    except SQLAlchemyError:
        logger.exception('Database initialization failed. Check DATABASE_URL and Postgres credentials.')


@app.on_event('startup')
async def start_periodic_jobs() -> None:
    if config.JOBS_ENABLED:
        _job_tasks.extend(jobs.start_jobs())


@app.on_event('shutdown')
async def stop_periodic_jobs() -> None:
    await jobs.stop_jobs(_job_tasks)
    _job_tasks.clear()


@app.get('/')
def root():
    return {'status': 'Timeline Booking API Running'}


app.include_router(org_routes.router)
app.include_router(catalog_routes.router)
app.include_router(schedule_routes.router)
app.include_router(record_routes.router)
app.include_router(internal_routes.router)

from fastapi import Header, HTTPException, status
from sqlalchemy.exc import SQLAlchemyError

from timeline.core import config
from timeline.core.errors import (
    ConflictError,
    InvalidInputError,
    NotFoundError,
    StoreUnavailableError,
    TimelineError,
)
from timeline.database import SessionLocal, ensure_booking_schema

DATABASE_UNAVAILABLE = 'Database unavailable. Verify DATABASE_URL and Postgres credentials.'

_STATUS_BY_ERROR = [
    (NotFoundError, status.HTTP_404_NOT_FOUND),
    (ConflictError, status.HTTP_409_CONFLICT),
    (InvalidInputError, status.HTTP_400_BAD_REQUEST),
    (StoreUnavailableError, status.HTTP_503_SERVICE_UNAVAILABLE),
]


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def ensure_database_ready() -> None:
    try:
        ensure_booking_schema()
    except SQLAlchemyError as exc:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=DATABASE_UNAVAILABLE,
        ) from exc


def http_error(exc: TimelineError) -> HTTPException:
    """HTTP response for a domain error. The ``code`` lets clients tell a taken slot apart."""
    for error_type, status_code in _STATUS_BY_ERROR:
        if isinstance(exc, error_type):
            if isinstance(exc, StoreUnavailableError):
                return HTTPException(status_code=status_code, detail=DATABASE_UNAVAILABLE)
            return HTTPException(status_code=status_code, detail={'code': exc.code, 'message': exc.message})

    return HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=exc.message)


def require_internal_token(x_internal_token: str | None = Header(default=None)) -> None:
    if config.INTERNAL_API_TOKEN and x_internal_token != config.INTERNAL_API_TOKEN:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail='Internal endpoints require a valid X-Internal-Token header.',
        )

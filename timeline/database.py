from contextlib import contextmanager
from threading import Lock
from typing import Iterator

from sqlalchemy import create_engine, event, inspect, text
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session, declarative_base, sessionmaker

from timeline.core import config
from timeline.core.errors import ConflictError, StoreUnavailableError


def engine_options(url: str) -> dict:
    if url.startswith('sqlite'):
        return {'connect_args': {'check_same_thread': False}}

    return {
        'pool_pre_ping': True,
        'pool_timeout': config.DB_POOL_TIMEOUT_SECONDS,
        'connect_args': {'options': f'-c statement_timeout={config.DB_STATEMENT_TIMEOUT_MS}'},
    }


def build_engine(url: str):
    built = create_engine(url, **engine_options(url))

    if built.dialect.name == 'sqlite':
        @event.listens_for(built, 'connect')
        def enable_sqlite_fk(dbapi_connection, _):
            cursor = dbapi_connection.cursor()
            cursor.execute('PRAGMA foreign_keys=ON')
            cursor.close()

    return built


engine = build_engine(config.DATABASE_URL)

SessionLocal = sessionmaker(
    autocommit=False,
    autoflush=False,
    bind=engine,
)

Base = declarative_base()


@contextmanager
def transaction(db: Session, operation: str) -> Iterator[Session]:
    """Run one unit of work: commit on success, roll back on any exit path."""
    try:
        yield db
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        raise ConflictError(f'{operation}: conflicting write.') from exc
    except SQLAlchemyError as exc:
        db.rollback()
        raise StoreUnavailableError(f'{operation}: database unavailable.') from exc
    except Exception:
        db.rollback()
        raise


_schema_lock = Lock()
_booking_schema_checked = False


def ensure_booking_schema(bind=None) -> None:
    global _booking_schema_checked

    if _booking_schema_checked:
        return

    with _schema_lock:
        if _booking_schema_checked:
            return

        bind = bind or engine
        inspector = inspect(bind)
        table_names = set(inspector.get_table_names())

        with bind.begin() as connection:
            if 'orgs' in table_names:
                existing_columns = {column['name'] for column in inspector.get_columns('orgs')}
                migration_steps = [
                    ('type', 'ALTER TABLE orgs ADD COLUMN type VARCHAR'),
                    ('address', 'ALTER TABLE orgs ADD COLUMN address VARCHAR'),
                    ('lat', 'ALTER TABLE orgs ADD COLUMN lat FLOAT'),
                    ('long', 'ALTER TABLE orgs ADD COLUMN long FLOAT'),
                ]
                for column_name, statement in migration_steps:
                    if column_name not in existing_columns:
                        connection.execute(text(statement))

            if 'records' in table_names:
                existing_columns = {column['name'] for column in inspector.get_columns('records')}
                migration_steps = [
                    ('reviewed', 'ALTER TABLE records ADD COLUMN reviewed BOOLEAN DEFAULT FALSE'),
                    ('reminder_sent', 'ALTER TABLE records ADD COLUMN reminder_sent BOOLEAN DEFAULT FALSE'),
                ]
                for column_name, statement in migration_steps:
                    if column_name not in existing_columns:
                        connection.execute(text(statement))
                connection.execute(
                    text('CREATE UNIQUE INDEX IF NOT EXISTS uq_records_slot ON records(slot_id)')
                )

            if 'slots' in table_names:
                connection.execute(
                    text('CREATE UNIQUE INDEX IF NOT EXISTS uq_slots_worker_start ON slots(worker_id, start_time)')
                )
                connection.execute(
                    text('CREATE INDEX IF NOT EXISTS idx_slots_end_time ON slots(end_time)')
                )

            if 'worker_schedules' in table_names:
                connection.execute(
                    text(
                        'CREATE UNIQUE INDEX IF NOT EXISTS uq_worker_schedules_weekday '
                        'ON worker_schedules(worker_id, weekday)'
                    )
                )

        _booking_schema_checked = True

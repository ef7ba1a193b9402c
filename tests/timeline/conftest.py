import os
from datetime import datetime, timedelta
from decimal import Decimal
from types import SimpleNamespace

import pytest
from sqlalchemy.orm import sessionmaker

os.environ.setdefault('DATABASE_URL', 'sqlite:///./test.db')

from timeline.database import Base, build_engine  # noqa: E402
from timeline.models.account import Organization, User  # noqa: E402
from timeline.models.catalog import Service, Worker, WorkerService  # noqa: E402
from timeline.models.record import Record  # noqa: E402,F401
from timeline.models.schedule import WorkerSchedule  # noqa: E402,F401
from timeline.models.slot import Slot  # noqa: E402


class RecordingNotifier:
    def __init__(self, fail: bool = False):
        self.fail = fail
        self.sent = []

    def send_message(self, recipient, template_type, payload, attach=False):
        if self.fail:
            raise ConnectionError('mail server is down')
        self.sent.append((recipient, template_type, payload, attach))


@pytest.fixture
def session_factory(tmp_path):
    engine = build_engine(f'sqlite:///{tmp_path / "timeline.db"}')
    Base.metadata.create_all(bind=engine)
    try:
        yield sessionmaker(autocommit=False, autoflush=False, bind=engine)
    finally:
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def seeded(db):
    org = Organization(email='barber@example.com', name='Fade Street', verified=True)
    user = User(email='client@example.com', name='Client', verified=True)
    db.add_all([org, user])
    db.flush()

    worker = Worker(org_id=org.id, first_name='Anna', last_name='Petrova', position='Barber')
    service = Service(org_id=org.id, name='Haircut', cost=Decimal('25.00'))
    db.add_all([worker, service])
    db.flush()

    db.add(WorkerService(worker_id=worker.id, service_id=service.id))
    db.commit()

    return SimpleNamespace(
        org_id=org.id,
        user_id=user.id,
        user_email=user.email,
        worker_id=worker.id,
        service_id=service.id,
    )


@pytest.fixture
def make_slot(db, seeded):
    def _make_slot(start_time: datetime, minutes: int = 30, busy: bool = False) -> int:
        slot = Slot(
            worker_id=seeded.worker_id,
            org_id=seeded.org_id,
            start_time=start_time,
            end_time=start_time + timedelta(minutes=minutes),
            is_busy=busy,
        )
        db.add(slot)
        db.commit()
        return slot.id

    return _make_slot


@pytest.fixture
def notifier():
    return RecordingNotifier()


@pytest.fixture
def failing_notifier():
    return RecordingNotifier(fail=True)

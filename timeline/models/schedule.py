"""Weekly worker schedule definitions."""

from sqlalchemy import Column, ForeignKey, Index, Integer, Time

from timeline.database import Base


class WorkerSchedule(Base):
    """Recurring availability of one worker on one ISO weekday (Monday=1)."""
    __tablename__ = "worker_schedules"
    __table_args__ = (
        Index("uq_worker_schedules_weekday", "worker_id", "weekday", unique=True),
    )

    id = Column(Integer, primary_key=True)
    worker_id = Column(Integer, ForeignKey("workers.id", ondelete="CASCADE"), nullable=False)
    org_id = Column(Integer, ForeignKey("orgs.id", ondelete="CASCADE"), nullable=False, index=True)
    weekday = Column(Integer, nullable=False)
    start = Column(Time, nullable=False)
    over = Column(Time, nullable=False)
    break_start = Column(Time, nullable=True)
    break_end = Column(Time, nullable=True)

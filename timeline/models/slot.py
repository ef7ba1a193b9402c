"""Slot model definitions."""

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Index, Integer

from timeline.database import Base


class Slot(Base):
    """A concrete bookable interval generated from a worker schedule."""
    __tablename__ = "slots"
    __table_args__ = (
        Index("uq_slots_worker_start", "worker_id", "start_time", unique=True),
        Index("idx_slots_end_time", "end_time"),
    )

    id = Column(Integer, primary_key=True)
    worker_id = Column(Integer, ForeignKey("workers.id", ondelete="CASCADE"), nullable=False)
    org_id = Column(Integer, ForeignKey("orgs.id", ondelete="CASCADE"), nullable=False, index=True)
    start_time = Column(DateTime, nullable=False)
    end_time = Column(DateTime, nullable=False)
    is_busy = Column(Boolean, nullable=False, default=False)

"""Booking record and feedback definitions."""

from datetime import datetime

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Index, Integer, String
from sqlalchemy.orm import relationship

from timeline.database import Base
from timeline.models.account import Organization, User
from timeline.models.catalog import Service, Worker
from timeline.models.slot import Slot


class Record(Base):
    """A booking of one slot by one user for one service."""
    __tablename__ = "records"
    __table_args__ = (
        Index("uq_records_slot", "slot_id", unique=True),
    )

    id = Column(Integer, primary_key=True)
    org_id = Column(Integer, ForeignKey("orgs.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    slot_id = Column(Integer, ForeignKey("slots.id", ondelete="CASCADE"), nullable=False)
    service_id = Column(Integer, ForeignKey("services.id", ondelete="CASCADE"), nullable=False)
    worker_id = Column(Integer, ForeignKey("workers.id", ondelete="CASCADE"), nullable=False)
    reviewed = Column(Boolean, nullable=False, default=False)
    reminder_sent = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime, default=datetime.now)

    org = relationship(Organization)
    user = relationship(User)
    slot = relationship(Slot)
    service = relationship(Service)
    worker = relationship(Worker)
    feedback = relationship("Feedback", uselist=False, back_populates="record")


class Feedback(Base):
    __tablename__ = "feedbacks"

    record_id = Column(Integer, ForeignKey("records.id", ondelete="CASCADE"), primary_key=True)
    rating = Column(Integer, nullable=False)
    comment = Column(String, nullable=True)
    created_at = Column(DateTime, default=datetime.now)

    record = relationship("Record", back_populates="feedback")

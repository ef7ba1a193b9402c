"""Organization, user and verification code definitions."""

from datetime import datetime

from sqlalchemy import Boolean, Column, DateTime, Float, ForeignKey, Integer, String

from timeline.database import Base


class Organization(Base):
    """A tenant publishing workers, services and schedules."""
    __tablename__ = "orgs"

    id = Column(Integer, primary_key=True)
    email = Column(String, unique=True, index=True)
    name = Column(String)
    type = Column(String, nullable=True)
    address = Column(String, nullable=True)
    lat = Column(Float, nullable=True)
    long = Column(Float, nullable=True)
    verified = Column(Boolean, default=False)
    created_at = Column(DateTime, default=datetime.now, index=True)


class User(Base):
    """Represents a customer who books records."""
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String, unique=True, index=True)
    name = Column(String)
    verified = Column(Boolean, default=False)
    created_at = Column(DateTime, default=datetime.now, index=True)


class VerificationCode(Base):
    """Account confirmation code sent by mail; exactly one owner is set."""
    __tablename__ = "codes"

    id = Column(Integer, primary_key=True)
    code = Column(String, nullable=False)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=True)
    org_id = Column(Integer, ForeignKey("orgs.id", ondelete="CASCADE"), nullable=True)
    created_at = Column(DateTime, default=datetime.now, index=True)

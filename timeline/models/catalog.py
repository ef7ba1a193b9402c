"""Worker and service definitions."""

from sqlalchemy import Column, ForeignKey, Integer, Numeric, String

from timeline.database import Base


class Worker(Base):
    __tablename__ = "workers"

    id = Column(Integer, primary_key=True)
    org_id = Column(Integer, ForeignKey("orgs.id", ondelete="CASCADE"), nullable=False, index=True)
    first_name = Column(String)
    last_name = Column(String)
    position = Column(String)
    degree = Column(String, nullable=True)


class Service(Base):
    """A service an organization offers, e.g. a haircut."""
    __tablename__ = "services"

    id = Column(Integer, primary_key=True)
    org_id = Column(Integer, ForeignKey("orgs.id", ondelete="CASCADE"), nullable=False, index=True)
    name = Column(String, nullable=False)
    cost = Column(Numeric(10, 2), nullable=True)
    description = Column(String, nullable=True)


class WorkerService(Base):
    __tablename__ = "worker_services"

    worker_id = Column(Integer, ForeignKey("workers.id", ondelete="CASCADE"), primary_key=True)
    service_id = Column(Integer, ForeignKey("services.id", ondelete="CASCADE"), primary_key=True)

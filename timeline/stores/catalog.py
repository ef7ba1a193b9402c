"""Catalog store - workers, services and which worker provides which service."""

from sqlalchemy.orm import Session

from timeline.models.catalog import Service, Worker, WorkerService


class CatalogStore:

    def worker(self, db: Session, org_id: int, worker_id: int) -> Worker | None:
        return db.query(Worker).filter(Worker.id == worker_id, Worker.org_id == org_id).first()

    def workers(self, db: Session, org_id: int) -> list[Worker]:
        return db.query(Worker).filter(Worker.org_id == org_id).order_by(Worker.id.asc()).all()

    def worker_add(self, db: Session, worker: Worker) -> Worker:
        db.add(worker)
        db.flush()
        return worker

    def worker_assign_service(self, db: Session, worker_id: int, service_id: int) -> None:
        link = (
            db.query(WorkerService)
            .filter(WorkerService.worker_id == worker_id, WorkerService.service_id == service_id)
            .first()
        )
        if link is None:
            db.add(WorkerService(worker_id=worker_id, service_id=service_id))
            db.flush()

    def provides(self, db: Session, worker_id: int, service_id: int) -> bool:
        return (
            db.query(WorkerService)
            .filter(WorkerService.worker_id == worker_id, WorkerService.service_id == service_id)
            .count()
            > 0
        )

    def service(self, db: Session, org_id: int, service_id: int) -> Service | None:
        return db.query(Service).filter(Service.id == service_id, Service.org_id == org_id).first()

    def service_list(self, db: Session, org_id: int) -> list[Service]:
        return db.query(Service).filter(Service.org_id == org_id).order_by(Service.id.asc()).all()

    def service_add(self, db: Session, service: Service) -> Service:
        db.add(service)
        db.flush()
        return service

    def service_delete(self, db: Session, org_id: int, service_id: int) -> int:
        db.query(WorkerService).filter(WorkerService.service_id == service_id).delete(
            synchronize_session=False
        )
        return (
            db.query(Service)
            .filter(Service.id == service_id, Service.org_id == org_id)
            .delete(synchronize_session=False)
        )

    def service_workers(self, db: Session, org_id: int, service_id: int) -> list[Worker]:
        return (
            db.query(Worker)
            .join(WorkerService, WorkerService.worker_id == Worker.id)
            .filter(WorkerService.service_id == service_id, Worker.org_id == org_id)
            .order_by(Worker.id.asc())
            .all()
        )

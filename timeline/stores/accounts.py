"""Account store - lookups, search and expiry deletes for orgs, users and codes."""

from datetime import datetime

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from timeline.models.account import Organization, User, VerificationCode
from timeline.models.record import Feedback, Record
from timeline.models.slot import Slot


class AccountStore:

    def org(self, db: Session, org_id: int) -> Organization | None:
        return db.query(Organization).filter(Organization.id == org_id).first()

    def user(self, db: Session, user_id: int) -> User | None:
        return db.query(User).filter(User.id == user_id).first()

    def orgs_by_search(
        self,
        db: Session,
        name: str | None = None,
        org_type: str | None = None,
        limit: int = 20,
        offset: int = 0,
    ) -> tuple[list[Organization], int]:
        """Verified organizations whose name and type contain the given text, plus total found."""
        query = db.query(Organization).filter(Organization.verified.is_(True))
        if name:
            query = query.filter(func.lower(Organization.name).contains(name.lower(), autoescape=True))
        if org_type:
            query = query.filter(func.lower(Organization.type).contains(org_type.lower(), autoescape=True))

        found = query.count()
        orgs = query.order_by(Organization.name.asc(), Organization.id.asc()).limit(limit).offset(offset).all()
        return orgs, found

    def orgs_in_area(
        self,
        db: Session,
        min_lat: float,
        min_long: float,
        max_lat: float,
        max_long: float,
    ) -> list[Organization]:
        """Verified organizations located inside the bounding box, edges included."""
        return (
            db.query(Organization)
            .filter(
                Organization.verified.is_(True),
                Organization.lat.between(min_lat, max_lat),
                Organization.long.between(min_long, max_long),
            )
            .order_by(Organization.id.asc())
            .all()
        )

    def delete_expired_codes(self, db: Session, created_before: datetime) -> int:
        return (
            db.query(VerificationCode)
            .filter(VerificationCode.created_at < created_before)
            .delete(synchronize_session=False)
        )

    def org_delete_expired(self, db: Session, created_before: datetime) -> int:
        """Drop organizations that never verified. Verified ones are kept forever.

        Their workers, slots and records go with them through the foreign keys.
        """
        return (
            db.query(Organization)
            .filter(Organization.verified.is_not(True), Organization.created_at < created_before)
            .delete(synchronize_session=False)
        )

    def user_delete_expired(self, db: Session, created_before: datetime) -> int:
        """Drop users that never verified, freeing the slots their records held."""
        expired_users = select(User.id).where(User.verified.is_not(True), User.created_at < created_before)
        self._drop_records(db, Record.user_id.in_(expired_users))

        return (
            db.query(User)
            .filter(User.verified.is_not(True), User.created_at < created_before)
            .delete(synchronize_session=False)
        )

    def _drop_records(self, db: Session, condition) -> None:
        bound_slots = select(Record.slot_id).where(condition)
        bound_records = select(Record.id).where(condition)

        db.query(Slot).filter(Slot.id.in_(bound_slots)).update(
            {Slot.is_busy: False}, synchronize_session=False
        )
        db.query(Feedback).filter(Feedback.record_id.in_(bound_records)).delete(synchronize_session=False)
        db.query(Record).filter(condition).delete(synchronize_session=False)

"""Expiry sweep.

Removes slots that are over, stale verification codes and accounts that
never got verified. Steps are independent: each runs in its own session and
a failing step is logged without stopping the ones after it.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Callable

from sqlalchemy.orm import Session

from timeline.core import config
from timeline.database import SessionLocal, transaction
from timeline.stores.accounts import AccountStore
from timeline.stores.slots import SlotStore

logger = logging.getLogger(__name__)


@dataclass
class SweepReport:
    deleted: dict[str, int] = field(default_factory=dict)
    failed: list[str] = field(default_factory=list)


def sweep_steps(
    now: datetime,
    slots: SlotStore,
    accounts: AccountStore,
) -> list[tuple[str, Callable[[Session], int]]]:
    code_cutoff = now - timedelta(minutes=config.CODE_TTL_MINUTES)
    account_cutoff = now - timedelta(days=config.ACCOUNT_GRACE_DAYS)

    return [
        ('delete_expired_slots', lambda db: slots.delete_expired_slots(db, now)),
        ('delete_expired_codes', lambda db: accounts.delete_expired_codes(db, code_cutoff)),
        ('org_delete_expired', lambda db: accounts.org_delete_expired(db, account_cutoff)),
        ('user_delete_expired', lambda db: accounts.user_delete_expired(db, account_cutoff)),
    ]


def sweep(
    session_factory: Callable[[], Session] = SessionLocal,
    now: datetime | None = None,
    slots: SlotStore | None = None,
    accounts: AccountStore | None = None,
) -> SweepReport:
    now = now or datetime.now()
    report = SweepReport()

    for name, step in sweep_steps(now, slots or SlotStore(), accounts or AccountStore()):
        db = session_factory()
        try:
            with transaction(db, name):
                report.deleted[name] = step(db)
        except Exception:
            logger.exception('Sweep step %s failed', name)
            report.failed.append(name)
        finally:
            db.close()

    logger.info('Sweep finished: deleted=%s failed=%s', report.deleted, report.failed)
    return report

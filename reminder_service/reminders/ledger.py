"""
Idempotency ledger: one ``reminder_logs`` row per (item, trigger time).

Writes go through a single ``INSERT ... ON CONFLICT DO UPDATE`` whose update
branch only fires while the stored status is not ``sent``, so a delivered
trigger can never be downgraded by a late failure write.
"""
import logging
from datetime import datetime
from typing import Iterable, List, Optional, Set, Tuple

from sqlalchemy import select
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from reminder_service.models.reminder_log import (
    REMINDER_STATUSES,
    STATUS_SENT,
    ReminderLog,
)
from reminder_service.utils.timezone import to_utc_aware, utcnow
from .exceptions import LedgerWriteError

logger = logging.getLogger(__name__)

_DIALECT_INSERTS = {
    "postgresql": postgresql.insert,
    "sqlite": sqlite.insert,
}


def _dialect_insert(db: Session):
    name = db.get_bind().dialect.name
    insert = _DIALECT_INSERTS.get(name)
    if insert is None:
        raise LedgerWriteError(f"Unsupported database dialect for ledger upsert: {name}")
    return insert


def record_outcome(
    db: Session,
    event_id: str,
    owner_id: str,
    trigger_time: datetime,
    destination: str,
    status: str,
    error_message: Optional[str] = None,
) -> bool:
    """Insert or update the outcome for ``(event_id, trigger_time)``.

    Returns True when a row was written, False when the key was already ``sent``
    and the write was ignored.
    """
    if status not in REMINDER_STATUSES:
        raise LedgerWriteError(f"Invalid reminder status: {status!r}")

    insert = _dialect_insert(db)
    now = utcnow()
    stmt = insert(ReminderLog).values(
        item_id=event_id,
        user_id=owner_id,
        reminder_time=to_utc_aware(trigger_time),
        email_to=destination,
        status=status,
        error_message=error_message,
        sent_at=now,
    )
    stmt = stmt.on_conflict_do_update(
        index_elements=[ReminderLog.item_id, ReminderLog.reminder_time],
        set_={
            "status": stmt.excluded.status,
            "error_message": stmt.excluded.error_message,
            "email_to": stmt.excluded.email_to,
            "sent_at": stmt.excluded.sent_at,
        },
        where=ReminderLog.status != STATUS_SENT,
    )

    try:
        result = db.execute(stmt)
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        raise LedgerWriteError(f"Failed to record {status} outcome for item {event_id}: {e}") from e

    written = bool(result.rowcount)
    if not written:
        logger.info(
            f"🔒 [Ledger] Ignored {status} write for item={event_id} trigger={trigger_time.isoformat()} (already sent)"
        )
    return written


def sent_trigger_keys(db: Session, item_ids: Iterable[str]) -> Set[Tuple[str, datetime]]:
    """Return ``(item_id, trigger_time)`` keys already delivered for the given items."""
    ids = list(set(item_ids))
    if not ids:
        return set()
    stmt = (
        select(ReminderLog.item_id, ReminderLog.reminder_time)
        .where(ReminderLog.item_id.in_(ids))
        .where(ReminderLog.status == STATUS_SENT)
    )
    return {(item_id, to_utc_aware(reminder_time)) for item_id, reminder_time in db.execute(stmt)}


def get_entry(db: Session, event_id: str, trigger_time: datetime) -> Optional[ReminderLog]:
    stmt = (
        select(ReminderLog)
        .where(ReminderLog.item_id == event_id)
        .where(ReminderLog.reminder_time == to_utc_aware(trigger_time))
    )
    return db.execute(stmt).scalars().first()


def list_entries(
    db: Session,
    status: Optional[str] = None,
    item_id: Optional[str] = None,
    limit: int = 100,
) -> List[ReminderLog]:
    stmt = select(ReminderLog).order_by(ReminderLog.sent_at.desc(), ReminderLog.id.desc()).limit(limit)
    if status:
        stmt = stmt.where(ReminderLog.status == status)
    if item_id:
        stmt = stmt.where(ReminderLog.item_id == item_id)
    return list(db.execute(stmt).scalars())

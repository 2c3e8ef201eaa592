"""
Window selector: which events need a reminder in the current cycle.

An event qualifies when its start time falls in ``(now, now + lead + margin]``,
it is neither deleted nor archived, its owner has email notifications on with
a non-empty address, and its trigger ``(id, start_time - lead)`` has no
``sent`` ledger row.
"""
import logging
from datetime import datetime, timedelta
from typing import List

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from reminder_service.models.event import Item, User, UserSettings
from reminder_service.utils.timezone import to_utc_aware
from .exceptions import SelectionError
from .ledger import sent_trigger_keys
from .metrics import selection_errors_total
from .schemas import ScheduledEvent

logger = logging.getLogger(__name__)

EVENT_ITEM_TYPE = "event"


def fetch_candidates(
    db: Session,
    now: datetime,
    lead_minutes: int = 5,
    margin_minutes: int = 1,
) -> List[ScheduledEvent]:
    """Run the candidate query, raising SelectionError on storage failure."""
    now = to_utc_aware(now)
    lead = timedelta(minutes=lead_minutes)
    window_end = now + lead + timedelta(minutes=margin_minutes)

    stmt = (
        select(
            Item.id,
            Item.user_id,
            Item.title,
            Item.description,
            Item.location,
            Item.start_time,
            Item.end_time,
            User.email,
        )
        .join(User, Item.user_id == User.id)
        .join(UserSettings, UserSettings.user_id == User.id)
        .where(Item.type == EVENT_ITEM_TYPE)
        .where(Item.start_time.isnot(None))
        .where(Item.deleted_at.is_(None))
        .where(Item.archived_at.is_(None))
        .where(User.email.isnot(None))
        .where(User.email != "")
        .where(UserSettings.email_notifications.is_(True))
        .where(Item.start_time > now)
        .where(Item.start_time <= window_end)
        .order_by(Item.start_time.asc(), Item.id.asc())
    )

    try:
        rows = db.execute(stmt).all()
        sent_keys = sent_trigger_keys(db, (row.id for row in rows))
    except SQLAlchemyError as e:
        db.rollback()
        raise SelectionError(f"Candidate query failed: {e}") from e

    candidates: List[ScheduledEvent] = []
    for row in rows:
        start_time = to_utc_aware(row.start_time)
        trigger_time = start_time - lead
        if (row.id, trigger_time) in sent_keys:
            continue
        candidates.append(
            ScheduledEvent(
                id=row.id,
                user_id=row.user_id,
                title=row.title,
                description=row.description,
                location=row.location,
                start_time=start_time,
                end_time=to_utc_aware(row.end_time),
                user_email=row.email,
                trigger_time=trigger_time,
            )
        )
    return candidates


def select_candidates(
    db: Session,
    now: datetime,
    lead_minutes: int = 5,
    margin_minutes: int = 1,
) -> List[ScheduledEvent]:
    """Like fetch_candidates, but a failed query yields no candidates.

    A skipped cycle is retried naturally on the next tick.
    """
    try:
        return fetch_candidates(db, now, lead_minutes=lead_minutes, margin_minutes=margin_minutes)
    except SelectionError as e:
        selection_errors_total.inc()
        logger.error(f"❌ [Selector] {e}")
        return []

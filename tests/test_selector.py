from datetime import timedelta

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from reminder_service.reminders.exceptions import SelectionError
from reminder_service.reminders.ledger import record_outcome
from reminder_service.reminders.selector import fetch_candidates, select_candidates
from tests.conftest import NOW


def test_event_inside_window_is_selected(db, make_event):
    make_event(start_in=timedelta(minutes=5, seconds=30))

    candidates = select_candidates(db, NOW, lead_minutes=5, margin_minutes=1)

    assert [c.id for c in candidates] == ["evt-1"]
    event = candidates[0]
    assert event.user_email == "owner@example.com"
    assert event.trigger_time == NOW + timedelta(seconds=30)


def test_event_beyond_window_is_excluded(db, make_event):
    make_event(start_in=timedelta(minutes=7))

    assert select_candidates(db, NOW) == []


def test_window_bounds_are_open_at_now_and_closed_at_end(db, make_event):
    make_event("at-now", start_in=timedelta(0))
    make_event("past", start_in=timedelta(minutes=-1))
    make_event("at-end", start_in=timedelta(minutes=6))

    assert [c.id for c in select_candidates(db, NOW)] == ["at-end"]


def test_sent_trigger_is_excluded(db, make_event):
    item = make_event(start_in=timedelta(minutes=5, seconds=30))
    record_outcome(db, item.id, item.user_id, item.start_time - timedelta(minutes=5), "owner@example.com", "sent")

    assert select_candidates(db, NOW) == []


def test_failed_trigger_stays_eligible(db, make_event):
    item = make_event()
    record_outcome(db, item.id, item.user_id, item.start_time - timedelta(minutes=5), "owner@example.com", "failed", "boom")

    assert [c.id for c in select_candidates(db, NOW)] == [item.id]


def test_sent_row_for_other_lead_does_not_exclude(db, make_event):
    item = make_event()
    # Sent under a 10 minute lead; the 5 minute trigger is a different key
    record_outcome(db, item.id, item.user_id, item.start_time - timedelta(minutes=10), "owner@example.com", "sent")

    assert [c.id for c in select_candidates(db, NOW, lead_minutes=5)] == [item.id]


def test_notifications_disabled_is_excluded(db, make_event):
    make_event(notifications=False)

    assert select_candidates(db, NOW) == []


@pytest.mark.parametrize("email", [None, ""])
def test_owner_without_address_is_excluded(db, make_event, email):
    make_event(email=email)

    assert select_candidates(db, NOW) == []


def test_deleted_archived_and_non_event_items_are_excluded(db, make_event):
    make_event("deleted", deleted_at=NOW - timedelta(days=1))
    make_event("archived", archived_at=NOW - timedelta(days=1))
    make_event("todo", type="todo")
    make_event("kept")

    assert [c.id for c in select_candidates(db, NOW)] == ["kept"]


def test_candidates_are_ordered_by_start_time(db, make_event):
    make_event("late", start_in=timedelta(minutes=5, seconds=50))
    make_event("early", start_in=timedelta(minutes=1))
    make_event("middle", start_in=timedelta(minutes=3))

    assert [c.id for c in select_candidates(db, NOW)] == ["early", "middle", "late"]


def test_event_fields_are_projected(db, make_event):
    make_event(
        title="Design review",
        description="Bring the mockups",
        location="Room 4",
        end_time=NOW + timedelta(minutes=35, seconds=30),
    )

    event = select_candidates(db, NOW)[0]

    assert event.title == "Design review"
    assert event.description == "Bring the mockups"
    assert event.location == "Room 4"
    assert event.end_time == NOW + timedelta(minutes=35, seconds=30)
    assert event.start_time.tzinfo is not None


def test_query_failure_returns_no_candidates():
    broken = sessionmaker(bind=create_engine("sqlite://"))()  # no tables
    try:
        with pytest.raises(SelectionError):
            fetch_candidates(broken, NOW)
        assert select_candidates(broken, NOW) == []
    finally:
        broken.close()

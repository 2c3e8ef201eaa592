from datetime import timedelta
from zoneinfo import ZoneInfo

from reminder_service.reminders.schemas import ScheduledEvent
from reminder_service.reminders.templates import duration_minutes, render_reminder
from tests.conftest import NOW


def _event(**overrides):
    data = dict(
        id="evt-1",
        user_id="user-1",
        title="Design review",
        start_time=NOW + timedelta(minutes=5),
        user_email="owner@example.com",
        trigger_time=NOW,
    )
    data.update(overrides)
    return ScheduledEvent(**data)


def test_subject_combines_marker_and_title():
    message = render_reminder(_event(), lead_minutes=5)

    assert message.subject == "⏰ Event reminder: Design review"


def test_bodies_include_start_time_and_lead():
    message = render_reminder(_event(), lead_minutes=5)

    assert "2026-10-19 09:05" in message.text_body
    assert "2026-10-19 09:05" in message.html_body
    assert "starts in 5 minutes" in message.text_body


def test_start_time_is_localized():
    message = render_reminder(_event(), lead_minutes=5, tz=ZoneInfo("Asia/Shanghai"))

    assert "2026-10-19 17:05" in message.text_body


def test_optional_fields_are_rendered_when_present():
    message = render_reminder(
        _event(
            end_time=NOW + timedelta(minutes=50, seconds=20),
            description="Bring the mockups",
            location="Room 4",
        ),
        lead_minutes=5,
    )

    assert "Ends: 2026-10-19 09:50" in message.text_body
    assert "Duration: 45 minutes" in message.text_body
    assert "Bring the mockups" in message.text_body
    assert "Room 4" in message.html_body


def test_optional_fields_are_omitted_when_absent():
    message = render_reminder(_event(), lead_minutes=5)

    assert "Ends" not in message.text_body
    assert "Duration" not in message.text_body
    assert "Location" not in message.html_body


def test_duration_rounds_to_minutes():
    assert duration_minutes(_event(end_time=NOW + timedelta(minutes=35, seconds=31))) == 31
    assert duration_minutes(_event()) == 0


def test_html_escapes_user_content():
    message = render_reminder(_event(title="<script>x</script>", description="a & b"), lead_minutes=5)

    assert "<script>x</script>" not in message.html_body
    assert "&lt;script&gt;" in message.html_body
    assert "a &amp; b" in message.html_body

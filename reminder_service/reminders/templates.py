"""Reminder email rendering (subject, plain text and HTML bodies)."""
from html import escape
from typing import Optional
from zoneinfo import ZoneInfo

from reminder_service.utils.timezone import format_local, to_utc_aware
from .schemas import ReminderMessage, ScheduledEvent

SUBJECT_MARKER = "⏰ Event reminder"


def duration_minutes(event: ScheduledEvent) -> int:
    if event.end_time is None:
        return 0
    delta = to_utc_aware(event.end_time) - to_utc_aware(event.start_time)
    return round(delta.total_seconds() / 60)


def render_reminder(
    event: ScheduledEvent,
    lead_minutes: int,
    tz: Optional[ZoneInfo] = None,
    app_name: str = "Event Reminders",
) -> ReminderMessage:
    start_str = format_local(event.start_time, tz)
    end_str = format_local(event.end_time, tz) if event.end_time else ""
    duration = duration_minutes(event)

    # (label, value) rows shown in both bodies; empty values are skipped
    rows = [
        ("📋 Title", event.title),
        ("⏰ Starts", start_str),
        ("⏱️ Ends", end_str),
        ("⌛ Duration", f"{duration} minutes" if duration > 0 else ""),
        ("📝 Details", event.description or ""),
        ("📍 Location", event.location or ""),
    ]
    rows = [(label, value) for label, value in rows if value]
    banner = f"⚠️ Your event starts in {lead_minutes} minutes!"

    return ReminderMessage(
        subject=f"{SUBJECT_MARKER}: {event.title}",
        text_body=_render_text(banner, rows, app_name),
        html_body=_render_html(banner, rows, app_name),
    )


def _render_text(banner: str, rows, app_name: str) -> str:
    lines = [SUBJECT_MARKER, "", banner, ""]
    lines.extend(f"{label}: {value}" for label, value in rows)
    lines.extend([
        "",
        "Please get ready so you can join on time.",
        "",
        "---",
        f"Sent automatically by {app_name}",
    ])
    return "\n".join(lines)


def _render_html(banner: str, rows, app_name: str) -> str:
    info_items = "\n".join(
        f"""
            <div class="info-item">
                <span class="info-label">{escape(label)}:</span>
                <span class="info-value">{escape(value)}</span>
            </div>"""
        for label, value in rows
    )
    return f"""
    <!DOCTYPE html>
    <html>
    <head>
        <meta charset="utf-8">
        <meta name="viewport" content="width=device-width, initial-scale=1.0">
        <title>{escape(SUBJECT_MARKER)}</title>
        <style>
            body {{ font-family: -apple-system, BlinkMacSystemFont, 'Segoe UI', Arial, sans-serif; line-height: 1.6; color: #333; }}
            .container {{ max-width: 600px; margin: 0 auto; padding: 20px; }}
            .header {{ background-color: #667eea; color: white; padding: 20px; text-align: center; border-radius: 10px 10px 0 0; }}
            .content {{ padding: 30px; background-color: #ffffff; border: 1px solid #e1e8ed; }}
            .time-highlight {{ font-size: 18px; font-weight: bold; color: #e53e3e; text-align: center; padding: 15px; background: #fff5f5; border-radius: 8px; }}
            .info-box {{ background: #f7fafc; border-left: 4px solid #667eea; padding: 15px 20px; margin: 15px 0; }}
            .info-label {{ font-weight: bold; color: #667eea; margin-right: 10px; }}
            .footer {{ padding: 20px; text-align: center; color: #718096; font-size: 12px; }}
        </style>
    </head>
    <body>
        <div class="container">
            <div class="header">
                <h1>{escape(SUBJECT_MARKER)}</h1>
            </div>
            <div class="content">
                <div class="time-highlight">{escape(banner)}</div>
                <div class="info-box">{info_items}
                </div>
                <p>Please get ready so you can join on time.</p>
            </div>
            <div class="footer">
                <p>Sent automatically by {escape(app_name)}</p>
            </div>
        </div>
    </body>
    </html>
    """

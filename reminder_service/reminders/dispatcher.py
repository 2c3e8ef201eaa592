import logging
from typing import Callable, Optional, Protocol
from zoneinfo import ZoneInfo

from sqlalchemy.orm import Session

from reminder_service.models.reminder_log import STATUS_FAILED, STATUS_SENT
from .exceptions import DeliveryError, LedgerWriteError
from .ledger import record_outcome
from .metrics import (
    ledger_write_failures_total,
    reminders_dispatch_failed_total,
    reminders_dispatch_success_total,
)
from .schemas import ScheduledEvent
from .templates import render_reminder

logger = logging.getLogger(__name__)

NOT_DELIVERED_MESSAGE = "Email delivery failed"


class NotificationChannel(Protocol):
    def send(self, destination: str, subject: str, text_body: str, html_body: str) -> bool: ...


class NotificationDispatcher:
    """Send one reminder and record its outcome in the ledger.

    Delivery failures are recorded as ``failed`` and never raised; the event
    stays a candidate until a ``sent`` row exists for its trigger.
    """

    def __init__(
        self,
        channel: NotificationChannel,
        session_factory: Callable[[], Session],
        lead_minutes: int = 5,
        tz: Optional[ZoneInfo] = None,
        app_name: str = "Event Reminders",
    ):
        self.channel = channel
        self.session_factory = session_factory
        self.lead_minutes = lead_minutes
        self.tz = tz
        self.app_name = app_name

    def dispatch(self, event: ScheduledEvent) -> bool:
        """Returns True when the reminder was delivered."""
        logger.info(
            f"📧 [Dispatcher] Sending reminder item={event.id} to={event.user_email} "
            f"trigger={event.trigger_time.isoformat()} title={event.title!r}"
        )
        try:
            message = render_reminder(event, self.lead_minutes, tz=self.tz, app_name=self.app_name)
            delivered = self.channel.send(event.user_email, message.subject, message.text_body, message.html_body)
            if not delivered:
                raise DeliveryError(NOT_DELIVERED_MESSAGE)
        except Exception as e:
            error_message = str(e) or type(e).__name__
            reminders_dispatch_failed_total.inc()
            logger.warning(f"❌ [Dispatcher] Reminder failed item={event.id} to={event.user_email}: {error_message}")
            self._record(event, STATUS_FAILED, error_message)
            return False

        reminders_dispatch_success_total.inc()
        logger.info(f"✅ [Dispatcher] Reminder sent item={event.id} to={event.user_email}")
        self._record(event, STATUS_SENT)
        return True

    def _record(self, event: ScheduledEvent, status: str, error_message: Optional[str] = None) -> None:
        db = self.session_factory()
        try:
            record_outcome(
                db,
                event_id=event.id,
                owner_id=event.user_id,
                trigger_time=event.trigger_time,
                destination=event.user_email,
                status=status,
                error_message=error_message,
            )
        except LedgerWriteError as e:
            ledger_write_failures_total.inc()
            # A delivered reminder without a sent row is re-sent on the next tick
            logger.error(f"❌ [Ledger] Could not record {status} for item={event.id}, it may be dispatched again: {e}")
        finally:
            db.close()

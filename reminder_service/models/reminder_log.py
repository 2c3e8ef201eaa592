from sqlalchemy import CheckConstraint, Column, DateTime, Index, Integer, String, Text, UniqueConstraint

from reminder_service.db.base import Base
from reminder_service.utils.timezone import utcnow

STATUS_FAILED = "failed"
STATUS_SENT = "sent"
REMINDER_STATUSES = (STATUS_FAILED, STATUS_SENT)


class ReminderLog(Base):
    """Delivery outcome for one (item, trigger time) pair."""
    __tablename__ = "reminder_logs"

    id = Column(Integer, primary_key=True, autoincrement=True)
    item_id = Column(String, nullable=False)
    user_id = Column(String, nullable=False, index=True)
    reminder_time = Column(DateTime(timezone=True), nullable=False)
    email_to = Column(String, nullable=False)
    status = Column(String(16), nullable=False)
    error_message = Column(Text, nullable=True)
    sent_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)

    __table_args__ = (
        UniqueConstraint("item_id", "reminder_time", name="uq_reminder_logs_item_trigger"),
        CheckConstraint("status IN ('failed', 'sent')", name="ck_reminder_logs_status"),
        Index("ix_reminder_logs_status", "status"),
    )

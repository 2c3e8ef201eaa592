"""
Read-only models over tables owned by the host application.

Only the columns the reminder scan needs are mapped.
"""
from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Index, String, Text

from reminder_service.db.base import Base


class User(Base):
    __tablename__ = "users"

    id = Column(String, primary_key=True)
    email = Column(String, nullable=True)


class UserSettings(Base):
    __tablename__ = "user_settings"

    user_id = Column(String, ForeignKey("users.id"), primary_key=True)
    email_notifications = Column(Boolean, nullable=False, default=False)


class Item(Base):
    """A card in the host application; only ``type == "event"`` rows are reminded."""
    __tablename__ = "items"

    id = Column(String, primary_key=True)
    user_id = Column(String, ForeignKey("users.id"), nullable=False, index=True)
    type = Column(String, nullable=False)
    title = Column(String, nullable=False)
    description = Column(Text, nullable=True)
    location = Column(String, nullable=True)
    start_time = Column(DateTime(timezone=True), nullable=True)
    end_time = Column(DateTime(timezone=True), nullable=True)
    deleted_at = Column(DateTime(timezone=True), nullable=True)
    archived_at = Column(DateTime(timezone=True), nullable=True)

    __table_args__ = (
        Index("ix_items_type_start_time", "type", "start_time"),
    )

from reminder_service.models.event import Item, User, UserSettings
from reminder_service.models.reminder_log import ReminderLog, REMINDER_STATUSES

__all__ = ["Item", "User", "UserSettings", "ReminderLog", "REMINDER_STATUSES"]

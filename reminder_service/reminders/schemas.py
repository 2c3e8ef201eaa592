"""
Schemas for reminder selection, dispatch results and the operator API
"""
from datetime import datetime
from typing import List, Literal, Optional
from pydantic import BaseModel, ConfigDict, Field


ReminderStatus = Literal["failed", "sent"]


class ScheduledEvent(BaseModel):
    """An event due for a reminder, joined with its owner's delivery address"""
    id: str
    user_id: str
    title: str
    description: Optional[str] = None
    location: Optional[str] = None
    start_time: datetime
    end_time: Optional[datetime] = None
    user_email: str
    trigger_time: datetime


class ReminderMessage(BaseModel):
    subject: str
    text_body: str
    html_body: str


class CycleResult(BaseModel):
    """Outcome of one select-then-dispatch cycle"""
    started_at: datetime
    finished_at: Optional[datetime] = None
    selected: int = 0
    sent: int = 0
    failed: int = 0
    succeeded: bool = True


class TriggerResult(BaseModel):
    dispatched_count: int
    succeeded: bool


class TriggerResponse(BaseModel):
    success: bool
    dispatched_count: int
    message: str


class SendTestEmailRequest(BaseModel):
    email: str = Field(default="")


class SendTestEmailResponse(BaseModel):
    success: bool
    message: str


class ReminderLogRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    item_id: str
    user_id: str
    reminder_time: datetime
    email_to: str
    status: ReminderStatus
    error_message: Optional[str] = None
    sent_at: datetime


class SchedulerStatus(BaseModel):
    state: str
    lead_minutes: int
    margin_minutes: int
    tick_interval_seconds: float
    dispatch_delay_ms: int
    last_cycle: Optional[CycleResult] = None


class ReminderLogList(BaseModel):
    items: List[ReminderLogRead]

import asyncio
from typing import Iterator, Optional

from fastapi import APIRouter, Depends, Header, HTTPException, Query, Request
from fastapi import status as http_status
from sqlalchemy.orm import Session

from reminder_service.core.config import ReminderSettings, settings as default_settings
from reminder_service.db.session import SessionLocal
from reminder_service.services.email_service import EmailService
from .ledger import list_entries
from .schemas import (
    ReminderLogList,
    ReminderLogRead,
    ReminderStatus,
    SchedulerStatus,
    SendTestEmailRequest,
    SendTestEmailResponse,
    TriggerResponse,
)
from .scheduler import ReminderScheduler


def get_app_settings(request: Request) -> ReminderSettings:
    return getattr(request.app.state, "settings", None) or default_settings


def get_db(request: Request) -> Iterator[Session]:
    """Yield a session from the factory stored on the app."""
    session_factory = getattr(request.app.state, "session_factory", None) or SessionLocal
    db = session_factory()
    try:
        yield db
    finally:
        db.close()


def verify_api_key_dependency(
    app_settings: ReminderSettings = Depends(get_app_settings),
    x_api_key: Optional[str] = Header(None),
    authorization: Optional[str] = Header(None),
) -> bool:
    """
    Require a configured API key when REMINDER_API_KEYS is set
    """
    valid_keys = app_settings.api_keys
    if not valid_keys:
        return True

    api_key = None
    if x_api_key:
        api_key = x_api_key
    elif authorization and authorization.startswith("Bearer "):
        api_key = authorization.split(" ", 1)[1]

    if not api_key or api_key not in valid_keys:
        raise HTTPException(
            status_code=http_status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or missing API key",
        )
    return True


def get_scheduler(request: Request) -> ReminderScheduler:
    scheduler = getattr(request.app.state, "scheduler", None)
    if scheduler is None:
        raise HTTPException(status_code=503, detail="Reminder scheduler is not initialized")
    return scheduler


def get_email_service(request: Request) -> EmailService:
    email_service = getattr(request.app.state, "email_service", None)
    if email_service is None:
        raise HTTPException(status_code=503, detail="Email service is not configured")
    return email_service


router = APIRouter()
protected = APIRouter(dependencies=[Depends(verify_api_key_dependency)])


@router.get("/health")
def health_check():
    return {"status": "healthy", "service": "reminders"}


@protected.post("/trigger", response_model=TriggerResponse)
async def trigger_reminder_check(scheduler: ReminderScheduler = Depends(get_scheduler)):
    result = await scheduler.trigger_now()
    if result.succeeded:
        message = f"Reminder check triggered, {result.dispatched_count} reminder(s) dispatched"
    else:
        message = "Reminder check failed, see server logs"
    return TriggerResponse(success=result.succeeded, dispatched_count=result.dispatched_count, message=message)


@protected.post("/test-email", response_model=SendTestEmailResponse)
async def send_test_email(
    payload: SendTestEmailRequest,
    email_service: EmailService = Depends(get_email_service),
):
    email = payload.email.strip()
    if not email:
        raise HTTPException(status_code=400, detail="Email address is required")
    success = await asyncio.to_thread(email_service.send_test_email, email)
    return SendTestEmailResponse(
        success=success,
        message="Test email sent" if success else "Test email failed to send",
    )


@protected.get("/status", response_model=SchedulerStatus)
def scheduler_status(scheduler: ReminderScheduler = Depends(get_scheduler)):
    return scheduler.status()


@protected.get("/logs", response_model=ReminderLogList)
def list_reminder_logs(
    status: Optional[ReminderStatus] = None,
    item_id: Optional[str] = None,
    limit: int = Query(100, ge=1, le=1000),
    db: Session = Depends(get_db),
):
    entries = list_entries(db, status=status, item_id=item_id, limit=limit)
    return ReminderLogList(items=[ReminderLogRead.model_validate(e) for e in entries])


router.include_router(protected)

from contextlib import asynccontextmanager
from typing import Callable, Optional
import asyncio
import logging
import sys

from fastapi import FastAPI
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session
import uvicorn

from reminder_service.core.config import ReminderSettings, settings as default_settings
from reminder_service.db.session import SessionLocal, engine as default_engine, init_db
from reminder_service.reminders.api import router as reminders_router
from reminder_service.reminders.dispatcher import NotificationChannel
from reminder_service.reminders.scheduler import ReminderScheduler
from reminder_service.services.email_service import EmailService

logger = logging.getLogger(__name__)


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=[logging.StreamHandler(sys.stdout)],
    )


def _build_channel(app_settings: ReminderSettings) -> Optional[EmailService]:
    if not app_settings.smtp_configured:
        logger.warning("⚠️ [Startup] SMTP is not configured; set REMINDER_SMTP_SERVER/USERNAME/PASSWORD")
        return None
    try:
        return EmailService.from_settings(app_settings)
    except ValueError as e:
        logger.error(f"❌ [Startup] Invalid email configuration: {e}")
        return None


def create_app(
    app_settings: Optional[ReminderSettings] = None,
    channel: Optional[NotificationChannel] = None,
    session_factory: Callable[[], Session] = SessionLocal,
    engine: Engine = default_engine,
) -> FastAPI:
    app_settings = app_settings or default_settings

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info(f"Starting up {app_settings.APP_NAME} reminder service...")
        try:
            init_db(engine)
        except Exception as e:
            logger.error(f"❌ [Startup] Could not initialize reminder ledger: {e}")

        email_channel = channel or _build_channel(app_settings)
        app.state.email_service = email_channel
        app.state.scheduler = None

        if email_channel is not None:
            scheduler = ReminderScheduler.from_settings(app_settings, email_channel, session_factory)
            app.state.scheduler = scheduler

            logger.info("📧 [Startup] Verifying email channel...")
            ready = await asyncio.to_thread(email_channel.verify)
            if not ready:
                logger.warning("⚠️ [Startup] Email channel not ready; reminder scheduler not started")
            elif not app_settings.SCHEDULER_ENABLED:
                logger.info("[Startup] Reminder scheduler disabled by configuration")
            else:
                await scheduler.start()

        yield

        # Shutdown
        scheduler = app.state.scheduler
        if scheduler is not None:
            await scheduler.stop()
        engine.dispose()
        logger.info("Reminder service shut down")

    app = FastAPI(title=f"{app_settings.APP_NAME} Reminder Service", lifespan=lifespan)
    app.state.settings = app_settings
    app.state.session_factory = session_factory
    app.include_router(reminders_router, prefix="/api/v1/reminders", tags=["reminders"])

    if app_settings.METRICS_ENABLED:
        from prometheus_fastapi_instrumentator import Instrumentator
        Instrumentator().instrument(app).expose(app, endpoint="/metrics")

    return app


configure_logging(default_settings.LOG_LEVEL)
app = create_app()


if __name__ == "__main__":
    uvicorn.run("reminder_service.main:app", host="0.0.0.0", port=8000)

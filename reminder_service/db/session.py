import logging
from sqlalchemy import create_engine, inspect
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker

from reminder_service.core.config import settings
from reminder_service.db.base import Base

logger = logging.getLogger(__name__)


def build_engine(database_url: str) -> Engine:
    if database_url.startswith("sqlite"):
        # The scheduler reads and writes from worker threads
        return create_engine(
            database_url,
            connect_args={"check_same_thread": False, "timeout": 10.0},
            future=True,
        )
    return create_engine(
        database_url,
        pool_size=5,
        max_overflow=5,
        pool_recycle=300,      # Recycle connections every 5 minutes
        pool_pre_ping=True,    # Validate connections before use
        pool_timeout=30,
        echo=False,
        future=True,
    )


engine = build_engine(settings.DATABASE_URL)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, expire_on_commit=False, bind=engine)


def init_db(bind: Engine = None) -> None:
    """
    Create the reminder ledger table if it is missing and report missing host tables.

    The ``items`` / ``users`` / ``user_settings`` tables belong to the host
    application and are never created here.
    """
    bind = bind or engine

    # Model import registers the tables on Base.metadata
    from reminder_service.models import event, reminder_log  # noqa: F401

    Base.metadata.create_all(bind=bind, tables=[reminder_log.ReminderLog.__table__])

    existing_tables = set(inspect(bind).get_table_names())
    host_tables = [t.name for t in (event.Item.__table__, event.User.__table__, event.UserSettings.__table__)]
    missing = [name for name in host_tables if name not in existing_tables]
    if missing:
        logger.warning(f"⚠️ [DB] Missing host tables: {missing}. Reminder selection will fail until they exist.")
    else:
        logger.info("✅ [DB] Reminder ledger ready and host tables present")

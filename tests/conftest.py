import time
from datetime import datetime, timedelta, timezone as dt_timezone

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from reminder_service.db.base import Base
from reminder_service.models import Item, User, UserSettings

NOW = datetime(2026, 10, 19, 9, 0, tzinfo=dt_timezone.utc)


class FakeChannel:
    """Records sends; ``outcomes`` is consumed per call (bool or exception to raise)."""

    def __init__(self, outcomes=None, ready=True, send_seconds=0.0):
        self.outcomes = list(outcomes or [])
        self.ready = ready
        self.send_seconds = send_seconds
        self.sent = []
        self.test_emails = []

    def send(self, destination, subject, text_body, html_body):
        self.sent.append({"to": destination, "subject": subject, "text": text_body, "html": html_body})
        if self.send_seconds:
            time.sleep(self.send_seconds)
        outcome = self.outcomes.pop(0) if self.outcomes else True
        if isinstance(outcome, BaseException):
            raise outcome
        return outcome

    def verify(self):
        return self.ready

    def send_test_email(self, to_email):
        self.test_emails.append(to_email)
        return True


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, expire_on_commit=False, bind=engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def make_event(db):
    def _make(
        item_id="evt-1",
        start_in=timedelta(minutes=5, seconds=30),
        user_id="user-1",
        email="owner@example.com",
        notifications=True,
        **fields,
    ):
        if db.get(User, user_id) is None:
            db.add(User(id=user_id, email=email))
            db.add(UserSettings(user_id=user_id, email_notifications=notifications))
        item = Item(
            id=item_id,
            user_id=user_id,
            type=fields.pop("type", "event"),
            title=fields.pop("title", f"Standup {item_id}"),
            start_time=NOW + start_in,
            **fields,
        )
        db.add(item)
        db.commit()
        return item

    return _make

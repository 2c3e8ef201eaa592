"""
Reminder scheduler loop.

One asyncio task runs a check-and-dispatch cycle immediately on ``start()``
and then every ``tick_interval_seconds``. ``trigger_now()`` runs the same
cycle on demand. Cycles from either path are serialized by a single-flight
lock; dispatch inside a cycle is sequential with a fixed pause between sends.
"""
import asyncio
import logging
from datetime import datetime
from enum import Enum
from typing import Callable, List, Optional

from sqlalchemy.orm import Session

from reminder_service.core.config import ReminderSettings
from reminder_service.utils.timezone import get_zoneinfo, utcnow
from .dispatcher import NotificationChannel, NotificationDispatcher
from .metrics import scheduler_candidates_total, scheduler_cycles_total, scheduler_running
from .schemas import CycleResult, ScheduledEvent, SchedulerStatus, TriggerResult
from .selector import select_candidates

logger = logging.getLogger(__name__)


class SchedulerState(str, Enum):
    STOPPED = "stopped"
    RUNNING = "running"


class ReminderScheduler:
    def __init__(
        self,
        dispatcher: NotificationDispatcher,
        session_factory: Callable[[], Session],
        lead_minutes: int = 5,
        margin_minutes: int = 1,
        tick_interval_seconds: float = 60,
        dispatch_delay_ms: int = 1000,
        clock: Callable[[], datetime] = utcnow,
    ):
        if lead_minutes <= 0:
            raise ValueError("lead_minutes must be positive")
        if margin_minutes < 0:
            raise ValueError("margin_minutes must not be negative")
        if tick_interval_seconds <= 0:
            raise ValueError("tick_interval_seconds must be positive")
        if tick_interval_seconds > margin_minutes * 60:
            raise ValueError("tick_interval_seconds must not exceed the lookahead margin")
        if dispatch_delay_ms < 0:
            raise ValueError("dispatch_delay_ms must not be negative")

        self.dispatcher = dispatcher
        self.session_factory = session_factory
        self.lead_minutes = lead_minutes
        self.margin_minutes = margin_minutes
        self.tick_interval_seconds = tick_interval_seconds
        self.dispatch_delay_ms = dispatch_delay_ms
        self.clock = clock

        self.last_result: Optional[CycleResult] = None
        self._state = SchedulerState.STOPPED
        self._loop_task: Optional[asyncio.Task] = None
        self._stop_event: Optional[asyncio.Event] = None
        self._cycle_lock = asyncio.Lock()

    @classmethod
    def from_settings(
        cls,
        settings: ReminderSettings,
        channel: NotificationChannel,
        session_factory: Callable[[], Session],
    ) -> "ReminderScheduler":
        dispatcher = NotificationDispatcher(
            channel,
            session_factory,
            lead_minutes=settings.LEAD_MINUTES,
            tz=get_zoneinfo(settings.DEFAULT_TIMEZONE),
            app_name=settings.APP_NAME,
        )
        return cls(
            dispatcher,
            session_factory,
            lead_minutes=settings.LEAD_MINUTES,
            margin_minutes=settings.LOOKAHEAD_MARGIN_MINUTES,
            tick_interval_seconds=settings.TICK_INTERVAL_SECONDS,
            dispatch_delay_ms=settings.DISPATCH_DELAY_MS,
        )

    @property
    def state(self) -> SchedulerState:
        return self._state

    @property
    def is_running(self) -> bool:
        return self._state is SchedulerState.RUNNING

    def status(self) -> SchedulerStatus:
        return SchedulerStatus(
            state=self._state.value,
            lead_minutes=self.lead_minutes,
            margin_minutes=self.margin_minutes,
            tick_interval_seconds=self.tick_interval_seconds,
            dispatch_delay_ms=self.dispatch_delay_ms,
            last_cycle=self.last_result,
        )

    async def start(self) -> None:
        if self.is_running:
            logger.warning("⚠️ [Scheduler] start() called while already running")
            return
        self._state = SchedulerState.RUNNING
        self._stop_event = asyncio.Event()
        self._loop_task = asyncio.create_task(self._run_loop(self._stop_event))
        scheduler_running.set(1)
        logger.info(
            f"🚀 [Scheduler] Started: checking every {self.tick_interval_seconds}s, "
            f"reminding {self.lead_minutes} minutes before start"
        )

    async def stop(self, wait: bool = True) -> None:
        """Stop arming new cycles; a cycle already in flight runs to completion."""
        if not self.is_running:
            return
        self._state = SchedulerState.STOPPED
        self._stop_event.set()
        scheduler_running.set(0)
        task, self._loop_task = self._loop_task, None
        if wait and task is not None:
            await task
        logger.info("🛑 [Scheduler] Stopped")

    async def trigger_now(self) -> TriggerResult:
        logger.info("👆 [Scheduler] Manual reminder check triggered")
        result = await self.run_cycle()
        return TriggerResult(dispatched_count=result.selected, succeeded=result.succeeded)

    async def _run_loop(self, stop_event: asyncio.Event) -> None:
        while not stop_event.is_set():
            await self.run_cycle()
            try:
                await asyncio.wait_for(stop_event.wait(), timeout=self.tick_interval_seconds)
            except asyncio.TimeoutError:
                pass

    async def run_cycle(self) -> CycleResult:
        async with self._cycle_lock:
            result = CycleResult(started_at=self.clock())
            scheduler_cycles_total.inc()
            try:
                candidates = await asyncio.to_thread(self._select, result.started_at)
                result.selected = len(candidates)
                scheduler_candidates_total.inc(len(candidates))
                if not candidates:
                    logger.info("⏰ [Scheduler] No events need a reminder")
                else:
                    logger.info(f"📋 [Scheduler] {len(candidates)} event(s) need a reminder")

                for index, event in enumerate(candidates):
                    if index:
                        await asyncio.sleep(self.dispatch_delay_ms / 1000)
                    delivered = await asyncio.to_thread(self.dispatcher.dispatch, event)
                    if delivered:
                        result.sent += 1
                    else:
                        result.failed += 1
            except Exception as e:
                result.succeeded = False
                logger.exception(f"❌ [Scheduler] Reminder cycle aborted: {e}")

            result.finished_at = self.clock()
            self.last_result = result
            logger.info(
                f"🏁 [Scheduler] Cycle done: selected={result.selected} sent={result.sent} failed={result.failed}"
            )
            return result

    def _select(self, now: datetime) -> List[ScheduledEvent]:
        db = self.session_factory()
        try:
            return select_candidates(db, now, lead_minutes=self.lead_minutes, margin_minutes=self.margin_minutes)
        finally:
            db.close()

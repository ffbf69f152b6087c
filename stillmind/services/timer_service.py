"""
Meditation timer service
"""

import logging
from datetime import datetime
from enum import Enum
from typing import TYPE_CHECKING, Any, Callable, Dict, List, Optional, Union

from apscheduler.jobstores.base import JobLookupError
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger

from stillmind.core.models import MeditationSession, MeditationType
from stillmind.utils.datetime_utils import format_seconds, now_utc

if TYPE_CHECKING:
    from stillmind.core.database import DatabaseManager

logger = logging.getLogger(__name__)

DURATION_OPTIONS = (5 * 60, 10 * 60, 15 * 60, 20 * 60, 30 * 60, 45 * 60, 60 * 60)
DEFAULT_DURATION = 15 * 60
DEFAULT_TYPE = MeditationType.MINDFULNESS


class InvalidSessionError(ValueError):
    """Bad duration or meditation type passed to the timer"""
    pass


class TimerState(Enum):
    IDLE = "idle"
    RUNNING = "running"
    PAUSED = "paused"


class BreathingPhase(Enum):
    INHALE = 0
    HOLD_IN = 1
    EXHALE = 2
    HOLD_OUT = 3

    @property
    def label(self) -> str:
        return _PHASE_LABELS[self]

    def next(self) -> "BreathingPhase":
        return BreathingPhase((self.value + 1) % len(BreathingPhase))


_PHASE_LABELS = {
    BreathingPhase.INHALE: "Inhale",
    BreathingPhase.HOLD_IN: "Hold",
    BreathingPhase.EXHALE: "Exhale",
    BreathingPhase.HOLD_OUT: "Hold",
}


def validate_duration(duration: Any) -> int:
    if isinstance(duration, bool) or not isinstance(duration, int) or duration <= 0:
        raise InvalidSessionError(f"Duration must be a positive number of seconds, got {duration!r}")
    return duration


def validate_meditation_type(meditation_type: Union[MeditationType, str]) -> MeditationType:
    if isinstance(meditation_type, MeditationType):
        return meditation_type
    try:
        return MeditationType(meditation_type)
    except ValueError:
        raise InvalidSessionError(f"Unknown meditation type {meditation_type!r}")


class MeditationTimer:
    """Countdown and breathing-phase state machine.

    Time only moves when ``tick`` (countdown) and ``breathing_tick`` (phase)
    are called, so any scheduling primitive can drive it. Each run gets a
    new ``run_token``; ticks that carry an older token are dropped.
    """

    def __init__(self, database: Optional["DatabaseManager"] = None,
                 clock: Callable[[], datetime] = now_utc, default_duration: int = DEFAULT_DURATION):
        self.database = database
        self.clock = clock

        self.state = TimerState.IDLE
        self.duration = validate_duration(default_duration)
        self.remaining = self.duration
        self.meditation_type = DEFAULT_TYPE
        self.phase = BreathingPhase.INHALE
        self.run_token = 0

        self.completed_sessions: List[MeditationSession] = []
        self.listeners: List[Callable[[TimerState, TimerState], None]] = []

    # ===== STATE =====

    @property
    def is_running(self) -> bool:
        return self.state is TimerState.RUNNING

    @property
    def is_paused(self) -> bool:
        return self.state is TimerState.PAUSED

    @property
    def is_active(self) -> bool:
        return self.state is not TimerState.IDLE

    @property
    def elapsed(self) -> int:
        return self.duration - self.remaining

    @property
    def progress(self) -> float:
        if self.duration <= 0:
            return 0.0
        return min(1.0, max(0.0, 1.0 - self.remaining / self.duration))

    def format_remaining(self) -> str:
        return format_seconds(self.remaining)

    def add_listener(self, callback: Callable[[TimerState, TimerState], None]) -> None:
        """Register a callback receiving (old_state, new_state)"""
        self.listeners.append(callback)

    def _set_state(self, new_state: TimerState) -> None:
        old_state = self.state
        if old_state is new_state:
            return
        self.state = new_state
        self._notify(old_state, new_state)

    def _notify(self, old_state: TimerState, new_state: TimerState) -> None:
        for callback in self.listeners:
            try:
                callback(old_state, new_state)
            except Exception as e:
                logger.error(f"❌ Timer listener failed: {e}")

    # ===== TRANSITIONS =====

    def select(self, duration: Optional[int] = None,
               meditation_type: Optional[Union[MeditationType, str]] = None) -> None:
        """Change the selected duration or type while idle"""
        if self.is_active:
            raise InvalidSessionError("Cannot change the selection during a session")
        if duration is not None:
            self.duration = validate_duration(duration)
            self.remaining = self.duration
        if meditation_type is not None:
            self.meditation_type = validate_meditation_type(meditation_type)

    def start(self, duration: Optional[int] = None,
              meditation_type: Optional[Union[MeditationType, str]] = None) -> int:
        """Start a session; an active session is stopped first.

        Returns the token of the new run.
        """
        duration = validate_duration(self.duration if duration is None else duration)
        meditation_type = validate_meditation_type(
            self.meditation_type if meditation_type is None else meditation_type
        )

        if self.is_active:
            logger.info("⏹️ Restarting: current session discarded")
            self.stop()

        self.duration = duration
        self.meditation_type = meditation_type
        self.remaining = duration
        self.phase = BreathingPhase.INHALE
        self.run_token += 1
        self._set_state(TimerState.RUNNING)

        logger.info(f"⏰ Meditation started: {meditation_type.display_name} ({format_seconds(duration)})")
        return self.run_token

    def pause(self) -> None:
        if self.state is not TimerState.RUNNING:
            return
        self._set_state(TimerState.PAUSED)
        logger.debug(f"Meditation paused at {self.format_remaining()}")

    def resume(self) -> None:
        if self.state is not TimerState.PAUSED:
            return
        self._set_state(TimerState.RUNNING)
        logger.debug(f"Meditation resumed at {self.format_remaining()}")

    def stop(self) -> None:
        """Abandon the current session without recording it"""
        if not self.is_active:
            return
        self.run_token += 1
        self.remaining = self.duration
        self.phase = BreathingPhase.INHALE
        self._set_state(TimerState.IDLE)
        logger.info("⏹️ Meditation stopped")

    def _accepts(self, token: Optional[int]) -> bool:
        if token is not None and token != self.run_token:
            logger.debug(f"Stale tick for run {token} dropped (current run {self.run_token})")
            return False
        return self.state is TimerState.RUNNING

    def tick(self, token: Optional[int] = None) -> bool:
        """Advance the countdown by one unit. Returns whether the tick applied."""
        if not self._accepts(token):
            return False

        self.remaining -= 1
        if self.remaining <= 0:
            self.remaining = 0
            self._complete()
        return True

    def breathing_tick(self, token: Optional[int] = None) -> bool:
        """Advance the breathing phase. Returns whether the tick applied."""
        if not self._accepts(token):
            return False
        self.phase = self.phase.next()
        return True

    def _complete(self) -> None:
        session = MeditationSession.create(
            duration=self.duration,
            meditation_type=self.meditation_type,
            date=self.clock()
        )

        # Leave RUNNING before handing off so the run cannot complete twice
        self.run_token += 1
        self.state = TimerState.IDLE
        self.completed_sessions.append(session)

        if self.database is not None:
            try:
                self.database.add_session(session)
            except Exception as e:
                logger.error(f"❌ Failed to record meditation session: {e}")

        self.remaining = self.duration
        self.phase = BreathingPhase.INHALE
        logger.info(f"✅ Meditation completed: {session.type.display_name} ({format_seconds(session.duration)})")
        self._notify(TimerState.RUNNING, TimerState.IDLE)

    def get_timer_info(self) -> Dict[str, Any]:
        return {
            "state": self.state.value,
            "type": self.meditation_type.value,
            "duration": self.duration,
            "remaining": self.remaining,
            "remaining_text": self.format_remaining(),
            "phase": self.phase.label,
            "progress": round(self.progress, 4)
        }


class TimerDriver:
    """Feeds a MeditationTimer from two APScheduler interval jobs"""

    COUNTDOWN_JOB = "meditation_countdown"
    BREATHING_JOB = "meditation_breathing"

    def __init__(self, timer: MeditationTimer, tick_seconds: float = 1.0,
                 breathing_multiplier: int = 4, scheduler: Optional[AsyncIOScheduler] = None):
        if tick_seconds <= 0:
            raise ValueError("tick_seconds must be positive")
        self.timer = timer
        self.tick_seconds = tick_seconds
        self.breathing_seconds = tick_seconds * breathing_multiplier
        self.scheduler = scheduler or AsyncIOScheduler()
        self._owns_scheduler = scheduler is None
        self.active_jobs: List[str] = []

        self.timer.add_listener(self._on_state_change)

    def _on_state_change(self, old_state: TimerState, new_state: TimerState) -> None:
        if new_state is TimerState.IDLE:
            self._cancel_jobs()

    async def _countdown_job(self, token: int) -> None:
        self.timer.tick(token)

    async def _breathing_job(self, token: int) -> None:
        self.timer.breathing_tick(token)

    def start(self, duration: Optional[int] = None,
              meditation_type: Optional[Union[MeditationType, str]] = None) -> int:
        token = self.timer.start(duration, meditation_type)

        if not self.scheduler.running:
            self.scheduler.start()

        self.scheduler.add_job(
            self._countdown_job,
            IntervalTrigger(seconds=self.tick_seconds),
            args=[token],
            id=self.COUNTDOWN_JOB,
            replace_existing=True
        )
        self.scheduler.add_job(
            self._breathing_job,
            IntervalTrigger(seconds=self.breathing_seconds),
            args=[token],
            id=self.BREATHING_JOB,
            replace_existing=True
        )
        self.active_jobs = [self.COUNTDOWN_JOB, self.BREATHING_JOB]
        return token

    def pause(self) -> None:
        self.timer.pause()

    def resume(self) -> None:
        self.timer.resume()

    def stop(self) -> None:
        self.timer.stop()
        self._cancel_jobs()

    def _cancel_jobs(self) -> None:
        """Remove the countdown and breathing jobs together"""
        jobs, self.active_jobs = self.active_jobs, []
        for job_id in jobs:
            try:
                self.scheduler.remove_job(job_id)
            except JobLookupError:
                logger.debug(f"Job {job_id} already removed")

    def shutdown(self) -> None:
        self.stop()
        if self._owns_scheduler and self.scheduler.running:
            self.scheduler.shutdown(wait=False)
        logger.info("🧹 Timer driver stopped")

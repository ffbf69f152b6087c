"""Meditation timer state machine tests."""

import pytest

from stillmind.core.database import DatabaseManager
from stillmind.core.models import MeditationType
from stillmind.database.manager import MemoryStorage
from stillmind.services.timer_service import (
    DEFAULT_DURATION,
    DURATION_OPTIONS,
    BreathingPhase,
    InvalidSessionError,
    MeditationTimer,
    TimerState,
)


def _ticks(timer, count, token=None):
    for _ in range(count):
        timer.tick(token)


class TestInitialState:

    def test_idle_defaults(self, timer):
        assert timer.state is TimerState.IDLE
        assert timer.duration == DEFAULT_DURATION
        assert timer.remaining == DEFAULT_DURATION
        assert timer.meditation_type is MeditationType.MINDFULNESS
        assert timer.phase is BreathingPhase.INHALE
        assert timer.progress == 0.0
        assert timer.format_remaining() == "15:00"

    def test_duration_options(self):
        assert DURATION_OPTIONS[0] == 5 * 60
        assert DURATION_OPTIONS[-1] == 60 * 60

    def test_ticks_ignored_while_idle(self, timer):
        assert timer.tick() is False
        assert timer.breathing_tick() is False
        assert timer.remaining == DEFAULT_DURATION


class TestCountdown:

    def test_natural_expiry_records_one_session(self, timer, database, fixed_now):
        timer.start(5, MeditationType.MINDFULNESS)

        seen = []
        for _ in range(4):
            timer.tick()
            seen.append(timer.remaining)
        assert seen == [4, 3, 2, 1]
        assert database.meditation_sessions == ()

        assert timer.tick() is True
        sessions = database.meditation_sessions
        assert len(sessions) == 1
        assert sessions[0].duration == 5
        assert sessions[0].type is MeditationType.MINDFULNESS
        assert sessions[0].date == fixed_now

        assert timer.state is TimerState.IDLE
        assert timer.remaining == 5

        assert timer.tick() is False
        assert len(database.meditation_sessions) == 1

    def test_expiry_with_one_second(self, timer, database):
        timer.start(1, MeditationType.WALKING)
        timer.tick()
        assert len(database.meditation_sessions) == 1
        assert timer.completed_sessions[0].type is MeditationType.WALKING

    def test_progress_is_monotonic(self, timer):
        timer.start(4, MeditationType.BREATHING)
        values = [timer.progress]
        for _ in range(3):
            timer.tick()
            values.append(timer.progress)
        assert values == [0.0, 0.25, 0.5, 0.75]
        assert timer.elapsed == 3

    def test_type_given_as_tag(self, timer):
        timer.start(30, "bodyScan")
        assert timer.meditation_type is MeditationType.BODY_SCAN


class TestPauseResume:

    def test_pause_freezes_time(self, timer):
        timer.start(10, MeditationType.MINDFULNESS)
        _ticks(timer, 3)
        assert timer.remaining == 7

        timer.pause()
        assert timer.state is TimerState.PAUSED
        _ticks(timer, 5)
        assert timer.remaining == 7

        timer.resume()
        assert timer.state is TimerState.RUNNING
        _ticks(timer, 2)
        assert timer.remaining == 5

    def test_pause_and_resume_while_idle_are_noops(self, timer):
        timer.pause()
        assert timer.state is TimerState.IDLE
        timer.resume()
        assert timer.state is TimerState.IDLE

    def test_resume_while_running_is_noop(self, timer):
        timer.start(10, MeditationType.MINDFULNESS)
        timer.resume()
        assert timer.state is TimerState.RUNNING

    def test_paused_session_can_be_stopped(self, timer, database):
        timer.start(3, MeditationType.MINDFULNESS)
        timer.pause()
        timer.stop()
        assert timer.state is TimerState.IDLE
        assert database.meditation_sessions == ()


class TestStop:

    def test_stop_discards_session(self, timer, database):
        timer.start(10, MeditationType.MINDFULNESS)
        _ticks(timer, 4)
        timer.stop()

        assert database.meditation_sessions == ()
        assert timer.state is TimerState.IDLE
        assert timer.remaining == 10

        timer.start(10, MeditationType.MINDFULNESS)
        assert timer.remaining == 10
        assert timer.state is TimerState.RUNNING

    def test_stale_tick_after_stop_is_dropped(self, timer, database):
        old_token = timer.start(3, MeditationType.MINDFULNESS)
        _ticks(timer, 2, old_token)
        timer.stop()

        new_token = timer.start(3, MeditationType.MINDFULNESS)
        assert new_token != old_token
        assert timer.tick(old_token) is False
        assert timer.breathing_tick(old_token) is False
        assert timer.remaining == 3
        assert timer.phase is BreathingPhase.INHALE

        _ticks(timer, 3, new_token)
        assert len(database.meditation_sessions) == 1

    def test_stop_while_idle_keeps_token(self, timer):
        token = timer.run_token
        timer.stop()
        assert timer.run_token == token


class TestRestart:

    def test_start_while_running_restarts(self, timer, database):
        timer.start(10, MeditationType.MINDFULNESS)
        _ticks(timer, 3)
        timer.breathing_tick()

        timer.start(20, MeditationType.BREATHING)

        assert timer.state is TimerState.RUNNING
        assert timer.remaining == 20
        assert timer.meditation_type is MeditationType.BREATHING
        assert timer.phase is BreathingPhase.INHALE
        assert database.meditation_sessions == ()

    def test_start_while_paused_restarts(self, timer):
        timer.start(10, MeditationType.MINDFULNESS)
        timer.pause()
        timer.start(8, MeditationType.WALKING)
        assert timer.state is TimerState.RUNNING
        assert timer.remaining == 8

    def test_start_uses_selection(self, timer):
        timer.select(duration=120, meditation_type=MeditationType.LOVING_KINDNESS)
        assert timer.remaining == 120
        timer.start()
        assert timer.duration == 120
        assert timer.meditation_type is MeditationType.LOVING_KINDNESS

    def test_select_rejected_during_session(self, timer):
        timer.start(10, MeditationType.MINDFULNESS)
        with pytest.raises(InvalidSessionError):
            timer.select(duration=60)


class TestValidation:

    @pytest.mark.parametrize("duration", [0, -1, True, 1.5, "300"])
    def test_bad_duration(self, timer, duration):
        with pytest.raises(InvalidSessionError):
            timer.start(duration, MeditationType.MINDFULNESS)
        assert timer.state is TimerState.IDLE

    def test_bad_type(self, timer):
        with pytest.raises(InvalidSessionError):
            timer.start(60, "yoga")

    def test_rejected_start_keeps_running_session(self, timer):
        timer.start(10, MeditationType.MINDFULNESS)
        _ticks(timer, 2)
        with pytest.raises(InvalidSessionError):
            timer.start(0, MeditationType.MINDFULNESS)
        assert timer.state is TimerState.RUNNING
        assert timer.remaining == 8

    def test_invalid_default_duration(self):
        with pytest.raises(InvalidSessionError):
            MeditationTimer(default_duration=0)


class TestBreathing:

    def test_phase_cycle(self, timer):
        timer.start(60, MeditationType.BREATHING)
        labels = [timer.phase.label]
        for _ in range(5):
            timer.breathing_tick()
            labels.append(timer.phase.label)
        assert labels == ["Inhale", "Hold", "Exhale", "Hold", "Inhale", "Hold"]

    def test_phase_frozen_while_paused(self, timer):
        timer.start(60, MeditationType.BREATHING)
        timer.breathing_tick()
        timer.pause()
        assert timer.breathing_tick() is False
        assert timer.phase is BreathingPhase.HOLD_IN
        timer.resume()
        timer.breathing_tick()
        assert timer.phase is BreathingPhase.EXHALE

    def test_phase_reset_on_start(self, timer):
        timer.start(60, MeditationType.BREATHING)
        timer.breathing_tick()
        timer.breathing_tick()
        timer.stop()
        timer.start(60, MeditationType.BREATHING)
        assert timer.phase is BreathingPhase.INHALE


class TestListenersAndHandoff:

    def test_listener_sees_transitions(self, timer):
        transitions = []
        timer.add_listener(lambda old, new: transitions.append((old, new)))

        timer.start(2, MeditationType.MINDFULNESS)
        timer.pause()
        timer.resume()
        _ticks(timer, 2)

        assert transitions == [
            (TimerState.IDLE, TimerState.RUNNING),
            (TimerState.RUNNING, TimerState.PAUSED),
            (TimerState.PAUSED, TimerState.RUNNING),
            (TimerState.RUNNING, TimerState.IDLE),
        ]

    def test_failing_store_does_not_break_timer(self, clock):
        unopened = DatabaseManager(MemoryStorage())
        timer = MeditationTimer(unopened, clock=clock)
        timer.start(1, MeditationType.MINDFULNESS)
        timer.tick()
        assert timer.state is TimerState.IDLE
        assert len(timer.completed_sessions) == 1

    def test_timer_without_store(self, clock):
        timer = MeditationTimer(clock=clock)
        timer.start(1, MeditationType.MINDFULNESS)
        timer.tick()
        assert timer.completed_sessions[0].duration == 1

    def test_timer_info(self, timer):
        timer.start(90, MeditationType.WALKING)
        timer.tick()
        info = timer.get_timer_info()
        assert info["state"] == "running"
        assert info["type"] == "walking"
        assert info["remaining_text"] == "01:29"
        assert info["phase"] == "Inhale"

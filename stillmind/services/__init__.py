from .timer_service import (
    DEFAULT_DURATION,
    DEFAULT_TYPE,
    DURATION_OPTIONS,
    BreathingPhase,
    InvalidSessionError,
    MeditationTimer,
    TimerDriver,
    TimerState,
)

__all__ = [
    'DEFAULT_DURATION',
    'DEFAULT_TYPE',
    'DURATION_OPTIONS',
    'BreathingPhase',
    'InvalidSessionError',
    'MeditationTimer',
    'TimerDriver',
    'TimerState',
]

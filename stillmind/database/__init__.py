from .manager import (
    ALL_SLOTS,
    JOURNAL_SLOT,
    NOTES_SLOT,
    ONBOARDING_SLOT,
    PROFILE_SLOT,
    SESSIONS_SLOT,
    JsonFileStorage,
    MemoryStorage,
    SlotStorage,
    StorageWriteError,
)

__all__ = [
    'ALL_SLOTS',
    'JOURNAL_SLOT',
    'NOTES_SLOT',
    'ONBOARDING_SLOT',
    'PROFILE_SLOT',
    'SESSIONS_SLOT',
    'JsonFileStorage',
    'MemoryStorage',
    'SlotStorage',
    'StorageWriteError',
]

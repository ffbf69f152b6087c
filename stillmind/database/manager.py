# database/manager.py

import os
import logging
from pathlib import Path
from typing import Dict, Optional, Union

logger = logging.getLogger(__name__)

PROFILE_SLOT = "userProfile"
NOTES_SLOT = "notes"
JOURNAL_SLOT = "journalEntries"
SESSIONS_SLOT = "meditationSessions"
ONBOARDING_SLOT = "isOnboardingCompleted"

ALL_SLOTS = (PROFILE_SLOT, NOTES_SLOT, JOURNAL_SLOT, SESSIONS_SLOT, ONBOARDING_SLOT)


class StorageWriteError(Exception):
    """A slot could not be written"""
    pass


class SlotStorage:
    """Key-value durable medium, one serialized payload per slot"""

    def read(self, slot: str) -> Optional[str]:
        """Return the stored payload, or None if the slot was never written"""
        raise NotImplementedError

    def write(self, slot: str, payload: str) -> None:
        raise NotImplementedError

    def exists(self, slot: str) -> bool:
        raise NotImplementedError

    def clear(self) -> None:
        raise NotImplementedError


class JsonFileStorage(SlotStorage):
    """One JSON file per slot inside a data directory"""

    def __init__(self, data_dir: Union[str, Path]):
        self.data_dir = Path(data_dir)

    def _slot_file(self, slot: str) -> Path:
        return self.data_dir / f"{slot}.json"

    def read(self, slot: str) -> Optional[str]:
        path = self._slot_file(slot)
        if not path.exists():
            return None
        with open(path, "r", encoding="utf-8") as f:
            return f.read()

    def write(self, slot: str, payload: str) -> None:
        path = self._slot_file(slot)
        temp_file = path.with_suffix('.tmp')
        try:
            self.data_dir.mkdir(parents=True, exist_ok=True)
            with open(temp_file, "w", encoding="utf-8") as f:
                f.write(payload)
                f.flush()
                os.fsync(f.fileno())
            os.replace(temp_file, path)
        except (OSError, UnicodeError) as e:
            raise StorageWriteError(f"Failed to write slot {slot}: {e}") from e
        finally:
            if temp_file.exists():
                temp_file.unlink()

    def exists(self, slot: str) -> bool:
        return self._slot_file(slot).exists()

    def clear(self) -> None:
        for slot in ALL_SLOTS:
            path = self._slot_file(slot)
            if path.exists():
                path.unlink()


class MemoryStorage(SlotStorage):
    """In-process storage for tests and throwaway runs"""

    def __init__(self, initial: Optional[Dict[str, str]] = None):
        self.slots: Dict[str, str] = dict(initial or {})
        self.fail_writes = False
        self.write_count = 0

    def read(self, slot: str) -> Optional[str]:
        return self.slots.get(slot)

    def write(self, slot: str, payload: str) -> None:
        if self.fail_writes:
            raise StorageWriteError(f"Failed to write slot {slot}: storage unavailable")
        self.slots[slot] = payload
        self.write_count += 1

    def exists(self, slot: str) -> bool:
        return slot in self.slots

    def clear(self) -> None:
        self.slots.clear()

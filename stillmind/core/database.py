#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
StillMind v1.0 - Local Data Store
Owns the profile, notes, journal entries and meditation sessions and keeps
every slot durable after each mutation.

Version: 1.0.0
"""

import json
from datetime import date, datetime
from typing import Dict, List, Optional, Union, Any, Callable, Set, Tuple, Type
from dataclasses import dataclass
from enum import Enum
import logging

from stillmind.core.models import (
    JournalEntry,
    MeditationSession,
    MeditationType,
    Mood,
    Note,
    Profile,
    ValidationError,
    sample_journal_entries,
    sample_notes,
)
from stillmind.database.manager import (
    JOURNAL_SLOT,
    NOTES_SLOT,
    ONBOARDING_SLOT,
    PROFILE_SLOT,
    SESSIONS_SLOT,
    SlotStorage,
    StorageWriteError,
)
from stillmind.utils.datetime_utils import now_utc, to_iso, utc_day

logger = logging.getLogger(__name__)

DATA_VERSION = "1.0.0"

# ===== EXCEPTIONS =====

class DatabaseError(Exception):
    """Base error for the data store"""
    pass

class DatabaseCorruptionError(DatabaseError):
    """A slot could not be decoded"""
    pass

class UnsupportedCommandError(DatabaseError):
    """The command is not allowed for this collection"""
    pass

# ===== COMMANDS =====

class Collection(Enum):
    """Entity collections owned by the store"""
    NOTES = "notes"
    JOURNAL = "journal_entries"
    SESSIONS = "meditation_sessions"


_SLOTS = {
    Collection.NOTES: NOTES_SLOT,
    Collection.JOURNAL: JOURNAL_SLOT,
    Collection.SESSIONS: SESSIONS_SLOT,
}

_MODELS: Dict[Collection, Type] = {
    Collection.NOTES: Note,
    Collection.JOURNAL: JournalEntry,
    Collection.SESSIONS: MeditationSession,
}

_COLLECTION_BY_MODEL = {model: collection for collection, model in _MODELS.items()}

Entity = Union[Note, JournalEntry, MeditationSession]


def collection_for(entity: Entity) -> Collection:
    try:
        return _COLLECTION_BY_MODEL[type(entity)]
    except KeyError:
        raise ValidationError(f"Unsupported entity type: {type(entity).__name__}")


@dataclass(frozen=True)
class Add:
    entity: Entity

@dataclass(frozen=True)
class Update:
    entity: Entity

@dataclass(frozen=True)
class Delete:
    collection: Collection
    entity_id: str

Command = Union[Add, Update, Delete]

# ===== HELPER CLASSES =====

@dataclass
class DatabaseStats:
    """Store bookkeeping"""
    last_save: Optional[str] = None
    save_count: int = 0
    load_count: int = 0
    error_count: int = 0
    skipped_records: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            'last_save': self.last_save,
            'save_count': self.save_count,
            'load_count': self.load_count,
            'error_count': self.error_count,
            'skipped_records': self.skipped_records
        }

# ===== DATABASE MANAGER =====

class DatabaseManager:
    """Single source of truth for all user data.

    Every mutation goes through ``apply`` which changes the in-memory
    collection and then synchronously rewrites the affected slot. A failed
    write is logged and counted; the in-memory state keeps the change and
    the next successful write of that slot reconciles it.
    """

    def __init__(self, storage: SlotStorage, clock: Callable[[], datetime] = now_utc):
        self.storage = storage
        self.clock = clock

        self._profile = Profile.default()
        self._collections: Dict[Collection, List[Entity]] = {c: [] for c in Collection}
        self._onboarding_completed = False
        self._unpopulated_slots: Set[str] = set()
        self._dirty_slots: Set[str] = set()

        self.stats = DatabaseStats()

        self.is_initialized = False
        self.is_shutting_down = False

        self.change_callbacks: List[Callable[[Command], None]] = []

    def initialize(self) -> None:
        """Load every slot and seed sample data on first run"""
        if self.is_initialized:
            return
        logger.info("Initializing data store...")
        self.is_shutting_down = False
        self.load()
        self.is_initialized = True
        logger.info(
            f"Data store initialized: {len(self._collections[Collection.NOTES])} notes, "
            f"{len(self._collections[Collection.JOURNAL])} journal entries, "
            f"{len(self._collections[Collection.SESSIONS])} sessions"
        )

    def shutdown(self) -> None:
        """Retry slots whose last write failed and close the store"""
        if not self.is_initialized or self.is_shutting_down:
            return

        self.is_shutting_down = True
        logger.info("Shutting down data store...")
        self.flush()
        self.is_initialized = False
        logger.info("Data store shutdown completed")

    def _require_initialized(self) -> None:
        if not self.is_initialized or self.is_shutting_down:
            raise DatabaseError("Database not initialized")

    # ===== LOADING =====

    def load(self) -> None:
        """Read each slot independently; a bad slot only empties itself."""
        self._unpopulated_slots = set()
        self._dirty_slots = set()

        self._profile = self._load_profile()
        for collection in Collection:
            self._collections[collection] = self._load_collection(collection)
        self._onboarding_completed = self._load_onboarding_flag()

        self.stats.load_count += 1
        self._seed_sample_data()

    def _read_slot(self, slot: str) -> Optional[Any]:
        """Decoded JSON of a slot, or None when it was never populated"""
        try:
            raw = self.storage.read(slot)
        except (OSError, UnicodeDecodeError) as e:
            raise DatabaseCorruptionError(f"Slot {slot} is unreadable: {e}") from e

        if raw is None or not raw.strip():
            self._unpopulated_slots.add(slot)
            return None

        try:
            return json.loads(raw)
        except json.JSONDecodeError as e:
            raise DatabaseCorruptionError(f"Slot {slot} is corrupted: {e}") from e

    def _load_profile(self) -> Profile:
        try:
            data = self._read_slot(PROFILE_SLOT)
            if data is None:
                return Profile.default()
            if not isinstance(data, dict):
                raise DatabaseCorruptionError(f"Slot {PROFILE_SLOT} does not hold an object")
            return Profile.from_dict(data)
        except DatabaseCorruptionError as e:
            logger.error(f"{e}; using default profile")
            self.stats.error_count += 1
        except (KeyError, TypeError, ValueError, ValidationError) as e:
            logger.error(f"Stored profile is invalid ({e}); using default profile")
            self.stats.error_count += 1
        return Profile.default()

    def _load_collection(self, collection: Collection) -> List[Entity]:
        slot = _SLOTS[collection]
        model = _MODELS[collection]

        try:
            data = self._read_slot(slot)
            if data is None:
                return []
            if not isinstance(data, list):
                raise DatabaseCorruptionError(f"Slot {slot} does not hold a list")
        except DatabaseCorruptionError as e:
            logger.error(f"{e}; starting with empty {collection.value}")
            self.stats.error_count += 1
            return []

        items: List[Entity] = []
        seen_ids: Set[str] = set()
        for record in data:
            try:
                item = model.from_dict(record)
            except (KeyError, TypeError, ValueError, AttributeError, ValidationError) as e:
                logger.warning(f"Skipping invalid record in {slot}: {e}")
                self.stats.skipped_records += 1
                continue
            if item.id in seen_ids:
                logger.warning(f"Skipping duplicate id {item.id} in {slot}")
                self.stats.skipped_records += 1
                continue
            seen_ids.add(item.id)
            items.append(item)

        logger.debug(f"Loaded {len(items)} records from {slot}")
        return items

    def _load_onboarding_flag(self) -> bool:
        try:
            data = self._read_slot(ONBOARDING_SLOT)
        except DatabaseCorruptionError as e:
            logger.error(f"{e}; onboarding flag reset")
            self.stats.error_count += 1
            return False
        return data is True

    def _seed_sample_data(self) -> None:
        """Seed notes and entries only into slots that were never written"""
        now = self.clock()

        if NOTES_SLOT in self._unpopulated_slots and not self._collections[Collection.NOTES]:
            self._collections[Collection.NOTES] = list(sample_notes(now))
            self._save_collection(Collection.NOTES)
            logger.info("Seeded sample notes")

        if JOURNAL_SLOT in self._unpopulated_slots and not self._collections[Collection.JOURNAL]:
            self._collections[Collection.JOURNAL] = list(sample_journal_entries(now))
            self._save_collection(Collection.JOURNAL)
            logger.info("Seeded sample journal entries")

    # ===== SAVING =====

    def _write_slot(self, slot: str, data: Any) -> bool:
        try:
            payload = json.dumps(data, ensure_ascii=False, indent=2)
            self.storage.write(slot, payload)
        except (StorageWriteError, OSError, TypeError, ValueError) as e:
            logger.error(f"Failed to save {slot}: {e}")
            self.stats.error_count += 1
            self._dirty_slots.add(slot)
            return False

        self._unpopulated_slots.discard(slot)
        self._dirty_slots.discard(slot)
        self.stats.save_count += 1
        self.stats.last_save = to_iso(now_utc())
        return True

    def _save_collection(self, collection: Collection) -> bool:
        return self._write_slot(
            _SLOTS[collection],
            [item.to_dict() for item in self._collections[collection]]
        )

    def _save_profile(self) -> bool:
        return self._write_slot(PROFILE_SLOT, self._profile.to_dict())

    def _save_onboarding_flag(self) -> bool:
        return self._write_slot(ONBOARDING_SLOT, self._onboarding_completed)

    def flush(self) -> bool:
        """Rewrite only the slots whose last write failed.

        Slots that failed to load are never rewritten here, so their bytes on
        disk stay untouched until a mutation replaces them.
        """
        savers = {
            PROFILE_SLOT: self._save_profile,
            ONBOARDING_SLOT: self._save_onboarding_flag,
        }
        for collection, slot in _SLOTS.items():
            savers[slot] = lambda collection=collection: self._save_collection(collection)

        results = [savers[slot]() for slot in sorted(self._dirty_slots)]
        if results:
            logger.info(f"Flushed {len(results)} pending slot(s)")
        return all(results)

    @property
    def pending_slots(self) -> Tuple[str, ...]:
        """Slots holding in-memory changes that have not reached storage"""
        return tuple(sorted(self._dirty_slots))

    # ===== COMMANDS =====

    def apply(self, command: Command) -> bool:
        """Mutate in memory, then persist the affected slot.

        Returns whether the write reached durable storage.
        """
        self._require_initialized()

        if isinstance(command, Add):
            collection = collection_for(command.entity)
            items = self._collections[collection]
            if any(item.id == command.entity.id for item in items):
                raise ValidationError(f"Duplicate id {command.entity.id} in {collection.value}")
            items.append(command.entity)

        elif isinstance(command, Update):
            collection = collection_for(command.entity)
            if collection is Collection.SESSIONS:
                raise UnsupportedCommandError("Meditation sessions cannot be edited")
            items = self._collections[collection]
            for index, item in enumerate(items):
                if item.id == command.entity.id:
                    items[index] = command.entity
                    break
            else:
                logger.debug(f"Update of missing id {command.entity.id} in {collection.value} ignored")

        elif isinstance(command, Delete):
            collection = command.collection
            if collection is Collection.SESSIONS:
                raise UnsupportedCommandError("Meditation sessions cannot be deleted")
            items = self._collections[collection]
            remaining = [item for item in items if item.id != command.entity_id]
            if len(remaining) == len(items):
                logger.debug(f"Delete of missing id {command.entity_id} in {collection.value} ignored")
            self._collections[collection] = remaining

        else:
            raise UnsupportedCommandError(f"Unknown command: {command!r}")

        persisted = self._save_collection(collection)
        self._notify(command)
        return persisted

    def _notify(self, command: Command) -> None:
        for callback in self.change_callbacks:
            try:
                callback(command)
            except Exception as e:
                logger.warning(f"Change callback failed: {e}")

    def add_change_callback(self, callback: Callable[[Command], None]) -> None:
        """Register a callback run after every applied command"""
        self.change_callbacks.append(callback)

    # ===== PUBLIC API =====

    @property
    def profile(self) -> Profile:
        return self._profile

    @property
    def notes(self) -> Tuple[Note, ...]:
        return tuple(self._collections[Collection.NOTES])

    @property
    def journal_entries(self) -> Tuple[JournalEntry, ...]:
        return tuple(self._collections[Collection.JOURNAL])

    @property
    def meditation_sessions(self) -> Tuple[MeditationSession, ...]:
        return tuple(self._collections[Collection.SESSIONS])

    @property
    def is_onboarding_completed(self) -> bool:
        return self._onboarding_completed

    def add_note(self, note: Note) -> bool:
        return self.apply(Add(note))

    def update_note(self, note: Note) -> bool:
        return self.apply(Update(note))

    def delete_note(self, note_id: str) -> bool:
        return self.apply(Delete(Collection.NOTES, note_id))

    def add_journal_entry(self, entry: JournalEntry) -> bool:
        return self.apply(Add(entry))

    def update_journal_entry(self, entry: JournalEntry) -> bool:
        return self.apply(Update(entry))

    def delete_journal_entry(self, entry_id: str) -> bool:
        return self.apply(Delete(Collection.JOURNAL, entry_id))

    def add_session(self, session: MeditationSession) -> bool:
        return self.apply(Add(session))

    def update_profile(self, profile: Profile) -> bool:
        """Replace the profile"""
        self._require_initialized()
        if not isinstance(profile, Profile):
            raise ValidationError("profile must be a Profile")
        self._profile = profile
        return self._save_profile()

    def set_onboarding_completed(self, completed: bool = True) -> bool:
        self._require_initialized()
        self._onboarding_completed = bool(completed)
        return self._save_onboarding_flag()

    def reset_all(self) -> bool:
        """Clear notes, entries and sessions and restore the default profile"""
        self._require_initialized()
        for collection in Collection:
            self._collections[collection] = []
        self._profile = Profile.default()

        results = [self._save_collection(collection) for collection in Collection]
        results.append(self._save_profile())
        logger.info("All user data reset")
        return all(results)

    # ===== QUERIES =====

    def get_note(self, note_id: str) -> Optional[Note]:
        self._require_initialized()
        return next((n for n in self._collections[Collection.NOTES] if n.id == note_id), None)

    def get_journal_entry(self, entry_id: str) -> Optional[JournalEntry]:
        self._require_initialized()
        return next((e for e in self._collections[Collection.JOURNAL] if e.id == entry_id), None)

    def search_notes(self, text: Optional[str] = None, mood: Optional[Mood] = None) -> List[Note]:
        """Notes matching text in title or content and an optional mood, newest first"""
        self._require_initialized()

        results = list(self._collections[Collection.NOTES])
        query = (text or "").strip().casefold()
        if query:
            results = [
                note for note in results
                if query in note.title.casefold() or query in note.content.casefold()
            ]
        if mood is not None:
            mood = Mood(mood)
            results = [note for note in results if note.mood is mood]

        return sorted(results, key=lambda note: note.date, reverse=True)

    def entries_for_date(self, day: date) -> List[JournalEntry]:
        """Journal entries written on a UTC calendar day, newest first"""
        self._require_initialized()
        if isinstance(day, datetime):
            day = utc_day(day)
        entries = [e for e in self._collections[Collection.JOURNAL] if utc_day(e.date) == day]
        return sorted(entries, key=lambda e: e.date, reverse=True)

    def recent_journal_entries(self, limit: int = 5) -> List[JournalEntry]:
        self._require_initialized()
        return list(self._collections[Collection.JOURNAL][:limit])

    def latest_note(self) -> Optional[Note]:
        self._require_initialized()
        notes = self._collections[Collection.NOTES]
        return notes[-1] if notes else None

    def latest_session(self) -> Optional[MeditationSession]:
        self._require_initialized()
        sessions = self._collections[Collection.SESSIONS]
        return sessions[-1] if sessions else None

    def get_stats(self) -> Dict[str, Any]:
        """Content counts and store bookkeeping"""
        self._require_initialized()
        sessions = self._collections[Collection.SESSIONS]

        by_type = {t.value: 0 for t in MeditationType}
        for session in sessions:
            by_type[session.type.value] += 1

        return {
            'total_notes': len(self._collections[Collection.NOTES]),
            'total_journal_entries': len(self._collections[Collection.JOURNAL]),
            'total_sessions': len(sessions),
            'total_minutes': round(sum(s.duration for s in sessions) / 60, 1),
            'sessions_by_type': by_type,
            'onboarding_completed': self._onboarding_completed,
            'database': self.stats.to_dict()
        }

    def export_data(self) -> bytes:
        """Export all user data as JSON"""
        self._require_initialized()
        export_data = {
            "export_info": {
                "format": "json",
                "version": DATA_VERSION,
                "exported_at": to_iso(now_utc())
            },
            "profile": self._profile.to_dict(),
            "notes": [n.to_dict() for n in self._collections[Collection.NOTES]],
            "journal_entries": [e.to_dict() for e in self._collections[Collection.JOURNAL]],
            "meditation_sessions": [s.to_dict() for s in self._collections[Collection.SESSIONS]]
        }
        return json.dumps(export_data, ensure_ascii=False, indent=2).encode('utf-8')

# ===== CONVENIENCE FUNCTIONS =====

def create_database_manager(storage: SlotStorage, clock: Callable[[], datetime] = now_utc) -> DatabaseManager:
    """Construct and initialize a data store"""
    manager = DatabaseManager(storage, clock=clock)
    manager.initialize()
    return manager

# ===== EXPORT =====

__all__ = [
    'DatabaseError',
    'DatabaseCorruptionError',
    'UnsupportedCommandError',
    'Collection',
    'Add',
    'Update',
    'Delete',
    'Command',
    'DatabaseStats',
    'DatabaseManager',
    'create_database_manager'
]

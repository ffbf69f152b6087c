#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
StillMind v1.0 - Core Data Models
Journal, note, session and profile models with validation.

Version: 1.0.0
"""

import uuid
from datetime import datetime, timedelta
from typing import Dict, List, Optional, Any, Iterable, Tuple, Union
from dataclasses import dataclass, field, asdict
from enum import Enum

from stillmind.utils.datetime_utils import now_utc, parse_iso, to_iso, ensure_aware


# ===== ENUMS =====

class Mood(Enum):
    """Emotional tone of a note or journal entry"""
    CALM = "calm"
    PEACEFUL = "peaceful"
    GRATEFUL = "grateful"
    MINDFUL = "mindful"
    CENTERED = "centered"

    @property
    def emoji(self) -> str:
        return _MOOD_EMOJI[self]


_MOOD_EMOJI = {
    Mood.CALM: "😌",
    Mood.PEACEFUL: "🕊️",
    Mood.GRATEFUL: "🙏",
    Mood.MINDFUL: "🧘",
    Mood.CENTERED: "⚖️",
}


class MeditationType(Enum):
    """Meditation technique"""
    BREATHING = "breathing"
    MINDFULNESS = "mindfulness"
    LOVING_KINDNESS = "lovingKindness"
    BODY_SCAN = "bodyScan"
    WALKING = "walking"

    @property
    def display_name(self) -> str:
        return _MEDITATION_DISPLAY_NAMES[self]


_MEDITATION_DISPLAY_NAMES = {
    MeditationType.BREATHING: "Breathing",
    MeditationType.MINDFULNESS: "Mindfulness",
    MeditationType.LOVING_KINDNESS: "Loving Kindness",
    MeditationType.BODY_SCAN: "Body Scan",
    MeditationType.WALKING: "Walking",
}

# ===== VALIDATION HELPERS =====

class ValidationError(Exception):
    """Invalid model data"""
    pass

TITLE_MAX_LENGTH = 200
CONTENT_MAX_LENGTH = 10000


def validate_text(text: str, min_length: int = 0, max_length: int = 1000,
                  field_name: str = "text", strip: bool = True) -> str:
    """Validate a text field"""
    if not isinstance(text, str):
        raise ValidationError(f"{field_name} must be a string")

    try:
        text.encode('utf-8')
    except UnicodeEncodeError:
        raise ValidationError(f"{field_name} contains characters that cannot be stored")

    if strip:
        text = text.strip()
    if len(text) < min_length:
        raise ValidationError(f"{field_name} must be at least {min_length} characters")

    if len(text) > max_length:
        raise ValidationError(f"{field_name} must be at most {max_length} characters")

    return text


def validate_enum_value(value: Union[str, Enum], enum_class: type, field_name: str = "value") -> Enum:
    """Coerce a tag or member into an enum member"""
    if isinstance(value, enum_class):
        return value
    try:
        return enum_class(value)
    except ValueError:
        valid_values = [e.value for e in enum_class]
        raise ValidationError(f"{field_name} must be one of: {valid_values}")


def validate_id(value: Any, field_name: str = "id") -> str:
    if not isinstance(value, str) or not value:
        raise ValidationError(f"{field_name} must be a non-empty string")
    return value


def validate_timestamp(value: Any, field_name: str = "date") -> datetime:
    try:
        return parse_iso(value)
    except (TypeError, ValueError):
        raise ValidationError(f"Invalid {field_name}: {value!r}")


def new_id() -> str:
    return str(uuid.uuid4())

# ===== CORE MODELS =====

@dataclass(frozen=True)
class Profile:
    """The single user profile"""
    name: str
    avatar_color: str
    is_dark_mode: bool = True
    sound_enabled: bool = True
    notifications_enabled: bool = True

    def __post_init__(self):
        object.__setattr__(self, 'name', validate_text(self.name, max_length=100, field_name="name"))
        object.__setattr__(self, 'avatar_color',
                           validate_text(self.avatar_color, min_length=1, max_length=50, field_name="avatar_color"))
        for flag in ('is_dark_mode', 'sound_enabled', 'notifications_enabled'):
            if not isinstance(getattr(self, flag), bool):
                raise ValidationError(f"{flag} must be a boolean")

    @classmethod
    def default(cls) -> "Profile":
        return cls(name="Mindful User", avatar_color="chicken")

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Profile":
        return cls(
            name=data['name'],
            avatar_color=data['avatar_color'],
            is_dark_mode=data.get('is_dark_mode', True),
            sound_enabled=data.get('sound_enabled', True),
            notifications_enabled=data.get('notifications_enabled', True)
        )


@dataclass(frozen=True)
class Note:
    """Short mood-tagged reflection"""
    id: str
    title: str
    content: str
    date: datetime
    mood: Mood = Mood.CALM

    def __post_init__(self):
        validate_id(self.id)
        object.__setattr__(self, 'title', validate_text(self.title, max_length=TITLE_MAX_LENGTH, field_name="title"))
        object.__setattr__(self, 'content',
                           validate_text(self.content, max_length=CONTENT_MAX_LENGTH, field_name="content", strip=False))
        if not isinstance(self.date, datetime):
            raise ValidationError("date must be a datetime")
        object.__setattr__(self, 'date', ensure_aware(self.date))
        object.__setattr__(self, 'mood', validate_enum_value(self.mood, Mood, "mood"))

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'title': self.title,
            'content': self.content,
            'date': to_iso(self.date),
            'mood': self.mood.value
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Note":
        return cls(
            id=data['id'],
            title=data['title'],
            content=data.get('content', ''),
            date=validate_timestamp(data['date']),
            mood=data['mood']
        )

    @classmethod
    def create(cls, title: str, content: str = "", mood: Mood = Mood.CALM,
               date: Optional[datetime] = None) -> "Note":
        """Create a note with a fresh id"""
        return cls(id=new_id(), title=title, content=content, date=date or now_utc(), mood=mood)


@dataclass(frozen=True)
class JournalEntry:
    """Dated journal entry"""
    id: str
    date: datetime
    title: str
    content: str
    mood: Mood = Mood.CALM
    tags: Tuple[str, ...] = field(default_factory=tuple)

    def __post_init__(self):
        validate_id(self.id)
        if not isinstance(self.date, datetime):
            raise ValidationError("date must be a datetime")
        object.__setattr__(self, 'date', ensure_aware(self.date))
        object.__setattr__(self, 'title', validate_text(self.title, max_length=TITLE_MAX_LENGTH, field_name="title"))
        object.__setattr__(self, 'content',
                           validate_text(self.content, max_length=CONTENT_MAX_LENGTH, field_name="content", strip=False))
        object.__setattr__(self, 'mood', validate_enum_value(self.mood, Mood, "mood"))

        if isinstance(self.tags, str):
            raise ValidationError("tags must be a sequence of strings")
        tags = tuple(self.tags)
        for tag in tags:
            if not isinstance(tag, str):
                raise ValidationError("tags must be a sequence of strings")
        object.__setattr__(self, 'tags', tags)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'date': to_iso(self.date),
            'title': self.title,
            'content': self.content,
            'mood': self.mood.value,
            'tags': list(self.tags)
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "JournalEntry":
        return cls(
            id=data['id'],
            date=validate_timestamp(data['date']),
            title=data['title'],
            content=data.get('content', ''),
            mood=data['mood'],
            tags=tuple(data.get('tags', ()))
        )

    @classmethod
    def create(cls, title: str, content: str = "", mood: Mood = Mood.CALM,
               tags: Iterable[str] = (), date: Optional[datetime] = None) -> "JournalEntry":
        """Create an entry with a fresh id"""
        return cls(id=new_id(), date=date or now_utc(), title=title, content=content,
                   mood=mood, tags=tuple(tags))


@dataclass(frozen=True)
class MeditationSession:
    """Completed meditation session"""
    id: str
    duration: int  # seconds
    date: datetime
    type: MeditationType

    def __post_init__(self):
        validate_id(self.id)
        if isinstance(self.duration, bool) or not isinstance(self.duration, int) or self.duration <= 0:
            raise ValidationError("duration must be a positive number of seconds")
        if not isinstance(self.date, datetime):
            raise ValidationError("date must be a datetime")
        object.__setattr__(self, 'date', ensure_aware(self.date))
        object.__setattr__(self, 'type', validate_enum_value(self.type, MeditationType, "type"))

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'duration': self.duration,
            'date': to_iso(self.date),
            'type': self.type.value
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "MeditationSession":
        duration = data['duration']
        # Older data stored whole seconds as floats
        if isinstance(duration, float) and duration.is_integer():
            duration = int(duration)
        return cls(
            id=data['id'],
            duration=duration,
            date=validate_timestamp(data['date']),
            type=data['type']
        )

    @classmethod
    def create(cls, duration: int, meditation_type: MeditationType,
               date: Optional[datetime] = None) -> "MeditationSession":
        return cls(id=new_id(), duration=duration, date=date or now_utc(), type=meditation_type)

# ===== SAMPLE DATA =====

def sample_notes(now: Optional[datetime] = None) -> List[Note]:
    """Notes shown on first launch"""
    now = now or now_utc()
    return [
        Note.create(
            title="Morning Reflection",
            content="Today I feel grateful for the peaceful morning and the opportunity to start fresh.",
            date=now,
            mood=Mood.GRATEFUL
        ),
        Note.create(
            title="Mindful Moment",
            content="Taking deep breaths and feeling the present moment. Everything is temporary.",
            date=now - timedelta(days=1),
            mood=Mood.MINDFUL
        ),
        Note.create(
            title="Inner Peace",
            content="Finding stillness within despite the chaos around. Peace comes from within.",
            date=now - timedelta(days=2),
            mood=Mood.PEACEFUL
        ),
    ]


def sample_journal_entries(now: Optional[datetime] = None) -> List[JournalEntry]:
    """Journal entries shown on first launch"""
    now = now or now_utc()
    return [
        JournalEntry.create(
            title="Gratitude Day",
            content="Today I'm grateful for my health, family, and the beautiful weather.",
            mood=Mood.GRATEFUL,
            tags=["gratitude", "family", "health"],
            date=now
        ),
        JournalEntry.create(
            title="Mindful Walk",
            content="Took a peaceful walk in the park, feeling connected to nature.",
            mood=Mood.PEACEFUL,
            tags=["nature", "walking", "mindfulness"],
            date=now - timedelta(days=1)
        ),
    ]


__all__ = [
    'Mood',
    'MeditationType',
    'ValidationError',
    'validate_text',
    'validate_enum_value',
    'Profile',
    'Note',
    'JournalEntry',
    'MeditationSession',
    'sample_notes',
    'sample_journal_entries'
]

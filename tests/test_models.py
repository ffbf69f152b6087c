"""Entity model tests: validation and serialization."""

import json
from dataclasses import replace
from datetime import datetime

import pytest
import pytz

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


NOW = datetime(2026, 10, 16, 9, 30, 15, 123000, tzinfo=pytz.utc)


def _through_json(entity):
    """Serialize to a JSON string and back, as the store does."""
    return type(entity).from_dict(json.loads(json.dumps(entity.to_dict())))


class TestRoundTrip:

    def test_note(self):
        note = Note.create("Morning", "Quiet start", Mood.CENTERED, date=NOW)
        assert _through_json(note) == note

    def test_journal_entry_keeps_tag_order_and_duplicates(self):
        entry = JournalEntry.create("Walk", "Park", Mood.PEACEFUL, tags=["b", "a", "b"], date=NOW)
        restored = _through_json(entry)
        assert restored == entry
        assert restored.tags == ("b", "a", "b")

    def test_session(self):
        session = MeditationSession.create(600, MeditationType.LOVING_KINDNESS, date=NOW)
        assert _through_json(session) == session

    def test_profile(self):
        profile = Profile("Ana", "warmOrange", is_dark_mode=False, sound_enabled=False)
        assert _through_json(profile) == profile

    def test_non_utc_timestamp_keeps_instant(self):
        local = pytz.timezone("Europe/Berlin").localize(datetime(2026, 3, 1, 8, 0))
        note = Note.create("Tz", date=local)
        assert _through_json(note).date == local


class TestEnumTags:

    def test_mood_tags(self):
        assert [m.value for m in Mood] == ["calm", "peaceful", "grateful", "mindful", "centered"]

    def test_meditation_type_tags(self):
        assert [t.value for t in MeditationType] == [
            "breathing", "mindfulness", "lovingKindness", "bodyScan", "walking"
        ]

    def test_serialized_tags_are_exact(self):
        session = MeditationSession.create(60, MeditationType.BODY_SCAN, date=NOW)
        assert session.to_dict()["type"] == "bodyScan"
        note = Note.create("x", mood=Mood.GRATEFUL, date=NOW)
        assert note.to_dict()["mood"] == "grateful"

    def test_display_helpers(self):
        assert MeditationType.LOVING_KINDNESS.display_name == "Loving Kindness"
        assert Mood.CALM.emoji == "😌"


class TestValidation:

    def test_mood_accepts_tag(self):
        note = Note(id="n1", title="t", content="", date=NOW, mood="mindful")
        assert note.mood is Mood.MINDFUL

    def test_unknown_mood_rejected(self):
        with pytest.raises(ValidationError):
            Note(id="n1", title="t", content="", date=NOW, mood="angry")

    def test_empty_content_allowed(self):
        assert Note.create("Draft", "", date=NOW).content == ""

    def test_title_is_stripped(self):
        assert Note.create("  Spaced  ", date=NOW).title == "Spaced"

    def test_title_too_long(self):
        with pytest.raises(ValidationError):
            Note.create("x" * 201, date=NOW)

    def test_empty_id_rejected(self):
        with pytest.raises(ValidationError):
            Note(id="", title="t", content="", date=NOW)

    @pytest.mark.parametrize("duration", [0, -5, True, 1.5, "60"])
    def test_bad_session_duration(self, duration):
        with pytest.raises(ValidationError):
            MeditationSession(id="s1", duration=duration, date=NOW, type=MeditationType.WALKING)

    def test_tags_must_be_strings(self):
        with pytest.raises(ValidationError):
            JournalEntry.create("t", tags=["ok", 3], date=NOW)

    def test_bare_string_tags_rejected(self):
        with pytest.raises(ValidationError):
            JournalEntry(id="j1", date=NOW, title="t", content="", tags="abc")

    @pytest.mark.parametrize("title, content", [("x", "bad \ud800"), ("\udfff", "")], ids=["content", "title"])
    def test_unencodable_text_rejected(self, title, content):
        with pytest.raises(ValidationError):
            Note.create(title, content, date=NOW)

    def test_profile_flags_must_be_bool(self):
        with pytest.raises(ValidationError):
            Profile("Ana", "chicken", is_dark_mode="yes")

    def test_entities_are_frozen(self):
        note = Note.create("t", date=NOW)
        with pytest.raises(AttributeError):
            note.title = "changed"

    def test_replace_keeps_id(self):
        note = Note.create("t", date=NOW)
        edited = replace(note, title="edited")
        assert edited.id == note.id
        assert edited.title == "edited"


class TestDeserialization:

    def test_naive_timestamp_read_as_utc(self):
        note = Note.from_dict({
            "id": "n1", "title": "t", "content": "", "date": "2026-10-16T09:30:00", "mood": "calm"
        })
        assert note.date == datetime(2026, 10, 16, 9, 30, tzinfo=pytz.utc)

    def test_zulu_suffix(self):
        note = Note.from_dict({
            "id": "n1", "title": "t", "content": "", "date": "2026-10-16T09:30:00Z", "mood": "calm"
        })
        assert note.date == datetime(2026, 10, 16, 9, 30, tzinfo=pytz.utc)

    def test_whole_float_duration_accepted(self):
        session = MeditationSession.from_dict({
            "id": "s1", "duration": 900.0, "date": "2026-10-16T09:30:00+00:00", "type": "breathing"
        })
        assert session.duration == 900
        assert isinstance(session.duration, int)

    def test_bad_timestamp(self):
        with pytest.raises(ValidationError):
            Note.from_dict({"id": "n1", "title": "t", "content": "", "date": "yesterday", "mood": "calm"})

    def test_profile_missing_flags_default(self):
        profile = Profile.from_dict({"name": "Ana", "avatar_color": "beige"})
        assert profile.is_dark_mode and profile.sound_enabled and profile.notifications_enabled


class TestSampleData:

    def test_sample_notes(self):
        notes = sample_notes(NOW)
        assert len(notes) == 3
        assert len({n.id for n in notes}) == 3
        assert notes[0].date == NOW

    def test_sample_entries(self):
        entries = sample_journal_entries(NOW)
        assert len(entries) == 2
        assert entries[0].tags == ("gratitude", "family", "health")

    def test_default_profile(self):
        profile = Profile.default()
        assert profile.name == "Mindful User"
        assert profile.avatar_color == "chicken"

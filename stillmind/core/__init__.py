#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
StillMind v1.0 - Core Package
Data models and the local data store
"""

from .models import (
    Mood,
    MeditationType,
    ValidationError,
    Profile,
    Note,
    JournalEntry,
    MeditationSession
)

from .database import (
    DatabaseError,
    DatabaseCorruptionError,
    UnsupportedCommandError,
    Collection,
    Add,
    Update,
    Delete,
    DatabaseManager,
    create_database_manager
)

__all__ = [
    # Enums
    'Mood',
    'MeditationType',

    # Models
    'ValidationError',
    'Profile',
    'Note',
    'JournalEntry',
    'MeditationSession',

    # Store
    'DatabaseError',
    'DatabaseCorruptionError',
    'UnsupportedCommandError',
    'Collection',
    'Add',
    'Update',
    'Delete',
    'DatabaseManager',
    'create_database_manager'
]

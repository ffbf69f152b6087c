#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
StillMind v1.0 - Command line entry point
Usage: stillmind [--data-dir DIR] <command> [options]
"""

import os
import sys
import json
import asyncio
import argparse
import logging
from pathlib import Path
from typing import List, Optional

from stillmind.config import AppConfig, config as default_config
from stillmind.core.database import DatabaseManager, create_database_manager
from stillmind.core.models import JournalEntry, MeditationType, Mood, Note, ValidationError
from stillmind.database.manager import JsonFileStorage
from stillmind.services.timer_service import (
    InvalidSessionError,
    MeditationTimer,
    TimerDriver,
    TimerState,
)
from stillmind.utils.datetime_utils import parse_date
from stillmind.utils.logger import setup_logging

logger = logging.getLogger(__name__)

MOOD_CHOICES = [m.value for m in Mood]
TYPE_CHOICES = [t.value for t in MeditationType]


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog='stillmind', description='Mindfulness journal and meditation timer')
    parser.add_argument('--data-dir', type=str, help='Directory holding the data slots')
    parser.add_argument('--log-level', type=str, help='Logging level (DEBUG, INFO, ...)')

    sub = parser.add_subparsers(dest='command', required=True)

    sub.add_parser('stats', help='Show totals as JSON')

    notes = sub.add_parser('notes', help='List notes, newest first')
    notes.add_argument('--search', type=str, help='Text to look for in title or content')
    notes.add_argument('--mood', choices=MOOD_CHOICES)

    add_note = sub.add_parser('add-note', help='Write a note')
    add_note.add_argument('title')
    add_note.add_argument('--content', default='')
    add_note.add_argument('--mood', choices=MOOD_CHOICES, default=Mood.CALM.value)

    journal = sub.add_parser('journal', help='List journal entries')
    journal.add_argument('--date', type=str, help='Only entries on this day (YYYY-MM-DD)')

    add_entry = sub.add_parser('add-entry', help='Write a journal entry')
    add_entry.add_argument('title')
    add_entry.add_argument('--content', default='')
    add_entry.add_argument('--mood', choices=MOOD_CHOICES, default=Mood.CALM.value)
    add_entry.add_argument('--tag', action='append', default=[], dest='tags')

    meditate = sub.add_parser('meditate', help='Run a meditation session')
    length = meditate.add_mutually_exclusive_group()
    length.add_argument('--minutes', type=int)
    length.add_argument('--seconds', type=int)
    meditate.add_argument('--type', choices=TYPE_CHOICES, default=MeditationType.MINDFULNESS.value)

    export = sub.add_parser('export', help='Export all data as JSON')
    export.add_argument('--output', type=str, help='File to write instead of stdout')

    sub.add_parser('reset', help='Delete notes, entries and sessions and restore the default profile')

    return parser


def _print_note(note: Note) -> None:
    print(f"{note.date:%Y-%m-%d} {note.mood.emoji} {note.title}")
    if note.content:
        print(f"    {note.content}")


def _print_entry(entry: JournalEntry) -> None:
    tags = f" [{', '.join(entry.tags)}]" if entry.tags else ""
    print(f"{entry.date:%Y-%m-%d} {entry.mood.emoji} {entry.title}{tags}")


async def run_meditation(database: DatabaseManager, app_config: AppConfig,
                         duration: int, meditation_type: str) -> bool:
    """Run one session in real time. Returns True if it completed."""
    timer = MeditationTimer(database, default_duration=app_config.timer.default_duration_seconds)
    driver = TimerDriver(
        timer,
        tick_seconds=app_config.timer.tick_seconds,
        breathing_multiplier=app_config.timer.breathing_multiplier
    )
    finished = asyncio.Event()
    timer.add_listener(lambda old, new: finished.set() if new is TimerState.IDLE else None)

    driver.start(duration, meditation_type)
    try:
        while not finished.is_set():
            info = timer.get_timer_info()
            print(f"\r{info['remaining_text']}  {info['phase']:<7}", end='', flush=True)
            try:
                await asyncio.wait_for(finished.wait(), timeout=app_config.timer.tick_seconds)
            except asyncio.TimeoutError:
                pass
    finally:
        completed = bool(timer.completed_sessions)
        driver.shutdown()
        print()

    return completed


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point"""
    parser = build_parser()
    args = parser.parse_args(argv)

    app_config = default_config
    if args.data_dir or args.log_level:
        overrides = dict(os.environ)
        if args.data_dir:
            overrides['STILLMIND_DATA_DIR'] = args.data_dir
        if args.log_level:
            overrides['LOG_LEVEL'] = args.log_level
        app_config = AppConfig(env=overrides)

    setup_logging(app_config)
    app_config.ensure_directories()

    database = create_database_manager(JsonFileStorage(app_config.data_dir))
    try:
        if args.command == 'stats':
            print(json.dumps(database.get_stats(), ensure_ascii=False, indent=2))

        elif args.command == 'notes':
            for note in database.search_notes(args.search, Mood(args.mood) if args.mood else None):
                _print_note(note)

        elif args.command == 'add-note':
            note = Note.create(args.title, args.content, Mood(args.mood))
            database.add_note(note)
            print(note.id)

        elif args.command == 'journal':
            if args.date:
                entries = database.entries_for_date(parse_date(args.date))
            else:
                entries = sorted(database.journal_entries, key=lambda e: e.date, reverse=True)
            for entry in entries:
                _print_entry(entry)

        elif args.command == 'add-entry':
            entry = JournalEntry.create(args.title, args.content, Mood(args.mood), tags=args.tags)
            database.add_journal_entry(entry)
            print(entry.id)

        elif args.command == 'meditate':
            if args.seconds is not None:
                duration = args.seconds
            elif args.minutes is not None:
                duration = args.minutes * 60
            else:
                duration = app_config.timer.default_duration_seconds
            try:
                completed = asyncio.run(run_meditation(database, app_config, duration, args.type))
            except KeyboardInterrupt:
                completed = False
            print("Session recorded" if completed else "Session discarded")

        elif args.command == 'export':
            payload = database.export_data()
            if args.output:
                Path(args.output).write_bytes(payload)
                logger.info(f"Exported data to {args.output}")
            else:
                sys.stdout.write(payload.decode('utf-8') + "\n")

        elif args.command == 'reset':
            database.reset_all()
            print("All data reset")

    except (ValidationError, InvalidSessionError, ValueError) as e:
        logger.error(f"❌ {e}")
        return 1
    finally:
        database.shutdown()

    return 0


if __name__ == "__main__":
    sys.exit(main())

#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
StillMind v1.0 - Configuration
Centralised configuration read from environment variables, with validation.

Version: 1.0.0
"""

import os
import sys
from pathlib import Path
from typing import Optional, Dict, Any
from dataclasses import dataclass
from enum import Enum

from stillmind.utils.logger import LOG_FORMAT


class Environment(Enum):
    """Runtime environments"""
    DEVELOPMENT = "development"
    TESTING = "testing"
    PRODUCTION = "production"


class LogLevel(Enum):
    """Logging levels"""
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


@dataclass
class TimerConfig:
    """Meditation timer settings"""
    tick_seconds: float = 1.0
    breathing_multiplier: int = 4
    default_duration_seconds: int = 15 * 60

    @property
    def breathing_seconds(self) -> float:
        return self.tick_seconds * self.breathing_multiplier


class AppConfig:
    """Main configuration object"""

    def __init__(self, env: Optional[Dict[str, str]] = None):
        self._env = os.environ if env is None else env
        self.environment = Environment(self._get('ENVIRONMENT', 'development'))
        self._load_config()
        self._validate_config()

    def _get(self, key: str, default: Optional[str] = None) -> Optional[str]:
        return self._env.get(key, default)

    def _get_bool(self, key: str, default: str) -> bool:
        return str(self._get(key, default)).lower() == 'true'

    def _load_config(self):
        """Load configuration from environment variables"""
        self.data_dir = Path(self._get('STILLMIND_DATA_DIR', 'data'))
        self.log_dir = Path(self._get('LOG_DIR', 'logs'))

        self._errors = []
        try:
            tick_seconds = float(self._get('TIMER_TICK_SECONDS', '1'))
        except ValueError:
            self._errors.append("TIMER_TICK_SECONDS must be a number")
            tick_seconds = 1.0
        try:
            default_minutes = int(self._get('DEFAULT_DURATION_MINUTES', '15'))
        except ValueError:
            self._errors.append("DEFAULT_DURATION_MINUTES must be an integer")
            default_minutes = 15

        self.timer = TimerConfig(
            tick_seconds=tick_seconds,
            default_duration_seconds=default_minutes * 60,
        )

        try:
            self.log_level = LogLevel(self._get('LOG_LEVEL', 'INFO').upper())
        except ValueError:
            self._errors.append(f"Unknown LOG_LEVEL {self._get('LOG_LEVEL')!r}")
            self.log_level = LogLevel.INFO
        self.log_to_file = self._get_bool('LOG_TO_FILE', 'false')
        self.log_format = self._get('LOG_FORMAT', LOG_FORMAT)

    def _validate_config(self):
        """Validate configuration"""
        errors = list(self._errors)

        if self.timer.tick_seconds <= 0:
            errors.append("TIMER_TICK_SECONDS must be positive")

        if self.timer.default_duration_seconds <= 0:
            errors.append("DEFAULT_DURATION_MINUTES must be positive")

        if errors:
            raise ValueError("Configuration errors:\n" + "\n".join(f"• {error}" for error in errors))

    def ensure_directories(self):
        """Create the data and log directories"""
        directories = [self.data_dir]
        if self.log_to_file:
            directories.append(self.log_dir)

        for directory in directories:
            directory.mkdir(parents=True, exist_ok=True)

    def get_logging_config(self) -> Dict[str, Any]:
        """Build a dictConfig dictionary"""
        handlers = ['console']
        if self.log_to_file:
            handlers.append('file')

        handler_defs = {
            'console': {
                'class': 'logging.StreamHandler',
                'level': self.log_level.value,
                'formatter': 'default',
                'stream': sys.stderr
            }
        }
        if self.log_to_file:
            handler_defs['file'] = {
                'class': 'logging.handlers.RotatingFileHandler',
                'level': self.log_level.value,
                'formatter': 'default',
                'filename': str(self.log_dir / f"stillmind_{self.environment.value}.log"),
                'maxBytes': 10485760,  # 10MB
                'backupCount': 5,
                'encoding': 'utf-8'
            }

        return {
            'version': 1,
            'disable_existing_loggers': False,
            'formatters': {
                'default': {
                    'format': self.log_format,
                    'datefmt': '%Y-%m-%d %H:%M:%S'
                }
            },
            'handlers': handler_defs,
            'loggers': {
                '': {
                    'level': self.log_level.value,
                    'handlers': handlers,
                    'propagate': False
                },
                'apscheduler': {
                    'level': 'WARNING',
                    'handlers': handlers,
                    'propagate': False
                }
            }
        }

    def is_production(self) -> bool:
        return self.environment == Environment.PRODUCTION

    def to_dict(self) -> Dict[str, Any]:
        """Serialize the configuration to a dict"""
        return {
            'environment': self.environment.value,
            'data_dir': str(self.data_dir),
            'log_dir': str(self.log_dir),
            'log_level': self.log_level.value,
            'log_to_file': self.log_to_file,
            'timer': {
                'tick_seconds': self.timer.tick_seconds,
                'breathing_seconds': self.timer.breathing_seconds,
                'default_duration_seconds': self.timer.default_duration_seconds
            }
        }


# Global configuration instance
config = AppConfig()

__all__ = [
    'config',
    'AppConfig',
    'Environment',
    'LogLevel',
    'TimerConfig'
]

"""StillMind - local mindfulness journal and meditation timer."""

__version__ = "1.0.0"

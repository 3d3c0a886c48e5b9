"""Stillpoint: guided meditation timer with session history and progress tracking."""

__version__ = "0.1.0"

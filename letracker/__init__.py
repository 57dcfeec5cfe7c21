"""Spaced-repetition tracking for coding-problem practice, with SQLite storage and a Flask API."""

__version__ = "0.1.0"
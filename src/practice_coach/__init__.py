"""Practice Coach: practice interview sessions, scoring and progress analytics."""

__version__ = "1.0.0"

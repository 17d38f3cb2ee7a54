"""Multi-turn conversational intake for government services."""

__version__ = "1.0.0"

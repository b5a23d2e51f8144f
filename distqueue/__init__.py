"""Replicated message queue broker with per-client read offsets, file-backed storage and node health checking."""

__version__ = "1.0.0"
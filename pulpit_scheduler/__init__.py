"""
Pulpit Scheduler.

Service calendar generation and consistency engine for a congregation:
monthly service generation, role assignments, scripture reading history
and per-service hymn/chorus playlists.
"""

__version__ = "0.1.0"

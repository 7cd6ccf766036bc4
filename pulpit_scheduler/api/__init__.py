"""
Pulpit Scheduler API module.

Provides FastAPI HTTP endpoints over the core scheduling operations.
"""

from pulpit_scheduler.api.main import app, run_server

__all__ = ["app", "run_server"]

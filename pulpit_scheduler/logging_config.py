"""
Logging setup for Pulpit Scheduler.

Modules log through ``logging.getLogger(__name__)``; this module only
attaches the console handler to the root logger, once.
"""

import logging
from typing import Optional

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def configure_logging(level: Optional[str] = None) -> None:
    """
    Configure the root logger with a console handler.

    Args:
        level: Logging level name. Defaults to the LOG_LEVEL setting.
    """
    root = logging.getLogger()
    if root.handlers:
        # Already configured (uvicorn reload, tests, repeated app startup)
        return

    if level is None:
        from pulpit_scheduler.config import get_settings
        level = get_settings().log_level

    root.setLevel(getattr(logging, level.upper(), logging.INFO))

    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter(fmt=LOG_FORMAT, datefmt=DATE_FORMAT))
    root.addHandler(handler)

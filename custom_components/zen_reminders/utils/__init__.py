# File: utils/__init__.py
"""Pure Python utilities for Zen Reminders.

This module contains pure Python functions with ZERO Home Assistant dependencies.
All functions here can be unit tested without Home Assistant mocking.

UTILS PURITY: NO `homeassistant.*` imports allowed in this module.

Submodules:
    - dt_utils: Date/time parsing, timezone resolution, formatting

Usage:
    from . import dt_utils
    from .dt_utils import as_local, resolve_timezone
"""

from . import dt_utils

__all__ = ["dt_utils"]

"""Manager modules for Zen Reminders integration.

Managers are stateful, event-aware, and bound to Home Assistant; they
orchestrate the pure engines.
"""

from .base_manager import BaseManager
from .dispatch_manager import DispatchManager
from .notification_manager import NotificationManager

__all__ = [
    "BaseManager",
    "DispatchManager",
    "NotificationManager",
]

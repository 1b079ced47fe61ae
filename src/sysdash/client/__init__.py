"""
Client side of the pipeline: stream connection, ingest store and its
in-memory window and notification collaborators.
"""

from .connection import ConnectionState, MetricsStreamClient
from .history import HistoryWindow
from .notifications import DesktopNotifier, NotificationPermission, Notifier, NullNotifier
from .store import DashboardStore

__all__ = [
    "ConnectionState",
    "DashboardStore",
    "DesktopNotifier",
    "HistoryWindow",
    "MetricsStreamClient",
    "NotificationPermission",
    "Notifier",
    "NullNotifier",
]

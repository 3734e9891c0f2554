"""
Polling watch trigger that feeds new files to an organizer.
"""

from .daemon import WatchDaemon

__all__ = ["WatchDaemon"]

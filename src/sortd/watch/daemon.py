"""
Polling watch daemon.

Each poll lists the watched directories and hands files not seen before to the
organizer's pattern batch. The daemon owns no configuration; whoever builds the
organizer is responsible for serializing config changes against running polls.
"""

import logging
import os
import threading
from typing import Iterable, List, Set

from sortd.file_access.local_accessor import FileSystemAccessor
from sortd.organization_logic.engine import OrganizeResult
from sortd.organization_logic.interface import Organizer
from sortd.utils.errors import BatchAbortedError, SortdError

logger = logging.getLogger(__name__)


class WatchDaemon:
    """Organize files as they appear in a set of directories."""

    def __init__(
        self,
        organizer: Organizer,
        directories: Iterable[str],
        interval: float = 5.0,
        recursive: bool = False,
    ):
        """
        Initialize the watch daemon.

        Args:
            organizer: Configured organizer that receives new files
            directories: Directories to poll
            interval: Seconds between polls
            recursive: Whether to poll subdirectories too
        """
        if interval <= 0:
            raise ValueError(f"interval must be positive, got {interval}")

        self.organizer = organizer
        self.directories = [
            os.path.normpath(os.path.expanduser(d)) for d in directories
        ]
        self.interval = interval
        self.recursive = recursive
        self._seen: Set[str] = set()
        self._stop_event = threading.Event()

    def _list_candidates(self) -> List[str]:
        candidates = []
        for directory in self.directories:
            try:
                files = FileSystemAccessor(directory).list_files(self.recursive)
            except SortdError as e:
                logger.warning(f"Cannot poll {directory}: {e}")
                continue
            candidates.extend(os.path.normpath(f) for f in files)
        return sorted(candidates)

    def poll_once(self) -> List[OrganizeResult]:
        """Run one poll.

        Returns:
            Results for the files organized in this poll (partial on abort)
        """
        candidates = self._list_candidates()
        # Forget files that were moved away or deleted since the last poll
        self._seen.intersection_update(candidates)
        new_files = [f for f in candidates if f not in self._seen]
        if not new_files:
            return []

        logger.info(f"Found {len(new_files)} new files")

        try:
            results = self.organizer.organize_by_patterns(new_files)
        except BatchAbortedError as e:
            logger.error(f"Watch batch aborted at {e.source_path}: {e.error}")
            results = e.results

        # Files after an abort stay unseen and are retried on the next poll
        for result in results:
            self._seen.add(os.path.normpath(result.source_path))
            if result.destination_path and result.moved:
                self._seen.add(os.path.normpath(result.destination_path))

        return results

    def run(self):
        """Poll until stop() is called."""
        logger.info(
            f"Watching {', '.join(self.directories)} every {self.interval}s"
            f"{' (recursive)' if self.recursive else ''}"
        )

        while not self._stop_event.is_set():
            self.poll_once()
            self._stop_event.wait(self.interval)

        logger.info("Watch stopped")

    def stop(self):
        self._stop_event.set()

    @property
    def is_stopped(self) -> bool:
        return self._stop_event.is_set()

"""
Collision resolution for computed destination paths.
"""

import logging
import os
from dataclasses import dataclass
from typing import Callable, Optional

from sortd.organization_logic.settings import CollisionPolicy
from sortd.utils.errors import CollisionError, FileOperationError, ErrorKind

logger = logging.getLogger(__name__)

ExistsProbe = Callable[[str], bool]

MAX_RENAME_ATTEMPTS = 1000


@dataclass(frozen=True)
class ConflictResolution:
    """Result of resolving a destination path."""

    desired_path: str
    final_path: Optional[str]
    reason: str

    @property
    def skipped(self) -> bool:
        """True when the file should stay at its source."""
        return self.final_path is None

    @property
    def renamed(self) -> bool:
        return self.final_path is not None and self.final_path != self.desired_path


def disambiguated_name(path: str, counter: int) -> str:
    """Insert `` (n)`` before the extension: ``a.txt`` -> ``a (1).txt``."""
    parent, base_name = os.path.split(path)
    stem, ext = os.path.splitext(base_name)
    return os.path.join(parent, f"{stem} ({counter}){ext}")


class ConflictResolver:
    """Decide the final write path for a destination under a collision policy.

    The resolver keeps no state between calls; the existence probe is injected
    so that callers control what counts as "already there".
    """

    def __init__(self, max_attempts: int = MAX_RENAME_ATTEMPTS):
        self.max_attempts = max_attempts

    def resolve(
        self,
        dest_path: str,
        policy: CollisionPolicy,
        exists: ExistsProbe = os.path.lexists,
    ) -> ConflictResolution:
        """Resolve a destination path.

        Args:
            dest_path: Computed destination path
            policy: Collision policy to apply
            exists: Existence probe for candidate paths

        Returns:
            ConflictResolution; ``final_path`` is None when the file is skipped

        Raises:
            CollisionError: If the destination exists under ``fail``
            FileOperationError: If no free name is found under ``rename``
        """
        if not exists(dest_path):
            return ConflictResolution(dest_path, dest_path, "no collision")

        logger.warning(
            f"Destination already exists: {dest_path} (policy={policy.value})"
        )

        if policy is CollisionPolicy.FAIL:
            raise CollisionError(dest_path)

        if policy is CollisionPolicy.SKIP:
            logger.info(f"Skipping file due to collision: {dest_path}")
            return ConflictResolution(dest_path, None, "destination exists, skipped")

        if policy is CollisionPolicy.RENAME:
            for counter in range(1, self.max_attempts + 1):
                candidate = disambiguated_name(dest_path, counter)
                if not exists(candidate):
                    logger.info(f"Resolved conflict: {dest_path} -> {candidate}")
                    return ConflictResolution(
                        dest_path, candidate, f"renamed with disambiguator {counter}"
                    )
            raise FileOperationError(
                f"could not find a unique name after {self.max_attempts} attempts",
                dest_path,
                kind=ErrorKind.DESTINATION_EXISTS,
                destination=dest_path,
            )

        # Settings validation guarantees one of the three policies
        raise ValueError(f"Unknown collision policy: {policy!r}")

"""
Batch organizer: drives matching, collision resolution and moves.

Every call processes its inputs strictly in order, one filesystem mutation at
a time, and stops at the first error. Files moved earlier in the same call stay
moved; there is no cross-file rollback.
"""

import errno
import logging
import os
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Optional, Tuple, Union

from sortd.file_access.local_accessor import FileSystemAccessor
from sortd.file_access.manipulator import FileManipulator, MoveOperation
from sortd.organization_logic.conflict_resolver import ConflictResolver
from sortd.organization_logic.interface import Organizer
from sortd.organization_logic.rules import OrganizationRule, find_matching_rule
from sortd.organization_logic.settings import Config, Settings
from sortd.utils.errors import (
    BatchAbortedError,
    ConfigurationError,
    ErrorKind,
    FileOperationError,
    SortdError,
)

logger = logging.getLogger(__name__)

ACTION_MOVED = "moved"
ACTION_WOULD_MOVE = "would_move"
ACTION_SKIPPED = "skipped"
ACTION_UNMATCHED = "unmatched"
ACTION_UNCHANGED = "unchanged"
ACTION_FAILED = "failed"


@dataclass(frozen=True)
class OrganizeResult:
    """Outcome of organizing one input file."""

    source_path: str
    destination_path: Optional[str]
    moved: bool
    error: Optional[SortdError] = None
    action: str = ACTION_MOVED

    def to_dict(self) -> Dict[str, Any]:
        return {
            "source_path": self.source_path,
            "destination_path": self.destination_path,
            "moved": self.moved,
            "error": str(self.error) if self.error else None,
            "action": self.action,
        }


class _BatchLedger:
    """Paths claimed and vacated earlier in the current call.

    The existence probe consults the ledger before the filesystem, so a
    dry-run sees its own simulated moves exactly as a live run sees real ones.
    """

    def __init__(self):
        self.claimed = set()
        self.vacated = set()

    @staticmethod
    def _key(path: str) -> str:
        return os.path.abspath(path)

    def exists(self, path: str) -> bool:
        key = self._key(path)
        if key in self.claimed:
            return True
        if key in self.vacated:
            return False
        return os.path.lexists(path)

    def was_vacated(self, path: str) -> bool:
        return self._key(path) in self.vacated

    def record_move(self, source: str, destination: str):
        source_key, dest_key = self._key(source), self._key(destination)
        self.claimed.discard(source_key)
        self.vacated.add(source_key)
        self.vacated.discard(dest_key)
        self.claimed.add(dest_key)


class OrganizationEngine(Organizer):
    """Engine for organizing files according to configured rules."""

    def __init__(
        self,
        config: Optional[Config] = None,
        resolver: Optional[ConflictResolver] = None,
        manipulator: Optional[FileManipulator] = None,
    ):
        """Initialize organization engine.

        Args:
            config: Loaded, validated configuration
            resolver: Collision resolver (defaults to ConflictResolver())
            manipulator: Move executor (defaults to FileManipulator())
        """
        self.resolver = resolver or ConflictResolver()
        self.manipulator = manipulator or FileManipulator()
        self.config: Optional[Config] = None
        self.rules: List[OrganizationRule] = []
        self.dry_run = False

        if config is not None:
            self.set_config(config)

    def set_config(self, config: Config):
        if config is None:
            raise ConfigurationError(
                "no config set", param="engine", kind=ErrorKind.CONFIG_NOT_SET
            )
        self.config = config
        self.rules = list(config.rules)
        self.dry_run = config.settings.dry_run
        logger.info(
            f"Organization engine configured with {len(self.rules)} rules "
            f"(collision={config.settings.collision.value}, dry_run={self.dry_run})"
        )

    def set_dry_run(self, dry_run: bool):
        self.dry_run = bool(dry_run)

    @property
    def is_dry_run(self) -> bool:
        return self.dry_run

    @property
    def settings(self) -> Settings:
        """Configured settings with the engine's dry-run override applied."""
        self._require_config()
        return self.config.settings.with_dry_run(self.dry_run)

    def add_pattern(self, pattern: Union[OrganizationRule, Dict[str, Any]]):
        rule = (
            pattern
            if isinstance(pattern, OrganizationRule)
            else OrganizationRule.from_dict(pattern)
        )
        self.rules.append(rule)
        logger.debug(f"Added pattern: {rule.describe()}")

    def _require_config(self):
        if self.config is None:
            raise ConfigurationError(
                "no config set", param="engine", kind=ErrorKind.CONFIG_NOT_SET
            )

    def find_destination(
        self, path: str
    ) -> Tuple[Optional[str], Optional[OrganizationRule]]:
        """Compute where a file would go under the current rules.

        Relative rule targets resolve against the file's own directory.

        Returns:
            Tuple of (destination file path, matching rule), or (None, None)
        """
        rule = find_matching_rule(path, self.rules)
        if rule is None:
            return None, None

        target_dir = os.path.expanduser(rule.target)
        if not os.path.isabs(target_dir):
            target_dir = os.path.join(os.path.dirname(path), target_dir)

        destination = os.path.normpath(os.path.join(target_dir, os.path.basename(path)))
        return destination, rule

    # Single-file entry points raise the underlying error directly

    def organize_file(self, path: str) -> OrganizeResult:
        """Match one file against the rules and move it.

        Returns:
            OrganizeResult; ``moved`` is False for unmatched or skipped files

        Raises:
            SortdError: On collision under ``fail`` or any move failure
        """
        self._require_config()
        return self._organize_matched(path, _BatchLedger())

    def move_file(self, source: str, destination: str) -> OrganizeResult:
        """Move a file to an explicit destination path.

        Raises:
            SortdError: On collision under ``fail`` or any move failure
        """
        self._require_config()
        return self._move(source, destination, _BatchLedger())

    # Batch entry points

    def organize_files(self, paths: List[str], dest_dir: str) -> List[OrganizeResult]:
        """Move every file directly into ``dest_dir``, bypassing the rules.

        Raises:
            BatchAbortedError: At the first failing file
        """
        self._require_config()
        logger.info(f"Organizing {len(paths)} files to {dest_dir}")

        def organize_one(path: str, ledger: _BatchLedger) -> OrganizeResult:
            destination = os.path.join(dest_dir, os.path.basename(path))
            return self._move(path, destination, ledger)

        return self._run_batch(paths, organize_one)

    def organize_by_patterns(self, paths: List[str]) -> List[OrganizeResult]:
        """Organize files according to the configured rules.

        Files no rule matches are left in place and reported unmoved.

        Raises:
            BatchAbortedError: At the first failing file
        """
        self._require_config()
        logger.info(f"Organizing {len(paths)} files using patterns")
        return self._run_batch(paths, self._organize_matched)

    def organize_dir(self, directory: str) -> List[str]:
        """Organize the files directly inside ``directory``.

        Returns:
            Source paths of the files that were moved
        """
        results = self.organize_directory(directory)
        return [r.source_path for r in results if r.moved and r.error is None]

    def organize_directory(
        self, directory: str, recursive: bool = False
    ) -> List[OrganizeResult]:
        """Expand a directory to its files and organize them by the rules."""
        self._require_config()
        files = FileSystemAccessor(directory).list_files(recursive=recursive)
        logger.info(f"Organizing directory {directory} ({len(files)} files)")
        return self.organize_by_patterns(files)

    # Shared machinery

    def _run_batch(self, paths: Iterable[str], organize_one) -> List[OrganizeResult]:
        results: List[OrganizeResult] = []
        ledger = _BatchLedger()

        for path in paths:
            try:
                results.append(organize_one(path, ledger))
            except SortdError as e:
                logger.error(f"Aborting batch at {path}: {e}")
                results.append(
                    OrganizeResult(
                        source_path=path,
                        destination_path=getattr(e, "destination", None),
                        moved=False,
                        error=e,
                        action=ACTION_FAILED,
                    )
                )
                raise BatchAbortedError(path, e, results) from e

        return results

    def _organize_matched(self, path: str, ledger: _BatchLedger) -> OrganizeResult:
        destination, rule = self.find_destination(path)
        if destination is None:
            logger.debug(f"No pattern match for file: {path}")
            return OrganizeResult(
                source_path=path,
                destination_path=None,
                moved=False,
                action=ACTION_UNMATCHED,
            )
        return self._move(path, destination, ledger)

    def _move(
        self, source: str, destination: str, ledger: _BatchLedger
    ) -> OrganizeResult:
        settings = self.settings
        if source and ledger.was_vacated(source):
            # Moved away earlier in this call, whether for real or simulated
            source = os.path.normpath(source)
            raise FileOperationError(
                "source file not found",
                source,
                kind=ErrorKind.SOURCE_NOT_FOUND,
                cause=FileNotFoundError(
                    errno.ENOENT, os.strerror(errno.ENOENT), source
                ),
            )
        source = self.manipulator.validate_source(source)
        destination = os.path.normpath(destination)

        if os.path.abspath(source) == os.path.abspath(destination):
            logger.debug(f"Source and destination are the same, skipping: {source}")
            return OrganizeResult(
                source, destination, moved=False, action=ACTION_UNCHANGED
            )

        resolution = self.resolver.resolve(
            destination, settings.collision, ledger.exists
        )
        if resolution.skipped:
            return OrganizeResult(
                source, destination, moved=False, action=ACTION_SKIPPED
            )

        operation = MoveOperation(
            source_path=source,
            desired_destination=destination,
            actual_destination=resolution.final_path,
        )
        self.manipulator.execute(operation, settings, ledger.exists)
        ledger.record_move(source, operation.actual_destination)

        return OrganizeResult(
            source_path=source,
            destination_path=operation.actual_destination,
            moved=not settings.dry_run,
            action=ACTION_WOULD_MOVE if settings.dry_run else ACTION_MOVED,
        )

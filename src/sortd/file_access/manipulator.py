"""
Move executor: performs, or in dry-run simulates, a single file relocation.
"""

import errno
import hashlib
import logging
import os
import shutil
import time
from dataclasses import dataclass
from typing import TYPE_CHECKING, Callable, Optional

from sortd.utils.errors import CollisionError, ErrorKind, FileOperationError

if TYPE_CHECKING:
    from sortd.organization_logic.settings import Settings

logger = logging.getLogger(__name__)


@dataclass
class MoveOperation:
    """A single relocation, alive only while it is being executed."""

    source_path: str
    desired_destination: str
    actual_destination: str
    backup_path: Optional[str] = None


class FileManipulator:
    """Service for relocating files into organized locations."""

    def __init__(self, verify_integrity: bool = True):
        """Initialize file manipulator.

        Args:
            verify_integrity: Whether to compare checksums when a move has to
                fall back to copy-then-remove
        """
        self.verify_integrity = verify_integrity

    def validate_source(self, source_path: str) -> str:
        """Check that a source is an existing, readable regular file.

        Args:
            source_path: Path to the candidate file

        Returns:
            Normalized source path

        Raises:
            FileOperationError: For empty, missing, unreadable or directory sources
        """
        if not source_path or not str(source_path).strip():
            raise FileOperationError(
                "empty source path", "", kind=ErrorKind.INVALID_PATH
            )

        source = os.path.normpath(str(source_path))

        try:
            st = os.stat(source)
        except FileNotFoundError as e:
            raise FileOperationError(
                "source file not found",
                source,
                kind=ErrorKind.SOURCE_NOT_FOUND,
                cause=e,
            )
        except PermissionError as e:
            raise FileOperationError(
                "source file unreadable",
                source,
                kind=ErrorKind.SOURCE_UNREADABLE,
                cause=e,
            )
        except OSError as e:
            raise FileOperationError(
                "invalid source path",
                source,
                kind=ErrorKind.INVALID_PATH,
                cause=e,
            )

        if os.path.isdir(source):
            raise FileOperationError(
                "cannot move directory as file",
                source,
                kind=ErrorKind.INVALID_OPERATION,
            )

        if not os.access(source, os.R_OK):
            raise FileOperationError(
                "source file unreadable", source, kind=ErrorKind.SOURCE_UNREADABLE
            )

        logger.debug(f"Validated source {source} ({st.st_size} bytes)")
        return source

    def execute(
        self,
        operation: MoveOperation,
        settings: "Settings",
        exists: Callable[[str], bool] = os.path.lexists,
    ):
        """Execute a move operation.

        The same checks run in dry-run and live mode; dry-run stops short of
        every write.

        Args:
            operation: Operation with its resolved ``actual_destination``
            settings: Active settings (dry_run, create_dirs, backup)
            exists: Existence probe shared with collision resolution

        Raises:
            FileOperationError: For missing, uncreatable or unwritable
                destinations, and for failed relocations
            CollisionError: If the destination exists and backup is disabled
        """
        source = operation.source_path
        target = operation.actual_destination
        prefix = "[DRY RUN] " if settings.dry_run else ""

        self._prepare_directory(os.path.dirname(target) or ".", settings, target)

        if exists(target):
            if not settings.backup:
                raise CollisionError(target, source=source)
            if settings.dry_run:
                logger.info(f"{prefix}Would back up existing file: {target}")
            else:
                operation.backup_path = self._create_backup(target)

        if settings.dry_run:
            logger.info(f"{prefix}Would move: {source} -> {target}")
            return

        self._relocate(source, target)
        logger.info(f"Moved: {source} -> {target}")

    def _prepare_directory(self, directory: str, settings: "Settings", target: str):
        """Make sure the destination directory exists (or would exist)."""
        if os.path.isdir(directory):
            if not os.access(directory, os.W_OK | os.X_OK):
                raise FileOperationError(
                    "destination not writable",
                    directory,
                    kind=ErrorKind.DESTINATION_UNWRITABLE,
                    destination=target,
                )
            return

        if os.path.lexists(directory):
            raise FileOperationError(
                "failed to create destination directory",
                directory,
                kind=ErrorKind.DESTINATION_DIR_UNCREATABLE,
                destination=target,
                cause=NotADirectoryError(errno.ENOTDIR, "not a directory", directory),
            )

        if not settings.create_dirs:
            raise FileOperationError(
                "destination directory missing",
                directory,
                kind=ErrorKind.DESTINATION_DIR_MISSING,
                destination=target,
            )

        if settings.dry_run:
            logger.info(f"[DRY RUN] Would create directory: {directory}")
            return

        try:
            os.makedirs(directory, exist_ok=True)
        except OSError as e:
            raise FileOperationError(
                "failed to create destination directory",
                directory,
                kind=ErrorKind.DESTINATION_DIR_UNCREATABLE,
                destination=target,
                cause=e,
            )
        logger.debug(f"Created directory: {directory}")

    def _create_backup(self, path: str) -> str:
        """Copy an existing destination aside as ``<path>.bak.<timestamp>``."""
        backup_path = f"{path}.bak.{int(time.time())}"
        counter = 1
        while os.path.lexists(backup_path):
            backup_path = f"{path}.bak.{int(time.time())}.{counter}"
            counter += 1

        try:
            shutil.copy2(path, backup_path)
        except OSError as e:
            raise FileOperationError(
                "backup failed", path, kind=ErrorKind.OPERATION_FAILED, cause=e
            )

        logger.info(f"Created backup: {backup_path}")
        return backup_path

    def _relocate(self, source: str, target: str):
        """Rename, falling back to copy-then-remove across filesystems."""
        try:
            os.replace(source, target)
            return
        except OSError as e:
            if e.errno != errno.EXDEV:
                raise self._translate_error(e, source, target)

        logger.debug(f"Cross-device move, copying: {source} -> {target}")
        self._copy_then_remove(source, target)

    def _copy_then_remove(self, source: str, target: str):
        checksum_before = None
        try:
            if self.verify_integrity:
                checksum_before = self._calculate_checksum(source)

            shutil.copy2(source, target)

            if checksum_before:
                checksum_after = self._calculate_checksum(target)
                if checksum_before != checksum_after:
                    raise FileOperationError(
                        "file integrity check failed after copy",
                        source,
                        destination=target,
                    )
        except OSError as e:
            self._discard_partial(target)
            raise self._translate_error(e, source, target)
        except FileOperationError:
            self._discard_partial(target)
            raise

        try:
            os.remove(source)
        except OSError as e:
            raise FileOperationError(
                "copied but failed to remove source",
                source,
                kind=ErrorKind.OPERATION_FAILED,
                destination=target,
                cause=e,
            )

    def _discard_partial(self, target: str):
        try:
            if os.path.exists(target):
                os.remove(target)
        except OSError as e:
            logger.error(f"Failed to remove partial copy {target}: {e}")

    def _translate_error(
        self, error: OSError, source: str, target: str
    ) -> FileOperationError:
        if isinstance(error, FileNotFoundError) and not os.path.exists(source):
            return FileOperationError(
                "source file not found",
                source,
                kind=ErrorKind.SOURCE_NOT_FOUND,
                destination=target,
                cause=error,
            )
        if isinstance(error, PermissionError):
            return FileOperationError(
                "permission denied",
                source,
                kind=ErrorKind.DESTINATION_UNWRITABLE,
                destination=target,
                cause=error,
            )
        return FileOperationError(
            "failed to move file",
            source,
            kind=ErrorKind.OPERATION_FAILED,
            destination=target,
            cause=error,
        )

    def _calculate_checksum(self, file_path: str) -> str:
        """Calculate SHA256 checksum of a file."""
        sha256_hash = hashlib.sha256()

        with open(file_path, "rb") as f:
            for chunk in iter(lambda: f.read(4096), b""):
                sha256_hash.update(chunk)

        return sha256_hash.hexdigest()

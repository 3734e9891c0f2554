import logging
from pathlib import Path
from datetime import datetime
from typing import List, Dict
from dataclasses import dataclass

from sortd.utils.errors import ErrorKind, FileOperationError


@dataclass
class FileInfo:
    """Data class to hold file information."""

    path: str
    name: str
    extension: str
    size: int
    modified_time: datetime

    @property
    def is_hidden(self) -> bool:
        return self.name.startswith(".")


class FileSystemAccessor:
    """Handles local file system access and candidate file discovery."""

    def __init__(self, root_directory: str):
        """Initialize the file system accessor.

        Args:
            root_directory: The root directory to scan

        Raises:
            FileOperationError: If the directory is missing or not a directory
        """
        self.root_directory = Path(root_directory)
        if not self.root_directory.exists():
            raise FileOperationError(
                "directory does not exist",
                str(root_directory),
                kind=ErrorKind.SOURCE_NOT_FOUND,
            )
        if not self.root_directory.is_dir():
            raise FileOperationError(
                "path is not a directory",
                str(root_directory),
                kind=ErrorKind.INVALID_OPERATION,
            )

        self.logger = logging.getLogger(__name__)

    def list_files(self, recursive: bool = False) -> List[str]:
        """List regular files under the root, sorted by path.

        Args:
            recursive: Whether to descend into subdirectories

        Returns:
            List of file paths
        """
        return [f.path for f in self.scan_directory(recursive)]

    def scan_directory(self, recursive: bool = False) -> List[FileInfo]:
        """Scan the directory and return list of files.

        Args:
            recursive: Whether to scan subdirectories

        Returns:
            List of FileInfo objects, sorted by path
        """
        file_list = []
        pattern = "**/*" if recursive else "*"

        self.logger.debug(f"Scanning directory: {self.root_directory}")

        try:
            candidates = sorted(self.root_directory.glob(pattern))
        except PermissionError as e:
            raise FileOperationError(
                "failed to read directory",
                str(self.root_directory),
                kind=ErrorKind.SOURCE_UNREADABLE,
                cause=e,
            )

        for file_path in candidates:
            if file_path.is_file():
                try:
                    file_list.append(self._create_file_object(file_path))
                except OSError as e:
                    self.logger.error(f"Error processing file {file_path}: {e}")

        self.logger.debug(f"Found {len(file_list)} files")
        return file_list

    def _create_file_object(self, file_path: Path) -> FileInfo:
        """Create a FileInfo object from a file path."""
        stat = file_path.stat()

        return FileInfo(
            path=str(file_path),
            name=file_path.name,
            extension=file_path.suffix.lower(),
            size=stat.st_size,
            modified_time=datetime.fromtimestamp(stat.st_mtime),
        )

    def get_directory_stats(self, recursive: bool = False) -> Dict[str, int]:
        """Get statistics about the directory.

        Returns:
            Dictionary with file counts by extension and total size
        """
        files = self.scan_directory(recursive)
        stats = {
            "total_files": len(files),
            "total_size": sum(f.size for f in files),
            "by_extension": {},
        }

        for file in files:
            ext = file.extension or "(no extension)"
            stats["by_extension"][ext] = stats["by_extension"].get(ext, 0) + 1

        return stats

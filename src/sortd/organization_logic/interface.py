"""
The operation set every organizer implementation provides.
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, List, Union

from sortd.organization_logic.rules import OrganizationRule
from sortd.organization_logic.settings import Config


class Organizer(ABC):
    """File organization operations used by the CLI and the watch daemon."""

    @abstractmethod
    def set_config(self, config: Config):
        """Replace the configuration (rules and settings)."""

    @abstractmethod
    def set_dry_run(self, dry_run: bool):
        """Toggle whether operations are performed or only simulated."""

    @abstractmethod
    def add_pattern(self, pattern: Union[OrganizationRule, Dict[str, Any]]):
        """Append a rule after the configured ones."""

    @abstractmethod
    def organize_file(self, path: str):
        """Organize one file by the configured rules."""

    @abstractmethod
    def move_file(self, source: str, destination: str):
        """Move a file to an explicit destination path with safety checks."""

    @abstractmethod
    def organize_files(self, paths: List[str], dest_dir: str) -> List:
        """Move every file into the same directory, bypassing matching."""

    @abstractmethod
    def organize_by_patterns(self, paths: List[str]) -> List:
        """Organize files according to the configured rules."""

    @abstractmethod
    def organize_dir(self, directory: str) -> List[str]:
        """Organize a directory's files; return the paths that were moved."""

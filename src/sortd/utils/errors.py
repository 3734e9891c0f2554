"""
Error taxonomy for the file organization engine.

Every failure the engine reports is a SortdError carrying an ErrorKind, so the
CLI and watch layers can display the text verbatim and still branch on the
category without parsing messages.
"""

from enum import Enum
from typing import List, Optional


class ErrorKind(Enum):
    """Categorization of engine failures."""

    # Input errors
    SOURCE_NOT_FOUND = "source_not_found"
    SOURCE_UNREADABLE = "source_unreadable"
    INVALID_OPERATION = "invalid_operation"
    INVALID_PATH = "invalid_path"
    # Collision errors
    DESTINATION_EXISTS = "destination_exists"
    # Filesystem errors
    DESTINATION_DIR_MISSING = "destination_dir_missing"
    DESTINATION_DIR_UNCREATABLE = "destination_dir_uncreatable"
    DESTINATION_UNWRITABLE = "destination_unwritable"
    OPERATION_FAILED = "operation_failed"
    # Configuration errors
    INVALID_CONFIG = "invalid_config"
    CONFIG_NOT_SET = "config_not_set"
    INVALID_RULE = "invalid_rule"


class SortdError(Exception):
    """Base class for all errors raised by sortd."""

    kind = ErrorKind.OPERATION_FAILED

    def __init__(self, message: str, kind: Optional[ErrorKind] = None):
        super().__init__(message)
        self.message = message
        if kind is not None:
            self.kind = kind


class FileOperationError(SortdError):
    """A filesystem operation on a specific path failed."""

    def __init__(
        self,
        message: str,
        path: str,
        kind: ErrorKind = ErrorKind.OPERATION_FAILED,
        destination: Optional[str] = None,
        cause: Optional[BaseException] = None,
    ):
        super().__init__(message, kind)
        self.path = str(path) if path else ""
        self.destination = str(destination) if destination else None
        self.cause = cause

    def __str__(self) -> str:
        text = self.message
        if self.path:
            text = f"{text}: {self.path}"
        if self.cause is not None:
            text = f"{text}: {self.cause}"
        return text


class CollisionError(FileOperationError):
    """The destination already exists and the policy forbids touching it."""

    def __init__(self, path: str, source: Optional[str] = None):
        super().__init__(
            "destination already exists",
            path,
            kind=ErrorKind.DESTINATION_EXISTS,
            destination=path,
        )
        self.source = source


class ConfigurationError(SortdError):
    """Configuration is missing or invalid."""

    kind = ErrorKind.INVALID_CONFIG

    def __init__(
        self,
        message: str,
        param: str = "",
        kind: ErrorKind = ErrorKind.INVALID_CONFIG,
    ):
        super().__init__(message, kind)
        self.param = param

    def __str__(self) -> str:
        if self.param:
            return f"{self.message}: {self.param}"
        return self.message


class BatchAbortedError(SortdError):
    """A batch stopped at its first failing file.

    Files moved before the failure stay moved; ``results`` holds one
    OrganizeResult per file attempted, the failing file last.
    """

    def __init__(self, source_path: str, error: SortdError, results: List):
        super().__init__(f"failed to move {source_path}: {error}", error.kind)
        self.source_path = source_path
        self.error = error
        self.results = list(results)

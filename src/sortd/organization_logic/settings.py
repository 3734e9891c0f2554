"""
Typed configuration consumed by the organization engine.

These structures are independent of any file format: ConfigManager parses
YAML/JSON into plain dictionaries, then builds a Config from them.
"""

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Dict, Optional, Tuple

from sortd.organization_logic.rules import OrganizationRule
from sortd.utils.errors import ConfigurationError


class CollisionPolicy(Enum):
    """What to do when a computed destination already exists."""

    RENAME = "rename"
    SKIP = "skip"
    FAIL = "fail"

    @classmethod
    def parse(cls, value: Any) -> "CollisionPolicy":
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            valid = ", ".join(p.value for p in cls)
            raise ConfigurationError(
                f"invalid collision setting (expected one of {valid})",
                param=str(value),
            )


@dataclass(frozen=True)
class Settings:
    """Global behaviour switches for organizing."""

    dry_run: bool = False
    create_dirs: bool = True
    backup: bool = False
    collision: CollisionPolicy = CollisionPolicy.RENAME

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "Settings":
        """Build validated settings from a ``settings`` mapping.

        Raises:
            ConfigurationError: If a value has the wrong type or the
                collision policy is unknown.
        """
        data = data or {}
        settings = cls(
            dry_run=data.get("dry_run", False),
            create_dirs=data.get("create_dirs", True),
            backup=data.get("backup", False),
            collision=CollisionPolicy.parse(data.get("collision", "rename")),
        )
        settings.validate()
        return settings

    def validate(self):
        for name in ("dry_run", "create_dirs", "backup"):
            if not isinstance(getattr(self, name), bool):
                raise ConfigurationError(
                    "setting must be a boolean", param=f"settings.{name}"
                )
        if not isinstance(self.collision, CollisionPolicy):
            raise ConfigurationError(
                "invalid collision setting", param=str(self.collision)
            )

    def with_dry_run(self, dry_run: bool) -> "Settings":
        return replace(self, dry_run=dry_run)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "dry_run": self.dry_run,
            "create_dirs": self.create_dirs,
            "backup": self.backup,
            "collision": self.collision.value,
        }


@dataclass(frozen=True)
class Config:
    """Ordered rules plus settings, loaded and validated once per run."""

    rules: Tuple[OrganizationRule, ...] = ()
    settings: Settings = field(default_factory=Settings)
    default_directory: str = "."
    watch_directories: Tuple[str, ...] = ()

    def __post_init__(self):
        # Accept lists from callers but store tuples
        object.__setattr__(self, "rules", tuple(self.rules))
        object.__setattr__(self, "watch_directories", tuple(self.watch_directories))

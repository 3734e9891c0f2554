"""
Name-based organization rules and the first-match-wins pattern matcher.
"""

import fnmatch
import logging
import os
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional, Tuple

from sortd.utils.errors import ConfigurationError, ErrorKind

logger = logging.getLogger(__name__)


def _as_tuple(value: Any, field_name: str) -> Tuple[str, ...]:
    if value is None:
        return ()
    if isinstance(value, str):
        return (value,)
    if isinstance(value, (list, tuple)):
        return tuple(str(v) for v in value)
    raise ConfigurationError(
        f"{field_name} must be a string or a list of strings",
        param=field_name,
        kind=ErrorKind.INVALID_RULE,
    )


@dataclass(frozen=True)
class OrganizationRule:
    """A configured glob (plus optional prefixes/suffixes) mapped to a directory."""

    target: str
    glob: str = "*"
    prefixes: Tuple[str, ...] = field(default_factory=tuple)
    suffixes: Tuple[str, ...] = field(default_factory=tuple)
    name: str = ""

    @classmethod
    def from_dict(cls, rule_dict: Dict[str, Any]) -> "OrganizationRule":
        """Build a rule from a configuration mapping.

        Accepts either ``match`` or ``glob`` for the expression and either
        ``target`` or ``dest_dir`` for the destination directory.

        Args:
            rule_dict: Dictionary containing the rule definition

        Returns:
            Validated OrganizationRule

        Raises:
            ConfigurationError: If the rule is incomplete
        """
        if not isinstance(rule_dict, dict):
            raise ConfigurationError(
                "pattern must be a mapping",
                param=repr(rule_dict),
                kind=ErrorKind.INVALID_RULE,
            )

        glob = rule_dict.get("match", rule_dict.get("glob"))
        target = rule_dict.get("target", rule_dict.get("dest_dir"))
        prefixes = _as_tuple(rule_dict.get("prefixes"), "prefixes")
        suffixes = _as_tuple(rule_dict.get("suffixes"), "suffixes")

        if glob is not None and not str(glob).strip():
            raise ConfigurationError(
                "match pattern cannot be empty",
                param=str(rule_dict.get("name", "")),
                kind=ErrorKind.INVALID_RULE,
            )
        if glob is None and not prefixes and not suffixes:
            raise ConfigurationError(
                "pattern needs a glob, prefixes or suffixes",
                param=str(rule_dict.get("name", "")),
                kind=ErrorKind.INVALID_RULE,
            )
        if target is None or not str(target).strip():
            raise ConfigurationError(
                "target directory cannot be empty",
                param=str(rule_dict.get("name", glob or "")),
                kind=ErrorKind.INVALID_RULE,
            )

        return cls(
            target=str(target),
            glob=str(glob) if glob is not None else "*",
            prefixes=prefixes,
            suffixes=suffixes,
            name=str(rule_dict.get("name", "")),
        )

    def matches(self, file_name: str) -> bool:
        """Check whether a file's base name satisfies this rule.

        Matching is case-sensitive and hidden files are ordinary names.
        Suffixes are tested against the name with its extension removed.
        """
        base_name = os.path.basename(file_name)

        if not fnmatch.fnmatchcase(base_name, self.glob):
            return False

        if self.prefixes and not any(base_name.startswith(p) for p in self.prefixes):
            return False

        if self.suffixes:
            stem, _ = os.path.splitext(base_name)
            if not any(stem.endswith(s) for s in self.suffixes):
                return False

        return True

    def to_dict(self) -> Dict[str, Any]:
        rule = {"match": self.glob, "target": self.target}
        if self.prefixes:
            rule["prefixes"] = list(self.prefixes)
        if self.suffixes:
            rule["suffixes"] = list(self.suffixes)
        if self.name:
            rule["name"] = self.name
        return rule

    def describe(self) -> str:
        parts = [self.glob]
        if self.prefixes:
            parts.append(f"prefixes={','.join(self.prefixes)}")
        if self.suffixes:
            parts.append(f"suffixes={','.join(self.suffixes)}")
        return f"{' '.join(parts)} -> {self.target}"


def find_matching_rule(
    file_name: str, rules: Iterable[OrganizationRule]
) -> Optional[OrganizationRule]:
    """Return the first rule in configured order that matches, or None."""
    for rule in rules:
        if rule.matches(file_name):
            logger.debug(f"Rule '{rule.describe()}' matched {file_name}")
            return rule
    return None


def match_rules(
    file_name: str, rules: Iterable[OrganizationRule]
) -> Tuple[Optional[str], bool]:
    """Match a file name against an ordered rule list.

    Args:
        file_name: File name or path; only the base name is considered
        rules: Rules in configured order

    Returns:
        Tuple of (destination directory, matched). The destination is the
        target of the first satisfying rule, or None when nothing matched.
    """
    rule = find_matching_rule(file_name, rules)
    if rule is None:
        logger.debug(f"No matching pattern for {file_name}")
        return None, False
    return rule.target, True


def load_rules(patterns: Optional[List[Dict[str, Any]]]) -> List[OrganizationRule]:
    """Build rules from the ``organize.patterns`` list, preserving order."""
    rules = []
    for index, pattern in enumerate(patterns or []):
        try:
            rules.append(OrganizationRule.from_dict(pattern))
        except ConfigurationError as e:
            raise ConfigurationError(
                f"pattern {index}: {e.message}",
                param=e.param,
                kind=ErrorKind.INVALID_RULE,
            ) from e
    return rules

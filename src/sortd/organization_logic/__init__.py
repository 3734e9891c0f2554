"""
Organization logic module for file organization.
"""

from .rules import OrganizationRule, match_rules
from .settings import CollisionPolicy, Config, Settings
from .conflict_resolver import ConflictResolver, ConflictResolution
from .interface import Organizer
from .engine import OrganizationEngine, OrganizeResult
from .factory import OrganizerFactory, default_organizer_factory

__all__ = [
    "OrganizationEngine",
    "OrganizationRule",
    "OrganizeResult",
    "Organizer",
    "OrganizerFactory",
    "default_organizer_factory",
    "match_rules",
    "CollisionPolicy",
    "Config",
    "Settings",
    "ConflictResolver",
    "ConflictResolution",
]

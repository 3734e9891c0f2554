"""
Constructor seam for organizers.

Whatever composes the CLI or the watch daemon receives an OrganizerFactory and
calls it to obtain an engine. Tests pass a substitute factory to that composer
instead of patching module state.
"""

from typing import Callable, Optional

from sortd.organization_logic.engine import OrganizationEngine
from sortd.organization_logic.interface import Organizer
from sortd.organization_logic.settings import Config

OrganizerFactory = Callable[[Optional[Config]], Organizer]


def default_organizer_factory(config: Optional[Config] = None) -> Organizer:
    """Build the production organization engine."""
    return OrganizationEngine(config)

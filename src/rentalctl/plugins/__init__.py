"""Extension layer — plugin system via pluggy.

Discovery: entry points in the ``rentalctl.plugins`` group.
INVARIANT: Plugin failures are warnings, never errors.
"""

from rentalctl.plugins.event_bus import EventBus
from rentalctl.plugins.hookspecs import hookimpl
from rentalctl.plugins.manager import PluginManager

__all__ = ["EventBus", "PluginManager", "hookimpl"]

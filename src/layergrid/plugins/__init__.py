"""Plugin layer for layergrid, built on pluggy.

Plugins come from the ``layergrid.plugins`` entry-point group and from
single-file modules in the project's local plugin directory.  A broken
plugin is logged and skipped; it never stops an edit.
"""

from layergrid.plugins.event_bus import EventBus
from layergrid.plugins.manager import PluginManager

__all__ = ["EventBus", "PluginManager"]

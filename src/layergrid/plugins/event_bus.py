"""Synchronous event dispatch via pluggy.

Events are dispatched in the caller's thread before ``dispatch`` returns,
so listeners always observe a consistent document and history.

INVARIANT: Plugin failures are warnings, never errors.
"""

from __future__ import annotations

import logging
from collections import Counter
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from layergrid.plugins.manager import PluginManager

logger = logging.getLogger(__name__)


def hook_name_for(event: str) -> str:
    """Map an event name to its hook name: ``history:undone`` -> ``history_undone``."""
    return event.replace(":", "_")


class EventBus:
    """Dispatch editor events to every registered plugin.

    Parameters:
        plugin_manager: Loaded PluginManager for hook dispatch.
    """

    def __init__(self, plugin_manager: PluginManager) -> None:
        self._pm = plugin_manager
        self.counts: Counter[str] = Counter()
        self.failures = 0

    @property
    def plugin_manager(self) -> PluginManager:
        return self._pm

    def dispatch(self, event: str, payload: dict[str, Any] | None = None) -> None:
        """Call the hook for *event* with *payload* as keyword arguments."""
        self.counts[event] += 1
        hook_fn = getattr(self._pm.hook, hook_name_for(event), None)
        if hook_fn is None:
            logger.debug("No hook for event %s", event)
            return
        try:
            hook_fn(**(payload or {}))
        except Exception:
            self.failures += 1
            logger.warning("Hook %s failed", hook_name_for(event), exc_info=True)

"""Plugin discovery and loading.

Two optional sources feed one pluggy manager:

- ``layergrid.plugins`` entry points of installed distributions;
- single-file plugins in a project's ``.layergrid/plugins/`` directory.

A plugin that cannot be imported, instantiated or validated against the
hook specs is skipped with a warning and recorded in
:attr:`PluginManager.failures`.  It never keeps the editor from starting.
"""

from __future__ import annotations

import importlib.util
import inspect
import logging
import sys
from collections.abc import Iterator
from pathlib import Path
from types import ModuleType

import pluggy

from layergrid.plugins.hookspecs import LayergridHookSpec

PROJECT_NAME = "layergrid"
ENTRY_POINT_GROUP = "layergrid.plugins"
LOCAL_MODULE_PREFIX = "layergrid_local_plugin_"

logger = logging.getLogger(__name__)


class PluginManager:
    """Owns the pluggy manager; discovers, registers and relays hooks.

    Attributes:
        failures: ``(source, reason)`` for every plugin that was skipped.
    """

    def __init__(self) -> None:
        self._pm = pluggy.PluginManager(PROJECT_NAME)
        self._pm.add_hookspecs(LayergridHookSpec)
        self._loaded = False
        self.failures: list[tuple[str, str]] = []

    def discover_and_load(self, *, local_dir: Path | None = None) -> list[str]:
        """Load entry-point plugins, then ``*.py`` plugins from *local_dir*.

        Files starting with ``_`` are ignored.  Returns every registered
        plugin name.
        """
        self._pm.load_setuptools_entrypoints(ENTRY_POINT_GROUP)
        self._instantiate_entry_point_classes()
        if local_dir is not None and local_dir.is_dir():
            for py_file in sorted(local_dir.glob("*.py")):
                if not py_file.name.startswith("_"):
                    self._load_local_file(py_file)
        self._loaded = True

        names = self.list_plugin_names()
        logger.debug("Plugins loaded: %s", ", ".join(names) or "none")
        return names

    def register_plugin(self, plugin: object, name: str | None = None) -> None:
        """Register a plugin instance directly (e.g. the built-in journal)."""
        resolved_name = name or plugin.__class__.__name__
        self._pm.register(plugin, name=resolved_name)
        logger.debug("Registered plugin: %s", resolved_name)

    def unregister(self, plugin: object) -> None:
        self._pm.unregister(plugin)

    @property
    def is_loaded(self) -> bool:
        return self._loaded

    @property
    def hook(self) -> pluggy.HookRelay:
        return self._pm.hook

    def get_plugins(self) -> list[object]:
        return list(self._pm.get_plugins())

    def list_plugin_names(self) -> list[str]:
        return [self._pm.get_name(p) or p.__class__.__name__ for p in self._pm.get_plugins()]

    # ------------------------------------------------------------------
    # Loading
    # ------------------------------------------------------------------

    def _instantiate_entry_point_classes(self) -> None:
        # An entry point may name a class; hooks called on it would have no self.
        for plugin in list(self._pm.get_plugins()):
            if not inspect.isclass(plugin) or not has_hook_impls(plugin):
                continue
            name = self._pm.get_name(plugin) or plugin.__name__
            self._pm.unregister(plugin)
            self._register_class(plugin, name, source=f"entry point {name}")

    def _load_local_file(self, py_file: Path) -> None:
        module_name = f"{LOCAL_MODULE_PREFIX}{py_file.stem}"
        module = self._import_file(module_name, py_file)
        if module is None:
            return
        classes = list(plugin_classes(module))
        for cls in classes:
            name = module_name if len(classes) == 1 else f"{module_name}:{cls.__name__}"
            self._register_class(cls, name, source=str(py_file))

    def _import_file(self, module_name: str, py_file: Path) -> ModuleType | None:
        spec = importlib.util.spec_from_file_location(module_name, py_file)
        if spec is None or spec.loader is None:
            self._skip(str(py_file), "no module spec")
            return None
        module = importlib.util.module_from_spec(spec)
        sys.modules[module_name] = module
        try:
            spec.loader.exec_module(module)
        except Exception as exc:
            sys.modules.pop(module_name, None)
            self._skip(str(py_file), f"import failed: {exc}", exc_info=True)
            return None
        return module

    def _register_class(self, cls: type, name: str, *, source: str) -> None:
        try:
            instance = cls()
        except Exception as exc:
            self._skip(source, f"cannot instantiate {cls.__name__}: {exc}", exc_info=True)
            return
        try:
            self.register_plugin(instance, name=name)
        except (pluggy.PluginValidationError, ValueError) as exc:
            # pluggy may have registered part of the plugin before failing.
            if self._pm.is_registered(instance):
                self._pm.unregister(instance)
            self._skip(source, f"rejected {cls.__name__}: {exc}")

    def _skip(self, source: str, reason: str, *, exc_info: bool = False) -> None:
        logger.warning("Skipping plugin %s: %s", source, reason, exc_info=exc_info)
        self.failures.append((source, reason))


def plugin_classes(module: ModuleType) -> Iterator[type]:
    """Yield classes defined in *module* that carry at least one hookimpl."""
    for _attr, obj in inspect.getmembers(module, inspect.isclass):
        if obj.__module__ == module.__name__ and has_hook_impls(obj):
            yield obj


def has_hook_impls(cls: type) -> bool:
    """Whether any public method of *cls* is marked ``@hookimpl``.

    ``HookimplMarker("layergrid")`` tags methods with ``layergrid_impl``.
    """
    marker = f"{PROJECT_NAME}_impl"
    for name in dir(cls):
        if name.startswith("_"):
            continue
        method = getattr(cls, name, None)
        if callable(method) and getattr(method, marker, None) is not None:
            return True
    return False

"""LazyLoader: fallback finder on `sys.meta_path` backed by an entry table.

The table is owned by a DirectoryIndex and shared by reference; this class
only reads it and removes an entry when its module executes, so each logical
name is loaded at most once. Lookup is case-insensitive: a name requested in
another spelling resolves to the module already loaded under the indexed one.
"""
from __future__ import annotations

import importlib
import importlib.abc
import importlib.util
import logging
import sys
from dataclasses import dataclass
from importlib.machinery import SourceFileLoader
from pathlib import Path
from types import ModuleType
from typing import Any, Dict, Mapping, Optional, Sequence

from exo.events import ModuleAutoloaded, emit

logger = logging.getLogger("exo.autoload")


@dataclass(frozen=True)
class AutoloadEntry:
    name: str
    path: Path


def exec_source_file(
    path: str | Path,
    module_name: str,
    namespace: Optional[Mapping[str, Any]] = None,
) -> ModuleType:
    """Execute a source file as module `module_name` and register it.

    `namespace` values are injected into the module globals before the
    body runs. The module is dropped from sys.modules if execution fails.
    """
    path = Path(path)
    spec = importlib.util.spec_from_file_location(module_name, path)
    if spec is None or spec.loader is None:
        raise ImportError(f"Cannot load {path}", name=module_name)
    module = importlib.util.module_from_spec(spec)
    if namespace:
        module.__dict__.update(namespace)
    sys.modules[module_name] = module
    try:
        spec.loader.exec_module(module)
    except BaseException:
        sys.modules.pop(module_name, None)
        raise
    return module


class _AliasLoader(importlib.abc.Loader):
    """Serve an already loaded module under another spelling of its name."""

    def __init__(self, target: ModuleType) -> None:
        self._target = target
        self._spec = target.__spec__

    def create_module(self, spec):
        return self._target

    def exec_module(self, module: ModuleType) -> None:
        # The import system stamped the alias spec onto the shared module.
        module.__spec__ = self._spec


class LazyLoader(importlib.abc.MetaPathFinder, importlib.abc.Loader):
    def __init__(self, entries: Dict[str, AutoloadEntry]):
        self._entries = entries
        # lower-cased key -> name the module was loaded under
        self._loaded: Dict[str, str] = {}
        self._installed = False

    @property
    def installed(self) -> bool:
        return self._installed

    def install(self) -> None:
        # Appended, not prepended: regular finders get the first chance.
        if self not in sys.meta_path:
            sys.meta_path.append(self)
        self._installed = True

    def uninstall(self) -> None:
        try:
            sys.meta_path.remove(self)
        except ValueError:
            pass
        self._installed = False

    def handles(self, name: str) -> bool:
        return name.lower() in self._entries

    def _canonical(self, key: str) -> str | None:
        entry = self._entries.get(key)
        if entry is not None:
            return entry.name
        name = self._loaded.get(key)
        if name is not None and name in sys.modules:
            return name
        return None

    def _take(self, key: str) -> AutoloadEntry | None:
        entry = self._entries.pop(key, None)
        if entry is not None:
            self._loaded[key] = entry.name
            logger.debug("autoload %s -> %s", entry.name, entry.path)
            emit(ModuleAutoloaded(name=entry.name, path=str(entry.path)))
        return entry

    def find_spec(
        self,
        fullname: str,
        path: Optional[Sequence[str]] = None,
        target: Optional[ModuleType] = None,
    ):
        # Logical names are flat; submodule lookups belong to other finders.
        if path is not None or "." in fullname:
            return None
        key = fullname.lower()
        canonical = self._canonical(key)
        if canonical is None:
            return None
        if canonical != fullname:
            module = sys.modules.get(canonical) or importlib.import_module(canonical)
            return importlib.util.spec_from_loader(fullname, _AliasLoader(module))
        entry = self._entries.get(key)
        if entry is None:
            return None
        # Lookup only; the entry is consumed when the module executes.
        return importlib.util.spec_from_file_location(
            fullname, entry.path, loader=self
        )

    def exec_module(self, module: ModuleType) -> None:
        name = module.__name__
        entry = self._take(name.lower())
        if entry is None:
            raise ImportError(f"{name} is no longer pending autoload", name=name)
        SourceFileLoader(name, str(entry.path)).exec_module(module)

    def resolve(self, name: str) -> bool:
        """Load `name` now. False means "not handled" (leave to others)."""
        if "." in name or name in sys.modules:
            return False
        key = name.lower()
        if self._canonical(key) in sys.modules:
            return False
        entry = self._take(key)
        if entry is None:
            return False
        module = exec_source_file(entry.path, entry.name)
        if name != entry.name:
            sys.modules[name] = module
        return True


__all__ = ["AutoloadEntry", "LazyLoader", "exec_source_file"]

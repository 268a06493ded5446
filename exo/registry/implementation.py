"""Implementation: per-controller state (directory index, prefix, helpers)."""
from __future__ import annotations

import importlib
import inspect
import logging
import os
from dataclasses import dataclass
from pathlib import Path
from types import ModuleType
from typing import Any, Callable, Dict, List, Optional

from exo.autoload.index import DirectoryIndex
from exo import metrics
from exo.errors import HelperResolutionError, map_exception

logger = logging.getLogger("exo.registry")


@dataclass(frozen=True)
class RegisteredHelper:
    """One helper registration.

    method_name None exposes every public attribute of `source`; otherwise
    only `method_name`, also reachable as `alias` when given.
    """
    source: Any
    method_name: Optional[str] = None
    alias: Optional[str] = None


def _import_source(spec: str) -> Any:
    """Resolve "module" or "module:attr.attr" into an object."""
    module_name, _, attr_path = spec.partition(":")
    obj: Any = importlib.import_module(module_name)
    for part in filter(None, attr_path.split(".")):
        obj = getattr(obj, part)
    return obj


def _exposes(source: Any, name: str) -> bool:
    """True if `source` itself defines `name` (not inherited from object/type)."""
    if isinstance(source, ModuleType):
        return name in vars(source)
    if inspect.isclass(source):
        klasses = source.__mro__
    else:
        if name in getattr(source, "__dict__", {}):
            return True
        klasses = type(source).__mro__
    return any(name in vars(k) for k in klasses if k is not object)


class Implementation:
    def __init__(
        self,
        root_dir: str | Path,
        base_uri: str = "",
        index: DirectoryIndex | None = None,
    ) -> None:
        self.root = Path(os.path.realpath(root_dir))
        self.base_uri = base_uri.rstrip("/")
        self.identity: str | None = None
        self.prefix = ""
        self.index = index or DirectoryIndex()
        self.index.owner = self
        self.initialized = False
        self.initializing = False
        self.onload_modules: List[ModuleType] = []
        self._helpers: List[RegisteredHelper] = []
        self._resolved: Dict[int, Any] = {}

    def __repr__(self) -> str:
        return f"<Implementation {self.identity or '?'} root={self.root}>"

    # --- Paths ------------------------------------------------------------
    def dir(self, path: str | None = None) -> str:
        if not path:
            return str(self.root)
        return str(self.root / path.lstrip("/"))

    def uri(self, path: str | None = None) -> str:
        if not path:
            return self.base_uri
        return f"{self.base_uri}/" + path.lstrip("/")

    # --- Helpers ----------------------------------------------------------
    def register_helper(
        self,
        source: Any,
        method_name: str | None = None,
        alias: str | None = None,
    ) -> None:
        """Expose `source` (object, class, module, function or import string).

        Import strings ("module" or "module:attr") are resolved on first use,
        so they may name modules served by the autoloader.
        """
        self._helpers.append(RegisteredHelper(source, method_name, alias))

    @property
    def helpers(self) -> List[RegisteredHelper]:
        return list(self._helpers)

    def _helper_source(self, idx: int) -> Any:
        if idx in self._resolved:
            return self._resolved[idx]
        source = self._helpers[idx].source
        if isinstance(source, str):
            try:
                source = _import_source(source)
            except (ImportError, AttributeError) as e:
                raise HelperResolutionError(
                    f"Cannot resolve helper source {source!r}: {e}"
                ) from e
        self._resolved[idx] = source
        return source

    def get_helper_callable(self, method_name: str) -> Optional[Callable[..., Any]]:
        """First registered helper exposing `method_name`, else None."""
        for idx, helper in enumerate(self._helpers):
            if helper.method_name is None:
                if method_name.startswith("_"):
                    continue
                attr = method_name
            elif method_name in (helper.method_name, helper.alias):
                attr = helper.method_name
            else:
                continue
            try:
                source = self._helper_source(idx)
            except HelperResolutionError as e:
                logger.debug("%s", e)
                continue
            if helper.method_name is None and not _exposes(source, attr):
                continue
            # A plain function registered under a name is the helper itself.
            if helper.method_name is not None and inspect.isroutine(source):
                return source
            fn = getattr(source, attr, None)
            if callable(fn):
                return fn
        return None

    def has_helper_callable(self, method_name: str) -> bool:
        return self.get_helper_callable(method_name) is not None

    def has_method(self, method_name: str) -> bool:
        if method_name.startswith("_"):
            return False
        return callable(getattr(type(self), method_name, None))

    def fixup_registered_helpers(self) -> int:
        """Resolve helper import strings registered before/during loading.

        Returns the number of helper sources that could not be resolved;
        those stay registered and are retried on lookup.
        """
        failed = 0
        for idx in range(len(self._helpers)):
            try:
                self._helper_source(idx)
            except HelperResolutionError as e:
                failed += 1
                metrics.inc(
                    "helper_fixup_failures_total",
                    {"identity": self.identity, "error_type": map_exception(e)},
                )
                logger.warning(
                    "identity=%s unresolved helper: %s", self.identity, e
                )
        return failed


__all__ = ["Implementation", "RegisteredHelper"]

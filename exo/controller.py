"""Controller facade: one API surface per controller identity.

Every call, the enumerated ones included, goes through Registry.dispatch,
so the tier order (implementation → helpers → index) applies uniformly.
Any other public attribute becomes a delegated call:

    acme = runtime.register("Acme", "/srv/acme")
    acme.register_dir("/srv/acme/includes")
    acme.format_price(10)        # whichever tier provides format_price
"""
from __future__ import annotations

import functools
from pathlib import Path
from typing import TYPE_CHECKING, Any, Callable, Mapping, Optional

if TYPE_CHECKING:  # pragma: no cover
    from exo.registry import Implementation, Registry


class Controller:
    def __init__(self, identity: str, registry: "Registry") -> None:
        self.identity = identity
        self._registry = registry

    def __repr__(self) -> str:
        return f"<Controller {self.identity}>"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Controller):
            return NotImplemented
        return self.identity == other.identity and self._registry is other._registry

    def __hash__(self) -> int:
        return hash((self.identity, id(self._registry)))

    @property
    def implementation(self) -> Optional["Implementation"]:
        return self._registry.lookup(self.identity)

    def call(self, method_name: str, *args: Any, **kwargs: Any) -> Any:
        return self._registry.dispatch(self.identity, method_name, *args, **kwargs)

    def initialize(self) -> bool:
        return self._registry.initialize(self.identity)

    # --- Enumerated surface -----------------------------------------------
    def register_dir(self, path: str | Path, prefix: str | None = None) -> None:
        return self.call("register_dir", path, prefix)

    def register_subdir(self, subdir: str, prefix: str | None = None) -> None:
        return self.call("register_subdir", subdir, prefix)

    def register_class(self, name: str, path: str | Path) -> None:
        return self.call("register_class", name, path)

    def register_classes(self, classes: Mapping[str, str | Path]) -> None:
        return self.call("register_classes", classes)

    def register_helper(
        self,
        source: Any,
        method_name: str | None = None,
        alias: str | None = None,
    ) -> None:
        return self.call("register_helper", source, method_name, alias)

    def __getattr__(self, name: str) -> Callable[..., Any]:
        if name.startswith("_"):
            raise AttributeError(name)
        return functools.partial(self.call, name)


__all__ = ["Controller"]

"""CapabilityResolver: ordered provider tiers for delegated calls.

Tiers, first match wins, evaluated on every call (helpers registered later
become visible immediately):

  1. implementation  public method on the Implementation object
  2. helper          registered helper callable (name or alias)
  3. index           enumerated method on the owned DirectoryIndex

No match (or unknown identity) is reported as a warning, counted and
emitted as CapabilityUnresolved; the caller gets None.
"""
from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Callable, Optional, Protocol, Tuple

from exo import metrics
from exo.errors import UnresolvedCapability
from exo.events import CapabilityUnresolved, emit

from .implementation import Implementation

if TYPE_CHECKING:  # pragma: no cover
    from .registry import Registry

logger = logging.getLogger("exo.registry")


class CapabilityProvider(Protocol):
    tier: str

    def find(self, method_name: str) -> Optional[Callable[..., Any]]:
        ...


class ImplementationTier:
    tier = "implementation"

    def __init__(self, implementation: Implementation) -> None:
        self._impl = implementation

    def find(self, method_name: str) -> Optional[Callable[..., Any]]:
        if self._impl.has_method(method_name):
            return getattr(self._impl, method_name)
        return None


class HelperTier:
    tier = "helper"

    def __init__(self, implementation: Implementation) -> None:
        self._impl = implementation

    def find(self, method_name: str) -> Optional[Callable[..., Any]]:
        return self._impl.get_helper_callable(method_name)


class IndexTier:
    tier = "index"

    def __init__(self, implementation: Implementation) -> None:
        self._index = implementation.index

    def find(self, method_name: str) -> Optional[Callable[..., Any]]:
        if method_name in self._index.capabilities:
            return getattr(self._index, method_name, None)
        return None


def providers_for(implementation: Implementation) -> Tuple[CapabilityProvider, ...]:
    return (
        ImplementationTier(implementation),
        HelperTier(implementation),
        IndexTier(implementation),
    )


class CapabilityResolver:
    def __init__(self, registry: "Registry") -> None:
        self._registry = registry

    def resolve(
        self, identity: str, method_name: str
    ) -> Tuple[Optional[str], Optional[Callable[..., Any]]]:
        """Return (tier, callable) or (None, None)."""
        impl = self._registry.lookup(identity)
        if impl is None:
            return None, None
        for provider in providers_for(impl):
            fn = provider.find(method_name)
            if fn is not None:
                return provider.tier, fn
        return None, None

    def dispatch(self, identity: str, method_name: str, *args: Any, **kwargs: Any) -> Any:
        tier, fn = self.resolve(identity, method_name)
        if fn is None:
            self._report_unresolved(identity, method_name)
            return None
        logger.debug("dispatch %s.%s via %s", identity, method_name, tier)
        return fn(*args, **kwargs)

    def _report_unresolved(self, identity: str, method_name: str) -> None:
        err = UnresolvedCapability(identity, method_name)
        metrics.inc_unresolved_capability(identity, method_name)
        emit(CapabilityUnresolved(identity=identity, method=method_name))
        logger.warning("ERROR: %s", err)


__all__ = [
    "CapabilityProvider",
    "CapabilityResolver",
    "HelperTier",
    "ImplementationTier",
    "IndexTier",
    "providers_for",
]

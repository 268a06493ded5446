"""Typed runtime events + any-subscriber fan-out.

Events are diagnostics about what the loader/registry did; they are not the
host hook system (see `exo.hooks`). Subscribers registered with `on(handler)`
receive every event as handler(name, payload).
"""
from __future__ import annotations

from dataclasses import asdict, dataclass
from time import time
from typing import Any, Callable, Dict, List, Protocol

from exo import metrics as _metrics

EventHandler = Callable[[str, Dict[str, Any]], None]


class SupportsEvent(Protocol):  # pragma: no cover
    def to_event(self) -> Dict[str, Any]:  # noqa: D401
        ...


@dataclass(slots=True)
class BaseEvent:
    def to_event(self) -> Dict[str, Any]:  # noqa: D401
        data = asdict(self)
        data["ts"] = data.get("ts") or time()
        return data


@dataclass(slots=True)
class ImplementationRegistered(BaseEvent):
    identity: str
    prefix: str
    root: str
    made_global: bool = False


@dataclass(slots=True)
class DirectoryIndexed(BaseEvent):
    """One batch indexing pass finished.

    dirs: number of queued directories processed.
    entries / fragments: table sizes after the pass.
    """
    identity: str
    dirs: int
    entries: int
    fragments: int
    scan_ms: int


@dataclass(slots=True)
class ModuleAutoloaded(BaseEvent):
    name: str
    path: str


@dataclass(slots=True)
class BundleSynced(BaseEvent):
    identity: str
    path: str
    fragments: int
    written: bool


@dataclass(slots=True)
class BundleLoaded(BaseEvent):
    identity: str
    path: str
    source: str  # fragments|bundle


@dataclass(slots=True)
class CapabilityUnresolved(BaseEvent):
    identity: str
    method: str
    error_type: str = "unresolved-capability"


@dataclass(slots=True)
class RunModeRejected(BaseEvent):
    value: str
    current: str
    error_type: str = "invalid-runmode"


@dataclass(slots=True)
class LifecycleReady(BaseEvent):
    hook: str


_ANY_SUBS: List[EventHandler] = []


def _metrics_collector(name: str, payload: Dict[str, Any]) -> None:
    if name == "DirectoryIndexed":
        _metrics.observe(
            "index_scan_ms",
            payload.get("scan_ms", 0),
            {"identity": payload.get("identity", "unknown")},
        )
    elif name == "ModuleAutoloaded":
        _metrics.inc(
            "autoload_loads_total", {"name": payload.get("name", "unknown")}
        )
    elif name == "BundleLoaded":
        _metrics.inc(
            "bundle_loads_total",
            {
                "identity": payload.get("identity", "unknown"),
                "source": payload.get("source", "unknown"),
            },
        )


_ANY_SUBS.append(_metrics_collector)


def emit(ev: BaseEvent | SupportsEvent) -> None:
    name = ev.__class__.__name__
    payload = ev.to_event()
    _metrics.inc("events_emitted_total", {"event": name})
    for h in list(_ANY_SUBS):  # copy for isolation
        try:
            h(name, dict(payload))
        except Exception:  # noqa: BLE001
            _metrics.inc("handler_exceptions_total", {"event": name})


def on(handler: EventHandler) -> None:
    _ANY_SUBS.append(handler)


def subscribe(handler: EventHandler):
    on(handler)

    def _unsub() -> None:  # noqa: D401
        try:
            _ANY_SUBS.remove(handler)
        except ValueError:
            pass
    return _unsub


def reset_listeners_for_tests() -> None:  # pragma: no cover
    _ANY_SUBS.clear()
    _ANY_SUBS.append(_metrics_collector)


__all__ = [
    "emit",
    "on",
    "subscribe",
    "BaseEvent",
    "ImplementationRegistered",
    "DirectoryIndexed",
    "ModuleAutoloaded",
    "BundleSynced",
    "BundleLoaded",
    "CapabilityUnresolved",
    "RunModeRejected",
    "LifecycleReady",
    "reset_listeners_for_tests",
]

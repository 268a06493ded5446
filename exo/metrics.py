"""In-memory metrics for the loader, registry and config paths.

Counters and histogram samples keyed by (name, sorted labels). Reads go
through `snapshot()`, which flattens keys to `name{k=v,...}`.

Emitted names:
    counters
        events_emitted_total{event}
        handler_exceptions_total{event}        (event or hook name)
        hook_actions_total{hook}
        autoload_loads_total{name}
        bundle_loads_total{identity,source}
        bundle_writes_total{identity}
        onload_failures_total{identity,error_type}
        helper_fixup_failures_total{identity,error_type}
        unresolved_capability_total{identity,method}
        runmode_rejected_total{value}
        env_override_total{path}
        config_validation_errors_total{path,code}
    histograms
        index_scan_ms{identity}
"""
from __future__ import annotations

from threading import RLock
from time import time
from typing import Any, Dict, List, Tuple

Labels = Tuple[Tuple[str, str], ...]
MetricKey = Tuple[str, Labels]

_COUNTERS: Dict[MetricKey, float] = {}
_SAMPLES: Dict[MetricKey, List[float]] = {}
_LOCK = RLock()


def _key(name: str, labels: dict[str, Any] | None) -> MetricKey:
    if not labels:
        return name, ()
    return name, tuple(sorted((str(k), str(v)) for k, v in labels.items()))


def _flat(key: MetricKey) -> str:
    name, labels = key
    if not labels:
        return name
    return name + "{" + ",".join(f"{k}={v}" for k, v in labels) + "}"


def _summary(samples: List[float]) -> dict[str, float]:
    ordered = sorted(samples)
    return {
        "count": len(samples),
        "min": ordered[0],
        "max": ordered[-1],
        "p50": ordered[len(ordered) // 2],
        "last": samples[-1],
    }


def inc(name: str, labels: dict[str, Any] | None = None, value: float = 1.0) -> None:
    key = _key(name, labels)
    with _LOCK:
        _COUNTERS[key] = _COUNTERS.get(key, 0.0) + value


def observe(name: str, value: float, labels: dict[str, Any] | None = None) -> None:
    key = _key(name, labels)
    with _LOCK:
        _SAMPLES.setdefault(key, []).append(value)


def get_counter(name: str, labels: dict[str, Any] | None = None) -> float:
    with _LOCK:
        return _COUNTERS.get(_key(name, labels), 0.0)


def snapshot() -> dict[str, Any]:
    with _LOCK:
        counters = {_flat(k): v for k, v in _COUNTERS.items()}
        histograms = {_flat(k): _summary(v) for k, v in _SAMPLES.items() if v}
    return {"ts": time(), "counters": counters, "histograms": histograms}


def reset_for_tests() -> None:  # pragma: no cover
    with _LOCK:
        _COUNTERS.clear()
        _SAMPLES.clear()


# --- Typed helpers for the call sites that count outside events ----------

def inc_unresolved_capability(identity: str, method: str) -> None:
    """Count a dispatch that fell through every provider tier."""
    inc("unresolved_capability_total", {"identity": identity, "method": method})


def inc_runmode_rejected(value: str) -> None:
    inc("runmode_rejected_total", {"value": value})


def inc_bundle_write(identity: str) -> None:
    inc("bundle_writes_total", {"identity": identity})


__all__ = [
    "inc",
    "observe",
    "get_counter",
    "snapshot",
    "reset_for_tests",
    "inc_unresolved_capability",
    "inc_runmode_rejected",
    "inc_bundle_write",
]

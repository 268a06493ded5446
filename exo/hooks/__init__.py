"""Host hook bus (sync in-process, priority ordered).

Stands in for the host platform's action system:
  - add_action(hook, callback, priority=10)
  - do_action(hook, *args) runs callbacks by ascending priority, ties in
    registration order
  - did_action(hook) -> number of times the hook has fired
  - handler isolation (exceptions logged + counted, not propagated)

Callbacks run synchronously on the caller's stack, so a callback may itself
register further callbacks or fire other hooks. Callbacks added for a hook
while it is firing are picked up if their priority has not been passed yet.
"""
from __future__ import annotations

import itertools
import logging
from threading import RLock
from typing import Any, Callable, Dict, List, Tuple

from exo import metrics

HookCallback = Callable[..., Any]

# Host lifecycle hooks consumed by the runtime.
HOOK_INIT = "init"
HOOK_READY = "loaded"
HOOK_DISCOVERY = "exo_autoloader_classes"

DEFAULT_PRIORITY = 10

logger = logging.getLogger("exo.hooks")


class HookBus:
    def __init__(self) -> None:
        self._actions: Dict[str, List[Tuple[int, int, HookCallback]]] = {}
        self._fired: Dict[str, int] = {}
        self._seq = itertools.count()
        self._lock = RLock()

    def add_action(
        self,
        hook: str,
        callback: HookCallback,
        priority: int = DEFAULT_PRIORITY,
    ) -> None:
        with self._lock:
            entries = self._actions.setdefault(hook, [])
            entries.append((priority, next(self._seq), callback))
            entries.sort(key=lambda e: (e[0], e[1]))

    def remove_action(self, hook: str, callback: HookCallback) -> bool:
        with self._lock:
            entries = self._actions.get(hook, [])
            kept = [e for e in entries if e[2] != callback]
            self._actions[hook] = kept
            return len(kept) != len(entries)

    def has_action(self, hook: str, callback: HookCallback | None = None) -> bool:
        with self._lock:
            entries = self._actions.get(hook, [])
            if callback is None:
                return bool(entries)
            return any(e[2] == callback for e in entries)

    def did_action(self, hook: str) -> int:
        return self._fired.get(hook, 0)

    def do_action(self, hook: str, *args: Any) -> None:
        with self._lock:
            self._fired[hook] = self._fired.get(hook, 0) + 1
        metrics.inc("hook_actions_total", {"hook": hook})
        done: set[int] = set()
        floor = None
        while True:
            # Re-read the table each step so callbacks registered by earlier
            # callbacks (same hook, later priority) still run in this pass.
            with self._lock:
                pending = [
                    e
                    for e in self._actions.get(hook, ())
                    if e[1] not in done and (floor is None or e[0] >= floor)
                ]
            if not pending:
                break
            priority, seq, cb = pending[0]
            floor = priority
            done.add(seq)
            try:
                cb(*args)
            except Exception:  # noqa: BLE001
                metrics.inc("handler_exceptions_total", {"event": hook})
                logger.exception(
                    "hook callback failed hook=%s priority=%s", hook, priority
                )

    def reset_for_tests(self) -> None:  # pragma: no cover
        with self._lock:
            self._actions.clear()
            self._fired.clear()


__all__ = [
    "HookBus",
    "HookCallback",
    "HOOK_INIT",
    "HOOK_READY",
    "HOOK_DISCOVERY",
    "DEFAULT_PRIORITY",
]

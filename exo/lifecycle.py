"""LifecycleGate: NotReady → Ready, one-way.

Flipped by the host's one-shot ready hook. DirectoryIndex consults it to
decide between immediate and deferred indexing.
"""
from __future__ import annotations

import enum
import logging

from exo.events import LifecycleReady, emit
from exo.hooks import HOOK_READY, HookBus

logger = logging.getLogger("exo.lifecycle")


class GateState(enum.Enum):
    NOT_READY = "not_ready"
    READY = "ready"


class LifecycleGate:
    def __init__(self) -> None:
        self._state = GateState.NOT_READY

    @property
    def state(self) -> GateState:
        return self._state

    def attach(self, hooks: HookBus) -> None:
        # Priority 0: ahead of anything else listening on the ready hook.
        hooks.add_action(HOOK_READY, self.mark_ready, 0)

    def mark_ready(self) -> None:
        if self._state is GateState.READY:
            return
        self._state = GateState.READY
        logger.debug("lifecycle gate ready")
        emit(LifecycleReady(hook=HOOK_READY))

    def is_ready(self) -> bool:
        return self._state is GateState.READY


__all__ = ["GateState", "LifecycleGate"]

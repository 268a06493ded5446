"""Process run mode: dev, test, stage or live (default live).

Strict (debug) mode only accepts the four known values, spelled exactly;
anything else is reported and the previous value kept. Non-strict mode
lower-cases and stores whatever it is given.
"""
from __future__ import annotations

import logging

from exo import metrics
from exo.errors import InvalidRunMode
from exo.events import RunModeRejected, emit

DEV = "dev"
TEST = "test"
STAGE = "stage"
LIVE = "live"
RUNMODES = (DEV, TEST, STAGE, LIVE)

logger = logging.getLogger("exo.runmode")


class RunMode:
    def __init__(self, strict: bool = False, value: str = LIVE) -> None:
        self.strict = strict
        self._value = value

    def get(self) -> str:
        return self._value

    def set(self, value: str) -> bool:
        """Apply a new run mode; False if rejected in strict mode."""
        if not self.strict:
            self._value = str(value).lower()
            return True
        if value in RUNMODES:
            self._value = value
            return True
        err = InvalidRunMode(value, self._value)
        metrics.inc_runmode_rejected(str(value))
        emit(RunModeRejected(value=str(value), current=self._value))
        logger.warning("%s", err)
        return False

    def is_dev_mode(self) -> bool:
        return self._value == DEV

    def is_test_mode(self) -> bool:
        return self._value == TEST

    def is_stage_mode(self) -> bool:
        return self._value == STAGE

    def is_live_mode(self) -> bool:
        return self._value == LIVE

    def __repr__(self) -> str:
        return f"RunMode({self._value!r}, strict={self.strict})"


__all__ = ["RunMode", "RUNMODES", "DEV", "TEST", "STAGE", "LIVE"]

"""Registry package: implementations, helpers and call delegation."""
from __future__ import annotations

from .dispatch import CapabilityResolver  # noqa: F401
from .implementation import Implementation, RegisteredHelper  # noqa: F401
from .registry import CONTROLLER_GLOBAL, Registry  # noqa: F401

__all__ = [
    "CONTROLLER_GLOBAL",
    "CapabilityResolver",
    "Implementation",
    "RegisteredHelper",
    "Registry",
]

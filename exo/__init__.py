"""exo: component composition + lazy module loading for a host platform.

Public API:
    ExoRuntime / get_runtime()   process context (config, hooks, registry)
    Controller                   per-identity facade with delegated calls
    Implementation               per-identity state (dirs, prefix, helpers)
"""
from __future__ import annotations

__version__ = "0.3.0"

from .controller import Controller  # noqa: E402,F401
from .registry import Implementation  # noqa: E402,F401
from .runtime import ExoRuntime, get_runtime, reset_runtime_for_tests  # noqa: E402,F401

__all__ = [
    "Controller",
    "ExoRuntime",
    "Implementation",
    "get_runtime",
    "reset_runtime_for_tests",
    "__version__",
]

"""Central error taxonomy + exception hierarchy.

Error codes are used as metric labels and event fields; exceptions are
raised only at the few hard-failure boundaries (missing bundle, bad
config). Everything else degrades to a logged warning.
"""
from __future__ import annotations

_ALLOWED_ERROR_TYPES = {
    # dispatch
    "unresolved-capability",
    "helper-unresolved",
    # configuration
    "invalid-runmode",
    "config-invalid",
    "config-out-of-range",
    # loading
    "bundle-missing",
    "module-load-failed",
    # infra
    "hook-handler-error",
    "event-handler-error",
}


def validate_error_type(code: str) -> str:
    assert (
        code in _ALLOWED_ERROR_TYPES
    ), f"Unknown error_type '{code}' (not in taxonomy)"
    return code


class ExoError(Exception):
    """Base runtime exception."""

    error_type = "module-load-failed"


class UnresolvedCapability(ExoError):
    """No provider tier exposes the requested method.

    Never raised by dispatch itself; instances are built to format the
    diagnostic consistently.
    """

    error_type = "unresolved-capability"

    def __init__(self, identity: str, method_name: str):
        self.identity = identity
        self.method_name = method_name
        super().__init__(
            f"Neither {identity} nor any of its registered helpers "
            f"have the method {method_name}()."
        )


class InvalidRunMode(ExoError, ValueError):
    error_type = "invalid-runmode"

    def __init__(self, value: str, current: str):
        self.value = value
        self.current = current
        super().__init__(
            f"Invalid run mode {value!r}; keeping {current!r}"
        )


class BundleMissingError(ExoError, FileNotFoundError):
    """Bundle file absent outside dev mode.

    The bundle has to be generated (dev mode or scripts/generate_bundle.py)
    before deploying with any other run mode.
    """

    error_type = "bundle-missing"


class HelperResolutionError(ExoError, LookupError):
    error_type = "helper-unresolved"


def map_exception(e: Exception) -> str:
    if isinstance(e, ExoError):
        return e.error_type
    if isinstance(e, FileNotFoundError):
        return "bundle-missing"
    return "module-load-failed"


__all__ = [
    "validate_error_type",
    "map_exception",
    "ExoError",
    "UnresolvedCapability",
    "InvalidRunMode",
    "BundleMissingError",
    "HelperResolutionError",
]

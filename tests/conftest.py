"""Pytest configuration ensuring project root is importable.

Adds repository root to sys.path explicitly to avoid interpreter/path quirks,
and isolates the process-wide state the runtime touches: config cache, EXO
env vars, metrics, event listeners, sys.meta_path and modules loaded from
test directories.
"""
from __future__ import annotations

import os
import sys
import textwrap
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parent.parent
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))


@pytest.fixture(autouse=True)
def _isolate_config_env(monkeypatch):  # noqa: D401
    """Clear config cache and EXO env overrides between tests."""
    from exo.config import clear_config_cache  # local import

    for key in list(os.environ):
        if key.startswith("EXO__") or key in ("EXO_RUNMODE", "EXO_CONFIG_DIR"):
            monkeypatch.delenv(key, raising=False)
    clear_config_cache()
    try:
        yield
    finally:
        clear_config_cache()


@pytest.fixture(autouse=True)
def _isolate_runtime_state(tmp_path_factory):
    """Reset metrics/listeners; undo meta_path + sys.modules additions."""
    from exo import metrics, reset_runtime_for_tests
    from exo.events import reset_listeners_for_tests

    metrics.reset_for_tests()
    reset_listeners_for_tests()
    meta_before = list(sys.meta_path)
    modules_before = set(sys.modules)
    base = str(tmp_path_factory.getbasetemp())
    try:
        yield
    finally:
        reset_runtime_for_tests()
        reset_listeners_for_tests()
        sys.meta_path[:] = meta_before
        for name in set(sys.modules) - modules_before:
            mod = sys.modules.get(name)
            origin = getattr(mod, "__file__", None) or ""
            if name.startswith("_exo_") or origin.startswith(base):
                sys.modules.pop(name, None)


@pytest.fixture
def runtime():
    """Fresh runtime with default config (no configs/ dir lookup)."""
    from exo.config import AggregatedConfig
    from exo.runtime import ExoRuntime

    rt = ExoRuntime(AggregatedConfig())
    yield rt
    rt.shutdown()


@pytest.fixture
def write_module():
    """Write a dedented source file, creating parent dirs."""

    def _write(path: Path, source: str = "") -> Path:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(textwrap.dedent(source).lstrip("\n"), encoding="utf-8")
        return path

    return _write

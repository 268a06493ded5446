"""Process runtime context.

Bundles what the entry points need: config, host hook bus, lifecycle gate,
run mode, site paths and the implementation registry. Build one explicitly
and pass it around, or use `get_runtime()` for the process-wide default
(created on first use, read-mostly afterwards).

Host integration:
    rt = get_runtime()
    acme = rt.register("Acme", "/srv/acme")
    acme.register_subdir("includes")
    rt.hooks.do_action(HOOK_INIT)      # batch indexing pass
    rt.hooks.do_action(HOOK_READY)     # later dirs index immediately
    acme.initialize()
"""
from __future__ import annotations

import logging
import os
import threading
from typing import Any, MutableMapping, Optional

from exo.config import AggregatedConfig, configure_logging, get_config
from exo.controller import Controller
from exo.hooks import HOOK_INIT, HOOK_READY, HookBus
from exo.lifecycle import LifecycleGate
from exo.registry import Implementation, Registry
from exo.runmode import RunMode
from exo.site import SitePaths

RUNMODE_ENV = "EXO_RUNMODE"

logger = logging.getLogger("exo.runtime")


class ExoRuntime:
    def __init__(
        self,
        config: Optional[AggregatedConfig] = None,
        *,
        hooks: Optional[HookBus] = None,
        site: Optional[SitePaths] = None,
        namespace: Optional[MutableMapping[str, Any]] = None,
    ) -> None:
        self.config = config if config is not None else get_config()
        self.hooks = hooks or HookBus()
        self.gate = LifecycleGate()
        self.gate.attach(self.hooks)
        self.runmode = RunMode(strict=self.config.runtime.debug)
        self._bootstrap_runmode()
        self.site = site or SitePaths.from_config(self.config.site)
        self.registry = Registry(
            self.hooks, self.gate, self.runmode, self.config, namespace
        )

    def _bootstrap_runmode(self) -> None:
        if self.config.runtime.runmode:
            self.runmode.set(self.config.runtime.runmode)
        # Fallback for scripts bootstrapping the host outside a request.
        env_mode = os.getenv(RUNMODE_ENV)
        if env_mode:
            self.runmode.set(env_mode)

    # --- Registration / delegation ----------------------------------------
    def register(
        self,
        identity: str,
        implementation_or_dir: Implementation | str | os.PathLike,
        *,
        make_global: bool = False,
    ) -> Controller:
        self.registry.register(
            identity, implementation_or_dir, make_global=make_global
        )
        return self.registry.controller(identity)

    def controller(self, identity: str) -> Controller:
        return self.registry.controller(identity)

    def initialize(self, identity: str) -> bool:
        return self.registry.initialize(identity)

    def dispatch(self, identity: str, method_name: str, *args: Any, **kwargs: Any) -> Any:
        return self.registry.dispatch(identity, method_name, *args, **kwargs)

    # --- Run mode accessors -----------------------------------------------
    def get_runmode(self) -> str:
        return self.runmode.get()

    def set_runmode(self, value: str) -> bool:
        return self.runmode.set(value)

    def is_dev_mode(self) -> bool:
        return self.runmode.is_dev_mode()

    def is_test_mode(self) -> bool:
        return self.runmode.is_test_mode()

    def is_stage_mode(self) -> bool:
        return self.runmode.is_stage_mode()

    def is_live_mode(self) -> bool:
        return self.runmode.is_live_mode()

    # --- Host lifecycle ---------------------------------------------------
    def is_ready(self) -> bool:
        return self.gate.is_ready()

    def boot(self) -> None:
        """Fire init then ready, for hosts without their own hook loop."""
        self.hooks.do_action(HOOK_INIT)
        self.hooks.do_action(HOOK_READY)

    def shutdown(self) -> None:
        self.registry.shutdown()


_runtime: Optional[ExoRuntime] = None
_runtime_lock = threading.Lock()


def get_runtime() -> ExoRuntime:
    global _runtime  # noqa: PLW0603
    with _runtime_lock:
        if _runtime is None:
            cfg = get_config()
            configure_logging(cfg.logging)
            _runtime = ExoRuntime(cfg)
            logger.debug("runtime created runmode=%s", _runtime.get_runmode())
        return _runtime


def reset_runtime_for_tests() -> None:  # pragma: no cover
    global _runtime  # noqa: PLW0603
    with _runtime_lock:
        if _runtime is not None:
            _runtime.shutdown()
        _runtime = None


__all__ = ["ExoRuntime", "get_runtime", "reset_runtime_for_tests", "RUNMODE_ENV"]

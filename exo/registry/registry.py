"""Registry: controller identity → Implementation (at most one each).

Responsibilities:
 - register / lookup implementations (first registration wins, silently)
 - wire each implementation's DirectoryIndex into the host hooks
 - initialize: discovery broadcast, then dev (fragments + bundle sync) or
   non-dev (load generated bundle), then the helper fix-up pass
 - dispatch delegated calls through the CapabilityResolver
"""
from __future__ import annotations

import logging
import os
from typing import TYPE_CHECKING, Any, Dict, List, MutableMapping, Optional

from exo import metrics
from exo.autoload.bundle import load_bundle
from exo.autoload.loader import exec_source_file
from exo.config.loader import AggregatedConfig
from exo.errors import map_exception
from exo.events import BundleLoaded, BundleSynced, ImplementationRegistered, emit
from exo.hooks import HOOK_DISCOVERY, HookBus
from exo.lifecycle import LifecycleGate
from exo.runmode import RunMode

from .dispatch import CapabilityResolver
from .implementation import Implementation

if TYPE_CHECKING:  # pragma: no cover
    from exo.controller import Controller

logger = logging.getLogger("exo.registry")

# Name under which on-load code sees its owning controller facade.
CONTROLLER_GLOBAL = "controller"


def _module_token(identity: str) -> str:
    return "".join(c if c.isalnum() else "_" for c in identity.lower())


class Registry:
    def __init__(
        self,
        hooks: HookBus,
        gate: LifecycleGate,
        runmode: RunMode,
        config: AggregatedConfig,
        namespace: Optional[MutableMapping[str, Any]] = None,
    ) -> None:
        self.hooks = hooks
        self.gate = gate
        self.runmode = runmode
        self.config = config
        # Target of make_global publication.
        self.globals: MutableMapping[str, Any] = (
            namespace if namespace is not None else {}
        )
        self.resolver = CapabilityResolver(self)
        self._implementations: Dict[str, Implementation] = {}

    # --- Registration -----------------------------------------------------
    def register(
        self,
        identity: str,
        implementation_or_dir: Implementation | str | os.PathLike,
        *,
        make_global: bool = False,
    ) -> Implementation:
        existing = self._implementations.get(identity)
        if existing is not None:
            logger.debug("register ignored, %s already registered", identity)
            return existing
        if isinstance(implementation_or_dir, Implementation):
            impl = implementation_or_dir
        else:
            impl = Implementation(implementation_or_dir)
        impl.prefix = f"{identity}_"
        impl.identity = identity
        self._implementations[identity] = impl
        impl.index.attach(
            self.hooks, self.gate, self.config.autoload, self.config.bundle
        )
        if make_global:
            self.globals[identity] = impl
        emit(
            ImplementationRegistered(
                identity=identity,
                prefix=impl.prefix,
                root=str(impl.root),
                made_global=make_global,
            )
        )
        logger.debug("registered %s root=%s", identity, impl.root)
        return impl

    def register_class_prefix(self, identity: str, prefix: str) -> None:
        impl = self._implementations.get(identity)
        if impl is not None:
            impl.prefix = prefix

    def lookup(self, identity: str) -> Optional[Implementation]:
        return self._implementations.get(identity)

    def identities(self) -> List[str]:
        return list(self._implementations)

    def controller(self, identity: str) -> "Controller":
        from exo.controller import Controller

        return Controller(identity, self)

    # --- Initialization ---------------------------------------------------
    def bundle_path(self, identity: str) -> Optional[str]:
        impl = self.lookup(identity)
        if impl is None:
            return None
        return impl.dir(self.config.bundle.filename)

    def initialize(self, identity: str) -> bool:
        """Load on-load code for `identity`; False if not registered.

        Re-entrant calls (on-load code initializing its own controller)
        return True without running anything again.
        """
        impl = self.lookup(identity)
        if impl is None:
            return False
        if impl.initialized or impl.initializing:
            logger.debug("initialize skipped, %s already initialized", identity)
            return True

        impl.initializing = True
        try:
            # Listeners may register more directories for this identity here.
            self.hooks.do_action(HOOK_DISCOVERY, identity)
            self._load_onload_code(identity, impl)
        except Exception as e:
            error_type = map_exception(e)
            metrics.inc(
                "onload_failures_total",
                {"identity": identity, "error_type": error_type},
            )
            logger.error(
                "identity=%s on-load failed error_type=%s: %s",
                identity,
                error_type,
                e,
            )
            raise
        finally:
            impl.initializing = False
        impl.initialized = True
        impl.fixup_registered_helpers()
        return True

    def _load_onload_code(self, identity: str, impl: Implementation) -> None:
        namespace = {CONTROLLER_GLOBAL: self.controller(identity)}
        token = _module_token(identity)
        bundle_path = impl.dir(self.config.bundle.filename)
        if not self.runmode.is_dev_mode():
            impl.onload_modules.append(
                load_bundle(bundle_path, f"_exo_bundle_{token}", namespace, identity)
            )
            return
        impl.index.index_now()
        fragments = impl.index.get_fragment_paths()
        for n, path in enumerate(fragments):
            impl.onload_modules.append(
                exec_source_file(path, f"_exo_onload_{token}_{n}", namespace)
            )
        emit(BundleLoaded(identity=identity, path=str(impl.root), source="fragments"))
        written = impl.index.bundle_generator().sync_to_disk(bundle_path, identity)
        emit(
            BundleSynced(
                identity=identity,
                path=bundle_path,
                fragments=len(fragments),
                written=written,
            )
        )

    # --- Dispatch ---------------------------------------------------------
    def dispatch(self, identity: str, method_name: str, *args: Any, **kwargs: Any) -> Any:
        return self.resolver.dispatch(identity, method_name, *args, **kwargs)

    def shutdown(self) -> None:
        """Remove every implementation's finder from sys.meta_path."""
        for impl in self._implementations.values():
            impl.index.detach()


__all__ = ["Registry", "CONTROLLER_GLOBAL"]

"""DirectoryIndex: registered directories → autoload entries + fragments.

Responsibilities:
 - Queue directories with a name prefix (register_dir / register_subdir)
 - Batch pass (index_now) mapping `*.py` files to logical names and
   collecting `*.on-load.py` bundle fragments in discovery order
 - Index immediately once the host is ready (LifecycleGate)
 - Own the LazyLoader that serves the entry table to the import system
"""
from __future__ import annotations

import logging
import os
import sys
from pathlib import Path
from time import time
from typing import TYPE_CHECKING, Dict, List, Mapping, Optional

from exo.config.schemas.autoload import AutoloadConfig, BundleConfig
from exo.events import DirectoryIndexed, emit
from exo.hooks import HOOK_DISCOVERY, HOOK_INIT, HookBus

from .bundle import BundleGenerator
from .loader import AutoloadEntry, LazyLoader
from .naming import derive_logical_name, is_bundle_fragment

if TYPE_CHECKING:  # pragma: no cover
    from exo.lifecycle import LifecycleGate
    from exo.registry.implementation import Implementation

logger = logging.getLogger("exo.autoload")

# Priority of the batch pass on the host init hook (before default 10).
INIT_PRIORITY = 9


class DirectoryIndex:
    # Methods reachable through controller dispatch (third tier).
    capabilities = frozenset(
        {
            "register_dir",
            "register_subdir",
            "register_class",
            "register_classes",
            "index_now",
            "get_autoload_dirs",
            "get_fragment_paths",
            "get_entries",
            "get_bundle_content",
            "resolve",
        }
    )

    def __init__(
        self,
        owner: Optional["Implementation"] = None,
        settings: AutoloadConfig | None = None,
        bundle_settings: BundleConfig | None = None,
    ) -> None:
        self.owner = owner
        self.settings = settings or AutoloadConfig()
        self.bundle_settings = bundle_settings or BundleConfig()
        self._dirs: Dict[str, Optional[str]] = {}
        self._entries: Dict[str, AutoloadEntry] = {}
        self._fragments: List[Path] = []
        self.loader = LazyLoader(self._entries)
        self._hooks: HookBus | None = None
        self._gate: "LifecycleGate | None" = None

    # --- Runtime wiring ---------------------------------------------------
    def attach(
        self,
        hooks: HookBus,
        gate: "LifecycleGate",
        settings: AutoloadConfig | None = None,
        bundle_settings: BundleConfig | None = None,
    ) -> None:
        if settings is not None:
            self.settings = settings
        if bundle_settings is not None:
            self.bundle_settings = bundle_settings
        self._hooks = hooks
        self._gate = gate
        self.loader.install()
        hooks.add_action(HOOK_INIT, self._on_init, INIT_PRIORITY)
        hooks.add_action(HOOK_DISCOVERY, self._on_discovery)
        # Directories queued before attach are indexed right away if the
        # host is already past its ready point.
        if gate.is_ready():
            self.index_now()

    def detach(self) -> None:
        self.loader.uninstall()
        if self._hooks is not None:
            self._hooks.remove_action(HOOK_INIT, self._on_init)
            self._hooks.remove_action(HOOK_DISCOVERY, self._on_discovery)
        self._hooks = None

    def _on_init(self) -> None:
        self.index_now()

    def _on_discovery(self, identity: str) -> None:
        if self.owner is not None and identity == self.owner.identity:
            self.index_now()

    @property
    def identity(self) -> str:
        if self.owner is not None and self.owner.identity:
            return self.owner.identity
        return "unknown"

    # --- Registration -----------------------------------------------------
    def register_dir(self, path: str | Path, prefix: str | None = None) -> None:
        """Queue a directory; index now if the host is already ready."""
        self._dirs[os.path.realpath(path)] = prefix
        if self._gate is not None and self._gate.is_ready():
            self.index_now()

    def register_subdir(self, subdir: str, prefix: str | None = None) -> None:
        if self.owner is None:
            raise RuntimeError("register_subdir requires an owning implementation")
        self.register_dir(self.owner.dir(subdir), prefix)

    def register_class(self, name: str, path: str | Path) -> None:
        self._entries[name.lower()] = AutoloadEntry(name, Path(path))

    def register_classes(self, classes: Mapping[str, str | Path]) -> None:
        for name, path in classes.items():
            self.register_class(name, path)

    # --- Indexing ---------------------------------------------------------
    def _default_prefix(self) -> str:
        if self.owner is not None and self.owner.prefix:
            return self.owner.prefix
        return ""

    def index_now(self) -> int:
        """Scan every queued directory; returns how many were processed."""
        if not self._dirs:
            return 0
        t0 = time()
        ext = self.settings.extension
        processed = 0
        while self._dirs:
            dirpath = next(iter(self._dirs))
            prefix = self._dirs.pop(dirpath) or self._default_prefix()
            processed += 1
            for filepath in sorted(Path(dirpath).glob(f"*{ext}")):
                if not filepath.is_file():
                    continue
                if is_bundle_fragment(filepath.name, self.settings.fragment_suffix):
                    if filepath not in self._fragments:
                        self._fragments.append(filepath)
                    continue
                name = derive_logical_name(
                    filepath.name,
                    prefix,
                    marker=self.settings.class_marker,
                    separator=self.settings.separator,
                    extension=ext,
                )
                if name.display in sys.modules or name.key in sys.modules:
                    continue
                self._entries[name.key] = AutoloadEntry(name.display, filepath)
        scan_ms = int((time() - t0) * 1000)
        logger.debug(
            "indexed identity=%s dirs=%d entries=%d fragments=%d",
            self.identity,
            processed,
            len(self._entries),
            len(self._fragments),
        )
        emit(
            DirectoryIndexed(
                identity=self.identity,
                dirs=processed,
                entries=len(self._entries),
                fragments=len(self._fragments),
                scan_ms=scan_ms,
            )
        )
        return processed

    # --- Accessors --------------------------------------------------------
    def get_autoload_dirs(self) -> Dict[str, Optional[str]]:
        """Directories still waiting for the batch pass."""
        return dict(self._dirs)

    def get_fragment_paths(self) -> List[Path]:
        return list(self._fragments)

    def get_entries(self) -> Dict[str, Path]:
        return {key: entry.path for key, entry in self._entries.items()}

    def bundle_generator(self) -> BundleGenerator:
        root = self.owner.dir() if self.owner is not None else None
        return BundleGenerator(
            self._fragments, root=root, header=self.bundle_settings.header
        )

    def get_bundle_content(self) -> str:
        return self.bundle_generator().generate()

    def resolve(self, name: str) -> bool:
        return self.loader.resolve(name)


__all__ = ["DirectoryIndex", "INIT_PRIORITY"]

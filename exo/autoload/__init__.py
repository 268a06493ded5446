"""Autoload package: directory scanning, lazy import finder, bundles."""
from __future__ import annotations

from .bundle import BundleGenerator, load_bundle, strip_prologue  # noqa: F401
from .index import DirectoryIndex  # noqa: F401
from .loader import AutoloadEntry, LazyLoader, exec_source_file  # noqa: F401
from .naming import LogicalName, derive_logical_name, is_bundle_fragment  # noqa: F401

__all__ = [
    "AutoloadEntry",
    "BundleGenerator",
    "DirectoryIndex",
    "LazyLoader",
    "LogicalName",
    "derive_logical_name",
    "exec_source_file",
    "is_bundle_fragment",
    "load_bundle",
    "strip_prologue",
]

"""Read-only host path accessors (active theme dir / URI)."""
from __future__ import annotations

import re
from dataclasses import dataclass

from exo.config.schemas.runtime import SiteConfig


def maybe_adjust_http_scheme(url: str, ssl: bool) -> str:
    """Align the URL scheme with the incoming request (http vs https)."""
    scheme = "https" if ssl else "http"
    return re.sub(r"^https?://", f"{scheme}://", url)


def _join(base: str, path: str | None) -> str:
    # No trailing slash when no path is given.
    if not path:
        return base
    return f"{base}/" + path.lstrip("/")


@dataclass(frozen=True)
class SitePaths:
    root_dir: str
    root_uri: str
    ssl: bool = False

    @classmethod
    def from_config(cls, cfg: SiteConfig) -> "SitePaths":
        return cls(
            root_dir=cfg.theme_dir.rstrip("/") or "/",
            root_uri=maybe_adjust_http_scheme(cfg.theme_uri.rstrip("/"), cfg.ssl),
            ssl=cfg.ssl,
        )

    def theme_dir(self, path: str | None = None) -> str:
        return _join(self.root_dir, path)

    def theme_uri(self, path: str | None = None) -> str:
        return _join(self.root_uri, path)


__all__ = ["SitePaths", "maybe_adjust_http_scheme"]

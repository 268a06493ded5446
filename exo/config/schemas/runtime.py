"""Runtime + site schemas: run mode, strict flag, host paths."""
from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict


class RuntimeConfig(BaseModel):
    model_config = ConfigDict(extra="forbid")

    # Validated by RunMode.set, not here: non-strict mode accepts any value.
    runmode: Optional[str] = None
    debug: bool = False


class SiteConfig(BaseModel):
    model_config = ConfigDict(extra="forbid")

    theme_dir: str = "."
    theme_uri: str = ""
    ssl: bool = False

"""Autoload + bundle schemas (file naming conventions)."""
from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class AutoloadConfig(BaseModel):
    model_config = ConfigDict(extra="forbid")

    extension: str = Field(".py", pattern=r"^\.[A-Za-z0-9]+$")
    fragment_suffix: str = ".on-load.py"
    class_marker: str = "class-"
    separator: str = Field("_", min_length=1, max_length=1)


class BundleConfig(BaseModel):
    model_config = ConfigDict(extra="forbid")

    filename: str = "on-load.py"
    header: str = (
        "# Generated from on-load fragments. Edit the fragments, "
        "not this file."
    )

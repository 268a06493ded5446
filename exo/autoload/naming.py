"""Pure filename → logical module name rules.

    class-foo.py      + "Acme_" → Acme_foo   (key: acme_foo)
    -class-util.py    + "Acme_" → _Acme_util (key: _acme_util)
    foo-bar.py        + "Acme_" → Acme_foo_bar
    bar.on-load.py              → bundle fragment, no logical name
"""
from __future__ import annotations

import re
from dataclasses import dataclass
from pathlib import PurePath


@dataclass(frozen=True)
class LogicalName:
    display: str  # as written into generated code / module name
    key: str      # lower-cased lookup key


def is_bundle_fragment(filename: str, suffix: str = ".on-load.py") -> bool:
    return PurePath(filename).name.endswith(suffix)


def derive_logical_name(
    filename: str,
    prefix: str = "",
    *,
    marker: str = "class-",
    separator: str = "_",
    extension: str = ".py",
) -> LogicalName:
    name = PurePath(filename).name
    if name.endswith(extension):
        name = name[: -len(extension)]
    m = re.match(rf"^(-?)(?:{re.escape(marker)})?(.*)$", name)
    # A leading dash only counts when the marker follows it.
    if m and m.group(1) and not name[1:].startswith(marker):
        lead, stem = "", name
    elif m:
        lead, stem = m.group(1), m.group(2)
    else:  # pragma: no cover - pattern always matches
        lead, stem = "", name
    display = f"{lead}{prefix}{stem}".replace("-", separator)
    return LogicalName(display=display, key=display.lower())


__all__ = ["LogicalName", "derive_logical_name", "is_bundle_fragment"]

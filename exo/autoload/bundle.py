"""BundleGenerator: concatenate on-load fragments into one source file.

Layout of a generated bundle:

    <header comment>
    from __future__ import <hoisted features, sorted>   (only if any)

    #
    # File: /relative/path/to/first.on-load.py
    #
    <fragment body without prologue>
    ...

The prologue of a fragment is its shebang, coding cookie and
`from __future__` lines; future imports are hoisted because they are only
legal at the top of a module. Output is deterministic for a given fragment
list and file contents.
"""
from __future__ import annotations

import ast
import logging
import re
from pathlib import Path
from typing import Any, Iterable, List, Mapping, Optional, Tuple

from exo import metrics
from exo.errors import BundleMissingError
from exo.events import BundleLoaded, emit

from .loader import exec_source_file

logger = logging.getLogger("exo.autoload")

DEFAULT_HEADER = (
    "# Generated from on-load fragments. Edit the fragments, not this file."
)

_SHEBANG = re.compile(r"^#!")
_CODING = re.compile(r"^[ \t\f]*#.*?coding[:=][ \t]*[-\w.]+")
_LINE_BREAK = re.compile(r"\r\n|\r|\n")


def _is_docstring(node: ast.stmt) -> bool:
    return (
        isinstance(node, ast.Expr)
        and isinstance(node.value, ast.Constant)
        and isinstance(node.value.value, str)
    )


def strip_prologue(source: str) -> Tuple[str, List[str]]:
    """Return (body, future_features) for one fragment's source.

    Future imports may be parenthesized over several lines or follow the
    module docstring, so they are located with `ast` and dropped by line
    range.
    """
    tree = ast.parse(source)
    drop: set[int] = set()
    features: List[str] = []
    for pos, node in enumerate(tree.body):
        if isinstance(node, ast.ImportFrom) and node.module == "__future__":
            features.extend(alias.name for alias in node.names)
            drop.update(range(node.lineno, node.end_lineno + 1))
        elif not (pos == 0 and _is_docstring(node)):
            break
    # Same line breaks as the tokenizer, so ast line numbers line up.
    lines = _LINE_BREAK.split(source)
    for lineno, line in enumerate(lines[:2], start=1):
        if _SHEBANG.match(line) or _CODING.match(line):
            drop.add(lineno)
    body = [line for n, line in enumerate(lines, start=1) if n not in drop]
    return "\n".join(body).strip(), features


class BundleGenerator:
    def __init__(
        self,
        fragments: Iterable[Path],
        root: Optional[str | Path] = None,
        header: str = DEFAULT_HEADER,
    ) -> None:
        self._fragments = fragments
        self._root = Path(root).resolve() if root is not None else None
        self.header = header

    def _local_path(self, path: Path) -> str:
        if self._root is not None:
            try:
                return "/" + path.relative_to(self._root).as_posix()
            except ValueError:
                pass
        return path.as_posix()

    def generate(self) -> str:
        features: set[str] = set()
        parts: List[str] = []
        for fragment in list(self._fragments):
            path = Path(fragment).resolve()
            body, feats = strip_prologue(path.read_text(encoding="utf-8"))
            features.update(feats)
            parts.append(f"#\n# File: {self._local_path(path)}\n#\n")
            parts.append(body + "\n\n" if body else "\n")
        head = self.header.rstrip("\n") + "\n"
        if features:
            head += "from __future__ import " + ", ".join(sorted(features)) + "\n"
        return head + "\n" + "".join(parts)

    def sync_to_disk(self, target: str | Path, identity: str = "unknown") -> bool:
        """Write the bundle only if its content changed; True if written."""
        target = Path(target)
        new_content = self.generate()
        old_content = (
            target.read_text(encoding="utf-8") if target.is_file() else None
        )
        if new_content == old_content:
            return False
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(new_content, encoding="utf-8")
        metrics.inc_bundle_write(identity)
        logger.info("bundle written identity=%s path=%s", identity, target)
        return True


def load_bundle(
    target: str | Path,
    module_name: str,
    namespace: Optional[Mapping[str, Any]] = None,
    identity: str = "unknown",
):
    """Execute a previously generated bundle file."""
    target = Path(target)
    if not target.is_file():
        raise BundleMissingError(
            f"Bundle file not found: {target} (generate it in dev mode first)"
        )
    module = exec_source_file(target, module_name, namespace)
    emit(BundleLoaded(identity=identity, path=str(target), source="bundle"))
    return module


__all__ = ["BundleGenerator", "DEFAULT_HEADER", "load_bundle", "strip_prologue"]

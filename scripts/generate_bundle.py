"""Regenerate an implementation's on-load bundle outside dev mode.

Non-dev run modes load the bundle file verbatim and fail hard when it is
missing, so run this as a deploy step (or use --check in CI to detect a
stale bundle).

Usage:
  python scripts/generate_bundle.py /srv/acme --dir includes --dir lib
  python scripts/generate_bundle.py /srv/acme --dir includes --check
"""
from __future__ import annotations

import argparse
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parent.parent
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from exo.autoload.index import DirectoryIndex  # noqa: E402
from exo.config import get_config  # noqa: E402
from exo.registry.implementation import Implementation  # noqa: E402


def build_index(root: Path, dirs: list[str]) -> Implementation:
    cfg = get_config()
    impl = Implementation(root, index=DirectoryIndex(None, cfg.autoload, cfg.bundle))
    for d in dirs or ["."]:
        impl.index.register_dir(impl.dir(d))
    impl.index.index_now()
    return impl


def main(argv: list[str] | None = None) -> int:
    ap = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    ap.add_argument("root", help="implementation root directory")
    ap.add_argument(
        "--dir",
        action="append",
        default=[],
        help="directory (relative to root) to scan; repeatable",
    )
    ap.add_argument("--output", help="bundle path (default: <root>/<bundle.filename>)")
    ap.add_argument(
        "--check",
        action="store_true",
        help="exit 1 if the bundle on disk is stale, without writing",
    )
    args = ap.parse_args(argv)

    impl = build_index(Path(args.root), args.dir)
    target = Path(args.output or impl.dir(get_config().bundle.filename))
    generator = impl.index.bundle_generator()
    fragments = len(impl.index.get_fragment_paths())

    if args.check:
        current = target.read_text(encoding="utf-8") if target.is_file() else None
        if current != generator.generate():
            print(f"[bundle] stale: {target} ({fragments} fragments)")
            return 1
        print(f"[bundle] up to date: {target}")
        return 0

    written = generator.sync_to_disk(target, identity=Path(args.root).name)
    state = "written" if written else "unchanged"
    print(f"[bundle] {state}: {target} ({fragments} fragments)")
    return 0


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())

import os

import pytest

from exo.autoload.bundle import BundleGenerator, load_bundle, strip_prologue
from exo.errors import BundleMissingError


def _fragments(tmp_path, write_module):
    a = write_module(
        tmp_path / "inc" / "a.on-load.py",
        """
        #!/usr/bin/env python
        # -*- coding: utf-8 -*-
        from __future__ import annotations

        A = 1
        """,
    )
    b = write_module(
        tmp_path / "inc" / "b.on-load.py",
        """
        from __future__ import division, annotations
        B = A + 1
        """,
    )
    return [a, b]


def test_strip_prologue_collects_future_features():
    body, feats = strip_prologue(
        "#!/usr/bin/env python\nfrom __future__ import (annotations)\n\nX = 1\n"
    )
    assert body == "X = 1"
    assert feats == ["annotations"]


def test_strip_prologue_keeps_leading_comment():
    body, feats = strip_prologue("# helpers\nX = 1\n")
    assert body == "# helpers\nX = 1"
    assert feats == []


def test_strip_prologue_multiline_future_import():
    body, feats = strip_prologue(
        "from __future__ import (\n    annotations,\n    division,\n)\nX = 1\n"
    )
    assert body == "X = 1"
    assert feats == ["annotations", "division"]


def test_strip_prologue_future_after_docstring_keeps_docstring():
    body, feats = strip_prologue(
        '"""Cart helpers."""\nfrom __future__ import annotations\nX: int = 1\n'
    )
    assert body == '"""Cart helpers."""\nX: int = 1'
    assert feats == ["annotations"]


def test_generate_with_multiline_future_compiles(tmp_path, write_module):
    frag = write_module(
        tmp_path / "inc" / "m.on-load.py",
        """
        from __future__ import (
            annotations,
        )
        X = 1
        """,
    )
    out = BundleGenerator([frag], root=tmp_path).generate()
    compile(out, "bundle", "exec")
    assert "annotations,\n" not in out


def test_generate_layout(tmp_path, write_module):
    gen = BundleGenerator(_fragments(tmp_path, write_module), root=tmp_path, header="# HDR")
    out = gen.generate()
    assert out.startswith("# HDR\nfrom __future__ import annotations, division\n")
    assert "# File: /inc/a.on-load.py\n#\nA = 1\n" in out
    assert "# File: /inc/b.on-load.py\n#\nB = A + 1\n" in out
    assert out.index("/inc/a.on-load.py") < out.index("/inc/b.on-load.py")
    assert out.count("from __future__") == 1
    compile(out, "bundle", "exec")


def test_generate_outside_root_uses_absolute_path(tmp_path, write_module):
    frag = write_module(tmp_path / "elsewhere" / "x.on-load.py", "X = 1\n")
    gen = BundleGenerator([frag], root=tmp_path / "root")
    assert f"# File: {frag.resolve().as_posix()}" in gen.generate()


def test_generate_stable_and_sync_writes_once(tmp_path, write_module):
    gen = BundleGenerator(_fragments(tmp_path, write_module), root=tmp_path)
    assert gen.generate() == gen.generate()
    target = tmp_path / "on-load.py"
    assert gen.sync_to_disk(target) is True
    os.utime(target, (1_000_000, 1_000_000))
    assert gen.sync_to_disk(target) is False
    assert target.stat().st_mtime == 1_000_000
    assert target.read_text(encoding="utf-8") == gen.generate()


def test_sync_rewrites_when_fragment_changes(tmp_path, write_module):
    frags = _fragments(tmp_path, write_module)
    gen = BundleGenerator(frags, root=tmp_path)
    target = tmp_path / "on-load.py"
    gen.sync_to_disk(target)
    frags[1].write_text("B = 3\n", encoding="utf-8")
    assert gen.sync_to_disk(target) is True
    assert "B = 3" in target.read_text(encoding="utf-8")


def test_load_bundle_executes(tmp_path, write_module):
    gen = BundleGenerator(_fragments(tmp_path, write_module), root=tmp_path)
    target = tmp_path / "on-load.py"
    gen.sync_to_disk(target)
    mod = load_bundle(target, "_exo_test_bundle")
    assert mod.B == 2


def test_load_bundle_missing_is_hard_failure(tmp_path):
    with pytest.raises(BundleMissingError) as exc:
        load_bundle(tmp_path / "on-load.py", "_exo_test_missing")
    assert isinstance(exc.value, FileNotFoundError)

import json  # noqa: F401
import sys
from pathlib import Path

from exo.autoload.index import DirectoryIndex
from exo.events import on
from exo.hooks import HOOK_DISCOVERY, HOOK_INIT, HOOK_READY, HookBus
from exo.lifecycle import LifecycleGate
from exo.registry.implementation import Implementation


def _mods(tmp_path: Path, write_module) -> Path:
    mods = tmp_path / "mods"
    write_module(mods / "class-foo.py", "VALUE = 'foo'\n")
    write_module(mods / "bar.on-load.py", "LOADED = True\n")
    return mods


def test_scenario_prefix_entries_and_fragments(tmp_path, write_module):
    mods = _mods(tmp_path, write_module)
    index = DirectoryIndex()
    index.register_dir(mods, "Acme_")
    assert index.get_entries() == {}  # deferred until the batch pass
    assert index.index_now() == 1
    assert index.get_entries() == {"acme_foo": mods.resolve() / "class-foo.py"}
    assert index.get_fragment_paths() == [mods.resolve() / "bar.on-load.py"]


def test_double_registration_same_table(tmp_path, write_module):
    mods = _mods(tmp_path, write_module)
    once = DirectoryIndex()
    once.register_dir(mods, "Acme_")
    once.index_now()

    twice = DirectoryIndex()
    twice.register_dir(mods, "Acme_")
    twice.register_dir(mods, "Acme_")
    twice.index_now()
    twice.register_dir(mods, "Acme_")
    twice.index_now()
    assert twice.get_entries() == once.get_entries()
    assert twice.get_fragment_paths() == once.get_fragment_paths()


def test_batch_pass_is_idempotent(tmp_path, write_module):
    mods = _mods(tmp_path, write_module)
    index = DirectoryIndex()
    index.register_dir(mods, "Acme_")
    assert index.get_autoload_dirs() == {str(mods.resolve()): "Acme_"}
    assert index.index_now() == 1
    assert index.get_autoload_dirs() == {}
    assert index.index_now() == 0


def test_scan_order_is_sorted(tmp_path, write_module):
    mods = tmp_path / "mods"
    for name in ("c.on-load.py", "a.on-load.py", "b.on-load.py"):
        write_module(mods / name, "")
    index = DirectoryIndex()
    index.register_dir(mods)
    index.index_now()
    assert [p.name for p in index.get_fragment_paths()] == [
        "a.on-load.py",
        "b.on-load.py",
        "c.on-load.py",
    ]


def test_existing_module_name_is_skipped(tmp_path, write_module):
    mods = tmp_path / "mods"
    write_module(mods / "class-json.py", "SHADOW = True\n")
    index = DirectoryIndex()
    index.register_dir(mods, "")
    index.index_now()
    assert "json" in sys.modules
    assert index.get_entries() == {}


def test_prefix_defaults_to_owner(tmp_path, write_module):
    mods = _mods(tmp_path, write_module)
    impl = Implementation(tmp_path)
    impl.prefix = "Shop_"
    impl.index.register_dir(mods)
    impl.index.index_now()
    assert list(impl.index.get_entries()) == ["shop_foo"]


def test_register_subdir_relative_to_root(tmp_path, write_module):
    _mods(tmp_path, write_module)
    impl = Implementation(tmp_path)
    impl.prefix = "Acme_"
    impl.index.register_subdir("mods")
    impl.index.index_now()
    assert "acme_foo" in impl.index.get_entries()


def test_register_class_and_classes_lowercase(tmp_path):
    index = DirectoryIndex()
    index.register_class("Acme_Thing", tmp_path / "thing.py")
    index.register_classes({"Acme_Other": tmp_path / "other.py"})
    assert set(index.get_entries()) == {"acme_thing", "acme_other"}


def test_deferred_until_init_hook_then_immediate_after_ready(tmp_path, write_module):
    mods = _mods(tmp_path, write_module)
    late = tmp_path / "late"
    write_module(late / "class-late.py", "")
    hooks, gate = HookBus(), LifecycleGate()
    gate.attach(hooks)
    index = DirectoryIndex()
    index.attach(hooks, gate)
    try:
        index.register_dir(mods, "Acme_")
        assert index.get_entries() == {}
        hooks.do_action(HOOK_INIT)
        assert "acme_foo" in index.get_entries()

        hooks.do_action(HOOK_READY)
        index.register_dir(late, "Acme_")
        assert "acme_late" in index.get_entries()
        assert index.get_autoload_dirs() == {}
    finally:
        index.detach()


def test_discovery_hook_indexes_only_own_identity(tmp_path, write_module):
    mods = _mods(tmp_path, write_module)
    hooks, gate = HookBus(), LifecycleGate()
    impl = Implementation(tmp_path)
    impl.identity, impl.prefix = "Acme", "Acme_"
    impl.index.attach(hooks, gate)
    try:
        impl.index.register_dir(mods)
        hooks.do_action(HOOK_DISCOVERY, "Other")
        assert impl.index.get_entries() == {}
        hooks.do_action(HOOK_DISCOVERY, "Acme")
        assert "acme_foo" in impl.index.get_entries()
    finally:
        impl.index.detach()


def test_index_emits_directory_indexed(tmp_path, write_module):
    mods = _mods(tmp_path, write_module)
    events = []
    on(lambda n, p: events.append((n, p)))
    index = DirectoryIndex()
    index.register_dir(mods, "Acme_")
    index.index_now()
    indexed = [p for n, p in events if n == "DirectoryIndexed"]
    assert len(indexed) == 1
    assert indexed[0]["entries"] == 1
    assert indexed[0]["fragments"] == 1

import pytest

from exo.autoload.naming import derive_logical_name, is_bundle_fragment


@pytest.mark.parametrize(
    "filename,prefix,display",
    [
        ("class-foo.py", "Acme_", "Acme_foo"),
        ("foo.py", "Acme_", "Acme_foo"),
        ("class-foo-bar.py", "Acme_", "Acme_foo_bar"),
        ("-class-util.py", "Acme_", "_Acme_util"),
        ("-foo.py", "Acme_", "Acme__foo"),
        ("classic.py", "", "classic"),
        ("/srv/mods/class-Widget.py", "Shop_", "Shop_Widget"),
    ],
)
def test_derive_logical_name(filename, prefix, display):
    name = derive_logical_name(filename, prefix)
    assert name.display == display
    assert name.key == display.lower()


def test_custom_marker_and_separator():
    name = derive_logical_name("model-user.py", "app.", marker="model-", separator=".")
    assert name.display == "app.user"


def test_is_bundle_fragment():
    assert is_bundle_fragment("/mods/bar.on-load.py")
    assert not is_bundle_fragment("/mods/on-load.py")
    assert not is_bundle_fragment("/mods/class-foo.py")
    assert is_bundle_fragment("x.boot.py", suffix=".boot.py")

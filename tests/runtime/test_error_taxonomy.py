import pytest

from exo.errors import (
    BundleMissingError,
    InvalidRunMode,
    UnresolvedCapability,
    map_exception,
    validate_error_type,
)


def test_error_taxonomy_known():
    assert validate_error_type("unresolved-capability") == "unresolved-capability"
    assert validate_error_type("config-invalid") == "config-invalid"


def test_error_taxonomy_unknown():
    with pytest.raises(AssertionError):
        validate_error_type("not-a-code")


def test_exception_codes_are_in_taxonomy():
    for exc in (
        UnresolvedCapability("X", "m"),
        InvalidRunMode("bogus", "live"),
        BundleMissingError("gone"),
    ):
        assert validate_error_type(map_exception(exc)) == exc.error_type


def test_unresolved_message_names_identity_and_method():
    err = UnresolvedCapability("Acme", "frobnicate")
    assert "Acme" in str(err) and "frobnicate()" in str(err)
    assert map_exception(FileNotFoundError()) == "bundle-missing"
    assert map_exception(RuntimeError()) == "module-load-failed"

import pytest
from packaging.specifiers import InvalidSpecifier, SpecifierSet
from packaging.version import Version

from solshell.util.version import (
    detect_version,
    exact_version,
    normalize_version_spec,
    to_specifier_set,
)


def test_detect_version():
    source = """
    pragma solidity ^0.8.0;
    pragma solidity >=0.8.10 <0.9.0;
    contract A {}
    """
    assert detect_version(source) == ">=0.8.10 <0.9.0"
    assert detect_version("contract A {}") is None
    assert detect_version("pragma solidity 0.8.10") == "0.8.10"


@pytest.mark.parametrize(
    "spec,expected",
    [("^0.8.10", "0.8.10"), (" 0.8.10 ", "0.8.10"), ("^ 0.8.10", "0.8.10"), (">=0.8.0", ">=0.8.0")],
)
def test_normalize_version_spec(spec, expected):
    assert normalize_version_spec(spec) == expected


@pytest.mark.parametrize(
    "spec,expected",
    [
        ("0.8.10", Version("0.8.10")),
        ("^0.8.10", Version("0.8.10")),
        ("=0.8.10", Version("0.8.10")),
        ("v0.8.10", Version("0.8.10")),
        (">=0.8.10", None),
        ("0.8", None),
    ],
)
def test_exact_version(spec, expected):
    assert exact_version(spec) == expected


@pytest.mark.parametrize(
    "spec,expected",
    [
        (">=0.8.0 <0.9.0", SpecifierSet(">=0.8.0,<0.9.0")),
        (">= 0.8.0 < 0.9.0", SpecifierSet(">=0.8.0,<0.9.0")),
        ("^0.8.1", SpecifierSet("~=0.8.1")),
        ("~0.8.1", SpecifierSet("~=0.8.1")),
        ("0.8.1", SpecifierSet("==0.8.1")),
        ("=0.8.1", SpecifierSet("==0.8.1")),
    ],
)
def test_to_specifier_set(spec, expected):
    assert to_specifier_set(spec) == expected


@pytest.mark.parametrize("spec", ["", "0.8.1 || 0.8.2", "0.8.1 - 0.8.5"])
def test_invalid_specifier(spec):
    with pytest.raises(InvalidSpecifier):
        to_specifier_set(spec)

import re
from typing import Optional

from packaging.specifiers import InvalidSpecifier, SpecifierSet
from packaging.version import InvalidVersion, Version

VERSION_PRAGMA_RE = re.compile(r"pragma\s+solidity\s+([^;]+);?")


def detect_version(source_code: str) -> Optional[str]:
    """Return the version spec of the last `pragma solidity` in the source."""
    res = VERSION_PRAGMA_RE.findall(source_code)
    if len(res) < 1:
        return None
    return res[-1].strip()


def normalize_version_spec(version_spec: str) -> str:
    # `^0.8.10` and `0.8.10` resolve to the same compiler
    return version_spec.strip().removeprefix("^").strip()


def exact_version(version_spec: str) -> Optional[Version]:
    """The version if the (normalized) spec names exactly one release."""
    spec = normalize_version_spec(version_spec).removeprefix("=").removeprefix("v")
    if not re.fullmatch(r"\d+\.\d+\.\d+", spec):
        return None
    try:
        return Version(spec)
    except InvalidVersion:  # pragma: no cover
        return None


def to_specifier_set(version_spec: str) -> SpecifierSet:
    """
    Convert a solidity (npm style) version range to PEP 440, e.g.
    `>=0.8.0 <0.9.0` => `>=0.8.0,<0.9.0` and `^0.8.1` => `~=0.8.1`.
    Raises `InvalidSpecifier` for alternatives (`||`) and hyphen ranges.
    """
    clauses = []
    for token in re.sub(r"([<>=^~]+)\s+", r"\1", version_spec.strip()).split():
        # X.Y.Z or vX.Y.Z => ==X.Y.Z
        if re.match("[v0-9]", token):
            token = "==" + token.removeprefix("v")
        elif token.startswith("=") and not token.startswith("=="):
            token = "=" + token
        # convert npm to pep440
        token = re.sub("^[\\^~]", "~=", token)
        clauses.append(token)
    if not clauses:
        raise InvalidSpecifier(version_spec)
    return SpecifierSet(",".join(clauses))

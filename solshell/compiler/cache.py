from typing import Optional

from packaging.version import Version

from solshell.compiler.registry import CompilerRegistry, SolcCompiler
from solshell.exceptions import UnresolvedVersion
from solshell.util.version import normalize_version_spec


class CompilerCache:
    """
    Loaded compilers by version spec, for the lifetime of the cache.
    Entries are only ever added.
    """

    def __init__(self, registry: CompilerRegistry, installed_version: Optional[str] = None):
        self.registry = registry
        self._compilers: dict[str, SolcCompiler] = {}
        self._build_ids: dict[str, Version] = {}
        if installed_version is not None:
            # known good, skip the registry lookup
            key = normalize_version_spec(installed_version)
            self._build_ids[key] = Version(key)

    def __contains__(self, version_spec: str) -> bool:
        return normalize_version_spec(version_spec) in self._compilers

    def resolve(self, version_spec: str) -> SolcCompiler:
        key = normalize_version_spec(version_spec)
        if key in self._compilers:
            return self._compilers[key]

        build_id = self._build_ids.get(key)
        if build_id is None:
            build_id = self.registry.resolve_build_id(key)
            if build_id is None:
                raise UnresolvedVersion(version_spec)
            self._build_ids[key] = build_id

        self._compilers[key] = (ret := self.registry.load_compiler(build_id))
        return ret

import logging
from pathlib import Path
from typing import Any, Optional

import solcx
import solcx.install
from packaging.specifiers import InvalidSpecifier
from packaging.version import Version
from solcx.exceptions import SolcError

import solshell
from solshell.compiler.imports import ImportCallback, collect_sources
from solshell.compiler.output import CompileFailed, CompileResult, Diagnostic, parse_output
from solshell.rpc import json
from solshell.util.disk_cache import get_disk_cache
from solshell.util.version import exact_version, to_specifier_set

logger = logging.getLogger(__name__)


class SolcCompiler:
    """
    A loaded solc build. Compiles standard-JSON input via py-solc-x.
    """

    def __init__(self, version: Version, binary: Path, cache_dir: Optional[str] = None):
        self.version = version
        self.binary = binary
        self.cache_dir = cache_dir

    def __repr__(self):
        return f"SolcCompiler({self.version})"

    def _compile_standard(self, input_data: dict) -> dict[str, Any]:
        def _compile():
            return solcx.compile_standard(input_data, solc_binary=self.binary)

        disk_cache = get_disk_cache(self.cache_dir, solshell.__version__)
        if disk_cache is None:
            return _compile()

        # sort keys, so that equivalent inputs hit the same entry
        cache_key = f"{self.version}{json.dumps(input_data, sort_keys=True)}"
        return disk_cache.caching_lookup(cache_key, _compile)

    def compile(
        self,
        sources: dict[str, dict],
        output_selection: dict,
        import_callback: Optional[ImportCallback] = None,
        evm_version: Optional[str] = None,
    ) -> CompileResult:
        """
        Compile a map of source unit name => {"content": source}.
        :return: `CompileOk` with the contracts of the given units, or
            `CompileFailed` with solc's diagnostics.
        :raises SolcError: if solc fails without structured diagnostics.
        """
        settings: dict[str, Any] = {"outputSelection": output_selection}
        if evm_version is not None:
            settings["evmVersion"] = evm_version

        input_data = {
            "language": "Solidity",
            "sources": collect_sources(sources, import_callback),
            "settings": settings,
        }

        try:
            output = self._compile_standard(input_data)
        except SolcError as e:
            # compile_standard raises on error diagnostics, the list is
            # attached. anything else is an infrastructure failure.
            if not getattr(e, "error_dict", None):
                raise
            return CompileFailed([Diagnostic.from_solc(err) for err in e.error_dict])

        return parse_output(output, sources.keys())


class CompilerRegistry:
    """
    Maps version requests to solc builds, installing them (via py-solc-x)
    when necessary.
    """

    def __init__(self, solcx_binary_path: Optional[str] = None, cache_dir: Optional[str] = None):
        self.solcx_binary_path = solcx_binary_path
        self.cache_dir = cache_dir
        self._installable: Optional[list[Version]] = None

    def installed_versions(self) -> list[Version]:
        return solcx.get_installed_solc_versions(self.solcx_binary_path)

    def installable_versions(self) -> list[Version]:
        # one request per registry, the release list does not change often
        if self._installable is None:
            self._installable = solcx.get_installable_solc_versions()
        return self._installable

    def resolve_build_id(self, version_spec: str) -> Optional[Version]:
        """
        Find a solc release for a `pragma solidity` version spec.
        An exact version (`0.8.10`, `^0.8.10`) resolves to that release,
        a range to the newest matching release, preferring installed ones.
        """
        exact = exact_version(version_spec)
        if exact is not None:
            if exact in self.installed_versions() or exact in self.installable_versions():
                return exact
            return None

        try:
            specifier = to_specifier_set(version_spec)
        except InvalidSpecifier:
            logger.warning("cannot interpret version spec %r", version_spec)
            return None

        for candidates in (self.installed_versions, self.installable_versions):
            matches = list(specifier.filter(candidates()))
            if matches:
                return max(matches)
        return None

    def load_compiler(self, build_id: Version) -> SolcCompiler:
        if build_id not in self.installed_versions():
            logger.info("installing solc %s", build_id)
            solcx.install_solc(build_id, solcx_binary_path=self.solcx_binary_path)
        binary = solcx.install.get_executable(build_id, solcx_binary_path=self.solcx_binary_path)
        return SolcCompiler(build_id, binary, cache_dir=self.cache_dir)

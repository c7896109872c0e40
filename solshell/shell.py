"""
The entry point: a Solidity shell session.
"""

import logging
from typing import Any, Callable, Optional

from solshell.backends import BlockchainBackend, DeployedContract, make_backend
from solshell.compiler.cache import CompilerCache
from solshell.compiler.imports import FileImportResolver
from solshell.compiler.output import Diagnostic
from solshell.compiler.registry import CompilerRegistry
from solshell.config import ShellConfig
from solshell.driver import TypeInferenceCompileDriver
from solshell.session import Session
from solshell.statement import Statement, classify
from solshell.template import TemplateSynthesizer

logger = logging.getLogger(__name__)

# settings which only take effect with a new backend, see `init_blockchain`
BACKEND_SETTINGS = ("blockchain_provider", "provider_url", "autostart", "node_args")
COMPILER_SETTINGS = ("installed_solidity_version", "cache_dir")
IMPORT_SETTINGS = ("base_path", "include_paths", "allow_http_imports")


class InteractiveSolidityShell:
    """
    Evaluate Solidity fragments one at a time:

        >>> shell = InteractiveSolidityShell()
        >>> shell.run("uint a = 2")
        >>> shell.run("a + 1")
        3

    Each fragment is classified, added to the session and the whole session
    is compiled and deployed as one contract. The return value of `run` is
    the value of the last expression, if there is one.
    """

    def __init__(
        self,
        config: Optional[ShellConfig] = None,
        backend: Optional[BlockchainBackend] = None,
        registry: Optional[CompilerRegistry] = None,
        on_warning: Optional[Callable[[Diagnostic], None]] = None,
    ):
        self.config = config if config is not None else ShellConfig()
        self.session = Session()
        self.registry = registry or CompilerRegistry(cache_dir=self.config.cache_dir)

        self.driver = TypeInferenceCompileDriver(
            self.session,
            TemplateSynthesizer(self.config),
            self._make_compiler_cache(),
            backend or make_backend(self.config),
            self.config,
            import_callback=self._make_import_resolver(),
            on_warning=on_warning,
        )
        self.backend.start()

    @property
    def backend(self) -> BlockchainBackend:
        return self.driver.backend

    @property
    def compilers(self) -> CompilerCache:
        return self.driver.compilers

    def _make_compiler_cache(self) -> CompilerCache:
        return CompilerCache(self.registry, self.config.installed_solidity_version)

    def _make_import_resolver(self) -> FileImportResolver:
        return FileImportResolver(
            self.config.base_path,
            self.config.include_paths,
            allow_http=self.config.allow_http_imports,
        )

    def run(self, fragment: str | Statement) -> Any:
        """
        Evaluate a fragment (or an already classified statement).
        On error the session is left as it was.
        """
        stmt = fragment if isinstance(fragment, Statement) else classify(fragment)
        return self.driver.run(stmt)

    def template(self) -> str:
        """The contract the current session compiles to."""
        return self.driver.synthesizer.render(self.session)

    @property
    def last_warnings(self) -> list[Diagnostic]:
        return self.driver.last_warnings

    def undo(self) -> Optional[Statement]:
        return self.session.undo()

    def reset(self) -> None:
        self.session.reset()

    def dump_session(self) -> str:
        return self.session.dumps()

    def load_session(self, record: str) -> None:
        """
        Replace the session with a saved one. Statements are not compiled
        until the next `run`.
        """
        self.session.loads(record)

    def set_setting(self, key: str, value: Any) -> None:
        self.config.set(key, value)
        self._apply_setting(key)

    def unset_setting(self, key: str) -> None:
        self.config.unset(key)
        self._apply_setting(key)

    def _apply_setting(self, key: str) -> None:
        if key in COMPILER_SETTINGS:
            self.registry.cache_dir = self.config.cache_dir
            self.driver.compilers = self._make_compiler_cache()
        elif key in IMPORT_SETTINGS:
            self.driver.import_callback = self._make_import_resolver()
        elif key in ("deploy_gas", "call_gas"):
            setattr(self.backend, key, getattr(self.config, key))
        elif key in BACKEND_SETTINGS:
            logger.info("`%s` takes effect with the next `init_blockchain()`", key)

    def init_blockchain(self, backend: Optional[BlockchainBackend] = None) -> None:
        """
        Stop the current backend and start a new one, either the given one
        or one made from the current settings. Deployments are lost, the
        session is kept.
        """
        self.backend.stop()
        self.driver.backend = backend or make_backend(self.config)
        self.backend.start()

    def rpc_call(self, method: str, params: Optional[list] = None) -> Any:
        return self.backend.rpc_call(method, params)

    def get_deployed(self) -> Optional[DeployedContract]:
        """The last deployed template contract (abi, bytecode, storage layout)."""
        return self.backend.get_deployed()

    def close(self) -> None:
        self.backend.stop()

    def __enter__(self):
        return self

    def __exit__(self, *args):
        self.close()

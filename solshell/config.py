from dataclasses import asdict, dataclass, field, fields
from typing import Any, Optional

from solshell.exceptions import ConfigError

# compiler warnings which are expected from the synthesized template
IGNORE_WARNINGS = [
    "Statement has no effect.",
    "Function state mutability can be restricted to ",
    "Unused local variable.",
]

DEFAULT_SOLIDITY_VERSION = "0.8.26"


@dataclass
class ShellConfig:
    # names used in the synthesized contract
    template_contract_name: str = "MainContract"
    template_func_main: str = "main"

    # the compiler used (and emitted as pragma) when the session has no
    # `pragma solidity` statement. None means a pragma is required.
    installed_solidity_version: Optional[str] = DEFAULT_SOLIDITY_VERSION
    # forwarded to solc as `settings.evmVersion`
    evm_version: Optional[str] = None

    # "internal" (in-process py-evm), an http(s) url, or a shell command
    # which starts a node listening on `provider_url`.
    blockchain_provider: str = "internal"
    provider_url: str = "http://localhost:8545"
    # spawn the node command if nothing is listening on `provider_url`
    autostart: bool = True
    node_args: list[str] = field(default_factory=list)

    deploy_gas: int = 30_000_000
    call_gas: int = 30_000_000

    # import resolution
    base_path: str = ""
    include_paths: list[str] = field(default_factory=list)
    # WARNING: fetches `https://` imports with a blocking request
    allow_http_imports: bool = False

    ignore_warnings: list[str] = field(default_factory=lambda: list(IGNORE_WARNINGS))

    # on-disk cache for compiler output, None to disable
    cache_dir: Optional[str] = "~/.cache/solshell"

    # log every rendered template at INFO instead of DEBUG
    debug_show_contract: bool = False

    @classmethod
    def field_names(cls) -> list[str]:
        return [f.name for f in fields(cls)]

    @classmethod
    def from_dict(cls, settings: Optional[dict[str, Any]] = None) -> "ShellConfig":
        settings = settings or {}
        _check_keys(settings)
        return cls(**settings)

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    def set(self, key: str, value: Any) -> None:
        _check_keys({key: value})
        setattr(self, key, value)

    def unset(self, key: str) -> None:
        """Restore the default value of `key`."""
        _check_keys({key: None})
        setattr(self, key, getattr(ShellConfig(), key))


def _check_keys(settings: dict[str, Any]) -> None:
    unknown = sorted(set(settings) - set(ShellConfig.field_names()))
    if unknown:
        raise ConfigError(f"Unknown settings: {', '.join(unknown)}")

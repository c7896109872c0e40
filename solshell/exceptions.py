from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Optional

if TYPE_CHECKING:
    from solshell.compiler.output import Diagnostic


class SolShellError(Exception):
    pass


class ConfigError(SolShellError, ValueError):
    pass


class NoCompilerVersion(SolShellError):
    def __init__(self):
        super().__init__(
            "no `pragma solidity` in the session and no default compiler version configured"
        )


class UnresolvedVersion(SolShellError):
    def __init__(self, version_spec: str):
        super().__init__(f"No compiler found for version {version_spec}")
        self.version_spec = version_spec


@dataclass
class CompileError(SolShellError):
    diagnostics: list["Diagnostic"]

    def __str__(self):
        return "\n".join(d.formatted_message or d.message for d in self.diagnostics)


# a diagnostic the driver cannot interpret. it is surfaced instead of
# guessing a return type.
class InternalInconsistency(CompileError):
    pass


@dataclass
class DeployError(SolShellError):
    message: str
    contract_name: Optional[str] = None
    reason: Optional[str] = None
    details: dict[str, Any] = field(default_factory=dict)

    def __str__(self):
        ret = self.message
        if self.contract_name is not None:
            ret = f"{self.contract_name}: {ret}"
        if self.reason is not None:
            ret += f" (reason: {self.reason})"
        return ret


class CompilerWarning(UserWarning):
    pass

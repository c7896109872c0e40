"""
Typed views of solc's standard-JSON output.

Compilation returns a tagged result, `CompileOk | CompileFailed`, so that
callers branch on the diagnostics instead of catching exceptions. Only
infrastructure failures (no compiler binary, unparseable output) raise.
"""
from dataclasses import dataclass, field, replace
from typing import Any, Iterable, Optional

WARNING = "warning"
ERROR = "error"
INFO = "info"


@dataclass(frozen=True)
class Diagnostic:
    severity: str  # "error" | "warning" | "info"
    category: str  # solc's `type`, e.g. "TypeError", "ParserError", "Warning"
    message: str
    formatted_message: str = ""

    @classmethod
    def from_solc(cls, err: dict) -> "Diagnostic":
        return cls(
            severity=err.get("severity", ERROR),
            category=err.get("type", ""),
            message=err.get("message", ""),
            formatted_message=err.get("formattedMessage", ""),
        )

    @property
    def is_error(self) -> bool:
        return self.severity == ERROR

    def __str__(self):
        return self.formatted_message or f"{self.category}: {self.message}"


@dataclass(frozen=True)
class CompiledContract:
    name: str
    abi: list[dict]
    bytecode: str  # hex, may contain unlinked library placeholders
    opcodes: str = ""
    storage_layout: Optional[dict] = None
    # the function to call after deployment (set on the template contract)
    entry_function: Optional[str] = None

    @classmethod
    def from_solc(cls, name: str, output: dict) -> "CompiledContract":
        bytecode = output.get("evm", {}).get("bytecode", {})
        return cls(
            name=name,
            abi=output.get("abi", []),
            bytecode=bytecode.get("object", ""),
            opcodes=bytecode.get("opcodes", ""),
            storage_layout=output.get("storageLayout"),
        )

    @property
    def is_deployable(self) -> bool:
        # interfaces and abstract contracts have no bytecode
        return len(self.bytecode) > 0

    def with_entry(self, function_name: str) -> "CompiledContract":
        return replace(self, entry_function=function_name)


@dataclass
class CompileOk:
    contracts: dict[str, CompiledContract]
    warnings: list[Diagnostic] = field(default_factory=list)
    raw_output: dict[str, Any] = field(default_factory=dict, repr=False)


@dataclass
class CompileFailed:
    diagnostics: list[Diagnostic]

    @property
    def errors(self) -> list[Diagnostic]:
        return [d for d in self.diagnostics if d.is_error]


CompileResult = CompileOk | CompileFailed


def parse_output(output: dict[str, Any], source_units: Iterable[str]) -> CompileResult:
    """
    :param output: solc's standard-JSON output
    :param source_units: the units whose contracts are returned (contracts
        from imported units are left out)
    """
    diagnostics = [Diagnostic.from_solc(e) for e in output.get("errors", [])]
    if any(d.is_error for d in diagnostics):
        return CompileFailed(diagnostics)

    all_contracts = output.get("contracts", {})
    contracts = {
        name: CompiledContract.from_solc(name, data)
        for unit in source_units
        for name, data in all_contracts.get(unit, {}).items()
    }
    warnings = [d for d in diagnostics if d.severity == WARNING]
    return CompileOk(contracts, warnings, output)

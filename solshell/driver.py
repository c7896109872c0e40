"""
The compile/deploy cycle behind every shell input.

Solidity needs the declared return type of the entry function before it
will compile, but the shell only knows the tail *expression*. So the
statement is first compiled against a placeholder type; solc then reports
the real type of the expression in a `TypeError`, which is parsed and
written back to the statement before compiling a second (and last) time:

    append -> compile -> [infer return type -> compile] -> deploy

Any failure along the way removes the statement from the session again, so
the session always renders to a program which compiled and deployed.
"""

import logging
import re
import warnings
from typing import Any, Callable, Optional

from solshell.backends.base import BlockchainBackend
from solshell.compiler.cache import CompilerCache
from solshell.compiler.imports import ImportCallback
from solshell.compiler.output import CompileFailed, CompileOk, CompileResult, Diagnostic
from solshell.config import ShellConfig
from solshell.exceptions import (
    CompileError,
    CompilerWarning,
    InternalInconsistency,
    NoCompilerVersion,
)
from solshell.session import Session
from solshell.statement import Statement
from solshell.template import TemplateSynthesizer, governing_version_pragma
from solshell.util.version import detect_version

logger = logging.getLogger(__name__)

OUTPUT_SELECTION = {
    "*": {"*": ["abi", "evm.bytecode.object", "evm.bytecode.opcodes", "storageLayout"]}
}

RETURN_TYPE_RE = re.compile(
    r"Return argument type (.*) is not implicitly convertible to expected type"
)
RETURN_COUNT_RE = re.compile(
    r"different number of arguments in return statement", re.IGNORECASE
)
_CALLED_FUNCTION_RE = re.compile(r"([A-Za-z_$][\w$]*)\s*\(")

# solc's type strings carry a kind prefix and a location the
# declaration does not accept
_KIND_PREFIX_RE = re.compile(r"^(?:contract|struct|enum) ")
_STORAGE_LOCATION_RE = re.compile(r" storage (?:ref|pointer)$")


def normalize_return_type(type_name: str) -> str:
    """
    Turn the type of an expression, as solc prints it, into something which
    can be declared in a `returns (...)` clause.

    >>> normalize_return_type("int_const 3")
    'uint'
    >>> normalize_return_type("contract Foo")
    'Foo'
    """
    type_name = type_name.strip()

    if type_name.startswith("int_const -"):
        return "int"
    if type_name.startswith("int_const "):
        return "uint"
    if type_name.startswith("literal_string "):
        return "string memory"

    type_name = _KIND_PREFIX_RE.sub("", type_name)
    return _STORAGE_LOCATION_RE.sub(" memory", type_name)


def lookup_declared_returns(raw_text: str, source: str) -> Optional[str]:
    """
    Best effort: find the function called in `raw_text` and return its
    `returns (...)` list from `source`, verbatim, or an empty string if it
    is declared without one. None if no declaration is found.
    Overloads, nested calls and functions declared outside of `source`
    are not handled.
    """
    m = _CALLED_FUNCTION_RE.search(raw_text)
    if m is None:
        return None
    name = re.escape(m.group(1))
    decl = re.search(rf"function\s+{name}\s*\([^)]*\)([^{{;]*)", source)
    if decl is None:
        return None
    returns = re.search(r"\breturns\s*\(([^)]*)\)", decl.group(1))
    if returns is None:
        return ""
    return returns.group(1).strip()


def _warn(diagnostic: Diagnostic) -> None:
    warnings.warn(str(diagnostic), CompilerWarning, stacklevel=3)


class TypeInferenceCompileDriver:
    """
    Runs one statement at a time through compile and deploy. The session
    is owned by the driver for the duration of `run`; calls must not
    overlap.
    """

    def __init__(
        self,
        session: Session,
        synthesizer: TemplateSynthesizer,
        compilers: CompilerCache,
        backend: BlockchainBackend,
        config: ShellConfig,
        import_callback: Optional[ImportCallback] = None,
        on_warning: Optional[Callable[[Diagnostic], None]] = None,
    ):
        self.session = session
        self.synthesizer = synthesizer
        self.compilers = compilers
        self.backend = backend
        self.config = config
        self.import_callback = import_callback
        self.on_warning = on_warning or _warn

        self.last_source: Optional[str] = None
        self.last_warnings: list[Diagnostic] = []

    @property
    def source_unit_name(self) -> str:
        return f"{self.config.template_contract_name}.sol"

    def run(self, stmt: Statement) -> Any:
        """
        Append `stmt` to the session, compile and deploy the session.
        :return: the return value of the entry function (None for
            statements without a value).
        :raises: `CompileError`, `DeployError`, `NoCompilerVersion`,
            `UnresolvedVersion` or any error of the compiler itself. The
            session is unchanged in that case.
        """
        self.session.append(stmt)
        try:
            return self._run(stmt)
        except BaseException:
            popped = self.session.undo()
            if popped is not stmt:
                raise RuntimeError(f"session changed during run: {popped!r} != {stmt!r}")
            raise

    def _run(self, stmt: Statement) -> Any:
        source = self.render()
        match self.compile(source):
            case CompileOk() as result:
                return self.deploy(result)
            case CompileFailed(diagnostics=diagnostics):
                return_type = self.infer_return_type(stmt, diagnostics, source)

        logger.debug("inferred return type %r for %r", return_type, stmt.raw_text)
        stmt.set_return_type(return_type)

        # one correction pass, the second result is final
        match self.compile(self.render()):
            case CompileOk() as result:
                return self.deploy(result)
            case CompileFailed(diagnostics=diagnostics):
                raise CompileError(diagnostics)

    def render(self) -> str:
        source = self.synthesizer.render(self.session)
        log_level = logging.INFO if self.config.debug_show_contract else logging.DEBUG
        logger.log(log_level, "synthesized contract:\n%s", source)
        self.last_source = source
        return source

    def version_spec(self) -> str:
        stmt = governing_version_pragma(self.session)
        if stmt is not None:
            version_spec = detect_version(stmt.raw_text)
            if version_spec is not None:
                return version_spec
        if self.config.installed_solidity_version is None:
            raise NoCompilerVersion()
        return self.config.installed_solidity_version

    def compile(self, source: str) -> CompileResult:
        compiler = self.compilers.resolve(self.version_spec())
        sources = {self.source_unit_name: {"content": source}}
        return compiler.compile(
            sources,
            OUTPUT_SELECTION,
            import_callback=self.import_callback,
            evm_version=self.config.evm_version,
        )

    def infer_return_type(
        self, stmt: Statement, diagnostics: list[Diagnostic], source: str
    ) -> str:
        """
        Read the type of the tail expression from the diagnostics of a
        failed compile, or raise the diagnostics.
        """
        type_errors = [d for d in diagnostics if d.category == "TypeError"]
        if stmt.has_no_return_value or stmt.return_type_inferred or not type_errors:
            raise CompileError(diagnostics)

        message = type_errors[-1].message

        if (m := RETURN_TYPE_RE.search(message)) is not None:
            return normalize_return_type(m.group(1))

        if RETURN_COUNT_RE.search(message) is not None:
            declared = lookup_declared_returns(stmt.raw_text, source)
            if declared is None:
                logger.debug("no declaration found for %r", stmt.raw_text)
                raise CompileError(diagnostics)
            # empty for functions without return values
            return declared

        logger.error("cannot resolve the type of %r from: %s", stmt.raw_text, message)
        raise InternalInconsistency(diagnostics)

    def report_warnings(self, diagnostics: list[Diagnostic]) -> None:
        ignored = self.config.ignore_warnings
        self.last_warnings = [
            d for d in diagnostics if not any(s in d.message for s in ignored)
        ]
        for d in self.last_warnings:
            self.on_warning(d)

    def deploy(self, result: CompileOk) -> Any:
        self.report_warnings(result.warnings)

        contracts = dict(result.contracts)
        name = self.config.template_contract_name
        contracts[name] = contracts[name].with_entry(self.config.template_func_main)

        deployed = self.backend.deploy(contracts)
        for item in deployed.values():
            if item.error is not None:
                raise item.error
        return deployed[name].return_value

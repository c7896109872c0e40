__version__ = "0.1.0"

from solshell.backends import (
    BlockchainBackend,
    ExternalProcessBackend,
    ExternalUrlBackend,
    PyEVMBackend,
    make_backend,
)
from solshell.backends.pyevm import enable_pyevm_verbose_logging
from solshell.compiler import CompilerCache, CompilerRegistry, FileImportResolver
from solshell.config import ShellConfig
from solshell.driver import TypeInferenceCompileDriver
from solshell.exceptions import (
    CompileError,
    CompilerWarning,
    ConfigError,
    DeployError,
    InternalInconsistency,
    NoCompilerVersion,
    SolShellError,
    UnresolvedVersion,
)
from solshell.session import Session
from solshell.shell import InteractiveSolidityShell
from solshell.statement import Scope, Statement, classify
from solshell.template import TemplateSynthesizer

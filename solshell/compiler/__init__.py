from solshell.compiler.cache import CompilerCache
from solshell.compiler.imports import FileImportResolver
from solshell.compiler.output import (
    CompiledContract,
    CompileFailed,
    CompileOk,
    CompileResult,
    Diagnostic,
)
from solshell.compiler.registry import CompilerRegistry, SolcCompiler

__all__ = [
    "CompilerCache",
    "CompilerRegistry",
    "CompiledContract",
    "CompileFailed",
    "CompileOk",
    "CompileResult",
    "Diagnostic",
    "FileImportResolver",
    "SolcCompiler",
]

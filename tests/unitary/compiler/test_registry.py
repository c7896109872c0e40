from pathlib import Path

import pytest
import solcx
import solcx.install
from packaging.version import Version
from solcx.exceptions import SolcError

from solshell.compiler.output import CompileFailed, CompileOk
from solshell.compiler.registry import CompilerRegistry, SolcCompiler

INSTALLED = [Version("0.8.10")]
INSTALLABLE = [Version("0.8.26"), Version("0.8.20"), Version("0.8.10"), Version("0.7.6")]


@pytest.fixture
def fake_solcx(monkeypatch):
    calls = {"installable": 0, "installed": [], "compiled": []}

    def get_installable_solc_versions():
        calls["installable"] += 1
        return INSTALLABLE

    def install_solc(version, solcx_binary_path=None):
        calls["installed"].append(version)

    def get_executable(version, solcx_binary_path=None):
        return Path(f"/solcx/solc-v{version}")

    monkeypatch.setattr(solcx, "get_installed_solc_versions", lambda *args: INSTALLED)
    monkeypatch.setattr(solcx, "get_installable_solc_versions", get_installable_solc_versions)
    monkeypatch.setattr(solcx, "install_solc", install_solc)
    monkeypatch.setattr(solcx.install, "get_executable", get_executable)
    return calls


@pytest.mark.parametrize(
    "spec,expected",
    [
        ("0.8.10", "0.8.10"),
        ("0.8.26", "0.8.26"),
        ("=0.8.20", "0.8.20"),
        # installed builds are preferred for ranges
        (">=0.8.0 <0.9.0", "0.8.10"),
        (">=0.8.11", "0.8.26"),
        ("~0.8.11", "0.8.26"),
        ("<0.8.0", "0.7.6"),
    ],
)
def test_resolve_build_id(fake_solcx, spec, expected):
    assert CompilerRegistry().resolve_build_id(spec) == Version(expected)


@pytest.mark.parametrize("spec", ["0.8.99", ">=0.9.0", "0.8.1 || 0.8.2"])
def test_unresolvable(fake_solcx, spec):
    assert CompilerRegistry().resolve_build_id(spec) is None


def test_installable_versions_are_memoized(fake_solcx):
    registry = CompilerRegistry()
    registry.resolve_build_id("0.8.26")
    registry.resolve_build_id("0.8.20")
    assert fake_solcx["installable"] == 1


def test_load_compiler_installs_missing(fake_solcx):
    registry = CompilerRegistry(cache_dir="/tmp/cache")

    compiler = registry.load_compiler(Version("0.8.10"))
    assert fake_solcx["installed"] == []
    assert compiler.binary == Path("/solcx/solc-v0.8.10")
    assert compiler.cache_dir == "/tmp/cache"

    compiler = registry.load_compiler(Version("0.8.26"))
    assert fake_solcx["installed"] == [Version("0.8.26")]
    assert compiler.version == Version("0.8.26")
    assert repr(compiler) == "SolcCompiler(0.8.26)"


_OUTPUT = {
    "contracts": {
        "MainContract.sol": {
            "MainContract": {"abi": [], "evm": {"bytecode": {"object": "6080"}}}
        }
    },
    "sources": {},
}


@pytest.fixture
def compiled(monkeypatch):
    inputs = []

    def compile_standard(input_data, solc_binary=None):
        inputs.append(input_data)
        return _OUTPUT

    monkeypatch.setattr(solcx, "compile_standard", compile_standard)
    return inputs


def _compile(compiler, content="contract MainContract {}", **kwargs):
    return compiler.compile(
        {"MainContract.sol": {"content": content}},
        {"*": {"*": ["abi"]}},
        **kwargs,
    )


def test_compile(compiled):
    compiler = SolcCompiler(Version("0.8.26"), Path("solc"))
    result = _compile(compiler, evm_version="paris")

    assert isinstance(result, CompileOk)
    assert list(result.contracts) == ["MainContract"]

    (input_data,) = compiled
    assert input_data["language"] == "Solidity"
    assert input_data["settings"] == {
        "outputSelection": {"*": {"*": ["abi"]}},
        "evmVersion": "paris",
    }


def test_compile_resolves_imports(compiled):
    compiler = SolcCompiler(Version("0.8.26"), Path("solc"))
    lib = "library L {}"
    _compile(
        compiler,
        content='import "./L.sol";\ncontract MainContract {}',
        import_callback=lambda path: {"contents": lib},
    )
    (input_data,) = compiled
    assert input_data["sources"]["L.sol"] == {"content": lib}


def test_compile_errors_are_a_result(monkeypatch):
    errors = [
        {
            "severity": "error",
            "type": "TypeError",
            "message": "Return argument type uint256 is not implicitly convertible",
            "formattedMessage": "TypeError: ...",
        }
    ]

    def compile_standard(input_data, solc_binary=None):
        raise SolcError("compile failed", error_dict=errors)

    monkeypatch.setattr(solcx, "compile_standard", compile_standard)
    result = _compile(SolcCompiler(Version("0.8.26"), Path("solc")))

    assert isinstance(result, CompileFailed)
    (d,) = result.diagnostics
    assert d.category == "TypeError"
    assert d.message.startswith("Return argument type uint256")


def test_compiler_failure_is_raised(monkeypatch):
    def compile_standard(input_data, solc_binary=None):
        raise SolcError("solc crashed", return_code=-11)

    monkeypatch.setattr(solcx, "compile_standard", compile_standard)
    with pytest.raises(SolcError):
        _compile(SolcCompiler(Version("0.8.26"), Path("solc")))


def test_compile_output_is_cached_on_disk(compiled, tmp_path):
    compiler = SolcCompiler(Version("0.8.26"), Path("solc"), cache_dir=str(tmp_path))

    first = _compile(compiler)
    second = _compile(compiler)
    assert len(compiled) == 1
    assert first.contracts == second.contracts

    # a different compiler version misses the cache
    _compile(SolcCompiler(Version("0.8.20"), Path("solc"), cache_dir=str(tmp_path)))
    assert len(compiled) == 2

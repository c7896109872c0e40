from solshell.compiler.output import (
    CompiledContract,
    CompileFailed,
    CompileOk,
    Diagnostic,
    parse_output,
)

_ABI = [{"type": "function", "name": "main", "inputs": [], "outputs": []}]


def _output(errors=()):
    return {
        "errors": list(errors),
        "contracts": {
            "MainContract.sol": {
                "MainContract": {
                    "abi": _ABI,
                    "evm": {"bytecode": {"object": "6080", "opcodes": "PUSH1 0x80"}},
                    "storageLayout": {"storage": [], "types": None},
                },
                "I": {"abi": [], "evm": {"bytecode": {"object": ""}}},
            },
            "Lib.sol": {"Lib": {"abi": [], "evm": {"bytecode": {"object": "60"}}}},
        },
    }


def _solc_error(severity, typ, message):
    return {
        "severity": severity,
        "type": typ,
        "message": message,
        "formattedMessage": f"{typ}: {message}\n --> MainContract.sol:1:1:",
    }


def test_parse_ok():
    warning = _solc_error("warning", "Warning", "Unused local variable.")
    result = parse_output(_output([warning]), ["MainContract.sol"])

    assert isinstance(result, CompileOk)
    # contracts of imported units are left out
    assert set(result.contracts) == {"MainContract", "I"}
    main = result.contracts["MainContract"]
    assert main.abi == _ABI
    assert main.bytecode == "6080"
    assert main.opcodes == "PUSH1 0x80"
    assert main.storage_layout == {"storage": [], "types": None}
    assert main.is_deployable
    assert not result.contracts["I"].is_deployable

    (w,) = result.warnings
    assert w.category == "Warning"
    assert not w.is_error


def test_parse_failed():
    errors = [
        _solc_error("warning", "Warning", "Unused local variable."),
        _solc_error("error", "TypeError", "Return argument type uint256 is not ..."),
    ]
    result = parse_output(_output(errors), ["MainContract.sol"])

    assert isinstance(result, CompileFailed)
    assert len(result.diagnostics) == 2
    (err,) = result.errors
    assert err.category == "TypeError"
    assert str(err).startswith("TypeError: Return argument type uint256")


def test_diagnostic_defaults():
    d = Diagnostic.from_solc({"message": "boom"})
    assert d.is_error
    assert str(d) == ": boom"


def test_with_entry():
    contract = CompiledContract("MainContract", _ABI, "6080")
    marked = contract.with_entry("main")
    assert marked.entry_function == "main"
    assert contract.entry_function is None
    assert marked.bytecode == contract.bytecode

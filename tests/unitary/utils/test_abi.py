import pytest
from eth_abi import encode
from eth_abi.exceptions import DecodingError

from solshell.util.abi import (
    ERROR_SELECTOR,
    PANIC_SELECTOR,
    Address,
    abi_from_json,
    decode_outputs,
    decode_revert_reason,
    find_function,
    method_id,
)

ADDRESS = "0xd8da6bf26964af9d7eed9e03e53415d37aa96045"


def _fn(outputs, inputs=()):
    return {"type": "function", "name": "main", "inputs": list(inputs), "outputs": outputs}


def test_address():
    addr = Address(ADDRESS)
    assert addr == "0xd8dA6BF26964aF9D7eEd9e03E53415D37aA96045"
    assert addr.canonical_address == bytes.fromhex(ADDRESS[2:])
    assert Address(addr) is addr
    assert repr(addr).startswith("Address(")


def test_abi_from_json():
    point = {
        "type": "tuple[]",
        "components": [{"name": "x", "type": "uint256"}, {"name": "y", "type": "int8"}],
    }
    assert abi_from_json({"type": "uint256"}) == "uint256"
    assert abi_from_json(point) == "(uint256,int8)[]"


def test_method_id():
    fn = _fn([], inputs=[{"name": "to", "type": "address"}, {"name": "v", "type": "uint256"}])
    fn["name"] = "transfer"
    assert method_id(fn) == bytes.fromhex("a9059cbb")


def test_find_function():
    abi = [{"type": "event", "name": "main"}, _fn([])]
    assert find_function(abi, "main") is abi[1]
    assert find_function(abi, "other") is None


def test_decode_no_outputs():
    assert decode_outputs(_fn([]), b"") is None


def test_decode_single_output():
    fn = _fn([{"name": "", "type": "uint256"}])
    assert decode_outputs(fn, encode(["uint256"], [3])) == 3


def test_decode_multiple_outputs():
    fn = _fn([{"name": "", "type": "uint256"}, {"name": "", "type": "address"}])
    ret = decode_outputs(fn, encode(["uint256", "address"], [1, ADDRESS]))
    assert ret == (1, Address(ADDRESS))
    assert isinstance(ret[1], Address)


def test_decode_struct():
    point = {
        "name": "",
        "type": "tuple",
        "internalType": "struct MainContract.Point",
        "components": [{"name": "x", "type": "uint256"}, {"name": "y", "type": "uint256[]"}],
    }
    ret = decode_outputs(_fn([point]), encode(["(uint256,uint256[])"], [(1, [2, 3])]))
    assert type(ret).__name__ == "Point"
    assert ret.x == 1
    assert ret.y == [2, 3]


def test_decode_revert_reason():
    data = ERROR_SELECTOR + encode(["string"], ["not allowed"])
    assert decode_revert_reason(data) == "not allowed"

    data = PANIC_SELECTOR + encode(["uint256"], [0x11])
    assert decode_revert_reason(data) == "Panic(0x11)"

    assert decode_revert_reason(b"") is None
    assert decode_revert_reason(ERROR_SELECTOR + b"\x00") is None


@pytest.mark.parametrize("value", [b"\x01", b"\x00" * 32 + b"\x01"])
def test_decode_short_data(value):
    fn = _fn([{"name": "", "type": "uint256"}, {"name": "", "type": "uint256"}])
    with pytest.raises(DecodingError):
        decode_outputs(fn, value)

# helpers around eth_abi for calling the entry function and reading results
from collections import namedtuple
from typing import Annotated, Any, Optional

from eth_abi import decode
from eth_abi.exceptions import DecodingError
from eth_typing import Address as PYEVM_Address
from eth_utils import (
    function_signature_to_4byte_selector,
    to_canonical_address,
    to_checksum_address,
)

# Error(string) and Panic(uint256)
ERROR_SELECTOR = bytes.fromhex("08c379a0")
PANIC_SELECTOR = bytes.fromhex("4e487b71")


# inherit from `str` so that users can compare with regular hex string
# addresses
class Address(str):
    __slots__ = ("canonical_address",)

    canonical_address: Annotated[PYEVM_Address, "canonical address"]

    def __new__(cls, address):
        if isinstance(address, Address):
            return address

        self = super().__new__(cls, to_checksum_address(address))
        self.canonical_address = to_canonical_address(address)
        return self

    def __repr__(self):
        checksum_addr = super().__repr__()
        return f"Address({checksum_addr})"


def abi_from_json(abi: dict) -> str:
    """
    Parses an ABI type into its schema string.
    :param abi: The ABI type to parse.
    :return: The schema string for the given abi type.
    """
    if "components" in abi:
        components = ",".join([abi_from_json(item) for item in abi["components"]])
        if abi["type"].startswith("tuple"):
            return f"({components}){abi['type'][5:]}"
        raise ValueError("Components found in non-tuple type " + abi["type"])

    return abi["type"]


def find_function(abi: list[dict], name: str) -> Optional[dict]:
    for item in abi:
        if item.get("type") == "function" and item.get("name") == name:
            return item
    return None


def method_id(fn_abi: dict) -> bytes:
    signature = ",".join(abi_from_json(i) for i in fn_abi["inputs"])
    return function_signature_to_4byte_selector(f"{fn_abi['name']}({signature})")


def _to_python(abi: dict, value: Any) -> Any:
    typ = abi["type"]
    if typ.endswith("]"):
        # strip one array dimension
        inner = dict(abi, type=typ[: typ.rindex("[")])
        return [_to_python(inner, v) for v in value]
    if typ == "tuple":
        components = abi["components"]
        names = [item["name"] for item in components]
        typname = abi.get("internalType", "").split(".")[-1].removeprefix("struct ")
        cls = namedtuple(typname or "user_struct", names, rename=True)  # type: ignore[misc]
        return cls(*(_to_python(c, v) for c, v in zip(components, value)))
    if typ == "address":
        return Address(value)
    return value


def decode_outputs(fn_abi: dict, data: bytes) -> Any:
    """
    Decode the return data of a call. No outputs decode to None, a
    single output to its value, several outputs to a tuple.
    """
    outputs = fn_abi["outputs"]
    schema = [abi_from_json(o) for o in outputs]
    values = decode(schema, data)

    match tuple(_to_python(o, v) for o, v in zip(outputs, values)):
        case ():
            return None
        case (single,):
            return single
        case multiple:
            return multiple


def decode_revert_reason(data: bytes) -> Optional[str]:
    if data[:4] == ERROR_SELECTOR:
        try:
            (reason,) = decode(["string"], data[4:])
            return reason
        except DecodingError:
            return None
    if data[:4] == PANIC_SELECTOR:
        try:
            (code,) = decode(["uint256"], data[4:])
            return f"Panic({hex(code)})"
        except DecodingError:
            return None
    return None

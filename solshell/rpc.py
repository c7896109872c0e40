import time
from typing import Any, Optional
from urllib.parse import urlparse

import requests

try:
    import ujson as json
except ImportError:  # pragma: no cover
    import json  # type: ignore

TIMEOUT = 60  # default timeout for http requests in seconds


def to_hex(s: int | bytes | str) -> str:
    if isinstance(s, int):
        return hex(s)
    if isinstance(s, bytes):
        return "0x" + s.hex()
    if isinstance(s, str):
        assert s.startswith("0x")
        return s
    raise TypeError(
        f"to_hex expects bytes, int or (hex) string, but got {type(s)}: {s}"
    )


def to_int(hex_str: str) -> int:
    if hex_str == "0x":
        return 0
    return int(hex_str, 16)


def to_bytes(hex_str: str) -> bytes:
    return bytes.fromhex(hex_str.removeprefix("0x"))


class RPCError(Exception):
    def __init__(self, message: str, code: int, data: Optional[str] = None):
        super().__init__(f"{code}: {message}")
        self.code = code
        # revert data, for nodes which report it with eth_call errors
        self.data = data

    @classmethod
    def from_json(cls, data):
        revert_data = data.get("data")
        if isinstance(revert_data, dict):
            # ganache nests it, e.g. {"data": {"result": "0x..."}}
            revert_data = revert_data.get("result") or revert_data.get("data")
        if not isinstance(revert_data, str):
            revert_data = None
        return cls(message=data["message"], code=data["code"], data=revert_data)


class RPC:
    """
    Base class for RPC implementations.
    """

    @property
    def identifier(self) -> str:  # pragma: no cover
        raise NotImplementedError

    @property
    def name(self) -> str:  # pragma: no cover
        raise NotImplementedError

    def fetch(self, method: str, params: Any) -> Any:  # pragma: no cover
        raise NotImplementedError

    def wait_for_tx_receipt(self, tx_hash, timeout: float, poll_latency=0.25):
        start = time.time()

        while True:
            receipt = self.fetch("eth_getTransactionReceipt", [tx_hash])
            if receipt is not None:
                return receipt
            if time.time() + poll_latency > start + timeout:
                raise ValueError(f"Timed out waiting for ({tx_hash})")
            time.sleep(poll_latency)


class EthereumRPC(RPC):
    def __init__(self, url: str, timeout: float = TIMEOUT):
        self._rpc_url = url
        self._timeout = timeout
        self._session = requests.Session()
        self._request_id = 0

    @property
    def identifier(self):
        return self._rpc_url

    @property
    def name(self):
        # strip everything past the base url (api keys) so it can be logged
        parse_result = urlparse(self._rpc_url)
        return f"{parse_result.scheme}://{parse_result.netloc}"

    def fetch(self, method, params):
        self._request_id += 1
        req = {
            "jsonrpc": "2.0",
            "method": method,
            "params": params if params is not None else [],
            "id": self._request_id,
        }
        res = self._session.post(self._rpc_url, json=req, timeout=self._timeout)
        res.raise_for_status()
        res = json.loads(res.text)
        if "error" in res:
            raise RPCError.from_json(res["error"])
        return res["result"]

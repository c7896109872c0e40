# backends which talk to a node over JSON-RPC
import logging
import shlex
import signal
import subprocess
from typing import Any, Optional

import requests

from solshell.backends.base import BlockchainBackend
from solshell.exceptions import DeployError
from solshell.rpc import RPC, EthereumRPC, RPCError, to_bytes, to_hex, to_int
from solshell.util.abi import Address, decode_revert_reason
from solshell.util.retry import retry_fn

logger = logging.getLogger(__name__)

# errors which mean the node is not (yet) reachable
_UNREACHABLE = (requests.ConnectionError, requests.HTTPError, requests.Timeout)


class ExternalUrlBackend(BlockchainBackend):
    """
    Use a node which is already running, e.g. `anvil`, `ganache` or a
    remote endpoint. The node must manage (unlocked) accounts.
    """

    name = "url-provider"

    def __init__(self, url: str | RPC, *args, receipt_timeout: float = 60.0, **kwargs):
        super().__init__(*args, **kwargs)
        self._rpc = EthereumRPC(url) if isinstance(url, str) else url
        self.receipt_timeout = receipt_timeout

    @property
    def url(self) -> str:
        return self._rpc.identifier

    def start(self) -> None:
        pass

    def stop(self) -> None:
        pass

    def is_listening(self) -> bool:
        try:
            self._rpc.fetch("eth_accounts", [])
            return True
        except _UNREACHABLE:
            return False

    def rpc_call(self, method: str, params: Optional[list] = None) -> Any:
        return self._rpc.fetch(method, params or [])

    def get_accounts(self) -> list[Address]:
        try:
            accounts = self._rpc.fetch("eth_accounts", [])
        except _UNREACHABLE as e:
            raise DeployError(f"'{self.name}' not yet ready. Please try again. ({e})")
        return [Address(a) for a in accounts]

    def _deploy_code(self, sender: Address, bytecode: bytes, gas: int) -> Address:
        tx = {"from": sender, "data": to_hex(bytecode), "gas": to_hex(gas)}
        try:
            tx_hash = self._rpc.fetch("eth_sendTransaction", [tx])
            receipt = self._rpc.wait_for_tx_receipt(tx_hash, self.receipt_timeout)
        except RPCError as e:
            reason = decode_revert_reason(to_bytes(e.data)) if e.data else None
            raise DeployError(f"deployment failed: {e}", reason=reason)
        except ValueError as e:  # timeout waiting for the receipt
            raise DeployError(str(e))

        if to_int(receipt.get("status", "0x1")) == 0:
            raise DeployError("deployment reverted", details={"receipt": receipt})
        return Address(receipt["contractAddress"])

    def _call(self, sender: Address, to: Address, data: bytes, gas: int) -> bytes:
        tx = {"from": sender, "to": to, "data": to_hex(data), "gas": to_hex(gas)}
        try:
            return to_bytes(self._rpc.fetch("eth_call", [tx, "latest"]))
        except RPCError as e:
            reason = decode_revert_reason(to_bytes(e.data)) if e.data else None
            raise DeployError(f"call failed: {e}", reason=reason)


class ExternalProcessBackend(ExternalUrlBackend):
    """
    Spawn a node process (`ganache`, `anvil`, ...) listening on `url`,
    unless something already answers there.
    """

    name = "ext-proc"

    def __init__(
        self,
        cmd: str,
        url: str,
        *args,
        node_args: Optional[list[str]] = None,
        autostart: bool = True,
        startup_retries: int = 20,
        **kwargs,
    ):
        super().__init__(url, *args, **kwargs)
        self.cmd = cmd
        self.node_args = list(node_args or [])
        self.autostart = autostart
        self.startup_retries = startup_retries
        self.proc: Optional[subprocess.Popen] = None

    @property
    def argv(self) -> list[str]:
        return shlex.split(self.cmd) + self.node_args

    def start(self) -> None:
        if self.proc is not None or self.is_listening():
            return
        if not self.autostart:
            logger.warning("node autostart is disabled, nothing listens on %s", self.url)
            return

        logger.info("starting temp. node instance: %s", " ".join(self.argv))
        try:
            self.proc = subprocess.Popen(
                self.argv, stdout=subprocess.DEVNULL, stderr=subprocess.DEVNULL
            )
        except OSError as e:
            raise DeployError(
                f"Unable to launch blockchain service `{self.cmd}`: {e}. "
                "Verify that it is installed and available in your PATH."
            )
        self._wait_until_listening()

    def _wait_until_listening(self) -> None:
        def probe():
            if self.proc is not None and self.proc.poll() is not None:
                raise DeployError(f"`{self.cmd}` exited with code {self.proc.returncode}")
            self._rpc.fetch("eth_accounts", [])

        try:
            retry_fn(probe, exception=_UNREACHABLE, num_retries=self.startup_retries)
        except _UNREACHABLE as e:
            raise DeployError(f"'{self.name}' not yet ready. Please try again. ({e})")

    def stop(self) -> None:
        if self.proc is None:
            return
        logger.info("stopping temp. node instance (pid %s)", self.proc.pid)
        self.proc.send_signal(signal.SIGINT)
        try:
            self.proc.wait(timeout=10)
        except subprocess.TimeoutExpired:
            self.proc.kill()
            self.proc.wait()
        self.proc = None

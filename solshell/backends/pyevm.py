"""
In-process blockchain simulator on top of py-evm.
"""

import logging
import random
from typing import Any, Optional

import eth.constants as constants
import eth.tools.builder.chain as chain
from eth._utils.address import generate_contract_address
from eth.chains.mainnet import MainnetChain
from eth.db.atomic import AtomicDB
from eth.vm.message import Message
from eth.vm.transaction_context import BaseTransactionContext
from eth_utils import setup_DEBUG2_logging

from solshell.backends.base import BlockchainBackend
from solshell.exceptions import DeployError
from solshell.rpc import RPCError, to_hex, to_int
from solshell.util.abi import Address, decode_revert_reason

NUM_ACCOUNTS = 10
INITIAL_BALANCE = 1000 * 10**18

GENESIS_PARAMS = {"difficulty": constants.GENESIS_DIFFICULTY, "gas_limit": int(1e8)}


def enable_pyevm_verbose_logging():
    logging.basicConfig()
    logger = logging.getLogger("eth.vm.computation.BaseComputation")
    setup_DEBUG2_logging()
    logger.setLevel("DEBUG2")


def _make_chain():
    _Chain = chain.build(MainnetChain, chain.latest_mainnet_at(1))
    return _Chain.from_genesis(AtomicDB(), GENESIS_PARAMS)


def _error_reason(computation) -> Optional[str]:
    return decode_revert_reason(computation.output) or str(computation.error) or None


class PyEVMBackend(BlockchainBackend):
    name = "py-evm built-in"

    def __init__(self, *args, seed="solshell", **kwargs):
        super().__init__(*args, **kwargs)
        self._seed = seed
        self.vm = None
        self.accounts: list[Address] = []

    @property
    def is_running(self) -> bool:
        return self.vm is not None

    def start(self) -> None:
        if self.vm is not None:
            return
        self.vm = _make_chain().get_vm()

        # something reproducible
        rng = random.Random(self._seed)
        self.accounts = [Address(rng.randbytes(20)) for _ in range(NUM_ACCOUNTS)]
        for account in self.accounts:
            self.vm.state.set_balance(account.canonical_address, INITIAL_BALANCE)

    def stop(self) -> None:
        self.vm = None
        self.accounts = []
        self.deployed = {}

    def _state(self):
        if self.vm is None:
            raise DeployError(f"'{self.name}' blockchain is not started")
        return self.vm.state

    def get_accounts(self) -> list[Address]:
        self._state()
        return list(self.accounts)

    def _generate_create_address(self, sender: Address) -> Address:
        state = self._state()
        nonce = state.get_nonce(sender.canonical_address)
        state.increment_nonce(sender.canonical_address)
        return Address(generate_contract_address(sender.canonical_address, nonce))

    def _deploy_code(self, sender: Address, bytecode: bytes, gas: int) -> Address:
        state = self._state()
        target = self._generate_create_address(sender)
        msg = Message(
            to=constants.CREATE_CONTRACT_ADDRESS,  # i.e., b""
            sender=sender.canonical_address,
            gas=min(gas, state.gas_limit),
            value=0,
            code=bytecode,
            create_address=target.canonical_address,
            data=b"",
        )
        tx_ctx = BaseTransactionContext(origin=sender.canonical_address, gas_price=0)
        computation = state.computation_class.apply_create_message(state, msg, tx_ctx)
        if computation.is_error:
            raise DeployError("deployment reverted", reason=_error_reason(computation))
        return target

    def _call(self, sender: Address, to: Address, data: bytes, gas: int) -> bytes:
        state = self._state()
        msg = Message(
            sender=sender.canonical_address,
            to=to.canonical_address,
            gas=min(gas, state.gas_limit),
            value=0,
            code=state.get_code(to.canonical_address),
            data=data,
        )
        tx_ctx = BaseTransactionContext(origin=sender.canonical_address, gas_price=0)

        # like eth_call: the entry function does not change state
        snapshot_id = state.snapshot()
        try:
            computation = state.computation_class.apply_message(state, msg, tx_ctx)
        finally:
            state.revert(snapshot_id)

        if computation.is_error:
            raise DeployError("call reverted", reason=_error_reason(computation))
        return computation.output

    def rpc_call(self, method: str, params: Optional[list] = None) -> Any:
        params = params or []
        state = self._state()

        match method:
            case "eth_accounts":
                return list(self.accounts)
            case "eth_chainId":
                return to_hex(state.execution_context.chain_id)
            case "eth_blockNumber":
                return to_hex(state.block_number)
            case "eth_getBalance":
                return to_hex(state.get_balance(Address(params[0]).canonical_address))
            case "eth_getCode":
                return to_hex(state.get_code(Address(params[0]).canonical_address))
            case "eth_getTransactionCount":
                return to_hex(state.get_nonce(Address(params[0]).canonical_address))
            case "eth_getStorageAt":
                slot = to_int(params[1]) if isinstance(params[1], str) else params[1]
                value = state.get_storage(Address(params[0]).canonical_address, slot)
                return to_hex(value.to_bytes(32, "big"))
        raise RPCError(f"the method {method} does not exist/is not available", -32601)

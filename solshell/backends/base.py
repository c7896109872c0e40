from dataclasses import dataclass
from typing import Any, Optional

from eth_abi.exceptions import DecodingError

from solshell.compiler.output import CompiledContract
from solshell.exceptions import DeployError
from solshell.rpc import to_bytes
from solshell.util.abi import Address, decode_outputs, find_function, method_id


@dataclass
class DeployedContract:
    contract: CompiledContract
    address: Optional[Address] = None
    return_value: Any = None
    error: Optional[DeployError] = None

    @property
    def name(self) -> str:
        return self.contract.name

    @property
    def ok(self) -> bool:
        return self.error is None


class BlockchainBackend:
    """
    Where compiled contracts get deployed and the entry function is called.

    Subclasses implement the lifecycle (`start`/`stop`, both idempotent),
    `get_accounts`, `rpc_call` and the two primitives `_deploy_code` and
    `_call`; the deploy sequence itself is shared.
    """

    name = "<abstract>"

    def __init__(self, deploy_gas: int = 30_000_000, call_gas: int = 30_000_000):
        self.deploy_gas = deploy_gas
        self.call_gas = call_gas
        self.deployed: dict[str, DeployedContract] = {}
        self._entry_name: Optional[str] = None

    def start(self) -> None:  # pragma: no cover
        raise NotImplementedError

    def stop(self) -> None:  # pragma: no cover
        raise NotImplementedError

    def restart(self) -> None:
        self.stop()
        self.start()

    def get_accounts(self) -> list[Address]:  # pragma: no cover
        raise NotImplementedError

    def rpc_call(self, method: str, params: Optional[list] = None) -> Any:  # pragma: no cover
        raise NotImplementedError

    def _deploy_code(self, sender: Address, bytecode: bytes, gas: int) -> Address:  # pragma: no cover
        raise NotImplementedError

    def _call(self, sender: Address, to: Address, data: bytes, gas: int) -> bytes:  # pragma: no cover
        raise NotImplementedError

    def deploy(self, contracts: dict[str, CompiledContract]) -> dict[str, DeployedContract]:
        """
        Deploy every contract with bytecode from the first account, the
        entry contract last, then call its entry function.
        Failures are recorded per contract on the result.
        """
        accounts = self.get_accounts()
        if not accounts:
            raise DeployError("no accounts available on the blockchain backend")
        sender = accounts[0]

        ret = {}
        # sort is stable: other contracts keep their order, entry goes last
        for contract in sorted(contracts.values(), key=lambda c: c.entry_function is not None):
            if not contract.is_deployable:
                continue
            ret[contract.name] = self._deploy_one(sender, contract)

        self.deployed.update(ret)
        for result in ret.values():
            if result.contract.entry_function is not None:
                self._entry_name = result.name
        return ret

    def _deploy_one(self, sender: Address, contract: CompiledContract) -> DeployedContract:
        result = DeployedContract(contract)
        try:
            try:
                bytecode = to_bytes(contract.bytecode)
            except ValueError:
                raise DeployError("bytecode is not linked", contract.name)

            result.address = self._deploy_code(sender, bytecode, self.deploy_gas)

            if contract.entry_function is not None:
                fn_abi = find_function(contract.abi, contract.entry_function)
                if fn_abi is None:
                    raise DeployError(
                        f"no function `{contract.entry_function}`", contract.name
                    )
                output = self._call(sender, result.address, method_id(fn_abi), self.call_gas)
                try:
                    result.return_value = decode_outputs(fn_abi, output)
                except DecodingError as e:
                    raise DeployError(f"cannot decode return value: {e}", contract.name)
        except DeployError as e:
            if e.contract_name is None:
                e.contract_name = contract.name
            result.error = e
        return result

    def get_deployed(self) -> Optional[DeployedContract]:
        """The most recently deployed entry contract."""
        if self._entry_name is None:
            return None
        return self.deployed.get(self._entry_name)

from solshell.backends.base import BlockchainBackend, DeployedContract
from solshell.backends.network import ExternalProcessBackend, ExternalUrlBackend
from solshell.backends.pyevm import PyEVMBackend
from solshell.config import ShellConfig

INTERNAL_PROVIDER = "internal"


def make_backend(config: ShellConfig) -> BlockchainBackend:
    """
    Pick the backend for `config.blockchain_provider`: "internal" runs
    py-evm in-process, a url connects to a running node, anything else is
    a command which starts a node listening on `config.provider_url`.
    """
    provider = config.blockchain_provider
    gas = dict(deploy_gas=config.deploy_gas, call_gas=config.call_gas)

    if provider == INTERNAL_PROVIDER:
        return PyEVMBackend(**gas)
    if provider.startswith(("http://", "https://")):
        return ExternalUrlBackend(provider, **gas)
    return ExternalProcessBackend(
        provider,
        config.provider_url,
        node_args=config.node_args,
        autostart=config.autostart,
        **gas,
    )


__all__ = [
    "BlockchainBackend",
    "DeployedContract",
    "ExternalProcessBackend",
    "ExternalUrlBackend",
    "PyEVMBackend",
    "make_backend",
]

from solshell.backends import (
    ExternalProcessBackend,
    ExternalUrlBackend,
    PyEVMBackend,
    make_backend,
)
from solshell.config import ShellConfig


def test_internal():
    backend = make_backend(ShellConfig(deploy_gas=123, call_gas=456))
    assert isinstance(backend, PyEVMBackend)
    assert (backend.deploy_gas, backend.call_gas) == (123, 456)


def test_url():
    backend = make_backend(ShellConfig(blockchain_provider="https://rpc.example.com/v1/KEY"))
    assert type(backend) is ExternalUrlBackend
    assert backend.url == "https://rpc.example.com/v1/KEY"


def test_process():
    config = ShellConfig(
        blockchain_provider="ganache --quiet",
        provider_url="http://127.0.0.1:7545",
        node_args=["-p", "7545"],
        autostart=False,
    )
    backend = make_backend(config)
    assert isinstance(backend, ExternalProcessBackend)
    assert backend.argv == ["ganache", "--quiet", "-p", "7545"]
    assert backend.url == "http://127.0.0.1:7545"
    assert not backend.autostart
    assert backend.proc is None

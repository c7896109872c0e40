import pytest

from solshell.util.retry import retry_fn


def test_retry_until_success():
    attempts = []

    def flaky():
        attempts.append(1)
        if len(attempts) < 3:
            raise TimeoutError("not yet")
        return "ok"

    assert retry_fn(flaky, TimeoutError, backoff_ms=0) == "ok"
    assert len(attempts) == 3


def test_retry_gives_up():
    attempts = []

    def broken():
        attempts.append(1)
        raise ConnectionError("down")

    with pytest.raises(ConnectionError):
        retry_fn(broken, exception=ConnectionError, num_retries=4, backoff_ms=0)
    assert len(attempts) == 4


def test_other_exceptions_are_not_retried():
    attempts = []

    def broken():
        attempts.append(1)
        raise KeyError("x")

    with pytest.raises(KeyError):
        retry_fn(broken, exception=(ConnectionError, TimeoutError), backoff_ms=0)
    assert len(attempts) == 1


def test_exception_is_required():
    with pytest.raises(TypeError):
        retry_fn(lambda: None)

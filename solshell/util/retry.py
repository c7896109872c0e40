import time


def retry_fn(
    fn, exception, num_retries=10, backoff_ms=400, exponential_factor=1.1
):
    """
    Retry a function call until it stops raising `exception`.
    :param fn: The function to retry (no arguments, use a lambda otherwise).
    :param exception: The exception (or tuple of exceptions) to catch.
    :param num_retries: The number of attempts before giving up.
    :param backoff_ms: The initial backoff time in milliseconds.
    :param exponential_factor: The backoff growth factor per attempt.
    :return: The result of the function call.
    """
    for i in range(num_retries):
        try:
            return fn()
        except exception as e:
            if i + 1 == num_retries:
                raise e
            time.sleep(backoff_ms * (exponential_factor**i) / 1000)

import contextlib
import hashlib
import os
import pickle
import threading
import time
from pathlib import Path
from typing import Any, Callable, Optional

_ONE_WEEK = 7 * 24 * 3600


@contextlib.contextmanager
# silence errors which can be thrown when handling a file that does
# not exist (e.g. removed by a concurrent gc)
def _silence_io_errors():
    try:
        yield
    except OSError:
        pass


class DiskCache:
    """
    Content-addressed pickle store for compiler output. Entries which have
    not been read for `ttl` seconds are garbage collected.
    """

    def __init__(self, cache_dir, version_salt, ttl=_ONE_WEEK):
        self.cache_dir = Path(cache_dir).expanduser()
        self.version_salt = version_salt
        self.ttl = ttl

        self.last_gc = 0

    def gc(self, force=False):
        for root, dirs, files in os.walk(self.cache_dir):
            for f in files:
                with _silence_io_errors():
                    p = Path(root).joinpath(Path(f))
                    if time.time() - p.stat().st_atime > self.ttl or force:
                        p.unlink()

            # prune empty directories
            for d in dirs:
                with _silence_io_errors():
                    Path(root).joinpath(Path(d)).rmdir()

        self.last_gc = time.time()

    # content-addressable location
    def cal(self, string: str) -> Path:
        preimage = (self.version_salt + string).encode("utf-8")
        digest = hashlib.sha256(preimage).digest().hex()
        return self.cache_dir.joinpath(f"{self.version_salt}/{digest}.pickle")

    # look up `string`; on a miss, call `func` and write the result back.
    # nothing is written if `func` raises.
    def caching_lookup(self, string: str, func: Callable[[], Any]) -> Any:
        gc_interval = self.ttl // 10
        if time.time() - self.last_gc >= gc_interval:
            self.gc()

        p = self.cal(string)
        p.parent.mkdir(parents=True, exist_ok=True)
        try:
            with p.open("rb") as f:
                return pickle.loads(f.read())
        except OSError:
            pass

        res = func()
        # use process ID and thread ID to avoid race conditions
        job_id = f"{os.getpid()}.{threading.get_ident()}"
        tmp_p = p.with_suffix(f".{job_id}.unfinished")
        with tmp_p.open("wb") as f:
            f.write(pickle.dumps(res))
        # rename is atomic, worst case another process rebuilds the item
        tmp_p.rename(p)
        return res


_caches: dict[str, DiskCache] = {}


def get_disk_cache(cache_dir: Optional[str], version_salt: str) -> Optional[DiskCache]:
    """Share one DiskCache per directory (and salt) within the process."""
    if cache_dir is None:
        return None
    key = f"{cache_dir}:{version_salt}"
    if key not in _caches:
        _caches[key] = DiskCache(cache_dir, version_salt)
    return _caches[key]

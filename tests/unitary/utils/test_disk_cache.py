from shutil import rmtree

import pytest

from solshell.util.disk_cache import DiskCache, get_disk_cache

_dummy = {"contracts": {"MainContract.sol": {"MainContract": {"abi": []}}}}


def cache_miss():
    return _dummy


@pytest.fixture
def cache(tmp_path):
    cache_dir = tmp_path / "test_cache"
    cache_dir.mkdir()
    cache = DiskCache(str(cache_dir), "version_salt")
    yield cache
    rmtree(cache_dir)


def test_init(cache):
    assert cache.cache_dir.exists()
    assert cache.version_salt == "version_salt"
    assert cache.ttl == 7 * 24 * 3600  # default ttl
    assert cache.last_gc == 0


def test_collect_garbage(cache):
    assert cache.caching_lookup("key", cache_miss)
    cache.gc(force=True)
    assert cache.last_gc > 0
    assert not cache.cal("key").exists()


def test__get_location(cache):
    path = cache.cal("key")
    assert "version_salt" in str(path)
    assert ".pickle" in str(path)
    assert cache.cal("key") == path
    assert cache.cal("other key") != path


def test_contains(cache):
    first = cache.caching_lookup("key", cache_miss)
    assert first == _dummy
    second = cache.caching_lookup("key", cache_miss)
    assert second == _dummy
    assert first is not second, "should not be the same object given serialization"


def test_failed_lookup_is_not_stored(cache):
    def fail():
        raise ValueError("no")

    with pytest.raises(ValueError):
        cache.caching_lookup("key", fail)
    assert not cache.cal("key").exists()


def test_get_disk_cache(tmp_path):
    assert get_disk_cache(None, "salt") is None
    cache = get_disk_cache(str(tmp_path), "salt")
    assert get_disk_cache(str(tmp_path), "salt") is cache
    assert get_disk_cache(str(tmp_path), "other salt") is not cache

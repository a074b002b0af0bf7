"""Tests for the local container index and the shared secret index."""
import threading
from unittest import mock

import pytest
import redis

from barbican_cache.secrets.domains.container_index import LocalContainerIndex, container_key
from barbican_cache.secrets.domains.errors import CacheUnavailable
from barbican_cache.secrets.domains.secret_index import SharedSecretIndex


class TestLocalContainerIndex:

    def test_get_unknown_returns_none(self):
        index = LocalContainerIndex()
        assert index.get("billing") is None
        assert "billing" not in index

    def test_set_then_get(self):
        index = LocalContainerIndex()
        index.set("billing", "c-123")

        assert index.get("billing") == "c-123"
        assert "billing" in index
        assert len(index) == 1

    def test_default_capacity(self):
        assert LocalContainerIndex().capacity == 1000

    def test_rejects_non_positive_capacity(self):
        with pytest.raises(ValueError):
            LocalContainerIndex(capacity=0)

    def test_evicts_least_recently_used(self):
        index = LocalContainerIndex(capacity=2)
        index.set("a", "c-a")
        index.set("b", "c-b")
        index.get("a")  # "b" is now least recently used
        index.set("c", "c-c")

        assert index.get("a") == "c-a"
        assert index.get("b") is None
        assert index.get("c") == "c-c"
        assert len(index) == 2

    def test_overwrite_keeps_single_entry(self):
        index = LocalContainerIndex(capacity=2)
        index.set("a", "old")
        index.set("a", "new")

        assert index.get("a") == "new"
        assert len(index) == 1

    def test_concurrent_writers(self):
        index = LocalContainerIndex(capacity=50)

        def writer(offset):
            for i in range(200):
                index.set(f"container-{offset}-{i}", f"id-{i}")
                index.get(f"container-{offset}-{i // 2}")

        threads = [threading.Thread(target=writer, args=(n,)) for n in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert len(index) == 50


class TestSharedSecretIndex:

    def test_key_layout(self, kv):
        index = SharedSecretIndex(kv)
        index.hset("billing", "db-pass", "s-456")

        assert kv.hashes == {container_key("billing"): {"db-pass": "s-456"}}
        assert container_key("billing") == "container:billing"

    def test_hget_missing_field_returns_none(self, kv):
        index = SharedSecretIndex(kv)
        assert index.hget("billing", "db-pass") is None

    def test_hget_decodes_bytes(self):
        client = mock.MagicMock()
        client.hget.return_value = b"s-456"

        assert SharedSecretIndex(client).hget("billing", "db-pass") == "s-456"

    def test_hdel_removes_field(self, kv):
        index = SharedSecretIndex(kv)
        index.hset("billing", "db-pass", "s-456")
        index.hdel("billing", "db-pass")

        assert index.hget("billing", "db-pass") is None

    @pytest.mark.parametrize("operation, args", [
        ("hset", ("billing", "db-pass", "s-456")),
        ("hget", ("billing", "db-pass")),
        ("hdel", ("billing", "db-pass")),
        ("ping", ()),
    ])
    def test_redis_failure_raises_cache_unavailable(self, kv, operation, args):
        kv.fail = True
        index = SharedSecretIndex(kv)

        with pytest.raises(CacheUnavailable) as exc_info:
            getattr(index, operation)(*args)

        assert isinstance(exc_info.value.__cause__, redis.exceptions.RedisError)
        assert exc_info.value.status == 500

    def test_from_url_decodes_responses(self):
        with mock.patch("barbican_cache.secrets.domains.secret_index.redis.Redis.from_url") as from_url:
            SharedSecretIndex.from_url("redis://cache:6379/0")

        from_url.assert_called_once_with("redis://cache:6379/0", decode_responses=True)

# tests/test_registry.py
"""
Subscriber Registry Tests - JSON File and Redis Backends

Files that USE this module:
- pytest (test runner executes these tests)

Files that this module USES:
- marketpulse.adapters.persistence (FileSubscriberRegistry, RedisSubscriberRegistry, build_registry)
- unittest.mock (Mock Redis client, patched os.replace)
"""
import json
import threading
from datetime import timedelta
from types import SimpleNamespace
from unittest.mock import Mock, patch

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError

from marketpulse.adapters.persistence import (
    FileSubscriberRegistry,
    RedisSubscriberRegistry,
    build_registry,
)
from marketpulse.domain.errors import RegistryError, RegistryWriteError


class TestFileSubscriberRegistry:
    def test_empty_when_file_missing(self, tmp_path):
        registry = FileSubscriberRegistry(tmp_path / "data" / "subscribers.json")
        assert registry.all() == ()
        assert (tmp_path / "data").is_dir()

    def test_register_is_idempotent(self, tmp_path, t0):
        registry = FileSubscriberRegistry(tmp_path / "subscribers.json")
        registry.register(111, now=t0)
        registry.register(222, now=t0)
        registry.register(111, now=t0 + timedelta(days=1))

        recipients = registry.all()
        assert [r.id for r in recipients] == [111, 222]
        assert recipients[0].registered_at == t0 + timedelta(days=1)

    def test_persists_across_instances(self, tmp_path, t0):
        path = tmp_path / "subscribers.json"
        FileSubscriberRegistry(path).register(111, now=t0)
        FileSubscriberRegistry(path).register("@market_channel", now=t0)

        reloaded = FileSubscriberRegistry(path)
        assert [r.id for r in reloaded.all()] == [111, "@market_channel"]
        assert reloaded.all()[0].registered_at == t0

        data = json.loads(path.read_text(encoding="utf-8"))
        assert data["subscribers"][0] == {"id": 111, "registered_at": t0.isoformat()}

    def test_numeric_string_ids_are_the_same_recipient(self, tmp_path):
        registry = FileSubscriberRegistry(tmp_path / "subscribers.json")
        registry.register("111")
        registry.register(111)
        assert len(registry) == 1

    def test_invalid_id_rejected(self, tmp_path):
        registry = FileSubscriberRegistry(tmp_path / "subscribers.json")
        with pytest.raises(ValueError):
            registry.register("not an id")
        assert registry.all() == ()

    def test_write_failure_leaves_registry_unchanged(self, tmp_path, t0):
        path = tmp_path / "subscribers.json"
        registry = FileSubscriberRegistry(path)
        registry.register(111, now=t0)

        with patch("marketpulse.adapters.persistence.file_store.os.replace", side_effect=OSError("disk full")):
            with pytest.raises(RegistryWriteError, match="disk full"):
                registry.register(222, now=t0)

        assert [r.id for r in registry.all()] == [111]
        assert [r.id for r in FileSubscriberRegistry(path).all()] == [111]
        assert not list(tmp_path.glob("*.tmp"))

    def test_reads_legacy_line_format(self, tmp_path):
        path = tmp_path / "users.txt"
        path.write_text("111\n222\n\n111\n", encoding="utf-8")

        registry = FileSubscriberRegistry(path)
        assert [r.id for r in registry.all()] == [111, 222]

        registry.register(333)
        data = json.loads(path.read_text(encoding="utf-8"))
        assert [s["id"] for s in data["subscribers"]] == [111, 222, 333]

    def test_corrupt_file_is_backed_up(self, tmp_path):
        path = tmp_path / "subscribers.json"
        path.write_text("{not json", encoding="utf-8")

        registry = FileSubscriberRegistry(path)

        assert registry.all() == ()
        assert (tmp_path / "subscribers.json.corrupt").read_text(encoding="utf-8") == "{not json"

    def test_malformed_entries_are_skipped(self, tmp_path):
        path = tmp_path / "subscribers.json"
        path.write_text(
            json.dumps({"subscribers": [{"id": 111}, {"id": "bad id"}, {"nope": 1}]}),
            encoding="utf-8",
        )
        assert [r.id for r in FileSubscriberRegistry(path).all()] == [111]

    def test_snapshot_is_immutable(self, tmp_path):
        registry = FileSubscriberRegistry(tmp_path / "subscribers.json")
        registry.register(111)
        snapshot = registry.all()
        registry.register(222)
        assert len(snapshot) == 1

    def test_concurrent_register_keeps_one_entry_per_id(self, tmp_path):
        path = tmp_path / "subscribers.json"
        registry = FileSubscriberRegistry(path)
        ids = list(range(1000, 1050))
        errors = []

        def worker(offset):
            try:
                for i in range(20):
                    registry.register(ids[(offset * 7 + i) % len(ids)])
            except Exception as e:
                errors.append(e)

        threads = [threading.Thread(target=worker, args=(n,)) for n in range(16)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert errors == []
        expected = set(ids)
        assert {r.id for r in registry.all()} == expected
        reloaded = FileSubscriberRegistry(path).all()
        assert len(reloaded) == len(expected)
        assert {r.id for r in reloaded} == expected


class TestRedisSubscriberRegistry:
    def test_register_uses_hset(self, t0):
        client = Mock()
        client.hset.return_value = 1
        registry = RedisSubscriberRegistry(client, key="subs")

        recipient = registry.register(111, now=t0)

        client.hset.assert_called_once_with("subs", "111", t0.isoformat())
        assert recipient.id == 111

    def test_all_decodes_and_orders_by_registration(self, t0):
        client = Mock()
        client.hgetall.return_value = {
            b"222": (t0 + timedelta(hours=1)).isoformat().encode(),
            b"111": t0.isoformat().encode(),
            b"@market_channel": (t0 + timedelta(hours=2)).isoformat().encode(),
        }
        registry = RedisSubscriberRegistry(client, key="subs")

        recipients = registry.all()

        assert [r.id for r in recipients] == [111, 222, "@market_channel"]
        assert recipients[0].registered_at == t0

    def test_all_skips_malformed_fields(self, t0):
        client = Mock()
        client.hgetall.return_value = {b"111": b"yesterday", b"222": t0.isoformat().encode()}
        assert [r.id for r in RedisSubscriberRegistry(client).all()] == [222]

    def test_write_failure(self):
        client = Mock()
        client.hset.side_effect = RedisConnectionError("connection refused")
        with pytest.raises(RegistryWriteError):
            RedisSubscriberRegistry(client).register(111)

    def test_read_failure(self):
        client = Mock()
        client.hgetall.side_effect = RedisConnectionError("connection refused")
        with pytest.raises(RegistryError):
            RedisSubscriberRegistry(client).all()


class TestBuildRegistry:
    def test_file_backend(self, tmp_path):
        settings = SimpleNamespace(registry_backend="file", subscribers_file=tmp_path / "s.json")
        assert isinstance(build_registry(settings), FileSubscriberRegistry)

    def test_redis_backend(self):
        settings = SimpleNamespace(
            registry_backend="redis",
            redis_url="redis://localhost:6379/0",
            redis_key="subs",
            http_timeout_seconds=5,
        )
        with patch("marketpulse.adapters.persistence.redis_store.redis.Redis.from_url") as from_url:
            registry = build_registry(settings)
        assert isinstance(registry, RedisSubscriberRegistry)
        assert registry.key == "subs"
        from_url.assert_called_once()

#!/usr/bin/env python
"""Cache stores"""

import json
from unittest.mock import MagicMock

import pytest

from hotlist.config import Config
from hotlist.models import CacheEntry, RawItem
from hotlist.storage.cache import MemoryCacheStore
from hotlist.storage.supabase_client import SupabaseCacheStore

from tests.conftest import NOW, MINUTE, item


class TestCacheEntry:

    def test_freshness_is_elapsed_time_only(self):
        entry = CacheEntry(source_id="a", items=[], updated_at=NOW - MINUTE)
        assert entry.is_fresh(NOW, 2 * MINUTE)
        assert not entry.is_fresh(NOW, MINUTE)
        assert not entry.is_fresh(NOW, MINUTE // 2)


class TestMemoryCacheStore:

    def test_set_get_delete(self, cache, clock):
        assert cache.get("a") is None

        cache.set("a", [RawItem(**item(1))])
        entry = cache.get("a")
        assert entry.updated_at == clock.now
        assert [i.id for i in entry.items] == ["a1"]

        cache.delete("a")
        assert cache.get("a") is None
        cache.delete("a")


def fake_client(rows=None, error=None):
    client = MagicMock()
    query = client.table.return_value
    for method in ("select", "eq", "in_", "upsert", "delete"):
        getattr(query, method).return_value = query
    if error:
        query.execute.side_effect = error
    else:
        query.execute.return_value = MagicMock(data=rows or [])
    return client


class TestSupabaseCacheStore:

    def config(self):
        return Config(supabase_url="", supabase_key="", cache_table="cache")

    def test_requires_credentials_without_client(self):
        with pytest.raises(ValueError):
            SupabaseCacheStore(self.config())

    def test_get_decodes_row(self):
        row = {"id": "a", "updated": NOW, "data": json.dumps([item(1)])}
        store = SupabaseCacheStore(self.config(), client=fake_client([row]))

        entry = store.get("a")
        assert entry.source_id == "a"
        assert entry.updated_at == NOW
        assert entry.items[0].title == "a story 1"

    def test_get_missing(self):
        store = SupabaseCacheStore(self.config(), client=fake_client([]))
        assert store.get("a") is None

    def test_get_soft_fails(self):
        store = SupabaseCacheStore(self.config(), client=fake_client(error=ConnectionError("down")))
        assert store.get("a") is None

    def test_get_bad_json_soft_fails(self):
        store = SupabaseCacheStore(self.config(), client=fake_client([{"id": "a", "updated": NOW, "data": "{oops"}]))
        assert store.get("a") is None

    def test_get_entire_skips_bad_rows(self):
        rows = [
            {"id": "a", "updated": NOW, "data": json.dumps([item(1)])},
            {"id": "b", "updated": NOW, "data": "not json"},
        ]
        store = SupabaseCacheStore(self.config(), client=fake_client(rows))
        assert [e.source_id for e in store.get_entire(["a", "b"])] == ["a"]
        assert store.get_entire([]) == []

    def test_set_upserts_json(self):
        client = fake_client()
        store = SupabaseCacheStore(self.config(), client=client, clock=lambda: NOW)
        store.set("a", [RawItem(**item(1, published_at=NOW))])

        client.table.assert_called_with("cache")
        data = client.table.return_value.upsert.call_args.args[0]
        assert data["id"] == "a"
        assert data["updated"] == NOW
        assert json.loads(data["data"])[0]["published_at"] == NOW


class TestRawItemPublishTime:

    def test_blank_string_is_missing(self):
        assert RawItem(**item(1, published_at="")).published_at is None

    def test_non_finite_number_is_rejected_at_conversion(self):
        from hotlist.models import to_epoch_ms

        with pytest.raises(ValueError):
            to_epoch_ms(float("inf"))
        assert to_epoch_ms(1.5e12) == 1_500_000_000_000

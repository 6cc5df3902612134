#!/usr/bin/env python
"""Worker configuration and the per-source statistics view"""

from hotlist.config import Config
from hotlist.models import AggregationResult, TaggedItem, TimeWindow
from hotlist.stats import source_stats

from tests.conftest import NOW, build_catalog


class TestConfig:

    def test_env_values(self, monkeypatch):
        monkeypatch.setenv("DATA_SOURCES", "weibo, zhihu,,baidu")
        monkeypatch.setenv("DATA_TIME_RANGE_HOURS", "0.5")
        monkeypatch.setenv("DATA_MAX_ITEMS", "20")
        monkeypatch.setenv("DATA_PRIORITY_COLUMNS", "finance")
        monkeypatch.setenv("ENABLE_CACHE", "false")
        monkeypatch.setenv("FEED_ENDPOINTS", "weibo=https://feeds.example/weibo.json,broken,zhihu=https://feeds.example/z?a=1")

        config = Config()
        assert config.sources == ["weibo", "zhihu", "baidu"]
        assert config.enable_cache is False
        assert config.feed_endpoints == {
            "weibo": "https://feeds.example/weibo.json",
            "zhihu": "https://feeds.example/z?a=1",
        }

        agg = config.aggregation_config()
        assert agg.source_ids == ["weibo", "zhihu", "baidu"]
        assert agg.time_range_ms == 30 * 60 * 1000
        assert agg.max_items == 20
        assert agg.use_cache is False
        assert agg.category_filter == ["finance"]

    def test_empty_priority_columns_disable_filter(self, monkeypatch):
        monkeypatch.setenv("DATA_PRIORITY_COLUMNS", "")
        assert Config().aggregation_config().category_filter is None


class TestSourceStats:

    def result(self):
        def tagged(n, source, collected_at):
            return TaggedItem(id=str(n), title=str(n), url="u", source_id=source, collected_at=collected_at)

        return AggregationResult(
            items=[tagged(1, "a", NOW - 5), tagged(2, "b", NOW), tagged(3, "a", NOW - 1)],
            consulted_source_ids=["a", "b"],
            total_items=3,
            time_window=TimeWindow(start=NOW - 100, end=NOW),
        )

    def test_counts_and_latest(self):
        stats = source_stats(self.result())

        assert stats["a"].count == 2
        assert stats["a"].latest_collected_at == NOW - 1
        assert stats["b"].count == 1
        assert stats["a"].name == "a"

    def test_names_from_catalog(self):
        stats = source_stats(self.result(), build_catalog({"a": None}))
        assert stats["a"].name == "A"
        assert stats["b"].name == "b"

    def test_empty_result(self):
        empty = AggregationResult(time_window=TimeWindow(start=0, end=1))
        assert source_stats(empty) == {}

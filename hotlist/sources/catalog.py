from types import MappingProxyType
from typing import Callable, Dict, Iterable, List, Mapping, NamedTuple, Optional, Union

from hotlist.models import SourceDescriptor
from hotlist.sources.base import BaseSource, FunctionSource

MINUTE_MS = 60 * 1000

# Built-in high-value sources with their refresh cadence
DEFAULT_SOURCE_DESCRIPTORS: List[SourceDescriptor] = [
    # Finance, high update frequency
    SourceDescriptor(id="wallstreetcn-quick", name="华尔街见闻快讯", interval_ms=5 * MINUTE_MS, category="finance"),
    SourceDescriptor(id="cls-telegraph", name="财联社电报", interval_ms=5 * MINUTE_MS, category="finance"),
    SourceDescriptor(id="xueqiu-hotstock", name="雪球热门股票", interval_ms=2 * MINUTE_MS, category="finance"),
    # Tech
    SourceDescriptor(id="36kr-quick", name="36氪快讯", interval_ms=10 * MINUTE_MS, category="tech"),
    SourceDescriptor(id="ithome", name="IT之家", interval_ms=10 * MINUTE_MS, category="tech"),
    SourceDescriptor(id="juejin", name="稀土掘金", interval_ms=10 * MINUTE_MS, category="tech"),
    # General domestic
    SourceDescriptor(id="weibo", name="微博热搜", interval_ms=2 * MINUTE_MS, category="china"),
    SourceDescriptor(id="baidu", name="百度热搜", interval_ms=10 * MINUTE_MS, category="china"),
    SourceDescriptor(id="zhihu", name="知乎热榜", interval_ms=10 * MINUTE_MS, category="china"),
    SourceDescriptor(id="toutiao", name="今日头条", interval_ms=10 * MINUTE_MS, category="china"),
    SourceDescriptor(id="douyin", name="抖音热点", interval_ms=10 * MINUTE_MS, category="china"),
    SourceDescriptor(id="bilibili-hot-search", name="B站热搜", interval_ms=10 * MINUTE_MS, category="china"),
]

DEFAULT_HIGH_VALUE_SOURCES: List[str] = [
    "weibo",
    "baidu",
    "zhihu",
    "wallstreetcn-quick",
    "cls-telegraph",
    "xueqiu-hotstock",
    "36kr-quick",
    "ithome",
    "juejin",
    "toutiao",
    "douyin",
    "bilibili-hot-search",
]

Fetcher = Union[BaseSource, Callable]


class CatalogEntry(NamedTuple):
    descriptor: SourceDescriptor
    source: Optional[BaseSource]


class SourceCatalog:
    """Immutable table of source descriptors and their fetchers, keyed by source id"""

    def __init__(self, descriptors: Iterable[SourceDescriptor], fetchers: Optional[Mapping[str, Fetcher]] = None):
        fetchers = fetchers or {}
        entries: Dict[str, CatalogEntry] = {}
        for descriptor in descriptors:
            entries[descriptor.id] = CatalogEntry(descriptor, self._as_source(descriptor.id, fetchers.get(descriptor.id)))
        self._entries = MappingProxyType(entries)

    @staticmethod
    def _as_source(source_id: str, fetcher: Optional[Fetcher]) -> Optional[BaseSource]:
        if fetcher is None or isinstance(fetcher, BaseSource):
            return fetcher
        if callable(fetcher):
            return FunctionSource(source_id, fetcher)
        raise TypeError(f"Fetcher for {source_id} must be a BaseSource or callable, got {type(fetcher).__name__}")

    def __contains__(self, source_id: str) -> bool:
        return source_id in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def get(self, source_id: str) -> Optional[CatalogEntry]:
        return self._entries.get(source_id)

    def descriptor(self, source_id: str) -> Optional[SourceDescriptor]:
        entry = self._entries.get(source_id)
        return entry.descriptor if entry else None

    def fetcher(self, source_id: str) -> Optional[BaseSource]:
        entry = self._entries.get(source_id)
        return entry.source if entry else None

    def descriptors(self) -> List[SourceDescriptor]:
        return [entry.descriptor for entry in self._entries.values()]

    def filter_by_category(self, source_ids: Iterable[str], categories: Iterable[str]) -> List[str]:
        """Keep the ids whose descriptor category is in `categories`, in input order"""
        wanted = set(categories)
        return [
            source_id for source_id in source_ids
            if source_id in self._entries and self._entries[source_id].descriptor.category in wanted
        ]

    def with_fetchers(self, fetchers: Mapping[str, Fetcher]) -> "SourceCatalog":
        """Return a new catalog with the given fetchers replacing existing ones"""
        merged: Dict[str, Fetcher] = {
            source_id: entry.source for source_id, entry in self._entries.items() if entry.source is not None
        }
        merged.update(fetchers)
        return SourceCatalog(self.descriptors(), merged)


def default_catalog(fetchers: Optional[Mapping[str, Fetcher]] = None) -> SourceCatalog:
    return SourceCatalog(DEFAULT_SOURCE_DESCRIPTORS, fetchers)

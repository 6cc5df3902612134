import asyncio
from typing import Any, Callable, Dict, List, Mapping, Optional, Union
from loguru import logger

from hotlist.models import (
    AggregationConfig,
    AggregationResult,
    CacheEntry,
    FetchOutcome,
    RawItem,
    TaggedItem,
    TimeWindow,
    now_ms,
)
from hotlist.sources.catalog import SourceCatalog, DEFAULT_HIGH_VALUE_SOURCES, default_catalog
from hotlist.storage.cache import CacheStore

DEFAULT_FETCH_TIMEOUT = 15.0


def default_aggregation_config(**overrides: Any) -> AggregationConfig:
    """Defaults suited to opportunity analysis: last 2 hours, 100 items, finance/tech/china first"""
    params: Dict[str, Any] = {
        "source_ids": list(DEFAULT_HIGH_VALUE_SOURCES),
        "max_items": 100,
        "use_cache": True,
        "category_filter": ["finance", "tech", "china"],
    }
    params.update(overrides)
    if "time_range_ms" in params:
        return AggregationConfig(**params)
    return AggregationConfig.from_hours(params.pop("time_range_hours", 2), **params)


def effective_timestamp(item: TaggedItem) -> int:
    """Publish time when the item has one, otherwise the time it was collected"""
    return item.effective_timestamp


def filter_time_window(items: List[TaggedItem], window: TimeWindow) -> List[TaggedItem]:
    kept = []
    for item in items:
        try:
            ts = effective_timestamp(item)
        except (ValueError, OverflowError):
            logger.warning(f"Dropping item {item.id} from {item.source_id} with unparseable publish time {item.published_at!r}")
            continue
        if window.contains(ts):
            kept.append(item)
    return kept


def dedupe_items(items: List[TaggedItem]) -> List[TaggedItem]:
    """Keep the first occurrence of each literal title + url pair"""
    seen = set()
    unique = []
    for item in items:
        key = f"{item.title}-{item.url}"
        if key in seen:
            continue
        seen.add(key)
        unique.append(item)
    return unique


def sort_by_recency(items: List[TaggedItem]) -> List[TaggedItem]:
    # sorted() is stable, so equal timestamps keep their traversal order
    return sorted(items, key=effective_timestamp, reverse=True)


class Aggregator:
    """Fans out one fetch task per source and reduces the results into a single timeline"""

    def __init__(
        self,
        catalog: Optional[SourceCatalog] = None,
        cache: Optional[CacheStore] = None,
        fetch_timeout: Optional[float] = DEFAULT_FETCH_TIMEOUT,
        clock: Callable[[], int] = now_ms,
    ):
        self.catalog = catalog if catalog is not None else default_catalog()
        self.cache = cache
        self.fetch_timeout = fetch_timeout
        self.clock = clock

    async def aggregate(self, config: Union[AggregationConfig, Mapping[str, Any]]) -> AggregationResult:
        """
        Run one aggregation call

        Args:
            config: Aggregation parameters; a mapping is validated into an AggregationConfig

        Returns:
            AggregationResult: Items gathered within the time window plus per-source errors

        Raises:
            pydantic.ValidationError: If the config is invalid. Raised before any fetch starts.
        """
        if not isinstance(config, AggregationConfig):
            config = AggregationConfig.model_validate(config)

        now = self.clock()
        window = TimeWindow(start=now - config.time_range_ms, end=now)

        logger.info(f"Starting aggregation: {len(config.source_ids)} sources, {config.time_range_ms / 3600000:g}h range, up to {config.max_items} items")

        target_sources = self._resolve_targets(config)

        # Fan out, then join on every task
        outcomes: List[FetchOutcome] = await asyncio.gather(*[
            self._fetch_with_timeout(source_id, config.use_cache, now)
            for source_id in target_sources
        ])

        all_items: List[TaggedItem] = []
        errors: List[str] = []
        cache_hits = 0
        for outcome in outcomes:
            if outcome.error:
                errors.append(outcome.error)
            cache_hits += outcome.from_cache
            all_items.extend(outcome.items)

        logger.info(f"Collected {len(all_items)} raw items ({cache_hits} sources from cache, {len(outcomes) - cache_hits - len(errors)} live)")

        items = filter_time_window(all_items, window)
        logger.info(f"{len(items)} items inside the time window")

        items = dedupe_items(items)
        logger.info(f"{len(items)} items after dedupe")

        items = sort_by_recency(items)[:config.max_items]
        logger.info(f"Aggregation finished with {len(items)} items")
        if errors:
            logger.warning(f"{len(errors)} sources failed")

        return AggregationResult(
            items=items,
            consulted_source_ids=target_sources,
            total_items=len(items),
            time_window=window,
            errors=errors,
        )

    def aggregate_sync(self, config: Union[AggregationConfig, Mapping[str, Any]]) -> AggregationResult:
        """Blocking wrapper around aggregate() for callers outside an event loop"""
        return asyncio.run(self.aggregate(config))

    def _resolve_targets(self, config: AggregationConfig) -> List[str]:
        """Unique source ids in input order, narrowed by the category filter if any"""
        target_sources = list(dict.fromkeys(config.source_ids))
        if config.category_filter is not None:
            target_sources = self.catalog.filter_by_category(target_sources, config.category_filter)
            logger.info(f"{len(target_sources)} sources left after category filter {config.category_filter}")
        return target_sources

    async def _fetch_with_timeout(self, source_id: str, use_cache: bool, now: int) -> FetchOutcome:
        if self.fetch_timeout is None:
            return await self._fetch_from_source(source_id, use_cache, now)
        try:
            return await asyncio.wait_for(self._fetch_from_source(source_id, use_cache, now), timeout=self.fetch_timeout)
        except asyncio.TimeoutError:
            error = f"fetch timed out for {source_id} after {self.fetch_timeout:g}s"
            logger.error(error)
            return FetchOutcome(source_id=source_id, error=error)

    async def _fetch_from_source(self, source_id: str, use_cache: bool, now: int) -> FetchOutcome:
        """Fetch one source, preferring a fresh cache entry. Never raises."""
        entry = self.catalog.get(source_id)
        if entry is None:
            return self._unavailable(source_id, f"source {source_id} not found")
        if entry.source is None:
            return self._unavailable(source_id, f"source {source_id} has no fetch function")
        if entry.descriptor.disabled:
            return self._unavailable(source_id, f"source {source_id} is disabled")

        if use_cache:
            cached = await self._read_cache(source_id)
            if cached is not None and cached.is_fresh(now, entry.descriptor.interval_ms):
                logger.debug(f"Cache hit for {source_id}: {len(cached.items)} items")
                return FetchOutcome(source_id=source_id, items=self._tag(cached.items, source_id, now), from_cache=True)

        try:
            items = await entry.source.load()
        except Exception as e:
            error = f"fetch failed for {source_id}: {e}"
            logger.error(error)
            return FetchOutcome(source_id=source_id, error=error)

        logger.info(f"Fetched {len(items)} items live from {source_id}")
        return FetchOutcome(source_id=source_id, items=self._tag(items, source_id, now))

    async def _read_cache(self, source_id: str) -> Optional[CacheEntry]:
        if self.cache is None:
            return None
        try:
            return await asyncio.to_thread(self.cache.get, source_id)
        except Exception as e:
            logger.warning(f"Cache read failed for {source_id}, fetching live: {e}")
            return None

    @staticmethod
    def _unavailable(source_id: str, error: str) -> FetchOutcome:
        logger.warning(error)
        return FetchOutcome(source_id=source_id, error=error)

    @staticmethod
    def _tag(items: List[RawItem], source_id: str, collected_at: int) -> List[TaggedItem]:
        return [
            TaggedItem(**item.model_dump(), source_id=source_id, collected_at=collected_at)
            for item in items
        ]


def create_aggregator(
    catalog: Optional[SourceCatalog] = None,
    cache: Optional[CacheStore] = None,
    fetch_timeout: Optional[float] = DEFAULT_FETCH_TIMEOUT,
) -> Aggregator:
    return Aggregator(catalog=catalog, cache=cache, fetch_timeout=fetch_timeout)


async def get_business_analysis_data(
    time_range_hours: float = 2,
    catalog: Optional[SourceCatalog] = None,
    cache: Optional[CacheStore] = None,
) -> AggregationResult:
    """Quick pull of the default high-value sources for opportunity analysis"""
    aggregator = create_aggregator(catalog=catalog, cache=cache)
    return await aggregator.aggregate(default_aggregation_config(time_range_hours=time_range_hours, max_items=50))

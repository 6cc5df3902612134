import asyncio
from typing import Optional
from dotenv import load_dotenv
from loguru import logger

from hotlist.config import Config
from hotlist.aggregator import Aggregator
from hotlist.sources import CacheWriteThrough, JSONFeedSource, default_catalog
from hotlist.sources.catalog import SourceCatalog
from hotlist.stats import source_stats
from hotlist.storage.cache import CacheStore


def build_cache(config: Config) -> Optional[CacheStore]:
    if not config.enable_cache:
        logger.info("Cache disabled")
        return None
    from hotlist.storage.supabase_client import SupabaseCacheStore
    return SupabaseCacheStore(config)


def build_catalog(config: Config, cache: Optional[CacheStore]) -> SourceCatalog:
    catalog = default_catalog()
    fetchers = {}
    for source_id, url in config.feed_endpoints.items():
        if source_id not in catalog:
            logger.warning(f"Feed endpoint configured for unknown source: {source_id}")
            continue
        source = JSONFeedSource(source_id, url, timeout=config.fetch_timeout)
        fetchers[source_id] = CacheWriteThrough(source, cache) if cache is not None else source
    logger.info(f"Configured live fetchers for {len(fetchers)} sources")
    return catalog.with_fetchers(fetchers)


async def run_cycle(aggregator: Aggregator, config: Config) -> None:
    result = await aggregator.aggregate(config.aggregation_config())
    logger.info(f"Aggregated {result.total_items} items from {len(result.consulted_source_ids)} sources")
    for error in result.errors:
        logger.warning(f"Source error: {error}")
    for stat in source_stats(result, aggregator.catalog).values():
        logger.info(f"{stat.name} ({stat.source_id}): {stat.count} items")


def main():
    # Load environment variables
    load_dotenv()

    # Initialize configuration
    config = Config()
    logger.info(f"Starting worker {config.worker_id}")

    # Initialize aggregator
    cache = build_cache(config)
    aggregator = Aggregator(build_catalog(config, cache), cache=cache, fetch_timeout=config.fetch_timeout)

    # Main loop
    async def loop():
        while True:
            logger.info("Starting aggregation cycle")
            await run_cycle(aggregator, config)
            logger.info(f"Sleeping for {config.polling_interval} seconds")
            await asyncio.sleep(config.polling_interval)

    try:
        asyncio.run(loop())
    except KeyboardInterrupt:
        logger.info("Shutting down worker")
    except Exception as e:
        logger.exception(f"Unhandled exception: {e}")
        raise

if __name__ == "__main__":
    main()

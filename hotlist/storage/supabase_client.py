import json
from typing import Callable, List, Optional
from loguru import logger
from supabase import create_client, Client

from hotlist.config import Config
from hotlist.models import CacheEntry, RawItem, now_ms
from hotlist.storage.cache import CacheStore


class SupabaseCacheStore(CacheStore):
    """Cache store backed by a Supabase table of (id, updated, data) rows"""

    def __init__(self, config: Config, client: Optional[Client] = None, clock: Callable[[], int] = now_ms):
        self.config = config
        self.clock = clock

        if client is None:
            # Validate configuration
            if not config.supabase_url or not config.supabase_key:
                raise ValueError("Supabase URL and key are required")

            # Initialize Supabase client
            client = create_client(
                supabase_url=config.supabase_url,
                supabase_key=config.supabase_key,
            )
        self.client = client

        # Table name
        self.cache_table = config.cache_table

    def get(self, source_id: str) -> Optional[CacheEntry]:
        """
        Get the cached snapshot for a source

        Args:
            source_id (str): Source identifier

        Returns:
            Optional[CacheEntry]: Cached entry or None if not found or unreadable
        """
        try:
            response = self.client.table(self.cache_table) \
                .select("id, data, updated") \
                .eq("id", source_id) \
                .execute()

            if response.data and len(response.data) > 0:
                logger.debug(f"Got {source_id} cache")
                return self._to_entry(response.data[0])
            return None
        except Exception as e:
            logger.warning(f"Error reading cache for {source_id}: {e}")
            return None

    def get_entire(self, source_ids: List[str]) -> List[CacheEntry]:
        """
        Get the cached snapshots for several sources at once

        Rows that cannot be decoded are skipped.

        Args:
            source_ids (List[str]): Source identifiers

        Returns:
            List[CacheEntry]: Entries found, in no particular order
        """
        if not source_ids:
            return []
        try:
            response = self.client.table(self.cache_table) \
                .select("id, data, updated") \
                .in_("id", source_ids) \
                .execute()
        except Exception as e:
            logger.warning(f"Error reading cache for {len(source_ids)} sources: {e}")
            return []

        entries = []
        for row in response.data or []:
            try:
                entries.append(self._to_entry(row))
            except Exception as e:
                logger.warning(f"Skipping unreadable cache row {row.get('id')}: {e}")
        return entries

    def set(self, source_id: str, items: List[RawItem]) -> None:
        """
        Store a snapshot for a source, replacing any previous one

        Args:
            source_id (str): Source identifier
            items (List[RawItem]): Items to cache
        """
        data = {
            "id": source_id,
            "data": json.dumps([item.model_dump(mode="json") for item in items], ensure_ascii=False),
            "updated": self.clock(),
        }
        self.client.table(self.cache_table) \
            .upsert(data) \
            .execute()
        logger.debug(f"Set {source_id} cache ({len(items)} items)")

    def delete(self, source_id: str) -> None:
        self.client.table(self.cache_table) \
            .delete() \
            .eq("id", source_id) \
            .execute()
        logger.debug(f"Deleted {source_id} cache")

    @staticmethod
    def _to_entry(row: dict) -> CacheEntry:
        items = json.loads(row["data"]) if isinstance(row["data"], str) else row["data"]
        return CacheEntry(
            source_id=row["id"],
            items=[RawItem.model_validate(item) for item in items],
            updated_at=int(row["updated"]),
        )

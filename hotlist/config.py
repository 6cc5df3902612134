import os
from typing import List, Dict, Optional
from pydantic import BaseModel, Field

from hotlist.models import AggregationConfig


def _split_env(name: str, default: str = "") -> List[str]:
    raw = os.getenv(name, default)
    return [part.strip() for part in raw.split(",") if part.strip()] if raw else []


def _parse_endpoints(raw: str) -> Dict[str, str]:
    """Parse 'id=url,id=url' pairs"""
    endpoints: Dict[str, str] = {}
    for pair in raw.split(","):
        if "=" not in pair:
            continue
        source_id, url = pair.split("=", 1)
        if source_id.strip() and url.strip():
            endpoints[source_id.strip()] = url.strip()
    return endpoints


class Config(BaseModel):
    # Worker configuration
    worker_id: str = Field(default_factory=lambda: os.getenv("WORKER_ID", "worker1"))
    polling_interval: int = Field(default_factory=lambda: int(os.getenv("POLLING_INTERVAL", "300")))

    # Aggregation configuration
    sources: List[str] = Field(default_factory=lambda: _split_env("DATA_SOURCES", "weibo,baidu,zhihu,wallstreetcn-quick,cls-telegraph"))
    time_range_hours: float = Field(default_factory=lambda: float(os.getenv("DATA_TIME_RANGE_HOURS", "24")))
    max_items: int = Field(default_factory=lambda: int(os.getenv("DATA_MAX_ITEMS", "100")))
    priority_columns: List[str] = Field(default_factory=lambda: _split_env("DATA_PRIORITY_COLUMNS", "finance,tech,china"))
    fetch_timeout: float = Field(default_factory=lambda: float(os.getenv("FETCH_TIMEOUT", "15")))

    # Cache configuration
    enable_cache: bool = Field(default_factory=lambda: os.getenv("ENABLE_CACHE", "true").lower() != "false")
    supabase_url: str = Field(default_factory=lambda: os.getenv("SUPABASE_URL", ""))
    supabase_key: str = Field(default_factory=lambda: os.getenv("SUPABASE_KEY", ""))
    cache_table: str = Field(default_factory=lambda: os.getenv("CACHE_TABLE", "cache"))

    # Live feed endpoints, keyed by catalog source id
    feed_endpoints: Dict[str, str] = Field(default_factory=lambda: _parse_endpoints(os.getenv("FEED_ENDPOINTS", "")))

    def aggregation_config(self, category_filter: Optional[List[str]] = None) -> AggregationConfig:
        """Build the validated per-call aggregation config from the worker settings"""
        return AggregationConfig.from_hours(
            self.time_range_hours,
            source_ids=self.sources,
            max_items=self.max_items,
            use_cache=self.enable_cache,
            category_filter=category_filter if category_filter is not None else (self.priority_columns or None),
        )

import math
from datetime import datetime, timezone
from typing import Optional, List, Dict, Any, Union
from pydantic import BaseModel, ConfigDict, Field, field_validator

Timestamp = Union[int, float, str, datetime]

HOUR_MS = 60 * 60 * 1000


def now_ms() -> int:
    """Current wall-clock time in epoch milliseconds"""
    return int(datetime.now(timezone.utc).timestamp() * 1000)


def to_epoch_ms(value: Timestamp) -> int:
    """
    Convert a publish time to epoch milliseconds

    Accepts epoch millis, ISO-8601 strings (a trailing 'Z' is allowed) and datetimes.
    Naive datetimes are taken as UTC.

    Raises:
        ValueError: If the value cannot be interpreted as a timestamp
    """
    if isinstance(value, bool):
        raise ValueError(f"Invalid timestamp: {value!r}")
    if isinstance(value, (int, float)):
        if not math.isfinite(value):
            raise ValueError(f"Invalid timestamp: {value!r}")
        return int(value)
    if isinstance(value, str):
        value = datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
    if isinstance(value, datetime):
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        return int(value.timestamp() * 1000)
    raise ValueError(f"Invalid timestamp: {value!r}")


class SourceDescriptor(BaseModel):
    """Static metadata describing one hot-list source"""
    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    interval_ms: int = Field(gt=0)  # Refresh cadence, also the cache freshness threshold
    category: str  # 'tech', 'finance', 'china', 'world', ...
    disabled: bool = False


class RawItem(BaseModel):
    """Item as returned by a source's fetch function"""
    id: str
    title: str
    url: str
    published_at: Optional[Timestamp] = None
    extra: Dict[str, Any] = Field(default_factory=dict)  # Source-specific data

    @field_validator("id", mode="before")
    @classmethod
    def _coerce_id(cls, v):
        return str(v) if isinstance(v, int) else v

    @field_validator("published_at", mode="before")
    @classmethod
    def _blank_is_missing(cls, v):
        return None if isinstance(v, str) and not v.strip() else v


class TaggedItem(RawItem):
    """Raw item annotated with its originating source and collection time"""
    source_id: str
    collected_at: int

    @property
    def effective_timestamp(self) -> int:
        if self.published_at is None:
            return self.collected_at
        return to_epoch_ms(self.published_at)


class CacheEntry(BaseModel):
    """Snapshot of a source's items as last written by the fetch layer"""
    model_config = ConfigDict(frozen=True)

    source_id: str
    items: List[RawItem] = Field(default_factory=list)
    updated_at: int

    def is_fresh(self, now: int, interval_ms: int) -> bool:
        return now - self.updated_at < interval_ms


class AggregationConfig(BaseModel):
    """Caller-supplied parameters for a single aggregation call"""
    model_config = ConfigDict(frozen=True)

    source_ids: List[str] = Field(default_factory=list)
    time_range_ms: int = Field(gt=0)
    max_items: int = Field(gt=0)
    use_cache: bool = True
    category_filter: Optional[List[str]] = None

    @classmethod
    def from_hours(cls, time_range_hours: float, **kwargs) -> "AggregationConfig":
        return cls(time_range_ms=int(time_range_hours * HOUR_MS), **kwargs)


class TimeWindow(BaseModel):
    model_config = ConfigDict(frozen=True)

    start: int
    end: int

    def contains(self, ts: int) -> bool:
        return self.start <= ts <= self.end


class AggregationResult(BaseModel):
    """Outcome of one aggregation call"""
    model_config = ConfigDict(frozen=True)

    items: List[TaggedItem] = Field(default_factory=list)
    consulted_source_ids: List[str] = Field(default_factory=list)
    total_items: int = 0
    time_window: TimeWindow
    errors: List[str] = Field(default_factory=list)


class FetchOutcome(BaseModel):
    """Result of one per-source fetch task: either items or an error"""
    source_id: str
    items: List[TaggedItem] = Field(default_factory=list)
    error: Optional[str] = None
    from_cache: bool = False


class SourceStats(BaseModel):
    source_id: str
    name: str
    count: int = 0
    latest_collected_at: int = 0

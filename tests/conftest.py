"""Shared fixtures for hotlist tests."""

import pytest

from hotlist.models import SourceDescriptor
from hotlist.sources.catalog import SourceCatalog
from hotlist.storage.cache import MemoryCacheStore

NOW = 1_700_000_000_000
MINUTE = 60 * 1000


class FixedClock:
    def __init__(self, now: int = NOW):
        self.now = now

    def __call__(self) -> int:
        return self.now


def descriptor(source_id, category="tech", interval_ms=10 * MINUTE, disabled=False):
    return SourceDescriptor(id=source_id, name=source_id.upper(), interval_ms=interval_ms, category=category, disabled=disabled)


def item(n, source="a", published_at=None, title=None, url=None):
    data = {"id": f"{source}{n}", "title": title or f"{source} story {n}", "url": url or f"https://{source}.example/{n}"}
    if published_at is not None:
        data["published_at"] = published_at
    return data


def build_catalog(fetchers, categories=None, **descriptor_kwargs):
    categories = categories or {}
    descriptors = [descriptor(sid, category=categories.get(sid, "tech"), **descriptor_kwargs) for sid in fetchers]
    return SourceCatalog(descriptors, {sid: f for sid, f in fetchers.items() if f is not None})


@pytest.fixture
def clock():
    return FixedClock()


@pytest.fixture
def cache(clock):
    return MemoryCacheStore(clock=clock)

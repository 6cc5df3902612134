from hotlist.sources.base import BaseSource, FunctionSource, CacheWriteThrough
from hotlist.sources.catalog import (
    SourceCatalog,
    CatalogEntry,
    DEFAULT_SOURCE_DESCRIPTORS,
    DEFAULT_HIGH_VALUE_SOURCES,
    default_catalog,
)
from hotlist.sources.jsonfeed import JSONFeedSource

__all__ = [
    'BaseSource',
    'FunctionSource',
    'CacheWriteThrough',
    'SourceCatalog',
    'CatalogEntry',
    'DEFAULT_SOURCE_DESCRIPTORS',
    'DEFAULT_HIGH_VALUE_SOURCES',
    'default_catalog',
    'JSONFeedSource',
]

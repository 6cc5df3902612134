from hotlist.storage.cache import CacheStore, MemoryCacheStore

__all__ = [
    'CacheStore',
    'MemoryCacheStore',
]

import asyncio
import inspect
from abc import ABC, abstractmethod
from typing import Any, Callable, Iterable, List
from loguru import logger

from hotlist.models import RawItem


def coerce_items(items: Iterable[Any]) -> List[RawItem]:
    """Normalize whatever a fetch function returned into RawItems"""
    if items is None:
        return []
    return [item if isinstance(item, RawItem) else RawItem.model_validate(item) for item in items]


class BaseSource(ABC):
    """Base class for all hot-list sources"""

    def __init__(self, source_id: str):
        self.source_id = source_id

    @abstractmethod
    def fetch(self) -> List[RawItem]:
        """
        Fetch the current hot items from the source

        Returns:
            List[RawItem]: Items currently listed by the source
        """
        pass

    async def load(self) -> List[RawItem]:
        """Run fetch() without blocking the event loop"""
        if inspect.iscoroutinefunction(self.fetch):
            return coerce_items(await self.fetch())
        return coerce_items(await asyncio.to_thread(self.fetch))


class FunctionSource(BaseSource):
    """Adapts a plain `func(source_id) -> items` callable, sync or async"""

    def __init__(self, source_id: str, func: Callable[[str], Any]):
        super().__init__(source_id)
        self.func = func

    def fetch(self) -> List[RawItem]:
        return coerce_items(self.func(self.source_id))

    async def load(self) -> List[RawItem]:
        if inspect.iscoroutinefunction(self.func):
            return coerce_items(await self.func(self.source_id))
        result = await asyncio.to_thread(self.func, self.source_id)
        # Callable objects with an async __call__ hand back an awaitable
        if inspect.isawaitable(result):
            result = await result
        return coerce_items(result)


class CacheWriteThrough(BaseSource):
    """Wraps a source and stores every successful live fetch in the cache"""

    def __init__(self, source: BaseSource, store):
        super().__init__(source.source_id)
        self.source = source
        self.store = store

    def fetch(self) -> List[RawItem]:
        items = coerce_items(self.source.fetch())
        self._store(items)
        return items

    async def load(self) -> List[RawItem]:
        items = await self.source.load()
        await asyncio.to_thread(self._store, items)
        return items

    def _store(self, items: List[RawItem]) -> None:
        try:
            self.store.set(self.source_id, items)
        except Exception as e:
            logger.warning(f"Failed to cache {len(items)} items for {self.source_id}: {e}")

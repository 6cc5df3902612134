from typing import Any, Dict, List, Optional
import httpx
from loguru import logger

from hotlist.models import RawItem
from hotlist.sources.base import BaseSource

HEADERS = {
    "User-Agent": "Mozilla/5.0 (compatible; hotlist/0.1)"
}


class JSONFeedSource(BaseSource):
    """Source for JSON Feed / RSSHub style endpoints (`items[].id/url/title/date_published`)"""

    def __init__(self, source_id: str, url: str, timeout: float = 15, max_items: Optional[int] = None):
        super().__init__(source_id)
        self.url = url
        self.timeout = timeout
        self.max_items = max_items

    def fetch(self) -> List[RawItem]:
        resp = httpx.get(self.url, headers=HEADERS, follow_redirects=True, timeout=self.timeout)
        resp.raise_for_status()
        items = parse_feed(resp.json())
        if self.max_items is not None:
            items = items[:self.max_items]
        logger.debug(f"Fetched {len(items)} items from {self.source_id} ({self.url})")
        return items


def parse_feed(payload: Dict[str, Any]) -> List[RawItem]:
    """Convert a JSON Feed document into RawItems, skipping entries without title or url"""
    if not isinstance(payload, dict) or not isinstance(payload.get("items"), list):
        raise ValueError("Feed payload has no 'items' list")

    items: List[RawItem] = []
    for entry in payload["items"]:
        title = (entry.get("title") or "").strip()
        url = entry.get("url") or entry.get("external_url") or ""
        if not title or not url:
            continue
        items.append(RawItem(
            id=str(entry.get("id") or url),
            title=title,
            url=url,
            published_at=entry.get("date_published") or None,
            extra={
                key: entry[key] for key in ("summary", "content_html", "author") if entry.get(key)
            },
        ))
    return items

"""In-memory pagination cache keyed by layout key and content hash."""

import hashlib
import logging
import threading
from collections import OrderedDict

from epub_pager.cache.models import CacheEntry
from epub_pager.models.flattened import Paragraph
from epub_pager.models.pagination import Layout, Page, PaginationKey

log = logging.getLogger(__name__)


def paragraphs_fingerprint(paragraphs: list[Paragraph]) -> str:
    """Compute a SHA-256 over everything pagination reads from paragraphs."""
    sha256 = hashlib.sha256()
    for paragraph in paragraphs:
        element = paragraph.element
        parts = (
            str(paragraph.absolute_index),
            element.tag_name,
            "1" if paragraph.is_chapter_start else "0",
            paragraph.chapter_title or "",
            element.find_image_ref() or "",
            paragraph.text,
        )
        sha256.update("\x1f".join(parts).encode("utf-8"))
        sha256.update(b"\x1e")
    return sha256.hexdigest()


class PaginationCache:
    """Least-recently-used store of finished layouts."""

    def __init__(self, max_entries: int = 8):
        self.max_entries = max_entries
        self._entries: OrderedDict[tuple[PaginationKey, str], CacheEntry] = OrderedDict()
        self._lock = threading.Lock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def get(self, key: PaginationKey, fingerprint: str) -> Layout | None:
        """Return the cached layout, or None if this key was never stored."""
        with self._lock:
            entry = self._entries.get((key, fingerprint))
            if entry is None:
                return None
            self._entries.move_to_end((key, fingerprint))
        return entry.to_layout()

    def put(self, key: PaginationKey, fingerprint: str, pages: list[Page]) -> None:
        """Store pages, evicting the oldest entry when full."""
        with self._lock:
            self._entries[(key, fingerprint)] = CacheEntry(
                key=key, fingerprint=fingerprint, pages=pages
            )
            self._entries.move_to_end((key, fingerprint))
            while len(self._entries) > self.max_entries:
                _, evicted = self._entries.popitem(last=False)
                log.debug(
                    "Evicted cached layout %s (cached at %s)",
                    evicted.key,
                    evicted.cached_at.isoformat(timespec="seconds"),
                )

    def clear(self) -> int:
        """Drop every entry. Returns number of entries cleared."""
        with self._lock:
            count = len(self._entries)
            self._entries.clear()
        return count

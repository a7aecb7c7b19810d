"""Cache data models."""

from datetime import datetime

from pydantic import BaseModel, Field

from epub_pager.models.pagination import Layout, Page, PaginationKey


class CacheEntry(BaseModel):
    """Pages computed for one key and one paragraph fingerprint."""

    key: PaginationKey
    fingerprint: str
    pages: list[Page]
    cached_at: datetime = Field(default_factory=datetime.now)

    def to_layout(self) -> Layout:
        return Layout(key=self.key, pages=self.pages)

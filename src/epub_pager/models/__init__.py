"""Data models."""

from epub_pager.models.book import (
    BookContent,
    ChapterSpec,
    ContentElement,
)
from epub_pager.models.flattened import (
    ChapterNode,
    FlattenedBook,
    Paragraph,
)
from epub_pager.models.pagination import (
    Layout,
    Page,
    PageStyle,
    PaginationKey,
    Segment,
    SegmentKind,
    TextStyle,
)
from epub_pager.models.position import ReadingPosition

__all__ = [
    # Book models
    "ContentElement",
    "ChapterSpec",
    "BookContent",
    # Flattened models
    "Paragraph",
    "ChapterNode",
    "FlattenedBook",
    # Pagination models
    "SegmentKind",
    "TextStyle",
    "PageStyle",
    "PaginationKey",
    "Segment",
    "Page",
    "Layout",
    # Position models
    "ReadingPosition",
]

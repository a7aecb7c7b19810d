"""Map between paragraph indices, pages and chapters."""

from bisect import bisect_left

from epub_pager.models.flattened import ChapterNode, FlattenedBook
from epub_pager.models.pagination import Page
from epub_pager.models.position import ReadingPosition


def page_for_paragraph(pages: list[Page], paragraph_index: int) -> int:
    """Index of the first page holding a segment at or after the paragraph.

    Falls back to the last page when the paragraph lies past every segment.
    """
    if not pages:
        return 0
    # Pages are ordered by paragraph index, so their last segments are too
    last_indices = [page.last_paragraph_index for page in pages]
    position = bisect_left(last_indices, paragraph_index)
    return min(position, len(pages) - 1)


def first_paragraph_of_page(pages: list[Page], page_index: int) -> int:
    """Paragraph index of the first segment on a page."""
    if not pages:
        return 0
    page_index = min(max(page_index, 0), len(pages) - 1)
    return pages[page_index].first_paragraph_index


def chapter_for_index(book: FlattenedBook, paragraph_index: int) -> ChapterNode | None:
    return book.chapter_for_index(paragraph_index)


def position_for_index(
    book: FlattenedBook, paragraph_index: int, offset: float = 0.0
) -> ReadingPosition | None:
    """Build the reading position for a paragraph, or None if out of range."""
    if paragraph_index < 0 or paragraph_index >= len(book.paragraphs):
        return None

    paragraph = book.paragraphs[paragraph_index]
    chapter = book.chapter_for_index(paragraph_index)
    return ReadingPosition(
        chapter_index=paragraph.chapter_index,
        paragraph_index=paragraph_index,
        chapter_title=chapter.title if chapter else None,
        total_paragraphs=len(book.paragraphs),
        paragraph_offset=min(max(offset, 0.0), 1.0),
    )


def reading_progress(page_index: int, page_count: int) -> float:
    """Fraction of the book read when ``page_index`` is showing (0.0-1.0)."""
    if page_count <= 0:
        return 0.0
    return min(max((page_index + 1) / page_count, 0.0), 1.0)

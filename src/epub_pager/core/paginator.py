"""Split the paragraph sequence into viewport-sized pages."""

import logging
import re
from dataclasses import dataclass

from epub_pager.core.text_measure import TextMeasurer
from epub_pager.models.flattened import Paragraph
from epub_pager.models.pagination import (
    Page,
    PageStyle,
    PaginationKey,
    Segment,
    SegmentKind,
    TextStyle,
)

log = logging.getLogger(__name__)

# A word keeps its trailing whitespace so prefixes join back verbatim
WORD_PATTERN = re.compile(r"\S+\s*")


def split_words(text: str) -> tuple[str, ...]:
    """Split text into whitespace-delimited words."""
    return tuple(WORD_PATTERN.findall(text))


@dataclass(frozen=True)
class FitResult:
    """How many words of a paragraph fit, and how tall they are."""

    word_count: int
    used_height: float
    forced: bool = False


def fit_words(
    words: tuple[str, ...],
    start: int,
    max_width: float,
    max_height: float,
    style: TextStyle,
    measurer: TextMeasurer,
) -> FitResult:
    """Find the longest run of words from ``start`` that fits ``max_height``.

    The whole remainder is tried first, then a binary search over word
    counts. When not even one word fits, exactly one word is taken anyway so
    callers always make progress.
    """
    remaining = len(words) - start
    if remaining <= 0:
        return FitResult(word_count=0, used_height=0.0)

    full_height = measurer.height("".join(words[start:]), max_width, style)
    if full_height <= max_height:
        return FitResult(word_count=remaining, used_height=full_height)

    low, high = 1, remaining
    best_count, best_height = 0, 0.0
    while low <= high:
        mid = (low + high) // 2
        height = measurer.height("".join(words[start : start + mid]), max_width, style)
        if height <= max_height:
            best_count, best_height = mid, height
            low = mid + 1
        else:
            high = mid - 1

    if best_count == 0:
        height = measurer.height(words[start], max_width, style)
        return FitResult(word_count=1, used_height=height, forced=True)

    return FitResult(word_count=best_count, used_height=best_height)


class Paginator:
    """Greedy page builder for one pagination key.

    A fresh instance is used per run; all state lives in the run itself.
    """

    def __init__(
        self,
        key: PaginationKey,
        measurer: TextMeasurer,
        style: PageStyle | None = None,
    ):
        self.key = key
        self.measurer = measurer
        self.style = style or PageStyle()

        font_size = key.font_size
        self.content_width = max(key.viewport_width - self.style.horizontal_padding, 1.0)
        self.content_height = max(key.viewport_height - self.style.vertical_padding, 1.0)
        self.line_height = font_size * self.style.line_height_factor

        self.body_style = TextStyle(
            font_size=font_size, line_height=self.style.body_line_height
        )
        self.heading_style = TextStyle(
            font_size=font_size + self.style.heading_size_delta,
            line_height=self.style.body_line_height,
            bold=True,
        )
        self.title_style = TextStyle(
            font_size=font_size + self.style.chapter_title_size_delta,
            line_height=1.2,
            bold=True,
        )

        self._pages: list[Page] = []
        self._current: list[Segment] = []
        self._height = 0.0

    def run(self, paragraphs: list[Paragraph]) -> list[Page]:
        """Lay out every paragraph and return the finished pages."""
        for paragraph in paragraphs:
            self._place(paragraph)
        self._flush()

        if not self._pages:
            self._pages.append(
                Page(segments=[Segment(kind=SegmentKind.EMPTY, paragraph_index=0)])
            )
        return self._pages

    # =========================================================================
    # Page bookkeeping
    # =========================================================================

    def _flush(self) -> None:
        if self._current:
            self._pages.append(Page(segments=self._current))
            self._current = []
        self._height = 0.0

    def _fits(self, height: float) -> bool:
        return self._height + height <= self.content_height

    # =========================================================================
    # Paragraph placement
    # =========================================================================

    def _place(self, paragraph: Paragraph) -> None:
        # Chapters always open on a fresh page
        if paragraph.is_chapter_start and self._current:
            self._flush()

        if paragraph.contains_image:
            image_ref = paragraph.element.find_image_ref()
            if image_ref:
                self._place_image(paragraph, image_ref)
                return

        text = paragraph.text
        if not text:
            self._current.append(
                Segment(
                    kind=SegmentKind.EMPTY,
                    paragraph_index=paragraph.absolute_index,
                    is_chapter_start=paragraph.is_chapter_start,
                    chapter_title=paragraph.chapter_title,
                )
            )
            return

        if paragraph.is_chapter_start and paragraph.chapter_title:
            self._place_chapter_title(paragraph)

        if paragraph.is_heading:
            self._place_heading(paragraph, text)
        else:
            self._place_body(paragraph, text)

    def _place_image(self, paragraph: Paragraph, image_ref: str) -> None:
        reserved = self.content_height * self.style.image_height_ratio
        if not self._fits(reserved) and self._current:
            self._flush()

        self._current.append(
            Segment(
                kind=SegmentKind.IMAGE,
                paragraph_index=paragraph.absolute_index,
                is_chapter_start=paragraph.is_chapter_start,
                chapter_title=paragraph.chapter_title,
                image_ref=image_ref,
            )
        )
        self._height += reserved + self.style.image_gap

    def _place_chapter_title(self, paragraph: Paragraph) -> None:
        title = paragraph.chapter_title or ""
        height = (
            self.measurer.height(title, self.content_width, self.title_style)
            + self.style.chapter_title_padding
        )
        if not self._fits(height) and self._current:
            self._flush()

        self._current.append(
            Segment(
                kind=SegmentKind.CHAPTER_TITLE,
                paragraph_index=paragraph.absolute_index,
                text=title,
                is_chapter_start=True,
                chapter_title=title,
                is_first_of_paragraph=False,
            )
        )
        self._height += height + self.style.chapter_title_gap

    def _place_heading(self, paragraph: Paragraph, text: str) -> None:
        height = self.measurer.height(text, self.content_width, self.heading_style)
        block = height + self.style.heading_gap
        if not self._fits(block) and self._current:
            self._flush()

        self._current.append(
            Segment(
                kind=SegmentKind.HEADING,
                paragraph_index=paragraph.absolute_index,
                text=text,
                is_chapter_start=paragraph.is_chapter_start,
                chapter_title=paragraph.chapter_title,
            )
        )
        self._height += block

    def _place_body(self, paragraph: Paragraph, text: str) -> None:
        style = self.style
        font_size = self.key.font_size
        needs_drop_cap = (
            paragraph.is_chapter_start
            and len(text) > style.drop_cap_min_length
            and text[0].isalpha()
        )

        words = split_words(text)
        start = 0
        first = True

        while start < len(words):
            drop_cap = needs_drop_cap and first
            drop_cap_height = font_size * style.drop_cap_scale if drop_cap else 0.0

            available = self.content_height - self._height
            if available < self.line_height * 2 + drop_cap_height and self._current:
                self._flush()
                available = self.content_height

            width = self.content_width
            if drop_cap:
                width = max(width - font_size * style.drop_cap_width_factor, 1.0)

            fit = fit_words(
                words,
                start,
                width,
                available - drop_cap_height - self.line_height,
                self.body_style,
                self.measurer,
            )
            if fit.forced:
                log.debug(
                    "Forcing one word of paragraph %d onto page %d",
                    paragraph.absolute_index,
                    len(self._pages),
                )

            self._current.append(
                Segment(
                    kind=SegmentKind.TEXT,
                    paragraph_index=paragraph.absolute_index,
                    text="".join(words[start : start + fit.word_count]).rstrip(),
                    is_chapter_start=paragraph.is_chapter_start and first,
                    chapter_title=paragraph.chapter_title if first else None,
                    is_first_of_paragraph=first,
                    is_drop_cap=drop_cap,
                )
            )
            self._height += fit.used_height + style.segment_gap
            start += fit.word_count
            first = False

            # Page is full; the rest of the paragraph goes on the next one
            if start < len(words):
                self._flush()


def paginate(
    paragraphs: list[Paragraph],
    key: PaginationKey,
    measurer: TextMeasurer,
    style: PageStyle | None = None,
) -> list[Page]:
    """Paginate paragraphs for one viewport/font size combination."""
    pages = Paginator(key, measurer, style).run(paragraphs)
    log.debug(
        "Paginated %d paragraphs into %d pages (%gx%g @ %g)",
        len(paragraphs),
        len(pages),
        key.viewport_width,
        key.viewport_height,
        key.font_size,
    )
    return pages

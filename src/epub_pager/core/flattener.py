"""Flatten the chapter tree into one book-wide paragraph sequence."""

import logging
from dataclasses import dataclass
from enum import Enum

from epub_pager.core.anchor_resolver import find_anchor
from epub_pager.core.front_matter import collect_front_matter, find_file_key
from epub_pager.models.book import BookContent, ChapterSpec, split_href
from epub_pager.models.flattened import ChapterNode, FlattenedBook, Paragraph
from epub_pager.settings import ReaderSettings

log = logging.getLogger(__name__)


# =============================================================================
# File consumption ledger
# =============================================================================


class ClaimStatus(str, Enum):
    """How much of a content file has been handed out to chapters."""

    UNCLAIMED = "unclaimed"
    PARTIAL = "partial"
    FULL = "full"


@dataclass(frozen=True)
class FileClaim:
    """Claim state of one content file."""

    status: ClaimStatus = ClaimStatus.UNCLAIMED
    claimed: frozenset[int] = frozenset()


Ledger = dict[str, FileClaim]


def claim_range(
    ledger: Ledger,
    file_key: str,
    start: int,
    end: int,
    anchored: bool,
    rest_of_file: bool,
) -> tuple[list[int], Ledger]:
    """Claim the unclaimed element indices of ``[start, end)``.

    Returns the claimed indices and a new ledger; ``ledger`` is not modified.
    An unanchored reference to a file already taken as "rest of file" gets
    nothing.
    """
    claim = ledger.get(file_key, FileClaim())

    if claim.status is ClaimStatus.FULL and not anchored:
        return [], ledger

    indices = [i for i in range(start, end) if i not in claim.claimed]

    if rest_of_file or claim.status is ClaimStatus.FULL:
        status = ClaimStatus.FULL
    elif indices:
        status = ClaimStatus.PARTIAL
    else:
        status = claim.status

    updated = dict(ledger)
    updated[file_key] = FileClaim(status=status, claimed=claim.claimed | frozenset(indices))
    return indices, updated


# =============================================================================
# Chapter walk
# =============================================================================


@dataclass
class _PlannedChapter:
    """A chapter spec with its arena position and resolved file data."""

    spec: ChapterSpec
    depth: int
    parent: int | None
    file_key: str | None
    anchor: str | None
    anchor_index: int | None


class ChapterFlattener:
    """Build the paragraph sequence and chapter arena of a book."""

    def __init__(self, book: BookContent, settings: ReaderSettings | None = None):
        self.book = book
        self.settings = settings or ReaderSettings()

    def flatten(self) -> FlattenedBook:
        """Flatten the book, front matter first."""
        if not self.book.chapters:
            result = self._flatten_without_toc()
        else:
            result = self._flatten_with_toc()

        log.info(
            "Flattened %d chapters (%d top-level), %d paragraphs",
            len(result.chapters),
            len(result.roots),
            len(result.paragraphs),
        )
        return result

    def _flatten_with_toc(self) -> FlattenedBook:
        paragraphs: list[Paragraph] = []
        chapters: list[ChapterNode] = []
        roots: list[int] = []
        ledger: Ledger = {}

        front_keys = collect_front_matter(self.book)
        front_title = self.settings.front_matter_title
        for key in front_keys:
            elements = self.book.files[key]
            ledger = {
                **ledger,
                key: FileClaim(ClaimStatus.FULL, frozenset(range(len(elements)))),
            }
            for element in elements:
                first = not paragraphs
                paragraphs.append(
                    Paragraph(
                        element=element,
                        chapter_index=0,
                        absolute_index=len(paragraphs),
                        is_chapter_start=first,
                        chapter_title=front_title if first else None,
                    )
                )

        if paragraphs:
            chapters.append(ChapterNode(index=0, title=front_title, start_index=0))
            roots.append(0)

        offset = len(chapters)
        plan = self._plan(self.book.chapters)

        for position, planned in enumerate(plan):
            chapter_index = offset + position
            start_index = len(paragraphs)
            title = planned.spec.title or self.settings.untitled_title

            log.debug("%s%s", "  " * planned.depth, title)
            indices, ledger = self._resolve(plan, position, ledger)

            elements = self.book.files[planned.file_key] if indices else []
            for i, element_index in enumerate(indices):
                paragraphs.append(
                    Paragraph(
                        element=elements[element_index],
                        chapter_index=chapter_index,
                        absolute_index=len(paragraphs),
                        is_chapter_start=i == 0,
                        chapter_title=title if i == 0 else None,
                    )
                )

            parent = offset + planned.parent if planned.parent is not None else None
            chapters.append(
                ChapterNode(
                    index=chapter_index,
                    title=title,
                    start_index=start_index,
                    depth=planned.depth,
                    parent=parent,
                    content_file_name=planned.spec.content_file_name,
                    anchor=planned.anchor,
                )
            )
            if parent is None:
                roots.append(chapter_index)
            else:
                chapters[parent].children.append(chapter_index)

        return FlattenedBook(
            title=self.book.title,
            paragraphs=paragraphs,
            chapters=chapters,
            roots=roots,
        )

    def _plan(self, specs: list[ChapterSpec]) -> list[_PlannedChapter]:
        """Lay the chapter tree out in pre-order and resolve files and anchors."""
        plan: list[_PlannedChapter] = []

        def visit(items: list[ChapterSpec], depth: int, parent: int | None) -> None:
            for spec in items:
                file_key, anchor = self._locate(spec)
                anchor_index = None
                if file_key is not None and anchor:
                    anchor_index = find_anchor(self.book.files[file_key], anchor)
                    if anchor_index is None:
                        log.debug(
                            "Anchor #%s not found in %s, using start of file",
                            anchor,
                            file_key,
                        )
                position = len(plan)
                plan.append(
                    _PlannedChapter(
                        spec=spec,
                        depth=depth,
                        parent=parent,
                        file_key=file_key,
                        anchor=anchor,
                        anchor_index=anchor_index,
                    )
                )
                visit(spec.children, depth + 1, position)

        visit(specs, 0, None)
        return plan

    def _locate(self, spec: ChapterSpec) -> tuple[str | None, str | None]:
        """Return the matching file key and the anchor of a chapter."""
        # Some TOCs leave the fragment on the file name
        file_name, fragment = split_href(spec.content_file_name)
        anchor = spec.anchor or fragment
        if file_name is None:
            return None, anchor
        key = find_file_key(self.book.files, file_name)
        if key is None:
            log.debug("Chapter %r points at unknown file %s", spec.title, file_name)
        return key, anchor

    def _resolve(
        self, plan: list[_PlannedChapter], position: int, ledger: Ledger
    ) -> tuple[list[int], Ledger]:
        """Work out which elements of its file a chapter owns."""
        planned = plan[position]
        if planned.file_key is None:
            return [], ledger

        elements = self.book.files[planned.file_key]
        if not elements:
            return [], ledger

        start = planned.anchor_index if planned.anchor_index is not None else 0

        # Stop where a later chapter anchors into the same file
        end = len(elements)
        for later in plan[position + 1 :]:
            if (
                later.file_key == planned.file_key
                and later.anchor_index is not None
                and later.anchor_index > start
            ):
                end = later.anchor_index
                break

        leading: list[int] = []
        if start > 0 and not any(
            earlier.file_key == planned.file_key for earlier in plan[:position]
        ):
            # Elements ahead of every anchor go to the first chapter using the file
            first_anchor = min(
                other.anchor_index
                for other in plan
                if other.file_key == planned.file_key and other.anchor_index is not None
            )
            leading, ledger = claim_range(
                ledger,
                planned.file_key,
                0,
                first_anchor,
                anchored=True,
                rest_of_file=False,
            )
            if leading:
                log.debug(
                    "Chapter %r takes %d leading elements of %s",
                    planned.spec.title,
                    len(leading),
                    planned.file_key,
                )

        indices, ledger = claim_range(
            ledger,
            planned.file_key,
            start,
            end,
            anchored=planned.anchor is not None,
            rest_of_file=planned.anchor is None and not planned.spec.children,
        )
        return leading + indices, ledger

    def _flatten_without_toc(self) -> FlattenedBook:
        """Treat every element of every file as one chapter."""
        title = self.book.title or self.settings.fallback_title
        paragraphs: list[Paragraph] = []

        for elements in self.book.files.values():
            for element in elements:
                first = not paragraphs
                paragraphs.append(
                    Paragraph(
                        element=element,
                        chapter_index=0,
                        absolute_index=len(paragraphs),
                        is_chapter_start=first,
                        chapter_title=title if first else None,
                    )
                )

        chapters: list[ChapterNode] = []
        roots: list[int] = []
        if paragraphs:
            chapters.append(ChapterNode(index=0, title=title, start_index=0))
            roots.append(0)

        return FlattenedBook(
            title=self.book.title,
            paragraphs=paragraphs,
            chapters=chapters,
            roots=roots,
        )


def flatten_book(
    book: BookContent, settings: ReaderSettings | None = None
) -> FlattenedBook:
    """Flatten a loaded book into paragraphs and chapters."""
    return ChapterFlattener(book, settings).flatten()

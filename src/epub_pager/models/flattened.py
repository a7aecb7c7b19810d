"""Data models for the flattened, book-wide paragraph sequence."""

from bisect import bisect_right

from pydantic import BaseModel, Field

from epub_pager.models.book import ContentElement


class Paragraph(BaseModel):
    """One content element placed in the global reading sequence."""

    element: ContentElement
    chapter_index: int
    absolute_index: int
    is_chapter_start: bool = False
    chapter_title: str | None = None

    @property
    def text(self) -> str:
        return self.element.normalized_text

    @property
    def tag_name(self) -> str:
        return self.element.tag_name.lower()

    @property
    def is_heading(self) -> bool:
        return self.element.is_heading

    @property
    def contains_image(self) -> bool:
        return self.element.contains_image


class ChapterNode(BaseModel):
    """Chapter in the flat pre-order arena; children referenced by index."""

    index: int
    title: str
    start_index: int
    depth: int = 0
    parent: int | None = None
    children: list[int] = Field(default_factory=list)
    content_file_name: str | None = None
    anchor: str | None = None

    @property
    def has_children(self) -> bool:
        return bool(self.children)


class FlattenedBook(BaseModel):
    """Paragraph sequence plus the chapter arena built from it."""

    title: str | None = None
    paragraphs: list[Paragraph] = Field(default_factory=list)
    chapters: list[ChapterNode] = Field(default_factory=list)
    roots: list[int] = Field(default_factory=list)

    @property
    def total_paragraphs(self) -> int:
        return len(self.paragraphs)

    def toc(self) -> list[ChapterNode]:
        """Top-level chapters in document order."""
        return [self.chapters[i] for i in self.roots]

    def children_of(self, chapter_index: int) -> list[ChapterNode]:
        return [self.chapters[i] for i in self.chapters[chapter_index].children]

    def subtree_end(self, chapter_index: int) -> int:
        """Arena index just past the subtree rooted at ``chapter_index``."""
        depth = self.chapters[chapter_index].depth
        end = chapter_index + 1
        while end < len(self.chapters) and self.chapters[end].depth > depth:
            end += 1
        return end

    def effective_range(self, chapter_index: int) -> tuple[int, int]:
        """Paragraph interval covered by a chapter, subchapters included."""
        start = self.chapters[chapter_index].start_index
        after = self.subtree_end(chapter_index)
        if after < len(self.chapters):
            return start, self.chapters[after].start_index
        return start, len(self.paragraphs)

    def chapter_for_index(self, paragraph_index: int) -> ChapterNode | None:
        """Deepest chapter whose start is at or before the paragraph."""
        starts = [chapter.start_index for chapter in self.chapters]
        position = bisect_right(starts, paragraph_index)
        if position == 0:
            return None
        return self.chapters[position - 1]

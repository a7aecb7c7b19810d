"""Shared fixtures and builders."""

import math
from pathlib import Path

import pytest
from ebooklib import epub

from epub_pager.models.book import BookContent, ChapterSpec, ContentElement
from epub_pager.models.flattened import Paragraph
from epub_pager.models.pagination import PageStyle, TextStyle


def el(
    text: str = "",
    tag: str = "p",
    id: str | None = None,
    children: list[ContentElement] | None = None,
) -> ContentElement:
    return ContentElement(tag_name=tag, text=text, id=id, children=children or [])


def img(ref: str = "images/pic.png") -> ContentElement:
    return ContentElement(
        tag_name="figure",
        children=[ContentElement(tag_name="img", is_image=True, image_ref=ref)],
    )


def file_of(count: int, prefix: str, anchors: dict[int, str] | None = None) -> list[ContentElement]:
    anchors = anchors or {}
    return [el(f"{prefix} {i}", id=anchors.get(i)) for i in range(count)]


def chapter(
    title: str,
    file_name: str | None = None,
    anchor: str | None = None,
    children: list[ChapterSpec] | None = None,
) -> ChapterSpec:
    return ChapterSpec(
        title=title,
        content_file_name=file_name,
        anchor=anchor,
        children=children or [],
    )


def paragraphs_from(elements: list[ContentElement], chapter_starts: dict[int, str] | None = None) -> list[Paragraph]:
    chapter_starts = chapter_starts or {}
    return [
        Paragraph(
            element=element,
            chapter_index=0,
            absolute_index=i,
            is_chapter_start=i in chapter_starts,
            chapter_title=chapter_starts.get(i),
        )
        for i, element in enumerate(elements)
    ]


class CharMeasurer:
    """height = ceil(chars / chars_per_line) * line_height, independent of width."""

    def __init__(self, chars_per_line: int = 10, line_height: float = 10.0):
        self.chars_per_line = chars_per_line
        self.line_height = line_height
        self.calls = 0

    def height(self, text: str, max_width: float, style: TextStyle) -> float:
        self.calls += 1
        if not text:
            return 0.0
        return math.ceil(len(text) / self.chars_per_line) * self.line_height


@pytest.fixture
def flat_style() -> PageStyle:
    """No padding, no gaps, no line slack: content box equals the viewport."""
    return PageStyle(
        horizontal_padding=0,
        vertical_padding=0,
        line_height_factor=0,
        image_gap=0,
        chapter_title_padding=0,
        chapter_title_gap=0,
        heading_gap=0,
        segment_gap=0,
    )


@pytest.fixture
def shared_file_book() -> BookContent:
    """Two chapters sharing file1, the second anchored at element 3."""
    return BookContent(
        title="Shared",
        chapters=[chapter("A", "file1.xhtml"), chapter("B", "file1.xhtml", "b2")],
        files={"file1.xhtml": file_of(5, "one", {3: "b2"})},
        spine=["file1.xhtml"],
    )


@pytest.fixture
def nested_book() -> BookContent:
    """Front matter, a part with anchored subchapters, and a plain chapter."""
    return BookContent(
        title="Nested",
        chapters=[
            chapter(
                "Part One",
                "Text/part1.xhtml",
                children=[
                    chapter("Section 1", "Text/part1.xhtml", "s1"),
                    chapter("Section 2", "Text/part1.xhtml", "s2"),
                ],
            ),
            chapter("Chapter Two", "Text/ch2.xhtml"),
        ],
        files={
            "OEBPS/Text/cover.xhtml": file_of(2, "cover"),
            "OEBPS/Text/part1.xhtml": file_of(6, "part", {2: "s1", 4: "s2"}),
            "OEBPS/Text/ch2.xhtml": file_of(3, "two"),
        },
        spine=["Text/cover.xhtml", "Text/part1.xhtml", "Text/ch2.xhtml"],
    )


def _xhtml(title: str, body: str) -> str:
    return f"<html><head><title>{title}</title></head><body>{body}</body></html>"


@pytest.fixture
def sample_epub(tmp_path: Path) -> Path:
    """Small EPUB with a cover page outside the TOC and two chapters."""
    book = epub.EpubBook()
    book.set_identifier("epub-pager-test")
    book.set_title("Sample Book")
    book.set_language("en")
    book.add_author("Test Author")

    cover = epub.EpubHtml(title="Cover", file_name="cover.xhtml", lang="en")
    cover.content = _xhtml("Cover", "<div><p>Sample Book</p><p>A test</p></div>")

    ch1 = epub.EpubHtml(title="Chapter 1", file_name="ch1.xhtml", lang="en")
    ch1.content = _xhtml(
        "Chapter 1",
        "<h1>Chapter 1</h1>"
        "<p>It was a bright cold day in April, and the clocks were striking thirteen.</p>"
        '<p id="part.2">Second part of the first chapter.</p>'
        "<p>Closing words.</p>",
    )

    ch2 = epub.EpubHtml(title="Chapter 2", file_name="ch2.xhtml", lang="en")
    ch2.content = _xhtml(
        "Chapter 2",
        "<h1>Chapter 2</h1><p>Another chapter begins here with more text.</p>",
    )

    for item in (cover, ch1, ch2):
        book.add_item(item)

    book.toc = (
        epub.Link("ch1.xhtml", "Chapter 1", "ch1"),
        epub.Link("ch2.xhtml", "Chapter 2", "ch2"),
    )
    book.add_item(epub.EpubNcx())
    book.add_item(epub.EpubNav())
    book.spine = [cover, ch1, ch2]

    path = tmp_path / "sample.epub"
    epub.write_epub(str(path), book, {})
    return path

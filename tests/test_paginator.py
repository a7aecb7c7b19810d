"""Tests for the pagination engine."""

import math

import pytest
from conftest import CharMeasurer, el, img, paragraphs_from

from epub_pager.core.paginator import fit_words, paginate, split_words
from epub_pager.core.text_measure import GridTextMeasurer
from epub_pager.models.book import ContentElement
from epub_pager.models.pagination import PageStyle, PaginationKey, SegmentKind, TextStyle

BODY = TextStyle(font_size=16)


class WidthMeasurer:
    """Ten units per glyph, ten units per line; honours the width it is given."""

    def __init__(self):
        self.widths: list[float] = []

    def height(self, text, max_width, style):
        self.widths.append(max_width)
        if not text:
            return 0.0
        per_line = max(1, int(max_width // 10))
        return math.ceil(len(text) / per_line) * 10.0


def _key(style: PageStyle, width: float = 100, height: float = 400, font_size: float = 10) -> PaginationKey:
    return PaginationKey.build(width, height, font_size, style)


def _segments(pages):
    return [segment for page in pages for segment in page.segments]


def _mixed_paragraphs():
    elements = []
    for i in range(30):
        if i % 7 == 3:
            elements.append(el(f"Heading {i}", tag="h2"))
        elif i % 11 == 5:
            elements.append(img(f"images/{i}.png"))
        elif i % 13 == 8:
            elements.append(el("   "))
        else:
            elements.append(el(" ".join(f"word{i}-{j}" for j in range(3 + (i * 17) % 60))))
    return paragraphs_from(elements, {0: "Opening", 12: "Middle", 25: "Closing"})


class TestFitWords:
    def test_split_keeps_trailing_whitespace(self):
        assert split_words("one two  three") == ("one ", "two  ", "three")
        assert split_words("") == ()

    def test_whole_text_fits(self):
        words = split_words("aaaa bbbb")
        result = fit_words(words, 0, 100, 10, BODY, CharMeasurer(10, 10))
        assert result.word_count == 2
        assert result.used_height == 10

    def test_binary_search_finds_longest_prefix(self):
        words = ("aaaa ",) * 10
        result = fit_words(words, 0, 100, 20, BODY, CharMeasurer(10, 10))
        assert result.word_count == 4
        assert result.used_height == 20
        assert not result.forced

    def test_search_starts_at_offset(self):
        words = ("aaaa ",) * 10
        result = fit_words(words, 8, 100, 20, BODY, CharMeasurer(10, 10))
        assert result.word_count == 2

    def test_forces_one_word_when_nothing_fits(self):
        words = ("aaaaaaaaaaaa ", "bb")
        result = fit_words(words, 0, 100, 5, BODY, CharMeasurer(10, 10))
        assert result.word_count == 1
        assert result.forced
        assert result.used_height == 20

    def test_nothing_left(self):
        assert fit_words(("a",), 1, 100, 10, BODY, CharMeasurer()).word_count == 0


class TestPaginate:
    def test_long_paragraph_splits_across_pages(self, flat_style):
        # 180 five-char words: 899 chars, 900 units tall at full width
        text = " ".join(["abcd"] * 180)
        paragraphs = paragraphs_from([el(text)])

        pages = paginate(paragraphs, _key(flat_style, height=400), CharMeasurer(10, 10), flat_style)

        assert len(pages) == 3
        segments = _segments(pages)
        assert [len(s.text.split()) for s in segments] == [80, 80, 20]
        assert segments[0].is_first_of_paragraph
        assert not segments[1].is_first_of_paragraph
        assert not segments[2].is_first_of_paragraph
        assert " ".join(s.text for s in segments) == text

    def test_empty_input_gives_one_empty_page(self, flat_style):
        pages = paginate([], _key(flat_style), CharMeasurer(), flat_style)

        assert len(pages) == 1
        assert len(pages[0].segments) == 1
        segment = pages[0].segments[0]
        assert segment.text == ""
        assert segment.paragraph_index == 0
        assert segment.kind is SegmentKind.EMPTY

    def test_oversized_words_still_terminate(self, flat_style):
        text = " ".join(["x" * 50] * 3)
        paragraphs = paragraphs_from([el(text)])

        pages = paginate(paragraphs, _key(flat_style, height=20), CharMeasurer(10, 10), flat_style)

        assert len(pages) == 3
        assert all(len(page.segments) == 1 for page in pages)

    def test_viewport_smaller_than_padding_terminates(self):
        paragraphs = paragraphs_from([el("some words here " * 20)], {0: "Tiny"})
        key = PaginationKey.build(10, 10, 16)

        pages = paginate(paragraphs, key, GridTextMeasurer())

        assert pages
        text_segments = [s for s in _segments(pages) if s.kind is SegmentKind.TEXT]
        assert " ".join(s.text for s in text_segments) == paragraphs[0].text

    def test_chapter_start_opens_new_page(self, flat_style):
        paragraphs = paragraphs_from(
            [el("alpha beta"), el("gamma"), el("delta epsilon")],
            {0: "One", 2: "Two"},
        )
        pages = paginate(paragraphs, _key(flat_style, height=1000), CharMeasurer(), flat_style)

        assert len(pages) == 2
        kinds = [s.kind for s in pages[0].segments]
        assert kinds == [SegmentKind.CHAPTER_TITLE, SegmentKind.TEXT, SegmentKind.TEXT]
        assert pages[0].segments[0].text == "One"
        assert pages[1].segments[0].kind is SegmentKind.CHAPTER_TITLE
        assert pages[1].segments[0].text == "Two"
        assert pages[1].segments[1].is_chapter_start

    def test_drop_cap_only_on_first_segment(self, flat_style):
        text = " ".join(["Once"] * 60)
        paragraphs = paragraphs_from([el(text)], {0: "Start"})

        pages = paginate(paragraphs, _key(flat_style, height=100), CharMeasurer(10, 10), flat_style)

        text_segments = [s for s in _segments(pages) if s.kind is SegmentKind.TEXT]
        assert len(text_segments) > 1
        assert text_segments[0].is_drop_cap
        assert not any(s.is_drop_cap for s in text_segments[1:])

    def test_drop_cap_narrows_first_segment(self, flat_style):
        # 200 wide at font 10: 20 glyphs per line, 15 beside the drop cap
        text = " ".join(["abcd"] * 100)
        paragraphs = paragraphs_from([el(text)], {0: "T"})
        measurer = WidthMeasurer()

        pages = paginate(paragraphs, _key(flat_style, width=200, height=100), measurer, flat_style)

        text_segments = [s for s in _segments(pages) if s.kind is SegmentKind.TEXT]
        assert text_segments[0].is_drop_cap
        assert len(text_segments[0].text.split()) == 15
        assert len(text_segments[1].text.split()) == 40
        assert 158.0 in measurer.widths
        assert " ".join(s.text for s in text_segments) == text

    def test_oversized_chapter_title_gets_its_own_page(self, flat_style):
        paragraphs = paragraphs_from(
            [el("x" * 25), el("short")],
            {1: "T" * 45},
        )

        pages = paginate(paragraphs, _key(flat_style, height=30), CharMeasurer(10, 10), flat_style)

        assert [[s.kind for s in page.segments] for page in pages] == [
            [SegmentKind.TEXT],
            [SegmentKind.CHAPTER_TITLE],
            [SegmentKind.TEXT],
        ]
        assert pages[2].segments[0].text == "short"

    @pytest.mark.parametrize("text", ['"Quoted opening line"', "Too short"])
    def test_no_drop_cap(self, flat_style, text):
        paragraphs = paragraphs_from([el(text)], {0: "Start"})
        pages = paginate(paragraphs, _key(flat_style), CharMeasurer(), flat_style)
        assert not any(s.is_drop_cap for s in _segments(pages))

    def test_images_reserve_space(self, flat_style):
        paragraphs = paragraphs_from([img("a.png"), img("b.png")])
        pages = paginate(paragraphs, _key(flat_style), CharMeasurer(), flat_style)

        assert len(pages) == 2
        assert pages[0].segments[0].kind is SegmentKind.IMAGE
        assert pages[0].segments[0].image_ref == "a.png"
        assert pages[1].segments[0].image_ref == "b.png"

    def test_image_without_reference_is_text(self, flat_style):
        element = ContentElement(
            tag_name="figure",
            text="Caption",
            children=[ContentElement(tag_name="img", is_image=True)],
        )
        pages = paginate(paragraphs_from([element]), _key(flat_style), CharMeasurer(), flat_style)
        assert pages[0].segments[0].kind is SegmentKind.TEXT
        assert pages[0].segments[0].text == "Caption"

    def test_heading_is_one_segment(self, flat_style):
        paragraphs = paragraphs_from([el("A Heading That Is Long", tag="h2")])
        pages = paginate(paragraphs, _key(flat_style), CharMeasurer(), flat_style)

        assert [s.kind for s in pages[0].segments] == [SegmentKind.HEADING]
        assert pages[0].segments[0].text == "A Heading That Is Long"

    def test_heading_moves_to_next_page_when_full(self, flat_style):
        paragraphs = paragraphs_from([el("x" * 95), el("Heading", tag="h3")])
        pages = paginate(paragraphs, _key(flat_style, height=100), CharMeasurer(10, 10), flat_style)

        assert len(pages) == 2
        assert pages[1].segments[0].kind is SegmentKind.HEADING

    def test_blank_paragraph_gets_placeholder(self, flat_style):
        paragraphs = paragraphs_from([el("text"), el("  \n "), el("more")])
        pages = paginate(paragraphs, _key(flat_style), CharMeasurer(), flat_style)

        segments = _segments(pages)
        assert [s.paragraph_index for s in segments] == [0, 1, 2]
        assert segments[1].kind is SegmentKind.EMPTY


class TestProperties:
    @pytest.mark.parametrize(
        "width,height,font_size",
        [(320, 480, 12), (600, 900, 16), (1024, 768, 22), (200, 260, 18)],
    )
    def test_coverage_order_and_idempotence(self, width, height, font_size):
        paragraphs = _mixed_paragraphs()
        key = PaginationKey.build(width, height, font_size)
        measurer = GridTextMeasurer()

        pages = paginate(paragraphs, key, measurer)
        again = paginate(paragraphs, key, measurer)
        assert pages == again

        segments = _segments(pages)
        indices = [s.paragraph_index for s in segments]
        assert indices == sorted(indices)
        assert set(indices) == {p.absolute_index for p in paragraphs}
        assert all(page.segments for page in pages)

        for paragraph in paragraphs:
            if paragraph.is_heading or paragraph.element.find_image_ref():
                continue
            pieces = [
                s.text
                for s in segments
                if s.paragraph_index == paragraph.absolute_index and s.kind is SegmentKind.TEXT
            ]
            assert " ".join(pieces) == paragraph.text

    def test_font_size_changes_page_count(self):
        paragraphs = _mixed_paragraphs()
        measurer = GridTextMeasurer()
        small = paginate(paragraphs, PaginationKey.build(600, 900, 12), measurer)
        large = paginate(paragraphs, PaginationKey.build(600, 900, 24), measurer)
        assert len(large) > len(small)

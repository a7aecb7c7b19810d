"""Data models for paginated output."""

import hashlib
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class SegmentKind(str, Enum):
    """What a segment renders as."""

    TEXT = "text"
    HEADING = "heading"
    CHAPTER_TITLE = "chapter_title"
    IMAGE = "image"
    EMPTY = "empty"


class TextStyle(BaseModel):
    """Style handed to a text measurer."""

    model_config = ConfigDict(frozen=True)

    font_size: float
    line_height: float = 1.6
    bold: bool = False


class PageStyle(BaseModel):
    """Layout constants used by the pagination engine."""

    horizontal_padding: float = 48.0
    vertical_padding: float = 180.0
    line_height_factor: float = 2.0  # body line = font size * factor
    body_line_height: float = 1.6
    image_height_ratio: float = 0.6
    image_gap: float = 16.0
    chapter_title_size_delta: float = 4.0
    chapter_title_padding: float = 50.0
    chapter_title_gap: float = 24.0
    heading_size_delta: float = 6.0
    heading_gap: float = 20.0
    segment_gap: float = 8.0
    drop_cap_scale: float = 3.5
    drop_cap_width_factor: float = 4.2
    drop_cap_min_length: int = 10

    def version(self) -> str:
        """Short digest identifying this set of constants."""
        digest = hashlib.sha256(self.model_dump_json().encode("utf-8"))
        return digest.hexdigest()[:12]


class PaginationKey(BaseModel):
    """Everything that determines a pagination result besides the text."""

    model_config = ConfigDict(frozen=True)

    viewport_width: float
    viewport_height: float
    font_size: float
    style_version: str

    @classmethod
    def build(
        cls,
        viewport_width: float,
        viewport_height: float,
        font_size: float,
        style: PageStyle | None = None,
    ) -> "PaginationKey":
        style = style or PageStyle()
        return cls(
            viewport_width=viewport_width,
            viewport_height=viewport_height,
            font_size=font_size,
            style_version=style.version(),
        )


class Segment(BaseModel):
    """A slice of one paragraph placed on a page."""

    kind: SegmentKind = SegmentKind.TEXT
    paragraph_index: int
    text: str = ""
    is_chapter_start: bool = False
    chapter_title: str | None = None
    is_first_of_paragraph: bool = True
    is_drop_cap: bool = False
    image_ref: str | None = None


class Page(BaseModel):
    """Ordered segments shown together."""

    segments: list[Segment] = Field(default_factory=list)

    @property
    def first_paragraph_index(self) -> int:
        return self.segments[0].paragraph_index if self.segments else 0

    @property
    def last_paragraph_index(self) -> int:
        return self.segments[-1].paragraph_index if self.segments else 0


class Layout(BaseModel):
    """Pages together with the key they were computed for."""

    model_config = ConfigDict(frozen=True)

    key: PaginationKey
    pages: list[Page]

    @property
    def page_count(self) -> int:
        return len(self.pages)

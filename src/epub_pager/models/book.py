"""Data models for the parsed book handed to the flattener."""

import re

from pydantic import BaseModel, Field

HEADING_TAGS = {"h1", "h2", "h3", "h4", "h5", "h6"}
IMAGE_TAGS = {"img", "image", "svg"}

_WHITESPACE = re.compile(r"\s+")


class ContentElement(BaseModel):
    """Single normalized HTML block (or one of its descendants)."""

    tag_name: str
    text: str = ""
    children: list["ContentElement"] = Field(default_factory=list)
    id: str | None = None
    name: str | None = None
    attributes: dict[str, str] = Field(default_factory=dict)
    is_image: bool = False
    image_ref: str | None = None

    @property
    def is_heading(self) -> bool:
        return self.tag_name.lower() in HEADING_TAGS

    @property
    def contains_image(self) -> bool:
        """True if this element or any descendant is an image."""
        if self.is_image:
            return True
        return any(child.contains_image for child in self.children)

    @property
    def normalized_text(self) -> str:
        """Text with line breaks and runs of whitespace collapsed."""
        return _WHITESPACE.sub(" ", self.text).strip()

    def find_image_ref(self) -> str | None:
        """Return the first image reference found depth-first."""
        if self.is_image and self.image_ref:
            return self.image_ref
        for child in self.children:
            ref = child.find_image_ref()
            if ref:
                return ref
        return None


class ChapterSpec(BaseModel):
    """Entry of the book's table of contents."""

    title: str | None = None
    content_file_name: str | None = None
    anchor: str | None = None
    children: list["ChapterSpec"] = Field(default_factory=list)

    @classmethod
    def from_href(
        cls,
        title: str | None,
        href: str | None,
        children: list["ChapterSpec"] | None = None,
    ) -> "ChapterSpec":
        """Build a chapter from a ``file#anchor`` style href."""
        file_name, anchor = split_href(href)
        return cls(
            title=title,
            content_file_name=file_name,
            anchor=anchor,
            children=children or [],
        )


class BookContent(BaseModel):
    """Everything the flattener needs from a loaded book."""

    title: str | None = None
    chapters: list[ChapterSpec] = Field(default_factory=list)
    # Insertion order is the file iteration order
    files: dict[str, list[ContentElement]] = Field(default_factory=dict)
    spine: list[str] = Field(default_factory=list)


def split_href(href: str | None) -> tuple[str | None, str | None]:
    """Split ``chapter.xhtml#anchor`` into file name and anchor."""
    if not href:
        return None, None
    file_name, _, anchor = href.partition("#")
    return (file_name or None), (anchor or None)


def base_name(path: str) -> str:
    """Last path component, tolerant of both separators."""
    return path.replace("\\", "/").rsplit("/", 1)[-1]

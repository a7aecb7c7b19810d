"""EPUB loading using ebooklib."""

import logging
from pathlib import Path

import ebooklib
from ebooklib import epub

from epub_pager.core.flattener import flatten_book
from epub_pager.core.html_normalizer import normalize_html
from epub_pager.models.book import BookContent, ChapterSpec, ContentElement
from epub_pager.models.flattened import FlattenedBook
from epub_pager.settings import ReaderSettings

# ebooklib is chatty about missing optional metadata
logging.getLogger("ebooklib").setLevel(logging.ERROR)

log = logging.getLogger(__name__)


class BookLoadError(Exception):
    """Raised when an EPUB container cannot be read."""

    pass


class EpubLoader:
    """Read an EPUB and collect what the flattener needs."""

    def __init__(self, epub_path: Path):
        if not epub_path.exists():
            raise FileNotFoundError(f"File not found: {epub_path}")
        self.path = epub_path
        try:
            self.book = epub.read_epub(str(epub_path))
        except Exception as e:
            raise BookLoadError(f"Cannot read EPUB {epub_path.name}: {e}") from e

    def load(self) -> BookContent:
        """Load title, table of contents, content files and spine."""
        content = BookContent(
            title=self._get_title(),
            chapters=toc_to_chapters(self.book.toc),
            files=self._get_files(),
            spine=self._get_spine(),
        )
        log.info(
            "Loaded %s: %d files, %d top-level chapters",
            self.path.name,
            len(content.files),
            len(content.chapters),
        )
        return content

    def _get_title(self) -> str | None:
        title = self.book.get_metadata("DC", "title")
        return title[0][0] if title else None

    def _get_files(self) -> dict[str, list[ContentElement]]:
        """Normalize every document item, in manifest order."""
        files: dict[str, list[ContentElement]] = {}
        for item in self.book.get_items_of_type(ebooklib.ITEM_DOCUMENT):
            files[item.get_name()] = normalize_html(item.get_content())
        return files

    def _get_spine(self) -> list[str]:
        """Get reading order from spine as file names."""
        names = []
        for entry in self.book.spine:
            idref = entry[0] if isinstance(entry, tuple) else entry
            item = self.book.get_item_with_id(idref)
            if item is None:
                log.debug("Spine entry %s has no manifest item", idref)
                continue
            names.append(item.get_name())
        return names


def toc_to_chapters(toc_items: list) -> list[ChapterSpec]:
    """Recursively convert an ebooklib TOC into chapter specs."""
    chapters = []

    for item in toc_items:
        if isinstance(item, tuple):
            # Section with children: (Section, [children])
            section, children = item
            chapters.append(
                ChapterSpec.from_href(
                    section.title or None,
                    getattr(section, "href", None),
                    toc_to_chapters(children),
                )
            )
        elif isinstance(item, list):
            # Bare nested list, attach to the previous entry
            nested = toc_to_chapters(item)
            if chapters:
                chapters[-1].children.extend(nested)
            else:
                chapters.extend(nested)
        else:
            chapters.append(ChapterSpec.from_href(item.title or None, item.href))

    return chapters


def load_book(epub_path: Path, settings: ReaderSettings | None = None) -> FlattenedBook:
    """Load an EPUB file and flatten it."""
    content = EpubLoader(epub_path).load()
    return flatten_book(content, settings)

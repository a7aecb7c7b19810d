"""Find spine files that no table-of-contents entry points at."""

import logging

from epub_pager.models.book import BookContent, ChapterSpec, base_name, split_href

log = logging.getLogger(__name__)


def referenced_file_names(chapters: list[ChapterSpec]) -> set[str]:
    """Collect every file name referenced by the chapter tree.

    Both the name as written and its basename are recorded.
    """
    names: set[str] = set()

    def collect(items: list[ChapterSpec]) -> None:
        for chapter in items:
            file_name, _ = split_href(chapter.content_file_name)
            if file_name:
                names.add(file_name)
                names.add(base_name(file_name))
            collect(chapter.children)

    collect(chapters)
    return names


def find_file_key(files: dict, file_name: str) -> str | None:
    """Match a file reference against the loaded file keys.

    Exact matches win; otherwise the first key with the same basename.
    """
    if file_name in files:
        return file_name
    wanted = base_name(file_name)
    for key in files:
        if base_name(key) == wanted:
            return key
    return None


def collect_front_matter(book: BookContent) -> list[str]:
    """Return file keys, in reading order, that belong to no chapter."""
    if not book.chapters:
        return []

    referenced = referenced_file_names(book.chapters)
    front: list[str] = []

    for spine_name in book.spine:
        if spine_name in referenced or base_name(spine_name) in referenced:
            continue

        key = find_file_key(book.files, spine_name)
        if key is None or key in front:
            continue
        if not book.files[key]:
            continue

        log.debug(
            "Front matter: %s (%d elements)", spine_name, len(book.files[key])
        )
        front.append(key)

    return front

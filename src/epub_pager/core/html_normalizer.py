"""Turn XHTML chapter files into normalized content elements."""

import logging
import warnings

from bs4 import BeautifulSoup, Tag, XMLParsedAsHTMLWarning

from epub_pager.models.book import IMAGE_TAGS, ContentElement

# Suppress XML parsing warnings - EPUB files often use XHTML
warnings.filterwarnings("ignore", category=XMLParsedAsHTMLWarning)

log = logging.getLogger(__name__)

SKIPPABLE_TAGS = {"style", "script", "meta", "link", "head"}
CONTAINER_TAGS = {"div", "section", "article", "aside", "main", "nav"}
CONTENT_TAGS = {
    "p", "h1", "h2", "h3", "h4", "h5", "h6", "blockquote", "pre",
    "ul", "ol", "table", "figure", "img", "hr", "br",
}
LAYOUT_STYLES = ("text-align", "margin", "text-indent", "font-style", "font-weight")
LAYOUT_CLASSES = (
    "center", "right", "italic", "dedication", "epigraph",
    "quote", "signature", "attribution",
)


def normalize_html(html: str | bytes) -> list[ContentElement]:
    """Parse an HTML document into its displayable blocks."""
    try:
        soup = BeautifulSoup(html, "lxml")
    except Exception as e:
        log.error("Error parsing HTML: %s", e)
        return []

    body = soup.body
    if body is None:
        return []

    blocks: list[Tag] = []
    _extract(_child_tags(body), blocks)
    return [element_from_tag(tag) for tag in blocks]


def _child_tags(tag: Tag) -> list[Tag]:
    return [child for child in tag.children if isinstance(child, Tag)]


def _extract(tags: list[Tag], result: list[Tag]) -> None:
    """Recursively keep content blocks, unwrapping plain containers."""
    for tag in tags:
        name = (tag.name or "").lower()

        if name in SKIPPABLE_TAGS:
            continue

        if name in CONTAINER_TAGS:
            children = _child_tags(tag)
            if _has_layout_style(tag):
                result.append(tag)
            elif not children and tag.get_text().strip():
                result.append(tag)
            elif children:
                _extract(children, result)
        elif _is_content(tag):
            result.append(tag)


def _has_layout_style(tag: Tag) -> bool:
    """Containers carrying alignment or emphasis styling are kept whole."""
    style = str(tag.get("style") or "").lower()
    if any(prop in style for prop in LAYOUT_STYLES):
        return True
    class_name = " ".join(tag.get("class") or []).lower()
    return any(name in class_name for name in LAYOUT_CLASSES)


def _is_content(tag: Tag) -> bool:
    if (tag.name or "").lower() in CONTENT_TAGS:
        return True
    if tag.get_text().strip():
        return True
    return tag.find(list(IMAGE_TAGS)) is not None


def _image_ref(tag: Tag) -> str | None:
    for attribute in ("src", "xlink:href", "href"):
        value = tag.get(attribute)
        if value:
            return str(value)
    return None


def element_from_tag(tag: Tag) -> ContentElement:
    """Convert a BeautifulSoup tag and its descendants."""
    name = (tag.name or "div").lower()
    attributes = {
        key: " ".join(value) if isinstance(value, list) else str(value)
        for key, value in tag.attrs.items()
    }
    is_image = name in IMAGE_TAGS
    return ContentElement(
        tag_name=name,
        text=tag.get_text(),
        children=[element_from_tag(child) for child in _child_tags(tag)],
        id=attributes.get("id"),
        name=attributes.get("name"),
        attributes=attributes,
        is_image=is_image,
        image_ref=_image_ref(tag) if is_image else None,
    )

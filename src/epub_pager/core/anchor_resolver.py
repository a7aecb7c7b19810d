"""Locate id/name anchors inside normalized content elements."""

from epub_pager.models.book import ContentElement


def element_contains_anchor(element: ContentElement, anchor_id: str) -> bool:
    """Check whether an element or any descendant carries the anchor.

    Walks the tree by hand instead of building a selector, so ids such as
    ``id.1`` or ``note[3]`` resolve like any other id.
    """
    stack = [element]
    while stack:
        node = stack.pop()
        if node.id == anchor_id or node.name == anchor_id:
            return True
        # Reversed so children are visited in document order
        stack.extend(reversed(node.children))
    return False


def find_anchor(elements: list[ContentElement], anchor_id: str) -> int | None:
    """Return the index of the first element containing ``anchor_id``."""
    if not anchor_id:
        return None
    for index, element in enumerate(elements):
        if element_contains_anchor(element, anchor_id):
            return index
    return None

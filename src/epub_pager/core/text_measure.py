"""Text measurement backends used by the paginator."""

import math
from typing import Protocol

from epub_pager.models.pagination import TextStyle


class TextMeasurer(Protocol):
    """Anything that can tell how tall a block of wrapped text is."""

    def height(self, text: str, max_width: float, style: TextStyle) -> float:
        """Height of ``text`` laid out at ``max_width``."""
        ...


class GridTextMeasurer:
    """Monospace approximation: every glyph is the same width.

    Height is ``ceil(chars / chars_per_line) * line_height``, which is
    monotonic in the text length and deterministic across platforms.
    """

    def __init__(self, char_width_ratio: float = 0.5):
        self.char_width_ratio = char_width_ratio

    def chars_per_line(self, max_width: float, style: TextStyle) -> int:
        glyph_width = style.font_size * self.char_width_ratio
        if style.bold:
            glyph_width *= 1.1
        if glyph_width <= 0:
            return 1
        return max(1, int(max_width // glyph_width))

    def height(self, text: str, max_width: float, style: TextStyle) -> float:
        if not text:
            return 0.0
        lines = math.ceil(len(text) / self.chars_per_line(max_width, style))
        return lines * style.font_size * style.line_height

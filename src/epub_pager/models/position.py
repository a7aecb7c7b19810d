"""Reading position model."""

from pydantic import BaseModel, Field


class ReadingPosition(BaseModel):
    """Where the reader is, expressed against the global paragraph index."""

    chapter_index: int
    paragraph_index: int
    chapter_title: str | None = None
    total_paragraphs: int
    paragraph_offset: float = Field(default=0.0, ge=0.0, le=1.0)

    @property
    def progress_percent(self) -> float:
        """Reading progress as a percentage (0-100)."""
        if self.total_paragraphs == 0:
            return 0.0
        base = self.paragraph_index / self.total_paragraphs * 100
        bonus = self.paragraph_offset / self.total_paragraphs * 100
        return min(max(base + bonus, 0.0), 100.0)

    @property
    def is_at_start(self) -> bool:
        return self.paragraph_index == 0 and self.paragraph_offset == 0.0

    @property
    def is_at_end(self) -> bool:
        return self.paragraph_index >= self.total_paragraphs - 1

    @classmethod
    def initial(cls, total_paragraphs: int = 0) -> "ReadingPosition":
        return cls(chapter_index=0, paragraph_index=0, total_paragraphs=total_paragraphs)

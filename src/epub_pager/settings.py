"""Reader settings loaded from an optional JSON file."""

import logging
from pathlib import Path

from pydantic import BaseModel, Field, ValidationError

from epub_pager.models.pagination import PageStyle

log = logging.getLogger(__name__)


class ReaderSettings(BaseModel):
    """Settings shared by the flattener, the paginator and the CLI."""

    style: PageStyle = Field(default_factory=PageStyle)
    front_matter_title: str = "Front Matter"
    fallback_title: str = "Content"
    untitled_title: str = "Untitled"
    char_width_ratio: float = Field(default=0.5, gt=0)  # grid measurer glyph width / font size
    cache_size: int = Field(default=8, ge=1)


def load_settings(config_path: Path | None = None) -> ReaderSettings:
    """Load settings from JSON, falling back to defaults."""
    if config_path is None:
        return ReaderSettings()
    if not config_path.exists():
        log.warning("Settings file %s not found, using defaults", config_path)
        return ReaderSettings()

    try:
        return ReaderSettings.model_validate_json(config_path.read_text())
    except (ValidationError, OSError) as e:
        log.warning("Ignoring invalid settings file %s: %s", config_path, e)
        return ReaderSettings()

"""Book flattening and pagination engine for EPUB readers."""

__version__ = "0.1.0"

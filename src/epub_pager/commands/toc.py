"""Table of contents command implementation."""

from pathlib import Path

from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from epub_pager.core.epub_loader import load_book
from epub_pager.models.flattened import FlattenedBook
from epub_pager.settings import load_settings


def build_toc_table(book: FlattenedBook) -> Table:
    """Chapters in pre-order, indented by depth."""
    table = Table(title="Table of Contents", show_header=True, header_style="bold cyan")
    table.add_column("#", style="dim", width=4)
    table.add_column("Title", style="white")
    table.add_column("Start", justify="right", style="green")
    table.add_column("Paragraphs", justify="right", style="green")
    table.add_column("Source", style="dim")

    for chapter in book.chapters:
        start, end = book.effective_range(chapter.index)
        source = chapter.content_file_name or "—"
        if chapter.anchor:
            source = f"{source}#{chapter.anchor}"
        table.add_row(
            str(chapter.index),
            f"{'  ' * chapter.depth}{chapter.title}",
            f"{start:,}",
            f"{end - start:,}",
            source,
        )

    return table


def execute_toc(book_path: Path, config_path: Path | None, console: Console) -> None:
    """Load a book and print its chapter structure."""
    settings = load_settings(config_path)
    book = load_book(book_path, settings)

    info_lines = [
        f"[bold]{book.title or book_path.name}[/]",
        "",
        f"[dim]Chapters:[/] {len(book.chapters)}",
        f"[dim]Paragraphs:[/] {book.total_paragraphs:,}",
    ]
    console.print()
    console.print(Panel("\n".join(info_lines), title="Book Information", border_style="green"))
    console.print()
    console.print(build_toc_table(book))
    console.print()

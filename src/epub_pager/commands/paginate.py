"""Paginate and locate command implementations."""

from pathlib import Path

from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from epub_pager.cache.manager import PaginationCache
from epub_pager.core.epub_loader import load_book
from epub_pager.core.position_mapper import (
    first_paragraph_of_page,
    page_for_paragraph,
    position_for_index,
    reading_progress,
)
from epub_pager.core.session import PaginationSession
from epub_pager.core.text_measure import GridTextMeasurer
from epub_pager.models.flattened import FlattenedBook
from epub_pager.models.pagination import Layout, Page, SegmentKind
from epub_pager.settings import ReaderSettings, load_settings

PREVIEW_LENGTH = 60


def compute_layout(
    book: FlattenedBook,
    settings: ReaderSettings,
    width: float,
    height: float,
    font_size: float,
) -> Layout:
    """Run one pagination through a session and wait for it."""
    measurer = GridTextMeasurer(settings.char_width_ratio)
    cache = PaginationCache(settings.cache_size)
    with PaginationSession(book.paragraphs, measurer, settings.style, cache) as session:
        layout = session.request(width, height, font_size).result()
    if layout is None:
        raise RuntimeError("Pagination did not produce a layout")
    return layout


def _preview(page: Page) -> str:
    for segment in page.segments:
        if segment.kind is SegmentKind.IMAGE:
            return f"[image] {segment.image_ref}"
        if segment.text:
            text = segment.text
            if len(text) > PREVIEW_LENGTH:
                text = text[: PREVIEW_LENGTH - 3] + "..."
            return text
    return ""


def display_pages(layout: Layout, console: Console) -> None:
    """Summary row per page."""
    table = Table(title="Pages", show_header=True, header_style="bold cyan")
    table.add_column("Page", style="dim", justify="right")
    table.add_column("Paragraphs", justify="right", style="green")
    table.add_column("Segments", justify="right")
    table.add_column("Starts with", style="white")

    for number, page in enumerate(layout.pages, start=1):
        table.add_row(
            str(number),
            f"{page.first_paragraph_index}-{page.last_paragraph_index}",
            str(len(page.segments)),
            _preview(page),
        )

    console.print(table)


def display_page(layout: Layout, page_number: int, console: Console) -> None:
    """Every segment of one page (1-based page number)."""
    page = layout.pages[page_number - 1]
    lines = []
    for segment in page.segments:
        flags = []
        if segment.is_chapter_start:
            flags.append("chapter start")
        if not segment.is_first_of_paragraph:
            flags.append("continued")
        if segment.is_drop_cap:
            flags.append("drop cap")
        label = f"[cyan]¶{segment.paragraph_index}[/] [dim]{segment.kind.value}[/]"
        if flags:
            label += f" [yellow]({', '.join(flags)})[/]"
        body = segment.image_ref if segment.kind is SegmentKind.IMAGE else segment.text
        lines.append(f"{label}\n{body or ''}")

    console.print(
        Panel(
            "\n\n".join(lines),
            title=f"Page {page_number} of {layout.page_count}",
            border_style="blue",
        )
    )


def execute_paginate(
    book_path: Path,
    width: float,
    height: float,
    font_size: float,
    page_number: int | None,
    config_path: Path | None,
    console: Console,
) -> None:
    """Paginate a book and show either a summary or one page."""
    settings = load_settings(config_path)
    book = load_book(book_path, settings)
    layout = compute_layout(book, settings, width, height, font_size)

    if page_number is not None:
        if not 1 <= page_number <= layout.page_count:
            raise ValueError(
                f"Page {page_number} out of range (1-{layout.page_count})"
            )
        display_page(layout, page_number, console)
        return

    console.print(
        f"[green]{book.total_paragraphs:,} paragraphs → {layout.page_count:,} pages[/] "
        f"[dim]({width:g}x{height:g}, font {font_size:g})[/]"
    )
    display_pages(layout, console)


def execute_locate(
    book_path: Path,
    paragraph_index: int,
    width: float,
    height: float,
    font_size: float,
    config_path: Path | None,
    console: Console,
) -> None:
    """Show where a paragraph lands for a given viewport."""
    settings = load_settings(config_path)
    book = load_book(book_path, settings)

    position = position_for_index(book, paragraph_index)
    if position is None:
        raise ValueError(
            f"Paragraph {paragraph_index} out of range (0-{book.total_paragraphs - 1})"
        )

    layout = compute_layout(book, settings, width, height, font_size)
    page_index = page_for_paragraph(layout.pages, paragraph_index)
    progress = reading_progress(page_index, layout.page_count)

    info_lines = [
        f"[dim]Paragraph:[/] {paragraph_index}",
        f"[dim]Chapter:[/] {position.chapter_title or 'Unknown'} (#{position.chapter_index})",
        f"[dim]Page:[/] {page_index + 1} of {layout.page_count}",
        f"[dim]Page starts at paragraph:[/] {first_paragraph_of_page(layout.pages, page_index)}",
        f"[dim]Progress:[/] {progress:.0%} of pages, {position.progress_percent:.1f}% of paragraphs",
    ]
    console.print(Panel("\n".join(info_lines), title="Position", border_style="green"))

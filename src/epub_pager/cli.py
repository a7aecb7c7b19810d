"""Main CLI application."""

import logging
from pathlib import Path
from typing import Annotated, Optional

import typer
from rich.console import Console
from rich.logging import RichHandler

from epub_pager.commands.paginate import execute_locate, execute_paginate
from epub_pager.commands.toc import execute_toc

app = typer.Typer(
    name="epub-pager",
    help="Flatten EPUB books into paragraphs and paginate them for a viewport.",
    add_completion=False,
)

console = Console()

BookPath = Annotated[
    Path,
    typer.Argument(
        help="Path to the EPUB file",
        exists=True,
        file_okay=True,
        dir_okay=False,
        resolve_path=True,
    ),
]
ConfigPath = Annotated[
    Optional[Path],
    typer.Option(
        "--config",
        "-c",
        help="JSON settings file (page style, labels, measurer)",
    ),
]
Width = Annotated[float, typer.Option("--width", "-W", help="Viewport width", min=1)]
Height = Annotated[float, typer.Option("--height", "-H", help="Viewport height", min=1)]
FontSize = Annotated[
    float, typer.Option("--font-size", "-s", help="Body font size", min=1)
]


@app.callback()
def main(
    verbose: Annotated[
        bool,
        typer.Option(
            "--verbose",
            "-v",
            help="Show debug logging",
        ),
    ] = False,
) -> None:
    """Flatten EPUB books into paragraphs and paginate them for a viewport."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, show_path=False)],
        force=True,
    )


@app.command()
def toc(book_path: BookPath, config: ConfigPath = None) -> None:
    """Display the flattened table of contents."""
    try:
        execute_toc(book_path=book_path, config_path=config, console=console)
    except Exception as e:
        console.print(f"[red]Error reading file: {e}[/]")
        raise typer.Exit(1)


@app.command()
def paginate(
    book_path: BookPath,
    width: Width = 600,
    height: Height = 900,
    font_size: FontSize = 16,
    page: Annotated[
        Optional[int],
        typer.Option(
            "--page",
            "-p",
            help="Show the segments of one page (1-based) instead of the summary",
            min=1,
        ),
    ] = None,
    config: ConfigPath = None,
) -> None:
    """Paginate a book for a viewport and font size."""
    try:
        execute_paginate(
            book_path=book_path,
            width=width,
            height=height,
            font_size=font_size,
            page_number=page,
            config_path=config,
            console=console,
        )
    except Exception as e:
        console.print(f"[red]Error: {e}[/]")
        raise typer.Exit(1)


@app.command()
def locate(
    book_path: BookPath,
    paragraph: Annotated[
        int,
        typer.Option(
            "--paragraph",
            "-i",
            help="Absolute paragraph index to look up",
            min=0,
        ),
    ],
    width: Width = 600,
    height: Height = 900,
    font_size: FontSize = 16,
    config: ConfigPath = None,
) -> None:
    """Show the page and chapter a paragraph falls on."""
    try:
        execute_locate(
            book_path=book_path,
            paragraph_index=paragraph,
            width=width,
            height=height,
            font_size=font_size,
            config_path=config,
            console=console,
        )
    except Exception as e:
        console.print(f"[red]Error: {e}[/]")
        raise typer.Exit(1)


if __name__ == "__main__":
    app()

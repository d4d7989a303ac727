import os
import json
from typing import List, Any, Dict, Optional
from rich.console import Console
from rich.table import Table
from rich.panel import Panel
from rich.markup import escape

from book import Book

# Environment variable to control CLI output mode
# Allowed values: 'plain' (default), 'json', 'rich'
OUTPUT_MODE_ENV = "LIB_CLI_OUTPUT"
OUTPUT_MODES = ("plain", "json", "rich")

_console = Console()


def set_output_mode(mode: str) -> None:
    mode = (mode or "").lower().strip()
    if mode not in OUTPUT_MODES:
        raise ValueError(f"Unknown output mode {mode!r}; use one of: {', '.join(OUTPUT_MODES)}")
    os.environ[OUTPUT_MODE_ENV] = mode


def get_output_mode() -> str:
    mode = os.environ.get(OUTPUT_MODE_ENV, "plain").lower()
    return mode if mode in OUTPUT_MODES else "plain"


def format_book(book: Book) -> str:
    return f"Book ID: {book.book_id} | Title: {book.title} | Author: {book.author} | Quantity: {book.quantity}"


def _books_table(books: List[Book], title: str) -> Table:
    table = Table(title=escape(title), show_lines=True, header_style="bold cyan")
    table.add_column("ID", style="magenta", no_wrap=True, justify="right")
    table.add_column("Title", style="white")
    table.add_column("Author", style="white")
    table.add_column("Quantity", justify="right")
    for b in books:
        table.add_row(str(b.book_id), escape(b.title), escape(b.author), str(b.quantity))
    return table


def print_book_list(books: List[Book], empty_message: str = "No books available.", title: str = "📚 Books") -> None:
    """Print books according to the current output mode.
    - plain: one 'Book ID: .. | Title: .. | Author: .. | Quantity: ..' line per book
    - json: JSON array of book dicts
    - rich: Rich table
    """
    mode = get_output_mode()

    if mode == "json":
        print(json.dumps([b.to_dict() for b in books], ensure_ascii=False))
        return

    if not books:
        print(empty_message)
        return

    if mode == "rich":
        _console.print(_books_table(books, title))
    else:
        for b in books:
            print(format_book(b))


def print_book(book: Optional[Book], not_found_message: str = "Book not found.") -> None:
    mode = get_output_mode()

    if mode == "json":
        print(json.dumps(book.to_dict() if book else None, ensure_ascii=False))
    elif book is None:
        print(not_found_message)
    elif mode == "rich":
        content = (
            f"[bold]ID:[/] {book.book_id}\n"
            f"[bold]Title:[/] {escape(book.title)}\n"
            f"[bold]Author:[/] {escape(book.author)}\n"
            f"[bold]Quantity:[/] {book.quantity}"
        )
        _console.print(Panel.fit(content, title="🔍 Book Found", border_style="green"))
    else:
        print(format_book(book))


def print_stats_result(stats: Dict[str, Any]) -> None:
    """Print statistics according to the current output mode."""
    mode = get_output_mode()

    total = stats.get("total_books", 0)
    authors = stats.get("unique_authors", 0)
    copies = stats.get("total_copies", 0)

    if mode == "json":
        print(json.dumps({"total_books": total, "unique_authors": authors, "total_copies": copies}, ensure_ascii=False))
    elif mode == "rich":
        content = f"[bold]Total Books:[/] {total}\n[bold]Unique Authors:[/] {authors}\n[bold]Total Copies:[/] {copies}"
        _console.print(Panel.fit(content, title="📊 Stats", border_style="blue"))
    else:
        print(f"Total Books: {total}")
        print(f"Unique Authors: {authors}")
        print(f"Total Copies: {copies}")

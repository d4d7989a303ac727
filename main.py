import logging
from contextlib import contextmanager
from typing import Iterator, Optional

import typer
from rich import box
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.prompt import IntPrompt, Prompt
from rich.table import Table

from config import settings
from library import Library, LibraryError
from storage import ParseError, load_library, save_library
from ui_helpers import set_output_mode, print_book, print_book_list, print_stats_result

logger = logging.getLogger(__name__)

console = Console()


@contextmanager
def open_catalog(data_file: str) -> Iterator[Library]:
    """Load the catalog, hand it to the caller and save it back on normal completion.

    Load failures leave the data file untouched. Both load and save failures end
    the process with exit code 1.
    """
    try:
        library = load_library(data_file)
    except (ParseError, OSError) as e:
        logger.error(f"Could not load catalog from {data_file}: {e}")
        print(f"Error: could not load catalog: {e}")
        raise typer.Exit(code=1)

    yield library

    try:
        save_library(data_file, library)
    except (OSError, UnicodeError) as e:
        logger.error(f"Could not save catalog to {data_file}: {e}")
        print(f"Error: could not save catalog: {e}")
        raise typer.Exit(code=1)


# --- Typer CLI application ---
app = typer.Typer(help="Library catalog CLI", add_completion=False)


@app.callback(invoke_without_command=True)
def _global_options(
    ctx: typer.Context,
    data_file: Optional[str] = typer.Option(
        None,
        "--data-file",
        "-d",
        help="Catalog data file (default: LIBRARY_DATA_FILE or library_data.txt)",
    ),
    output: Optional[str] = typer.Option(
        None,
        "--output",
        "-o",
        help="Output format: plain | json | rich (default: plain)",
    ),
):
    """Global options; without a command the interactive menu starts."""
    if output:
        try:
            set_output_mode(output)
        except ValueError as e:
            raise typer.BadParameter(str(e), param_hint="--output")
    ctx.obj = data_file or settings.data_file
    if ctx.invoked_subcommand is None:
        with open_catalog(ctx.obj) as library:
            run_menu(library)


@app.command("add")
def cli_add(
    ctx: typer.Context,
    book_id: int = typer.Argument(..., help="Unique book ID"),
    title: str = typer.Argument(..., help="Book title"),
    author: str = typer.Argument(..., help="Book author"),
    quantity: int = typer.Argument(..., min=0, help="Copies in stock"),
):
    """Add a new book."""
    with open_catalog(ctx.obj) as library:
        try:
            library.add_book(book_id, title, author, quantity)
            print("Book added successfully.")
        except LibraryError as e:
            print(f"Error: {e}")


@app.command("find")
def cli_find(ctx: typer.Context, book_id: int = typer.Argument(..., help="Book ID")):
    """Find a book by ID and show its details."""
    with open_catalog(ctx.obj) as library:
        print_book(library.find_book(book_id))


@app.command("search")
def cli_search(ctx: typer.Context, key: str = typer.Argument(..., help="Part of the title (case-sensitive)")):
    """Search books whose title contains KEY."""
    with open_catalog(ctx.obj) as library:
        print_book_list(library.search_by_title(key), empty_message="No matching books.", title=f"🔎 '{key}'")


@app.command("list")
def cli_list(ctx: typer.Context):
    """List all books."""
    with open_catalog(ctx.obj) as library:
        print_book_list(library.list_books())


@app.command("update")
def cli_update(
    ctx: typer.Context,
    book_id: int = typer.Argument(..., help="Book ID"),
    quantity: int = typer.Argument(..., min=0, help="New quantity"),
):
    """Set the quantity of a book."""
    with open_catalog(ctx.obj) as library:
        try:
            library.update_quantity(book_id, quantity)
            print("Quantity updated successfully.")
        except LibraryError as e:
            print(f"Error: {e}")


@app.command("delete")
def cli_delete(ctx: typer.Context, book_id: int = typer.Argument(..., help="Book ID")):
    """Delete a book by ID."""
    with open_catalog(ctx.obj) as library:
        try:
            library.remove_book(book_id)
            print("Book deleted successfully.")
        except LibraryError as e:
            print(f"Error: {e}")


@app.command("stats")
def cli_stats(ctx: typer.Context):
    """Show catalog statistics."""
    with open_catalog(ctx.obj) as library:
        print_stats_result(library.get_statistics())


# --- Interactive menu ---
MENU_ITEMS = [
    ("1", "Add Book", "➕"),
    ("2", "Search Book by ID", "🔎"),
    ("3", "Search Book by Title (Partial)", "💡"),
    ("4", "Display All Books", "📚"),
    ("5", "Update Quantity", "✏️"),
    ("6", "Delete Book by ID", "🗑️"),
    ("7", "Exit", "🚪"),
]
EXIT_CHOICE = "7"


def render_menu() -> None:
    table = Table.grid(padding=(0, 2))
    table.add_column(justify="right", style="bold cyan", width=4)
    table.add_column(justify="left", style="white")
    for key, label, icon in MENU_ITEMS:
        table.add_row(f"[reverse]{key}[/]", f"{icon} {label}")

    console.print(Panel(table, title=settings.app_name, border_style="cyan", box=box.HEAVY, padding=(1, 2)))


def _ask_quantity(prompt: str) -> int:
    while True:
        quantity = IntPrompt.ask(prompt, console=console)
        if quantity >= 0:
            return quantity
        console.print("[yellow]Quantity must be zero or more.[/]")


def menu_add(library: Library) -> None:
    book_id = IntPrompt.ask("Enter Book ID", console=console)
    title = Prompt.ask("Enter Title", console=console)
    author = Prompt.ask("Enter Author", console=console)
    quantity = _ask_quantity("Enter Quantity")
    library.add_book(book_id, title, author, quantity)
    console.print("[green]Book added successfully.[/]")


def menu_find(library: Library) -> None:
    book_id = IntPrompt.ask("Enter Book ID", console=console)
    print_book(library.find_book(book_id))


def menu_search(library: Library) -> None:
    key = Prompt.ask("Enter title keyword", console=console)
    print_book_list(library.search_by_title(key), empty_message="No matching books.", title=f"🔎 '{key}'")


def menu_list(library: Library) -> None:
    print_book_list(library.list_books())


def menu_update(library: Library) -> None:
    book_id = IntPrompt.ask("Enter Book ID", console=console)
    quantity = _ask_quantity("Enter new quantity")
    library.update_quantity(book_id, quantity)
    console.print("[green]Quantity updated successfully.[/]")


def menu_delete(library: Library) -> None:
    book_id = IntPrompt.ask("Enter Book ID to delete", console=console)
    library.remove_book(book_id)
    console.print("[green]Book deleted successfully.[/]")


MENU_ACTIONS = {
    "1": menu_add,
    "2": menu_find,
    "3": menu_search,
    "4": menu_list,
    "5": menu_update,
    "6": menu_delete,
}


def run_menu(library: Library) -> None:
    """Simple interactive menu for the catalog. Returns when the user exits or input ends."""
    choices = [key for key, _, _ in MENU_ITEMS]
    while True:
        render_menu()
        try:
            choice = Prompt.ask("Enter choice", choices=choices, console=console)
            if choice == EXIT_CHOICE:
                console.print("Exiting...")
                return
            MENU_ACTIONS[choice](library)
        except LibraryError as e:
            console.print(f"[bold red]Error:[/] {escape(str(e))}")
        except EOFError:
            console.print("\nExiting...")
            return
        print()  # blank line between operations


def run() -> None:
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    app()


if __name__ == "__main__":
    run()

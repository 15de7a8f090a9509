import os
import json
from typing import Any, Dict, List, Optional
from rich.console import Console
from rich.table import Table
from rich.panel import Panel

# Environment variable to control CLI output mode
# Allowed values: 'plain' (default), 'json', 'rich'
OUTPUT_MODE_ENV = "BOOKS_CLI_OUTPUT"

_console = Console()


def set_output_mode(mode: str) -> None:
    mode = (mode or "").lower().strip()
    if mode in {"plain", "json", "rich"}:
        os.environ[OUTPUT_MODE_ENV] = mode


def get_output_mode() -> str:
    return os.environ.get(OUTPUT_MODE_ENV, "plain").lower()


def _line(book: Any) -> str:
    return f"{book.id} - {book.book_name} by {book.author} ({book.published_date})"


def print_book_list(books: List[Any], pagination: Optional[Dict[str, Any]] = None,
                    total: Optional[int] = None) -> None:
    """Print books in the current output mode.
    - plain: one 'id - name by author (date)' line per book, or 'No books found.'
    - json: {"data": [...], "pagination"?: {...}, "total"?: n}
    - rich: a Rich table with the pagination block as caption
    """
    mode = get_output_mode()

    if mode == "json":
        payload: Dict[str, Any] = {"data": [b.to_dict() for b in books]}
        if pagination is not None:
            payload["pagination"] = pagination
        if total is not None:
            payload["total"] = total
        print(json.dumps(payload, ensure_ascii=False))
        return

    if not books:
        print("No books found.")
        if total is not None:
            print(f"Total: {total}")
        return

    if mode == "rich":
        caption = None
        if pagination:
            caption = (f"Page {pagination['current_page']}/{pagination['total_pages']}"
                       f" - {pagination['total_books']} books")
        table = Table(title="📚 Books", caption=caption, show_lines=True, header_style="bold cyan")
        table.add_column("ID", style="magenta", no_wrap=True)
        table.add_column("Name", style="white")
        table.add_column("Author", style="white")
        table.add_column("Published", style="green", no_wrap=True)
        for b in books:
            table.add_row(str(b.id), b.book_name, b.author, b.published_date)
        _console.print(table)
    else:
        for b in books:
            print(_line(b))
        if pagination:
            print(f"Page {pagination['current_page']} of {pagination['total_pages']}"
                  f" ({pagination['total_books']} books)")
    if total is not None:
        print(f"Total: {total}")


def print_book(book: Any, title: str = "Book") -> None:
    mode = get_output_mode()

    if mode == "json":
        print(json.dumps(book.to_dict(), ensure_ascii=False))
    elif mode == "rich":
        content = (f"[bold]Name:[/] {book.book_name}\n[bold]Author:[/] {book.author}\n"
                   f"[bold]Published:[/] {book.published_date}\n[bold]Description:[/] {book.description or ''}")
        _console.print(Panel.fit(content, title=f"{title} #{book.id}", border_style="blue"))
    else:
        print(title)
        print(f"ID: {book.id}")
        print(f"Name: {book.book_name}")
        print(f"Author: {book.author}")
        print(f"Published: {book.published_date}")
        print(f"Description: {book.description or ''}")

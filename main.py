import os
import subprocess
import sys
from contextlib import contextmanager
from typing import Iterator, Optional

import typer

from config import settings
from database import BookStore
from errors import LibraryError
from library import Library
from ui_helpers import print_book, print_book_list, set_output_mode

APP_NAME = "Book Management CLI"

app = typer.Typer(help=APP_NAME)

_state = {"db_file": None}


def _db_file() -> str:
    return _state["db_file"] or settings.database_file


@contextmanager
def open_library() -> Iterator[Library]:
    """Open a store on the configured database file for the duration of one command."""
    store = BookStore(
        _db_file(),
        pool_size=1,
        timeout=settings.database_timeout,
        acquire_timeout=settings.database_acquire_timeout,
    )
    try:
        store.initialize()
        yield Library(store)
    except LibraryError as e:
        print(f"Error: {e.message}")
        raise typer.Exit(code=1)
    finally:
        store.close()


@app.callback()
def _global_options(
    output: Optional[str] = typer.Option(
        None, "--output", "-o", help="Output format: plain | json | rich (default: plain)"
    ),
    db_file: Optional[str] = typer.Option(
        None, "--db-file", help="SQLite database file (default: LIBRARY_DB_FILE or books.db)"
    ),
):
    """Global options for the CLI."""
    if output:
        set_output_mode(output)
    _state["db_file"] = db_file


@app.command("init-db")
def cli_init_db():
    """Create the books table if it does not exist."""
    with open_library():
        pass
    print(f"Database initialized: {_db_file()}")


@app.command("list")
def cli_list(
    page: Optional[str] = typer.Option(None, "--page", "-p", help="Page number (default 1)"),
    limit: Optional[str] = typer.Option(None, "--limit", "-l", help="Books per page (default 4)"),
    search: Optional[str] = typer.Option(None, "--search", "-s", help="Substring of name or description"),
):
    """List books, newest first."""
    with open_library() as lib:
        result = lib.list_books(page=page, limit=limit, search=search)
    print_book_list(result.books, result.pagination())


@app.command("find")
def cli_find(book_id: str):
    """Show a single book by id."""
    with open_library() as lib:
        book = lib.get_book(book_id)
    print_book(book, "Book Found")


@app.command("search")
def cli_search(
    name: Optional[str] = typer.Option(None, "--name", "-n", help="Substring of book_name"),
    description: Optional[str] = typer.Option(None, "--description", "-d", help="Substring of description"),
):
    """Search books; every given filter must match."""
    with open_library() as lib:
        books = lib.search_books(book_name=name, description=description)
    print_book_list(books, total=len(books))


@app.command("add")
def cli_add(
    book_name: str,
    author: str,
    published_date: str,
    description: Optional[str] = typer.Option(None, "--description", "-d", help="Book description"),
):
    """Add a new book."""
    with open_library() as lib:
        book = lib.create_book(book_name, author, published_date, description)
    print(f"Successfully added: {book.book_name} by {book.author} (id {book.id})")


@app.command("describe")
def cli_describe(book_id: str, description: str):
    """Replace a book's description."""
    with open_library() as lib:
        book = lib.update_book(book_id, description)
    print(f"Description updated for book {book.id}.")


@app.command("remove")
def cli_remove(book_id: str):
    """Delete a book by id."""
    with open_library() as lib:
        book = lib.delete_book(book_id)
    print(f"Book {book.id} ({book.book_name}) has been removed.")


@app.command("serve")
def cli_serve(
    host: Optional[str] = typer.Option(None, "--host", help="Bind address (default API_HOST)"),
    port: Optional[int] = typer.Option(None, "--port", help="Port (default API_PORT)"),
    reload: bool = typer.Option(False, "--reload", help="Restart on code changes"),
):
    """Start the HTTP API with uvicorn."""
    host = host or settings.api_host
    port = int(port or settings.api_port)
    print(f"Starting {settings.app_name} on http://{host}:{port}/")
    args = [
        sys.executable,
        "-m", "uvicorn",
        "api:app",
        "--host", host,
        "--port", str(port),
    ]
    if reload:
        args.append("--reload")
    env = dict(os.environ, LIBRARY_DB_FILE=_db_file())
    try:
        subprocess.run(args, env=env, check=True)
    except KeyboardInterrupt:
        print("Server stopped.")
    except subprocess.CalledProcessError as e:
        print(f"Server exited with code {e.returncode}")
        raise typer.Exit(code=e.returncode)


if __name__ == "__main__":
    app()

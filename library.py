import logging
import math
from dataclasses import dataclass
from typing import Any, List, Optional

import query_builder as qb
from book import MISSING, Book
from config import settings
from database import BookStore
from errors import ConflictError, DuplicateEntryError, NotFoundError
from validators import (
    coerce_positive_int,
    parse_book_id,
    validate_description_update,
    validate_new_book,
)

logger = logging.getLogger(__name__)

# sqlite binds integers as signed 64-bit
SQLITE_MAX_INT = 2 ** 63 - 1
SQLITE_MIN_INT = -(2 ** 63)


def _sqlite_int(value: int) -> int:
    return max(SQLITE_MIN_INT, min(value, SQLITE_MAX_INT))


@dataclass
class BookPage:
    books: List[Book]
    current_page: int
    total_pages: int
    total_books: int
    books_per_page: int

    def pagination(self) -> dict:
        return {
            "current_page": self.current_page,
            "total_pages": self.total_pages,
            "total_books": self.total_books,
            "books_per_page": self.books_per_page,
        }


class Library:
    """Book operations over an injected BookStore.

    Existence checks and the writes that follow them are separate statements;
    a concurrent delete between the two is not guarded against.
    """

    def __init__(self, store: BookStore, default_page: int = settings.default_page,
                 default_page_size: int = settings.default_page_size) -> None:
        self.store = store
        self.default_page = default_page
        self.default_page_size = default_page_size

    # ------------------------- Core operations ------------------------- #
    def create_book(self, book_name: Any, author: Any, published_date: Any,
                    description: Any = None) -> Book:
        """Validate, insert and return the stored row."""
        new_book = validate_new_book(book_name, author, published_date, description)
        sql, params = qb.build_insert(
            new_book.book_name, new_book.description, new_book.author, new_book.published_date
        )
        try:
            result = self.store.execute(sql, params)
        except DuplicateEntryError as e:
            logger.info("Duplicate book rejected: %r by %r", new_book.book_name, new_book.author)
            raise ConflictError("A book with this book_name and author already exists") from e

        book = self._fetch(result.last_row_id)
        if book is None:
            raise NotFoundError("Book not found")
        logger.info("Created book %d", book.id)
        return book

    def list_books(self, page: Any = None, limit: Any = None, search: Optional[str] = None) -> BookPage:
        """One page of books, newest first, optionally filtered on name or description."""
        page = coerce_positive_int(page, self.default_page)
        limit = coerce_positive_int(limit, self.default_page_size)
        offset = (page - 1) * limit

        # A negative limit is unbounded in sqlite, and total_pages comes out negative to match.
        # Magnitudes past the 64-bit range are clamped only for the query; the
        # pagination block reports the values as given.
        (rows_sql, rows_params), (count_sql, count_params) = qb.build_list_queries(
            search, _sqlite_int(limit), _sqlite_int(offset)
        )
        rows = self.store.query(rows_sql, rows_params)
        total = self.store.query(count_sql, count_params)[0]["total"]

        return BookPage(
            books=[Book.from_dict(row) for row in rows],
            current_page=page,
            total_pages=math.ceil(total / limit),
            total_books=total,
            books_per_page=limit,
        )

    def get_book(self, book_id: Any) -> Book:
        book = self._fetch(parse_book_id(book_id))
        if book is None:
            raise NotFoundError("Book not found")
        return book

    def update_book(self, book_id: Any, description: Any = MISSING) -> Book:
        """Replace the description of an existing book and return the fresh row."""
        update = validate_description_update(description)
        existing = self.get_book(book_id)

        self.store.execute(*qb.build_update_description(existing.id, update.description))

        book = self._fetch(existing.id)
        if book is None:
            raise NotFoundError("Book not found")
        return book

    def delete_book(self, book_id: Any) -> Book:
        """Hard-delete a book; returns the row as it was before deletion."""
        existing = self.get_book(book_id)
        self.store.execute(*qb.build_delete(existing.id))
        logger.info("Deleted book %d", existing.id)
        return existing

    def search_books(self, book_name: Optional[str] = None, description: Optional[str] = None) -> List[Book]:
        """Books matching every given substring filter; no filters returns everything."""
        rows = self.store.query(*qb.build_search_query(book_name, description))
        return [Book.from_dict(row) for row in rows]

    # ------------------------- Helpers ------------------------- #
    def _fetch(self, book_id: Optional[int]) -> Optional[Book]:
        if book_id is None:
            return None
        rows = self.store.query(*qb.build_select_by_id(book_id))
        return Book.from_dict(rows[0]) if rows else None

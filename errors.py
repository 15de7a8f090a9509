"""Error types shared by the store, the book operations and the HTTP layer."""


class LibraryError(Exception):
    """Base class for every failure the book service reports."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ValidationError(LibraryError):
    """Malformed or missing request input; always correctable by the client."""


class NotFoundError(LibraryError):
    """The requested book id has no row."""


class ConflictError(LibraryError):
    """A book with the same (book_name, author) pair already exists."""


class StoreError(LibraryError):
    """Any failure raised by the persistence layer."""


class DuplicateEntryError(StoreError):
    """The store rejected a write because of a uniqueness constraint."""

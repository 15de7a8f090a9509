from __future__ import annotations

from dataclasses import dataclass
from typing import Any


class _Missing:
    """Marks a request field that was absent, as opposed to sent as null."""

    def __repr__(self) -> str:
        return "MISSING"

    def __bool__(self) -> bool:
        return False


MISSING: Any = _Missing()


class Book:
    """A single row of the books table."""

    def __init__(self, id: int, book_name: str, author: str, published_date: str,
                 description: str | None = "", created_at: str | None = None) -> None:
        self.id = id
        self.book_name = book_name
        self.author = author
        self.published_date = published_date
        self.description = description
        self.created_at = created_at

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Book):
            return NotImplemented
        return self.to_dict() == other.to_dict()

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "book_name": self.book_name,
            "description": self.description,
            "author": self.author,
            "published_date": self.published_date,
            "created_at": self.created_at,
        }

    @staticmethod
    def from_dict(data: dict) -> "Book":
        return Book(
            id=data["id"],
            book_name=data["book_name"],
            author=data["author"],
            published_date=data["published_date"],
            description=data.get("description"),
            created_at=data.get("created_at"),
        )


@dataclass(frozen=True)
class NewBook:
    """Validated input for creating a book."""
    book_name: str
    author: str
    published_date: str
    description: str = ""


@dataclass(frozen=True)
class DescriptionUpdate:
    """Validated input for replacing a book's description; None clears it."""
    description: str | None

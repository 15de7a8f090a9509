import re
from datetime import date, datetime
from typing import Any, Optional

from book import MISSING, DescriptionUpdate, NewBook
from errors import ValidationError

MAX_NAME_LENGTH = 150

_LEADING_INT = re.compile(r"^\s*([+-]?\d+)")


class DateValidator:
    """Calendar date parsing for published_date."""

    @staticmethod
    def parse_date(raw: Any) -> Optional[date]:
        if not isinstance(raw, str) or not raw.strip():
            return None
        text = raw.strip()
        try:
            return date.fromisoformat(text)
        except ValueError:
            pass
        # Accept full timestamps and keep their date part
        try:
            return datetime.fromisoformat(text.replace("Z", "+00:00")).date()
        except ValueError:
            return None

    @staticmethod
    def is_valid_date(raw: Any) -> bool:
        return DateValidator.parse_date(raw) is not None


class TextValidator:

    @staticmethod
    def within_length(text: str, limit: int = MAX_NAME_LENGTH) -> bool:
        return len(text) <= limit


def validate_new_book(book_name: Any, author: Any, published_date: Any,
                      description: Any = None) -> NewBook:
    """Check create input and return it as a NewBook.

    Rules run in a fixed order and the first failure is raised:
    required fields, book_name length, author length, date format.
    """
    if not book_name or not author or not published_date:
        raise ValidationError("book_name, author and published_date are required")

    if not TextValidator.within_length(book_name):
        raise ValidationError(f"book_name must be at most {MAX_NAME_LENGTH} characters")

    if not TextValidator.within_length(author):
        raise ValidationError(f"author must be at most {MAX_NAME_LENGTH} characters")

    parsed = DateValidator.parse_date(published_date)
    if parsed is None:
        raise ValidationError("published_date must be a valid date")

    return NewBook(
        book_name=book_name,
        author=author,
        published_date=parsed.isoformat(),
        description=description or "",
    )


def validate_description_update(description: Any = MISSING) -> DescriptionUpdate:
    """Only a completely absent description is rejected; null and "" are accepted."""
    if description is MISSING:
        raise ValidationError("description is required")
    return DescriptionUpdate(description=description)


def coerce_positive_int(raw: Any, default: int) -> int:
    """Lenient integer parse for pagination input.

    Takes the leading integer of the text ("3abc" -> 3). Missing, non-numeric
    and zero values fall back to ``default``; nothing here raises.
    Negative values and values of any magnitude are returned as parsed.
    """
    if raw is None:
        return default
    if isinstance(raw, bool):
        return default
    if isinstance(raw, int):
        return raw or default
    match = _LEADING_INT.match(str(raw))
    if not match:
        return default
    return int(match.group(1)) or default


def parse_book_id(raw: Any) -> Optional[int]:
    """Return the integer id, or None when it cannot name any row."""
    if isinstance(raw, bool):
        return None
    if isinstance(raw, int):
        return raw
    text = str(raw).strip()
    if not re.fullmatch(r"[+-]?\d+", text):
        return None
    return int(text)

"""Parameterized SQL for the books table.

Every fragment is appended together with the values for its placeholders, so
the parameter list always lines up with the ``?`` slots in the statement.
"""

from typing import Any, List, Optional, Tuple

Statement = Tuple[str, List[Any]]

SELECT_BY_ID = "SELECT * FROM books WHERE id = ?"
NEWEST_FIRST = " ORDER BY created_at DESC, id DESC"


class QueryBuilder:

    def __init__(self, base: str, *params: Any) -> None:
        self._parts: List[str] = [base]
        self._params: List[Any] = list(params)

    def append(self, fragment: str, *params: Any) -> "QueryBuilder":
        expected = fragment.count("?")
        if expected != len(params):
            raise ValueError(
                f"Fragment {fragment!r} has {expected} placeholder(s) but {len(params)} value(s)"
            )
        self._parts.append(fragment)
        self._params.extend(params)
        return self

    def build(self) -> Statement:
        return "".join(self._parts), list(self._params)


def like_pattern(term: str) -> str:
    return f"%{term}%"


def build_insert(book_name: str, description: Optional[str], author: str, published_date: str) -> Statement:
    return (
        "INSERT INTO books (book_name, description, author, published_date) VALUES (?, ?, ?, ?)",
        [book_name, description or "", author, published_date],
    )


def build_select_by_id(book_id: int) -> Statement:
    return SELECT_BY_ID, [book_id]


def build_update_description(book_id: int, description: Optional[str]) -> Statement:
    return "UPDATE books SET description = ? WHERE id = ?", [description, book_id]


def build_delete(book_id: int) -> Statement:
    return "DELETE FROM books WHERE id = ?", [book_id]


def build_list_queries(search: Optional[str], limit: int, offset: int) -> Tuple[Statement, Statement]:
    """Return the page query and the matching count query.

    Both share the same optional filter and filter values; only the page
    query gets ordering, LIMIT and OFFSET.
    """
    rows = QueryBuilder("SELECT * FROM books")
    count = QueryBuilder("SELECT COUNT(*) AS total FROM books")
    if search:
        pattern = like_pattern(search)
        for builder in (rows, count):
            builder.append(" WHERE book_name LIKE ? OR description LIKE ?", pattern, pattern)
    rows.append(NEWEST_FIRST).append(" LIMIT ? OFFSET ?", limit, offset)
    return rows.build(), count.build()


def build_search_query(book_name: Optional[str] = None, description: Optional[str] = None) -> Statement:
    builder = QueryBuilder("SELECT * FROM books WHERE 1=1")
    if book_name:
        builder.append(" AND book_name LIKE ?", like_pattern(book_name))
    if description:
        builder.append(" AND description LIKE ?", like_pattern(description))
    builder.append(NEWEST_FIRST)
    return builder.build()

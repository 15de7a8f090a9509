import pytest

from book import MISSING
from errors import ConflictError, NotFoundError, StoreError, ValidationError


def _add_books(lib, count):
    return [lib.create_book(f"Book {i}", f"Author {i}", "2024-01-15", f"Description {i}")
            for i in range(1, count + 1)]


def test_create_and_get(lib):
    book = lib.create_book("Ulysses", "James Joyce", "1922-02-02", "Stream of consciousness")
    assert book.id is not None
    assert book.book_name == "Ulysses"
    assert book.author == "James Joyce"
    assert book.published_date == "1922-02-02"
    assert book.description == "Stream of consciousness"
    assert book.created_at
    assert lib.get_book(book.id) == book


def test_create_without_description_stores_empty_string(lib):
    book = lib.create_book("Sapiens", "Yuval Noah Harari", "2011-01-01")
    assert book.description == ""


def test_create_duplicate_name_author(lib):
    lib.create_book("Dune", "Frank Herbert", "1965-08-01", "first")
    with pytest.raises(ConflictError, match="already exists"):
        lib.create_book("Dune", "Frank Herbert", "1970-01-01", "second")
    assert lib.list_books().total_books == 1
    assert lib.search_books()[0].description == "first"


def test_create_validation_runs_before_insert(lib):
    with pytest.raises(ValidationError):
        lib.create_book("Name", "Author", "not-a-date")
    assert lib.list_books().total_books == 0


def test_list_defaults_and_pagination(lib):
    books = _add_books(lib, 10)
    page = lib.list_books(page="2", limit="4")
    # Newest first, so page 2 holds the 5th-8th newest rows
    assert [b.id for b in page.books] == [b.id for b in reversed(books)][4:8]
    assert page.pagination() == {
        "current_page": 2,
        "total_pages": 3,
        "total_books": 10,
        "books_per_page": 4,
    }


def test_list_non_numeric_pagination_uses_defaults(lib):
    _add_books(lib, 6)
    assert lib.list_books(page="abc", limit="xyz").pagination() == lib.list_books().pagination()
    page = lib.list_books(page="abc", limit="xyz")
    assert page.current_page == 1
    assert page.books_per_page == 4
    assert len(page.books) == 4


def test_list_past_the_end(lib):
    _add_books(lib, 3)
    page = lib.list_books(page=5, limit=2)
    assert page.books == []
    assert page.total_pages == 2
    assert page.total_books == 3


def test_list_page_beyond_integer_range(lib):
    _add_books(lib, 3)
    page = lib.list_books(page="9999999999999999999", limit=2)
    assert page.books == []
    assert page.current_page == 9999999999999999999
    assert page.total_pages == 2
    assert page.total_books == 3


def test_list_limit_beyond_integer_range(lib):
    _add_books(lib, 3)
    page = lib.list_books(page=2, limit="99999999999999999999")
    assert page.books == []
    assert page.total_pages == 1
    assert page.books_per_page == 99999999999999999999

    page = lib.list_books(limit="99999999999999999999")
    assert len(page.books) == 3


def test_list_negative_limit_returns_everything(lib):
    _add_books(lib, 3)
    page = lib.list_books(limit=-1)
    assert len(page.books) == 3
    assert page.total_pages == -3
    assert page.books_per_page == -1


def test_list_empty_table(lib):
    page = lib.list_books()
    assert page.books == []
    assert page.total_pages == 0


def test_list_search_matches_name_or_description(lib):
    lib.create_book("Python Tricks", "Dan Bader", "2017-10-25")
    lib.create_book("Fluent Code", "Luciano Ramalho", "2015-08-20", "Idiomatic python")
    lib.create_book("Dune", "Frank Herbert", "1965-08-01", "Desert planet")
    page = lib.list_books(search="ython")
    assert {b.book_name for b in page.books} == {"Python Tricks", "Fluent Code"}
    assert page.total_books == 2


def test_search_and_semantics(lib):
    lib.create_book("Python Tricks", "Dan Bader", "2017-10-25", "Short lessons")
    lib.create_book("Python Deep Dive", "Someone", "2020-01-01", "Long lessons")
    lib.create_book("Dune", "Frank Herbert", "1965-08-01", "Long desert saga")
    results = lib.search_books(book_name="Python", description="Long")
    assert [b.book_name for b in results] == ["Python Deep Dive"]


def test_search_without_filters_returns_all_newest_first(lib):
    books = _add_books(lib, 3)
    assert [b.id for b in lib.search_books()] == [b.id for b in reversed(books)]


def test_update_description(lib):
    book = lib.create_book("Dune", "Frank Herbert", "1965-08-01", "old")
    updated = lib.update_book(book.id, "new")
    assert updated.description == "new"
    assert updated.book_name == book.book_name
    assert lib.get_book(book.id).description == "new"


def test_update_with_empty_and_null_description(lib):
    book = lib.create_book("Dune", "Frank Herbert", "1965-08-01", "old")
    assert lib.update_book(book.id, "").description == ""
    assert lib.update_book(book.id, None).description is None


def test_update_missing_description(lib):
    book = lib.create_book("Dune", "Frank Herbert", "1965-08-01", "old")
    with pytest.raises(ValidationError, match="description is required"):
        lib.update_book(book.id, MISSING)
    assert lib.get_book(book.id).description == "old"


def test_update_validates_before_existence(lib):
    with pytest.raises(ValidationError):
        lib.update_book(999)


def test_update_not_found(lib):
    with pytest.raises(NotFoundError):
        lib.update_book(999, "anything")
    assert lib.list_books().total_books == 0


def test_delete_returns_snapshot(lib):
    book = lib.create_book("Dune", "Frank Herbert", "1965-08-01", "desc")
    deleted = lib.delete_book(book.id)
    assert deleted == book
    with pytest.raises(NotFoundError):
        lib.get_book(book.id)
    with pytest.raises(NotFoundError):
        lib.delete_book(book.id)


def test_get_with_non_numeric_id(lib):
    with pytest.raises(NotFoundError, match="Book not found"):
        lib.get_book("abc")


def test_store_failures_propagate(lib, monkeypatch):
    def broken(*args, **kwargs):
        raise StoreError("disk I/O error")

    monkeypatch.setattr(lib.store, "query", broken)
    with pytest.raises(StoreError):
        lib.list_books()

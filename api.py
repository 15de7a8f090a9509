import logging
import time
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import APIRouter, Body, Depends, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel
from starlette.exceptions import HTTPException as StarletteHTTPException

from book import MISSING
from config import Settings, settings
from database import BookStore
from errors import LibraryError
from library import Library
from response_mapper import (
    SERVER_ERROR_MESSAGE,
    envelope,
    error_response,
    error_response_for,
    status_for,
    success_response,
)

logging.basicConfig(
    level=getattr(logging, settings.log_level, logging.INFO),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

BASE_PATH = "/api/books"

ENDPOINTS = {
    f"POST {BASE_PATH}": "Create new book",
    f"GET {BASE_PATH}": "Get all books with pagination",
    f"GET {BASE_PATH}/:id": "Get single book",
    f"PUT {BASE_PATH}/:id": "Update book description",
    f"DELETE {BASE_PATH}/:id": "Delete book",
    f"GET {BASE_PATH}/search": "Search books",
}


# --- Models ---
class BookCreateModel(BaseModel):
    book_name: str | None = None
    author: str | None = None
    published_date: str | None = None
    description: str | None = None


class UpdateBookModel(BaseModel):
    description: str | None = None


# --- Dependencies ---
def get_library(request: Request) -> Library:
    return request.app.state.library


# --- Routes ---
router = APIRouter(prefix=BASE_PATH)


@router.post("")
def create_book(payload: Optional[BookCreateModel] = Body(default=None),
                library: Library = Depends(get_library)):
    """Create a book; 201 with the stored row."""
    payload = payload or BookCreateModel()
    book = library.create_book(
        payload.book_name, payload.author, payload.published_date, payload.description
    )
    return success_response(book.to_dict(), "Book created successfully", status_code=201)


@router.get("")
def list_books(page: Optional[str] = None, limit: Optional[str] = None, search: Optional[str] = None,
               library: Library = Depends(get_library)):
    """Paginated list, newest first. Unparseable page/limit fall back to the defaults."""
    result = library.list_books(page=page, limit=limit, search=search)
    return success_response(
        [b.to_dict() for b in result.books],
        pagination=result.pagination(),
    )


# Must be registered before /{book_id} so "search" is not taken as an id
@router.get("/search")
def search_books(book_name: Optional[str] = None, description: Optional[str] = None,
                 library: Library = Depends(get_library)):
    books = library.search_books(book_name=book_name, description=description)
    return success_response([b.to_dict() for b in books], total=len(books))


@router.get("/{book_id}")
def get_book(book_id: str, library: Library = Depends(get_library)):
    return success_response(library.get_book(book_id).to_dict())


@router.put("/{book_id}")
def update_book(book_id: str, update: Optional[UpdateBookModel] = Body(default=None),
                library: Library = Depends(get_library)):
    """Replace the description. The field must be sent, but null or "" are allowed."""
    if update is not None and "description" in update.model_fields_set:
        description = update.description
    else:
        description = MISSING
    book = library.update_book(book_id, description)
    return success_response(book.to_dict(), "Book description updated successfully")


@router.delete("/{book_id}")
def delete_book(book_id: str, library: Library = Depends(get_library)):
    book = library.delete_book(book_id)
    return success_response(book.to_dict(), "Book deleted successfully")


# --- Error handlers ---
async def handle_library_error(request: Request, exc: LibraryError):
    if status_for(exc) >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc, exc_info=exc)
    return error_response_for(exc)


async def handle_request_validation_error(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    if errors:
        first = errors[0]
        location = ".".join(str(part) for part in first.get("loc", ()))
        message = f"Invalid request: {location}: {first.get('msg')}"
    else:
        message = "Invalid request"
    return error_response(message, 400)


async def handle_http_error(request: Request, exc: StarletteHTTPException):
    if exc.status_code == 404:
        return error_response("Endpoint not found", 404)
    return error_response(str(exc.detail), exc.status_code)


async def handle_unexpected_error(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path, exc_info=exc)
    return error_response(SERVER_ERROR_MESSAGE, 500)


# --- Application ---
def create_app(app_settings: Settings = settings, store: Optional[BookStore] = None) -> FastAPI:
    """Build the application. The store is opened, checked and closed by the lifespan."""

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        book_store = store or BookStore.from_settings(app_settings)
        try:
            book_store.initialize()
            book_store.ping()
        except LibraryError:
            logger.exception("Database connection failed: %s", app_settings.database_file)
            raise
        logger.info("Database connected successfully")
        app.state.library = Library(
            book_store,
            default_page=app_settings.default_page,
            default_page_size=app_settings.default_page_size,
        )
        try:
            yield
        finally:
            book_store.close()

    app = FastAPI(title=app_settings.app_name, version=app_settings.app_version, lifespan=lifespan)

    # --- CORS ---
    app.add_middleware(
        CORSMiddleware,
        allow_origins=app_settings.cors_origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # --- Request logging ---
    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        started = time.perf_counter()
        status_code = 500
        try:
            response = await call_next(request)
            status_code = response.status_code
            return response
        finally:
            elapsed_ms = (time.perf_counter() - started) * 1000
            logger.info("%s %s %d %.1fms", request.method, request.url.path, status_code, elapsed_ms)

    @app.get("/")
    def root():
        """Service metadata and endpoint directory."""
        return envelope(True, app_settings.app_name, version=app_settings.app_version, endpoints=ENDPOINTS)

    app.include_router(router)

    app.add_exception_handler(LibraryError, handle_library_error)
    app.add_exception_handler(RequestValidationError, handle_request_validation_error)
    app.add_exception_handler(StarletteHTTPException, handle_http_error)
    app.add_exception_handler(Exception, handle_unexpected_error)
    return app


app = create_app()

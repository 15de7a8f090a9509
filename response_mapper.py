"""Uniform JSON envelope used for every response.

    {"success": bool, "message"?: str, "data"?: ..., "pagination"?: {...}, "total"?: int}
"""

from typing import Any, Dict

from fastapi.responses import JSONResponse

from errors import ConflictError, LibraryError, NotFoundError, ValidationError

SERVER_ERROR_MESSAGE = "Internal server error"

_STATUS_BY_ERROR = (
    (ValidationError, 400),
    (ConflictError, 400),
    (NotFoundError, 404),
)


def envelope(success: bool, message: str | None = None, data: Any = None, **extra: Any) -> Dict[str, Any]:
    body: Dict[str, Any] = {"success": success}
    if message is not None:
        body["message"] = message
    if data is not None:
        body["data"] = data
    for key, value in extra.items():
        if value is not None:
            body[key] = value
    return body


def success_response(data: Any = None, message: str | None = None, status_code: int = 200,
                     **extra: Any) -> JSONResponse:
    return JSONResponse(status_code=status_code, content=envelope(True, message, data, **extra))


def error_response(message: str, status_code: int) -> JSONResponse:
    return JSONResponse(status_code=status_code, content=envelope(False, message))


def status_for(exc: LibraryError) -> int:
    for error_type, status_code in _STATUS_BY_ERROR:
        if isinstance(exc, error_type):
            return status_code
    return 500


def error_response_for(exc: LibraryError) -> JSONResponse:
    """Client errors keep their message; store errors become an opaque 500."""
    status_code = status_for(exc)
    message = exc.message if status_code < 500 else SERVER_ERROR_MESSAGE
    return error_response(message, status_code)

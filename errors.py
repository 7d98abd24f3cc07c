import logging
from contextlib import contextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pymongo.errors import PyMongoError

logger = logging.getLogger(__name__)


class ApiError(Exception):
    """An error with a status code and a message that is safe to show callers."""

    status_code = 500
    message = "Internal server error"

    def __init__(self, message=None):
        if message is not None:
            self.message = message
        super().__init__(self.message)


class MissingFields(ApiError):
    status_code = 400
    message = "Missing required fields (name, email, password)."


class ValidationError(ApiError):
    status_code = 400
    message = "Validation failed"


class MalformedId(ApiError):
    status_code = 400
    message = "Invalid ID format."


class InvalidCredentials(ApiError):
    status_code = 401
    message = "Invalid credentials or not an admin."


class AdminAlreadyExists(ApiError):
    status_code = 403
    message = "Admin user already exists. Setup blocked."


class NotFound(ApiError):
    status_code = 404
    message = "Not found."


class DuplicateEmail(ApiError):
    status_code = 409
    message = "This email address is already registered."


class StoreUnavailable(ApiError):
    status_code = 500
    message = "Database operation failed"


@contextmanager
def store_errors(message):
    # DuplicateKeyError must be caught by the caller inside this block
    try:
        yield
    except PyMongoError as exc:
        logger.error("%s: %s", message, exc)
        raise StoreUnavailable(message) from exc


async def api_error_handler(request: Request, exc: ApiError):
    return JSONResponse(status_code=exc.status_code, content={"message": exc.message})


async def validation_error_handler(request: Request, exc: RequestValidationError):
    errors = []
    for err in exc.errors():
        loc = [str(part) for part in err.get("loc", ()) if part != "body"]
        errors.append({"field": ".".join(loc), "message": err.get("msg", "")})
    return JSONResponse(
        status_code=ValidationError.status_code,
        content={"message": ValidationError.message, "errors": errors},
    )


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(ApiError, api_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)

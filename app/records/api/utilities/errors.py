# app/records/api/utilities/errors.py

from fastapi import HTTPException, status

from ...services.errors import (
    ServiceError, InvalidInputError, ConflictError, NotFoundError,
    AuthenticationError, AuthorizationError, StoreError
)

# Most specific classes first; BatchWriteError is caught through StoreError.
_STATUS_BY_ERROR = (
    (InvalidInputError, status.HTTP_400_BAD_REQUEST),
    (ConflictError, status.HTTP_400_BAD_REQUEST),
    (NotFoundError, status.HTTP_404_NOT_FOUND),
    (AuthenticationError, status.HTTP_401_UNAUTHORIZED),
    (AuthorizationError, status.HTTP_403_FORBIDDEN),
    (StoreError, status.HTTP_500_INTERNAL_SERVER_ERROR),
)


def to_http_exception(error: ServiceError) -> HTTPException:
    """Translates a service layer exception into the HTTP error returned to the client."""
    for error_class, status_code in _STATUS_BY_ERROR:
        if isinstance(error, error_class):
            return HTTPException(status_code=status_code, detail=str(error))
    return HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Internal server error")


def format_validation_errors(errors) -> str:
    """Joins pydantic/FastAPI error entries into one readable ``field: message`` line."""
    problems = []
    for error in errors:
        location = ".".join(str(part) for part in error.get("loc", ()) if part != "body")
        problems.append(f"{location}: {error.get('msg')}" if location else error.get("msg"))
    return "; ".join(problems) or "Invalid request"

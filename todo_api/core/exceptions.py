"""
Custom exceptions for the Todo API.

This module defines a small exception hierarchy where every error knows
the HTTP status it maps to. Error responses are plain text: the status code
plus the exception message, with no machine-readable error code.

Design pattern: Base exception → Specific exceptions
- TodoAPIError: Base for everything the handlers turn into a response
- InvalidRequestError: Client input problems (400)
- TodoNotFoundError: Lookup of a single missing todo (404)
- StoreError: Anything that goes wrong inside the embedded store (500)
"""


class TodoAPIError(Exception):
    """
    Base exception for all errors surfaced through the HTTP layer.

    Attributes:
        message: Text written verbatim as the response body
        status_code: HTTP status code for the response
    """

    status_code: int = 500

    def __init__(self, message: str, status_code: int | None = None):
        self.message = message
        if status_code is not None:
            self.status_code = status_code
        super().__init__(self.message)

    def __str__(self) -> str:
        return self.message


class InvalidRequestError(TodoAPIError):
    """
    Raised for malformed client input.

    Common causes:
    - Request body is not valid JSON or has wrongly typed fields
    - Path id is not a decimal unsigned 64-bit integer

    HTTP Status: 400 Bad Request
    """

    status_code = 400


class TodoNotFoundError(TodoAPIError):
    """
    Raised when a single todo lookup finds nothing.

    Update and delete never raise this; they upsert and no-op respectively.

    HTTP Status: 404 Not Found
    """

    status_code = 404

    def __init__(self, message: str = "Todo not found"):
        super().__init__(message)


class StoreError(TodoAPIError):
    """
    Base exception for failures of the embedded store.

    The message carries the raw underlying error text, which is what
    clients receive in the 500 response body.

    HTTP Status: 500 Internal Server Error
    """

    status_code = 500


class StoreOpenError(StoreError):
    """Raised when the store file cannot be created, opened or locked."""


class TransactionNotWritableError(StoreError):
    """Raised when a mutation is attempted inside a read transaction."""

    def __init__(self, message: str = "tx not writable"):
        super().__init__(message)


class CollectionNotFoundError(StoreError):
    """Raised when a transaction addresses a collection that does not exist."""

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"collection not found: {name}")


class DecodeError(StoreError):
    """
    Raised when a stored value cannot be deserialized.

    A single bad record aborts the whole read; there is no best-effort
    listing.
    """

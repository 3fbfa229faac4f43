"""
Result envelope shared by every service operation.

Domain-rule violations travel back to the caller as a failed Result instead of
an exception; the API layer maps the error type to an HTTP status.
"""

from enum import Enum
from typing import Generic, Optional, TypeVar

T = TypeVar("T")


class ResultErrorType(str, Enum):
    """Failure classification carried by a Result."""
    NONE = "none"
    NOT_FOUND = "not_found"
    BAD_REQUEST = "bad_request"
    FORBIDDEN = "forbidden"
    SERVER_ERROR = "server_error"


class Result(Generic[T]):
    """
    Success/failure wrapper.

    Check ``is_success`` before reading ``data``: a failed result always
    exposes ``None`` as its payload.
    """

    __slots__ = ("_data", "is_success", "error_type", "error_message")

    def __init__(
        self,
        data: Optional[T],
        is_success: bool,
        error_type: ResultErrorType,
        error_message: Optional[str],
    ):
        self._data = data
        self.is_success = is_success
        self.error_type = error_type
        self.error_message = error_message

    @classmethod
    def success(cls, data: Optional[T] = None) -> "Result[T]":
        return cls(data, True, ResultErrorType.NONE, None)

    @classmethod
    def failure(cls, error_type: ResultErrorType, error_message: Optional[str] = None) -> "Result[T]":
        if error_type is ResultErrorType.NONE:
            raise ValueError("A failed result needs an error type other than NONE")
        return cls(None, False, error_type, error_message)

    @classmethod
    def propagate(cls, other: "Result") -> "Result[T]":
        """Re-wrap another failed result, keeping its kind and message."""
        return cls.failure(other.error_type, other.error_message)

    @property
    def data(self) -> Optional[T]:
        return self._data if self.is_success else None

    def __repr__(self) -> str:
        if self.is_success:
            return f"Result.success({self._data!r})"
        return f"Result.failure({self.error_type.value}, {self.error_message!r})"

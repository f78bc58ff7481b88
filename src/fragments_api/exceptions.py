"""Exception types raised by the fragment storage core."""

from typing import Optional


class FragmentsError(Exception):
    """Base class for all fragment storage errors"""
    pass


class InvalidKeyError(FragmentsError, ValueError):
    """Raised when an owner or fragment key is not a non-empty string"""

    def __init__(self, primary_key, secondary_key=None):
        self.primary_key = primary_key
        self.secondary_key = secondary_key
        super().__init__(
            f"primary_key and secondary_key strings are required, "
            f"got primary_key={primary_key!r}, secondary_key={secondary_key!r}"
        )


class UnsupportedTypeError(FragmentsError, ValueError):
    """Raised when a content type is outside the type registry"""

    def __init__(self, content_type):
        self.content_type = content_type
        super().__init__(f"Unsupported type: {content_type!r}")


class NotFoundError(FragmentsError, KeyError):
    """Raised when a metadata record, payload or delete target does not exist"""

    def __init__(self, owner_id: str, fragment_id: str, what: str = "fragment"):
        self.owner_id = owner_id
        self.fragment_id = fragment_id
        self.what = what
        super().__init__(owner_id, fragment_id)

    def __str__(self) -> str:
        return f"{self.what} not found for owner_id={self.owner_id}, id={self.fragment_id}"


class BackendUnavailableError(FragmentsError):
    """Raised when the persistence layer cannot be reached.

    Carries enough context to log the failed call. The original transport
    exception is chained as ``__cause__``.
    """

    def __init__(
        self,
        operation: str,
        owner_id: Optional[str] = None,
        fragment_id: Optional[str] = None,
        reason: Optional[str] = None,
    ):
        self.operation = operation
        self.owner_id = owner_id
        self.fragment_id = fragment_id
        self.reason = reason
        message = f"Backend unavailable during {operation} (owner_id={owner_id}, id={fragment_id})"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)


class TypeMismatchError(FragmentsError, ValueError):
    """Raised when a payload replacement changes the fragment's mime type"""

    def __init__(self, expected: str, actual: str):
        self.expected = expected
        self.actual = actual
        super().__init__(f"Content-Type {actual!r} does not match fragment type {expected!r}")

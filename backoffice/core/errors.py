"""Error taxonomy shared by the authorization and audit core"""
from enum import Enum


class RejectionKind(str, Enum):
    UNAUTHENTICATED = "unauthenticated"
    PERMISSION_DENIED = "permission_denied"


class Rejection(Exception):
    """A terminal authorization failure. ``kind`` selects 401 or 403 at the API layer."""

    def __init__(self, kind: RejectionKind, message: str):
        super().__init__(message)
        self.kind = kind
        self.message = message

    @classmethod
    def unauthenticated(cls, message: str = "Invalid authentication token") -> "Rejection":
        return cls(RejectionKind.UNAUTHENTICATED, message)

    @classmethod
    def permission_denied(cls, message: str) -> "Rejection":
        return cls(RejectionKind.PERMISSION_DENIED, message)

    def __repr__(self) -> str:
        return f"Rejection(kind={self.kind.value!r}, message={self.message!r})"


class NotFoundError(Exception):
    """Referenced admin or document does not exist."""


class ConflictError(Exception):
    """A directory write would violate an admin-record policy."""


class TransientError(Exception):
    """The document store or identity provider is unavailable.

    Never retried here; the caller decides.
    """

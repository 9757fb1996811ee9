"""
Storage error taxonomy.

Every store raises these, so callers see the same error kinds whichever
backend answered the request.
"""

from enum import Enum


class StoreError(Exception):
    """Base exception for storage errors."""

    def __init__(self, message: str, code: str = "DATABASE_ERROR"):
        self.message = message
        self.code = code
        super().__init__(self.message)


class NotFoundError(StoreError):
    """Requested record (or table) does not exist."""

    def __init__(self, message: str = "Record not found"):
        super().__init__(message, "RECORD_NOT_FOUND")


class DuplicateKind(str, Enum):
    """Which uniqueness rule a create violated."""

    EMAIL = "email"
    USERNAME = "username"
    OTHER = "other"


_DUPLICATE_CODES = {
    DuplicateKind.EMAIL: ("User with this email already exists", "USER_EXISTS"),
    DuplicateKind.USERNAME: ("Username is already taken", "USERNAME_TAKEN"),
    DuplicateKind.OTHER: ("Record already exists", "DUPLICATE_RECORD"),
}


class AlreadyExistsError(StoreError):
    """A uniqueness constraint rejected a create."""

    def __init__(self, kind: DuplicateKind = DuplicateKind.OTHER):
        self.kind = kind
        message, code = _DUPLICATE_CODES[kind]
        super().__init__(message, code)


class NotConfiguredError(StoreError):
    """No usable store: the remote client has no credentials."""

    def __init__(self, message: str = "Database not configured"):
        super().__init__(message, "DATABASE_NOT_CONFIGURED")


class ConnectivityOrQueryFailure(StoreError):
    """
    Remote backend unreachable or rejected a query.

    Raised only by the remote store. The database façade absorbs it by
    switching to in-memory storage, so it never reaches route handlers.
    """

    def __init__(self, message: str = "Database error"):
        super().__init__(message, "DATABASE_ERROR")

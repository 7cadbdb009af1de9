"""Typed failures raised by the ledger engines."""

from __future__ import annotations

import enum


class ErrorKind(str, enum.Enum):
    NOT_FOUND = "NOT_FOUND"
    FORBIDDEN = "FORBIDDEN"
    VALIDATION = "VALIDATION"
    INACTIVE = "INACTIVE"
    ARCHIVED = "ARCHIVED"
    INSUFFICIENT_POINTS = "INSUFFICIENT_POINTS"
    OUT_OF_STOCK = "OUT_OF_STOCK"
    NO_STUDENTS_AVAILABLE = "NO_STUDENTS_AVAILABLE"


class LedgerError(Exception):
    """Base class for business rule failures.

    Every engine raises before issuing any write, so callers only need to
    roll the session back and surface ``kind`` and ``detail``.
    """

    kind: ErrorKind = ErrorKind.VALIDATION
    status_code: int = 400

    def __init__(self, detail: str) -> None:
        super().__init__(detail)
        self.detail = detail

    def as_dict(self) -> dict[str, str]:
        return {"error": self.kind.value, "message": self.detail}


class NotFoundError(LedgerError):
    """Entity is missing or belongs to another owner."""

    kind = ErrorKind.NOT_FOUND
    status_code = 404


class ForbiddenError(LedgerError):
    kind = ErrorKind.FORBIDDEN
    status_code = 403


class LedgerValidationError(LedgerError):
    kind = ErrorKind.VALIDATION
    status_code = 400


class InactiveError(LedgerError):
    kind = ErrorKind.INACTIVE
    status_code = 400


class ArchivedError(LedgerError):
    kind = ErrorKind.ARCHIVED
    status_code = 400


class InsufficientPointsError(LedgerError):
    kind = ErrorKind.INSUFFICIENT_POINTS
    status_code = 400


class OutOfStockError(LedgerError):
    kind = ErrorKind.OUT_OF_STOCK
    status_code = 400


class NoStudentsAvailableError(LedgerError):
    kind = ErrorKind.NO_STUDENTS_AVAILABLE
    status_code = 404

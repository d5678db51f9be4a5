from __future__ import annotations

from datetime import datetime
from typing import Any


class CoordQueryError(Exception):
    """Base error for scope resolution and filter compilation."""

    code = "E0302"


class InvalidScopeFormatError(CoordQueryError):
    """Raised when a scope token, range or date cannot be understood."""

    def __init__(self, token: str, message: str | None = None, *, code: str = "E0302") -> None:
        self.token = token
        self.code = code
        super().__init__(message or f"invalid scope '{token}'")


class InvalidFilterFieldError(CoordQueryError):
    """Raised when a filter names a field with no column mapping."""

    code = "E0420"

    def __init__(self, field: str) -> None:
        self.field = field
        super().__init__(f"invalid filter field '{field}'")


class InvalidComparatorArityError(CoordQueryError):
    """Raised when a comparator receives the wrong number of values."""

    code = "E0420"

    def __init__(self, field: str, comparator: Any, count: int) -> None:
        self.field = field
        self.comparator = comparator
        self.count = count
        sign = getattr(comparator, "value", comparator)
        if count == 0:
            message = f"filter '{field}{sign}' requires at least 1 value"
        else:
            message = f"filter '{field}{sign}' can't have more than 1 value, got {count}"
        super().__init__(message)


class InvalidFilterFormatError(CoordQueryError):
    """Raised when a textual filter entry cannot be parsed."""

    code = "E0420"

    def __init__(self, entry: str, reason: str) -> None:
        self.entry = entry
        super().__init__(f"invalid filter entry '{entry}', {reason}")


class LookupFailureError(CoordQueryError):
    """Raised when an action lookup fails for a reason other than not-found."""

    code = "E0603"

    def __init__(self, target: str, cause: Exception) -> None:
        self.target = target
        self.cause = cause
        super().__init__(f"action lookup failed for '{target}': {cause}")


class InternalInconsistencyError(CoordQueryError):
    """Raised when a nominal time that must map to one action maps to none."""

    code = "E0603"

    def __init__(self, job_id: str, nominal_time: datetime) -> None:
        self.job_id = job_id
        self.nominal_time = nominal_time
        super().__init__(
            f"coordinator action for job '{job_id}' at nominal time {nominal_time.isoformat()} is missing"
        )

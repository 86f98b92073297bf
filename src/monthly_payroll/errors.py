"""Error taxonomy shared by the payroll services and the HTTP layer."""

from __future__ import annotations


class PayrollError(Exception):
    """Base class for all engine errors."""

    code = "PAYROLL_ERROR"


class ValidationError(PayrollError):
    """Raised for caller-fixable input problems (bad amount, kind, year/month)."""

    code = "VALIDATION_ERROR"

    def __init__(self, message: str, field: str | None = None):
        self.field = field
        super().__init__(message)


class PermissionDenied(PayrollError):
    """Raised when a non-admin caller attempts an admin-only operation."""

    code = "PERMISSION_DENIED"

    def __init__(self, action: str, email: str | None = None):
        self.action = action
        self.email = email
        super().__init__(f"Admins only: {email or 'anonymous'} may not {action}")


class NotFound(PayrollError):
    """Raised when a referenced employee or period does not exist."""

    code = "NOT_FOUND"

    def __init__(self, entity: str, key: str):
        self.entity = entity
        self.key = key
        super().__init__(f"{entity} {key} not found")


class LockedPeriod(PayrollError):
    """Raised when a LOCKED period is asked to rebuild or accept new inputs."""

    code = "PERIOD_LOCKED"

    def __init__(self, year: int, month: int, action: str = "build"):
        self.year = year
        self.month = month
        self.action = action
        super().__init__(
            f"Period {year:04d}-{month:02d} is LOCKED; cannot {action} (unlock it first)"
        )


class StorageError(PayrollError):
    """Raised when the underlying store fails. The transaction has been rolled back."""

    code = "STORAGE_ERROR"

    def __init__(self, operation: str, reason: str):
        self.operation = operation
        self.reason = reason
        super().__init__(f"Storage failure during {operation}: {reason} (safe to retry)")

"""Caller identity as seen by the engine.

Sign-in and sessions belong to an outside collaborator; the engine only ever
receives an already-resolved ``CurrentUser``.
"""

from __future__ import annotations

from dataclasses import dataclass

from monthly_payroll.errors import PermissionDenied


def normalize_email(email: str) -> str:
    """Employee identity is the trimmed, lower-cased email."""
    return str(email).strip().lower()


@dataclass(frozen=True)
class CurrentUser:
    """The authenticated caller."""

    email: str
    is_admin: bool = False


def require_admin(caller: CurrentUser | None, action: str) -> None:
    """Raise PermissionDenied unless the caller is an admin."""
    if caller is None or not caller.is_admin:
        raise PermissionDenied(action, caller.email if caller else None)

"""FastAPI dependencies for dependency injection."""

from typing import Annotated

from fastapi import Depends, Header, HTTPException, Request, status

from monthly_payroll.config import Settings
from monthly_payroll.database import Database
from monthly_payroll.identity import CurrentUser, normalize_email
from monthly_payroll.models import Employee


def get_database(request: Request) -> Database:
    """Store handle attached to the application."""
    return request.app.state.database


def get_app_settings(request: Request) -> Settings:
    """Settings the application was created with."""
    return request.app.state.settings


async def get_current_user(
    database: Annotated[Database, Depends(get_database)],
    x_user_email: Annotated[str | None, Header()] = None,
) -> CurrentUser:
    """Resolve the caller from the X-User-Email header.

    Sign-in happens upstream; the header carries the authenticated email.
    Unknown emails are treated as non-admin callers.
    """
    if not x_user_email or not x_user_email.strip():
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="X-User-Email header is required",
        )
    email = normalize_email(x_user_email)
    async with database.transaction() as session:
        employee = await session.get(Employee, email)
    return CurrentUser(email=email, is_admin=bool(employee and employee.is_admin))


# Type aliases for cleaner dependency injection
DatabaseDep = Annotated[Database, Depends(get_database)]
SettingsDep = Annotated[Settings, Depends(get_app_settings)]
CurrentUserDep = Annotated[CurrentUser, Depends(get_current_user)]

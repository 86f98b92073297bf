"""Period manager - owns payroll periods and their OPEN/LOCKED lifecycle."""

from __future__ import annotations

import logging
from datetime import datetime, timezone

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from monthly_payroll.database import dialect_insert
from monthly_payroll.errors import NotFound, ValidationError
from monthly_payroll.identity import CurrentUser, require_admin
from monthly_payroll.models import Period
from monthly_payroll.services.state_machine import PeriodStateMachine, PeriodStatus

logger = logging.getLogger(__name__)

MIN_YEAR = 2000
MAX_YEAR = 2100


def validate_year_month(year: int | None, month: int | None) -> tuple[int, int]:
    """Return (year, month) as ints or raise ValidationError."""
    if year is None or month is None:
        raise ValidationError("Missing { year, month }", field="year" if year is None else "month")
    try:
        year, month = int(year), int(month)
    except (TypeError, ValueError):
        raise ValidationError("year and month must be integers") from None
    if not MIN_YEAR <= year <= MAX_YEAR:
        raise ValidationError(f"year must be between {MIN_YEAR} and {MAX_YEAR}", field="year")
    if not 1 <= month <= 12:
        raise ValidationError("month must be between 1 and 12", field="month")
    return year, month


class PeriodManager:
    """Service for payroll periods.

    Operations:
    - get_or_create: atomic find-or-insert keyed by (year, month)
    - get / get_for_update: lookups, the latter row-locking the period
    - lock / unlock: admin-only, idempotent status changes
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_or_create(self, year: int, month: int) -> Period:
        """Find the period for (year, month), creating it OPEN if missing.

        The insert is ON CONFLICT DO NOTHING against the (year, month) unique
        constraint, so concurrent first callers all read back the one row
        that won.
        """
        year, month = validate_year_month(year, month)

        period = await self.find(year, month)
        if period is not None:
            return period

        await self.session.execute(
            dialect_insert(self.session, Period)
            .values(year=year, month=month, status=PeriodStatus.OPEN.value)
            .on_conflict_do_nothing(index_elements=["year", "month"])
        )
        period = await self.find(year, month)
        if period is None:
            raise NotFound("Period", f"{year:04d}-{month:02d}")
        logger.info("Period %s ready (status %s)", period.label, period.status)
        return period

    async def find(self, year: int, month: int, for_update: bool = False) -> Period | None:
        """Look up a period without raising."""
        query = select(Period).where(Period.year == year, Period.month == month)
        if for_update:
            query = query.with_for_update()
        result = await self.session.execute(query.execution_options(populate_existing=True))
        return result.scalar_one_or_none()

    async def get(self, year: int, month: int) -> Period:
        """Get an existing period or raise NotFound."""
        year, month = validate_year_month(year, month)
        period = await self.find(year, month)
        if period is None:
            raise NotFound("Period", f"{year:04d}-{month:02d}")
        return period

    async def get_for_update(self, year: int, month: int) -> Period:
        """Get an existing period holding its row lock until the transaction ends.

        build, lock and unlock on the same period serialize on this lock.
        """
        year, month = validate_year_month(year, month)
        period = await self.find(year, month, for_update=True)
        if period is None:
            raise NotFound("Period", f"{year:04d}-{month:02d}")
        return period

    async def list_periods(self) -> list[Period]:
        """All periods, newest first."""
        result = await self.session.execute(
            select(Period).order_by(Period.year.desc(), Period.month.desc())
        )
        return list(result.scalars().all())

    async def lock(self, year: int, month: int, caller: CurrentUser) -> Period:
        """Lock a period. Locking a LOCKED period changes nothing."""
        require_admin(caller, "lock payroll periods")
        return await self._transition(year, month, PeriodStatus.LOCKED, caller)

    async def unlock(self, year: int, month: int, caller: CurrentUser) -> Period:
        """Unlock a period. Unlocking an OPEN period changes nothing."""
        require_admin(caller, "unlock payroll periods")
        return await self._transition(year, month, PeriodStatus.OPEN, caller)

    async def _transition(
        self, year: int, month: int, to_status: PeriodStatus, caller: CurrentUser
    ) -> Period:
        period = await self.get_for_update(year, month)

        if PeriodStateMachine.is_noop(period.status, to_status):
            return period

        PeriodStateMachine.validate_transition(period.status, to_status)

        if to_status == PeriodStatus.LOCKED:
            period.locked_at = datetime.now(timezone.utc)
            period.locked_by = caller.email
        else:
            period.locked_at = None
            period.locked_by = None
        period.status = to_status.value
        await self.session.flush()

        logger.info("Period %s %s by %s", period.label, to_status.value, caller.email)
        return period

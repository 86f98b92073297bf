"""Payroll period API endpoints."""

from typing import Annotated

from fastapi import APIRouter, Path, Query

from monthly_payroll.api.dependencies import CurrentUserDep, DatabaseDep, SettingsDep
from monthly_payroll.api.schemas import (
    ErrorResponse,
    PayrollItemListResponse,
    PayrollItemResponse,
    PeriodListResponse,
    PeriodResponse,
    SummaryResponse,
)
from monthly_payroll.services.payroll_service import PayrollBuilder
from monthly_payroll.services.period_service import PeriodManager

router = APIRouter(prefix="/periods", tags=["periods"])

Year = Annotated[int, Path()]
Month = Annotated[int, Path()]


# ============================================================================
# Period lookups
# ============================================================================


@router.get("", response_model=PeriodListResponse)
async def list_periods(database: DatabaseDep) -> PeriodListResponse:
    """List all payroll periods, newest first."""
    async with database.transaction() as session:
        periods = await PeriodManager(session).list_periods()
        return PeriodListResponse(
            items=[PeriodResponse.model_validate(p) for p in periods],
            total=len(periods),
        )


@router.get(
    "/{year}/{month}",
    response_model=PeriodResponse,
    responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
)
async def get_period(database: DatabaseDep, year: Year, month: Month) -> PeriodResponse:
    """Get one period."""
    async with database.transaction() as session:
        period = await PeriodManager(session).get(year, month)
        return PeriodResponse.model_validate(period)


# ============================================================================
# Build / lifecycle
# ============================================================================


@router.post(
    "/{year}/{month}/build",
    response_model=SummaryResponse,
    responses={
        400: {"model": ErrorResponse},
        403: {"model": ErrorResponse},
        409: {"model": ErrorResponse},
        503: {"model": ErrorResponse},
    },
)
async def build_period(
    database: DatabaseDep,
    settings: SettingsDep,
    caller: CurrentUserDep,
    year: Year,
    month: Month,
) -> SummaryResponse:
    """Regenerate all payroll lines of the period and return its summary."""
    async with database.transaction() as session:
        builder = PayrollBuilder(session, settings.statutory)
        summary = await builder.build(year, month, caller)
    return SummaryResponse.model_validate(summary, from_attributes=True)


@router.post(
    "/{year}/{month}/lock",
    response_model=PeriodResponse,
    responses={403: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
)
async def lock_period(
    database: DatabaseDep, caller: CurrentUserDep, year: Year, month: Month
) -> PeriodResponse:
    """Lock the period against rebuilds and input changes."""
    async with database.transaction() as session:
        period = await PeriodManager(session).lock(year, month, caller)
        return PeriodResponse.model_validate(period)


@router.post(
    "/{year}/{month}/unlock",
    response_model=PeriodResponse,
    responses={403: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
)
async def unlock_period(
    database: DatabaseDep, caller: CurrentUserDep, year: Year, month: Month
) -> PeriodResponse:
    """Reopen a locked period."""
    async with database.transaction() as session:
        period = await PeriodManager(session).unlock(year, month, caller)
        return PeriodResponse.model_validate(period)


@router.post(
    "/{year}/{month}/finalize",
    response_model=SummaryResponse,
    responses={
        403: {"model": ErrorResponse},
        404: {"model": ErrorResponse},
        409: {"model": ErrorResponse},
    },
)
async def finalize_period(
    database: DatabaseDep,
    settings: SettingsDep,
    caller: CurrentUserDep,
    year: Year,
    month: Month,
) -> SummaryResponse:
    """Lock an OPEN period and return its final summary."""
    async with database.transaction() as session:
        builder = PayrollBuilder(session, settings.statutory)
        summary = await builder.finalize(year, month, caller)
    return SummaryResponse.model_validate(summary, from_attributes=True)


# ============================================================================
# Results
# ============================================================================


@router.get(
    "/{year}/{month}/summary",
    response_model=SummaryResponse,
    responses={404: {"model": ErrorResponse}},
)
async def get_summary(
    database: DatabaseDep, settings: SettingsDep, year: Year, month: Month
) -> SummaryResponse:
    """Payslip summary of the period's current lines."""
    async with database.transaction() as session:
        summary = await PayrollBuilder(session, settings.statutory).summarize(year, month)
    return SummaryResponse.model_validate(summary, from_attributes=True)


@router.get(
    "/{year}/{month}/items",
    response_model=PayrollItemListResponse,
    responses={404: {"model": ErrorResponse}},
)
async def list_payroll_items(
    database: DatabaseDep,
    settings: SettingsDep,
    year: Year,
    month: Month,
    employee_email: Annotated[str | None, Query()] = None,
) -> PayrollItemListResponse:
    """Computed lines of the period in payslip order."""
    async with database.transaction() as session:
        builder = PayrollBuilder(session, settings.statutory)
        items = await builder.list_items(year, month, employee_email)
        return PayrollItemListResponse(
            items=[PayrollItemResponse.model_validate(i) for i in items],
            total=len(items),
        )

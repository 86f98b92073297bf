"""Manual item and adjustment sheet endpoints."""

from typing import Annotated

from fastapi import APIRouter, Path, Query, status

from monthly_payroll.api.dependencies import CurrentUserDep, DatabaseDep
from monthly_payroll.api.schemas import (
    AdjustmentSaveRequest,
    AdjustmentSheetResponse,
    AdjustmentSheetRowResponse,
    ErrorResponse,
    ManualItemCreate,
    ManualItemListResponse,
    ManualItemReplace,
    ManualItemResponse,
)
from monthly_payroll.services.adjustment_service import (
    AdjustmentRow,
    AdjustmentStore,
    ManualItemDraft,
)

router = APIRouter(prefix="/periods", tags=["adjustments"])

Year = Annotated[int, Path()]
Month = Annotated[int, Path()]

_WRITE_ERRORS = {
    400: {"model": ErrorResponse},
    403: {"model": ErrorResponse},
    404: {"model": ErrorResponse},
    409: {"model": ErrorResponse},
}


# ============================================================================
# Manual items
# ============================================================================


@router.post(
    "/{year}/{month}/manual-items",
    response_model=ManualItemResponse,
    status_code=status.HTTP_201_CREATED,
    responses=_WRITE_ERRORS,
)
async def add_manual_item(
    database: DatabaseDep,
    caller: CurrentUserDep,
    year: Year,
    month: Month,
    payload: ManualItemCreate,
) -> ManualItemResponse:
    """Add one manual earning or deduction."""
    async with database.transaction() as session:
        item = await AdjustmentStore(session).add(
            caller,
            employee_email=payload.employee_email,
            year=year,
            month=month,
            kind=payload.kind,
            amount=payload.amount,
            label=payload.label,
            code=payload.code,
        )
        await session.refresh(item)
        return ManualItemResponse.model_validate(item)


@router.get(
    "/{year}/{month}/manual-items",
    response_model=ManualItemListResponse,
    responses={404: {"model": ErrorResponse}},
)
async def list_manual_items(
    database: DatabaseDep,
    year: Year,
    month: Month,
    employee_email: Annotated[str | None, Query()] = None,
) -> ManualItemListResponse:
    """Manual items of the period."""
    async with database.transaction() as session:
        items = await AdjustmentStore(session).list_items(year, month, employee_email)
        return ManualItemListResponse(
            items=[ManualItemResponse.model_validate(i) for i in items],
            total=len(items),
        )


@router.put(
    "/{year}/{month}/employees/{email}/manual-items",
    response_model=ManualItemListResponse,
    responses=_WRITE_ERRORS,
)
async def replace_manual_items(
    database: DatabaseDep,
    caller: CurrentUserDep,
    year: Year,
    month: Month,
    email: Annotated[str, Path()],
    payload: ManualItemReplace,
) -> ManualItemListResponse:
    """Replace the employee's items carrying the given codes."""
    drafts = [
        ManualItemDraft(kind=d.kind, amount=d.amount, code=d.code, label=d.label)
        for d in payload.items
    ]
    async with database.transaction() as session:
        items = await AdjustmentStore(session).replace_by_code(
            caller, email, year, month, payload.codes, drafts
        )
        for item in items:
            await session.refresh(item)
        return ManualItemListResponse(
            items=[ManualItemResponse.model_validate(i) for i in items],
            total=len(items),
        )


# ============================================================================
# Adjustment sheet (commission / advance)
# ============================================================================


@router.get(
    "/{year}/{month}/adjustments",
    response_model=AdjustmentSheetResponse,
    responses={400: {"model": ErrorResponse}},
)
async def get_adjustments(
    database: DatabaseDep, year: Year, month: Month
) -> AdjustmentSheetResponse:
    """Every employee with their current commission and advance."""
    async with database.transaction() as session:
        rows = await AdjustmentStore(session).adjustment_sheet(year, month)
    return AdjustmentSheetResponse(
        year=year,
        month=month,
        rows=[AdjustmentSheetRowResponse.model_validate(r) for r in rows],
    )


@router.put(
    "/{year}/{month}/adjustments",
    response_model=AdjustmentSheetResponse,
    responses=_WRITE_ERRORS,
)
async def save_adjustments(
    database: DatabaseDep,
    caller: CurrentUserDep,
    year: Year,
    month: Month,
    payload: AdjustmentSaveRequest,
) -> AdjustmentSheetResponse:
    """Save the commission/advance sheet and return it as stored."""
    rows = [
        AdjustmentRow(
            employee_email=r.employee_email, commission=r.commission, advance=r.advance
        )
        for r in payload.rows
    ]
    async with database.transaction() as session:
        store = AdjustmentStore(session)
        await store.save_adjustments(caller, year, month, rows)
        sheet = await store.adjustment_sheet(year, month)
    return AdjustmentSheetResponse(
        year=year,
        month=month,
        rows=[AdjustmentSheetRowResponse.model_validate(r) for r in sheet],
    )

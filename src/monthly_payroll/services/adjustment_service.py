"""Adjustment store - manual earnings and deductions per employee and period."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import Sequence

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from monthly_payroll.calculators.line_builder import KNOWN_MANUAL_CODES, LineItemBuilder
from monthly_payroll.calculators.types import ZERO, ManualKind
from monthly_payroll.errors import LockedPeriod, NotFound, ValidationError
from monthly_payroll.identity import CurrentUser, normalize_email, require_admin
from monthly_payroll.models import Employee, ManualItem, Period
from monthly_payroll.services.period_service import PeriodManager, validate_year_month
from monthly_payroll.services.state_machine import PeriodStateMachine

logger = logging.getLogger(__name__)

MAX_LABEL_LENGTH = 120
# Largest value a Numeric(12, 2) amount column holds
MAX_AMOUNT = Decimal("9999999999.99")
COMMISSION_CODE = "COMM"
ADVANCE_CODE = "ADV"


@dataclass(frozen=True)
class ManualItemDraft:
    """A manual item to be written by replace_by_code."""

    kind: str
    amount: Decimal | int | str
    code: str | None = None
    label: str | None = None


@dataclass(frozen=True)
class AdjustmentRow:
    """One row of the commission/advance sheet."""

    employee_email: str
    commission: Decimal | int | str = ZERO
    advance: Decimal | int | str = ZERO


@dataclass
class AdjustmentSheetRow:
    """Current commission/advance for one employee."""

    employee_email: str
    employee_name: str
    commission: Decimal = ZERO
    advance: Decimal = ZERO


def _to_decimal(value: Decimal | int | float | str | None, field: str) -> Decimal:
    if value is None:
        raise ValidationError(f"{field} is required", field=field)
    if isinstance(value, bool):
        raise ValidationError(f"{field} must be a number", field=field)
    try:
        amount = Decimal(str(value).strip()) if not isinstance(value, Decimal) else value
    except InvalidOperation:
        raise ValidationError(f"{field} must be a number", field=field) from None
    if not amount.is_finite():
        raise ValidationError(f"{field} must be finite", field=field)
    return amount


def validate_kind(kind: str | None) -> ManualKind:
    raw = str(kind or "").strip().upper()
    try:
        return ManualKind(raw)
    except ValueError:
        raise ValidationError("Kind must be EARN or DEDUCT", field="kind") from None


def validate_amount(amount: Decimal | int | float | str | None) -> Decimal:
    """Amounts must be finite, > 0 and fit the amount column (stored rounded to cents)."""
    value = _to_decimal(amount, "amount")
    if value <= 0:
        raise ValidationError("Amount must be > 0", field="amount")
    if value > MAX_AMOUNT:
        raise ValidationError("Amount is too large", field="amount")
    try:
        rounded = LineItemBuilder.round_to_cents(value)
    except InvalidOperation:
        raise ValidationError("Amount must be a number of cents", field="amount") from None
    if rounded <= 0:
        raise ValidationError("Amount must be at least 0.01", field="amount")
    return rounded


def clean_label(label: str | None) -> str | None:
    if label is None:
        return None
    label = str(label).strip()
    return label[:MAX_LABEL_LENGTH] or None


def clean_code(code: str | None, kind: ManualKind) -> str:
    code = str(code or "").strip().upper()
    return code or kind.value


class AdjustmentStore:
    """Service for manual (ad-hoc) payroll items.

    All writes share one authorization and validation path:
    - caller must be an admin
    - amount finite and > 0, kind EARN or DEDUCT
    - the employee must exist
    - the period is created if missing and must be OPEN
    """

    def __init__(self, session: AsyncSession):
        self.session = session
        self.periods = PeriodManager(session)

    async def add(
        self,
        caller: CurrentUser,
        employee_email: str,
        year: int,
        month: int,
        kind: str,
        amount: Decimal | int | str,
        label: str | None = None,
        code: str | None = None,
    ) -> ManualItem:
        """Add one manual earning or deduction."""
        require_admin(caller, "write manual payroll items")
        draft = self._validate_draft(ManualItemDraft(kind=kind, amount=amount, code=code, label=label))
        employee = await self._get_employee(employee_email)
        period = await self._writable_period(year, month)

        item = self._make_item(employee.email, period, draft, caller)
        self.session.add(item)
        await self.session.flush()

        logger.info(
            "Added %s %s %s for %s in %s",
            item.kind, item.code, item.amount, employee.email, period.label,
        )
        return item

    async def replace_by_code(
        self,
        caller: CurrentUser,
        employee_email: str,
        year: int,
        month: int,
        codes: Sequence[str],
        new_items: Sequence[ManualItemDraft],
    ) -> list[ManualItem]:
        """Replace an employee's items with the given codes for a period.

        Deletes the (employee, period) items whose code is in ``codes`` and
        inserts ``new_items`` in the same transaction, so saving the same
        adjustments twice never accumulates duplicates. Every new item must
        carry one of ``codes``.
        """
        require_admin(caller, "write manual payroll items")
        drafts = [self._validate_draft(d) for d in new_items]
        replaced = {str(c).strip().upper() for c in codes}
        for draft in drafts:
            if draft.code not in replaced:
                raise ValidationError(
                    f"Item code {draft.code} is not among the replaced codes", field="code"
                )
        employee = await self._get_employee(employee_email)
        period = await self._writable_period(year, month)
        return await self._replace(employee.email, period, codes, drafts, caller)

    async def save_adjustments(
        self,
        caller: CurrentUser,
        year: int,
        month: int,
        rows: Sequence[AdjustmentRow],
    ) -> Period:
        """Save the commission/advance sheet.

        Each row replaces that employee's COMM and ADV items; zero amounts
        simply clear them. Advances are stored as positive deductions.
        """
        require_admin(caller, "write manual payroll items")

        # Validate everything before touching storage
        planned: list[tuple[str, list[ManualItemDraft]]] = []
        for row in rows:
            email = normalize_email(row.employee_email)
            if not email:
                raise ValidationError("Select staff", field="employee_email")
            commission = _to_decimal(row.commission, "commission")
            advance = _to_decimal(row.advance, "advance")
            if commission < 0:
                raise ValidationError("Commission cannot be negative", field="commission")

            drafts: list[ManualItemDraft] = []
            if commission != 0:
                drafts.append(ManualItemDraft(ManualKind.EARN.value, commission, COMMISSION_CODE))
            if advance != 0:
                drafts.append(ManualItemDraft(ManualKind.DEDUCT.value, abs(advance), ADVANCE_CODE))
            planned.append((email, [self._validate_draft(d) for d in drafts]))

        period = await self._writable_period(year, month)
        for email, drafts in planned:
            employee = await self._get_employee(email)
            await self._replace(
                employee.email, period, [COMMISSION_CODE, ADVANCE_CODE], drafts, caller
            )

        logger.info("Saved adjustments for %d employee(s) in %s", len(planned), period.label)
        return period

    async def adjustment_sheet(self, year: int, month: int) -> list[AdjustmentSheetRow]:
        """Every employee with their current COMM/ADV amounts; does not create the period."""
        year, month = validate_year_month(year, month)
        employees = await self.session.execute(
            select(Employee).order_by(Employee.name, Employee.email)
        )
        sheet = {
            e.email: AdjustmentSheetRow(employee_email=e.email, employee_name=e.display_name)
            for e in employees.scalars().all()
        }

        period = await self.periods.find(year, month)
        if period is not None:
            result = await self.session.execute(
                select(ManualItem).where(
                    ManualItem.period_id == period.id,
                    ManualItem.code.in_([COMMISSION_CODE, ADVANCE_CODE]),
                )
            )
            for item in result.scalars().all():
                row = sheet.get(item.employee_email)
                if row is None:
                    continue
                if item.code == COMMISSION_CODE:
                    row.commission += item.amount
                else:
                    row.advance += item.amount

        return list(sheet.values())

    async def list_items(
        self, year: int, month: int, employee_email: str | None = None
    ) -> list[ManualItem]:
        """Manual items of a period, optionally for one employee."""
        period = await self.periods.get(year, month)
        return await self.items_for_period(period, employee_email)

    async def items_for_period(
        self, period: Period, employee_email: str | None = None
    ) -> list[ManualItem]:
        query = select(ManualItem).where(ManualItem.period_id == period.id)
        if employee_email is not None:
            query = query.where(ManualItem.employee_email == normalize_email(employee_email))
        result = await self.session.execute(
            query.order_by(*ManualItem.entry_order())
        )
        return list(result.scalars().all())

    async def _replace(
        self,
        employee_email: str,
        period: Period,
        codes: Sequence[str],
        drafts: Sequence[ManualItemDraft],
        caller: CurrentUser,
    ) -> list[ManualItem]:
        normalized_codes = [str(c).strip().upper() for c in codes]
        await self.session.execute(
            delete(ManualItem).where(
                ManualItem.period_id == period.id,
                ManualItem.employee_email == employee_email,
                ManualItem.code.in_(normalized_codes),
            )
        )
        items = [self._make_item(employee_email, period, d, caller) for d in drafts]
        self.session.add_all(items)
        await self.session.flush()
        return items

    def _validate_draft(self, draft: ManualItemDraft) -> ManualItemDraft:
        kind = validate_kind(draft.kind)
        return ManualItemDraft(
            kind=kind.value,
            amount=validate_amount(draft.amount),
            code=clean_code(draft.code, kind),
            label=clean_label(draft.label),
        )

    def _make_item(
        self, employee_email: str, period: Period, draft: ManualItemDraft, caller: CurrentUser
    ) -> ManualItem:
        return ManualItem(
            employee_email=employee_email,
            period_id=period.id,
            kind=draft.kind,
            code=draft.code,
            label=draft.label or KNOWN_MANUAL_CODES.get(draft.code, draft.code),
            amount=draft.amount,
            created_by=caller.email,
        )

    async def _get_employee(self, employee_email: str) -> Employee:
        email = normalize_email(employee_email or "")
        if not email:
            raise ValidationError("Select staff", field="employee_email")
        employee = await self.session.get(Employee, email)
        if employee is None:
            raise NotFound("Employee", email)
        return employee

    async def _writable_period(self, year: int, month: int) -> Period:
        await self.periods.get_or_create(year, month)
        # Held until commit so lock, finalize and build wait for this write
        period = await self.periods.get_for_update(year, month)
        if not PeriodStateMachine.can_modify_inputs(period.status):
            raise LockedPeriod(period.year, period.month, action="change manual items")
        return period

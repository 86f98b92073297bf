"""Payroll builder - regenerates a period's line items from current inputs."""

from __future__ import annotations

import logging
from collections import defaultdict
from typing import Any, Sequence

from sqlalchemy import delete, insert, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from monthly_payroll.calculators.bracket_resolver import validate_brackets
from monthly_payroll.calculators.engine import PayrollCalculator
from monthly_payroll.calculators.line_builder import LineItemBuilder
from monthly_payroll.calculators.summary import SummaryAggregator
from monthly_payroll.calculators.types import LineCandidate, PeriodSummary
from monthly_payroll.config import StatutoryConfig
from monthly_payroll.errors import LockedPeriod, StorageError
from monthly_payroll.identity import CurrentUser, normalize_email, require_admin
from monthly_payroll.models import (
    EisBracket,
    Employee,
    ManualItem,
    PayrollItem,
    Period,
    SocsoBracket,
)
from monthly_payroll.services.period_service import PeriodManager
from monthly_payroll.services.state_machine import PeriodStateMachine

logger = logging.getLogger(__name__)


class PayrollBuilder:
    """Service for building and finalizing a period's payroll.

    A build is a full regeneration, never an incremental patch:
    1. Lock the period row and require it to be OPEN
    2. Load payroll-eligible employees, their manual items and both bracket tables
    3. Delete every existing line of the period
    4. Insert the freshly computed lines

    All of it runs in the caller's transaction, so a failure at any step
    leaves the previous line set untouched. Rebuilding unchanged inputs
    reproduces identical rows (ids and positions are derived, not random).
    """

    def __init__(self, session: AsyncSession, config: StatutoryConfig | None = None):
        self.session = session
        self.config = config or StatutoryConfig()
        self.periods = PeriodManager(session)

    async def build(self, year: int, month: int, caller: CurrentUser) -> PeriodSummary:
        """Rebuild the period's line items and return its summary."""
        require_admin(caller, "build payroll")

        await self.periods.get_or_create(year, month)
        period = await self.periods.get_for_update(year, month)
        if not PeriodStateMachine.can_build(period.status):
            raise LockedPeriod(period.year, period.month, action="build")

        try:
            employees = await self._load_employees()
            manual_items = await self._load_manual_items(period, employees)
            calculator = await self._load_calculator()

            rows: list[dict[str, Any]] = []
            for employee in employees:
                lines = calculator.calculate_employee(
                    employee, manual_items.get(employee.email, [])
                )
                rows.extend(self._line_rows(period, employee.email, lines))

            await self.session.execute(
                delete(PayrollItem).where(PayrollItem.period_id == period.id)
            )
            if rows:
                await self.session.execute(insert(PayrollItem), rows)
        except SQLAlchemyError as e:
            logger.exception("Payroll build failed for %s", period.label)
            raise StorageError("build", str(e)) from e

        logger.info(
            "Built payroll %s: %d employee(s), %d line(s)",
            period.label, len(employees), len(rows),
        )
        return await SummaryAggregator(self.session).summarize(period)

    async def finalize(self, year: int, month: int, caller: CurrentUser) -> PeriodSummary:
        """Summarize an OPEN period and lock it in the same transaction.

        The returned summary reflects the lines as they stood when locked;
        nothing is rebuilt.
        """
        require_admin(caller, "finalize payroll")
        period = await self.periods.get_for_update(year, month)
        if not PeriodStateMachine.can_build(period.status):
            raise LockedPeriod(period.year, period.month, action="finalize")

        locked = await self.periods.lock(year, month, caller)
        summary = await SummaryAggregator(self.session).summarize(locked)
        logger.info("Finalized payroll %s", locked.label)
        return summary

    async def summarize(self, year: int, month: int) -> PeriodSummary:
        """Summary of the persisted lines of an existing period."""
        period = await self.periods.get(year, month)
        return await SummaryAggregator(self.session).summarize(period)

    async def list_items(
        self, year: int, month: int, employee_email: str | None = None
    ) -> list[PayrollItem]:
        """Persisted lines of an existing period in payslip order."""
        period = await self.periods.get(year, month)
        query = select(PayrollItem).where(PayrollItem.period_id == period.id)
        if employee_email is not None:
            query = query.where(PayrollItem.employee_email == normalize_email(employee_email))
        result = await self.session.execute(
            query.order_by(PayrollItem.employee_email, PayrollItem.position)
        )
        return list(result.scalars().all())

    async def _load_employees(self) -> list[Employee]:
        result = await self.session.execute(
            select(Employee)
            .where(Employee.skip_payroll.is_(False))
            .order_by(Employee.email)
        )
        return list(result.scalars().all())

    async def _load_manual_items(
        self, period: Period, employees: Sequence[Employee]
    ) -> dict[str, list[ManualItem]]:
        result = await self.session.execute(
            select(ManualItem)
            .where(ManualItem.period_id == period.id)
            .order_by(*ManualItem.entry_order())
        )
        eligible = {e.email for e in employees}
        grouped: dict[str, list[ManualItem]] = defaultdict(list)
        for item in result.scalars().all():
            if item.employee_email not in eligible:
                logger.debug(
                    "Ignoring manual item %s for %s (not in payroll)",
                    item.id, item.employee_email,
                )
                continue
            grouped[item.employee_email].append(item)
        return grouped

    async def _load_calculator(self) -> PayrollCalculator:
        socso = await self._load_brackets(SocsoBracket, "SOCSO")
        eis = await self._load_brackets(EisBracket, "EIS")
        return PayrollCalculator(self.config, socso, eis)

    async def _load_brackets(self, model: type, scheme: str) -> list:
        result = await self.session.execute(select(model).order_by(model.wage_min))
        brackets = list(result.scalars().all())
        if not brackets:
            logger.warning("%s bracket table is empty; using flat fallback rates", scheme)
            return brackets
        for problem in validate_brackets(brackets):
            logger.warning("%s bracket table: %s", scheme, problem)
        return brackets

    @staticmethod
    def _line_rows(
        period: Period, employee_email: str, lines: Sequence[LineCandidate]
    ) -> list[dict[str, Any]]:
        rows = []
        for position, line in enumerate(lines):
            line_hash = LineItemBuilder.compute_line_hash(line)
            rows.append(
                {
                    "id": LineItemBuilder.compute_item_id(
                        period.id, employee_email, position, line_hash
                    ),
                    "period_id": period.id,
                    "employee_email": employee_email,
                    "item_type": line.item_type.value,
                    "code": line.code,
                    "label": line.label,
                    "amount": line.amount,
                    "position": position,
                    "source_item_id": line.source_item_id,
                    "line_hash": line_hash,
                }
            )
        return rows

"""Payslip summary aggregation over computed payroll lines."""

from __future__ import annotations

from collections import defaultdict
from dataclasses import fields
from typing import Iterable
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from monthly_payroll.calculators.line_builder import LineItemBuilder
from monthly_payroll.calculators.types import (
    EmployeePayslip,
    ItemType,
    PayrollTotals,
    PeriodSummary,
)
from monthly_payroll.models import Employee, PayrollItem, Period

_round = LineItemBuilder.round_to_cents

# Payslip field fed by each line type
_FIELD_BY_TYPE: dict[ItemType, str] = {
    ItemType.EARN_BASE: "base",
    ItemType.EARN_MANUAL: "manual_earnings",
    ItemType.DEDUCT_MANUAL: "manual_deductions",
    ItemType.STAT_EMP_EPF: "epf_employee",
    ItemType.STAT_EMP_SOCSO: "socso_employee",
    ItemType.STAT_EMP_EIS: "eis_employee",
    ItemType.STAT_EMP_PCB: "pcb",
    ItemType.STAT_ER_EPF: "epf_employer",
    ItemType.STAT_ER_SOCSO: "socso_employer",
    ItemType.STAT_ER_EIS: "eis_employer",
    ItemType.STAT_ER_HRD: "hrd_employer",
}


class SummaryAggregator:
    """Derives payslips and company totals from a period's line items.

    Per employee:
        GROSS = base + Σ(EARN_MANUAL)
        EMPLOYEE_DEDUCTIONS = epf_emp + socso_emp + eis_emp + pcb + Σ(DEDUCT_MANUAL)
        NET = GROSS - EMPLOYEE_DEDUCTIONS
        EMPLOYER_COST = GROSS + epf_er + socso_er + eis_er + hrd_er
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    async def summarize(self, period: Period) -> PeriodSummary:
        """Summarize the persisted line items of a period."""
        result = await self.session.execute(
            select(
                PayrollItem.employee_email,
                Employee.name,
                PayrollItem.item_type,
                PayrollItem.amount,
            )
            .join(Employee, Employee.email == PayrollItem.employee_email)
            .where(PayrollItem.period_id == period.id)
            .order_by(PayrollItem.employee_email, PayrollItem.position)
        )
        return self.build_summary(
            period_id=period.id,
            year=period.year,
            month=period.month,
            status=period.status,
            rows=result.all(),
        )

    @classmethod
    def build_summary(
        cls,
        period_id: UUID,
        year: int,
        month: int,
        status: str,
        rows: Iterable[tuple],
    ) -> PeriodSummary:
        """Aggregate (email, name, item_type, amount) rows into a summary."""
        names: dict[str, str] = {}
        lines: dict[str, list[tuple[str, object]]] = defaultdict(list)
        for email, name, item_type, amount in rows:
            names[email] = name or email.split("@")[0]
            lines[email].append((item_type, amount))

        payslips = [
            cls.summarize_employee(email, names[email], lines[email]) for email in lines
        ]
        payslips.sort(key=lambda p: (p.employee_name.lower(), p.employee_email))

        return PeriodSummary(
            period_id=period_id,
            year=year,
            month=month,
            status=status,
            employees=payslips,
            totals=cls.sum_totals(payslips),
        )

    @staticmethod
    def summarize_employee(
        email: str, name: str, lines: Iterable[tuple[str, object]]
    ) -> EmployeePayslip:
        """Fold one employee's (item_type, amount) pairs into a payslip."""
        slip = EmployeePayslip(employee_email=email, employee_name=name)
        for item_type, amount in lines:
            attr = _FIELD_BY_TYPE[ItemType(item_type)]
            setattr(slip, attr, getattr(slip, attr) + _round(amount))

        slip.gross = _round(slip.base + slip.manual_earnings)
        slip.employee_deductions = _round(
            slip.epf_employee
            + slip.socso_employee
            + slip.eis_employee
            + slip.pcb
            + slip.manual_deductions
        )
        slip.net = _round(slip.gross - slip.employee_deductions)
        slip.employer_cost = _round(
            slip.gross
            + slip.epf_employer
            + slip.socso_employer
            + slip.eis_employer
            + slip.hrd_employer
        )
        return slip

    @staticmethod
    def sum_totals(payslips: list[EmployeePayslip]) -> PayrollTotals:
        """Element-wise sum across payslips."""
        totals = PayrollTotals(employee_count=len(payslips))
        amount_fields = [f.name for f in fields(PayrollTotals) if f.name != "employee_count"]
        for slip in payslips:
            for name in amount_fields:
                setattr(totals, name, getattr(totals, name) + getattr(slip, name))
        for name in amount_fields:
            setattr(totals, name, _round(getattr(totals, name)))
        return totals

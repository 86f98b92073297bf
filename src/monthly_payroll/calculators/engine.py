"""Payroll calculation engine - per-employee line computation."""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Sequence

from monthly_payroll.calculators.bracket_resolver import resolve_with_fallback
from monthly_payroll.calculators.line_builder import LineItemBuilder
from monthly_payroll.calculators.types import (
    ZERO,
    BracketRow,
    Contribution,
    FallbackRates,
    ItemType,
    LineCandidate,
)
from monthly_payroll.config import StatutoryConfig
from monthly_payroll.models import Employee, ManualItem


def _enabled(flag: bool | None) -> bool:
    # An unset scheme flag means the scheme applies
    return flag is None or bool(flag)


@dataclass
class StatutoryResult:
    """Contributions computed for one employee."""

    epf: Contribution
    socso: Contribution
    eis: Contribution
    pcb: Decimal = ZERO
    hrd: Decimal = ZERO


class PayrollCalculator:
    """Computes one employee's payroll lines.

    Calculation pipeline (stable order per employee):
    1) Base earning line (only when base wage > 0)
    2) Manual earnings and deductions, one line each, in input order
    3) Employee statutory lines: PCB, EPF, SOCSO, EIS
    4) Employer statutory lines: EPF, SOCSO, EIS, HRD

    The statutory base is the base wage only; manual items never move it.
    PCB and HRD are reserved lines and are always zero.
    """

    def __init__(
        self,
        config: StatutoryConfig,
        socso_brackets: Sequence[BracketRow],
        eis_brackets: Sequence[BracketRow],
    ):
        self.config = config
        self.socso_brackets = list(socso_brackets)
        self.eis_brackets = list(eis_brackets)
        self.socso_fallback = FallbackRates(
            config.socso_fallback_rate_employee, config.socso_fallback_rate_employer
        )
        self.eis_fallback = FallbackRates(
            config.eis_fallback_rate_employee, config.eis_fallback_rate_employer
        )

    def calculate_employee(
        self, employee: Employee, manual_items: Sequence[ManualItem] = ()
    ) -> list[LineCandidate]:
        """Compute the full ordered line set for an employee."""
        base = self.statutory_base(employee)
        statutory = self.calculate_statutory(employee, base)

        lines: list[LineCandidate] = []
        if base > 0:
            lines.append(LineItemBuilder.create_base_line(base))

        for item in manual_items:
            lines.append(
                LineItemBuilder.create_manual_line(
                    kind=item.kind,
                    code=item.code,
                    amount=item.amount,
                    label=item.label,
                    source_item_id=item.id,
                )
            )

        lines.extend(
            [
                LineItemBuilder.create_statutory_line(ItemType.STAT_EMP_PCB, statutory.pcb),
                LineItemBuilder.create_statutory_line(
                    ItemType.STAT_EMP_EPF, statutory.epf.employee_amount
                ),
                LineItemBuilder.create_statutory_line(
                    ItemType.STAT_EMP_SOCSO, statutory.socso.employee_amount
                ),
                LineItemBuilder.create_statutory_line(
                    ItemType.STAT_EMP_EIS, statutory.eis.employee_amount
                ),
                LineItemBuilder.create_statutory_line(
                    ItemType.STAT_ER_EPF, statutory.epf.employer_amount
                ),
                LineItemBuilder.create_statutory_line(
                    ItemType.STAT_ER_SOCSO, statutory.socso.employer_amount
                ),
                LineItemBuilder.create_statutory_line(
                    ItemType.STAT_ER_EIS, statutory.eis.employer_amount
                ),
                LineItemBuilder.create_statutory_line(ItemType.STAT_ER_HRD, statutory.hrd),
            ]
        )
        return lines

    def calculate_statutory(self, employee: Employee, base: Decimal) -> StatutoryResult:
        """Compute EPF, SOCSO and EIS on the statutory base."""
        exempt = employee.statutory_exempt

        if _enabled(employee.epf_enabled) and not exempt:
            epf = self._calculate_epf(employee, base)
        else:
            epf = Contribution.zero()

        if _enabled(employee.socso_enabled) and not exempt:
            socso = resolve_with_fallback(self.socso_brackets, base, self.socso_fallback)
        else:
            socso = Contribution.zero()

        if _enabled(employee.eis_enabled) and not exempt:
            eis = resolve_with_fallback(self.eis_brackets, base, self.eis_fallback)
        else:
            eis = Contribution.zero()

        return StatutoryResult(epf=epf, socso=socso, eis=eis)

    def _calculate_epf(self, employee: Employee, base: Decimal) -> Contribution:
        rate_employee = (
            employee.epf_rate_employee
            if employee.epf_rate_employee is not None
            else self.config.epf_rate_employee
        )
        rate_employer = (
            employee.epf_rate_employer
            if employee.epf_rate_employer is not None
            else self.config.epf_rate_employer
        )
        return Contribution(
            employee_amount=LineItemBuilder.round_to_cents(base * Decimal(rate_employee)),
            employer_amount=LineItemBuilder.round_to_cents(base * Decimal(rate_employer)),
        )

    @staticmethod
    def statutory_base(employee: Employee) -> Decimal:
        """Base wage, with a missing wage treated as zero."""
        if employee.base_wage is None:
            return ZERO
        return LineItemBuilder.round_to_cents(employee.base_wage)

"""Type definitions for the calculation pipeline."""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from typing import Any, Protocol
from uuid import UUID


class ItemType(str, Enum):
    """Payroll line item types."""

    EARN_BASE = "EARN_BASE"
    EARN_MANUAL = "EARN_MANUAL"
    DEDUCT_MANUAL = "DEDUCT_MANUAL"
    STAT_EMP_EPF = "STAT_EMP_EPF"
    STAT_EMP_SOCSO = "STAT_EMP_SOCSO"
    STAT_EMP_EIS = "STAT_EMP_EIS"
    STAT_EMP_PCB = "STAT_EMP_PCB"
    STAT_ER_EPF = "STAT_ER_EPF"
    STAT_ER_SOCSO = "STAT_ER_SOCSO"
    STAT_ER_EIS = "STAT_ER_EIS"
    STAT_ER_HRD = "STAT_ER_HRD"


class ManualKind(str, Enum):
    """Manual item kinds."""

    EARN = "EARN"
    DEDUCT = "DEDUCT"


ZERO = Decimal("0")


class BracketRow(Protocol):
    """Anything shaped like a bracket table row (ORM rows included)."""

    wage_min: Decimal
    wage_max: Decimal | None
    employee_contribution: Decimal
    employer_contribution: Decimal


@dataclass(frozen=True)
class Bracket:
    """Plain bracket row, used by tests and CSV loading."""

    wage_min: Decimal
    wage_max: Decimal | None
    employee_contribution: Decimal
    employer_contribution: Decimal


@dataclass(frozen=True)
class Contribution:
    """Employee/employer contribution pair for one scheme."""

    employee_amount: Decimal
    employer_amount: Decimal

    @classmethod
    def zero(cls) -> Contribution:
        return cls(ZERO, ZERO)


@dataclass(frozen=True)
class FallbackRates:
    """Flat percentages applied when a bracket table is empty."""

    employee_rate: Decimal
    employer_rate: Decimal


@dataclass
class LineCandidate:
    """A computed payroll line before persistence."""

    item_type: ItemType
    code: str
    label: str
    amount: Decimal  # always >= 0; item_type decides whether it adds or subtracts

    # Traceability
    source_item_id: UUID | None = None

    def to_canonical_dict(self) -> dict[str, Any]:
        """Return canonical dict for hashing (deterministic ordering)."""
        return {
            "item_type": self.item_type.value,
            "code": self.code,
            "label": self.label,
            "amount": str(self.amount),
            "source_item_id": str(self.source_item_id) if self.source_item_id else None,
        }


@dataclass
class EmployeePayslip:
    """Per-employee payslip totals derived from line items."""

    employee_email: str
    employee_name: str
    base: Decimal = ZERO
    manual_earnings: Decimal = ZERO
    manual_deductions: Decimal = ZERO
    epf_employee: Decimal = ZERO
    socso_employee: Decimal = ZERO
    eis_employee: Decimal = ZERO
    pcb: Decimal = ZERO
    epf_employer: Decimal = ZERO
    socso_employer: Decimal = ZERO
    eis_employer: Decimal = ZERO
    hrd_employer: Decimal = ZERO
    gross: Decimal = ZERO
    employee_deductions: Decimal = ZERO
    net: Decimal = ZERO
    employer_cost: Decimal = ZERO


@dataclass
class PayrollTotals:
    """Company-wide element-wise sums of the payslips."""

    employee_count: int = 0
    base: Decimal = ZERO
    manual_earnings: Decimal = ZERO
    manual_deductions: Decimal = ZERO
    epf_employee: Decimal = ZERO
    socso_employee: Decimal = ZERO
    eis_employee: Decimal = ZERO
    pcb: Decimal = ZERO
    epf_employer: Decimal = ZERO
    socso_employer: Decimal = ZERO
    eis_employer: Decimal = ZERO
    hrd_employer: Decimal = ZERO
    gross: Decimal = ZERO
    employee_deductions: Decimal = ZERO
    net: Decimal = ZERO
    employer_cost: Decimal = ZERO


@dataclass
class PeriodSummary:
    """Summary returned by build, finalize and summarize."""

    period_id: UUID
    year: int
    month: int
    status: str
    employees: list[EmployeePayslip] = field(default_factory=list)
    totals: PayrollTotals = field(default_factory=PayrollTotals)

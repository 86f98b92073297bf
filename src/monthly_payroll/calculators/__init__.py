"""Payroll calculation engine."""

from monthly_payroll.calculators.bracket_resolver import (
    find_bracket,
    resolve,
    resolve_with_fallback,
    validate_brackets,
)
from monthly_payroll.calculators.engine import PayrollCalculator, StatutoryResult
from monthly_payroll.calculators.line_builder import LineItemBuilder
from monthly_payroll.calculators.summary import SummaryAggregator

__all__ = [
    "find_bracket",
    "resolve",
    "resolve_with_fallback",
    "validate_brackets",
    "PayrollCalculator",
    "StatutoryResult",
    "LineItemBuilder",
    "SummaryAggregator",
]

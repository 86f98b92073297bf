"""ORM models."""

from monthly_payroll.models.base import Base, TimestampMixin
from monthly_payroll.models.employee import Employee
from monthly_payroll.models.payroll import ManualItem, PayrollItem, Period
from monthly_payroll.models.statutory import BracketMixin, EisBracket, SocsoBracket

__all__ = [
    "Base",
    "TimestampMixin",
    "Employee",
    "ManualItem",
    "PayrollItem",
    "Period",
    "BracketMixin",
    "EisBracket",
    "SocsoBracket",
]

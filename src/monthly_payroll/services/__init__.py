"""Monthly payroll services."""

from monthly_payroll.services.state_machine import PeriodStateMachine, PeriodStatus, InvalidTransitionError
from monthly_payroll.services.period_service import PeriodManager, validate_year_month
from monthly_payroll.services.adjustment_service import (
    AdjustmentRow,
    AdjustmentSheetRow,
    AdjustmentStore,
    ManualItemDraft,
)
from monthly_payroll.services.payroll_service import PayrollBuilder

__all__ = [
    "PeriodStateMachine",
    "PeriodStatus",
    "InvalidTransitionError",
    "PeriodManager",
    "validate_year_month",
    "AdjustmentRow",
    "AdjustmentSheetRow",
    "AdjustmentStore",
    "ManualItemDraft",
    "PayrollBuilder",
]

"""Monthly payroll computation and period lifecycle engine."""

__version__ = "0.1.0"

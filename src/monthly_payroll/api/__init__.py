"""HTTP API for the monthly payroll engine."""

from monthly_payroll.api.app import create_app

__all__ = ["create_app"]

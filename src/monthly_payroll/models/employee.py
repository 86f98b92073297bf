"""Employee model.

Rows are owned by the staff-management side of the system; the payroll
engine only reads them.
"""

from __future__ import annotations

from decimal import Decimal

from sqlalchemy import Boolean, CheckConstraint, Numeric, String
from sqlalchemy.orm import Mapped, mapped_column

from monthly_payroll.models.base import Base, TimestampMixin


class Employee(Base, TimestampMixin):
    """Staff member identified by email."""

    __tablename__ = "employee"

    email: Mapped[str] = mapped_column(String, primary_key=True)
    name: Mapped[str] = mapped_column(String, nullable=False)
    base_wage: Mapped[Decimal | None] = mapped_column(Numeric(12, 2), nullable=True)
    is_admin: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    # EPF: percentage of base wage; NULL rates fall back to organization defaults
    epf_enabled: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    epf_rate_employee: Mapped[Decimal | None] = mapped_column(Numeric(6, 4), nullable=True)
    epf_rate_employer: Mapped[Decimal | None] = mapped_column(Numeric(6, 4), nullable=True)

    socso_enabled: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    eis_enabled: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    hrd_enabled: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    is_foreign_worker: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    skip_payroll: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    __table_args__ = (
        CheckConstraint("base_wage IS NULL OR base_wage >= 0", name="employee_base_wage_check"),
        CheckConstraint(
            "epf_rate_employee IS NULL OR (epf_rate_employee >= 0 AND epf_rate_employee <= 1)",
            name="employee_epf_rate_employee_check",
        ),
        CheckConstraint(
            "epf_rate_employer IS NULL OR (epf_rate_employer >= 0 AND epf_rate_employer <= 1)",
            name="employee_epf_rate_employer_check",
        ),
    )

    @property
    def display_name(self) -> str:
        """Name for payslips, falling back to the email's local part."""
        return self.name or self.email.split("@")[0]

    @property
    def statutory_exempt(self) -> bool:
        """Foreign workers are outside the EPF/SOCSO/EIS schemes."""
        return bool(self.is_foreign_worker)

"""Payroll period, manual item and computed line item models."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import TYPE_CHECKING
from uuid import UUID, uuid4

from sqlalchemy import (
    CheckConstraint,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from monthly_payroll.models.base import Base, TimestampMixin

if TYPE_CHECKING:
    from monthly_payroll.models.employee import Employee


class Period(Base, TimestampMixin):
    """One calendar month's payroll cycle."""

    __tablename__ = "payroll_period"

    id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)
    year: Mapped[int] = mapped_column(Integer, nullable=False)
    month: Mapped[int] = mapped_column(Integer, nullable=False)
    status: Mapped[str] = mapped_column(String, nullable=False, default="OPEN")
    locked_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    locked_by: Mapped[str | None] = mapped_column(String, nullable=True)

    __table_args__ = (
        UniqueConstraint("year", "month", name="payroll_period_year_month_unique"),
        CheckConstraint("month BETWEEN 1 AND 12", name="payroll_period_month_check"),
        CheckConstraint("status IN ('OPEN', 'LOCKED')", name="payroll_period_status_check"),
    )

    # Relationships
    manual_items: Mapped[list[ManualItem]] = relationship(back_populates="period")

    @property
    def label(self) -> str:
        """YYYY-MM form used in logs and messages."""
        return f"{self.year:04d}-{self.month:02d}"


class ManualItem(Base, TimestampMixin):
    """Ad-hoc earning or deduction entered by an admin."""

    __tablename__ = "manual_item"

    id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)
    employee_email: Mapped[str] = mapped_column(
        String,
        ForeignKey("employee.email", ondelete="CASCADE"),
        nullable=False,
    )
    period_id: Mapped[UUID] = mapped_column(
        ForeignKey("payroll_period.id", ondelete="CASCADE"),
        nullable=False,
    )
    kind: Mapped[str] = mapped_column(String, nullable=False)
    code: Mapped[str] = mapped_column(String, nullable=False)
    label: Mapped[str | None] = mapped_column(String(120), nullable=True)
    # Stored positive; DEDUCT reduces net pay
    amount: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    created_by: Mapped[str | None] = mapped_column(String, nullable=True)

    __table_args__ = (
        CheckConstraint("kind IN ('EARN', 'DEDUCT')", name="manual_item_kind_check"),
        CheckConstraint("amount > 0", name="manual_item_amount_positive"),
        Index("manual_item_period_employee_idx", "period_id", "employee_email"),
    )

    # Relationships
    period: Mapped[Period] = relationship(back_populates="manual_items")
    employee: Mapped[Employee] = relationship()

    @classmethod
    def entry_order(cls) -> tuple:
        """Order in which manual items are listed and turned into payslip lines."""
        return (cls.employee_email, cls.created_at, cls.code, cls.id)


class PayrollItem(Base):
    """Computed payroll line. Regenerated wholesale on every build of its period."""

    __tablename__ = "payroll_item"

    id: Mapped[UUID] = mapped_column(primary_key=True)
    period_id: Mapped[UUID] = mapped_column(
        ForeignKey("payroll_period.id", ondelete="CASCADE"),
        nullable=False,
    )
    employee_email: Mapped[str] = mapped_column(
        String,
        ForeignKey("employee.email", ondelete="CASCADE"),
        nullable=False,
    )
    item_type: Mapped[str] = mapped_column(String, nullable=False)
    code: Mapped[str] = mapped_column(String, nullable=False)
    label: Mapped[str] = mapped_column(String, nullable=False)
    amount: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    position: Mapped[int] = mapped_column(Integer, nullable=False)
    source_item_id: Mapped[UUID | None] = mapped_column(nullable=True)
    line_hash: Mapped[str] = mapped_column(String(32), nullable=False)

    __table_args__ = (
        CheckConstraint("amount >= 0", name="payroll_item_amount_nonnegative"),
        CheckConstraint(
            "item_type IN ('EARN_BASE', 'EARN_MANUAL', 'DEDUCT_MANUAL', "
            "'STAT_EMP_EPF', 'STAT_EMP_SOCSO', 'STAT_EMP_EIS', 'STAT_EMP_PCB', "
            "'STAT_ER_EPF', 'STAT_ER_SOCSO', 'STAT_ER_EIS', 'STAT_ER_HRD')",
            name="payroll_item_type_check",
        ),
        UniqueConstraint(
            "period_id", "employee_email", "position", name="payroll_item_position_unique"
        ),
    )

"""Statutory contribution bracket tables (SOCSO, EIS)."""

from __future__ import annotations

from decimal import Decimal
from uuid import UUID, uuid4

from sqlalchemy import CheckConstraint, Numeric
from sqlalchemy.orm import Mapped, declared_attr, mapped_column

from monthly_payroll.models.base import Base


class BracketMixin:
    """Wage range mapped to fixed employee/employer contribution amounts.

    A NULL ``wage_max`` means the band is unbounded above.
    """

    id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)
    wage_min: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    wage_max: Mapped[Decimal | None] = mapped_column(Numeric(12, 2), nullable=True)
    employee_contribution: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    employer_contribution: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)

    @declared_attr.directive
    def __table_args__(cls) -> tuple:
        name = cls.__tablename__
        return (
            CheckConstraint("wage_min >= 0", name=f"{name}_wage_min_check"),
            CheckConstraint(
                "wage_max IS NULL OR wage_max >= wage_min",
                name=f"{name}_range_check",
            ),
            CheckConstraint(
                "employee_contribution >= 0 AND employer_contribution >= 0",
                name=f"{name}_amounts_check",
            ),
        )


class SocsoBracket(BracketMixin, Base):
    """SOCSO contribution table row."""

    __tablename__ = "socso_bracket"


class EisBracket(BracketMixin, Base):
    """EIS contribution table row."""

    __tablename__ = "eis_bracket"

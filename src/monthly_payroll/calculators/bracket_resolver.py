"""Statutory bracket resolution (SOCSO / EIS contribution tables)."""

from __future__ import annotations

from decimal import Decimal
from typing import Sequence

from monthly_payroll.calculators.line_builder import LineItemBuilder
from monthly_payroll.calculators.types import BracketRow, Contribution, FallbackRates


def _ordered(brackets: Sequence[BracketRow]) -> list[BracketRow]:
    return sorted(brackets, key=lambda b: Decimal(b.wage_min))


def _contribution(bracket: BracketRow) -> Contribution:
    return Contribution(
        employee_amount=LineItemBuilder.round_to_cents(bracket.employee_contribution),
        employer_amount=LineItemBuilder.round_to_cents(bracket.employer_contribution),
    )


def find_bracket(brackets: Sequence[BracketRow], wage: Decimal) -> BracketRow | None:
    """Pick the table row covering ``wage``.

    Selection order:
    1. First row (by wage_min) with wage_min <= wage <= wage_max, where a
       NULL wage_max is unbounded
    2. Otherwise the row with the greatest wage_min <= wage (gap in the table)
    3. Otherwise None (empty table, or wage below the lowest band)
    """
    wage = Decimal(wage)
    rows = _ordered(brackets)

    for row in rows:
        if wage >= row.wage_min and (row.wage_max is None or wage <= row.wage_max):
            return row

    best: BracketRow | None = None
    for row in rows:
        if wage >= row.wage_min:
            best = row  # rows are ascending, so the last hit has the greatest wage_min
    return best


def resolve(brackets: Sequence[BracketRow], wage: Decimal) -> Contribution | None:
    """Map a wage to its contribution pair, or None when no row applies."""
    row = find_bracket(brackets, wage)
    if row is None:
        return None
    return _contribution(row)


def resolve_with_fallback(
    brackets: Sequence[BracketRow],
    wage: Decimal,
    fallback: FallbackRates,
) -> Contribution:
    """Resolve a contribution, never failing the caller.

    - empty table: flat percentages from configuration
    - non-empty table with no applicable row (wage below the lowest band): zero
    """
    if not brackets:
        wage = Decimal(wage)
        return Contribution(
            employee_amount=LineItemBuilder.round_to_cents(wage * fallback.employee_rate),
            employer_amount=LineItemBuilder.round_to_cents(wage * fallback.employer_rate),
        )
    return resolve(brackets, wage) or Contribution.zero()


def validate_brackets(brackets: Sequence[BracketRow]) -> list[str]:
    """Validate that a table covers [0, inf) without gaps or overlaps.

    Returns list of error messages (empty if valid).
    """
    errors: list[str] = []
    rows = _ordered(brackets)
    if not rows:
        return errors

    cent = LineItemBuilder.OUTPUT_PRECISION
    if rows[0].wage_min > 0:
        errors.append(f"Table starts at {rows[0].wage_min}, expected 0")

    for i, row in enumerate(rows):
        if row.wage_max is not None and row.wage_max < row.wage_min:
            errors.append(f"Row {i} has wage_max {row.wage_max} below wage_min {row.wage_min}")
        if row.employee_contribution < 0 or row.employer_contribution < 0:
            errors.append(f"Row {i} has a negative contribution")

        if i + 1 < len(rows):
            nxt = rows[i + 1]
            if row.wage_max is None:
                errors.append(f"Row {i} is unbounded but is not the last row")
            elif nxt.wage_min <= row.wage_max:
                errors.append(f"Rows {i} and {i + 1} overlap at {nxt.wage_min}")
            elif nxt.wage_min - row.wage_max > cent:
                errors.append(f"Gap between {row.wage_max} and {nxt.wage_min}")

    if rows[-1].wage_max is not None:
        errors.append(f"Last row ends at {rows[-1].wage_max}, expected unbounded")

    return errors

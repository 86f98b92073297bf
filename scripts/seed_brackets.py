"""Seed the SOCSO and EIS contribution bracket tables.

Usage:
    python scripts/seed_brackets.py --socso socso.csv --eis eis.csv [--replace]

Each CSV has the header ``wage_min,wage_max,employee,employer``; leave
``wage_max`` empty on the last (unbounded) row. The schema is created first
if it does not exist.
"""

from __future__ import annotations

import argparse
import asyncio
import csv
import sys
from decimal import Decimal, InvalidOperation
from pathlib import Path

from sqlalchemy import delete, func, select

from monthly_payroll.calculators.bracket_resolver import validate_brackets
from monthly_payroll.calculators.types import Bracket
from monthly_payroll.config import get_settings
from monthly_payroll.database import Database
from monthly_payroll.models import EisBracket, SocsoBracket


def read_brackets(path: Path) -> list[Bracket]:
    """Parse a bracket CSV into rows ordered by wage_min."""
    brackets = []
    with path.open(newline="", encoding="utf-8") as fh:
        for lineno, row in enumerate(csv.DictReader(fh), start=2):
            try:
                wage_max = (row.get("wage_max") or "").strip()
                brackets.append(
                    Bracket(
                        wage_min=Decimal(row["wage_min"].strip()),
                        wage_max=Decimal(wage_max) if wage_max else None,
                        employee_contribution=Decimal(row["employee"].strip()),
                        employer_contribution=Decimal(row["employer"].strip()),
                    )
                )
            except (KeyError, AttributeError, InvalidOperation) as e:
                raise ValueError(f"{path}:{lineno}: malformed bracket row ({e})") from e
    return sorted(brackets, key=lambda b: b.wage_min)


async def seed_table(database: Database, model: type, brackets: list[Bracket], replace: bool) -> None:
    """Insert brackets into one table unless it already has rows."""
    name = model.__tablename__
    for problem in validate_brackets(brackets):
        print(f"Warning ({name}): {problem}")

    async with database.transaction() as session:
        existing = await session.scalar(select(func.count()).select_from(model))
        if existing and not replace:
            print(f"{name} already has {existing} row(s), skipping (use --replace)")
            return
        if existing:
            await session.execute(delete(model))
        session.add_all(
            model(
                wage_min=b.wage_min,
                wage_max=b.wage_max,
                employee_contribution=b.employee_contribution,
                employer_contribution=b.employer_contribution,
            )
            for b in brackets
        )
    print(f"Loaded {len(brackets)} row(s) into {name}")


async def main() -> int:
    parser = argparse.ArgumentParser(description="Seed SOCSO/EIS bracket tables")
    parser.add_argument("--socso", type=Path, help="SOCSO bracket CSV")
    parser.add_argument("--eis", type=Path, help="EIS bracket CSV")
    parser.add_argument(
        "--replace",
        action="store_true",
        help="Replace existing rows instead of skipping non-empty tables",
    )
    args = parser.parse_args()

    if not args.socso and not args.eis:
        parser.error("nothing to seed: pass --socso and/or --eis")

    try:
        tables = [
            (model, read_brackets(path))
            for model, path in ((SocsoBracket, args.socso), (EisBracket, args.eis))
            if path is not None
        ]
    except (OSError, ValueError) as e:
        print(f"Error: {e}")
        return 1

    database = Database.from_settings(get_settings())
    try:
        await database.create_all()
        for model, brackets in tables:
            await seed_table(database, model, brackets, args.replace)
    finally:
        await database.dispose()

    print("\nDone! Bracket tables seeded successfully.")
    return 0


if __name__ == "__main__":
    sys.exit(asyncio.run(main()))

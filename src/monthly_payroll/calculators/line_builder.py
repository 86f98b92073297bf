"""Line item builder with idempotent hashing."""

from __future__ import annotations

import hashlib
import json
from decimal import ROUND_HALF_UP, Decimal
from uuid import UUID

from monthly_payroll.calculators.types import ItemType, LineCandidate, ManualKind

STATUTORY_LABELS: dict[ItemType, str] = {
    ItemType.STAT_EMP_PCB: "PCB (Emp)",
    ItemType.STAT_EMP_EPF: "EPF (Emp)",
    ItemType.STAT_EMP_SOCSO: "SOCSO (Emp)",
    ItemType.STAT_EMP_EIS: "EIS (Emp)",
    ItemType.STAT_ER_EPF: "EPF (Er)",
    ItemType.STAT_ER_SOCSO: "SOCSO (Er)",
    ItemType.STAT_ER_EIS: "EIS (Er)",
    ItemType.STAT_ER_HRD: "HRD (Er)",
}

# Well-known manual item codes and their payslip labels
KNOWN_MANUAL_CODES: dict[str, str] = {
    "COMM": "Commission",
    "ADV": "Advance/Deduction",
}


class LineItemBuilder:
    """Builds payroll lines with deterministic hashing for idempotency.

    Amount conventions:
    - every amount is stored >= 0
    - EARN_* lines add to gross
    - DEDUCT_MANUAL and STAT_EMP_* lines reduce net
    - STAT_ER_* lines are employer cost only and never touch net

    Rounding:
    - 2 decimal places, half away from zero, applied when a line is created
    - the summary aggregator uses the same round_to_cents
    """

    OUTPUT_PRECISION = Decimal("0.01")

    @staticmethod
    def round_to_cents(amount: Decimal | int | str) -> Decimal:
        """Round amount to 2 decimal places (cents)."""
        # Decimal ROUND_HALF_UP rounds ties away from zero for negatives too
        return Decimal(amount).quantize(LineItemBuilder.OUTPUT_PRECISION, rounding=ROUND_HALF_UP)

    @staticmethod
    def compute_line_hash(line: LineCandidate) -> str:
        """Compute deterministic hash for a line item.

        The hash is based on the canonical representation of defining fields,
        ensuring identical inputs produce identical hashes.
        """
        canonical = line.to_canonical_dict()
        json_str = json.dumps(canonical, sort_keys=True)
        return hashlib.sha256(json_str.encode()).hexdigest()[:32]

    @staticmethod
    def compute_item_id(
        period_id: UUID, employee_email: str, position: int, line_hash: str
    ) -> UUID:
        """Derive a stable row id so a rebuild reproduces identical rows."""
        data = {
            "period_id": str(period_id),
            "employee_email": employee_email,
            "position": position,
            "line_hash": line_hash,
        }
        json_str = json.dumps(data, sort_keys=True)
        hash_bytes = hashlib.sha256(json_str.encode()).digest()
        return UUID(bytes=hash_bytes[:16])

    @staticmethod
    def create_base_line(amount: Decimal) -> LineCandidate:
        """Create the basic salary earning line."""
        return LineCandidate(
            item_type=ItemType.EARN_BASE,
            code="BASIC",
            label="Basic Salary",
            amount=LineItemBuilder.round_to_cents(abs(amount)),
        )

    @staticmethod
    def create_manual_line(
        kind: str,
        code: str,
        amount: Decimal,
        label: str | None = None,
        source_item_id: UUID | None = None,
    ) -> LineCandidate:
        """Create an EARN_MANUAL or DEDUCT_MANUAL line from a manual item."""
        item_type = (
            ItemType.EARN_MANUAL if ManualKind(kind) is ManualKind.EARN else ItemType.DEDUCT_MANUAL
        )
        return LineCandidate(
            item_type=item_type,
            code=code,
            label=label or KNOWN_MANUAL_CODES.get(code, code),
            amount=LineItemBuilder.round_to_cents(abs(amount)),
            source_item_id=source_item_id,
        )

    @staticmethod
    def create_statutory_line(item_type: ItemType, amount: Decimal) -> LineCandidate:
        """Create a STAT_EMP_* or STAT_ER_* line."""
        if item_type not in STATUTORY_LABELS:
            raise ValueError(f"{item_type.value} is not a statutory line type")
        return LineCandidate(
            item_type=item_type,
            code=item_type.value,
            label=STATUTORY_LABELS[item_type],
            amount=LineItemBuilder.round_to_cents(abs(amount)),
        )

    @staticmethod
    def sum_by_type(lines: list) -> dict[ItemType, Decimal]:
        """Sum line amounts by type.

        Accepts LineCandidates or persisted rows (anything with item_type and amount).
        """
        totals: dict[ItemType, Decimal] = {it: Decimal("0") for it in ItemType}
        for line in lines:
            totals[ItemType(line.item_type)] += Decimal(line.amount)
        return totals

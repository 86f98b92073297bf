"""Tests for statutory bracket resolution."""

from decimal import Decimal

from hypothesis import given, strategies as st

from monthly_payroll.calculators.bracket_resolver import (
    find_bracket,
    resolve,
    resolve_with_fallback,
    validate_brackets,
)
from monthly_payroll.calculators.types import Bracket, Contribution, FallbackRates


def D(value: str) -> Decimal:
    return Decimal(value)


# A small well-formed table covering [0, inf)
TABLE = [
    Bracket(D("0.00"), D("30.00"), D("0.10"), D("0.40")),
    Bracket(D("30.01"), D("50.00"), D("0.20"), D("0.70")),
    Bracket(D("50.01"), D("5000.00"), D("24.75"), D("86.65")),
    Bracket(D("5000.01"), None, D("24.75"), D("86.65")),
]

FALLBACK = FallbackRates(D("0.005"), D("0.0175"))


class TestResolve:
    """Test bracket lookup."""

    def test_exact_band(self):
        """Wage inside a band picks that band."""
        assert resolve(TABLE, D("40.00")) == Contribution(D("0.20"), D("0.70"))

    def test_band_edges_are_inclusive(self):
        """Both wage_min and wage_max belong to the band."""
        assert resolve(TABLE, D("30.00")) == Contribution(D("0.10"), D("0.40"))
        assert resolve(TABLE, D("30.01")) == Contribution(D("0.20"), D("0.70"))

    def test_unbounded_last_band(self):
        """NULL wage_max is unbounded above."""
        assert resolve(TABLE, D("1000000")) == Contribution(D("24.75"), D("86.65"))

    def test_input_order_does_not_matter(self):
        """Rows are considered in wage_min order regardless of input order."""
        shuffled = [TABLE[2], TABLE[0], TABLE[3], TABLE[1]]
        assert resolve(shuffled, D("45.00")) == resolve(TABLE, D("45.00"))

    def test_overlap_first_by_wage_min_wins(self):
        """When bands overlap the one with the lower wage_min is chosen."""
        table = [
            Bracket(D("0"), D("100"), D("1.00"), D("2.00")),
            Bracket(D("50"), None, D("9.00"), D("9.00")),
        ]
        assert resolve(table, D("75")) == Contribution(D("1.00"), D("2.00"))

    def test_gap_falls_back_to_greatest_lower_band(self):
        """A wage in a gap uses the band with the greatest wage_min below it."""
        table = [
            Bracket(D("0"), D("100"), D("1.00"), D("2.00")),
            Bracket(D("200"), D("300"), D("3.00"), D("4.00")),
            Bracket(D("400"), None, D("5.00"), D("6.00")),
        ]
        assert resolve(table, D("350")) == Contribution(D("3.00"), D("4.00"))
        assert resolve(table, D("150")) == Contribution(D("1.00"), D("2.00"))

    def test_below_lowest_band(self):
        """Wage below every band resolves to None."""
        table = [Bracket(D("100"), None, D("1.00"), D("2.00"))]
        assert resolve(table, D("99.99")) is None
        assert find_bracket(table, D("99.99")) is None

    def test_empty_table(self):
        """Empty table resolves to None."""
        assert resolve([], D("3000")) is None

    def test_amounts_rounded_half_up(self):
        """Contribution amounts are rounded to cents, ties away from zero."""
        table = [Bracket(D("0"), None, D("1.005"), D("2.345"))]
        assert resolve(table, D("10")) == Contribution(D("1.01"), D("2.35"))


class TestResolveWithFallback:
    """Test the fallback rules used by the calculator."""

    def test_empty_table_uses_flat_rates(self):
        """Empty table applies configured percentages to the wage."""
        result = resolve_with_fallback([], D("3000.00"), FALLBACK)
        assert result == Contribution(D("15.00"), D("52.50"))

    def test_flat_rates_are_rounded(self):
        """Percentage results are rounded to cents."""
        result = resolve_with_fallback([], D("1234.56"), FALLBACK)
        assert result == Contribution(D("6.17"), D("21.60"))

    def test_non_empty_table_below_range_is_zero(self):
        """A populated table never falls back to percentages."""
        table = [Bracket(D("100"), None, D("1.00"), D("2.00"))]
        assert resolve_with_fallback(table, D("50"), FALLBACK) == Contribution.zero()

    def test_table_hit_ignores_fallback(self):
        """Matched rows win over fallback rates."""
        result = resolve_with_fallback(TABLE, D("40.00"), FALLBACK)
        assert result == Contribution(D("0.20"), D("0.70"))


class TestValidateBrackets:
    """Test table validation."""

    def test_valid_table(self):
        """A contiguous table ending unbounded has no problems."""
        assert validate_brackets(TABLE) == []

    def test_empty_table_is_valid(self):
        assert validate_brackets([]) == []

    def test_reports_gap(self):
        """Gaps wider than a cent are reported."""
        table = [
            Bracket(D("0"), D("100"), D("1"), D("1")),
            Bracket(D("200"), None, D("1"), D("1")),
        ]
        errors = validate_brackets(table)
        assert len(errors) == 1
        assert "Gap" in errors[0]

    def test_reports_overlap(self):
        table = [
            Bracket(D("0"), D("100"), D("1"), D("1")),
            Bracket(D("50"), None, D("1"), D("1")),
        ]
        assert any("overlap" in e for e in validate_brackets(table))

    def test_reports_bounded_last_row_and_late_start(self):
        table = [Bracket(D("10"), D("100"), D("1"), D("1"))]
        errors = validate_brackets(table)
        assert any("starts at 10" in e for e in errors)
        assert any("expected unbounded" in e for e in errors)

    def test_reports_inverted_range_and_negative_amount(self):
        table = [Bracket(D("0"), None, D("-1"), D("1")), Bracket(D("0"), D("-5"), D("1"), D("1"))]
        errors = validate_brackets(table)
        assert any("negative contribution" in e for e in errors)
        assert any("below wage_min" in e for e in errors)


class TestResolveProperties:
    """Property-based checks over arbitrary wages."""

    @given(st.decimals(min_value=0, max_value=100000, places=2))
    def test_well_formed_table_always_resolves(self, wage):
        """A table covering [0, inf) resolves every non-negative wage."""
        assert resolve(TABLE, wage) is not None

    @given(st.decimals(min_value=0, max_value=100000, places=2))
    def test_resolved_row_contains_wage(self, wage):
        """The chosen row's range contains the wage in a well-formed table."""
        row = find_bracket(TABLE, wage)
        assert row.wage_min <= wage
        assert row.wage_max is None or wage <= row.wage_max

    @given(st.decimals(min_value=0, max_value=100000, places=2))
    def test_fallback_is_never_negative(self, wage):
        result = resolve_with_fallback([], wage, FALLBACK)
        assert result.employee_amount >= 0
        assert result.employer_amount >= 0

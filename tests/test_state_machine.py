"""Tests for payroll period state machine."""

import pytest

from monthly_payroll.services.state_machine import (
    InvalidTransitionError,
    PeriodStateMachine,
    PeriodStatus,
)


class TestPeriodStateMachine:
    """Test state machine transitions."""

    def test_valid_transitions(self):
        """Test that valid transitions are allowed."""
        # OPEN → LOCKED
        assert PeriodStateMachine.can_transition("OPEN", "LOCKED") is True

        # LOCKED → OPEN (unlock)
        assert PeriodStateMachine.can_transition("LOCKED", "OPEN") is True

    def test_invalid_transitions(self):
        """Test that invalid transitions are blocked."""
        assert PeriodStateMachine.can_transition("OPEN", "OPEN") is False
        assert PeriodStateMachine.can_transition("OPEN", "FINAL") is False
        assert PeriodStateMachine.can_transition("DRAFT", "OPEN") is False

    def test_validate_transition_raises(self):
        """Test that validate_transition raises for invalid transitions."""
        with pytest.raises(InvalidTransitionError) as exc_info:
            PeriodStateMachine.validate_transition("LOCKED", "LOCKED")

        assert exc_info.value.from_status == "LOCKED"
        assert exc_info.value.to_status == "LOCKED"

    def test_is_noop(self):
        """Requesting the current state is a no-op."""
        assert PeriodStateMachine.is_noop("LOCKED", "LOCKED") is True
        assert PeriodStateMachine.is_noop("OPEN", "OPEN") is True
        assert PeriodStateMachine.is_noop("OPEN", "LOCKED") is False
        assert PeriodStateMachine.is_noop("BOGUS", "BOGUS") is False

    def test_can_build(self):
        """Only OPEN periods may be rebuilt."""
        assert PeriodStateMachine.can_build("OPEN") is True
        assert PeriodStateMachine.can_build("LOCKED") is False

    def test_can_modify_inputs(self):
        """Manual items are writable only while OPEN."""
        assert PeriodStateMachine.can_modify_inputs("OPEN") is True
        assert PeriodStateMachine.can_modify_inputs("LOCKED") is False

    def test_get_next_statuses(self):
        assert PeriodStateMachine.get_next_statuses("OPEN") == [PeriodStatus.LOCKED]
        assert PeriodStateMachine.get_next_statuses("LOCKED") == [PeriodStatus.OPEN]
        assert PeriodStateMachine.get_next_statuses("UNKNOWN") == []

    def test_status_enum_compares_to_strings(self):
        """Stored status strings compare equal to the enum members."""
        assert PeriodStatus.OPEN == "OPEN"
        assert PeriodStatus("LOCKED") is PeriodStatus.LOCKED

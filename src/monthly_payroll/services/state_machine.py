"""Payroll period state machine with transition validation."""

from __future__ import annotations

from enum import Enum


class PeriodStatus(str, Enum):
    """Period status values."""

    OPEN = "OPEN"
    LOCKED = "LOCKED"


class InvalidTransitionError(Exception):
    """Raised when an invalid state transition is attempted."""

    def __init__(self, from_status: str, to_status: str, reason: str | None = None):
        self.from_status = from_status
        self.to_status = to_status
        self.reason = reason
        msg = f"Invalid transition from '{from_status}' to '{to_status}'"
        if reason:
            msg += f": {reason}"
        super().__init__(msg)


class PeriodStateMachine:
    """State machine for period status transitions.

    Allowed transitions (both admin-gated at the service level):
    - OPEN → LOCKED
    - LOCKED → OPEN (unlock)

    Requesting the state a period is already in is a no-op, not a transition.
    """

    VALID_TRANSITIONS: dict[str, list[str]] = {
        PeriodStatus.OPEN: [PeriodStatus.LOCKED],
        PeriodStatus.LOCKED: [PeriodStatus.OPEN],
    }

    # Statuses where line items may be rebuilt
    BUILD_ALLOWED = {PeriodStatus.OPEN}

    # Statuses where manual items may be written
    INPUTS_MUTABLE = {PeriodStatus.OPEN}

    @classmethod
    def can_transition(cls, from_status: str, to_status: str) -> bool:
        """Check if a transition is valid."""
        allowed = cls.VALID_TRANSITIONS.get(from_status, [])
        return to_status in allowed

    @classmethod
    def validate_transition(cls, from_status: str, to_status: str) -> None:
        """Validate a transition, raising InvalidTransitionError if invalid."""
        if not cls.can_transition(from_status, to_status):
            raise InvalidTransitionError(from_status, to_status)

    @classmethod
    def is_noop(cls, from_status: str, to_status: str) -> bool:
        """Lock of a LOCKED period or unlock of an OPEN one."""
        return from_status == to_status and from_status in cls.VALID_TRANSITIONS

    @classmethod
    def can_build(cls, status: str) -> bool:
        """Check if payroll lines may be rebuilt in this status."""
        return status in cls.BUILD_ALLOWED

    @classmethod
    def can_modify_inputs(cls, status: str) -> bool:
        """Check if manual items can be modified."""
        return status in cls.INPUTS_MUTABLE

    @classmethod
    def get_next_statuses(cls, current_status: str) -> list[str]:
        """Get list of valid next statuses from current status."""
        return cls.VALID_TRANSITIONS.get(current_status, [])

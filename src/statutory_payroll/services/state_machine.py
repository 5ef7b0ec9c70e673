"""Payroll assembly state machine with transition validation."""

from __future__ import annotations

from enum import Enum


class AssemblyStatus(str, Enum):
    """Payroll assembly states."""

    COLLECTING_INPUTS = "collecting_inputs"
    SPLITTING = "splitting"
    COMPUTING_STATUTORY = "computing_statutory"
    MERGING = "merging"
    COMPLETE = "complete"
    FAILED = "failed"


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


class AssemblyStateMachine:
    """Tracks one employee's assembly through its states.

    Allowed transitions:
    - collecting_inputs → splitting
    - splitting → computing_statutory
    - computing_statutory → merging
    - merging → complete
    - any non-terminal state → failed
    """

    VALID_TRANSITIONS: dict[str, list[str]] = {
        AssemblyStatus.COLLECTING_INPUTS: [AssemblyStatus.SPLITTING, AssemblyStatus.FAILED],
        AssemblyStatus.SPLITTING: [AssemblyStatus.COMPUTING_STATUTORY, AssemblyStatus.FAILED],
        AssemblyStatus.COMPUTING_STATUTORY: [AssemblyStatus.MERGING, AssemblyStatus.FAILED],
        AssemblyStatus.MERGING: [AssemblyStatus.COMPLETE, AssemblyStatus.FAILED],
        AssemblyStatus.COMPLETE: [],  # Terminal state
        AssemblyStatus.FAILED: [],  # Terminal state
    }

    TERMINAL = {AssemblyStatus.COMPLETE, AssemblyStatus.FAILED}

    def __init__(self) -> None:
        self.status = AssemblyStatus.COLLECTING_INPUTS
        self.history: list[AssemblyStatus] = [self.status]

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
    def is_terminal(cls, status: str) -> bool:
        return status in cls.TERMINAL

    def advance(self, to_status: AssemblyStatus) -> None:
        """Move to the next state."""
        self.validate_transition(self.status, to_status)
        self.status = to_status
        self.history.append(to_status)

    def fail(self) -> AssemblyStatus:
        """Move to failed, returning the state the failure happened in."""
        stage = self.status
        self.advance(AssemblyStatus.FAILED)
        return stage

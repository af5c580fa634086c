"""Payroll record state machine with transition validation."""

from __future__ import annotations

from enum import Enum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from staff_payroll.models import PayrollRecord


class RecordStatus(str, Enum):
    """Payroll record status values."""

    DRAFT = "DRAFT"
    APPROVED = "APPROVED"
    PAID = "PAID"
    VOID = "VOID"


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


class RecordStateMachine:
    """State machine for payroll record status transitions.

    Allowed transitions:
    - DRAFT → APPROVED
    - DRAFT → VOID
    - APPROVED → PAID
    - APPROVED → VOID

    PAID and VOID are terminal.
    """

    # Define valid transitions: {from_status: [allowed_to_statuses]}
    VALID_TRANSITIONS: dict[str, list[str]] = {
        RecordStatus.DRAFT: [RecordStatus.APPROVED, RecordStatus.VOID],
        RecordStatus.APPROVED: [RecordStatus.PAID, RecordStatus.VOID],
        RecordStatus.PAID: [],
        RecordStatus.VOID: [],
    }

    TERMINAL = {RecordStatus.PAID, RecordStatus.VOID}

    @classmethod
    def can_transition(cls, from_status: str, to_status: str) -> bool:
        """Check if a transition is valid."""
        allowed = cls.VALID_TRANSITIONS.get(from_status, [])
        return to_status in allowed

    @classmethod
    def validate_transition(cls, from_status: str, to_status: str) -> None:
        """Validate a transition, raising InvalidTransitionError if invalid."""
        if not cls.can_transition(from_status, to_status):
            reason = "status is terminal" if cls.is_terminal(from_status) else None
            raise InvalidTransitionError(from_status, to_status, reason)

    @classmethod
    def is_terminal(cls, status: str) -> bool:
        return status in cls.TERMINAL

    @classmethod
    def get_next_statuses(cls, current_status: str) -> list[str]:
        """Get list of valid next statuses from current status."""
        return cls.VALID_TRANSITIONS.get(current_status, [])

    @classmethod
    def validate_record_for_transition(
        cls,
        record: PayrollRecord,
        to_status: str,
        reason: str | None = None,
    ) -> list[str]:
        """Validate a record for a specific transition, returning any errors.

        Returns list of error messages (empty if valid).
        """
        errors: list[str] = []
        from_status = record.status

        # Basic transition check
        if not cls.can_transition(from_status, to_status):
            errors.append(f"Cannot transition from '{from_status}' to '{to_status}'")
            return errors

        if to_status == RecordStatus.VOID:
            if not reason or not reason.strip():
                errors.append("A reason is required to void a record")

        return errors

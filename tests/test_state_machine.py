"""Tests for payroll record state machine."""

from types import SimpleNamespace

import pytest

from staff_payroll.services.state_machine import (
    InvalidTransitionError,
    RecordStateMachine,
    RecordStatus,
)


class TestRecordStateMachine:
    """Test state machine transitions."""

    def test_valid_transitions(self):
        """Test that valid transitions are allowed."""
        # DRAFT → APPROVED
        assert RecordStateMachine.can_transition("DRAFT", "APPROVED") is True

        # DRAFT → VOID
        assert RecordStateMachine.can_transition("DRAFT", "VOID") is True

        # APPROVED → PAID
        assert RecordStateMachine.can_transition("APPROVED", "PAID") is True

        # APPROVED → VOID
        assert RecordStateMachine.can_transition("APPROVED", "VOID") is True

    def test_invalid_transitions(self):
        """Test that invalid transitions are blocked."""
        # Can't skip approval
        assert RecordStateMachine.can_transition("DRAFT", "PAID") is False

        # Can't go backwards
        assert RecordStateMachine.can_transition("APPROVED", "DRAFT") is False

        # PAID and VOID are terminal
        assert RecordStateMachine.can_transition("PAID", "VOID") is False
        assert RecordStateMachine.can_transition("VOID", "DRAFT") is False
        assert RecordStateMachine.can_transition("VOID", "APPROVED") is False

    def test_unknown_status(self):
        assert RecordStateMachine.can_transition("ARCHIVED", "DRAFT") is False
        assert RecordStateMachine.get_next_statuses("ARCHIVED") == []

    def test_validate_transition_raises(self):
        """Test that validate_transition raises on invalid transition."""
        with pytest.raises(InvalidTransitionError) as exc_info:
            RecordStateMachine.validate_transition("PAID", "VOID")

        assert exc_info.value.from_status == "PAID"
        assert exc_info.value.to_status == "VOID"
        assert "terminal" in str(exc_info.value)

    def test_validate_transition_passes(self):
        RecordStateMachine.validate_transition(RecordStatus.DRAFT, RecordStatus.APPROVED)

    def test_terminal_statuses(self):
        assert RecordStateMachine.is_terminal("PAID") is True
        assert RecordStateMachine.is_terminal("VOID") is True
        assert RecordStateMachine.is_terminal("DRAFT") is False
        assert RecordStateMachine.is_terminal("APPROVED") is False

    def test_get_next_statuses(self):
        """Test getting valid next statuses."""
        assert set(RecordStateMachine.get_next_statuses("DRAFT")) == {"APPROVED", "VOID"}
        assert set(RecordStateMachine.get_next_statuses("APPROVED")) == {"PAID", "VOID"}
        assert RecordStateMachine.get_next_statuses("PAID") == []
        assert RecordStateMachine.get_next_statuses("VOID") == []


class TestValidateRecordForTransition:
    def test_void_requires_reason(self):
        record = SimpleNamespace(status="DRAFT")

        errors = RecordStateMachine.validate_record_for_transition(record, "VOID")
        assert errors == ["A reason is required to void a record"]

        errors = RecordStateMachine.validate_record_for_transition(record, "VOID", "   ")
        assert len(errors) == 1

        errors = RecordStateMachine.validate_record_for_transition(
            record, "VOID", "Wrong salary on roster"
        )
        assert errors == []

    def test_invalid_transition_reported(self):
        record = SimpleNamespace(status="PAID")

        errors = RecordStateMachine.validate_record_for_transition(record, "APPROVED")
        assert errors == ["Cannot transition from 'PAID' to 'APPROVED'"]

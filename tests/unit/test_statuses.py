"""Tests for core/statuses.py."""

from __future__ import annotations

from assurance.core.statuses import (
    EvidenceStatus,
    ImplementationStatus,
    RiskStatus,
    TREATMENT_PROGRESS,
    TreatmentStatus,
    can_transition,
    coerce_status,
    is_terminal,
)


class TestCoerceStatus:
    def test_member_passes_through(self):
        assert coerce_status(RiskStatus, RiskStatus.CLOSED).value is RiskStatus.CLOSED

    def test_string_value(self):
        assert coerce_status(ImplementationStatus, "implemented").value is ImplementationStatus.IMPLEMENTED

    def test_unknown_lists_allowed_values(self):
        result = coerce_status(TreatmentStatus, "paused")
        assert result.error.code == "InvalidStatus"
        assert "treatment status 'paused'" in result.error.message
        assert "in_progress" in result.error.message

    def test_custom_code(self):
        assert coerce_status(RiskStatus, None, "InvalidValue").error.code == "InvalidValue"


class TestEvidenceTransitions:
    def test_pending_to_decision(self):
        assert can_transition(EvidenceStatus.PENDING, EvidenceStatus.APPROVED)
        assert can_transition(EvidenceStatus.PENDING, EvidenceStatus.REJECTED)

    def test_decisions_are_final(self):
        assert not can_transition(EvidenceStatus.APPROVED, EvidenceStatus.REJECTED)
        assert not can_transition(EvidenceStatus.REJECTED, EvidenceStatus.APPROVED)

    def test_reopen_path(self):
        assert can_transition(EvidenceStatus.APPROVED, EvidenceStatus.PENDING)
        assert not can_transition(EvidenceStatus.PENDING, EvidenceStatus.PENDING)

    def test_terminal(self):
        assert is_terminal(EvidenceStatus.APPROVED)
        assert not is_terminal(EvidenceStatus.PENDING)


class TestProgress:
    def test_every_status_has_progress(self):
        assert set(TREATMENT_PROGRESS) == set(TreatmentStatus)
        assert TREATMENT_PROGRESS[TreatmentStatus.CANCELLED] == 0

"""Tests for core/relations.py."""

from __future__ import annotations

from assurance.core.relations import (
    controls_for_risk,
    controls_in_framework,
    evidence_for_control,
    link_evidence_to_control,
    link_risk_to_control,
    link_treatment_to_control,
    unlink_evidence_from_control,
)
from assurance.models.control import Control
from assurance.models.treatment import RiskTreatment


class TestEvidenceLinks:
    def test_link_records_both_sides(self, evidence, other_control):
        result = link_evidence_to_control(evidence, other_control, actor="u-1")
        assert result.is_success
        assert other_control.id in evidence.control_ids
        assert evidence.id in other_control.evidence_ids

    def test_inactive_control_touches_neither_side(self, evidence, other_control):
        other_control.deactivate()
        before = (evidence.revision, other_control.revision)
        result = link_evidence_to_control(evidence, other_control)
        assert result.error.code == "InactiveControl"
        assert (evidence.revision, other_control.revision) == before
        assert other_control.id not in evidence.control_ids

    def test_already_linked(self, evidence, control):
        result = link_evidence_to_control(evidence, control)
        assert result.error.code == "AlreadyLinked"
        assert control.evidence_ids == ()

    def test_unlink_both_sides(self, evidence, control, other_control):
        link_evidence_to_control(evidence, other_control)
        assert unlink_evidence_from_control(evidence, other_control).is_success
        assert evidence.control_ids == (control.id,)
        assert other_control.evidence_ids == ()

    def test_unlink_last_control(self, evidence, control):
        assert unlink_evidence_from_control(evidence, control).error.code == "LastControlLink"

    def test_unlink_not_linked(self, evidence, other_control):
        assert unlink_evidence_from_control(evidence, other_control).error.code == "NotLinked"


class TestRiskAndTreatmentLinks:
    def test_link_risk(self, risk, control):
        assert link_risk_to_control(risk, control).is_success
        assert risk.related_control_ids == (control.id,)

    def test_link_risk_inactive(self, risk, control):
        control.deactivate()
        assert link_risk_to_control(risk, control).error.code == "InactiveControl"
        assert risk.related_control_ids == ()

    def test_link_treatment(self, risk, control):
        treatment = RiskTreatment.create(
            risk_id=risk.id, name="Lockout", description="Lock after 5 failures", type="mitigate",
        ).value
        assert link_treatment_to_control(treatment, control).is_success
        assert link_treatment_to_control(treatment, control).error.code == "AlreadyLinked"


class TestQueries:
    def test_controls_in_framework(self, framework, control, other_control):
        foreign = Control.create(framework_id="other", code="A.5", title="t", description="d").value
        assert controls_in_framework(framework, [control, foreign, other_control]) == [control, other_control]

    def test_controls_for_risk_skips_unknown(self, risk, control, other_control):
        risk.link_control("missing")
        risk.link_control(other_control.id)
        assert controls_for_risk(risk, [control, other_control]) == [other_control]

    def test_evidence_for_control(self, evidence, control, other_control):
        assert evidence_for_control(control, [evidence]) == [evidence]
        assert evidence_for_control(other_control, [evidence]) == []

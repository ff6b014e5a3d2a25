"""Cross-aggregate link rules.

Links are bare id sets on each side; no aggregate owns another. Each rule
checks every precondition before touching either side, so a link is
recorded on both aggregates or on neither. Whether an id exists at all is
for the storage layer to decide.
"""

from __future__ import annotations

import logging
from typing import Iterable, Optional

from ..models.control import Control
from ..models.evidence import Evidence
from ..models.framework import Framework
from ..models.result import DomainError, Result, rule_violation
from ..models.risk import Risk
from ..models.treatment import RiskTreatment

logger = logging.getLogger(__name__)


def _inactive(control: Control) -> Optional[DomainError]:
    if not control.is_active:
        return rule_violation("InactiveControl", f"Control {control.code} is inactive and cannot be linked")
    return None


def _fail(operation: str, error: DomainError) -> Result[None]:
    logger.debug("%s rejected (%s): %s", operation, error.code, error.message)
    return Result.fail(error)


def link_evidence_to_control(
    evidence: Evidence,
    control: Control,
    actor: Optional[str] = None,
) -> Result[None]:
    error = _inactive(control)
    if error:
        return _fail("link_evidence_to_control", error)
    if control.id in evidence.control_ids or evidence.id in control.evidence_ids:
        return _fail("link_evidence_to_control", rule_violation(
            "AlreadyLinked", f"Evidence {evidence.id} is already linked to control {control.code}"
        ))
    evidence.link_to_control(control.id, actor)
    control.link_evidence(evidence.id, actor)
    return Result.ok()


def unlink_evidence_from_control(
    evidence: Evidence,
    control: Control,
    actor: Optional[str] = None,
) -> Result[None]:
    if control.id not in evidence.control_ids:
        return _fail("unlink_evidence_from_control", rule_violation(
            "NotLinked", f"Evidence {evidence.id} is not linked to control {control.code}"
        ))
    if len(evidence.control_ids) == 1:
        return _fail("unlink_evidence_from_control", rule_violation(
            "LastControlLink", "Evidence must be linked to at least one control"
        ))
    evidence.unlink_from_control(control.id, actor)
    if evidence.id in control.evidence_ids:
        control.unlink_evidence(evidence.id, actor)
    return Result.ok()


def link_risk_to_control(risk: Risk, control: Control, actor: Optional[str] = None) -> Result[None]:
    error = _inactive(control)
    if error:
        return _fail("link_risk_to_control", error)
    return risk.link_control(control.id, actor)


def link_treatment_to_control(
    treatment: RiskTreatment,
    control: Control,
    actor: Optional[str] = None,
) -> Result[None]:
    error = _inactive(control)
    if error:
        return _fail("link_treatment_to_control", error)
    return treatment.link_control(control.id, actor)


def controls_in_framework(framework: Framework, controls: Iterable[Control]) -> list[Control]:
    return [c for c in controls if c.framework_id == framework.id]


def controls_for_risk(risk: Risk, controls: Iterable[Control]) -> list[Control]:
    """Resolve a risk's control ids against loaded controls, skipping unknown ids."""
    by_id = {c.id: c for c in controls}
    return [by_id[cid] for cid in risk.related_control_ids if cid in by_id]


def evidence_for_control(control: Control, evidence: Iterable[Evidence]) -> list[Evidence]:
    return [e for e in evidence if control.id in e.control_ids]

"""Build read projections: flattened aggregate state plus derived fields."""

from __future__ import annotations

from datetime import datetime
from typing import Iterable, Optional

from ..models.control import Control
from ..models.evidence import Evidence
from ..models.framework import Framework
from ..models.projection import (
    ControlProjection,
    EvidenceProjection,
    FileView,
    FrameworkProjection,
    OwnerView,
    ReviewView,
    RiskProjection,
    TreatmentProjection,
)
from ..models.risk import Risk
from ..models.treatment import RiskTreatment
from .scoring import DEFAULT_HORIZON_DAYS
from .statuses import ImplementationStatus


def implementation_rate(controls: Iterable[Control]) -> float:
    """Percentage of active controls that are implemented, one decimal place."""
    active = [c for c in controls if c.is_active]
    if not active:
        return 0.0
    implemented = sum(1 for c in active if c.implementation_status == ImplementationStatus.IMPLEMENTED)
    return round(implemented / len(active) * 100, 1)


def project_treatment(treatment: RiskTreatment, now: datetime) -> TreatmentProjection:
    return TreatmentProjection(
        id=treatment.id,
        risk_id=treatment.risk_id,
        name=treatment.name,
        description=treatment.description,
        type=treatment.type.value,
        status=treatment.status.value,
        due_date=treatment.due_date,
        completed_date=treatment.completed_date,
        completed_date_advisory=treatment.completed_date_is_advisory,
        assignee=treatment.assignee,
        cost=treatment.cost,
        related_control_ids=list(treatment.related_control_ids),
        progress=treatment.progress_percentage,
        overdue=treatment.is_overdue(now),
        is_active=treatment.is_active,
    )


def project_risk(risk: Risk, now: datetime, horizon_days: int = DEFAULT_HORIZON_DAYS) -> RiskProjection:
    owner: Optional[OwnerView] = None
    if risk.owner:
        owner = OwnerView(
            user_id=risk.owner.user_id,
            name=risk.owner.name,
            department=risk.owner.department,
        )
    return RiskProjection(
        id=risk.id,
        name=risk.name,
        description=risk.description,
        category=risk.category.value,
        status=risk.status.value,
        inherent_impact=risk.inherent_impact.value,
        inherent_likelihood=risk.inherent_likelihood.value,
        residual_impact=risk.residual_impact.value if risk.residual_impact else None,
        residual_likelihood=risk.residual_likelihood.value if risk.residual_likelihood else None,
        inherent_score=risk.inherent_score(),
        residual_score=risk.residual_score(),
        risk_reduction_percentage=risk.risk_reduction_percentage(),
        owner=owner,
        related_control_ids=list(risk.related_control_ids),
        review_period_months=risk.review_period_months,
        last_review_date=risk.last_review_date,
        next_review_date=risk.next_review_date,
        review_due=risk.is_review_due(now),
        review_upcoming=risk.is_review_upcoming(now, horizon_days),
        tags=sorted(risk.tags),
        treatments=[project_treatment(t, now) for t in risk.treatments],
        is_active=risk.is_active,
        revision=risk.revision,
    )


def project_control(control: Control) -> ControlProjection:
    return ControlProjection(
        id=control.id,
        framework_id=control.framework_id,
        code=control.code,
        title=control.title,
        description=control.description,
        guidance=control.guidance,
        implementation_status=control.implementation_status.value,
        implementation_details=control.implementation_details,
        owner_id=control.owner_id,
        categories=sorted(control.categories),
        parent_control_id=control.parent_control_id,
        evidence_ids=list(control.evidence_ids),
        is_active=control.is_active,
        revision=control.revision,
    )


def project_evidence(evidence: Evidence, now: datetime) -> EvidenceProjection:
    review: Optional[ReviewView] = None
    if evidence.reviewer_id and evidence.reviewed_at:
        review = ReviewView(
            reviewer_id=evidence.reviewer_id,
            reviewed_at=evidence.reviewed_at,
            notes=evidence.review_notes,
        )
    file: Optional[FileView] = None
    if evidence.file:
        file = FileView(**evidence.file.model_dump())
    return EvidenceProjection(
        id=evidence.id,
        title=evidence.title,
        description=evidence.description,
        control_ids=list(evidence.control_ids),
        evidence_type=evidence.evidence_type.value,
        source=evidence.source.value,
        status=evidence.status.value,
        collection_date=evidence.collection_date,
        expiration_date=evidence.expiration_date,
        expired=evidence.is_expired(now),
        file=file,
        review=review,
        tags=sorted(evidence.tags),
        is_active=evidence.is_active,
        revision=evidence.revision,
    )


def project_framework(framework: Framework, controls: Iterable[Control]) -> FrameworkProjection:
    """Project a framework with counts over the active controls that reference it."""
    own = [c for c in controls if c.framework_id == framework.id and c.is_active]

    def count(status: ImplementationStatus) -> int:
        return sum(1 for c in own if c.implementation_status == status)

    return FrameworkProjection(
        id=framework.id,
        name=framework.name.get_value(),
        version=framework.version.get_value(),
        description=framework.description,
        organization=framework.organization,
        category=framework.category,
        website=framework.website,
        total_controls=len(own),
        implemented_controls=count(ImplementationStatus.IMPLEMENTED),
        partially_implemented_controls=count(ImplementationStatus.PARTIALLY_IMPLEMENTED),
        not_implemented_controls=count(ImplementationStatus.NOT_IMPLEMENTED),
        implementation_rate=implementation_rate(own),
        is_active=framework.is_active,
        revision=framework.revision,
    )

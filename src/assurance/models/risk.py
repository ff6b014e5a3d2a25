"""Risk aggregate.

A risk carries two impact/likelihood pairs: inherent (before controls and
treatments) and residual (after). Scores are derived through the scoring
engine, never stored. The risk owns its treatments.
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Any, Iterable, Optional, Union

from ..core import scoring
from ..core.statuses import RiskStatus, coerce_status
from .entity import Entity, EntityState, as_utc, check_length, is_blank, unique, utcnow
from .projection import RiskScore
from .result import Result, rule_violation, validation_error
from .treatment import RiskTreatment
from .values import Impact, Likelihood, RiskOwner

NAME_MAX = 200
DESCRIPTION_MAX = 2000
DEFAULT_REVIEW_PERIOD_MONTHS = 12


class RiskCategory(str, Enum):
    STRATEGIC = "strategic"
    OPERATIONAL = "operational"
    FINANCIAL = "financial"
    COMPLIANCE = "compliance"
    REPUTATIONAL = "reputational"
    TECHNOLOGICAL = "technological"
    LEGAL = "legal"
    SECURITY = "security"
    PRIVACY = "privacy"
    THIRD_PARTY = "third_party"
    OTHER = "other"


class RiskState(EntityState):
    name: str
    description: str
    category: RiskCategory
    status: RiskStatus = RiskStatus.IDENTIFIED
    inherent_impact: Impact
    inherent_likelihood: Likelihood
    residual_impact: Optional[Impact] = None
    residual_likelihood: Optional[Likelihood] = None
    owner: Optional[RiskOwner] = None
    related_control_ids: tuple[str, ...] = ()
    review_period_months: int = DEFAULT_REVIEW_PERIOD_MONTHS
    last_review_date: Optional[datetime] = None
    next_review_date: Optional[datetime] = None
    tags: tuple[str, ...] = ()


def _parse_pair(impact, likelihood) -> Result[tuple[Impact, Likelihood]]:
    impact_result = Impact.parse(impact)
    if impact_result.is_failure:
        return Result.fail(impact_result.error)
    likelihood_result = Likelihood.parse(likelihood)
    if likelihood_result.is_failure:
        return Result.fail(likelihood_result.error)
    return Result.ok((impact_result.value, likelihood_result.value))


def _check_period(months: Any) -> Optional[Any]:
    if not isinstance(months, int) or isinstance(months, bool) or months < 1:
        return validation_error(
            "InvalidReviewPeriod", "Review period must be a positive number of months"
        )
    return None


class Risk(Entity[RiskState]):
    state_model = RiskState

    def __init__(self, state: RiskState, treatments: Optional[Iterable[RiskTreatment]] = None):
        super().__init__(state)
        self._treatments: list[RiskTreatment] = list(treatments or [])

    @classmethod
    def create(
        cls,
        name: str,
        description: str,
        category: Union[RiskCategory, str],
        inherent_impact: Union[Impact, str],
        inherent_likelihood: Union[Likelihood, str],
        residual_impact: Union[Impact, str, None] = None,
        residual_likelihood: Union[Likelihood, str, None] = None,
        status: Union[RiskStatus, str] = RiskStatus.IDENTIFIED,
        owner: Optional[RiskOwner] = None,
        related_control_ids: Optional[Iterable[str]] = None,
        review_period_months: int = DEFAULT_REVIEW_PERIOD_MONTHS,
        last_review_date: Optional[datetime] = None,
        next_review_date: Optional[datetime] = None,
        tags: Optional[Iterable[str]] = None,
        is_active: bool = True,
        created_by: Optional[str] = None,
        created_at: Optional[datetime] = None,
        id: Optional[str] = None,
    ) -> Result["Risk"]:
        if is_blank(name):
            return Result.fail(validation_error("EmptyValue", "Risk name cannot be empty"))
        if is_blank(description):
            return Result.fail(validation_error("EmptyDescription", "Risk description cannot be empty"))
        if is_blank(category):
            return Result.fail(validation_error("EmptyValue", "Risk category is required"))
        error = (
            check_length(name, NAME_MAX, "Risk name")
            or check_length(description, DESCRIPTION_MAX, "Risk description")
            or _check_period(review_period_months)
        )
        if error:
            return Result.fail(error)

        category_result = coerce_status(RiskCategory, category, "InvalidValue")
        if category_result.is_failure:
            return Result.fail(category_result.error)
        status_result = coerce_status(RiskStatus, status)
        if status_result.is_failure:
            return Result.fail(status_result.error)
        inherent = _parse_pair(inherent_impact, inherent_likelihood)
        if inherent.is_failure:
            return Result.fail(inherent.error)

        residual: tuple[Optional[Impact], Optional[Likelihood]] = (None, None)
        if residual_impact is not None or residual_likelihood is not None:
            residual_result = _parse_pair(residual_impact, residual_likelihood)
            if residual_result.is_failure:
                return Result.fail(residual_result.error)
            residual = residual_result.value

        last_review_date, next_review_date = as_utc(last_review_date), as_utc(next_review_date)
        if next_review_date is None:
            next_review_date = scoring.next_review_date(last_review_date, review_period_months)

        state = RiskState(
            name=name,
            description=description,
            category=category_result.value,
            status=status_result.value,
            inherent_impact=inherent.value[0],
            inherent_likelihood=inherent.value[1],
            residual_impact=residual[0],
            residual_likelihood=residual[1],
            owner=owner,
            related_control_ids=unique(related_control_ids),
            review_period_months=review_period_months,
            last_review_date=last_review_date,
            next_review_date=next_review_date,
            tags=unique(tags),
            is_active=is_active,
            created_by=created_by,
            created_at=as_utc(created_at) or utcnow(),
            **({"id": id} if id else {}),
        )
        return Result.ok(cls(state))

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Risk":
        data = dict(data)
        treatments = [RiskTreatment.from_dict(t) for t in data.pop("treatments", None) or []]
        return cls(cls.state_model.model_validate(data), treatments)

    def to_dict(self) -> dict[str, Any]:
        data = super().to_dict()
        data["treatments"] = [t.to_dict() for t in self._treatments]
        return data

    @property
    def name(self) -> str:
        return self._state.name

    @property
    def description(self) -> str:
        return self._state.description

    @property
    def category(self) -> RiskCategory:
        return self._state.category

    @property
    def status(self) -> RiskStatus:
        return self._state.status

    @property
    def inherent_impact(self) -> Impact:
        return self._state.inherent_impact

    @property
    def inherent_likelihood(self) -> Likelihood:
        return self._state.inherent_likelihood

    @property
    def residual_impact(self) -> Optional[Impact]:
        return self._state.residual_impact

    @property
    def residual_likelihood(self) -> Optional[Likelihood]:
        return self._state.residual_likelihood

    @property
    def owner(self) -> Optional[RiskOwner]:
        return self._state.owner

    @property
    def related_control_ids(self) -> tuple[str, ...]:
        return self._state.related_control_ids

    @property
    def review_period_months(self) -> int:
        return self._state.review_period_months

    @property
    def last_review_date(self) -> Optional[datetime]:
        return self._state.last_review_date

    @property
    def next_review_date(self) -> Optional[datetime]:
        return self._state.next_review_date

    @property
    def tags(self) -> frozenset[str]:
        return frozenset(self._state.tags)

    @property
    def treatments(self) -> tuple[RiskTreatment, ...]:
        return tuple(self._treatments)

    # Derived values

    def inherent_score(self) -> RiskScore:
        return scoring.risk_score(self._state.inherent_impact, self._state.inherent_likelihood)

    def residual_score(self) -> Optional[RiskScore]:
        if self._state.residual_impact is None or self._state.residual_likelihood is None:
            return None
        return scoring.risk_score(self._state.residual_impact, self._state.residual_likelihood)

    def risk_reduction_percentage(self) -> Optional[int]:
        residual = self.residual_score()
        return scoring.risk_reduction_percentage(
            self.inherent_score().value, residual.value if residual else None
        )

    def is_review_due(self, now: datetime) -> bool:
        return scoring.is_review_due(self._state.next_review_date, now)

    def is_review_upcoming(self, now: datetime, horizon_days: int = scoring.DEFAULT_HORIZON_DAYS) -> bool:
        return scoring.is_review_upcoming(self._state.next_review_date, now, horizon_days)

    # Assessment

    def update_status(self, status: Union[RiskStatus, str], actor: Optional[str] = None) -> Result[None]:
        status_result = coerce_status(RiskStatus, status)
        if status_result.is_failure:
            return self._reject("update_status", status_result.error)
        return self._commit(actor, status=status_result.value)

    def close(self, actor: Optional[str] = None) -> Result[None]:
        """Close the risk. Closing needs a residual assessment to close against."""
        if self.residual_score() is None:
            return self._reject("close", rule_violation(
                "MissingResidualAssessment", "Cannot close a risk without residual risk assessment"
            ))
        return self._commit(actor, status=RiskStatus.CLOSED)

    def update_description(self, text: str, actor: Optional[str] = None) -> Result[None]:
        if is_blank(text):
            return self._reject("update_description", validation_error(
                "EmptyDescription", "Description cannot be empty"
            ))
        error = check_length(text, DESCRIPTION_MAX, "Description")
        if error:
            return self._reject("update_description", error)
        return self._commit(actor, description=text)

    def assess_inherent(
        self,
        impact: Union[Impact, str],
        likelihood: Union[Likelihood, str],
        actor: Optional[str] = None,
    ) -> Result[None]:
        pair = _parse_pair(impact, likelihood)
        if pair.is_failure:
            return self._reject("assess_inherent", pair.error)
        changes: dict[str, Any] = {"inherent_impact": pair.value[0], "inherent_likelihood": pair.value[1]}
        if self._state.status == RiskStatus.IDENTIFIED:
            changes["status"] = RiskStatus.ASSESSED
        return self._commit(actor, **changes)

    def assess_residual(
        self,
        impact: Union[Impact, str],
        likelihood: Union[Likelihood, str],
        actor: Optional[str] = None,
    ) -> Result[None]:
        pair = _parse_pair(impact, likelihood)
        if pair.is_failure:
            return self._reject("assess_residual", pair.error)
        return self._commit(actor, residual_impact=pair.value[0], residual_likelihood=pair.value[1])

    def assign_owner(self, owner: Optional[RiskOwner], actor: Optional[str] = None) -> Result[None]:
        return self._commit(actor, owner=owner)

    # Review scheduling

    def set_review_period(self, months: int, actor: Optional[str] = None) -> Result[None]:
        error = _check_period(months)
        if error:
            return self._reject("set_review_period", error)
        changes: dict[str, Any] = {"review_period_months": months}
        if self._state.last_review_date is not None:
            changes["next_review_date"] = scoring.next_review_date(self._state.last_review_date, months)
        return self._commit(actor, **changes)

    def mark_reviewed(self, review_date: Optional[datetime] = None, actor: Optional[str] = None) -> Result[None]:
        reviewed = as_utc(review_date) or utcnow()
        return self._commit(
            actor,
            last_review_date=reviewed,
            next_review_date=scoring.next_review_date(reviewed, self._state.review_period_months),
        )

    def schedule_review(self, next_review_date: Optional[datetime], actor: Optional[str] = None) -> Result[None]:
        """Override the computed next review date, e.g. after an incident."""
        return self._commit(actor, next_review_date=as_utc(next_review_date))

    # Links and tags

    def link_control(self, control_id: str, actor: Optional[str] = None) -> Result[None]:
        if is_blank(control_id):
            return self._reject("link_control", validation_error("MissingField", "Control ID is required"))
        if control_id in self._state.related_control_ids:
            return self._reject("link_control", rule_violation(
                "AlreadyLinked", f"Risk is already linked to control {control_id}"
            ))
        return self._commit(actor, related_control_ids=self._state.related_control_ids + (control_id,))

    def unlink_control(self, control_id: str, actor: Optional[str] = None) -> Result[None]:
        if control_id not in self._state.related_control_ids:
            return self._reject("unlink_control", rule_violation(
                "NotLinked", f"Risk is not linked to control {control_id}"
            ))
        remaining = tuple(c for c in self._state.related_control_ids if c != control_id)
        return self._commit(actor, related_control_ids=remaining)

    def update_tags(self, tags: Optional[Iterable[str]], actor: Optional[str] = None) -> Result[None]:
        return self._commit(actor, tags=unique(tags))

    # Treatments

    def add_treatment(self, treatment: RiskTreatment, actor: Optional[str] = None) -> Result[None]:
        if treatment.risk_id != self.id:
            return self._reject("add_treatment", rule_violation(
                "TreatmentRiskMismatch",
                f"Treatment {treatment.id} belongs to risk {treatment.risk_id}, not {self.id}",
            ))
        if any(t.id == treatment.id for t in self._treatments):
            return self._reject("add_treatment", rule_violation(
                "AlreadyLinked", f"Treatment {treatment.id} is already attached to this risk"
            ))
        self._treatments.append(treatment)
        return self._commit(actor)

    def remove_treatment(self, treatment_id: str, actor: Optional[str] = None) -> Result[None]:
        if not any(t.id == treatment_id for t in self._treatments):
            return self._reject("remove_treatment", rule_violation(
                "NotLinked", f"Treatment {treatment_id} is not attached to this risk"
            ))
        self._treatments = [t for t in self._treatments if t.id != treatment_id]
        return self._commit(actor)

    def get_treatment(self, treatment_id: str) -> Optional[RiskTreatment]:
        return next((t for t in self._treatments if t.id == treatment_id), None)

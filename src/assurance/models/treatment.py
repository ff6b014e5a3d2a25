"""RiskTreatment aggregate: a plan to accept, mitigate, transfer or avoid a risk."""

from __future__ import annotations

from datetime import datetime
from typing import Iterable, Optional, Union

from ..core.statuses import TREATMENT_PROGRESS, TreatmentStatus, TreatmentType, coerce_status
from .entity import Entity, EntityState, as_utc, check_length, is_blank, unique, utcnow
from .result import Result, rule_violation, validation_error

NAME_MAX = 200
DESCRIPTION_MAX = 1000

_OPEN = (TreatmentStatus.PLANNED, TreatmentStatus.IN_PROGRESS)


class TreatmentState(EntityState):
    risk_id: str
    name: str
    description: str
    type: TreatmentType
    status: TreatmentStatus = TreatmentStatus.PLANNED
    due_date: Optional[datetime] = None
    completed_date: Optional[datetime] = None
    assignee: Optional[str] = None
    cost: Optional[float] = None
    related_control_ids: tuple[str, ...] = ()


class RiskTreatment(Entity[TreatmentState]):
    state_model = TreatmentState

    @classmethod
    def create(
        cls,
        risk_id: str,
        name: str,
        description: str,
        type: Union[TreatmentType, str],
        status: Union[TreatmentStatus, str] = TreatmentStatus.PLANNED,
        due_date: Optional[datetime] = None,
        completed_date: Optional[datetime] = None,
        assignee: Optional[str] = None,
        cost: Optional[float] = None,
        related_control_ids: Optional[Iterable[str]] = None,
        is_active: bool = True,
        created_by: Optional[str] = None,
        created_at: Optional[datetime] = None,
        id: Optional[str] = None,
    ) -> Result["RiskTreatment"]:
        """Validate and build a treatment.

        ``completed_date`` is accepted whatever the status; it is only
        meaningful once the status is ``completed`` and projections flag it
        as advisory otherwise.
        """
        if is_blank(risk_id):
            return Result.fail(validation_error("MissingField", "Risk ID is required"))
        if is_blank(name):
            return Result.fail(validation_error("EmptyValue", "Treatment name cannot be empty"))
        if is_blank(description):
            return Result.fail(validation_error("EmptyDescription", "Treatment description cannot be empty"))
        error = (
            check_length(name, NAME_MAX, "Treatment name")
            or check_length(description, DESCRIPTION_MAX, "Treatment description")
        )
        if error:
            return Result.fail(error)
        type_result = coerce_status(TreatmentType, type, "InvalidValue")
        if type_result.is_failure:
            return Result.fail(type_result.error)
        status_result = coerce_status(TreatmentStatus, status)
        if status_result.is_failure:
            return Result.fail(status_result.error)
        if cost is not None and cost < 0:
            return Result.fail(validation_error("NegativeValue", "Cost cannot be negative"))

        state = TreatmentState(
            risk_id=risk_id,
            name=name,
            description=description,
            type=type_result.value,
            status=status_result.value,
            due_date=as_utc(due_date),
            completed_date=as_utc(completed_date),
            assignee=assignee,
            cost=cost,
            related_control_ids=unique(related_control_ids),
            is_active=is_active,
            created_by=created_by,
            created_at=as_utc(created_at) or utcnow(),
            **({"id": id} if id else {}),
        )
        return Result.ok(cls(state))

    @property
    def risk_id(self) -> str:
        return self._state.risk_id

    @property
    def name(self) -> str:
        return self._state.name

    @property
    def description(self) -> str:
        return self._state.description

    @property
    def type(self) -> TreatmentType:
        return self._state.type

    @property
    def status(self) -> TreatmentStatus:
        return self._state.status

    @property
    def due_date(self) -> Optional[datetime]:
        return self._state.due_date

    @property
    def completed_date(self) -> Optional[datetime]:
        return self._state.completed_date

    @property
    def assignee(self) -> Optional[str]:
        return self._state.assignee

    @property
    def cost(self) -> Optional[float]:
        return self._state.cost

    @property
    def related_control_ids(self) -> tuple[str, ...]:
        return self._state.related_control_ids

    @property
    def progress_percentage(self) -> int:
        return TREATMENT_PROGRESS[self._state.status]

    @property
    def completed_date_is_advisory(self) -> bool:
        """True when a completion date is recorded but the status is not completed."""
        return (
            self._state.completed_date is not None
            and self._state.status != TreatmentStatus.COMPLETED
        )

    def is_overdue(self, now: datetime) -> bool:
        if self._state.due_date is None or self._state.status not in _OPEN:
            return False
        return as_utc(now) > self._state.due_date

    def update_status(
        self,
        status: Union[TreatmentStatus, str],
        actor: Optional[str] = None,
        completed_date: Optional[datetime] = None,
    ) -> Result[None]:
        status_result = coerce_status(TreatmentStatus, status)
        if status_result.is_failure:
            return self._reject("update_status", status_result.error)
        target = status_result.value

        completed = self._state.completed_date
        if target == TreatmentStatus.COMPLETED:
            completed = as_utc(completed_date) or completed or utcnow()
        elif target in _OPEN:
            completed = None
        return self._commit(actor, status=target, completed_date=completed)

    def update_description(self, text: str, actor: Optional[str] = None) -> Result[None]:
        if is_blank(text):
            return self._reject("update_description", validation_error(
                "EmptyDescription", "Description cannot be empty"
            ))
        error = check_length(text, DESCRIPTION_MAX, "Description")
        if error:
            return self._reject("update_description", error)
        return self._commit(actor, description=text)

    def set_due_date(self, due_date: Optional[datetime], actor: Optional[str] = None) -> Result[None]:
        return self._commit(actor, due_date=as_utc(due_date))

    def assign_to(self, assignee: Optional[str], actor: Optional[str] = None) -> Result[None]:
        return self._commit(actor, assignee=assignee or None)

    def set_cost(self, cost: Optional[float], actor: Optional[str] = None) -> Result[None]:
        if cost is not None and cost < 0:
            return self._reject("set_cost", validation_error("NegativeValue", "Cost cannot be negative"))
        return self._commit(actor, cost=cost)

    def link_control(self, control_id: str, actor: Optional[str] = None) -> Result[None]:
        if is_blank(control_id):
            return self._reject("link_control", validation_error("MissingField", "Control ID is required"))
        if control_id in self._state.related_control_ids:
            return self._reject("link_control", rule_violation(
                "AlreadyLinked", f"Treatment is already linked to control {control_id}"
            ))
        return self._commit(actor, related_control_ids=self._state.related_control_ids + (control_id,))

    def unlink_control(self, control_id: str, actor: Optional[str] = None) -> Result[None]:
        if control_id not in self._state.related_control_ids:
            return self._reject("unlink_control", rule_violation(
                "NotLinked", f"Treatment is not linked to control {control_id}"
            ))
        remaining = tuple(c for c in self._state.related_control_ids if c != control_id)
        return self._commit(actor, related_control_ids=remaining)

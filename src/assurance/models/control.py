"""Control aggregate: one requirement inside a framework, e.g. AC-1 or CC5.1.

``code`` uniqueness within a framework is a storage constraint on
(framework_id, code); the aggregate only checks that it is present.
Implementation status is permissive: operators may set any listed value.
"""

from __future__ import annotations

from datetime import datetime
from typing import Iterable, Optional, Union

from ..core.statuses import ImplementationStatus, coerce_status
from .entity import Entity, EntityState, as_utc, check_length, is_blank, unique, utcnow
from .result import Result, rule_violation, validation_error

DESCRIPTION_MAX = 2000
GUIDANCE_MAX = 5000


class ControlState(EntityState):
    framework_id: str
    code: str
    title: str
    description: str
    guidance: Optional[str] = None
    implementation_status: ImplementationStatus = ImplementationStatus.NOT_IMPLEMENTED
    implementation_details: Optional[str] = None
    owner_id: Optional[str] = None
    categories: tuple[str, ...] = ()
    parent_control_id: Optional[str] = None
    evidence_ids: tuple[str, ...] = ()


class Control(Entity[ControlState]):
    state_model = ControlState

    @classmethod
    def create(
        cls,
        framework_id: str,
        code: str,
        title: str,
        description: str,
        implementation_status: Union[ImplementationStatus, str] = ImplementationStatus.NOT_IMPLEMENTED,
        implementation_details: Optional[str] = None,
        guidance: Optional[str] = None,
        owner_id: Optional[str] = None,
        categories: Optional[Iterable[str]] = None,
        parent_control_id: Optional[str] = None,
        is_active: bool = True,
        created_by: Optional[str] = None,
        created_at: Optional[datetime] = None,
        id: Optional[str] = None,
    ) -> Result["Control"]:
        if is_blank(framework_id):
            return Result.fail(validation_error("MissingField", "Framework ID is required"))
        if is_blank(code):
            return Result.fail(validation_error("EmptyValue", "Control code cannot be empty"))
        if is_blank(title):
            return Result.fail(validation_error("EmptyValue", "Control title cannot be empty"))
        if is_blank(description):
            return Result.fail(validation_error("EmptyDescription", "Control description cannot be empty"))
        error = (
            check_length(description, DESCRIPTION_MAX, "Control description")
            or check_length(guidance, GUIDANCE_MAX, "Control guidance")
        )
        if error:
            return Result.fail(error)
        status_result = coerce_status(ImplementationStatus, implementation_status)
        if status_result.is_failure:
            return Result.fail(status_result.error)

        state = ControlState(
            framework_id=framework_id,
            code=code.strip(),
            title=title,
            description=description,
            guidance=guidance,
            implementation_status=status_result.value,
            implementation_details=implementation_details,
            owner_id=owner_id,
            categories=unique(categories),
            parent_control_id=parent_control_id,
            is_active=is_active,
            created_by=created_by,
            created_at=as_utc(created_at) or utcnow(),
            **({"id": id} if id else {}),
        )
        return Result.ok(cls(state))

    @property
    def framework_id(self) -> str:
        return self._state.framework_id

    @property
    def code(self) -> str:
        return self._state.code

    @property
    def title(self) -> str:
        return self._state.title

    @property
    def description(self) -> str:
        return self._state.description

    @property
    def guidance(self) -> Optional[str]:
        return self._state.guidance

    @property
    def implementation_status(self) -> ImplementationStatus:
        return self._state.implementation_status

    @property
    def implementation_details(self) -> Optional[str]:
        return self._state.implementation_details

    @property
    def owner_id(self) -> Optional[str]:
        return self._state.owner_id

    @property
    def categories(self) -> frozenset[str]:
        return frozenset(self._state.categories)

    @property
    def parent_control_id(self) -> Optional[str]:
        return self._state.parent_control_id

    @property
    def evidence_ids(self) -> tuple[str, ...]:
        return self._state.evidence_ids

    def update_implementation(
        self,
        status: Union[ImplementationStatus, str],
        details: Optional[str] = None,
        actor: Optional[str] = None,
    ) -> Result[None]:
        status_result = coerce_status(ImplementationStatus, status)
        if status_result.is_failure:
            return self._reject("update_implementation", status_result.error)
        return self._commit(
            actor,
            implementation_status=status_result.value,
            implementation_details=details,
        )

    def update_description(self, text: str, actor: Optional[str] = None) -> Result[None]:
        if is_blank(text):
            return self._reject("update_description", validation_error(
                "EmptyDescription", "Description cannot be empty"
            ))
        error = check_length(text, DESCRIPTION_MAX, "Description")
        if error:
            return self._reject("update_description", error)
        return self._commit(actor, description=text)

    def update_guidance(self, guidance: Optional[str], actor: Optional[str] = None) -> Result[None]:
        error = check_length(guidance, GUIDANCE_MAX, "Guidance")
        if error:
            return self._reject("update_guidance", error)
        return self._commit(actor, guidance=guidance or None)

    def assign_owner(self, owner_id: Optional[str], actor: Optional[str] = None) -> Result[None]:
        return self._commit(actor, owner_id=owner_id or None)

    def update_categories(self, categories: Optional[Iterable[str]], actor: Optional[str] = None) -> Result[None]:
        return self._commit(actor, categories=unique(categories))

    def link_evidence(self, evidence_id: str, actor: Optional[str] = None) -> Result[None]:
        if is_blank(evidence_id):
            return self._reject("link_evidence", validation_error("MissingField", "Evidence ID is required"))
        if evidence_id in self._state.evidence_ids:
            return self._reject("link_evidence", rule_violation(
                "AlreadyLinked", f"Control is already linked to evidence {evidence_id}"
            ))
        return self._commit(actor, evidence_ids=self._state.evidence_ids + (evidence_id,))

    def unlink_evidence(self, evidence_id: str, actor: Optional[str] = None) -> Result[None]:
        if evidence_id not in self._state.evidence_ids:
            return self._reject("unlink_evidence", rule_violation(
                "NotLinked", f"Control is not linked to evidence {evidence_id}"
            ))
        remaining = tuple(e for e in self._state.evidence_ids if e != evidence_id)
        return self._commit(actor, evidence_ids=remaining)

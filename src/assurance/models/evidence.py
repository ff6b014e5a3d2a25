"""Evidence aggregate: an artefact collected to show one or more controls operate.

Evidence and controls point at each other by id; neither owns the other.
Only file metadata is recorded, never file content.

Review is one-shot: pending evidence is approved or rejected once, with the
reviewer, time and notes recorded. ``reopen`` sends a decided item back to
pending for a fresh review.
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Iterable, Optional, Union

from ..core.statuses import EvidenceStatus, can_transition, coerce_status, is_terminal
from .entity import Entity, EntityState, as_utc, check_length, is_blank, unique, utcnow
from .result import Result, rule_violation, validation_error
from .values import FileMetadata

TITLE_MAX = 200
DESCRIPTION_MAX = 2000


class EvidenceType(str, Enum):
    DOCUMENT = "document"
    SCREENSHOT = "screenshot"
    SYSTEM_EXPORT = "system_export"
    LOG = "log"
    CONFIGURATION = "configuration"
    INTERVIEW = "interview"
    ATTESTATION = "attestation"
    OBSERVATION = "observation"
    OTHER = "other"


class EvidenceSource(str, Enum):
    MANUAL = "manual"
    INTEGRATION = "integration"
    API = "api"
    EMAIL = "email"


class EvidenceState(EntityState):
    title: str
    description: Optional[str] = None
    control_ids: tuple[str, ...]
    evidence_type: EvidenceType = EvidenceType.DOCUMENT
    source: EvidenceSource = EvidenceSource.MANUAL
    status: EvidenceStatus = EvidenceStatus.PENDING
    collection_date: datetime
    expiration_date: Optional[datetime] = None
    file: Optional[FileMetadata] = None
    tags: tuple[str, ...] = ()
    reviewer_id: Optional[str] = None
    reviewed_at: Optional[datetime] = None
    review_notes: Optional[str] = None


def _check_window(collection_date: datetime, expiration_date: Optional[datetime]):
    if expiration_date is not None and expiration_date < collection_date:
        return validation_error(
            "InvalidValidityWindow",
            "Evidence expiration date cannot be earlier than its collection date",
        )
    return None


class Evidence(Entity[EvidenceState]):
    state_model = EvidenceState

    @classmethod
    def create(
        cls,
        control_ids: Iterable[str],
        title: str,
        description: Optional[str] = None,
        source: Union[EvidenceSource, str] = EvidenceSource.MANUAL,
        evidence_type: Union[EvidenceType, str] = EvidenceType.DOCUMENT,
        collection_date: Optional[datetime] = None,
        expiration_date: Optional[datetime] = None,
        file: Optional[FileMetadata] = None,
        tags: Optional[Iterable[str]] = None,
        is_active: bool = True,
        created_by: Optional[str] = None,
        created_at: Optional[datetime] = None,
        id: Optional[str] = None,
    ) -> Result["Evidence"]:
        linked = unique(control_ids)
        if not linked:
            return Result.fail(validation_error(
                "NoControlsLinked", "Evidence must be linked to at least one control"
            ))
        if is_blank(title):
            return Result.fail(validation_error("EmptyValue", "Evidence title cannot be empty"))
        error = (
            check_length(title, TITLE_MAX, "Evidence title")
            or check_length(description, DESCRIPTION_MAX, "Description")
        )
        if error:
            return Result.fail(error)

        source_result = coerce_status(EvidenceSource, source, "InvalidValue")
        if source_result.is_failure:
            return Result.fail(source_result.error)
        type_result = coerce_status(EvidenceType, evidence_type, "InvalidValue")
        if type_result.is_failure:
            return Result.fail(type_result.error)

        collected = as_utc(collection_date) or utcnow()
        expiration_date = as_utc(expiration_date)
        error = _check_window(collected, expiration_date)
        if error:
            return Result.fail(error)

        state = EvidenceState(
            title=title,
            description=description,
            control_ids=linked,
            evidence_type=type_result.value,
            source=source_result.value,
            collection_date=collected,
            expiration_date=expiration_date,
            file=file,
            tags=unique(tags),
            is_active=is_active,
            created_by=created_by,
            created_at=as_utc(created_at) or utcnow(),
            **({"id": id} if id else {}),
        )
        return Result.ok(cls(state))

    @property
    def title(self) -> str:
        return self._state.title

    @property
    def description(self) -> Optional[str]:
        return self._state.description

    @property
    def control_ids(self) -> tuple[str, ...]:
        return self._state.control_ids

    @property
    def evidence_type(self) -> EvidenceType:
        return self._state.evidence_type

    @property
    def source(self) -> EvidenceSource:
        return self._state.source

    @property
    def status(self) -> EvidenceStatus:
        return self._state.status

    @property
    def collection_date(self) -> datetime:
        return self._state.collection_date

    @property
    def expiration_date(self) -> Optional[datetime]:
        return self._state.expiration_date

    @property
    def file(self) -> Optional[FileMetadata]:
        return self._state.file

    @property
    def tags(self) -> frozenset[str]:
        return frozenset(self._state.tags)

    @property
    def reviewer_id(self) -> Optional[str]:
        return self._state.reviewer_id

    @property
    def reviewed_at(self) -> Optional[datetime]:
        return self._state.reviewed_at

    @property
    def review_notes(self) -> Optional[str]:
        return self._state.review_notes

    def is_expired(self, now: datetime) -> bool:
        return self._state.expiration_date is not None and as_utc(now) > self._state.expiration_date

    def is_valid(self, now: datetime) -> bool:
        return self._state.collection_date <= as_utc(now) and not self.is_expired(now)

    # Review lifecycle

    def review(
        self,
        decision: Union[EvidenceStatus, str],
        reviewer_id: str,
        notes: Optional[str] = None,
        reviewed_at: Optional[datetime] = None,
    ) -> Result[None]:
        decision_result = coerce_status(EvidenceStatus, decision)
        if decision_result.is_failure:
            return self._reject("review", decision_result.error)
        target = decision_result.value
        if not is_terminal(target):
            return self._reject("review", validation_error(
                "InvalidStatus", "Review decision must be either approved or rejected"
            ))
        if is_blank(reviewer_id):
            return self._reject("review", validation_error("MissingField", "Reviewer ID is required"))
        if not can_transition(self._state.status, target):
            return self._reject("review", rule_violation(
                "InvalidTransition",
                f"Evidence has already been {self._state.status.value}; reopen it before reviewing again",
            ))
        return self._commit(
            reviewer_id,
            status=target,
            reviewer_id=reviewer_id,
            reviewed_at=as_utc(reviewed_at) or utcnow(),
            review_notes=notes,
        )

    def approve(self, reviewer_id: str, notes: Optional[str] = None,
                reviewed_at: Optional[datetime] = None) -> Result[None]:
        return self.review(EvidenceStatus.APPROVED, reviewer_id, notes, reviewed_at)

    def reject(self, reviewer_id: str, notes: Optional[str] = None,
               reviewed_at: Optional[datetime] = None) -> Result[None]:
        return self.review(EvidenceStatus.REJECTED, reviewer_id, notes, reviewed_at)

    def reopen(self, actor: Optional[str] = None) -> Result[None]:
        if not can_transition(self._state.status, EvidenceStatus.PENDING):
            return self._reject("reopen", rule_violation(
                "InvalidTransition", "Evidence is still pending review and cannot be reopened"
            ))
        return self._commit(
            actor,
            status=EvidenceStatus.PENDING,
            reviewer_id=None,
            reviewed_at=None,
            review_notes=None,
        )

    # Control links

    def link_to_control(self, control_id: str, actor: Optional[str] = None) -> Result[None]:
        if is_blank(control_id):
            return self._reject("link_to_control", validation_error("MissingField", "Control ID is required"))
        if control_id in self._state.control_ids:
            return self._reject("link_to_control", rule_violation(
                "AlreadyLinked", f"Evidence is already linked to control {control_id}"
            ))
        return self._commit(actor, control_ids=self._state.control_ids + (control_id,))

    def unlink_from_control(self, control_id: str, actor: Optional[str] = None) -> Result[None]:
        if control_id not in self._state.control_ids:
            return self._reject("unlink_from_control", rule_violation(
                "NotLinked", f"Evidence is not linked to control {control_id}"
            ))
        if len(self._state.control_ids) == 1:
            return self._reject("unlink_from_control", rule_violation(
                "LastControlLink", "Evidence must be linked to at least one control"
            ))
        remaining = tuple(c for c in self._state.control_ids if c != control_id)
        return self._commit(actor, control_ids=remaining)

    # Plain attribute updates

    def update_title(self, title: str, actor: Optional[str] = None) -> Result[None]:
        if is_blank(title):
            return self._reject("update_title", validation_error("EmptyValue", "Evidence title cannot be empty"))
        error = check_length(title, TITLE_MAX, "Evidence title")
        if error:
            return self._reject("update_title", error)
        return self._commit(actor, title=title)

    def update_description(self, description: Optional[str], actor: Optional[str] = None) -> Result[None]:
        error = check_length(description, DESCRIPTION_MAX, "Description")
        if error:
            return self._reject("update_description", error)
        return self._commit(actor, description=description or None)

    def update_validity_window(
        self,
        collection_date: datetime,
        expiration_date: Optional[datetime] = None,
        actor: Optional[str] = None,
    ) -> Result[None]:
        collection_date, expiration_date = as_utc(collection_date), as_utc(expiration_date)
        error = _check_window(collection_date, expiration_date)
        if error:
            return self._reject("update_validity_window", error)
        return self._commit(actor, collection_date=collection_date, expiration_date=expiration_date)

    def update_file(self, file: Optional[FileMetadata], actor: Optional[str] = None) -> Result[None]:
        return self._commit(actor, file=file)

    def update_tags(self, tags: Optional[Iterable[str]], actor: Optional[str] = None) -> Result[None]:
        return self._commit(actor, tags=unique(tags))

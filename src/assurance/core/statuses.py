"""Status sets for controls, evidence, risks and treatments.

Control, risk and treatment statuses are permissive: any enumerated value
may follow any other, so the only check is membership. Evidence review is
the one real state machine and is driven by ``EVIDENCE_TRANSITIONS``.
"""

from __future__ import annotations

from enum import Enum
from typing import TypeVar, Union

from ..models.result import Result, validation_error

E = TypeVar("E", bound=Enum)


class ImplementationStatus(str, Enum):
    NOT_IMPLEMENTED = "not_implemented"
    PARTIALLY_IMPLEMENTED = "partially_implemented"
    IMPLEMENTED = "implemented"


class EvidenceStatus(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class RiskStatus(str, Enum):
    IDENTIFIED = "identified"
    ASSESSED = "assessed"
    TREATED = "treated"
    ACCEPTED = "accepted"
    CLOSED = "closed"


class TreatmentStatus(str, Enum):
    PLANNED = "planned"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class TreatmentType(str, Enum):
    ACCEPT = "accept"
    MITIGATE = "mitigate"
    TRANSFER = "transfer"
    AVOID = "avoid"


# Review is one-shot; reopen is the only way back to pending.
EVIDENCE_TRANSITIONS: dict[EvidenceStatus, frozenset[EvidenceStatus]] = {
    EvidenceStatus.PENDING: frozenset({EvidenceStatus.APPROVED, EvidenceStatus.REJECTED}),
    EvidenceStatus.APPROVED: frozenset({EvidenceStatus.PENDING}),
    EvidenceStatus.REJECTED: frozenset({EvidenceStatus.PENDING}),
}

TREATMENT_PROGRESS: dict[TreatmentStatus, int] = {
    TreatmentStatus.PLANNED: 10,
    TreatmentStatus.IN_PROGRESS: 50,
    TreatmentStatus.COMPLETED: 100,
    TreatmentStatus.CANCELLED: 0,
}


def _label(enum_cls: type[Enum]) -> str:
    name = enum_cls.__name__
    out = [name[0].lower()]
    for ch in name[1:]:
        if ch.isupper():
            out.append(" ")
        out.append(ch.lower())
    return "".join(out)


def coerce_status(
    enum_cls: type[E],
    raw: Union[E, str, None],
    code: str = "InvalidStatus",
) -> Result[E]:
    """Validating setter: accept a member or its string value, reject anything else."""
    if isinstance(raw, enum_cls):
        return Result.ok(raw)
    try:
        return Result.ok(enum_cls(raw))
    except ValueError:
        allowed = ", ".join(m.value for m in enum_cls)
        return Result.fail(validation_error(
            code,
            f"Invalid {_label(enum_cls)} '{raw}'. Expected one of: {allowed}",
        ))


def can_transition(current: EvidenceStatus, target: EvidenceStatus) -> bool:
    return target in EVIDENCE_TRANSITIONS.get(current, frozenset())


def is_terminal(status: EvidenceStatus) -> bool:
    return status in (EvidenceStatus.APPROVED, EvidenceStatus.REJECTED)

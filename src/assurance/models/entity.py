"""Aggregate base: identity, audit fields, revision and atomic state swaps.

Each aggregate keeps its data in a frozen pydantic state model. A mutation
validates first and then replaces the whole state in one assignment, so a
failed call leaves nothing half-applied.
"""

from __future__ import annotations

import logging
import uuid
from datetime import datetime, timezone
from typing import Any, ClassVar, Generic, Optional, TypeVar

from pydantic import BaseModel, ConfigDict, Field

from .result import DomainError, Result, validation_error

logger = logging.getLogger(__name__)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(moment: Optional[datetime]) -> Optional[datetime]:
    """Read naive datetimes as UTC so every stored moment compares with every other."""
    if moment is None:
        return None
    return moment if moment.tzinfo else moment.replace(tzinfo=timezone.utc)


def new_id() -> str:
    return uuid.uuid4().hex


def is_blank(text: Optional[str]) -> bool:
    return text is None or not str(text).strip()


def unique(items) -> tuple[str, ...]:
    """Deduplicate preserving first-seen order."""
    seen: set[str] = set()
    result: list[str] = []
    for item in items or ():
        if item and item not in seen:
            seen.add(item)
            result.append(item)
    return tuple(result)


def check_length(text: Optional[str], limit: int, what: str) -> Optional[DomainError]:
    if text is not None and len(text) > limit:
        return validation_error("TooLong", f"{what} cannot exceed {limit} characters")
    return None


class EntityState(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    id: str = Field(default_factory=new_id)
    is_active: bool = True
    revision: int = 1
    created_by: Optional[str] = None
    created_at: datetime = Field(default_factory=utcnow)
    updated_by: Optional[str] = None
    updated_at: Optional[datetime] = None


S = TypeVar("S", bound=EntityState)


class Entity(Generic[S]):
    state_model: ClassVar[type[EntityState]] = EntityState

    def __init__(self, state: S):
        self._state = state

    @classmethod
    def from_dict(cls, data: dict[str, Any]):
        """Rebuild from stored plain data without re-running creation checks."""
        return cls(cls.state_model.model_validate(data))

    def to_dict(self) -> dict[str, Any]:
        return self._state.model_dump(mode="json")

    @property
    def state(self) -> S:
        return self._state

    @property
    def id(self) -> str:
        return self._state.id

    @property
    def is_active(self) -> bool:
        return self._state.is_active

    @property
    def revision(self) -> int:
        return self._state.revision

    @property
    def created_by(self) -> Optional[str]:
        return self._state.created_by

    @property
    def created_at(self) -> datetime:
        return self._state.created_at

    @property
    def updated_by(self) -> Optional[str]:
        return self._state.updated_by

    @property
    def updated_at(self) -> Optional[datetime]:
        return self._state.updated_at

    def activate(self, actor: Optional[str] = None) -> None:
        if not self._state.is_active:
            self._commit(actor, is_active=True)

    def deactivate(self, actor: Optional[str] = None) -> None:
        if self._state.is_active:
            self._commit(actor, is_active=False)

    def _commit(self, actor: Optional[str], **changes: Any) -> Result[None]:
        changes["revision"] = self._state.revision + 1
        changes["updated_at"] = utcnow()
        if actor:
            changes["updated_by"] = actor
        self._state = self._state.model_copy(update=changes)
        return Result.ok()

    def _reject(self, operation: str, error: DomainError) -> Result[None]:
        logger.debug(
            "%s %s: %s rejected (%s): %s",
            type(self).__name__, self.id, operation, error.code, error.message,
        )
        return Result.fail(error)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Entity):
            return NotImplemented
        return type(self) is type(other) and self.id == other.id

    def __hash__(self) -> int:
        return hash((type(self).__name__, self.id))

    def __repr__(self) -> str:
        return f"{type(self).__name__}(id={self.id!r}, revision={self.revision})"

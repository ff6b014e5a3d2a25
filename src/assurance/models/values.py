"""Value objects: immutable, self-validating, compared by value."""

from __future__ import annotations

import re
from datetime import datetime, timezone
from enum import Enum
from typing import Optional, Union

from pydantic import BaseModel, ConfigDict

from .entity import as_utc
from .result import Result, validation_error

FRAMEWORK_NAME_MAX = 100
FRAMEWORK_VERSION_MAX = 50

_SHA256_RE = re.compile(r"^[0-9a-fA-F]{64}$")


class ValueObject(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")


class FrameworkName(ValueObject):
    """Name of a compliance framework, e.g. "SOC 2" or "ISO 27001"."""

    value: str

    @classmethod
    def create(cls, raw: Optional[str]) -> Result["FrameworkName"]:
        if raw is None or not raw.strip():
            return Result.fail(validation_error("EmptyValue", "Framework name cannot be empty"))
        if len(raw) > FRAMEWORK_NAME_MAX:
            return Result.fail(validation_error(
                "TooLong", f"Framework name cannot exceed {FRAMEWORK_NAME_MAX} characters"
            ))
        return Result.ok(cls(value=raw))

    def get_value(self) -> str:
        return self.value

    def __str__(self) -> str:
        return self.value


class FrameworkVersion(ValueObject):
    """Framework revision label. Free-form: "2022", "v2.0", "May 2023"."""

    value: str

    @classmethod
    def create(cls, raw: Optional[str]) -> Result["FrameworkVersion"]:
        if raw is None or not raw.strip():
            return Result.fail(validation_error("EmptyValue", "Framework version cannot be empty"))
        if len(raw) > FRAMEWORK_VERSION_MAX:
            return Result.fail(validation_error(
                "TooLong", f"Framework version cannot exceed {FRAMEWORK_VERSION_MAX} characters"
            ))
        return Result.ok(cls(value=raw))

    def get_value(self) -> str:
        return self.value

    def __str__(self) -> str:
        return self.value


class _Scored(str, Enum):
    """String enum whose members carry a 1-5 ordinal in declaration order."""

    @property
    def ordinal(self) -> int:
        return list(type(self)).index(self) + 1

    @classmethod
    def parse(cls, raw: Union["_Scored", str, None]) -> Result:
        if isinstance(raw, cls):
            return Result.ok(raw)
        try:
            return Result.ok(cls(raw))
        except ValueError:
            allowed = ", ".join(m.value for m in cls)
            return Result.fail(validation_error(
                "InvalidValue", f"Invalid {cls.__name__.lower()} '{raw}'. Expected one of: {allowed}"
            ))

    @property
    def label(self) -> str:
        return self.value.replace("_", " ").title()


class Impact(_Scored):
    INSIGNIFICANT = "insignificant"
    MINOR = "minor"
    MODERATE = "moderate"
    MAJOR = "major"
    SEVERE = "severe"


class Likelihood(_Scored):
    RARE = "rare"
    UNLIKELY = "unlikely"
    POSSIBLE = "possible"
    LIKELY = "likely"
    ALMOST_CERTAIN = "almost_certain"


class RiskOwner(ValueObject):
    user_id: str
    name: str
    department: str
    assigned_at: datetime

    @classmethod
    def create(
        cls,
        user_id: str,
        name: str,
        department: str,
        assigned_at: Optional[datetime] = None,
    ) -> Result["RiskOwner"]:
        if not user_id or not user_id.strip():
            return Result.fail(validation_error("MissingField", "Owner user ID is required"))
        if not name or not name.strip():
            return Result.fail(validation_error("MissingField", "Owner name is required"))
        if not department or not department.strip():
            return Result.fail(validation_error("MissingField", "Owner department is required"))
        return Result.ok(cls(
            user_id=user_id,
            name=name,
            department=department,
            assigned_at=as_utc(assigned_at) or datetime.now(timezone.utc),
        ))


class FileMetadata(ValueObject):
    """Where an evidence attachment lives and what it is. Never the bytes."""

    url: str
    size: int
    mime_type: str
    filename: Optional[str] = None
    sha256: Optional[str] = None

    @classmethod
    def create(
        cls,
        url: str,
        size: int,
        mime_type: str,
        filename: Optional[str] = None,
        sha256: Optional[str] = None,
    ) -> Result["FileMetadata"]:
        if not url or not url.strip():
            return Result.fail(validation_error("MissingField", "Evidence file URL is required"))
        if size is None or size <= 0:
            return Result.fail(validation_error("NegativeValue", "Evidence file size must be greater than 0"))
        if not mime_type or not mime_type.strip():
            return Result.fail(validation_error("MissingField", "Evidence MIME type is required"))
        if sha256 is not None and not _SHA256_RE.match(sha256):
            return Result.fail(validation_error("InvalidValue", "Evidence file hash must be a SHA-256 hex digest"))
        return Result.ok(cls(
            url=url,
            size=size,
            mime_type=mime_type,
            filename=filename,
            sha256=sha256.lower() if sha256 else None,
        ))

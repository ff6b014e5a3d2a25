"""Success/failure container returned by every validating operation.

Expected validation failures never raise. The only exception this module
raises is ``ResultAccessError``, for reading the wrong side of a result.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Generic, Iterable, Optional, TypeVar

from pydantic import BaseModel, ConfigDict

T = TypeVar("T")


class ErrorKind(str, Enum):
    VALIDATION = "validation"
    RULE_VIOLATION = "rule_violation"


class DomainError(BaseModel):
    """Typed failure: which invariant failed and a readable message."""

    model_config = ConfigDict(frozen=True)

    kind: ErrorKind
    code: str
    message: str

    def __str__(self) -> str:
        return self.message


class ResultAccessError(RuntimeError):
    """Raised when a caller reads the value of a failure or the error of a success."""


def validation_error(code: str, message: str) -> DomainError:
    return DomainError(kind=ErrorKind.VALIDATION, code=code, message=message)


def rule_violation(code: str, message: str) -> DomainError:
    return DomainError(kind=ErrorKind.RULE_VIOLATION, code=code, message=message)


class Result(Generic[T]):
    __slots__ = ("_success", "_value", "_error")

    def __init__(self, success: bool, value: Optional[T] = None, error: Optional[DomainError] = None):
        if not success and error is None:
            raise ResultAccessError("A failed result must carry an error")
        self._success = success
        self._value = value
        self._error = error

    @classmethod
    def ok(cls, value: Optional[T] = None) -> "Result[T]":
        return cls(True, value=value)

    @classmethod
    def fail(cls, error: DomainError) -> "Result[T]":
        return cls(False, error=error)

    @classmethod
    def combine(cls, results: Iterable["Result[Any]"]) -> "Result[list]":
        """Return the first failure, or a success holding every value in input order."""
        values: list = []
        for result in results:
            if result.is_failure:
                return cls.fail(result.error)
            values.append(result._value)
        return cls.ok(values)

    @property
    def is_success(self) -> bool:
        return self._success

    @property
    def is_failure(self) -> bool:
        return not self._success

    @property
    def value(self) -> T:
        if not self._success:
            raise ResultAccessError("Cannot get value from failed result")
        return self._value  # type: ignore[return-value]

    @property
    def error(self) -> DomainError:
        if self._success or self._error is None:
            raise ResultAccessError("Cannot get error from successful result")
        return self._error

    def __bool__(self) -> bool:
        return self._success

    def __repr__(self) -> str:
        if self._success:
            return f"Result.ok({self._value!r})"
        return f"Result.fail({self._error.code}: {self._error.message!r})"

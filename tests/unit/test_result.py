"""Tests for models/result.py."""

from __future__ import annotations

import pytest

from assurance.models.result import (
    ErrorKind,
    Result,
    ResultAccessError,
    rule_violation,
    validation_error,
)


class TestResult:
    def test_ok_holds_value(self):
        result = Result.ok(42)
        assert result.is_success
        assert not result.is_failure
        assert result.value == 42
        assert bool(result) is True

    def test_ok_without_value(self):
        result = Result.ok()
        assert result.is_success
        assert result.value is None

    def test_fail_holds_error(self):
        result = Result.fail(validation_error("EmptyValue", "Name cannot be empty"))
        assert result.is_failure
        assert result.error.code == "EmptyValue"
        assert result.error.kind == ErrorKind.VALIDATION
        assert bool(result) is False

    def test_value_of_failure_raises(self):
        result = Result.fail(validation_error("EmptyValue", "nope"))
        with pytest.raises(ResultAccessError):
            _ = result.value

    def test_error_of_success_raises(self):
        with pytest.raises(ResultAccessError):
            _ = Result.ok(1).error

    def test_failure_without_error_refused(self):
        with pytest.raises(ResultAccessError):
            Result(False)

    def test_repr(self):
        assert repr(Result.ok(1)) == "Result.ok(1)"
        assert "NotLinked" in repr(Result.fail(rule_violation("NotLinked", "x")))


class TestCombine:
    def test_all_successes_collects_values(self):
        combined = Result.combine([Result.ok(1), Result.ok(2)])
        assert combined.is_success
        assert combined.value == [1, 2]

    def test_empty_values_keep_their_position(self):
        combined = Result.combine([Result.ok(), Result.ok("b"), Result.ok()])
        assert combined.value == [None, "b", None]

    def test_first_failure_wins(self):
        combined = Result.combine([
            Result.ok(1),
            Result.fail(validation_error("First", "first")),
            Result.fail(validation_error("Second", "second")),
        ])
        assert combined.is_failure
        assert combined.error.code == "First"

    def test_empty(self):
        assert Result.combine([]).value == []


class TestDomainError:
    def test_str_is_message(self):
        assert str(rule_violation("AlreadyLinked", "already linked")) == "already linked"

    def test_rule_violation_kind(self):
        assert rule_violation("X", "y").kind == ErrorKind.RULE_VIOLATION

"""
Tests for the Result envelope.
"""

import pytest

from catalog.result import Result, ResultErrorType


def test_success_carries_data():
    result = Result.success({"id": 1})
    assert result.is_success
    assert bool(result) is True
    assert result.data == {"id": 1}
    assert result.error_type is ResultErrorType.NONE
    assert result.error_message is None


def test_success_without_data():
    result = Result.success()
    assert result.is_success
    assert result.data is None


def test_failure_hides_data():
    result = Result.failure(ResultErrorType.NOT_FOUND, "Author not found")
    assert not result.is_success
    assert bool(result) is False
    assert result.data is None
    assert result.error_type is ResultErrorType.NOT_FOUND
    assert result.error_message == "Author not found"


def test_failure_requires_error_type():
    with pytest.raises(ValueError):
        Result.failure(ResultErrorType.NONE, "nothing")


def test_propagate_keeps_kind_and_message():
    original = Result.failure(ResultErrorType.FORBIDDEN, "You cannot edit another user's comment")
    propagated = Result.propagate(original)
    assert propagated.error_type is ResultErrorType.FORBIDDEN
    assert propagated.error_message == "You cannot edit another user's comment"


def test_repr():
    assert "not_found" in repr(Result.failure(ResultErrorType.NOT_FOUND, "x"))
    assert repr(Result.success(1)) == "Result.success(1)"

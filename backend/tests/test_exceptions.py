"""Tests for the application error hierarchy."""

from __future__ import annotations

import pytest

from cortex.core.exceptions import (
    AppError,
    AuthorizationError,
    DriveListingError,
    LlmError,
    NotFoundError,
    RemoteMutationError,
    ValidationError,
)


class TestAppError:
    """Tests for AppError defaults and overrides."""

    def test_defaults(self):
        error = AppError("boom")

        assert error.message == "boom"
        assert str(error) == "boom"
        assert error.status_code == 500
        assert error.code == "APP_ERROR"

    def test_overrides_do_not_leak_to_class(self):
        error = AppError("gone", status_code=404, code="GONE")

        assert (error.status_code, error.code) == (404, "GONE")
        assert AppError.status_code == 500

    @pytest.mark.parametrize(
        ("status_code", "status"),
        [(400, "fail"), (401, "fail"), (404, "fail"), (499, "fail"), (500, "error"), (503, "error")],
    )
    def test_status(self, status_code, status):
        assert AppError("x", status_code=status_code).status == status


class TestSubclasses:
    """Each subclass carries the HTTP status it renders with."""

    @pytest.mark.parametrize(
        ("error", "status_code", "status"),
        [
            (AuthorizationError("no session"), 401, "fail"),
            (NotFoundError("no file"), 404, "fail"),
            (ValidationError("empty name"), 400, "fail"),
            (DriveListingError("page 2"), 500, "error"),
            (LlmError("model down", status_code=503), 503, "error"),
        ],
    )
    def test_status_codes(self, error, status_code, status):
        assert error.status_code == status_code
        assert error.status == status

    def test_remote_mutation_default_message(self):
        error = RemoteMutationError("delete")

        assert error.operation == "delete"
        assert error.message == "Failed to delete file on Google Drive"
        assert error.status_code == 500
        assert error.code == "REMOTE_MUTATION_FAILED"

    def test_remote_mutation_custom_message(self):
        assert RemoteMutationError("rename", "quota exceeded").message == "quota exceeded"

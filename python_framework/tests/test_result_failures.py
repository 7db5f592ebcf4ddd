"""Tests for ResultFailures convenience factories."""

from railway import ErrorCode
from railway.result_failures import ResultFailures


class TestConvenienceFactories:
    def test_not_found_names_artifact_and_location(self):
        result = ResultFailures.not_found("CA certificate", "secret default/wirepact")
        assert result.error().code == ErrorCode.NOT_FOUND
        assert result.error().message == "CA certificate not found in secret default/wirepact"

    def test_storage_error_keeps_exception(self):
        ex = OSError("disk full")
        result = ResultFailures.storage_error("Writing ca.crt failed", ex)
        assert result.error().code == ErrorCode.STORAGE_ERROR
        assert result.error().exception is ex

    def test_conflict_error(self):
        result = ResultFailures.conflict_error("Secret modified concurrently")
        assert result.error().code == ErrorCode.CONFLICT_ERROR

"""Tests for FailureDescription and ErrorCode."""

import pytest

from railway import ErrorCode, FailureDescription


class TestErrorCode:
    def test_domain_error_codes_exist(self):
        domain_codes = {
            ErrorCode.CRYPTO_ERROR,
            ErrorCode.TRANSPORT_ERROR,
            ErrorCode.STORAGE_ERROR,
            ErrorCode.NOT_FOUND,
            ErrorCode.CONFLICT_ERROR,
        }
        assert domain_codes <= set(ErrorCode)

    def test_error_code_values_match_names(self):
        for code in ErrorCode:
            assert code.value == code.name


class TestFailureDescription:
    def test_creation_with_code_and_message(self):
        desc = FailureDescription(ErrorCode.CRYPTO_ERROR, "Not a PEM document")
        assert desc.code == ErrorCode.CRYPTO_ERROR
        assert desc.message == "Not a PEM document"
        assert desc.exception is None
        assert desc.timestamp is not None

    def test_creation_with_exception(self):
        ex = OSError("disk full")
        desc = FailureDescription(ErrorCode.STORAGE_ERROR, "write failed", ex)
        assert desc.exception is ex

    def test_immutability(self):
        desc = FailureDescription(ErrorCode.NOT_FOUND, "test")
        with pytest.raises(AttributeError):
            desc.message = "changed"  # type: ignore

    def test_timestamp_is_utc(self):
        desc = FailureDescription(ErrorCode.NOT_FOUND, "test")
        assert desc.timestamp.tzinfo is not None

    def test_describe_without_exception(self):
        desc = FailureDescription(ErrorCode.NOT_FOUND, "CA certificate not found")
        assert desc.describe() == "CA certificate not found"

    def test_describe_appends_exception_text(self):
        desc = FailureDescription(
            ErrorCode.TRANSPORT_ERROR, "Connecting to PKI failed", ConnectionError("refused")
        )
        assert desc.describe() == "Connecting to PKI failed: refused"

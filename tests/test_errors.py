"""Tests for VatError construction, rendering and retryability."""
import pytest

from euvat.core.errors import ErrorType, FormatError, VatError, VatValidationError


class TestRetryable:
    @pytest.mark.parametrize("code", [
        "GLOBAL_MAX_CONCURRENT_REQ",
        "GLOBAL_MAX_CONCURRENT_REQ_TIME",
        "MS_MAX_CONCURRENT_REQ",
        "SERVICE_UNAVAILABLE",
        "SERVER_BUSY",
    ])
    def test_retryable_api_codes(self, code):
        assert VatError.from_api_response(code, None, "vies").retryable is True

    @pytest.mark.parametrize("code", ["INVALID_INPUT", "MS_UNAVAILABLE", "VAT_BLOCKED", "RATE_LIMITED", None])
    def test_terminal_api_codes(self, code):
        assert VatError.from_api_response(code, None, "vies").retryable is False

    def test_timeout_and_refused_http_errors_are_retryable(self):
        assert VatError.from_http_error("timeout", "vies").retryable is True
        assert VatError.from_http_error("connection_refused", "vies").retryable is True

    def test_other_http_errors_are_terminal(self):
        assert VatError.from_http_error("connection_closed", "vies").retryable is False
        assert VatError.from_http_error("nxdomain", "vies").retryable is False
        assert VatError.from_http_error(503, "vies").retryable is False

    def test_validation_errors_are_terminal(self):
        assert VatError.invalid_country_code("XX").retryable is False
        assert VatError.invalid_length("SE", "123").retryable is False

    def test_adapter_error_with_http_code_is_not_retryable(self):
        error = VatError(type=ErrorType.ADAPTER_ERROR, code="TIMEOUT", message="x")
        assert error.retryable is False


class TestConstructors:
    def test_api_message_falls_back_to_known_code_table(self):
        error = VatError.from_api_response("MS_UNAVAILABLE", None, "vies")
        assert error.type == ErrorType.API_ERROR
        assert error.message == "Member state service is unavailable"
        assert error.adapter == "vies"

    def test_api_message_generic_fallback(self):
        assert VatError.from_api_response("WHATEVER", None, "vies").message == "API error"

    def test_api_message_from_server_wins(self):
        error = VatError.from_api_response("INVALID_INPUT", "Bad country", "vies")
        assert error.message == "Bad country"

    def test_http_error_codes(self):
        assert VatError.from_http_error("timeout", "vies").code == "TIMEOUT"
        assert VatError.from_http_error("connection_refused", "vies").code == "CONNECTION_REFUSED"
        assert VatError.from_http_error(502, "vies").code == "HTTP_502"
        unknown = VatError.from_http_error("nxdomain", "vies")
        assert unknown.code is None
        assert "nxdomain" in unknown.message

    @pytest.mark.parametrize("reason,code", [
        (FormatError.INVALID_LENGTH, "INVALID_LENGTH"),
        (FormatError.INVALID_FORMAT, "INVALID_FORMAT"),
        (FormatError.INVALID_COUNTRY_CODE, "INVALID_COUNTRY"),
        (FormatError.EMPTY_VAT_NUMBER, "EMPTY_VAT_NUMBER"),
    ])
    def test_from_format_error(self, reason, code):
        error = VatError.from_format_error(reason, "SE", "123")
        assert error.type == ErrorType.VALIDATION_ERROR
        assert error.code == code
        assert error.details["reason"] == reason.value

    def test_str_includes_code(self):
        assert str(VatError.invalid_length("SE", "123")) == "[INVALID_LENGTH] Invalid VAT number length for country SE"
        assert str(VatError.adapter_error("boom", "vies")) == "boom"


def test_exception_wraps_error():
    error = VatError.invalid_country_code("XX")
    exc = VatValidationError(error)
    assert exc.error is error
    assert exc.type == ErrorType.VALIDATION_ERROR
    assert exc.code == "INVALID_COUNTRY"
    assert "XX" in str(exc)

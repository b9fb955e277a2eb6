"""Error values and the exception raised by the *_or_raise entry points.

Errors travel as ``VatError`` values through every layer. Only the raising
entry points turn the final one into a ``VatValidationError``.
"""
from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional


class ErrorType(str, Enum):
    VALIDATION_ERROR = "validation_error"
    API_ERROR = "api_error"
    HTTP_ERROR = "http_error"
    ADAPTER_ERROR = "adapter_error"
    UNKNOWN = "unknown"


class FormatError(str, Enum):
    """Reasons a country code / number pair fails local checks."""

    INVALID_COUNTRY_CODE = "invalid_country_code"
    EMPTY_VAT_NUMBER = "empty_vat_number"
    INVALID_LENGTH = "invalid_length"
    INVALID_FORMAT = "invalid_format"
    NO_COUNTRY_PREFIX = "no_country_prefix"


# Transport failure reasons (as reported by the HTTP transport)
TIMEOUT = "timeout"
CONNECTION_REFUSED = "connection_refused"
CONNECTION_CLOSED = "connection_closed"
HOST_UNREACHABLE = "host_unreachable"
NETWORK_UNREACHABLE = "network_unreachable"

RETRYABLE_TRANSPORT_REASONS = frozenset(
    {TIMEOUT, CONNECTION_REFUSED, CONNECTION_CLOSED, HOST_UNREACHABLE, NETWORK_UNREACHABLE}
)

RETRYABLE_API_CODES = frozenset(
    {
        "GLOBAL_MAX_CONCURRENT_REQ",
        "GLOBAL_MAX_CONCURRENT_REQ_TIME",
        "MS_MAX_CONCURRENT_REQ",
        "SERVICE_UNAVAILABLE",
        "SERVER_BUSY",
    }
)

RETRYABLE_HTTP_CODES = frozenset({"TIMEOUT", "CONNECTION_REFUSED"})

API_ERROR_MESSAGES: dict[str, str] = {
    "INVALID_INPUT": "Invalid input provided",
    "GLOBAL_MAX_CONCURRENT_REQ": "Maximum concurrent requests exceeded",
    "GLOBAL_MAX_CONCURRENT_REQ_TIME": "Maximum concurrent requests time exceeded",
    "MS_MAX_CONCURRENT_REQ": "Member state max concurrent requests exceeded",
    "SERVICE_UNAVAILABLE": "VAT validation service is unavailable",
    "MS_UNAVAILABLE": "Member state service is unavailable",
    "TIMEOUT": "Request timed out",
    "VAT_BLOCKED": "VAT number is blocked",
    "IP_BLOCKED": "IP address is blocked",
    "SERVER_BUSY": "Server is busy, try again later",
}


@dataclass(frozen=True)
class VatError:
    type: ErrorType
    message: str
    code: Optional[str] = None
    adapter: Optional[str] = None
    details: Any = None

    def __str__(self) -> str:
        base = self.message or "Unknown VAT validation error"
        if self.code:
            return f"[{self.code}] {base}"
        return base

    @property
    def retryable(self) -> bool:
        """True for the closed set of transient failures (retry / fallback eligible)."""
        if self.type == ErrorType.HTTP_ERROR and self.code in RETRYABLE_HTTP_CODES:
            return True
        return self.code in RETRYABLE_API_CODES

    # Validation errors

    @classmethod
    def invalid_country_code(cls, country_code: Any) -> "VatError":
        return cls(
            type=ErrorType.VALIDATION_ERROR,
            code="INVALID_COUNTRY",
            message=f"Invalid or unsupported country code: {country_code}",
            details={"reason": FormatError.INVALID_COUNTRY_CODE.value, "country_code": country_code},
        )

    @classmethod
    def invalid_format(cls, country_code: str, vat_number: str) -> "VatError":
        return cls(
            type=ErrorType.VALIDATION_ERROR,
            code="INVALID_FORMAT",
            message=f"Invalid VAT number format for country {country_code}: {vat_number}",
            details={
                "reason": FormatError.INVALID_FORMAT.value,
                "country_code": country_code,
                "vat_number": vat_number,
            },
        )

    @classmethod
    def invalid_length(cls, country_code: str, vat_number: str) -> "VatError":
        return cls(
            type=ErrorType.VALIDATION_ERROR,
            code="INVALID_LENGTH",
            message=f"Invalid VAT number length for country {country_code}",
            details={
                "reason": FormatError.INVALID_LENGTH.value,
                "country_code": country_code,
                "vat_number": vat_number,
            },
        )

    @classmethod
    def empty_vat_number(cls, country_code: str) -> "VatError":
        return cls(
            type=ErrorType.VALIDATION_ERROR,
            code="EMPTY_VAT_NUMBER",
            message="VAT number is empty after normalization",
            details={"reason": FormatError.EMPTY_VAT_NUMBER.value, "country_code": country_code},
        )

    @classmethod
    def from_format_error(cls, reason: FormatError, country_code: Any, vat_number: Any) -> "VatError":
        """Map a local FormatError onto the matching validation error."""
        if reason == FormatError.INVALID_LENGTH:
            return cls.invalid_length(country_code, vat_number)
        if reason == FormatError.INVALID_FORMAT:
            return cls.invalid_format(country_code, vat_number)
        if reason == FormatError.EMPTY_VAT_NUMBER:
            return cls.empty_vat_number(country_code)
        return cls.invalid_country_code(country_code)

    # Remote errors

    @classmethod
    def from_api_response(
        cls, code: Optional[str], message: Optional[str], adapter: Optional[str]
    ) -> "VatError":
        return cls(
            type=ErrorType.API_ERROR,
            code=code,
            message=message or API_ERROR_MESSAGES.get(code or "") or "API error",
            adapter=adapter,
            details={"code": code, "message": message},
        )

    @classmethod
    def from_http_error(cls, reason: Any, adapter: Optional[str]) -> "VatError":
        """Build an http_error from a transport reason or an unexpected status.

        ``reason`` is a transport reason string, or an int HTTP status that the
        caller could not map onto anything else.
        """
        if isinstance(reason, int):
            return cls(
                type=ErrorType.HTTP_ERROR,
                code=f"HTTP_{reason}",
                message=f"Unexpected HTTP status code: {reason}",
                adapter=adapter,
                details={"unexpected_status": reason},
            )
        if reason == TIMEOUT:
            return cls(
                type=ErrorType.HTTP_ERROR,
                code="TIMEOUT",
                message="Request to VAT validation service timed out",
                adapter=adapter,
                details=reason,
            )
        if reason == CONNECTION_REFUSED:
            return cls(
                type=ErrorType.HTTP_ERROR,
                code="CONNECTION_REFUSED",
                message="Connection to VAT validation service refused",
                adapter=adapter,
                details=reason,
            )
        return cls(
            type=ErrorType.HTTP_ERROR,
            code=None,
            message=f"HTTP error: {reason}",
            adapter=adapter,
            details=reason,
        )

    @classmethod
    def adapter_error(cls, message: str, adapter: Optional[str], details: Any = None) -> "VatError":
        return cls(
            type=ErrorType.ADAPTER_ERROR,
            code=None,
            message=message,
            adapter=adapter,
            details=details,
        )


class VatValidationError(Exception):
    """Raised by the *_or_raise entry points; wraps the terminal VatError."""

    def __init__(self, error: VatError):
        super().__init__(str(error))
        self.error = error

    @property
    def type(self) -> ErrorType:
        return self.error.type

    @property
    def code(self) -> Optional[str]:
        return self.error.code

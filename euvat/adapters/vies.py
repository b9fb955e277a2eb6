"""EU VIES (VAT Information Exchange System) REST API adapter.

Validates numbers against the live registry and returns company name and
address, request identifiers (when requester details are sent) and approximate
trader matching results.

Retries: 5xx responses and transient transport failures (timeout, refused,
closed, host/network unreachable) are retried up to ``max_retries`` times with
a constant, exponential or jittered-exponential delay. 2xx-4xx responses and
any other failure end the loop at once. Worst-case latency is
``(max_retries + 1) * (timeout + recv_timeout) + sum of delays``.
"""
import json
import logging
import random
import time
from datetime import datetime, timezone
from typing import Any, Optional

from pydantic import ValidationError

from euvat.adapters.base import RequestOptions, VatAdapter
from euvat.connectors.http import HttpResponse, RequestsTransport, TransportError
from euvat.core.config import DEFAULT_VIES_BASE_URL, Settings
from euvat.core.errors import RETRYABLE_TRANSPORT_REASONS, FormatError, VatError
from euvat.schemas import (
    TRADER_MATCH_FIELDS,
    Capability,
    MatchResult,
    ServiceStatus,
    ValidationResult,
)
from euvat.utils import vat

logger = logging.getLogger(__name__)

CHECK_VAT_PATH = "/check-vat-number"
CHECK_VAT_TEST_PATH = "/check-vat-test-service"
CHECK_STATUS_PATH = "/check-status"

# Request body key per RequestOptions attribute, sent only when non-empty
OPTIONAL_REQUEST_FIELDS = (
    ("requester_member_state_code", "requesterMemberStateCode"),
    ("requester_number", "requesterNumber"),
    ("trader_name", "traderName"),
    ("trader_street", "traderStreet"),
    ("trader_postal_code", "traderPostalCode"),
    ("trader_city", "traderCity"),
    ("trader_company_type", "traderCompanyType"),
)

MATCH_RESPONSE_FIELDS = dict(
    zip(
        TRADER_MATCH_FIELDS,
        (
            "traderNameMatch",
            "traderStreetMatch",
            "traderPostalCodeMatch",
            "traderCityMatch",
            "traderCompanyTypeMatch",
        ),
    )
)

_MATCH_VALUES = {
    "VALID": MatchResult.VALID,
    "INVALID": MatchResult.INVALID,
    "NOT_PROCESSED": MatchResult.NOT_PROCESSED,
}

PARSE_ERROR_BODY = {"errorWrappers": [{"error": "PARSE_ERROR", "message": "Invalid JSON response"}]}


def parse_match(value: Any) -> MatchResult:
    return _MATCH_VALUES.get(value, MatchResult.ABSENT) if isinstance(value, str) else MatchResult.ABSENT


def parse_datetime(value: Any) -> Optional[datetime]:
    """Parse VIES requestDate; timezone-less values are taken as UTC."""
    if not isinstance(value, str) or not value.strip():
        return None
    text = value.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


class ViesAdapter(VatAdapter):
    adapter_id = "vies"

    def __init__(
        self,
        base_url: str = DEFAULT_VIES_BASE_URL,
        timeout_seconds: float = 30.0,
        recv_timeout_seconds: float = 15.0,
        max_retries: int = 3,
        retry_delay_seconds: float = 1.0,
        retry_backoff: str = "exponential",
        transport: Any = None,
    ):
        self.base_url = (base_url or DEFAULT_VIES_BASE_URL).rstrip("/")
        self.timeout_seconds = timeout_seconds
        self.recv_timeout_seconds = recv_timeout_seconds
        self.max_retries = max(0, max_retries)
        self.retry_delay_seconds = retry_delay_seconds
        self.retry_backoff = retry_backoff
        self.transport = transport or RequestsTransport()

    @classmethod
    def from_settings(cls, settings: Settings, transport: Any = None) -> "ViesAdapter":
        return cls(
            base_url=settings.vies_base_url,
            timeout_seconds=settings.vies_timeout_seconds,
            recv_timeout_seconds=settings.vies_recv_timeout_seconds,
            max_retries=settings.vies_max_retries,
            retry_delay_seconds=settings.vies_retry_delay_seconds,
            retry_backoff=settings.vies_retry_backoff,
            transport=transport,
        )

    # Contract

    def validate(
        self,
        country_code: str,
        vat_number: str,
        options: Optional[RequestOptions] = None,
    ) -> tuple[Optional[ValidationResult], Optional[VatError]]:
        options = options or RequestOptions()
        country_code = country_code.strip().upper()
        body = build_request_body(country_code, vat_number, options)
        path = CHECK_VAT_TEST_PATH if options.test_mode else CHECK_VAT_PATH

        resp, reason = self._request_with_retry("POST", path, json.dumps(body))
        if reason is not None:
            return None, VatError.from_http_error(reason, self.adapter_id)

        status = resp.status_code
        data = self._decode_body(resp.body)
        if 200 <= status < 300:
            return self._parse_check_vat_response(data, country_code, vat_number)
        if status in (400, 500):
            return None, self._parse_error_response(data)
        if status == 403:
            return None, self._parse_error_response(data, "FORBIDDEN", "Access forbidden")
        if status == 429:
            return None, VatError.from_api_response("RATE_LIMITED", "Too many requests", self.adapter_id)
        return None, VatError.from_http_error(status, self.adapter_id)

    def validate_format(self, country_code: str, vat_number: str) -> Optional[FormatError]:
        return vat.validate_format(country_code, vat_number)

    def check_status(self) -> tuple[Optional[ServiceStatus], Optional[VatError]]:
        resp, reason = self._request_with_retry("GET", CHECK_STATUS_PATH)
        if reason is not None:
            return None, VatError.from_http_error(reason, self.adapter_id)

        status = resp.status_code
        data = self._decode_body(resp.body)
        if 200 <= status < 300:
            return parse_status_response(data), None
        if status in (400, 500):
            return None, self._parse_error_response(data)
        return None, VatError.from_http_error(status, self.adapter_id)

    def supports_country(self, country_code: str) -> bool:
        return vat.is_valid_country_code(country_code)

    def capabilities(self) -> frozenset[Capability]:
        return frozenset(
            {
                Capability.VALIDATE,
                Capability.VALIDATE_FORMAT,
                Capability.CHECK_STATUS,
                Capability.TRADER_MATCHING,
                Capability.REQUEST_IDENTIFIER,
            }
        )

    # Retry

    def retry_delay(self, attempt: int) -> float:
        """Delay in seconds before retry number ``attempt + 1`` (attempt is 0-based)."""
        base = self.retry_delay_seconds
        if self.retry_backoff == "exponential":
            return base * (2 ** attempt)
        if self.retry_backoff == "jittered":
            return random.uniform(0, base * (2 ** attempt))
        return base

    def _send(self, method: str, path: str, body: Optional[str]) -> HttpResponse:
        url = f"{self.base_url}{path}"
        if method == "POST":
            headers = {"Content-Type": "application/json", "Accept": "application/json"}
            return self.transport.post(
                url,
                body,
                headers,
                timeout=self.timeout_seconds,
                recv_timeout=self.recv_timeout_seconds,
            )
        return self.transport.get(
            url,
            {"Accept": "application/json"},
            timeout=self.timeout_seconds,
            recv_timeout=self.recv_timeout_seconds,
        )

    def _request_with_retry(
        self, method: str, path: str, body: Optional[str] = None
    ) -> tuple[Optional[HttpResponse], Optional[str]]:
        """Send with retry on 5xx and transient transport failures.

        Returns (response, None) for any HTTP response that ends the loop,
        including a 5xx once retries are exhausted, or (None, reason) for a
        transport failure.
        """
        resp: Optional[HttpResponse] = None
        reason: Optional[str] = None
        for attempt in range(self.max_retries + 1):
            resp, reason = None, None
            try:
                resp = self._send(method, path, body)
            except TransportError as e:
                reason = e.reason
                if reason not in RETRYABLE_TRANSPORT_REASONS:
                    break
            else:
                if resp.status_code < 500:
                    break

            if attempt < self.max_retries:
                delay = self.retry_delay(attempt)
                logger.warning(
                    "VIES %s %s failed (%s), retry in %.2fs (attempt %s/%s)",
                    method,
                    path,
                    reason or f"HTTP {resp.status_code}",
                    delay,
                    attempt + 1,
                    self.max_retries,
                )
                time.sleep(delay)
        return resp, reason

    # Parsing

    def _decode_body(self, body: str) -> dict[str, Any]:
        if not body:
            return {}
        try:
            data = json.loads(body)
        except ValueError as e:
            logger.warning("Failed to decode VIES response: %s", e)
            return PARSE_ERROR_BODY
        if not isinstance(data, dict):
            logger.warning("Unexpected VIES response type: %s", type(data).__name__)
            return PARSE_ERROR_BODY
        return data

    def _parse_check_vat_response(
        self, data: dict[str, Any], country_code: str, vat_number: str
    ) -> tuple[Optional[ValidationResult], Optional[VatError]]:
        valid = data.get("valid")
        if not isinstance(valid, bool):
            return None, VatError.adapter_error(
                "VIES response did not contain a validity flag", self.adapter_id, data
            )

        echoed = data.get("vatNumber") or vat_number
        corrected = data.get("vatNumberCorrected") is True or echoed != vat_number
        result_country = data.get("countryCode") or country_code

        try:
            result = ValidationResult(
                valid=valid,
                country_code=result_country,
                vat_number=echoed,
                request_timestamp=parse_datetime(data.get("requestDate")) or datetime.now(timezone.utc),
                adapter_id=self.adapter_id,
                name=data.get("name"),
                address=data.get("address"),
                country_name=vat.country_name(result_country),
                request_identifier=data.get("requestIdentifier") or None,
                corrected=corrected,
                original_vat_number=vat_number if corrected else None,
                correction_message=data.get("userError") if corrected else None,
                trader_matches={
                    field: parse_match(data.get(key)) for field, key in MATCH_RESPONSE_FIELDS.items()
                },
                raw_response=data,
            )
        except ValidationError as e:
            logger.warning("Unexpected VIES response for %s %s: %s", country_code, vat_number, e)
            return None, VatError.adapter_error("Unexpected VIES response", self.adapter_id, data)
        return result, None

    def _parse_error_response(
        self,
        data: dict[str, Any],
        default_code: Optional[str] = None,
        default_message: Optional[str] = None,
    ) -> VatError:
        """Code/message from the first errorWrapper, then top-level fields, then defaults."""
        wrappers = data.get("errorWrappers")
        wrapper = {}
        if isinstance(wrappers, list) and wrappers and isinstance(wrappers[0], dict):
            wrapper = wrappers[0]

        code = wrapper.get("error") or data.get("error") or default_code
        message = wrapper.get("message") or data.get("message") or default_message
        return VatError.from_api_response(code, message, self.adapter_id)


def build_request_body(country_code: str, vat_number: str, options: RequestOptions) -> dict[str, str]:
    body = {"countryCode": country_code.upper(), "vatNumber": vat_number}
    for attr, key in OPTIONAL_REQUEST_FIELDS:
        value = getattr(options, attr)
        if value:
            body[key] = value
    return body


def parse_status_response(data: dict[str, Any]) -> ServiceStatus:
    vow = data.get("vow") if isinstance(data.get("vow"), dict) else {}
    countries = {
        entry["countryCode"]: entry.get("availability") == "Available"
        for entry in data.get("countries") or []
        if isinstance(entry, dict) and entry.get("countryCode")
    }
    return ServiceStatus(available=vow.get("available") is True, countries=countries)

"""Value objects returned by adapters, the validator and the B2B engine."""
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field


class MatchResult(str, Enum):
    """Outcome of approximate trader matching for one field."""

    VALID = "valid"
    INVALID = "invalid"
    NOT_PROCESSED = "not_processed"
    ABSENT = "absent"


class Capability(str, Enum):
    VALIDATE = "validate"
    VALIDATE_FORMAT = "validate_format"
    CHECK_STATUS = "check_status"
    TRADER_MATCHING = "trader_matching"
    REQUEST_IDENTIFIER = "request_identifier"
    BATCH_VALIDATION = "batch_validation"


class TaxTreatment(str, Enum):
    DOMESTIC = "domestic"
    REVERSE_CHARGE = "reverse_charge"
    STANDARD = "standard"
    EXPORT = "export"
    IMPORT = "import"
    OUTSIDE_EU = "outside_eu"


TRADER_MATCH_FIELDS = ("name", "street", "postal_code", "city", "company_type")


def _absent_matches() -> Dict[str, MatchResult]:
    return {name: MatchResult.ABSENT for name in TRADER_MATCH_FIELDS}


class ValidationResult(BaseModel):
    """Outcome of one VAT number validation.

    ``valid`` is always a definite boolean. Company information, request
    identifiers and trader matches are only filled by registry-backed adapters.
    """

    model_config = ConfigDict(frozen=True)

    valid: bool
    country_code: str
    vat_number: str
    request_timestamp: datetime
    adapter_id: str
    name: Optional[str] = None
    address: Optional[str] = None
    country_name: Optional[str] = None
    request_identifier: Optional[str] = None
    corrected: bool = False
    original_vat_number: Optional[str] = None
    correction_message: Optional[str] = None
    trader_matches: Dict[str, MatchResult] = Field(default_factory=_absent_matches)
    raw_response: Optional[Dict[str, Any]] = None

    @property
    def fallback_used(self) -> bool:
        return bool(self.raw_response and self.raw_response.get("fallback_used"))

    def all_trader_fields_match(self) -> bool:
        """True if every checked trader field matched; absent fields are ignored."""
        checked = [m for m in self.trader_matches.values() if m != MatchResult.ABSENT]
        return all(m == MatchResult.VALID for m in checked)

    def any_trader_field_invalid(self) -> bool:
        return any(m == MatchResult.INVALID for m in self.trader_matches.values())

    def with_fallback_marker(self) -> "ValidationResult":
        """Copy of this result flagged as produced by the fallback adapter."""
        raw = dict(self.raw_response or {})
        raw["fallback_used"] = True
        return self.model_copy(update={"raw_response": raw})


class ServiceStatus(BaseModel):
    """Availability of a validation service, overall and per country."""

    model_config = ConfigDict(frozen=True)

    available: bool
    countries: Dict[str, bool] = Field(default_factory=dict)

    def country_available(self, country_code: str) -> bool:
        return self.countries.get(country_code.strip().upper(), False)


class Transaction(BaseModel):
    """Tax treatment of one B2B transaction between a seller and a buyer."""

    model_config = ConfigDict(frozen=True)

    seller_country: str
    buyer_country: str
    seller_vat: str
    buyer_vat: str
    seller_valid: bool
    buyer_valid: bool
    same_country: bool
    cross_border_eu: bool
    reverse_charge: bool
    tax_treatment: TaxTreatment
    vat_rate: Optional[Decimal] = None  # percent; None when no EU rate applies
    seller_result: Optional[ValidationResult] = None
    buyer_result: Optional[ValidationResult] = None
    invoice_note: Optional[str] = None

"""EU VAT number validation and cross-border B2B tax treatment.

    from euvat import validate

    result, error = validate("SE", "556012345601")
    if error is None:
        print(result.valid, result.name)
"""
from euvat.adapters import OfflineAdapter, RequestOptions, VatAdapter, ViesAdapter, has_capability
from euvat.core.config import Settings, get_settings
from euvat.core.errors import ErrorType, FormatError, VatError, VatValidationError
from euvat.schemas import (
    Capability,
    MatchResult,
    ServiceStatus,
    TaxTreatment,
    Transaction,
    ValidationResult,
)
from euvat.services.b2b import (
    applicable_rate,
    both_valid,
    cross_border_eu,
    eu_member_states,
    invoice_text,
    is_eu_member,
    is_reverse_charge,
    reverse_charge_applies,
    reverse_charge_text,
    same_country,
    standard_rate,
    standard_rates,
    tax_treatment,
    validate_transaction,
)
from euvat.services.validation import (
    VatValidator,
    check_status,
    configure,
    country_available,
    get_validator,
    reset_validator,
    validate,
    validate_or_raise,
)
from euvat.utils.vat import (
    countries,
    country_codes,
    country_name,
    extract_country_code,
    is_valid_country_code,
    is_valid_format,
    normalize,
    validate_and_normalize,
    validate_format,
)

__version__ = "1.0.0"

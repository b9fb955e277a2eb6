"""Cross-border B2B VAT treatment.

Reverse charge shifts VAT liability from seller to buyer when the seller and
buyer are established in different EU member states, the buyer has a valid
VAT number and the sale is B2B. The seller then invoices 0% and the invoice
must reference the reverse charge.

| Treatment        | When                                           | Rate          |
|------------------|------------------------------------------------|---------------|
| domestic         | seller and buyer in the same country           | seller's rate |
| reverse_charge   | both EU, B2B, buyer VAT valid                  | 0             |
| standard         | both EU, B2C or buyer VAT not valid            | seller's rate |
| export           | seller EU, buyer outside                       | 0             |
| import           | seller outside, buyer EU                       | buyer's rate  |
| outside_eu       | neither in the EU                              | none          |
"""
import logging
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Optional

from euvat.core.errors import VatError
from euvat.schemas import TaxTreatment, Transaction, ValidationResult
from euvat.services.validation import VatValidator, get_validator
from euvat.utils import vat

logger = logging.getLogger(__name__)

# EL is Greece's VIES code, GR its ISO code; XI is Northern Ireland (goods)
EU_MEMBER_STATES: tuple[str, ...] = (
    "AT", "BE", "BG", "CY", "CZ", "DE", "DK", "EE", "EL", "ES", "FI", "FR", "GR", "HR",
    "HU", "IE", "IT", "LT", "LU", "LV", "MT", "NL", "PL", "PT", "RO", "SE", "SI", "SK", "XI",
)
_EU_MEMBER_SET = frozenset(EU_MEMBER_STATES)

# Standard VAT rates in percent (2024)
STANDARD_VAT_RATES: dict[str, Decimal] = {
    "AT": Decimal("20"),
    "BE": Decimal("21"),
    "BG": Decimal("20"),
    "CY": Decimal("19"),
    "CZ": Decimal("21"),
    "DE": Decimal("19"),
    "DK": Decimal("25"),
    "EE": Decimal("22"),
    "EL": Decimal("24"),
    "ES": Decimal("21"),
    "FI": Decimal("24"),
    "FR": Decimal("20"),
    "GR": Decimal("24"),
    "HR": Decimal("25"),
    "HU": Decimal("27"),
    "IE": Decimal("23"),
    "IT": Decimal("22"),
    "LT": Decimal("21"),
    "LU": Decimal("17"),
    "LV": Decimal("21"),
    "MT": Decimal("18"),
    "NL": Decimal("21"),
    "PL": Decimal("23"),
    "PT": Decimal("23"),
    "RO": Decimal("19"),
    "SE": Decimal("25"),
    "SI": Decimal("22"),
    "SK": Decimal("20"),
    "XI": Decimal("20"),
}

DEFAULT_LANGUAGE = "en"

REVERSE_CHARGE_TEXTS: dict[str, dict[str, str]] = {
    "en": {
        "short": "Reverse charge",
        "long": "VAT reverse charge applies according to Article 194 of EU VAT Directive 2006/112/EC",
    },
    "de": {
        "short": "Steuerschuldnerschaft des Leistungsempfängers",
        "long": "Steuerschuldnerschaft des Leistungsempfängers gemäß Art. 194 EU-Richtlinie 2006/112/EG",
    },
    "fr": {
        "short": "Autoliquidation de la TVA",
        "long": "Autoliquidation de la TVA conformément à l'article 194 de la directive TVA 2006/112/CE",
    },
    "es": {
        "short": "Inversión del sujeto pasivo",
        "long": "Inversión del sujeto pasivo según el artículo 194 de la Directiva del IVA 2006/112/CE",
    },
    "it": {
        "short": "Inversione contabile",
        "long": "Inversione contabile ai sensi dell'articolo 194 della Direttiva IVA 2006/112/CE",
    },
    "nl": {
        "short": "BTW verlegd",
        "long": "BTW verlegd volgens artikel 194 van de BTW-richtlijn 2006/112/EG",
    },
    "sv": {
        "short": "Omvänd skattskyldighet",
        "long": "Omvänd skattskyldighet enligt artikel 194 i momsdirektivet 2006/112/EG",
    },
    "pl": {
        "short": "Odwrotne obciążenie",
        "long": "Odwrotne obciążenie zgodnie z art. 194 dyrektywy VAT 2006/112/WE",
    },
    "pt": {
        "short": "Autoliquidação",
        "long": "Autoliquidação nos termos do artigo 194.º da Diretiva IVA 2006/112/CE",
    },
    "da": {
        "short": "Omvendt betalingspligt",
        "long": "Omvendt betalingspligt i henhold til artikel 194 i momsdirektivet 2006/112/EF",
    },
    "fi": {
        "short": "Käännetty verovelvollisuus",
        "long": "Käännetty verovelvollisuus arvonlisäverodirektiivin 2006/112/EY artiklan 194 mukaisesti",
    },
}

EXPORT_TEXT = "Zero-rated export outside EU according to EU VAT Directive"


def normalize_country(country: Any) -> Optional[str]:
    """Uppercase and map GR to EL so both Greek codes compare equal."""
    if not isinstance(country, str):
        return None
    upper = country.strip().upper()
    return "EL" if upper == "GR" else upper


def is_eu_member(country: Any) -> bool:
    return normalize_country(country) in _EU_MEMBER_SET


def eu_member_states() -> list[str]:
    return list(EU_MEMBER_STATES)


def standard_rate(country: Any) -> Optional[Decimal]:
    """Standard VAT rate (percent), or None outside the EU."""
    return STANDARD_VAT_RATES.get(normalize_country(country) or "")


def standard_rates() -> dict[str, Decimal]:
    return dict(STANDARD_VAT_RATES)


def same_country(country1: Any, country2: Any) -> bool:
    return normalize_country(country1) == normalize_country(country2)


def cross_border_eu(seller_country: Any, buyer_country: Any) -> bool:
    return (
        not same_country(seller_country, buyer_country)
        and is_eu_member(seller_country)
        and is_eu_member(buyer_country)
    )


def determine_treatment(
    same: bool, seller_eu: bool, buyer_eu: bool, is_b2b: bool, buyer_vat_valid: bool
) -> TaxTreatment:
    """Decision table over the five facts; first matching row wins, every input is covered."""
    if same:
        return TaxTreatment.DOMESTIC
    if seller_eu and buyer_eu:
        if is_b2b and buyer_vat_valid:
            return TaxTreatment.REVERSE_CHARGE
        return TaxTreatment.STANDARD
    if seller_eu:
        return TaxTreatment.EXPORT
    if buyer_eu:
        return TaxTreatment.IMPORT
    return TaxTreatment.OUTSIDE_EU


def tax_treatment(
    seller_country: str,
    buyer_country: str,
    buyer_vat_valid: bool = True,
    is_b2b: bool = True,
) -> TaxTreatment:
    """
    Tax treatment for a sale from seller_country to buyer_country.

    >>> tax_treatment("SE", "DE")
    <TaxTreatment.REVERSE_CHARGE: 'reverse_charge'>
    >>> tax_treatment("SE", "DE", is_b2b=False)
    <TaxTreatment.STANDARD: 'standard'>
    >>> tax_treatment("SE", "US")
    <TaxTreatment.EXPORT: 'export'>
    """
    seller = normalize_country(seller_country)
    buyer = normalize_country(buyer_country)
    return determine_treatment(
        seller == buyer,
        is_eu_member(seller),
        is_eu_member(buyer),
        bool(is_b2b),
        bool(buyer_vat_valid),
    )


def rate_for_treatment(treatment: TaxTreatment, seller_country: str, buyer_country: str) -> Optional[Decimal]:
    if treatment in (TaxTreatment.DOMESTIC, TaxTreatment.STANDARD):
        return standard_rate(seller_country)
    if treatment in (TaxTreatment.REVERSE_CHARGE, TaxTreatment.EXPORT):
        return Decimal("0")
    if treatment == TaxTreatment.IMPORT:
        return standard_rate(buyer_country)
    return None


def applicable_rate(
    seller_country: str,
    buyer_country: str,
    buyer_vat_valid: bool = True,
    is_b2b: bool = True,
) -> Optional[Decimal]:
    """VAT rate (percent) to charge; 0 for reverse charge and export, None outside the EU."""
    treatment = tax_treatment(seller_country, buyer_country, buyer_vat_valid, is_b2b)
    return rate_for_treatment(treatment, seller_country, buyer_country)


def reverse_charge_applies(seller_country: str, buyer_country: str, buyer_vat_valid: bool) -> bool:
    """Reverse charge check for numbers that were already validated elsewhere."""
    return cross_border_eu(seller_country, buyer_country) and bool(buyer_vat_valid)


def reverse_charge_text(language: str = DEFAULT_LANGUAGE, fmt: str = "long") -> str:
    """Reverse charge invoice wording; unknown languages fall back to English."""
    texts = REVERSE_CHARGE_TEXTS.get((language or "").lower()) or REVERSE_CHARGE_TEXTS[DEFAULT_LANGUAGE]
    return texts.get(fmt) or REVERSE_CHARGE_TEXTS[DEFAULT_LANGUAGE]["long"]


def invoice_text(treatment: TaxTreatment, language: str = DEFAULT_LANGUAGE, fmt: str = "long") -> Optional[str]:
    """Invoice note for a treatment; only reverse charge and export carry one."""
    if treatment == TaxTreatment.REVERSE_CHARGE:
        return reverse_charge_text(language, fmt)
    if treatment == TaxTreatment.EXPORT:
        return EXPORT_TEXT
    return None


def _validate_party(
    validator: Optional[VatValidator],
    country: str,
    vat_number: str,
    validate_online: bool,
    validate_options: dict[str, Any],
) -> tuple[Optional[ValidationResult], Optional[VatError]]:
    if validate_online:
        return (validator or get_validator()).validate(country, vat_number, **validate_options)

    # Offline: format check only, no adapter involved
    cc, number, reason = vat.validate_and_normalize(country, vat_number)
    if reason:
        return None, VatError.from_format_error(reason, country, vat_number)
    return (
        ValidationResult(
            valid=True,
            country_code=cc,
            vat_number=number,
            request_timestamp=datetime.now(timezone.utc),
            adapter_id="format",
            country_name=vat.country_name(cc),
        ),
        None,
    )


def validate_transaction(
    seller_country: str,
    seller_vat: str,
    buyer_country: str,
    buyer_vat: str,
    validate_online: bool = True,
    is_b2b: bool = True,
    language: str = DEFAULT_LANGUAGE,
    note_format: str = "long",
    validator: Optional[VatValidator] = None,
    **validate_options: Any,
) -> tuple[Optional[Transaction], Optional[VatError]]:
    """Validate both parties and work out the transaction's VAT treatment.

    The seller is validated first; if that fails the buyer is not checked and
    the seller's error is returned. ``validate_options`` are passed through to
    ``VatValidator.validate`` when validating online.
    """
    seller = normalize_country(seller_country)
    buyer = normalize_country(buyer_country)

    seller_result, error = _validate_party(validator, seller, seller_vat, validate_online, validate_options)
    if error:
        logger.debug("Seller VAT %s %s failed validation: %s", seller, seller_vat, error)
        return None, error
    buyer_result, error = _validate_party(validator, buyer, buyer_vat, validate_online, validate_options)
    if error:
        logger.debug("Buyer VAT %s %s failed validation: %s", buyer, buyer_vat, error)
        return None, error

    treatment = tax_treatment(seller, buyer, buyer_vat_valid=buyer_result.valid, is_b2b=is_b2b)
    return (
        Transaction(
            seller_country=seller,
            buyer_country=buyer,
            seller_vat=seller_vat,
            buyer_vat=buyer_vat,
            seller_valid=seller_result.valid,
            buyer_valid=buyer_result.valid,
            same_country=same_country(seller, buyer),
            cross_border_eu=cross_border_eu(seller, buyer),
            reverse_charge=treatment == TaxTreatment.REVERSE_CHARGE,
            tax_treatment=treatment,
            vat_rate=rate_for_treatment(treatment, seller, buyer),
            seller_result=seller_result,
            buyer_result=buyer_result,
            invoice_note=invoice_text(treatment, language, note_format),
        ),
        None,
    )


def is_reverse_charge(seller_country: str, seller_vat: str, buyer_country: str, buyer_vat: str, **kwargs: Any) -> bool:
    """validate_transaction() and report whether reverse charge applies; False on error."""
    transaction, error = validate_transaction(seller_country, seller_vat, buyer_country, buyer_vat, **kwargs)
    return error is None and transaction.reverse_charge


def both_valid(seller_country: str, seller_vat: str, buyer_country: str, buyer_vat: str, **kwargs: Any) -> bool:
    transaction, error = validate_transaction(seller_country, seller_vat, buyer_country, buyer_vat, **kwargs)
    return error is None and transaction.seller_valid and transaction.buyer_valid

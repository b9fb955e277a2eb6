"""VAT number format validation and normalization.

Covers the 27 EU member states plus XI (Northern Ireland). Greece is keyed
as EL (its VIES code); the ISO code GR is accepted as a number prefix.
Format checks are structural only: they say nothing about whether a number
is actually registered.
"""
import re
from typing import Optional

from euvat.core.errors import FormatError


# (min_length, max_length, pattern) per country, applied to the cleaned number
VAT_FORMATS: dict[str, tuple[int, int, re.Pattern]] = {
    "AT": (9, 9, re.compile(r"U\d{8}")),
    "BE": (10, 10, re.compile(r"[01]\d{9}")),
    "BG": (9, 10, re.compile(r"\d{9,10}")),
    "CY": (9, 9, re.compile(r"\d{8}[A-Z]")),
    "CZ": (8, 10, re.compile(r"\d{8,10}")),
    "DE": (9, 9, re.compile(r"\d{9}")),
    "DK": (8, 8, re.compile(r"\d{8}")),
    "EE": (9, 9, re.compile(r"\d{9}")),
    "EL": (9, 9, re.compile(r"\d{9}")),
    "ES": (9, 9, re.compile(r"[A-Z0-9]\d{7}[A-Z0-9]")),
    "FI": (8, 8, re.compile(r"\d{8}")),
    "FR": (11, 11, re.compile(r"[A-Z0-9]{2}\d{9}")),
    "HR": (11, 11, re.compile(r"\d{11}")),
    "HU": (8, 8, re.compile(r"\d{8}")),
    "IE": (8, 9, re.compile(r"\d{7}[A-Z]{1,2}|\d[A-Z+*]\d{5}[A-Z]")),
    "IT": (11, 11, re.compile(r"\d{11}")),
    "LT": (9, 12, re.compile(r"\d{9}|\d{12}")),
    "LU": (8, 8, re.compile(r"\d{8}")),
    "LV": (11, 11, re.compile(r"\d{11}")),
    "MT": (8, 8, re.compile(r"\d{8}")),
    "NL": (12, 12, re.compile(r"\d{9}B\d{2}")),
    "PL": (10, 10, re.compile(r"\d{10}")),
    "PT": (9, 9, re.compile(r"\d{9}")),
    "RO": (2, 10, re.compile(r"\d{2,10}")),
    "SE": (12, 12, re.compile(r"\d{12}")),
    "SI": (8, 8, re.compile(r"\d{8}")),
    "SK": (10, 10, re.compile(r"\d{10}")),
    "XI": (9, 12, re.compile(r"\d{9}|\d{12}|GD\d{3}|HA\d{3}")),
}

COUNTRY_NAMES: dict[str, str] = {
    "AT": "Austria",
    "BE": "Belgium",
    "BG": "Bulgaria",
    "CY": "Cyprus",
    "CZ": "Czech Republic",
    "DE": "Germany",
    "DK": "Denmark",
    "EE": "Estonia",
    "EL": "Greece",
    "ES": "Spain",
    "FI": "Finland",
    "FR": "France",
    "HR": "Croatia",
    "HU": "Hungary",
    "IE": "Ireland",
    "IT": "Italy",
    "LT": "Lithuania",
    "LU": "Luxembourg",
    "LV": "Latvia",
    "MT": "Malta",
    "NL": "Netherlands",
    "PL": "Poland",
    "PT": "Portugal",
    "RO": "Romania",
    "SE": "Sweden",
    "SI": "Slovenia",
    "SK": "Slovakia",
    "XI": "Northern Ireland",
}

COUNTRY_CODES: tuple[str, ...] = tuple(sorted(VAT_FORMATS))

# Number prefixes accepted in addition to the country's own code
PREFIX_ALIASES: dict[str, tuple[str, ...]] = {
    "EL": ("GR",),
}

_FORMATTING_CHARS = re.compile(r"[\s.\-]+")


def country_codes() -> list[str]:
    """All supported country codes."""
    return list(COUNTRY_CODES)


def countries() -> dict[str, str]:
    return dict(COUNTRY_NAMES)


def country_name(code: Optional[str]) -> Optional[str]:
    if not isinstance(code, str):
        return None
    return COUNTRY_NAMES.get(code.strip().upper())


def is_valid_country_code(code: Optional[str]) -> bool:
    return isinstance(code, str) and code.strip().upper() in VAT_FORMATS


def validate_country_code(code: Optional[str]) -> Optional[FormatError]:
    """Return None for a supported country code, else INVALID_COUNTRY_CODE."""
    if is_valid_country_code(code):
        return None
    return FormatError.INVALID_COUNTRY_CODE


def format_info(code: Optional[str]) -> Optional[tuple[int, int, re.Pattern]]:
    """Expected (min_length, max_length, pattern) for a country, or None."""
    if not isinstance(code, str):
        return None
    return VAT_FORMATS.get(code.strip().upper())


def _strip_country_prefix(number: str, country_code: str) -> str:
    # One prefix only: "FRFR123456789" keeps its second "FR", so a doubled
    # prefix is not stable under repeated normalization.
    for prefix in (country_code,) + PREFIX_ALIASES.get(country_code, ()):
        if number.startswith(prefix):
            return number[len(prefix):]
    return number


def normalize_vat_number(country_code: str, vat_number: str) -> str:
    """Uppercase, drop spaces/dots/hyphens and a leading country prefix.

    >>> normalize_vat_number("SE", "SE 556-012.345 601")
    '556012345601'
    """
    cleaned = _FORMATTING_CHARS.sub("", vat_number.upper())
    return _strip_country_prefix(cleaned, country_code.strip().upper())


def normalize(
    country_code: Optional[str], vat_number: Optional[str]
) -> tuple[Optional[str], Optional[str], Optional[FormatError]]:
    """Normalize both country code and number.

    Returns:
        (country_code, vat_number, None) on success,
        (None, None, error) otherwise. A missing or non-string number is
        EMPTY_VAT_NUMBER once the country code is known to be good.

    Normalizing a result again returns it unchanged, except for numbers that
    carried the country prefix twice (only the first copy is stripped).

    Examples:
        >>> normalize("se", "SE 556-012.345 601")
        ('SE', '556012345601', None)
        >>> normalize("XX", "123")
        (None, None, <FormatError.INVALID_COUNTRY_CODE: 'invalid_country_code'>)
    """
    if not isinstance(country_code, str):
        return None, None, FormatError.INVALID_COUNTRY_CODE

    country_code = country_code.strip().upper()
    error = validate_country_code(country_code)
    if error:
        return None, None, error
    if not isinstance(vat_number, str):
        return None, None, FormatError.EMPTY_VAT_NUMBER

    cleaned = normalize_vat_number(country_code, vat_number)
    if not cleaned:
        return None, None, FormatError.EMPTY_VAT_NUMBER
    return country_code, cleaned, None


def validate_format(country_code: Optional[str], vat_number: Optional[str]) -> Optional[FormatError]:
    """Structural check of an already-cleaned number.

    Length is checked before the pattern, so a too-short or too-long number
    is always reported as INVALID_LENGTH.
    """
    if not isinstance(country_code, str) or not isinstance(vat_number, str):
        return FormatError.INVALID_COUNTRY_CODE

    spec = format_info(country_code)
    if spec is None:
        return FormatError.INVALID_COUNTRY_CODE

    min_len, max_len, pattern = spec
    if not (min_len <= len(vat_number) <= max_len):
        return FormatError.INVALID_LENGTH
    if not pattern.fullmatch(vat_number):
        return FormatError.INVALID_FORMAT
    return None


def validate_and_normalize(
    country_code: Optional[str], vat_number: Optional[str]
) -> tuple[Optional[str], Optional[str], Optional[FormatError]]:
    """normalize() followed by validate_format() on the cleaned number."""
    country_code, vat_number, error = normalize(country_code, vat_number)
    if error:
        return None, None, error
    error = validate_format(country_code, vat_number)
    if error:
        return None, None, error
    return country_code, vat_number, None


def is_valid_format(country_code: Optional[str], vat_number: Optional[str]) -> bool:
    return validate_and_normalize(country_code, vat_number)[2] is None


def extract_country_code(
    full_vat_number: Optional[str],
) -> tuple[Optional[str], Optional[str], Optional[FormatError]]:
    """Split "SE556012345601" into ("SE", "556012345601", None).

    Inputs shorter than three characters have no usable prefix.
    """
    if not isinstance(full_vat_number, str):
        return None, None, FormatError.NO_COUNTRY_PREFIX

    cleaned = _FORMATTING_CHARS.sub("", full_vat_number.upper())
    if len(cleaned) < 3:
        return None, None, FormatError.NO_COUNTRY_PREFIX

    prefix, rest = cleaned[:2], cleaned[2:]
    if prefix not in VAT_FORMATS:
        return None, None, FormatError.INVALID_COUNTRY_CODE
    return prefix, rest, None

"""Tests for the country format table and normalizer."""
import pytest

from euvat.core.errors import FormatError
from euvat.utils.vat import (
    COUNTRY_CODES,
    VAT_FORMATS,
    country_codes,
    country_name,
    extract_country_code,
    format_info,
    is_valid_country_code,
    is_valid_format,
    normalize,
    normalize_vat_number,
    validate_and_normalize,
    validate_format,
)


class TestNormalize:
    def test_strips_spaces_dots_hyphens_and_prefix(self):
        assert normalize("se", "SE 556-012.345 601") == ("SE", "556012345601", None)

    def test_country_code_trimmed_and_uppercased(self):
        cc, number, err = normalize("  de ", "123456789")
        assert (cc, number, err) == ("DE", "123456789", None)

    def test_lowercase_number_is_uppercased(self):
        cc, number, err = normalize("NL", "nl123456789b01")
        assert number == "123456789B01"

    def test_greek_iso_prefix_accepted(self):
        assert normalize("EL", "GR123456789") == ("EL", "123456789", None)
        assert normalize("EL", "EL 123 456 789") == ("EL", "123456789", None)

    def test_greek_iso_code_is_not_a_country(self):
        assert normalize("GR", "123456789") == (None, None, FormatError.INVALID_COUNTRY_CODE)

    def test_unknown_country(self):
        assert normalize("XX", "123") == (None, None, FormatError.INVALID_COUNTRY_CODE)
        assert normalize("US", "123456789")[2] == FormatError.INVALID_COUNTRY_CODE

    def test_non_string_input(self):
        assert normalize(None, "123")[2] == FormatError.INVALID_COUNTRY_CODE
        assert normalize(None, None)[2] == FormatError.INVALID_COUNTRY_CODE
        assert normalize("XX", None)[2] == FormatError.INVALID_COUNTRY_CODE

    def test_non_string_number_with_good_country(self):
        assert normalize("SE", None) == (None, None, FormatError.EMPTY_VAT_NUMBER)
        assert normalize("SE", 556012345601) == (None, None, FormatError.EMPTY_VAT_NUMBER)

    def test_doubled_prefix_is_stripped_once(self):
        # Only the leading copy goes; the second run strips the next one
        cc, number, err = normalize("FR", "FRFR123456789")
        assert (cc, number, err) == ("FR", "FR123456789", None)
        assert validate_format(cc, number) is None
        assert normalize(cc, number) == ("FR", "123456789", None)

    def test_empty_after_cleaning(self):
        assert normalize("SE", " - . ") == (None, None, FormatError.EMPTY_VAT_NUMBER)
        assert normalize("SE", "SE") == (None, None, FormatError.EMPTY_VAT_NUMBER)

    def test_prefix_only_stripped_when_leading(self):
        assert normalize_vat_number("DE", "123DE456") == "123DE456"

    @pytest.mark.parametrize("country,raw", [
        ("SE", "SE 556-012.345 601"),
        ("DE", "de123456789"),
        ("EL", "GR-123.456.789"),
        ("NL", "NL 1234.56789.B01"),
        ("AT", "ATU12345678"),
    ])
    def test_idempotent(self, country, raw):
        cc, number, err = normalize(country, raw)
        assert err is None
        assert normalize(cc, number) == (cc, number, None)


class TestValidateFormat:
    def test_valid_swedish_number(self):
        assert validate_format("SE", "556012345601") is None

    def test_too_short_swedish_number(self):
        assert validate_format("SE", "123") == FormatError.INVALID_LENGTH

    def test_length_reported_before_pattern(self):
        # Wrong shape and wrong length: length wins
        assert validate_format("AT", "X1") == FormatError.INVALID_LENGTH
        assert validate_format("NL", "123456789B0123") == FormatError.INVALID_LENGTH

    def test_pattern_mismatch_with_correct_length(self):
        assert validate_format("AT", "123456789") == FormatError.INVALID_FORMAT
        assert validate_format("NL", "123456789A01") == FormatError.INVALID_FORMAT
        assert validate_format("DE", "12345678X") == FormatError.INVALID_FORMAT

    def test_unknown_country(self):
        assert validate_format("US", "123456789") == FormatError.INVALID_COUNTRY_CODE

    def test_lowercase_country_accepted(self):
        assert validate_format("de", "123456789") is None

    @pytest.mark.parametrize("country", COUNTRY_CODES)
    def test_shorter_than_minimum_is_invalid_length(self, country):
        min_len, _, _ = VAT_FORMATS[country]
        assert validate_format(country, "1" * (min_len - 1)) == FormatError.INVALID_LENGTH
        assert validate_format(country, "") == FormatError.INVALID_LENGTH

    @pytest.mark.parametrize("country", COUNTRY_CODES)
    def test_longer_than_maximum_is_invalid_length(self, country):
        _, max_len, _ = VAT_FORMATS[country]
        assert validate_format(country, "1" * (max_len + 1)) == FormatError.INVALID_LENGTH

    @pytest.mark.parametrize("country,number", [
        ("AT", "U12345678"),
        ("BE", "0123456789"),
        ("BG", "123456789"),
        ("BG", "1234567890"),
        ("CY", "12345678L"),
        ("CZ", "12345678"),
        ("DK", "12345678"),
        ("ES", "A1234567B"),
        ("FR", "AB123456789"),
        ("IE", "1234567T"),
        ("IE", "1234567WA"),
        ("IE", "1S23456T"),
        ("LT", "123456789012"),
        ("NL", "123456789B01"),
        ("RO", "12"),
        ("XI", "123456789"),
    ])
    def test_known_good_shapes(self, country, number):
        assert validate_format(country, number) is None

    def test_lithuanian_ten_digits_rejected_by_pattern(self):
        assert validate_format("LT", "1234567890") == FormatError.INVALID_FORMAT


class TestHelpers:
    def test_supported_countries(self):
        codes = country_codes()
        assert len(codes) == 28
        assert "XI" in codes and "EL" in codes
        assert "GR" not in codes

    def test_country_name(self):
        assert country_name("SE") == "Sweden"
        assert country_name("el") == "Greece"
        assert country_name("US") is None
        assert country_name(None) is None

    def test_is_valid_country_code(self):
        assert is_valid_country_code("se") is True
        assert is_valid_country_code("US") is False
        assert is_valid_country_code(123) is False

    def test_validate_and_normalize(self):
        assert validate_and_normalize("SE", "SE 556-012.345 601") == ("SE", "556012345601", None)
        assert validate_and_normalize("SE", "123") == (None, None, FormatError.INVALID_LENGTH)

    def test_is_valid_format(self):
        assert is_valid_format("SE", "556012345601") is True
        assert is_valid_format("SE", "123") is False

    def test_format_info(self):
        min_len, max_len, pattern = format_info("se")
        assert (min_len, max_len) == (12, 12)
        assert format_info("US") is None

    def test_extract_country_code(self):
        assert extract_country_code("SE556012345601") == ("SE", "556012345601", None)
        assert extract_country_code("se 5560-1234.5601") == ("SE", "556012345601", None)

    def test_extract_country_code_errors(self):
        assert extract_country_code("XX123456")[2] == FormatError.INVALID_COUNTRY_CODE
        assert extract_country_code("12")[2] == FormatError.NO_COUNTRY_PREFIX
        assert extract_country_code(None)[2] == FormatError.NO_COUNTRY_PREFIX

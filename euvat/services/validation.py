"""VAT validation entry point: input preparation, adapter call, fallback.

``VatValidator`` holds the primary adapter and an optional fallback adapter.
A module-level default instance, built lazily from ``Settings``, backs the
plain functions at the bottom of this module.
"""
import logging
from typing import Any, Optional

from euvat.adapters import RequestOptions, VatAdapter, resolve_adapter
from euvat.core.config import Settings, get_settings
from euvat.core.errors import VatError, VatValidationError
from euvat.schemas import ServiceStatus, ValidationResult
from euvat.utils import vat

logger = logging.getLogger(__name__)


class VatValidator:
    def __init__(self, adapter: VatAdapter, fallback_adapter: Optional[VatAdapter] = None):
        self.adapter = adapter
        self.fallback_adapter = fallback_adapter

    @classmethod
    def from_settings(cls, settings: Optional[Settings] = None, transport: Any = None) -> "VatValidator":
        settings = settings or get_settings()
        adapter = resolve_adapter(settings.adapter, settings, transport=transport)
        fallback = resolve_adapter(settings.fallback_adapter, settings, transport=transport)
        logger.info(
            "VAT validator: adapter=%s fallback=%s",
            settings.adapter,
            settings.fallback_adapter or "none",
        )
        return cls(adapter, fallback)

    def prepare_input(
        self, country_code: Any, vat_number: Any, normalize: bool = True, strict: bool = False
    ) -> tuple[Optional[tuple[str, str]], Optional[VatError]]:
        """Normalize (or just check the country code), then the strict format check."""
        if normalize:
            cc, number, reason = vat.normalize(country_code, vat_number)
            if reason:
                return None, VatError.from_format_error(reason, country_code, vat_number)
        else:
            if vat.validate_country_code(country_code):
                return None, VatError.invalid_country_code(country_code)
            cc = country_code.strip().upper()
            if not isinstance(vat_number, str) or not vat_number:
                return None, VatError.empty_vat_number(cc)
            number = vat_number

        if strict:
            reason = vat.validate_format(cc, number)
            if reason:
                logger.debug("Strict mode rejected %s %s: %s", cc, number, reason.value)
                return None, VatError.from_format_error(reason, cc, number)
        return (cc, number), None

    def validate(
        self,
        country_code: str,
        vat_number: str,
        adapter: Optional[VatAdapter] = None,
        fallback: bool = True,
        normalize: bool = True,
        strict: bool = False,
        **request_options: Any,
    ) -> tuple[Optional[ValidationResult], Optional[VatError]]:
        """Validate a VAT number.

        Args:
            adapter: Use this adapter instead of the configured one.
            fallback: Try the fallback adapter when the primary fails with a
                retryable error.
            normalize: Strip formatting and country prefix before validating.
            strict: Check the format locally before calling the adapter.
            **request_options: ``RequestOptions`` fields (test_mode, requester
                and trader fields).

        Returns:
            (result, None) or (None, error). If the fallback adapter also
            fails, the primary adapter's error is returned.
        """
        options = RequestOptions(**request_options)
        prepared, error = self.prepare_input(country_code, vat_number, normalize, strict)
        if error:
            return None, error
        cc, number = prepared

        primary = adapter or self.adapter
        result, error = primary.validate(cc, number, options)
        if error is None:
            return result, None

        if not (fallback and self.fallback_adapter is not None and error.retryable):
            return None, error

        logger.info("Primary VAT adapter failed (%s); using fallback %s", error, self.fallback_adapter.adapter_id)
        fallback_result, fallback_error = self.fallback_adapter.validate(cc, number, options)
        if fallback_error is not None:
            logger.warning("Fallback VAT adapter also failed: %s", fallback_error)
            return None, error
        return fallback_result.with_fallback_marker(), None

    def validate_or_raise(self, country_code: str, vat_number: str, **kwargs: Any) -> ValidationResult:
        """Same as validate(), raising VatValidationError instead of returning the error."""
        result, error = self.validate(country_code, vat_number, **kwargs)
        if error is not None:
            raise VatValidationError(error)
        return result

    def check_status(
        self, adapter: Optional[VatAdapter] = None
    ) -> tuple[Optional[ServiceStatus], Optional[VatError]]:
        return (adapter or self.adapter).check_status()

    def country_available(self, country_code: str, adapter: Optional[VatAdapter] = None) -> bool:
        """False when the status cannot be determined."""
        status, error = self.check_status(adapter)
        if error is not None:
            return False
        return status.country_available(country_code)


# Lazily built from Settings by get_validator()
_validator: Optional[VatValidator] = None


def get_validator() -> VatValidator:
    global _validator
    if _validator is None:
        _validator = VatValidator.from_settings()
    return _validator


def configure(settings: Optional[Settings] = None, transport: Any = None) -> VatValidator:
    """Replace the default validator; call once at startup."""
    global _validator
    _validator = VatValidator.from_settings(settings, transport=transport)
    return _validator


def reset_validator() -> None:
    """Drop the default validator (for tests)."""
    global _validator
    _validator = None


def validate(country_code: str, vat_number: str, **kwargs: Any) -> tuple[Optional[ValidationResult], Optional[VatError]]:
    return get_validator().validate(country_code, vat_number, **kwargs)


def validate_or_raise(country_code: str, vat_number: str, **kwargs: Any) -> ValidationResult:
    return get_validator().validate_or_raise(country_code, vat_number, **kwargs)


def check_status(adapter: Optional[VatAdapter] = None) -> tuple[Optional[ServiceStatus], Optional[VatError]]:
    return get_validator().check_status(adapter)


def country_available(country_code: str, adapter: Optional[VatAdapter] = None) -> bool:
    return get_validator().country_available(country_code, adapter)

"""Offline adapter: format checks only, no registry lookup.

Useful as a fallback when VIES is unavailable, or to reject obviously bad
input without a network call. It cannot confirm that a number is
registered and never returns company data.
"""
from datetime import datetime, timezone
from typing import Optional

from euvat.adapters.base import RequestOptions, VatAdapter
from euvat.core.errors import FormatError, VatError
from euvat.schemas import Capability, ServiceStatus, ValidationResult
from euvat.utils import vat


class OfflineAdapter(VatAdapter):
    adapter_id = "offline"

    def validate(
        self,
        country_code: str,
        vat_number: str,
        options: Optional[RequestOptions] = None,
    ) -> tuple[Optional[ValidationResult], Optional[VatError]]:
        """Never fails at the transport level: bad input yields valid=False."""
        now = datetime.now(timezone.utc)
        norm_country, norm_number, error = vat.validate_and_normalize(country_code, vat_number)
        if error is None:
            return (
                ValidationResult(
                    valid=True,
                    country_code=norm_country,
                    vat_number=norm_number,
                    request_timestamp=now,
                    adapter_id=self.adapter_id,
                    country_name=vat.country_name(norm_country),
                ),
                None,
            )

        return (
            ValidationResult(
                valid=False,
                country_code=str(country_code or "").strip().upper(),
                vat_number=str(vat_number or ""),
                request_timestamp=now,
                adapter_id=self.adapter_id,
                raw_response={"error": error.value},
            ),
            None,
        )

    def validate_format(self, country_code: str, vat_number: str) -> Optional[FormatError]:
        return vat.validate_format(country_code, vat_number)

    def check_status(self) -> tuple[Optional[ServiceStatus], Optional[VatError]]:
        return ServiceStatus(available=True, countries={code: True for code in vat.country_codes()}), None

    def supports_country(self, country_code: str) -> bool:
        return vat.is_valid_country_code(country_code)

    def capabilities(self) -> frozenset[Capability]:
        return frozenset({Capability.VALIDATE, Capability.VALIDATE_FORMAT, Capability.CHECK_STATUS})

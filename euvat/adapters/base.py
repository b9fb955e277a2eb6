"""Contract shared by all VAT validation adapters.

Callers gate optional behaviour (trader matching, request identifiers) on
``capabilities()`` only, never on the adapter's concrete type.
"""
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional

from euvat.core.errors import FormatError, VatError
from euvat.schemas import Capability, ServiceStatus, ValidationResult


@dataclass(frozen=True)
class RequestOptions:
    """Per-call options forwarded to an adapter."""

    test_mode: bool = False
    requester_member_state_code: Optional[str] = None
    requester_number: Optional[str] = None
    trader_name: Optional[str] = None
    trader_street: Optional[str] = None
    trader_postal_code: Optional[str] = None
    trader_city: Optional[str] = None
    trader_company_type: Optional[str] = None

    @property
    def has_trader_fields(self) -> bool:
        return any(
            (
                self.trader_name,
                self.trader_street,
                self.trader_postal_code,
                self.trader_city,
                self.trader_company_type,
            )
        )


class VatAdapter(ABC):
    """Abstract base class for VAT validation adapters."""

    #: Identifier recorded on results and errors produced by this adapter
    adapter_id: str = "custom"

    @abstractmethod
    def validate(
        self,
        country_code: str,
        vat_number: str,
        options: Optional[RequestOptions] = None,
    ) -> tuple[Optional[ValidationResult], Optional[VatError]]:
        """Validate a VAT number against the adapter's data source.

        Returns:
            (result, None) when a validity determination was made,
            (None, error) otherwise.
        """

    @abstractmethod
    def validate_format(self, country_code: str, vat_number: str) -> Optional[FormatError]:
        """Local structural check only; None means the format is fine."""

    @abstractmethod
    def check_status(self) -> tuple[Optional[ServiceStatus], Optional[VatError]]:
        """Availability of the backing service, overall and per country."""

    @abstractmethod
    def supports_country(self, country_code: str) -> bool:
        pass

    @abstractmethod
    def capabilities(self) -> frozenset[Capability]:
        pass


def has_capability(adapter: VatAdapter, capability: Capability) -> bool:
    return capability in adapter.capabilities()

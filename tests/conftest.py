"""Pytest configuration and shared fixtures.

No test touches the network: the VIES adapter gets a mock transport and
time.sleep is patched so retries do not wait.
"""
import json
from datetime import datetime, timezone
from unittest.mock import MagicMock, patch

import pytest

from euvat.adapters.base import VatAdapter
from euvat.adapters.vies import ViesAdapter
from euvat.connectors.http import HttpResponse
from euvat.schemas import Capability, ValidationResult
from euvat.services.validation import reset_validator


def json_response(status_code: int, payload=None) -> HttpResponse:
    """HttpResponse with a JSON-encoded body ("" when payload is None)."""
    body = "" if payload is None else json.dumps(payload)
    return HttpResponse(status_code=status_code, body=body)


def make_result(**kwargs) -> ValidationResult:
    """Factory for ValidationResult with sensible defaults."""
    defaults = {
        "valid": True,
        "country_code": "SE",
        "vat_number": "556012345601",
        "request_timestamp": datetime(2024, 6, 15, 10, 30, tzinfo=timezone.utc),
        "adapter_id": "stub",
    }
    defaults.update(kwargs)
    return ValidationResult(**defaults)


def make_adapter(adapter_id: str = "stub", result=None, error=None) -> MagicMock:
    """Mock adapter returning (result, error) from validate()."""
    adapter = MagicMock(spec=VatAdapter)
    adapter.adapter_id = adapter_id
    adapter.validate.return_value = (result, error)
    adapter.capabilities.return_value = frozenset({Capability.VALIDATE})
    return adapter


@pytest.fixture()
def transport() -> MagicMock:
    """Mock HTTP transport; set post/get return_value or side_effect per test."""
    return MagicMock()


@pytest.fixture()
def vies(transport) -> ViesAdapter:
    return ViesAdapter(
        base_url="https://vies.example.com/rest-api",
        max_retries=3,
        retry_delay_seconds=1.0,
        retry_backoff="exponential",
        transport=transport,
    )


@pytest.fixture()
def no_sleep():
    with patch("euvat.adapters.vies.time.sleep") as mock_sleep:
        yield mock_sleep


@pytest.fixture(autouse=True)
def reset_default_validator():
    """Reset the module-level validator before and after each test."""
    reset_validator()
    yield
    reset_validator()


def pytest_configure(config):
    config.addinivalue_line("markers", "unit: marks unit tests")

"""Adapter resolution from configuration."""
import importlib
import logging
from typing import Any, Optional

from euvat.adapters.base import RequestOptions, VatAdapter, has_capability
from euvat.adapters.offline import OfflineAdapter
from euvat.adapters.vies import ViesAdapter
from euvat.core.config import Settings

logger = logging.getLogger(__name__)

__all__ = [
    "OfflineAdapter",
    "RequestOptions",
    "VatAdapter",
    "ViesAdapter",
    "has_capability",
    "resolve_adapter",
]


def _import_adapter_class(path: str) -> type:
    """Import "pkg.module:Class" or "pkg.module.Class"."""
    if ":" in path:
        module_name, _, class_name = path.partition(":")
    else:
        module_name, _, class_name = path.rpartition(".")
    if not module_name or not class_name:
        raise ValueError(f"Invalid adapter path: {path!r}")
    module = importlib.import_module(module_name)
    try:
        return getattr(module, class_name)
    except AttributeError:
        raise ValueError(f"Adapter class {class_name!r} not found in {module_name!r}") from None


def resolve_adapter(name: Optional[str], settings: Settings, transport: Any = None) -> Optional[VatAdapter]:
    """Build the adapter configured under ``name``; None for an unset name."""
    if not name:
        return None
    if name == "vies":
        return ViesAdapter.from_settings(settings, transport=transport)
    if name == "offline":
        return OfflineAdapter()

    adapter_cls = _import_adapter_class(name)
    adapter = adapter_cls()
    if not isinstance(adapter, VatAdapter):
        raise ValueError(f"{name!r} is not a VatAdapter")
    logger.info("Using custom VAT adapter %s", name)
    return adapter

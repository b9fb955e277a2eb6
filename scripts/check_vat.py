#!/usr/bin/env python3
"""Check a VAT number, or work out the VAT treatment of a B2B transaction.

Exit codes: 0 valid, 1 invalid, 2 error.
"""
import argparse
import sys
from pathlib import Path

SCRIPT_DIR = Path(__file__).resolve().parent
PROJECT_ROOT = SCRIPT_DIR.parent
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from euvat.adapters import OfflineAdapter
from euvat.core.config import get_settings
from euvat.core.logging import setup_logging
from euvat.services import b2b
from euvat.services.validation import VatValidator


def parse_args(argv=None) -> argparse.Namespace:
    p = argparse.ArgumentParser(
        description="Validate EU VAT numbers (VIES or offline) and classify B2B transactions.",
        epilog="Example: python scripts/check_vat.py validate SE 556012345601",
    )
    p.add_argument("--offline", action="store_true", help="Format check only, no VIES call")
    p.add_argument("--log-level", default=None, help="Override LOG_LEVEL (default: from settings)")
    sub = p.add_subparsers(dest="command", required=True)

    v = sub.add_parser("validate", help="Validate one VAT number")
    v.add_argument("country", help="Country code, e.g. SE")
    v.add_argument("number", help="VAT number, with or without country prefix")
    v.add_argument("--strict", action="store_true", help="Check the format before calling VIES")
    v.add_argument("--test-mode", action="store_true", help="Use the VIES test service")
    v.add_argument("--no-fallback", action="store_true", help="Do not use the fallback adapter")

    t = sub.add_parser("transaction", help="Classify a seller -> buyer transaction")
    t.add_argument("seller_country")
    t.add_argument("seller_vat")
    t.add_argument("buyer_country")
    t.add_argument("buyer_vat")
    t.add_argument("--b2c", action="store_true", help="Treat the sale as B2C")
    t.add_argument("--language", default="en", help="Invoice note language (default: en)")
    return p.parse_args(argv)


def _run_validate(args: argparse.Namespace, validator: VatValidator) -> int:
    result, error = validator.validate(
        args.country,
        args.number,
        strict=args.strict,
        fallback=not args.no_fallback,
        test_mode=args.test_mode,
    )
    if error is not None:
        print(f"[ERROR] {error}")
        return 2

    status = "VALID" if result.valid else "INVALID"
    print(f"{result.country_code}{result.vat_number}: {status} (adapter: {result.adapter_id})")
    if result.name:
        print(f"  Name: {result.name}")
    if result.address:
        print(f"  Address: {result.address}")
    if result.request_identifier:
        print(f"  Request identifier: {result.request_identifier}")
    if result.corrected:
        print(f"  Corrected from: {result.original_vat_number}")
    if result.fallback_used:
        print("  Note: fallback adapter used")
    return 0 if result.valid else 1


def _run_transaction(args: argparse.Namespace, validator: VatValidator) -> int:
    transaction, error = b2b.validate_transaction(
        args.seller_country,
        args.seller_vat,
        args.buyer_country,
        args.buyer_vat,
        is_b2b=not args.b2c,
        language=args.language,
        validator=validator,
    )
    if error is not None:
        print(f"[ERROR] {error}")
        return 2

    rate = "n/a" if transaction.vat_rate is None else f"{transaction.vat_rate}%"
    print(f"{transaction.seller_country} -> {transaction.buyer_country}: {transaction.tax_treatment.value}")
    print(f"  Seller VAT valid: {transaction.seller_valid}")
    print(f"  Buyer VAT valid: {transaction.buyer_valid}")
    print(f"  VAT rate: {rate}")
    if transaction.invoice_note:
        print(f"  Invoice note: {transaction.invoice_note}")
    return 0 if transaction.seller_valid and transaction.buyer_valid else 1


def main(argv=None) -> int:
    args = parse_args(argv)
    settings = get_settings()
    setup_logging(args.log_level or settings.log_level)

    if args.offline:
        validator = VatValidator(OfflineAdapter())
    else:
        validator = VatValidator.from_settings(settings)

    if args.command == "validate":
        return _run_validate(args, validator)
    return _run_transaction(args, validator)


if __name__ == "__main__":
    sys.exit(main())

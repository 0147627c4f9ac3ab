"""
Statement Ingest CLI

Imports a CSV or PDF statement and prints the new transactions as JSON.
"""

import argparse
import json
import logging
import os
import sys
from pathlib import Path

from .errors import StatementStructureError
from .ingestion import StatementImporter
from .models import Account, AccountType

logger = logging.getLogger(__name__)

LOG_LEVEL_ENV = "STATEMENT_INGEST_LOG_LEVEL"


def load_seen(path: Path | None) -> set[str]:
    if path is None or not path.exists():
        return set()
    with open(path) as f:
        return set(json.load(f))


def save_seen(path: Path, seen: set[str]) -> None:
    with open(path, "w") as f:
        json.dump(sorted(seen), f, indent=2)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="statement-ingest",
        description="Import a bank or credit card statement"
    )
    parser.add_argument("format", choices=["csv", "pdf"], help="Input format")
    parser.add_argument("file", type=Path, help="Statement file")
    parser.add_argument("--institution", default="UOB", help="Issuing institution")
    parser.add_argument("--product", default="UOB One (with FX+)", help="Account product name")
    parser.add_argument(
        "--account-type",
        choices=[t.value for t in AccountType],
        default=AccountType.BANK.value,
        help="Account type"
    )
    parser.add_argument("--account-id", default="default", help="Ledger account id")
    parser.add_argument("--seen", type=Path, help="JSON file of known fingerprints, updated in place")
    parser.add_argument("--config-dir", type=Path, help="Configuration directory")
    parser.add_argument(
        "--log-level",
        default=os.getenv(LOG_LEVEL_ENV, "WARNING"),
        help="Logging level"
    )
    return parser


def main(argv: list[str] | None = None) -> int:
    """CLI entry point."""
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=args.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s"
    )

    account = Account(
        id=args.account_id,
        institution=args.institution,
        product_name=args.product,
        type=AccountType(args.account_type),
    )
    importer = StatementImporter(config_dir=args.config_dir)
    seen = load_seen(args.seen)

    try:
        if args.format == "pdf":
            result = importer.import_pdf_file(args.file, account, seen)
        else:
            result = importer.import_csv_file(args.file, account, seen)
    except StatementStructureError as e:
        logger.error(f"Rejected {args.file}: {e}")
        print(f"Error: {e}", file=sys.stderr)
        return 1

    if args.seen:
        save_seen(args.seen, seen)

    print(json.dumps(result.to_dict(), indent=2))
    return 0


if __name__ == "__main__":
    sys.exit(main())

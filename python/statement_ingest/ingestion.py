"""
Statement Ingestion Service

Runs a CSV export or a PDF statement through parsing, deduplication and
classification, producing ledger-ready transactions.
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable

from .classifier import TransactionClassifier
from .config import IngestSettings, load_settings
from .csv_parser import GenericCSVParser
from .fingerprint import dedupe
from .layout import stitch_pages
from .models import (
    Account,
    AccountType,
    ParsedStatement,
    PositionedFragment,
    RawTuple,
    Snapshot,
    Transaction,
    VisualRow,
)
from .parsers.registry import get_parser
from .pdf_layout import extract_layout

logger = logging.getLogger(__name__)

SUPPORTED_EXTENSIONS = (".csv", ".pdf")


@dataclass
class ImportResult:
    """Outcome of importing one file into an account."""

    transactions: list[Transaction] = field(default_factory=list)
    duplicates: int = 0
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    snapshot: Snapshot | None = None

    def to_dict(self) -> dict:
        return {
            "transactions": [t.to_dict() for t in self.transactions],
            "duplicates": self.duplicates,
            "errors": self.errors,
            "warnings": self.warnings,
            "snapshot": self.snapshot.to_dict() if self.snapshot else None,
        }


def validate_file_type(path: Path | str) -> bool:
    return Path(path).suffix.lower() in SUPPORTED_EXTENSIONS


class StatementImporter:
    """Imports statements for an account against a caller-owned fingerprint set."""

    def __init__(
        self,
        settings: IngestSettings | None = None,
        classifier: TransactionClassifier | None = None,
        config_dir: Path | str | None = None
    ):
        """Initialize the importer.

        Args:
            settings: Ingestion settings; loaded from ``config_dir`` when omitted
            classifier: Transaction classifier; built from ``config_dir`` when omitted
            config_dir: Configuration directory
        """
        self.settings = settings or load_settings(config_dir)
        self.classifier = classifier or TransactionClassifier(config_dir)
        self.csv_parser = GenericCSVParser()

    def import_csv(self, content: str, account: Account, seen: set[str]) -> ImportResult:
        """Import CSV content.

        Args:
            content: CSV text
            account: Target account
            seen: Fingerprints already in the ledger; updated in place

        Returns:
            ImportResult
        """
        parsed = self.csv_parser.parse_content(content)
        result = self._admit(parsed.rows, account, seen)
        result.errors.extend(parsed.errors)

        logger.info(
            f"CSV import for {account.id}: {len(result.transactions)} new, "
            f"{result.duplicates} duplicates, {len(result.errors)} errors"
        )
        return result

    def import_csv_file(self, path: Path | str, account: Account, seen: set[str]) -> ImportResult:
        with open(Path(path), encoding="utf-8", newline="") as f:
            return self.import_csv(f.read(), account, seen)

    def import_statement(
        self,
        account: Account,
        seen: set[str],
        rows: list[VisualRow] | None = None,
        pages: Iterable[Iterable[PositionedFragment]] | None = None,
        full_text: str | None = None
    ) -> ImportResult:
        """Import a PDF statement given as rows, fragment pages, or text.

        Args:
            account: Target account; selects the parser
            seen: Fingerprints already in the ledger; updated in place
            rows: Pre-grouped visual rows
            pages: Fragments per page, grouped and stitched here
            full_text: Plain text of the statement

        Returns:
            ImportResult

        Raises:
            StatementStructureError: If the statement lacks a required marker
        """
        if rows is None and pages is not None:
            rows = stitch_pages(pages, self.settings.row_tolerance)

        parser = get_parser(account, self.settings)
        statement = parser.parse(rows or [], full_text)

        result = self._admit(statement.transactions, account, seen)
        result.errors.extend(statement.errors)
        result.warnings.extend(statement.warnings)
        result.snapshot = self._snapshot(statement, account)

        logger.info(
            f"Statement import for {account.id} ({parser.NAME}): "
            f"{len(result.transactions)} new, {result.duplicates} duplicates"
        )
        return result

    def import_pdf_file(self, path: Path | str, account: Account, seen: set[str]) -> ImportResult:
        """Extract a PDF with pdfplumber and import it."""
        layout = extract_layout(path)
        return self.import_statement(account, seen, pages=layout.pages, full_text=layout.full_text)

    def import_file(self, path: Path | str, account: Account, seen: set[str]) -> ImportResult:
        """Dispatch on file extension.

        Raises:
            ValueError: If the file is neither CSV nor PDF
        """
        if not validate_file_type(path):
            raise ValueError("Please upload a CSV or PDF file")
        if Path(path).suffix.lower() == ".pdf":
            return self.import_pdf_file(path, account, seen)
        return self.import_csv_file(path, account, seen)

    def _admit(self, tuples: list[RawTuple], account: Account, seen: set[str]) -> ImportResult:
        deduped = dedupe(tuples, seen)
        return ImportResult(
            transactions=[
                self.classifier.to_transaction(raw, account, fp)
                for raw, fp in zip(deduped.kept, deduped.fingerprints)
            ],
            duplicates=deduped.duplicate_count,
        )

    @staticmethod
    def _snapshot(statement: ParsedStatement, account: Account) -> Snapshot | None:
        if account.type is AccountType.CREDIT or not statement.period_end:
            return None
        return Snapshot(
            date=statement.period_end,
            account_id=account.id,
            balance=statement.closing_balance,
        )

"""
Generic CSV Parser

Parses bank CSV exports of unknown layout by sniffing the header row and
matching column names against synonym patterns.
"""

import csv
import logging
import re
from dataclasses import dataclass, field
from decimal import Decimal
from io import StringIO
from pathlib import Path

from .errors import RowParseError
from .models import RawTuple
from .normalize import parse_amount, parse_csv_date

logger = logging.getLogger(__name__)


@dataclass
class CSVParseResult:
    """Rows that parsed plus one message per row that did not."""

    rows: list[RawTuple] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)
    column_mapping: dict[str, int] = field(default_factory=dict)
    header_line: int | None = None

    @property
    def row_count(self) -> int:
        return len(self.rows)


class GenericCSVParser:
    """CSV parser with header auto-detection."""

    # Checked in this order per header; the first field a header matches wins
    FIELD_PATTERNS: dict[str, list[str]] = {
        "balance": [r"balance", r"running.*bal"],
        "date": [r"date", r"\bdt\b"],
        "debit": [r"debit", r"withdrawal"],
        "credit": [r"credit", r"deposit"],
        "amount": [r"\bamount\b", r"\bvalue\b"],
        "description": [
            r"description", r"particulars", r"details", r"narrat",
            r"remarks", r"memo", r"payee",
        ],
    }

    HEADER_SCAN_LINES = 10

    def __init__(self, encoding: str = "utf-8", delimiter: str = ","):
        """Initialize the parser.

        Args:
            encoding: File encoding
            delimiter: CSV delimiter
        """
        self.encoding = encoding
        self.delimiter = delimiter

    def parse_file(self, file_path: Path | str) -> CSVParseResult:
        """Parse a CSV file.

        Args:
            file_path: Path to the CSV file

        Returns:
            CSVParseResult
        """
        with open(Path(file_path), encoding=self.encoding, newline="") as f:
            return self.parse_content(f.read())

    def parse_content(self, content: str) -> CSVParseResult:
        """Parse CSV content string.

        Rows whose required fields fail to parse are skipped and reported in
        ``errors``; they never abort the batch.

        Args:
            content: CSV content as string

        Returns:
            CSVParseResult
        """
        result = CSVParseResult()
        content = self._preprocess_content(content)

        reader = csv.reader(StringIO(content), delimiter=self.delimiter)
        records = [(reader.line_num, row) for row in reader]
        records = [(line, row) for line, row in records if any(cell.strip() for cell in row)]

        if len(records) < 2:
            result.errors.append("CSV file is empty or has no data rows")
            return result

        header_index = self._find_header(records)
        if header_index is None:
            result.errors.append("Could not detect required columns (date, description, amount)")
            return result

        header_line, headers = records[header_index]
        result.header_line = header_line
        result.column_mapping = self._detect_columns(headers)

        for line, row in records[header_index + 1:]:
            try:
                result.rows.append(self._parse_row(row, result.column_mapping))
            except RowParseError as e:
                result.errors.append(str(e.at_row(line)))

        logger.info(f"CSV: parsed {result.row_count} rows, {len(result.errors)} errors")
        return result

    def _preprocess_content(self, content: str) -> str:
        if content.startswith("\ufeff"):
            content = content[1:]
        return content.replace("\r\n", "\n").replace("\r", "\n").strip()

    def _detect_columns(self, headers: list[str]) -> dict[str, int]:
        """Map field names to column indexes.

        Args:
            headers: Header cells

        Returns:
            Dictionary of field name -> column index
        """
        mapping: dict[str, int] = {}

        for index, header in enumerate(headers):
            header_lower = header.lower().strip()
            for field_name, patterns in self.FIELD_PATTERNS.items():
                if any(re.search(p, header_lower) for p in patterns):
                    mapping.setdefault(field_name, index)
                    break

        return mapping

    def _has_required_columns(self, mapping: dict[str, int]) -> bool:
        has_amount = "amount" in mapping or "debit" in mapping or "credit" in mapping
        return "date" in mapping and "description" in mapping and has_amount

    def _find_header(self, records: list[tuple[int, list[str]]]) -> int | None:
        """Index of the first record that names the required columns."""
        for index, (_, row) in enumerate(records[:self.HEADER_SCAN_LINES]):
            if self._has_required_columns(self._detect_columns(row)):
                return index
        return None

    @staticmethod
    def _cell(row: list[str], mapping: dict[str, int], field_name: str) -> str:
        index = mapping.get(field_name)
        if index is None or index >= len(row):
            return ""
        return row[index].strip()

    def _parse_row(self, row: list[str], mapping: dict[str, int]) -> RawTuple:
        """Parse one data row.

        Raises:
            RowParseError: If date, description or amount cannot be read
        """
        date = parse_csv_date(self._cell(row, mapping, "date"))

        description = self._cell(row, mapping, "description")
        if not description:
            raise RowParseError("Missing description")

        amount = self._read_amount(row, mapping)

        balance = Decimal("0")
        balance_str = self._cell(row, mapping, "balance")
        if balance_str:
            try:
                balance = parse_amount(balance_str)
            except RowParseError:
                logger.debug(f"Ignoring unreadable balance: {balance_str}")

        return RawTuple(date=date, description=description, amount=amount, balance=balance)

    def _read_amount(self, row: list[str], mapping: dict[str, int]) -> Decimal:
        amount_str = self._cell(row, mapping, "amount")
        if amount_str:
            return parse_amount(amount_str)

        debit_str = self._cell(row, mapping, "debit")
        if debit_str:
            return -abs(parse_amount(debit_str))

        credit_str = self._cell(row, mapping, "credit")
        if credit_str:
            return abs(parse_amount(credit_str))

        raise RowParseError("Missing amount")
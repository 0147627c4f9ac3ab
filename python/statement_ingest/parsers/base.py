"""
Base Statement Parser Module

Abstract base class for institution-specific PDF statement parsers, plus the
footer and marker helpers they share.
"""

import re
from abc import ABC, abstractmethod
from decimal import Decimal

from ..config import IngestSettings
from ..errors import StatementStructureError
from ..models import ParsedStatement, PositionedFragment, VisualRow
from ..normalize import STATEMENT_NUMBER_RE, parse_full_date, parse_statement_number

WHITESPACE_RE = re.compile(r"\s+")
TRAILING_FIGURE_RE = re.compile(r"[\d,]+\.\d{2}\s*$")

BALANCE_FORWARD = "BALANCE B/F"

# Letterhead, page numbers and repeated table headers; skipped without
# ending a description continuation.
PAGE_FURNITURE_PATTERNS = [
    "united overseas bank",
    "uob plaza",
    "co. reg. no",
    "gst reg. no",
    "www.uob.com",
    "80 raffles",
    "raffles place",
    "singapore 048624",
    r"\bpage \d+ of \d+\b",
    r"^page \d+$",
    "withdrawals deposits balance",
    "date description",
    "fx+",
    "sgd/jpy",
    "sgd/usd",
    "sgd/eur",
    "sgd/gbp",
    "sgd/aud",
    "sgd/nzd",
    "sgd/hkd",
    "sgd/cny",
    "nzd nzd nzd",
    "jpy jpy jpy",
    "usd usd usd",
    "eur eur eur",
    r"^total \d",
]

# Legal boilerplate; ends a description continuation.
DISCLAIMER_PATTERNS = [
    "please note that you are bound",
    "请注意",
    "本行",
    "户口",
    "check the entries",
    "notify us in writing",
    "shall be deemed valid",
    "conclusively binding",
    "claim against the bank",
    "omissions or unauthorised",
    "errors, omissions",
    "fourteen (14) days",
    "entries above shall be",
    "in relation thereto",
    "duty under the rules",
    "governing the operation",
    "foreign exchange",
    "deposit insurance",
]

NON_ASCII_RATIO = 0.3
NON_ASCII_MIN_LENGTH = 20


def collapse(text: str) -> str:
    return WHITESPACE_RE.sub(" ", text).strip()


def _matches_any(text: str, patterns: list[str]) -> bool:
    lowered = collapse(text).lower()
    for pattern in patterns:
        if "\\" in pattern or pattern.startswith("^"):
            if re.search(pattern, lowered):
                return True
        elif pattern in lowered:
            return True
    return False


def is_page_furniture(text: str) -> bool:
    return _matches_any(text, PAGE_FURNITURE_PATTERNS)


def is_disclaimer(text: str) -> bool:
    """Check for legal boilerplate, including mostly non-ASCII disclaimer text."""
    if _matches_any(text, DISCLAIMER_PATTERNS):
        return True

    stripped = text.strip()
    if len(stripped) > NON_ASCII_MIN_LENGTH:
        non_ascii = sum(1 for ch in stripped if ord(ch) > 0x7F)
        if non_ascii / len(stripped) > NON_ASCII_RATIO:
            return True

    return False


def number_fragments(row: VisualRow) -> list[PositionedFragment]:
    """Fragments of a row that are printed money figures."""
    return [f for f in row.fragments if STATEMENT_NUMBER_RE.match(f.text.strip())]


def rows_from_text(text: str) -> list[VisualRow]:
    """One single-fragment row per text line, for inputs without geometry."""
    return [
        VisualRow(y=-index, fragments=[PositionedFragment(text=line, x=0.0, y=-index)])
        for index, line in enumerate(text.split("\n"))
    ]


class BaseStatementParser(ABC):
    """Abstract base class for PDF statement parsers."""

    NAME: str = "unknown"
    CURRENCY: str | None = None

    PERIOD_RE = re.compile(
        r"Period:\s*(\d{2}\s+\w{3}\s+\d{4})\s+to\s+(\d{2}\s+\w{3}\s+\d{4})"
    )
    ACCOUNT_RE: re.Pattern | None = None

    # Transaction section bounds: the earliest end marker wins, and the
    # fallback end markers are only consulted when none of them is present.
    SECTION_START: tuple[str, ...] = ("Description",)
    SECTION_END: tuple[str, ...] = ("End of Transaction Details",)
    SECTION_END_FALLBACK: tuple[str, ...] = ()

    def __init__(self, settings: IngestSettings | None = None):
        """Initialize the parser.

        Args:
            settings: Ingestion settings; defaults are used when omitted
        """
        self.settings = settings or IngestSettings()

    @property
    def currency(self) -> str:
        return self.CURRENCY or self.settings.default_currency

    @abstractmethod
    def parse(self, rows: list[VisualRow], full_text: str | None = None) -> ParsedStatement:
        """Parse a statement into raw transaction tuples.

        Args:
            rows: Visual rows of every page, in page order
            full_text: Joined text of the document

        Returns:
            ParsedStatement

        Raises:
            StatementStructureError: If a load-bearing marker is missing
        """
        pass

    def _extract_period(self, full_text: str) -> tuple[str, str]:
        match = self.PERIOD_RE.search(full_text)
        if not match:
            raise StatementStructureError("statement period")
        return parse_full_date(match.group(1)), parse_full_date(match.group(2))

    def _extract_account_number(self, full_text: str) -> str:
        if self.ACCOUNT_RE is None:
            return ""
        match = self.ACCOUNT_RE.search(full_text)
        return match.group(1) if match else ""

    @staticmethod
    def _marker_re(marker: str) -> re.Pattern:
        return re.compile(r"\b" + re.escape(marker) + r"\b")

    def _find_marker(self, text: str, markers: tuple[str, ...], start: int = 0) -> int:
        positions = []
        for marker in markers:
            match = self._marker_re(marker).search(text, start)
            if match:
                positions.append(match.start())
        return min(positions) if positions else -1

    def _section_bounds(self, full_text: str) -> tuple[int, int]:
        """Locate the transaction section in the document text.

        Returns:
            Tuple of (start, end) character offsets

        Raises:
            StatementStructureError: If either bound is missing
        """
        start = self._find_marker(full_text, self.SECTION_START)
        if start == -1:
            raise StatementStructureError("transaction section start")

        end = self._find_marker(full_text, self.SECTION_END, start)
        if end == -1 and self.SECTION_END_FALLBACK:
            end = self._find_marker(full_text, self.SECTION_END_FALLBACK, start)
        if end == -1:
            raise StatementStructureError("transaction section end")

        return start, end

    def _is_section_end(self, text: str) -> bool:
        markers = self.SECTION_END + self.SECTION_END_FALLBACK
        return self._find_marker(text, markers) != -1

    def _bound_rows(self, rows: list[VisualRow]) -> list[VisualRow]:
        """Rows after the section start marker and before the section end."""
        start_index = 0
        for index, row in enumerate(rows):
            if self._find_marker(row.text, self.SECTION_START) != -1:
                start_index = index + 1
                break

        bounded = []
        for row in rows[start_index:]:
            if self._find_marker(row.text, self.SECTION_END) != -1:
                break
            bounded.append(row)
        else:
            if self.SECTION_END_FALLBACK:
                for index, row in enumerate(bounded):
                    if self._find_marker(row.text, self.SECTION_END_FALLBACK) != -1:
                        return bounded[:index]

        return bounded

    @staticmethod
    def _read_balance_forward(row: VisualRow) -> Decimal | None:
        figures = number_fragments(row)
        if figures:
            return parse_statement_number(figures[-1].text)
        match = TRAILING_FIGURE_RE.search(row.text)
        return parse_statement_number(match.group(0)) if match else None

"""
Legacy Text-Only Statement Parser

Used when no positional fragments are available: reads the joined text of
the transaction section line by line and signs amounts from the change in
running balance.
"""

import logging
import re
from decimal import Decimal

from ..errors import RowParseError
from ..models import ParsedStatement, RawTuple, VisualRow
from ..normalize import parse_day_month, parse_statement_number
from .base import (
    BALANCE_FORWARD,
    TRAILING_FIGURE_RE,
    BaseStatementParser,
    collapse,
    is_disclaimer,
    is_page_furniture,
)

logger = logging.getLogger(__name__)

DATED_LINE_RE = re.compile(r"^(\d{2}\s+[A-Za-z]{3})\s+(.+)$")
FIGURE_TOKEN_RE = re.compile(r"^[\d,]+\.\d{2}$")


class LegacyTextParser(BaseStatementParser):
    """Regex parser over the text between the section markers."""

    NAME = "legacy_text"
    SECTION_START = ("Description",)
    SECTION_END = ("End of Transaction Details",)
    SECTION_END_FALLBACK = ("Total",)

    def __init__(self, settings=None, profile: BaseStatementParser | None = None):
        """Initialize the parser.

        Args:
            settings: Ingestion settings
            profile: Statement parser whose markers and account pattern to reuse
        """
        super().__init__(settings)
        if profile is not None:
            self.NAME = f"{profile.NAME}_text"
            self.CURRENCY = profile.CURRENCY
            self.ACCOUNT_RE = profile.ACCOUNT_RE
            self.SECTION_START = profile.SECTION_START
            self.SECTION_END = profile.SECTION_END
            self.SECTION_END_FALLBACK = profile.SECTION_END_FALLBACK

    def parse(self, rows: list[VisualRow], full_text: str | None = None) -> ParsedStatement:
        full_text = full_text or "\n".join(row.text for row in rows)

        period_start, period_end = self._extract_period(full_text)
        start, end = self._section_bounds(full_text)

        statement = ParsedStatement(
            period_start=period_start,
            period_end=period_end,
            currency=self.currency,
            account_number=self._extract_account_number(full_text),
        )

        lines = [line.strip() for line in full_text[start:end].split("\n")]
        year = int(period_end[:4])
        running = Decimal("0")
        opening_seen = False

        i = 0
        while i < len(lines):
            line = lines[i]
            i += 1

            if BALANCE_FORWARD in line:
                match = TRAILING_FIGURE_RE.search(line)
                if match and not opening_seen:
                    try:
                        statement.opening_balance = parse_statement_number(match.group(0))
                    except RowParseError as e:
                        statement.errors.append(f"{BALANCE_FORWARD}: {e}")
                        continue
                    running = statement.opening_balance
                    opening_seen = True
                continue

            dated = DATED_LINE_RE.match(line)
            if not dated:
                continue

            continuations = []
            while i < len(lines):
                next_line = lines[i]
                if (
                    not next_line
                    or DATED_LINE_RE.match(next_line)
                    or BALANCE_FORWARD in next_line
                    or self._is_section_end(next_line)
                    or is_disclaimer(next_line)
                ):
                    break
                i += 1
                if not is_page_furniture(next_line):
                    continuations.append(collapse(next_line))

            try:
                transaction = self._parse_line(dated.group(1), dated.group(2), running, year, period_end)
            except RowParseError as e:
                statement.errors.append(f"{dated.group(1)}: {e}")
                continue

            if continuations:
                transaction.description = self.settings.description_separator.join(
                    [transaction.description] + continuations
                )

            statement.transactions.append(transaction)
            running = transaction.balance
            statement.closing_balance = transaction.balance

        logger.info(f"{self.NAME}: parsed {statement.transaction_count} transactions from text")
        return statement

    def _parse_line(
        self,
        date_token: str,
        rest: str,
        running: Decimal,
        year: int,
        period_end: str
    ) -> RawTuple:
        """Split a dated line into description, amount and balance."""
        date = parse_day_month(date_token, year, not_after=period_end)
        tokens = rest.split()

        figures = [t for t in tokens if FIGURE_TOKEN_RE.match(t)]
        if len(figures) < 2:
            raise RowParseError("expected amount and balance on dated line")

        balance = parse_statement_number(figures[-1])
        amount = parse_statement_number(figures[-2])
        if balance < running:
            amount = -amount

        words = []
        for token in tokens:
            if FIGURE_TOKEN_RE.match(token):
                break
            words.append(token)

        return RawTuple(date=date, description=" ".join(words), amount=amount, balance=balance)

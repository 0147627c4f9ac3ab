"""
Running-Balance Bank Statement Parser

Reads savings/current account statements whose table has withdrawal,
deposit and balance columns. Amount direction comes from the column a
figure sits under, or from the change in running balance when the column
is ambiguous.
"""

import logging
import re
from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum

from ..errors import RowParseError
from ..layout import detect_column_layout, rows_to_text
from ..models import ColumnLayout, ParsedStatement, PositionedFragment, RawTuple, VisualRow
from ..normalize import match_day_month, parse_day_month, parse_statement_number
from .base import (
    BALANCE_FORWARD,
    TRAILING_FIGURE_RE,
    BaseStatementParser,
    collapse,
    is_disclaimer,
    is_page_furniture,
    number_fragments,
)
from .text_fallback import LegacyTextParser

logger = logging.getLogger(__name__)

LEADING_DATE_RE = re.compile(r"^\d{2}\s+[A-Za-z]{3}\s*")
CLOSING_SUMMARY_RE = re.compile(r"Balance\s+SGD\s*\n\s*([\d,]+\.\d{2})")


class ScanState(Enum):
    """States of the row scanner."""
    EXPECTING_DATE = "expecting_date"
    COLLECTING_CONTINUATION = "collecting_continuation"
    DONE = "done"


@dataclass
class PendingTransaction:
    """A dated row waiting for its continuation lines."""

    date: str
    description: str
    amount: Decimal
    balance: Decimal
    continuations: list[str] = field(default_factory=list)


@dataclass
class ColumnAssignment:
    """Figures of one row split into amount and balance."""

    amount: Decimal | None = None
    amount_column: str | None = None
    balance: Decimal | None = None


def assign_columns(figures: list[PositionedFragment], layout: ColumnLayout) -> ColumnAssignment:
    """Classify a row's figures by their nearest column anchor.

    A figure within the layout threshold of an anchor claims that column;
    when two figures claim the same column the closer one wins, and on an
    exact tie the rightmost one. Unclaimed figures fall back to position:
    the rightmost is the balance and the last remaining one the amount.

    Args:
        figures: Number fragments of the row, left to right
        layout: Column anchors of the statement

    Returns:
        ColumnAssignment
    """
    slots: dict[str, tuple[PositionedFragment, float]] = {}
    unassigned: list[PositionedFragment] = []

    for figure in figures:
        column, distance = layout.nearest(figure.x)
        if distance >= layout.threshold:
            unassigned.append(figure)
            continue

        current = slots.get(column)
        if current is None:
            slots[column] = (figure, distance)
        elif distance < current[1] or (distance == current[1] and figure.x > current[0].x):
            unassigned.append(current[0])
            slots[column] = (figure, distance)
        else:
            unassigned.append(figure)

    unassigned.sort(key=lambda f: f.x)
    result = ColumnAssignment()

    if "balance" in slots:
        result.balance = parse_statement_number(slots["balance"][0].text)
    elif unassigned:
        result.balance = parse_statement_number(unassigned.pop().text)

    for column in ("withdrawal", "deposit"):
        if column in slots:
            value = parse_statement_number(slots[column][0].text)
            if value != 0:
                result.amount = value
                result.amount_column = column
                return result

    if unassigned:
        result.amount = parse_statement_number(unassigned[-1].text)

    return result


class SingleBalanceStatementParser(BaseStatementParser):
    """State-machine parser for statements with one running balance."""

    NAME = "single_balance"
    SECTION_START = ("Account Transaction Details", "Description")
    SECTION_END = ("End of Transaction Details",)
    SECTION_END_FALLBACK = ("Total",)

    def parse(self, rows: list[VisualRow], full_text: str | None = None) -> ParsedStatement:
        """Parse a running-balance statement.

        Falls back to text-only parsing when no rows are available.
        """
        if not rows:
            return self._text_parser().parse([], full_text or "")

        full_text = full_text or rows_to_text(rows)
        period_start, period_end = self._extract_period(full_text)
        self._section_bounds(full_text)

        statement = ParsedStatement(
            period_start=period_start,
            period_end=period_end,
            currency=self.currency,
            account_number=self._extract_account_number(full_text),
        )

        layout = detect_column_layout(rows, self.settings)
        if layout.warning is not None:
            statement.warnings.append(str(layout.warning))

        scanner = BankStatementScanner(self, layout, statement)
        scanner.run(self._bound_rows(rows))

        if statement.closing_balance == 0:
            summary = CLOSING_SUMMARY_RE.search(full_text)
            if summary:
                try:
                    statement.closing_balance = parse_statement_number(summary.group(1))
                except RowParseError as e:
                    statement.errors.append(f"Closing balance: {e}")

        logger.info(
            f"{self.NAME}: parsed {statement.transaction_count} transactions "
            f"({len(statement.errors)} row errors)"
        )
        return statement

    def _text_parser(self) -> LegacyTextParser:
        return LegacyTextParser(self.settings, profile=self)


class BankStatementScanner:
    """Walks bounded statement rows, folding continuation lines.

    EXPECTING_DATE looks for a dated row and opens a pending transaction;
    COLLECTING_CONTINUATION appends description lines until a stop
    condition, emits the pending transaction and hands the stopping row
    back to EXPECTING_DATE; DONE is reached at the section end.
    """

    def __init__(self, parser: SingleBalanceStatementParser, layout: ColumnLayout, statement: ParsedStatement):
        self.parser = parser
        self.layout = layout
        self.statement = statement
        self.year = int(statement.period_end[:4])
        self.state = ScanState.EXPECTING_DATE
        self.pending: PendingTransaction | None = None
        self.running_balance = Decimal("0")
        self._opening_seen = False

    def run(self, rows: list[VisualRow]) -> ParsedStatement:
        for row in rows:
            if self.state is ScanState.DONE:
                break

            text = collapse(row.text)
            if not text:
                continue

            if self.state is ScanState.COLLECTING_CONTINUATION:
                if self._ends_continuation(text):
                    self._emit()
                elif is_page_furniture(text) or len(text) < 3:
                    continue
                else:
                    logger.debug(f"Folding continuation: {text}")
                    self.pending.continuations.append(text)
                    continue

            self._expect_date(row, text)

        self._emit()
        self.state = ScanState.DONE
        return self.statement

    def _ends_continuation(self, text: str) -> bool:
        return (
            match_day_month(text) is not None
            or BALANCE_FORWARD in text
            or self.parser._is_section_end(text)
            or is_disclaimer(text)
            or TRAILING_FIGURE_RE.search(text) is not None
        )

    def _expect_date(self, row: VisualRow, text: str) -> None:
        if self.parser._is_section_end(text):
            self.state = ScanState.DONE
            return

        if BALANCE_FORWARD in text:
            if not self._opening_seen:
                try:
                    opening = self.parser._read_balance_forward(row)
                except RowParseError as e:
                    self.statement.errors.append(f"{BALANCE_FORWARD}: {e}")
                    return
                if opening is not None:
                    self.statement.opening_balance = opening
                    self.running_balance = opening
                    self._opening_seen = True
            return

        date_token = match_day_month(text)
        if date_token is None:
            if TRAILING_FIGURE_RE.search(text) and not is_page_furniture(text):
                self.statement.errors.append(f"Undated row with figures skipped: {text}")
            else:
                logger.debug(f"Skipping row: {text}")
            return

        try:
            self.pending = self._open_transaction(row, date_token)
        except RowParseError as e:
            self.statement.errors.append(f"{date_token}: {e}")
            self.pending = None

        if self.pending is not None:
            self.state = ScanState.COLLECTING_CONTINUATION

    def _open_transaction(self, row: VisualRow, date_token: str) -> PendingTransaction:
        date = parse_day_month(date_token, self.year, not_after=self.statement.period_end)
        figures = number_fragments(row)
        if not figures:
            raise RowParseError("no amount on dated row")

        assignment = assign_columns(figures, self.layout)
        if assignment.amount is None or assignment.amount == 0:
            raise RowParseError("no transaction amount")

        amount = self._signed_amount(assignment)

        balance = assignment.balance
        if balance is None:
            balance = self.running_balance + amount
        self.running_balance = balance

        first_figure_x = figures[0].x
        words = [
            f.text.strip() for f in row.fragments
            if f.x < first_figure_x and f.text.strip()
        ]
        description = collapse(LEADING_DATE_RE.sub("", " ".join(words), count=1))

        return PendingTransaction(date=date, description=description, amount=amount, balance=balance)

    def _signed_amount(self, assignment: ColumnAssignment) -> Decimal:
        """Direction from a detected column, else from the running balance.

        With fallback anchors a row carrying a balance is signed by the
        balance delta. A detected column match is kept unless the balance
        moved exactly the other way.
        """
        amount = abs(assignment.amount)
        balance = assignment.balance
        column = assignment.amount_column if self.layout.detected else None

        if column is None:
            if balance is None:
                if assignment.amount_column is None:
                    raise RowParseError("cannot determine transaction direction")
                return -amount if assignment.amount_column == "withdrawal" else amount
            return -amount if balance < self.running_balance else amount

        signed = -amount if column == "withdrawal" else amount
        if (
            balance is not None
            and self.running_balance + signed != balance
            and self.running_balance - signed == balance
        ):
            logger.warning(
                f"{column} column disagrees with balance change to {balance}; signing by balance"
            )
            signed = -signed
        return signed

    def _emit(self) -> None:
        pending = self.pending
        if pending is None:
            return

        parts = [pending.description] + pending.continuations
        description = self.parser.settings.description_separator.join(p for p in parts if p)

        self.statement.transactions.append(RawTuple(
            date=pending.date,
            description=description.strip(),
            amount=pending.amount,
            balance=pending.balance,
        ))
        self.statement.closing_balance = pending.balance
        self.pending = None
        self.state = ScanState.EXPECTING_DATE


class UOBOneParser(SingleBalanceStatementParser):
    """UOB One account statements (with FX+ sub-accounts)."""

    NAME = "uob_one"
    CURRENCY = "SGD"
    ACCOUNT_RE = re.compile(r"One Account\s+([\d-]+)")
    SECTION_START = ("Account Transaction Details",)
    SECTION_END = ("End of Transaction Details", "Currency Conversion")
    SECTION_END_FALLBACK = ()


class UOBLadyParser(SingleBalanceStatementParser):
    """UOB Lady's Savings account statements."""

    NAME = "uob_lady"
    CURRENCY = "SGD"
    SECTION_START = ("Description",)
    SECTION_END = ("End of Transaction Details",)
    SECTION_END_FALLBACK = ("Total",)

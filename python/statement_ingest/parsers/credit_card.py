"""
Multi-Card Credit Statement Parser

Reads credit card statements that list several cards, each in its own
section. Transactions carry the card name as their tag and are dated by
transaction date, not posting date. Previous-balance, payment and subtotal
lines are dropped; the bank account side already records those movements.
"""

import logging
import re
from decimal import Decimal
from enum import Enum

from ..errors import RowParseError, StatementStructureError
from ..layout import rows_to_text
from ..models import CardSection, ParsedStatement, RawTuple, VisualRow
from ..normalize import parse_day_month, parse_full_date, parse_statement_number
from .base import BaseStatementParser, collapse, rows_from_text

logger = logging.getLogger(__name__)

CARD_PATTERNS = [
    re.compile(r"^UOB ONE CARD$", re.IGNORECASE),
    re.compile(r"^LADY'S CARD$", re.IGNORECASE),
    re.compile(r"^UOB PRIVI MILES CARD$", re.IGNORECASE),
    re.compile(r"^UOB VISA SIGNATURE CARD$", re.IGNORECASE),
    re.compile(r"^UOB PRVI MILES CARD$", re.IGNORECASE),
    re.compile(r"^UOB ABSOLUTE CASHBACK CARD$", re.IGNORECASE),
    re.compile(r"^KrisFlyer UOB.*$", re.IGNORECASE),
]

SKIP_PATTERNS = [
    re.compile(r"^PREVIOUS BALANCE$", re.IGNORECASE),
    re.compile(r"^PAYMT THRU E-BANK", re.IGNORECASE),
    re.compile(r"^PAYMENT.*RECEIVED", re.IGNORECASE),
    re.compile(r"^CREDIT ADJUSTMENT", re.IGNORECASE),
    re.compile(r"^SUB TOTAL$", re.IGNORECASE),
    re.compile(r"^TOTAL BALANCE FOR", re.IGNORECASE),
]

# Card statement letterhead and legal notes only; merchant names often
# carry a location such as RAFFLES PLACE.
FOOTER_PATTERNS = [
    re.compile(r"United Overseas Bank"),
    re.compile(r"请注意"),
    re.compile(r"Please note that you are bound"),
    re.compile(r"\bPage \d+ of \d+\b", re.IGNORECASE),
]

STATEMENT_DATE_RE = re.compile(r"Statement Date\s+(\d{1,2}\s+\w{3}\s+\d{4})", re.IGNORECASE)
CARD_NUMBER_RE = re.compile(r"^(\d{4}-\d{4}-\d{4}-\d{4})\s*(.*)$")
FOREIGN_AMOUNT_RE = re.compile(r"^([A-Z]{3})\s+([\d,]+\.\d{2})$")
TRANSACTION_RE = re.compile(
    r"^(\d{2}\s+\w{3})\s+(\d{2}\s+\w{3})\s+(.+?)\s+([\d,]+\.\d{2})(\s+CR)?$"
)
DATE_FRAGMENT_RE = re.compile(r"^\d{2}\s+\w{3}$")
AMOUNT_FRAGMENT_RE = re.compile(r"^[\d,]+\.\d{2}$")
LEADING_DATE_RE = re.compile(r"^\d{2}\s+\w{3}")


class CardScanState(Enum):
    """States of the credit statement scanner."""
    SEEKING_CARD_HEADER = "seeking_card_header"
    CARD_FOUND = "card_found"
    SEEKING_TRANSACTION = "seeking_transaction"


def detect_card_header(text: str) -> str | None:
    trimmed = collapse(text)
    for pattern in CARD_PATTERNS:
        if pattern.match(trimmed):
            return trimmed
    return None


def should_skip_line(text: str) -> bool:
    trimmed = collapse(text)
    if any(pattern.search(trimmed) for pattern in SKIP_PATTERNS):
        return True
    return any(pattern.search(trimmed) for pattern in FOOTER_PATTERNS)


class CreditCardStatementParser(BaseStatementParser):
    """Parser for statements covering several credit cards."""

    NAME = "credit_card"

    def parse(self, rows: list[VisualRow], full_text: str | None = None) -> ParsedStatement:
        """Parse a multi-card statement.

        Without rows the text is split into lines and only the text pass runs.

        Raises:
            StatementStructureError: If the statement date or every card section is missing
        """
        if not rows:
            rows = rows_from_text(full_text or "")
        full_text = full_text or rows_to_text(rows)

        match = STATEMENT_DATE_RE.search(full_text)
        if not match:
            raise StatementStructureError("statement date")
        statement_date = parse_full_date(match.group(1))

        statement = ParsedStatement(
            period_start=statement_date,
            period_end=statement_date,
            currency=self.currency,
        )

        transactions = self._scan(rows, statement)
        if not statement.cards:
            raise StatementStructureError("card section")

        statement.transactions = self._dedupe(transactions)
        logger.info(
            f"{self.NAME}: parsed {statement.transaction_count} transactions "
            f"across {len(statement.cards)} cards"
        )
        return statement

    def _scan(self, rows: list[VisualRow], statement: ParsedStatement) -> list[RawTuple]:
        year = int(statement.period_end[:4])
        transactions: list[RawTuple] = []
        state = CardScanState.SEEKING_CARD_HEADER
        card: CardSection | None = None

        for row in rows:
            text = collapse(row.text)
            if not text:
                continue

            card_name = detect_card_header(text)
            if card_name:
                card = CardSection(card_name=card_name)
                statement.cards.append(card)
                state = CardScanState.CARD_FOUND
                continue

            if state is CardScanState.SEEKING_CARD_HEADER:
                continue

            if state is CardScanState.CARD_FOUND:
                state = CardScanState.SEEKING_TRANSACTION
                number = CARD_NUMBER_RE.match(text)
                if number:
                    card.card_number = number.group(1)
                    card.card_holder = number.group(2).strip()
                    continue

            if should_skip_line(text):
                continue

            foreign = FOREIGN_AMOUNT_RE.match(text)
            if foreign:
                if transactions:
                    transactions[-1].description += f" ({foreign.group(1)} {foreign.group(2)})"
                continue

            if text.startswith("Ref No."):
                continue

            try:
                transaction = (
                    self._match_text(text, card.card_name, year, statement.period_end)
                    or self._match_fragments(row, card.card_name, year, statement.period_end)
                )
            except RowParseError as e:
                statement.errors.append(f"{text}: {e}")
                continue

            if transaction:
                transactions.append(transaction)

        return transactions

    def _match_text(self, text: str, card_name: str, year: int, not_after: str) -> RawTuple | None:
        """Text-join pass: the whole row as postDate, transDate, description, amount."""
        match = TRANSACTION_RE.match(text)
        if not match:
            return None

        description = match.group(3).strip()
        if should_skip_line(description):
            return None

        amount = parse_statement_number(match.group(4))
        is_credit = match.group(5) is not None

        return RawTuple(
            date=parse_day_month(match.group(2), year, not_after=not_after),
            description=description,
            amount=abs(amount) if is_credit else -abs(amount),
            balance=Decimal("0"),
            tag=card_name,
        )

    def _match_fragments(self, row: VisualRow, card_name: str, year: int, not_after: str) -> RawTuple | None:
        """Positional pass over individual fragments of a dated row."""
        if not LEADING_DATE_RE.match(collapse(row.text)):
            return None

        stripped = [f.text.strip() for f in row.fragments]
        amounts = [s for s in stripped if AMOUNT_FRAGMENT_RE.match(s)]
        dates = [s for s in stripped if DATE_FRAGMENT_RE.match(s)]
        if not amounts or not dates:
            return None

        description = " ".join(
            s for s in stripped
            if s and s != "CR" and not AMOUNT_FRAGMENT_RE.match(s) and not DATE_FRAGMENT_RE.match(s)
        ).strip()
        if not description or should_skip_line(description):
            return None

        amount = parse_statement_number(amounts[-1])
        is_credit = "CR" in stripped
        trans_date = dates[1] if len(dates) >= 2 else dates[0]

        return RawTuple(
            date=parse_day_month(trans_date, year, not_after=not_after),
            description=description,
            amount=abs(amount) if is_credit else -abs(amount),
            balance=Decimal("0"),
            tag=card_name,
        )

    @staticmethod
    def _dedupe(transactions: list[RawTuple]) -> list[RawTuple]:
        seen: set[tuple] = set()
        unique = []
        for transaction in transactions:
            key = (transaction.date, transaction.description, transaction.amount)
            if key in seen:
                continue
            seen.add(key)
            unique.append(transaction)
        return unique


class UOBCreditCardParser(CreditCardStatementParser):
    """UOB credit card statements."""

    NAME = "uob_credit_card"
    CURRENCY = "SGD"

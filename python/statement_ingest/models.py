"""
Statement Ingestion Models

Positional text, intermediate tuples, and canonical ledger records.
"""

from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum

from .errors import ColumnDetectionWarning


class TransactionType(Enum):
    """Semantic type of a ledger transaction."""
    EXPENSE = "expense"
    INCOME = "income"
    INVESTMENT = "investment"
    TRANSFER = "transfer"


class AccountType(Enum):
    """Kind of account a statement belongs to."""
    BANK = "bank"
    HYSA = "hysa"
    CREDIT = "credit"
    BROKERAGE = "brokerage"
    RETIREMENT = "retirement"


@dataclass(frozen=True)
class PositionedFragment:
    """One run of text on a PDF page with its origin coordinates."""

    text: str
    x: float
    y: float


@dataclass
class VisualRow:
    """Fragments sharing a vertical position, ordered left to right."""

    y: float
    fragments: list[PositionedFragment] = field(default_factory=list)
    page: int = 0

    @property
    def text(self) -> str:
        # Double space keeps column gaps visible in the joined view
        return "  ".join(f.text for f in self.fragments)


@dataclass(frozen=True)
class ColumnLayout:
    """Horizontal anchors of the numeric columns of a statement table."""

    withdrawal_x: float
    deposit_x: float
    balance_x: float
    threshold: float = 80.0
    detected: bool = True
    warning: ColumnDetectionWarning | None = field(default=None, compare=False)

    def anchors(self) -> dict[str, float]:
        return {
            "withdrawal": self.withdrawal_x,
            "deposit": self.deposit_x,
            "balance": self.balance_x,
        }

    def nearest(self, x: float) -> tuple[str, float]:
        """Return the closest column name and its distance to ``x``."""
        name, anchor = min(self.anchors().items(), key=lambda item: abs(x - item[1]))
        return name, abs(x - anchor)


@dataclass
class RawTuple:
    """An unclassified transaction as read from a statement or CSV export."""

    date: str  # YYYY-MM-DD
    description: str
    amount: Decimal  # debit negative, credit positive
    balance: Decimal = Decimal("0")
    tag: str | None = None

    def to_dict(self) -> dict:
        data = {
            "date": self.date,
            "description": self.description,
            "amount": float(self.amount),
            "balance": float(self.balance),
        }
        if self.tag:
            data["tag"] = self.tag
        return data


@dataclass
class CardSection:
    """A card block inside a multi-card credit statement."""

    card_name: str
    card_number: str = ""
    card_holder: str = ""


@dataclass
class ParsedStatement:
    """Result of running a statement parser over one document."""

    opening_balance: Decimal = Decimal("0")
    closing_balance: Decimal = Decimal("0")
    period_start: str = ""
    period_end: str = ""
    currency: str = "SGD"
    account_number: str = ""
    transactions: list[RawTuple] = field(default_factory=list)
    cards: list[CardSection] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    @property
    def transaction_count(self) -> int:
        return len(self.transactions)


@dataclass
class Account:
    """Account descriptor used to pick a statement parser."""

    id: str
    institution: str
    product_name: str
    type: AccountType = AccountType.BANK


@dataclass(frozen=True)
class Transaction:
    """Canonical, classified, sign-normalized ledger record."""

    id: str
    date: str
    account_id: str
    type: TransactionType
    category: str
    amount: Decimal
    description: str
    tag: str | None = None

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "date": self.date,
            "account_id": self.account_id,
            "type": self.type.value,
            "category": self.category,
            "amount": float(self.amount),
            "description": self.description,
            "tag": self.tag,
        }


@dataclass(frozen=True)
class Snapshot:
    """Account balance observed at the end of a statement period."""

    date: str
    account_id: str
    balance: Decimal

    def to_dict(self) -> dict:
        return {
            "date": self.date,
            "account_id": self.account_id,
            "balance": float(self.balance),
        }

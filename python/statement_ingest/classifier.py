"""
Transaction Classifier Module

Assigns a semantic type and a spending category to raw tuples using keyword
and regex rules, then converts them into canonical ledger transactions.
"""

import logging
import re
from dataclasses import dataclass, field
from decimal import Decimal
from pathlib import Path

import yaml

from .config import default_config_dir
from .models import Account, AccountType, RawTuple, Transaction, TransactionType

logger = logging.getLogger(__name__)

DEFAULT_CATEGORY = "Other"

DEFAULT_INCOME_KEYWORDS = [
    "salary", "payroll", "wages", "bonus", "commission", "freelance", "consulting",
]

DEFAULT_INVESTMENT_KEYWORDS = [
    "interest", "dividend", "coupon", "distribution", "yield", "capital gain",
]

DEFAULT_TRANSFER_PATTERNS = [
    # Credit card payments
    r"credit card",
    r"card payment",
    r"pay(ment)? to.*card",
    # Internal transfers
    r"transfer to",
    r"transfer from",
    r"internal transfer",
    # Brokerage funding
    r"to.*brokerage",
    r"from.*brokerage",
]

DEFAULT_CATEGORIES = [
    ("restaurant|cafe|coffee|starbucks|mcdonald|grab food|foodpanda|deliveroo", "Food & Dining"),
    ("supermarket|fairprice|cold storage|sheng siong|ntuc", "Groceries"),
    (r"grab|gojek|comfort|taxi|uber|\bmrt\b|\bbus\b|ez-?link", "Transport"),
    (r"petrol|\bgas\b|shell|esso|caltex|parking", "Transport"),
    ("amazon|lazada|shopee|qoo10|taobao", "Online Shopping"),
    ("uniqlo|h&m|zara|cotton on", "Clothing"),
    (r"singtel|starhub|\bm1\b|giga|sim only", "Phone"),
    ("sp services|electricity|water|utility", "Utilities"),
    ("netflix|spotify|youtube|disney|hbo|subscription", "Subscriptions"),
    (r"\brent(al)?\b|mortgage|\bhdb\b|condo|property", "Housing"),
    (r"insurance|prudential|\baia\b|great eastern|ntuc income", "Insurance"),
    ("clinic|hospital|pharmacy|guardian|watsons|doctor|medical", "Healthcare"),
    ("gym|fitness|activsg|anytime fitness", "Fitness"),
    (r"salary|payroll|\bcpf\b|bonus", "Salary"),
    ("interest|dividend", "Investment Income"),
    ("refund|cashback", "Refund"),
]


@dataclass
class CategoryRule:
    """A regex mapped to a category label."""

    pattern: re.Pattern
    category: str


@dataclass
class ClassificationRules:
    """Ordered rule set used by the classifier."""

    income_keywords: list[str] = field(default_factory=list)
    investment_keywords: list[str] = field(default_factory=list)
    transfer_patterns: list[re.Pattern] = field(default_factory=list)
    categories: list[CategoryRule] = field(default_factory=list)

    @classmethod
    def defaults(cls) -> "ClassificationRules":
        return cls.from_dict({})

    @classmethod
    def from_dict(cls, data: dict) -> "ClassificationRules":
        """Build rules from a parsed YAML document; missing keys use defaults."""
        categories = data.get("categories")
        if categories is None:
            category_pairs = DEFAULT_CATEGORIES
        else:
            category_pairs = [(c["pattern"], c["category"]) for c in categories]

        return cls(
            income_keywords=[k.lower() for k in data.get("income_keywords", DEFAULT_INCOME_KEYWORDS)],
            investment_keywords=[k.lower() for k in data.get("investment_keywords", DEFAULT_INVESTMENT_KEYWORDS)],
            transfer_patterns=[
                re.compile(p, re.IGNORECASE)
                for p in data.get("transfer_patterns", DEFAULT_TRANSFER_PATTERNS)
            ],
            categories=[
                CategoryRule(pattern=re.compile(p, re.IGNORECASE), category=label)
                for p, label in category_pairs
            ],
        )


class TransactionClassifier:
    """Deterministic rule-based classifier."""

    RULES_FILE = "classification_rules.yaml"

    def __init__(
        self,
        config_dir: Path | str | None = None,
        rules: ClassificationRules | None = None
    ):
        """Initialize the classifier.

        Args:
            config_dir: Directory holding ``classification_rules.yaml``
            rules: Explicit rule set; skips loading from disk
        """
        self.config_dir = Path(config_dir) if config_dir else default_config_dir()
        self.rules = rules or self._load_rules()

    def _load_rules(self) -> ClassificationRules:
        rules_file = self.config_dir / self.RULES_FILE
        if not rules_file.exists():
            logger.debug(f"No rules file at {rules_file}, using built-in rules")
            return ClassificationRules.defaults()

        with open(rules_file) as f:
            data = yaml.safe_load(f) or {}

        rules = ClassificationRules.from_dict(data)
        logger.debug(f"Loaded {len(rules.categories)} category rules from {rules_file}")
        return rules

    def classify(
        self,
        description: str,
        amount: Decimal,
        source_account_type: AccountType | None = None
    ) -> TransactionType:
        """Decide the semantic type of a transaction.

        Transfer patterns apply only to bank accounts, so card payments and
        brokerage funding are counted once, on the bank side.

        Args:
            description: Transaction description
            amount: Signed raw amount
            source_account_type: Type of the account the statement belongs to

        Returns:
            TransactionType
        """
        if source_account_type is AccountType.BANK:
            if any(p.search(description) for p in self.rules.transfer_patterns):
                return TransactionType.TRANSFER

        lower_desc = description.lower()

        if any(k in lower_desc for k in self.rules.income_keywords):
            return TransactionType.INCOME

        if any(k in lower_desc for k in self.rules.investment_keywords):
            return TransactionType.INVESTMENT

        if amount > 0:
            return TransactionType.INCOME
        return TransactionType.EXPENSE

    def categorize(self, description: str) -> str:
        """Return the label of the first matching category rule."""
        for rule in self.rules.categories:
            if rule.pattern.search(description):
                return rule.category
        return DEFAULT_CATEGORY

    @staticmethod
    def normalize(transaction_type: TransactionType, amount: Decimal) -> Decimal:
        """Force the sign convention: expenses negative, everything else positive."""
        magnitude = abs(amount)
        if transaction_type is TransactionType.EXPENSE:
            return -magnitude
        return magnitude

    def to_transaction(self, raw: RawTuple, account: Account, fingerprint: str) -> Transaction:
        """Classify a raw tuple into a canonical transaction.

        Args:
            raw: Parsed tuple
            account: Account the tuple was read from
            fingerprint: Dedup fingerprint of the tuple

        Returns:
            Transaction with id ``{account.id}-{fingerprint}``
        """
        transaction_type = self.classify(raw.description, raw.amount, account.type)

        return Transaction(
            id=f"{account.id}-{fingerprint}",
            date=raw.date,
            account_id=account.id,
            type=transaction_type,
            category=self.categorize(raw.description),
            amount=self.normalize(transaction_type, raw.amount),
            description=raw.description,
            tag=raw.tag,
        )

"""
Transaction Classifier Tests

Tests for type classification, categorization, sign normalization and
rule loading.
"""

import pytest
from decimal import Decimal
from pathlib import Path

import sys
sys.path.insert(0, str(Path(__file__).parent.parent / "python"))

from statement_ingest.classifier import ClassificationRules, TransactionClassifier
from statement_ingest.models import Account, AccountType, RawTuple, TransactionType


@pytest.fixture
def classifier(tmp_path):
    """Classifier using the built-in rules."""
    return TransactionClassifier(config_dir=tmp_path)


class TestClassify:
    """Tests for semantic type classification."""

    def test_transfer_from_bank(self, classifier):
        result = classifier.classify("PAYMENT TO CREDIT CARD", Decimal("-500.00"), AccountType.BANK)

        assert result is TransactionType.TRANSFER

    def test_transfer_patterns_ignored_for_cards(self, classifier):
        result = classifier.classify("PAYMENT TO CREDIT CARD", Decimal("-500.00"), AccountType.CREDIT)

        assert result is TransactionType.EXPENSE

    def test_brokerage_funding(self, classifier):
        result = classifier.classify("FAST TRANSFER TO IBKR BROKERAGE", Decimal("-1000.00"), AccountType.BANK)

        assert result is TransactionType.TRANSFER

    def test_income_keyword(self, classifier):
        assert classifier.classify("SALARY JAN 2026", Decimal("5000.00"), AccountType.BANK) is TransactionType.INCOME

    def test_investment_keyword(self, classifier):
        result = classifier.classify("Interest Credit", Decimal("1.25"), AccountType.BANK)

        assert result is TransactionType.INVESTMENT

    def test_income_keyword_beats_investment(self, classifier):
        result = classifier.classify("BONUS INTEREST", Decimal("20.00"), AccountType.BANK)

        assert result is TransactionType.INCOME

    def test_default_by_sign(self, classifier):
        assert classifier.classify("REFUND SHOPEE", Decimal("12.50")) is TransactionType.INCOME
        assert classifier.classify("NETS PURCHASE", Decimal("-45.60")) is TransactionType.EXPENSE

    def test_deterministic(self, classifier):
        results = {classifier.classify("GRAB TRIP", Decimal("-12.00"), AccountType.BANK) for _ in range(5)}

        assert results == {TransactionType.EXPENSE}


class TestCategorize:
    """Tests for category suggestion."""

    @pytest.mark.parametrize("description,category", [
        ("GRAB FOOD ORDER", "Food & Dining"),
        ("GRAB TRIP 1234", "Transport"),
        ("NTUC FAIRPRICE", "Groceries"),
        ("SHELL STATION", "Transport"),
        ("SHOPEE SINGAPORE", "Online Shopping"),
        ("M1 LIMITED", "Phone"),
        ("SP SERVICES", "Utilities"),
        ("NETFLIX.COM", "Subscriptions"),
        ("HDB RENT", "Housing"),
        ("AIA SINGAPORE", "Insurance"),
        ("GUARDIAN PHARMACY", "Healthcare"),
        ("SALARY GIRO", "Salary"),
        ("CASHBACK REWARD", "Refund"),
        ("UNKNOWN MERCHANT", "Other"),
    ])
    def test_categories(self, classifier, description, category):
        assert classifier.categorize(description) == category

    def test_short_tokens_need_word_boundaries(self, classifier):
        """'bus' inside 'business' and 'rent' inside 'parent' are not matches."""
        assert classifier.categorize("BUSINESS LUNCH") == "Other"
        assert classifier.categorize("PARENTS GIFT") == "Other"


class TestNormalize:
    """Tests for sign normalization."""

    def test_expense_forced_negative(self):
        assert TransactionClassifier.normalize(TransactionType.EXPENSE, Decimal("10.00")) == Decimal("-10.00")

    @pytest.mark.parametrize("transaction_type", [
        TransactionType.INCOME, TransactionType.INVESTMENT, TransactionType.TRANSFER,
    ])
    def test_other_types_forced_positive(self, transaction_type):
        assert TransactionClassifier.normalize(transaction_type, Decimal("-10.00")) == Decimal("10.00")


class TestToTransaction:
    """Tests for canonical transaction creation."""

    def test_refund_in_parentheses(self, classifier):
        """A parenthesized CSV refund stays an expense-side record until reclassified."""
        account = Account(id="acc-1", institution="DBS", product_name="Multiplier")
        raw = RawTuple(date="2026-02-01", description="Refund", amount=Decimal("-50.00"))

        transaction = classifier.to_transaction(raw, account, "abc123")

        assert transaction.id == "acc-1-abc123"
        assert transaction.type is TransactionType.EXPENSE
        assert transaction.category == "Refund"
        assert transaction.amount == Decimal("-50.00")

    def test_card_tag_carried(self, classifier):
        account = Account(id="card", institution="UOB", product_name="UOB Credit Card", type=AccountType.CREDIT)
        raw = RawTuple(date="2025-11-30", description="GIANT-KIM KEAT", amount=Decimal("-3.85"), tag="UOB ONE CARD")

        transaction = classifier.to_transaction(raw, account, "ff00")

        assert transaction.tag == "UOB ONE CARD"
        assert transaction.account_id == "card"
        assert transaction.to_dict()["type"] == "expense"


class TestRuleLoading:
    """Tests for YAML rule loading."""

    def test_repository_rules_match_defaults(self, config_dir):
        loaded = TransactionClassifier(config_dir=config_dir).rules
        defaults = ClassificationRules.defaults()

        assert loaded.income_keywords == defaults.income_keywords
        assert loaded.investment_keywords == defaults.investment_keywords
        assert [p.pattern for p in loaded.transfer_patterns] == [p.pattern for p in defaults.transfer_patterns]
        assert [(r.pattern.pattern, r.category) for r in loaded.categories] == [
            (r.pattern.pattern, r.category) for r in defaults.categories
        ]

    def test_custom_rules(self, tmp_path):
        (tmp_path / "classification_rules.yaml").write_text(
            "categories:\n"
            "  - pattern: 'kopi'\n"
            "    category: Coffee\n"
        )

        classifier = TransactionClassifier(config_dir=tmp_path)

        assert classifier.categorize("KOPI O KOSONG") == "Coffee"
        assert classifier.categorize("GRAB TRIP") == "Other"
        assert classifier.classify("SALARY", Decimal("1.00")) is TransactionType.INCOME

"""
Big Expense Thresholds

Flags expenses that are large relative to the month's income.
"""

import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Iterable

from .config import IngestSettings
from .models import Transaction, TransactionType
from .normalize import quantize

logger = logging.getLogger(__name__)


@dataclass
class BigExpenseEvent:
    """Event handed to a notification layer for one large expense."""

    transaction_id: str
    date: str
    category: str
    amount: Decimal
    threshold: Decimal
    description: str

    def to_dict(self) -> dict:
        return {
            "transaction_id": self.transaction_id,
            "date": self.date,
            "category": self.category,
            "amount": float(self.amount),
            "threshold": float(self.threshold),
            "description": self.description,
        }


def calculate_threshold(monthly_income: Decimal, settings: IngestSettings | None = None) -> Decimal:
    """Big-expense threshold: a share of monthly income, or a fixed fallback.

    Args:
        monthly_income: Income for the month
        settings: Ingestion settings supplying ratio and fallback

    Returns:
        Threshold amount
    """
    settings = settings or IngestSettings()
    if monthly_income <= 0:
        return quantize(Decimal(str(settings.big_expense_fallback)))
    return quantize(Decimal(monthly_income) * Decimal(str(settings.big_expense_ratio)))


def is_big_expense(transaction: Transaction, threshold: Decimal) -> bool:
    return transaction.type is TransactionType.EXPENSE and abs(transaction.amount) >= threshold


def get_big_expenses(transactions: Iterable[Transaction], threshold: Decimal) -> list[Transaction]:
    return [t for t in transactions if is_big_expense(t, threshold)]


def calculate_monthly_income(transactions: Iterable[Transaction], month: str) -> Decimal:
    """Sum income for a month.

    Args:
        transactions: Classified transactions
        month: Month as ``YYYY-MM``

    Returns:
        Total income magnitude
    """
    total = sum(
        (abs(t.amount) for t in transactions
         if t.type is TransactionType.INCOME and t.date.startswith(month)),
        Decimal("0"),
    )
    return quantize(total)


def big_expense_events(
    transactions: list[Transaction],
    month: str,
    settings: IngestSettings | None = None
) -> list[BigExpenseEvent]:
    """Build notification events for the month's big expenses."""
    threshold = calculate_threshold(calculate_monthly_income(transactions, month), settings)
    events = [
        BigExpenseEvent(
            transaction_id=t.id,
            date=t.date,
            category=t.category,
            amount=t.amount,
            threshold=threshold,
            description=t.description,
        )
        for t in get_big_expenses(transactions, threshold)
        if t.date.startswith(month)
    ]

    if events:
        logger.info(f"{len(events)} big expenses in {month} (threshold {threshold})")
    return events

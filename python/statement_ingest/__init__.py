"""
Statement Ingestion Module

Turns PDF layout fragments and CSV exports into a deduplicated, classified
transaction ledger.
"""

from .models import (
    Account,
    AccountType,
    CardSection,
    ColumnLayout,
    ParsedStatement,
    PositionedFragment,
    RawTuple,
    Snapshot,
    Transaction,
    TransactionType,
    VisualRow,
)
from .errors import ColumnDetectionWarning, RowParseError, StatementStructureError
from .config import IngestSettings, load_settings
from .layout import detect_column_layout, group_fragments, stitch_pages
from .csv_parser import CSVParseResult, GenericCSVParser
from .classifier import ClassificationRules, TransactionClassifier
from .fingerprint import DedupeResult, dedupe, fingerprint
from .parsers import get_parser
from .ingestion import ImportResult, StatementImporter
from .thresholds import (
    BigExpenseEvent,
    calculate_monthly_income,
    calculate_threshold,
    get_big_expenses,
    is_big_expense,
)

__all__ = [
    # Models
    "Account",
    "AccountType",
    "CardSection",
    "ColumnLayout",
    "ParsedStatement",
    "PositionedFragment",
    "RawTuple",
    "Snapshot",
    "Transaction",
    "TransactionType",
    "VisualRow",
    # Errors
    "ColumnDetectionWarning",
    "RowParseError",
    "StatementStructureError",
    # Configuration
    "IngestSettings",
    "load_settings",
    # Layout
    "detect_column_layout",
    "group_fragments",
    "stitch_pages",
    # CSV Parsing
    "CSVParseResult",
    "GenericCSVParser",
    # Classification
    "ClassificationRules",
    "TransactionClassifier",
    # Deduplication
    "DedupeResult",
    "dedupe",
    "fingerprint",
    # Ingestion
    "get_parser",
    "ImportResult",
    "StatementImporter",
    # Thresholds
    "BigExpenseEvent",
    "calculate_monthly_income",
    "calculate_threshold",
    "get_big_expenses",
    "is_big_expense",
]

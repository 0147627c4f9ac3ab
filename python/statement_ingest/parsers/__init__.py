"""
Institution-specific statement parsers.
"""

from .base import BaseStatementParser, is_disclaimer, is_page_furniture
from .bank_statement import (
    BankStatementScanner,
    ScanState,
    SingleBalanceStatementParser,
    UOBLadyParser,
    UOBOneParser,
    assign_columns,
)
from .credit_card import CreditCardStatementParser, UOBCreditCardParser
from .registry import PARSER_REGISTRY, ParserConfig, get_parser, register_parser
from .text_fallback import LegacyTextParser

__all__ = [
    "BaseStatementParser",
    "is_disclaimer",
    "is_page_furniture",
    "BankStatementScanner",
    "ScanState",
    "SingleBalanceStatementParser",
    "UOBLadyParser",
    "UOBOneParser",
    "assign_columns",
    "CreditCardStatementParser",
    "UOBCreditCardParser",
    "LegacyTextParser",
    "PARSER_REGISTRY",
    "ParserConfig",
    "get_parser",
    "register_parser",
]

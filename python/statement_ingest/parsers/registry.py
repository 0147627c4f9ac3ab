"""
Parser Registry

Maps an account's institution and product to its statement parser.
"""

import logging
from dataclasses import dataclass

from ..config import IngestSettings
from ..models import Account
from .base import BaseStatementParser
from .bank_statement import UOBLadyParser, UOBOneParser
from .credit_card import UOBCreditCardParser

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ParserConfig:
    """Registry entry binding an account product to a parser class."""

    institution: str
    product_name: str
    parser_class: type[BaseStatementParser]


PARSER_REGISTRY: list[ParserConfig] = [
    ParserConfig("UOB", "UOB Lady's Savings", UOBLadyParser),
    ParserConfig("UOB", "UOB One (with FX+)", UOBOneParser),
    ParserConfig("UOB", "UOB Credit Card", UOBCreditCardParser),
]

DEFAULT_PARSER: type[BaseStatementParser] = UOBOneParser


def register_parser(institution: str, product_name: str, parser_class: type[BaseStatementParser]) -> None:
    """Add or replace the parser for an institution/product pair."""
    PARSER_REGISTRY[:] = [
        c for c in PARSER_REGISTRY
        if not (c.institution == institution and c.product_name == product_name)
    ]
    PARSER_REGISTRY.append(ParserConfig(institution, product_name, parser_class))


def get_parser(account: Account, settings: IngestSettings | None = None) -> BaseStatementParser:
    """Select the statement parser for an account.

    Unknown combinations fall back to the default parser with a warning.

    Args:
        account: Account descriptor
        settings: Ingestion settings passed to the parser

    Returns:
        Parser instance
    """
    for config in PARSER_REGISTRY:
        if config.institution == account.institution and config.product_name == account.product_name:
            return config.parser_class(settings)

    logger.warning(
        f"No strict parser match for {account.institution} - {account.product_name}. "
        f"Defaulting to {DEFAULT_PARSER.NAME}."
    )
    return DEFAULT_PARSER(settings)

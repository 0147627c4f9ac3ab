"""
Pytest configuration and fixtures for statement ingestion tests.
"""

import sys
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).parent.parent / "python"))

from statement_ingest.config import IngestSettings
from statement_ingest.models import Account, AccountType, PositionedFragment

# Project root directory
PROJECT_ROOT = Path(__file__).parent.parent

# Column header positions used by the sample statements
WITHDRAWAL_X = 340.0
DEPOSIT_X = 430.0
BALANCE_X = 515.0


def line(y: float, *cells: tuple[str, float]) -> list[PositionedFragment]:
    """Fragments of one printed line: ``(text, x)`` pairs at height ``y``."""
    return [PositionedFragment(text=text, x=x, y=y) for text, x in cells]


def header_line(y: float) -> list[PositionedFragment]:
    return line(
        y,
        ("Date", 40), ("Description", 90),
        ("Withdrawals", WITHDRAWAL_X), ("Deposits", DEPOSIT_X), ("Balance", BALANCE_X),
    )


@pytest.fixture
def project_root() -> Path:
    """Return the project root directory."""
    return PROJECT_ROOT


@pytest.fixture
def config_dir() -> Path:
    """Return the config directory path."""
    return PROJECT_ROOT / "config"


@pytest.fixture
def settings() -> IngestSettings:
    return IngestSettings()


@pytest.fixture
def bank_account() -> Account:
    return Account(id="uob-one", institution="UOB", product_name="UOB One (with FX+)", type=AccountType.BANK)


@pytest.fixture
def lady_account() -> Account:
    return Account(id="uob-lady", institution="UOB", product_name="UOB Lady's Savings", type=AccountType.BANK)


@pytest.fixture
def card_account() -> Account:
    return Account(id="uob-card", institution="UOB", product_name="UOB Credit Card", type=AccountType.CREDIT)


@pytest.fixture
def uob_one_pages() -> list[list[PositionedFragment]]:
    """Two-page UOB One statement with a description that spans three lines."""
    page_one = (
        line(800, ("United Overseas Bank Limited", 40))
        + line(780, ("Statement of Account", 40))
        + line(770, ("Period: 01 Jan 2026 to 31 Jan 2026", 40))
        + line(760, ("One Account 123-456-789-0", 40))
        + line(740, ("Account Transaction Details", 40))
        + header_line(720)
        + line(700, ("01 Jan", 40), ("BALANCE B/F", 90), ("1,250.00", BALANCE_X))
        + line(680, ("05 Jan", 40), ("NETS PURCHASE", 90), ("45.60", 345), ("1,204.40", BALANCE_X))
        + line(670, ("FAIRPRICE FINEST", 90))
        + line(660, ("REF 88231", 90))
        + line(640, ("10 Jan", 40), ("SALARY GIRO", 90), ("5,000.00", 432), ("6,204.40", BALANCE_X))
        + line(620, ("Page 1 of 2", 280))
    )
    page_two = (
        line(800, ("United Overseas Bank Limited", 40))
        + header_line(780)
        + line(760, ("15 Jan", 40), ("FUNDS TRANSFER", 90), ("204.40", 347), ("6,000.00", BALANCE_X))
        + line(750, ("TRANSFER TO BROKERAGE", 90))
        + line(730, ("End of Transaction Details", 40))
        + line(700, ("Please note that you are bound by the terms and conditions", 40))
    )
    return [page_one, page_two]


@pytest.fixture
def uob_one_text() -> str:
    """Plain-text rendering of a UOB One statement, without geometry."""
    return "\n".join([
        "Statement of Account",
        "Period: 01 Jan 2026 to 31 Jan 2026",
        "One Account 123-456-789-0",
        "Account Transaction Details",
        "Date Description Withdrawals Deposits Balance",
        "01 Jan BALANCE B/F 1,250.00",
        "05 Jan NETS PURCHASE 45.60 1,204.40",
        "FAIRPRICE FINEST",
        "Page 1 of 2",
        "REF 88231",
        "10 Jan SALARY GIRO 5,000.00 6,204.40",
        "End of Transaction Details",
        "Please note that you are bound by the terms and conditions",
    ])


@pytest.fixture
def credit_card_text() -> str:
    """Two-card UOB credit card statement text."""
    return "\n".join([
        "UOB Credit Card Statement",
        "Statement Date 01 DEC 2025",
        "UOB ONE CARD",
        "1234-5678-9012-3456 TAN AH KOW",
        "PREVIOUS BALANCE 1,000.00",
        "02 NOV 01 NOV PAYMT THRU E-BANK 1,000.00 CR",
        "01 DEC 30 NOV GIANT-KIM KEAT Singapore 3.85",
        "Ref No. : 12345678",
        "28 NOV 27 NOV AMAZON MARKETPLACE 20.00",
        "USD 15.00",
        "SUB TOTAL 23.85",
        "LADY'S CARD",
        "5555-6666-7777-8888 TAN AH KOW",
        "25 NOV 24 NOV REFUND SHOPEE 12.50 CR",
        "TOTAL BALANCE FOR LADY'S CARD 12.50 CR",
    ])


@pytest.fixture
def sample_csv_content() -> str:
    """Return sample CSV content for testing parsers."""
    return """Date,Description,Amount,Balance
05/01/2026,NETS PURCHASE,-45.60,1204.40
10/01/2026,SALARY GIRO,5000.00,6204.40
12/01/2026,STARBUCKS COFFEE,( 7.80 ),6196.60
"""

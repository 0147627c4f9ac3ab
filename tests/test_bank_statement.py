"""
Bank Statement Parser Tests

Tests for the running-balance state machine, column assignment,
continuation folding and the text-only fallback.
"""

import pytest
from decimal import Decimal
from pathlib import Path

import sys
sys.path.insert(0, str(Path(__file__).parent.parent / "python"))

from statement_ingest.errors import StatementStructureError
from statement_ingest.layout import COLUMN_FALLBACK_MESSAGE, stitch_pages
from statement_ingest.models import ColumnLayout, PositionedFragment
from statement_ingest.parsers.bank_statement import UOBLadyParser, UOBOneParser, assign_columns
from statement_ingest.parsers.base import is_disclaimer, is_page_furniture
from statement_ingest.parsers.text_fallback import LegacyTextParser

from conftest import BALANCE_X, header_line, line


def figures(*cells: tuple[str, float]) -> list[PositionedFragment]:
    return [PositionedFragment(text=text, x=x, y=0) for text, x in cells]


class TestAssignColumns:
    """Tests for nearest-anchor figure classification."""

    @pytest.fixture
    def layout(self):
        return ColumnLayout(withdrawal_x=300, deposit_x=400, balance_x=500, threshold=80)

    def test_withdrawal_column(self, layout):
        result = assign_columns(figures(("12.00", 305), ("88.00", 500)), layout)

        assert result.amount == Decimal("12.00")
        assert result.amount_column == "withdrawal"
        assert result.balance == Decimal("88.00")

    def test_zero_withdrawal_defers_to_deposit(self, layout):
        result = assign_columns(figures(("0.00", 300), ("15.00", 400), ("115.00", 500)), layout)

        assert result.amount == Decimal("15.00")
        assert result.amount_column == "deposit"

    def test_nothing_within_threshold(self, layout):
        """Rightmost figure is the balance, the remaining one the amount."""
        result = assign_columns(figures(("45.60", 600), ("1,204.40", 700)), layout)

        assert result.balance == Decimal("1204.40")
        assert result.amount == Decimal("45.60")
        assert result.amount_column is None

    def test_closer_figure_keeps_slot(self, layout):
        result = assign_columns(figures(("10.00", 470), ("900.00", 505)), layout)

        assert result.balance == Decimal("900.00")
        assert result.amount == Decimal("10.00")
        assert result.amount_column is None

    def test_equidistant_figures_rightmost_keeps_slot(self, layout):
        result = assign_columns(figures(("10.00", 490), ("900.00", 510)), layout)

        assert result.balance == Decimal("900.00")
        assert result.amount == Decimal("10.00")

    def test_single_figure_is_balance(self, layout):
        result = assign_columns(figures(("50.00", 700)), layout)

        assert result.balance == Decimal("50.00")
        assert result.amount is None


class TestFooterClassification:
    """Tests for page furniture and disclaimer detection."""

    @pytest.mark.parametrize("text", [
        "United Overseas Bank Limited",
        "Page 2 of 3",
        "Date Description Withdrawals Deposits Balance",
        "Co. Reg. No. 193500026Z",
    ])
    def test_page_furniture(self, text):
        assert is_page_furniture(text)
        assert not is_disclaimer(text)

    @pytest.mark.parametrize("text", [
        "Please note that you are bound by the Rules governing the operation",
        "请注意：客户须在十四天内通知本行任何错误",
        "Deposit Insurance Scheme: singapore dollar deposits",
    ])
    def test_disclaimer(self, text):
        assert is_disclaimer(text)

    def test_transaction_text_is_neither(self):
        assert not is_page_furniture("NETS PURCHASE FAIRPRICE")
        assert not is_disclaimer("NETS PURCHASE FAIRPRICE")


class TestUOBOneParser:
    """Tests for UOB One statements with positional fragments."""

    @pytest.fixture
    def parser(self, settings):
        return UOBOneParser(settings)

    @pytest.fixture
    def statement(self, parser, uob_one_pages):
        return parser.parse(stitch_pages(uob_one_pages))

    def test_period_and_account(self, statement):
        assert statement.period_start == "2026-01-01"
        assert statement.period_end == "2026-01-31"
        assert statement.account_number == "123-456-789-0"
        assert statement.currency == "SGD"

    def test_balances(self, statement):
        assert statement.opening_balance == Decimal("1250.00")
        assert statement.closing_balance == Decimal("6000.00")

    def test_transactions(self, statement):
        assert statement.transaction_count == 3
        assert statement.errors == []
        assert statement.warnings == []

        purchase, salary, transfer = statement.transactions
        assert purchase.date == "2026-01-05"
        assert purchase.amount == Decimal("-45.60")
        assert purchase.balance == Decimal("1204.40")
        assert salary.amount == Decimal("5000.00")
        assert salary.description == "SALARY GIRO"
        assert transfer.date == "2026-01-15"
        assert transfer.amount == Decimal("-204.40")

    def test_continuation_lines_folded(self, statement):
        assert statement.transactions[0].description == "NETS PURCHASE | FAIRPRICE FINEST | REF 88231"

    def test_continuation_across_page_furniture(self, statement):
        """Letterhead and repeated headers on a new page are not description text."""
        assert statement.transactions[2].description == "FUNDS TRANSFER | TRANSFER TO BROKERAGE"

    def test_running_balance_consistency(self, statement):
        running = statement.opening_balance
        for transaction in statement.transactions:
            running += transaction.amount
            assert running == transaction.balance

    def test_fallback_layout_uses_balance_delta(self, parser):
        """Figures far from every default anchor are signed by the balance change."""
        rows = stitch_pages([
            line(770, ("Period: 01 Jan 2026 to 31 Jan 2026", 40))
            + line(740, ("Account Transaction Details", 40))
            + line(700, ("01 Jan", 40), ("BALANCE B/F", 90), ("1,250.00", 700))
            + line(680, ("05 Jan", 40), ("NETS PURCHASE", 90), ("45.60", 600), ("1,204.40", 700))
            + line(660, ("End of Transaction Details", 40))
        ])

        statement = parser.parse(rows)

        assert statement.warnings == [COLUMN_FALLBACK_MESSAGE]
        assert len(statement.transactions) == 1
        transaction = statement.transactions[0]
        assert transaction.date == "2026-01-05"
        assert transaction.amount == Decimal("-45.60")
        assert transaction.balance == Decimal("1204.40")

    def test_fallback_anchors_signed_by_balance_delta(self, parser):
        """A figure under the default deposit position still follows the balance."""
        rows = stitch_pages([
            line(770, ("Period: 01 Jan 2026 to 31 Jan 2026", 40))
            + line(740, ("Account Transaction Details", 40))
            + line(700, ("01 Jan", 40), ("BALANCE B/F", 90), ("1,250.00", 517))
            + line(680, ("05 Jan", 40), ("NETS PURCHASE", 90), ("45.60", 436), ("1,204.40", 517))
            + line(670, ("10 Jan", 40), ("SALARY GIRO", 90), ("100.00", 345), ("1,304.40", 517))
            + line(660, ("End of Transaction Details", 40))
        ])

        statement = parser.parse(rows)

        assert [t.amount for t in statement.transactions] == [Decimal("-45.60"), Decimal("100.00")]
        running = statement.opening_balance
        for transaction in statement.transactions:
            running += transaction.amount
            assert running == transaction.balance

    def test_detected_column_contradicted_by_balance(self, parser):
        rows = stitch_pages([
            line(770, ("Period: 01 Jan 2026 to 31 Jan 2026", 40))
            + line(740, ("Account Transaction Details", 40))
            + header_line(720)
            + line(700, ("01 Jan", 40), ("BALANCE B/F", 90), ("100.00", BALANCE_X))
            + line(680, ("05 Jan", 40), ("CASH REBATE", 90), ("10.00", 345), ("110.00", BALANCE_X))
            + line(660, ("End of Transaction Details", 40))
        ])

        statement = parser.parse(rows)

        assert statement.transactions[0].amount == Decimal("10.00")
        assert statement.warnings == []

    def test_disclaimer_ends_continuation(self, parser):
        rows = stitch_pages([
            line(770, ("Period: 01 Jan 2026 to 31 Jan 2026", 40))
            + line(740, ("Account Transaction Details", 40))
            + header_line(720)
            + line(700, ("01 Jan", 40), ("BALANCE B/F", 90), ("100.00", BALANCE_X))
            + line(680, ("05 Jan", 40), ("NETS PURCHASE", 90), ("10.00", 345), ("90.00", BALANCE_X))
            + line(670, ("Please note that you are bound by the Rules", 40))
            + line(660, ("End of Transaction Details", 40))
        ])

        statement = parser.parse(rows)

        assert [t.description for t in statement.transactions] == ["NETS PURCHASE"]

    def test_dated_row_without_amount_reported(self, parser):
        rows = stitch_pages([
            line(770, ("Period: 01 Jan 2026 to 31 Jan 2026", 40))
            + line(740, ("Account Transaction Details", 40))
            + header_line(720)
            + line(700, ("01 Jan", 40), ("BALANCE B/F", 90), ("100.00", BALANCE_X))
            + line(680, ("05 Jan", 40), ("INTEREST EARNED", 90))
            + line(670, ("06 Jan", 40), ("NETS PURCHASE", 90), ("10.00", 345), ("90.00", BALANCE_X))
            + line(660, ("End of Transaction Details", 40))
        ])

        statement = parser.parse(rows)

        assert len(statement.transactions) == 1
        assert len(statement.errors) == 1
        assert statement.errors[0].startswith("05 Jan")

    def test_oversized_figure_is_a_row_error(self, parser):
        rows = stitch_pages([
            line(770, ("Period: 01 Jan 2026 to 31 Jan 2026", 40))
            + line(740, ("Account Transaction Details", 40))
            + header_line(720)
            + line(700, ("01 Jan", 40), ("BALANCE B/F", 90), ("100.00", BALANCE_X))
            + line(680, ("05 Jan", 40), ("NETS PURCHASE", 90),
                   ("99,999,999,999,999,999,999,999,999,999.00", 345), ("90.00", BALANCE_X))
            + line(670, ("06 Jan", 40), ("NETS PURCHASE", 90), ("10.00", 345), ("90.00", BALANCE_X))
            + line(660, ("End of Transaction Details", 40))
        ])

        statement = parser.parse(rows)

        assert [t.date for t in statement.transactions] == ["2026-01-06"]
        assert len(statement.errors) == 1
        assert statement.errors[0].startswith("05 Jan: Amount out of range")

    def test_missing_period_rejected(self, parser):
        rows = stitch_pages([
            line(740, ("Account Transaction Details", 40))
            + line(660, ("End of Transaction Details", 40))
        ])

        with pytest.raises(StatementStructureError) as exc_info:
            parser.parse(rows)

        assert exc_info.value.marker == "statement period"

    def test_missing_section_end_rejected(self, parser):
        rows = stitch_pages([
            line(770, ("Period: 01 Jan 2026 to 31 Jan 2026", 40))
            + line(740, ("Account Transaction Details", 40))
            + line(680, ("05 Jan", 40), ("NETS PURCHASE", 90), ("10.00", 345), ("90.00", BALANCE_X))
        ])

        with pytest.raises(StatementStructureError) as exc_info:
            parser.parse(rows)

        assert exc_info.value.marker == "transaction section end"
        assert str(exc_info.value) == "Could not find transaction section end"

    def test_fx_section_ends_transactions(self, parser):
        rows = stitch_pages([
            line(770, ("Period: 01 Jan 2026 to 31 Jan 2026", 40))
            + line(740, ("Account Transaction Details", 40))
            + header_line(720)
            + line(700, ("01 Jan", 40), ("BALANCE B/F", 90), ("100.00", BALANCE_X))
            + line(680, ("05 Jan", 40), ("NETS PURCHASE", 90), ("10.00", 345), ("90.00", BALANCE_X))
            + line(660, ("Currency Conversion", 40))
            + line(640, ("06 Jan", 40), ("FX BUY USD", 90), ("50.00", 345), ("40.00", BALANCE_X))
        ])

        statement = parser.parse(rows)

        assert [t.description for t in statement.transactions] == ["NETS PURCHASE"]

    def test_year_rollback_for_december_rows(self, parser):
        rows = stitch_pages([
            line(770, ("Period: 20 Dec 2025 to 19 Jan 2026", 40))
            + line(740, ("Account Transaction Details", 40))
            + header_line(720)
            + line(700, ("20 Dec", 40), ("BALANCE B/F", 90), ("100.00", BALANCE_X))
            + line(680, ("28 Dec", 40), ("NETS PURCHASE", 90), ("10.00", 345), ("90.00", BALANCE_X))
            + line(670, ("03 Jan", 40), ("NETS PURCHASE", 90), ("10.00", 345), ("80.00", BALANCE_X))
            + line(660, ("End of Transaction Details", 40))
        ])

        statement = parser.parse(rows)

        assert [t.date for t in statement.transactions] == ["2025-12-28", "2026-01-03"]


class TestUOBLadyParser:
    """Tests for Lady's Savings statements."""

    def test_total_row_ends_section(self, settings):
        rows = stitch_pages([
            line(770, ("Period: 01 Feb 2026 to 28 Feb 2026", 40))
            + header_line(720)
            + line(700, ("01 Feb", 40), ("BALANCE B/F", 90), ("500.00", BALANCE_X))
            + line(680, ("03 Feb", 40), ("Interest Credit", 90), ("1.25", 431), ("501.25", BALANCE_X))
            + line(660, ("Total", 90), ("0.00", 345), ("1.25", 431))
        ])

        statement = UOBLadyParser(settings).parse(rows)

        assert statement.opening_balance == Decimal("500.00")
        assert len(statement.transactions) == 1
        assert statement.transactions[0].amount == Decimal("1.25")
        assert statement.closing_balance == Decimal("501.25")
        assert statement.account_number == ""


class TestLegacyTextParser:
    """Tests for text-only parsing."""

    def test_bank_parser_falls_back_without_rows(self, settings, uob_one_text):
        statement = UOBOneParser(settings).parse([], uob_one_text)

        assert statement.opening_balance == Decimal("1250.00")
        assert statement.account_number == "123-456-789-0"
        assert statement.transaction_count == 2

        purchase, salary = statement.transactions
        assert purchase.amount == Decimal("-45.60")
        assert purchase.description == "NETS PURCHASE | FAIRPRICE FINEST | REF 88231"
        assert salary.amount == Decimal("5000.00")
        assert statement.closing_balance == Decimal("6204.40")

    def test_text_and_layout_paths_agree(self, settings, uob_one_pages, uob_one_text):
        from_text = UOBOneParser(settings).parse([], uob_one_text)
        from_layout = UOBOneParser(settings).parse(stitch_pages(uob_one_pages))

        assert from_text.transactions[:2] == from_layout.transactions[:2]

    def test_line_without_balance_reported(self, settings):
        text = "\n".join([
            "Period: 01 Feb 2026 to 28 Feb 2026",
            "Date Description Withdrawals Deposits Balance",
            "01 Feb BALANCE B/F 500.00",
            "03 Feb MYSTERY CHARGE 1.25",
            "End of Transaction Details",
        ])

        statement = LegacyTextParser(settings).parse([], text)

        assert statement.transactions == []
        assert statement.errors == ["03 Feb: expected amount and balance on dated line"]

    def test_missing_section_start_rejected(self, settings):
        with pytest.raises(StatementStructureError):
            LegacyTextParser(settings).parse([], "Period: 01 Feb 2026 to 28 Feb 2026\nnothing here")

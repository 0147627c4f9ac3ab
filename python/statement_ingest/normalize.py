"""
Field Normalization

Date and amount parsing shared by the statement and CSV parsers.
"""

import re
from datetime import date, datetime
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

from .errors import RowParseError

CENT = Decimal("0.01")

MONTHS = {
    "jan": 1, "feb": 2, "mar": 3, "apr": 4, "may": 5, "jun": 6,
    "jul": 7, "aug": 8, "sep": 9, "oct": 10, "nov": 11, "dec": 12,
}

# Two-digit day followed by a three-letter month, e.g. "05 Jan" or "30 NOV"
DAY_MONTH_RE = re.compile(r"^(\d{2})\s+([A-Za-z]{3})\b")
FULL_DATE_RE = re.compile(r"^(\d{1,2})\s+([A-Za-z]{3,9})\s+(\d{4})$")
STATEMENT_NUMBER_RE = re.compile(r"^-?[\d,]+\.\d{2}$")

CSV_DATE_FORMATS = [
    "%d/%m/%Y",
    "%d-%m-%Y",
    "%Y-%m-%d",
    "%d %b %Y",
    "%d %B %Y",
]


def quantize(amount: Decimal) -> Decimal:
    """Round to cents, folding negative zero into zero.

    Raises:
        RowParseError: If the value has more digits than the decimal context holds
    """
    try:
        result = amount.quantize(CENT, rounding=ROUND_HALF_UP)
    except InvalidOperation:
        raise RowParseError(f"Amount out of range: {amount}")
    return result + Decimal("0.00") if result.is_zero() else result


def month_number(name: str) -> int | None:
    return MONTHS.get(name[:3].lower())


def parse_full_date(date_str: str) -> str:
    """Parse a ``DD Mon YYYY`` date into ``YYYY-MM-DD``.

    Args:
        date_str: Date like "01 Dec 2025"

    Returns:
        ISO date string

    Raises:
        RowParseError: If the date is malformed
    """
    match = FULL_DATE_RE.match(date_str.strip())
    if not match:
        raise RowParseError(f"Cannot parse date: {date_str}")

    month = month_number(match.group(2))
    if month is None:
        raise RowParseError(f"Unknown month in date: {date_str}")

    try:
        return date(int(match.group(3)), month, int(match.group(1))).isoformat()
    except ValueError:
        raise RowParseError(f"Invalid date: {date_str}")


def parse_day_month(date_str: str, year: int, not_after: str | None = None) -> str:
    """Parse a year-less ``DD Mon`` date.

    Args:
        date_str: Date like "05 Jan"
        year: Statement year to apply
        not_after: ISO date the result may not exceed; later dates roll back a year

    Returns:
        ISO date string

    Raises:
        RowParseError: If the date is malformed
    """
    parts = date_str.split()
    if len(parts) != 2 or not parts[0].isdigit():
        raise RowParseError(f"Cannot parse date: {date_str}")

    month = month_number(parts[1])
    if month is None:
        raise RowParseError(f"Unknown month in date: {date_str}")

    try:
        result = date(year, month, int(parts[0]))
        if not_after and result.isoformat() > not_after:
            result = date(year - 1, month, int(parts[0]))
    except ValueError:
        raise RowParseError(f"Invalid date: {date_str}")

    return result.isoformat()


def match_day_month(text: str) -> str | None:
    """Return the leading ``DD Mon`` token of a line, if it has one."""
    match = DAY_MONTH_RE.match(text.strip())
    if not match or month_number(match.group(2)) is None:
        return None
    return f"{match.group(1)} {match.group(2)}"


def parse_csv_date(date_str: str) -> str:
    """Normalize a CSV date cell to ``YYYY-MM-DD``.

    Raises:
        RowParseError: If no supported format matches
    """
    cleaned = (date_str or "").strip().strip("'\"")
    if not cleaned:
        raise RowParseError("Missing date")

    for fmt in CSV_DATE_FORMATS:
        try:
            return datetime.strptime(cleaned, fmt).date().isoformat()
        except ValueError:
            continue

    raise RowParseError(f"Cannot parse date: {date_str}")


def parse_statement_number(text: str) -> Decimal:
    """Parse a printed statement figure such as ``1,204.40``."""
    try:
        value = Decimal(text.strip().replace(",", ""))
    except InvalidOperation:
        raise RowParseError(f"Cannot parse amount: {text}")
    return quantize(value)


def parse_amount(amount_str: str) -> Decimal:
    """Parse a CSV amount cell into a signed Decimal.

    Currency symbols and thousand separators are dropped, ``(50.00)`` is
    negative, and ``DR``/``CR`` suffixes mark debit and credit.

    Raises:
        RowParseError: If the amount is missing or not numeric
    """
    if not amount_str or not amount_str.strip():
        raise RowParseError("Missing amount")

    cleaned = amount_str.strip().upper()
    is_negative = False

    if cleaned.endswith("DR"):
        cleaned = cleaned[:-2]
        is_negative = True
    elif cleaned.endswith("CR"):
        cleaned = cleaned[:-2]

    cleaned = re.sub(r"[^0-9.,\-()]", "", cleaned).replace(",", "")

    if cleaned.startswith("(") and cleaned.endswith(")"):
        cleaned = cleaned[1:-1]
        is_negative = True
    if cleaned.startswith("-"):
        cleaned = cleaned[1:]
        is_negative = True

    try:
        amount = Decimal(cleaned)
    except InvalidOperation:
        raise RowParseError(f"Cannot parse amount: {amount_str}")

    return quantize(-amount if is_negative else amount)

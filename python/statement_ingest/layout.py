"""
Layout Reconstruction Module

Groups positioned PDF fragments into visual rows and locates the numeric
columns of a statement table.
"""

import logging
from collections import defaultdict
from typing import Iterable

from .config import IngestSettings
from .errors import ColumnDetectionWarning
from .models import ColumnLayout, PositionedFragment, VisualRow
from .normalize import STATEMENT_NUMBER_RE

logger = logging.getLogger(__name__)

WITHDRAWAL_LABELS = ("withdrawal", "debit", "paid out", "money out")
DEPOSIT_LABELS = ("deposit", "credit", "paid in", "money in")
BALANCE_LABELS = ("balance",)

COLUMN_FALLBACK_MESSAGE = "Could not detect column layout, using default positions"


def group_fragments(
    fragments: Iterable[PositionedFragment],
    tolerance: float = 2.0,
    page: int = 0
) -> list[VisualRow]:
    """Group one page's fragments into rows, top to bottom.

    Args:
        fragments: Fragments of a single page
        tolerance: Vertical bucket size absorbing sub-pixel jitter
        page: Page index recorded on each row

    Returns:
        Rows ordered by descending y, fragments ordered by ascending x
    """
    buckets: dict[float, list[PositionedFragment]] = defaultdict(list)

    for fragment in fragments:
        bucket = round(fragment.y / tolerance) * tolerance
        buckets[bucket].append(fragment)

    return [
        VisualRow(y=y, fragments=sorted(buckets[y], key=lambda f: f.x), page=page)
        for y in sorted(buckets, reverse=True)
    ]


def stitch_pages(
    pages: Iterable[Iterable[PositionedFragment]],
    tolerance: float = 2.0
) -> list[VisualRow]:
    """Build the statement's row stream by concatenating pages in order."""
    rows: list[VisualRow] = []
    for page_index, fragments in enumerate(pages):
        rows.extend(group_fragments(fragments, tolerance, page=page_index))
    return rows


def rows_to_text(rows: Iterable[VisualRow]) -> str:
    return "\n".join(row.text for row in rows)


def _find_label_x(row: VisualRow, labels: tuple[str, ...]) -> float | None:
    for fragment in row.fragments:
        lowered = fragment.text.lower()
        if any(label in lowered for label in labels):
            return fragment.x
    return None


def detect_column_layout(
    rows: Iterable[VisualRow],
    settings: IngestSettings | None = None
) -> ColumnLayout:
    """Find the withdrawal/deposit/balance header and record its positions.

    Never raises and issues no Python warning. When no header row is found
    the configured fallback positions are returned with ``detected=False``
    and a ``ColumnDetectionWarning`` value in ``warning``. Label matching is
    by substring, so plurals such as "Withdrawals" match; rows carrying
    money figures are never headers.

    Args:
        rows: Rows of the statement
        settings: Ingestion settings supplying threshold and fallbacks

    Returns:
        ColumnLayout
    """
    settings = settings or IngestSettings()

    for row in rows:
        if any(STATEMENT_NUMBER_RE.match(f.text.strip()) for f in row.fragments):
            continue

        text = row.text.lower()
        if not (any(l in text for l in WITHDRAWAL_LABELS) and any(l in text for l in DEPOSIT_LABELS)):
            continue

        withdrawal_x = _find_label_x(row, WITHDRAWAL_LABELS)
        deposit_x = _find_label_x(row, DEPOSIT_LABELS)
        balance_x = _find_label_x(row, BALANCE_LABELS)

        if withdrawal_x is None or deposit_x is None:
            # Labels only matched across fragment boundaries
            continue

        if balance_x is None:
            balance_x = settings.fallback_balance_x

        logger.debug(
            f"Column headers found - withdrawal:{withdrawal_x}, "
            f"deposit:{deposit_x}, balance:{balance_x}"
        )
        return ColumnLayout(
            withdrawal_x=withdrawal_x,
            deposit_x=deposit_x,
            balance_x=balance_x,
            threshold=settings.column_threshold,
        )

    logger.warning(COLUMN_FALLBACK_MESSAGE)

    return ColumnLayout(
        withdrawal_x=settings.fallback_withdrawal_x,
        deposit_x=settings.fallback_deposit_x,
        balance_x=settings.fallback_balance_x,
        threshold=settings.column_threshold,
        detected=False,
        warning=ColumnDetectionWarning(COLUMN_FALLBACK_MESSAGE),
    )

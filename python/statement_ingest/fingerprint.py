"""
Fingerprint Deduplicator

Derives a stable identity for each raw tuple so that importing the same
statement twice, or the same transaction from PDF and CSV, admits it once.
"""

import hashlib
import logging
import re
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Iterable

from .models import RawTuple
from .normalize import quantize

logger = logging.getLogger(__name__)

_WHITESPACE_RE = re.compile(r"\s+")


def normalize_description(description: str) -> str:
    return _WHITESPACE_RE.sub(" ", description.strip().lower())


def fingerprint(date: str, description: str, amount: Decimal) -> str:
    """Hash ``date|description|amount`` after normalizing case and spacing.

    Args:
        date: ISO date
        description: Transaction description
        amount: Signed amount, rounded to cents before hashing

    Returns:
        16-character hex digest
    """
    key = f"{date}|{normalize_description(description)}|{quantize(Decimal(amount)):.2f}"
    return hashlib.sha256(key.encode()).hexdigest()[:16]


def fingerprint_tuple(raw: RawTuple) -> str:
    return fingerprint(raw.date, raw.description, raw.amount)


@dataclass
class DedupeResult:
    """Tuples admitted by ``dedupe`` with their fingerprints."""

    kept: list[RawTuple] = field(default_factory=list)
    fingerprints: list[str] = field(default_factory=list)
    duplicate_count: int = 0


def dedupe(tuples: Iterable[RawTuple], seen: set[str]) -> DedupeResult:
    """Drop tuples whose fingerprint is already in ``seen``.

    ``seen`` is updated in place with every kept fingerprint, so a repeat
    within the same batch is also counted as a duplicate. Callers own the
    set and must not share it between concurrent imports.

    Args:
        tuples: Raw tuples in statement order
        seen: Fingerprints admitted so far

    Returns:
        DedupeResult
    """
    result = DedupeResult()

    for raw in tuples:
        fp = fingerprint_tuple(raw)
        if fp in seen:
            result.duplicate_count += 1
            logger.debug(f"Duplicate skipped: {raw.date} {raw.description} {raw.amount}")
            continue

        seen.add(fp)
        result.kept.append(raw)
        result.fingerprints.append(fp)

    return result

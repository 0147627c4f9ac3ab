"""
Ingestion Errors

Fatal and per-row failure types raised while reading statements.
"""


class StatementStructureError(ValueError):
    """A load-bearing marker is missing; the whole document is rejected."""

    def __init__(self, marker: str, message: str | None = None):
        self.marker = marker
        super().__init__(message or f"Could not find {marker}")


class ColumnDetectionWarning(UserWarning):
    """Column headers were not found and fallback positions are in use."""


class RowParseError(ValueError):
    """A single row could not be turned into a transaction."""

    def __init__(self, reason: str, row: int | None = None):
        self.reason = reason
        self.row = row
        super().__init__(reason)

    def at_row(self, row: int) -> "RowParseError":
        """Return a copy of this error bound to a line number."""
        return RowParseError(self.reason, row=row)

    def __str__(self) -> str:
        if self.row is None:
            return self.reason
        return f"Row {self.row}: {self.reason}"

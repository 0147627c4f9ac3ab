"""
PDF Layout Extraction

Reads positioned words from a PDF with pdfplumber and converts them into
fragments with a bottom-left origin, the frame the row grouper expects.
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path

import pdfplumber

from .models import PositionedFragment

logger = logging.getLogger(__name__)


@dataclass
class PDFLayout:
    """Fragments per page plus the document's plain text."""

    pages: list[list[PositionedFragment]] = field(default_factory=list)
    full_text: str = ""

    @property
    def page_count(self) -> int:
        return len(self.pages)


def extract_layout(pdf_path: Path | str) -> PDFLayout:
    """Extract word fragments and text from every page.

    Args:
        pdf_path: Path to the statement PDF

    Returns:
        PDFLayout
    """
    layout = PDFLayout()
    texts = []

    with pdfplumber.open(Path(pdf_path)) as pdf:
        for page in pdf.pages:
            words = page.extract_words(keep_blank_chars=True)
            layout.pages.append([
                PositionedFragment(
                    text=word["text"],
                    x=float(word["x0"]),
                    y=float(page.height) - float(word["bottom"]),
                )
                for word in words
            ])
            texts.append(page.extract_text() or "")

    layout.full_text = "\n".join(texts)
    logger.info(f"Extracted {layout.page_count} pages from {pdf_path}")
    return layout

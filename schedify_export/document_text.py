"""
Read page 1 of a schedule PDF and hand its text to the schedule parser.

Only the first page is used; the course table of the registration form
always fits on it.
"""
from __future__ import annotations

import logging
from pathlib import Path

import pdfplumber
from pdfminer.pdfparser import PDFSyntaxError
from pdfplumber.utils.exceptions import PdfminerException

from .errors import ExtractionFailed, InputRejected
from .schedule_text import ParsedSchedule, parse_schedule

logger = logging.getLogger(__name__)

PDF_MAGIC = b"%PDF"


def _check_pdf(path: Path) -> None:
    if not path.is_file():
        raise InputRejected(f"File not found: {path}")
    if path.suffix.lower() != ".pdf":
        raise InputRejected(f"Please provide a valid PDF file (got {path.name}).")
    with open(path, "rb") as f:
        head = f.read(len(PDF_MAGIC))
    if head != PDF_MAGIC:
        raise InputRejected(f"{path.name} does not look like a PDF document.")


def extract_first_page_text(pdf_path: str | Path) -> str:
    """
    Return the words of page 1 joined by single spaces, in reading order.

    Raises InputRejected for non-PDF input and ExtractionFailed when
    pdfplumber cannot read the document.
    """
    path = Path(pdf_path)
    _check_pdf(path)

    try:
        with pdfplumber.open(path) as pdf:
            if not pdf.pages:
                raise ExtractionFailed(f"{path.name} has no pages.")
            words = pdf.pages[0].extract_words()
    except ExtractionFailed:
        raise
    except (PdfminerException, PDFSyntaxError, OSError, ValueError) as e:
        raise ExtractionFailed(f"Could not read text from {path.name}: {e}") from e

    logger.debug("Extracted %d word(s) from page 1 of %s", len(words), path.name)
    return " ".join(w["text"] for w in words)


def process_pdf(pdf_path: str | Path, lenient: bool = False) -> ParsedSchedule:
    """Extract page 1 of ``pdf_path`` and parse it into a ParsedSchedule."""
    text = extract_first_page_text(pdf_path)
    return parse_schedule(text, lenient=lenient)

"""CV and spreadsheet parsing utilities.

CVs are validated and, where possible, converted to text locally (PDF and
plain text); the structured analysis itself comes from the hosted parse-cv
function. CSV and Excel files feed the bulk consultant import.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, BinaryIO

import pandas as pd
import pdfplumber
from pypdf import PdfReader

from .config import settings

logger = logging.getLogger(__name__)


class FileType(str, Enum):
    """Supported file types."""
    PDF = "pdf"
    WORD = "word"
    TEXT = "text"
    CSV = "csv"
    EXCEL = "excel"
    UNKNOWN = "unknown"


class ParseError(Exception):
    """Raised when document parsing or validation fails."""
    pass


@dataclass
class ParsedDocument:
    """Result of CV text extraction."""
    text: str
    file_type: FileType
    metadata: dict[str, Any] = field(default_factory=dict)
    confidence: float = 1.0


def file_extension(filename: str) -> str:
    return '.' + filename.rsplit('.', 1)[-1].lower() if '.' in filename else ''


def detect_file_type(filename: str, content: bytes | None = None) -> FileType:
    """Detect file type from filename or content.

    Args:
        filename: Original filename
        content: Optional file content for magic number detection

    Returns:
        Detected FileType
    """
    ext = file_extension(filename)

    if ext == '.pdf':
        return FileType.PDF
    elif ext in ('.doc', '.docx'):
        return FileType.WORD
    elif ext == '.txt':
        return FileType.TEXT
    elif ext == '.csv':
        return FileType.CSV
    elif ext in ('.xls', '.xlsx', '.xlsm'):
        return FileType.EXCEL

    # Magic number detection if content provided
    if content:
        if content.startswith(b'%PDF'):
            return FileType.PDF
        elif content.startswith(b'PK\x03\x04'):  # ZIP/Office
            return FileType.EXCEL

    return FileType.UNKNOWN


def validate_cv_upload(filename: str, size: int) -> FileType:
    """Check extension and size limits for a CV upload.

    Raises:
        ParseError: If the file is empty, too large or of an unsupported type
    """
    if not filename:
        raise ParseError("Filename is required")

    ext = file_extension(filename)
    allowed = settings.upload.allowed_extensions
    if ext not in allowed:
        raise ParseError(f"Unsupported file type. Allowed: {', '.join(allowed)}")

    if size <= 0:
        raise ParseError("Uploaded file is empty")

    max_bytes = settings.upload.max_cv_bytes
    if size > max_bytes:
        raise ParseError(f"File too large. Maximum size is {max_bytes // (1024 * 1024)}MB.")

    return detect_file_type(filename)


def extract_text_from_pdf(file_obj: BinaryIO) -> tuple[str, float]:
    """Extract text from PDF using native text extraction.

    Args:
        file_obj: Binary file object

    Returns:
        Tuple of (extracted_text, confidence_score)
    """
    try:
        # Try pdfplumber first (better text extraction)
        with pdfplumber.open(file_obj) as pdf:
            text_parts = []
            for page in pdf.pages:
                page_text = page.extract_text()
                if page_text:
                    text_parts.append(page_text)

            text = "\n\n".join(text_parts)

            # Estimate confidence based on text density
            if len(text.strip()) > 100:
                return text, 0.95
            elif len(text.strip()) > 20:
                return text, 0.7
            else:
                return text, 0.3

    except Exception as e:
        logger.warning(f"pdfplumber extraction failed: {e}, trying pypdf")

        # Fallback to pypdf
        try:
            file_obj.seek(0)
            reader = PdfReader(file_obj)
            text_parts = []
            for page in reader.pages:
                page_text = page.extract_text()
                if page_text:
                    text_parts.append(page_text)

            text = "\n\n".join(text_parts)
            confidence = 0.8 if len(text.strip()) > 100 else 0.5
            return text, confidence

        except Exception as e2:
            logger.error(f"pypdf extraction also failed: {e2}")
            return "", 0.0


def extract_cv_text(file_obj: BinaryIO, filename: str) -> ParsedDocument:
    """Best-effort local text extraction for a CV.

    Word documents are not converted locally; they are passed through to the
    parse-cv function untouched and yield an empty text here.
    """
    file_type = detect_file_type(filename)

    if file_type == FileType.PDF:
        text, confidence = extract_text_from_pdf(file_obj)
    elif file_type == FileType.TEXT:
        raw = file_obj.read()
        text = raw.decode("utf-8", errors="replace")
        confidence = 1.0 if text.strip() else 0.0
    else:
        text, confidence = "", 0.0

    logger.debug(f"Extracted {len(text)} characters from {filename} ({file_type.value})")
    return ParsedDocument(
        text=text,
        file_type=file_type,
        confidence=confidence,
        metadata={"filename": filename},
    )


def _records(df: pd.DataFrame) -> list[dict[str, Any]]:
    # NaN cells become None so downstream validation sees missing values
    df = df.astype(object).where(pd.notna(df), None)
    df.columns = [str(c).strip().lower() for c in df.columns]
    return df.to_dict('records')


def parse_csv(file_obj: BinaryIO, filename: str) -> list[dict[str, Any]]:
    """Parse CSV file into structured records.

    Args:
        file_obj: Binary file object
        filename: Original filename

    Returns:
        List of dictionaries (one per row)

    Raises:
        ParseError: If CSV parsing fails
    """
    try:
        df = pd.read_csv(file_obj, encoding='utf-8', dtype=str, keep_default_na=True)
    except Exception as e:
        logger.error(f"CSV parsing failed: {e}")
        raise ParseError(f"Failed to parse CSV: {e}") from e

    if df.empty:
        raise ParseError("CSV file is empty")

    logger.info(f"Parsed CSV {filename} with {len(df)} rows and {len(df.columns)} columns")
    return _records(df)


def parse_excel(file_obj: BinaryIO, filename: str, sheet_name: str | int = 0) -> list[dict[str, Any]]:
    """Parse Excel file into structured records.

    Args:
        file_obj: Binary file object
        filename: Original filename
        sheet_name: Sheet name or index (default: first sheet)

    Returns:
        List of dictionaries (one per row)

    Raises:
        ParseError: If Excel parsing fails
    """
    try:
        df = pd.read_excel(file_obj, sheet_name=sheet_name, engine='openpyxl')
    except Exception as e:
        logger.error(f"Excel parsing failed: {e}")
        raise ParseError(f"Failed to parse Excel: {e}") from e

    if df.empty:
        raise ParseError("Excel sheet is empty")

    logger.info(f"Parsed Excel {filename} with {len(df)} rows and {len(df.columns)} columns")
    return _records(df)


def parse_spreadsheet(file_obj: BinaryIO, filename: str) -> list[dict[str, Any]]:
    """Parse a CSV or Excel upload into row dictionaries.

    Raises:
        ParseError: If file type unsupported or parsing fails
    """
    file_type = detect_file_type(filename)

    if file_type == FileType.CSV:
        return parse_csv(file_obj, filename)
    elif file_type == FileType.EXCEL:
        return parse_excel(file_obj, filename)
    else:
        raise ParseError(f"Unsupported file type: {filename}")

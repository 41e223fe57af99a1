"""Bulk consultant import from CSV and Excel uploads.

Rows are validated one by one; rows missing a name or e-mail (or failing
validation otherwise) are reported as skipped and the remaining rows are
inserted in a single transaction.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, BinaryIO, Mapping

from pydantic import ValidationError
from sqlalchemy.ext.asyncio import AsyncSession

from .. import models
from ..config import settings
from ..parsers import parse_spreadsheet
from ..schemas import ConsultantCreate
from ..scoring import parse_experience_years
from .normalization import clean_string, normalize_skills

logger = logging.getLogger(__name__)

# Accepted header spellings per consultant field
COLUMN_ALIASES: dict[str, tuple[str, ...]] = {
    "name": ("name", "full name", "full_name", "consultant"),
    "email": ("email", "e-mail", "email address"),
    "phone": ("phone", "phone number", "telephone"),
    "location": ("location", "city"),
    "skills": ("skills", "skill", "competencies"),
    "experience": ("experience", "years of experience", "experience_years"),
    "rate": ("rate", "hourly rate", "hourly_rate", "price"),
    "availability": ("availability", "available"),
    "rating": ("rating", "score"),
}


class IngestError(Exception):
    """Raised when a bulk import cannot be processed."""
    pass


@dataclass
class SkippedRow:
    row: int
    reason: str


@dataclass
class ImportResult:
    """Outcome of a bulk import."""
    total_rows: int
    created: list[models.Consultant] = field(default_factory=list)
    skipped: list[SkippedRow] = field(default_factory=list)


def _pick(row: Mapping[str, Any], column: str) -> Any:
    for alias in COLUMN_ALIASES[column]:
        value = row.get(alias)
        if clean_string(value) is not None:
            return value
    return None


def _number(value: Any) -> float | None:
    try:
        return float(str(value).strip())
    except (TypeError, ValueError):
        return None


def consultant_from_row(row: Mapping[str, Any]) -> ConsultantCreate:
    """Map one spreadsheet row to a validated consultant.

    Raises:
        ValueError: If name or e-mail is missing
        ValidationError: If a value is out of range
    """
    name = clean_string(_pick(row, "name"))
    email = clean_string(_pick(row, "email"))
    if not name:
        raise ValueError("missing name")
    if not email:
        raise ValueError("missing email")

    experience = clean_string(_pick(row, "experience"))
    years = parse_experience_years(experience) if experience else None
    rate = clean_string(_pick(row, "rate"))
    hourly = _number(rate)
    rating = _number(_pick(row, "rating"))

    return ConsultantCreate(
        name=name,
        email=email,
        phone=clean_string(_pick(row, "phone")),
        location=clean_string(_pick(row, "location")),
        skills=normalize_skills(_pick(row, "skills") or []),
        experience=f"{years} years" if experience and _number(experience) is not None else experience,
        experience_years=years or None,
        rate=rate,
        hourly_rate=int(hourly) if hourly is not None and hourly >= 0 else None,
        availability=clean_string(_pick(row, "availability")) or "Available",
        rating=rating,
    )


async def import_consultants_from_rows(
    session: AsyncSession,
    rows: list[Mapping[str, Any]],
) -> ImportResult:
    """Validate rows and insert the valid ones in one transaction.

    Raises:
        IngestError: If there are too many rows or the insert fails
    """
    max_rows = settings.upload.max_bulk_rows
    if len(rows) > max_rows:
        raise IngestError(f"Too many rows: {len(rows)} (maximum {max_rows})")

    result = ImportResult(total_rows=len(rows))
    valid: list[ConsultantCreate] = []

    for idx, row in enumerate(rows):
        # Row numbers as seen in the sheet, header is row 1
        row_number = idx + 2
        try:
            valid.append(consultant_from_row(row))
        except ValidationError as e:
            reason = "; ".join(
                f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in e.errors()
            )
            result.skipped.append(SkippedRow(row=row_number, reason=reason))
        except ValueError as e:
            result.skipped.append(SkippedRow(row=row_number, reason=str(e)))

    if not valid:
        logger.warning(f"Bulk import: no valid rows out of {len(rows)}")
        return result

    try:
        consultants = [models.Consultant(**data.model_dump(mode="json")) for data in valid]
        session.add_all(consultants)
        await session.commit()
    except Exception as e:
        logger.error(f"Bulk import failed: {e}", exc_info=True)
        await session.rollback()
        raise IngestError(f"Failed to import consultants: {e}") from e

    result.created = consultants
    logger.info(
        f"Bulk import: {len(result.created)} created, {len(result.skipped)} skipped "
        f"of {result.total_rows} rows"
    )
    return result


async def import_consultants_from_file(
    session: AsyncSession,
    file_obj: BinaryIO,
    filename: str,
) -> ImportResult:
    """Parse a CSV/Excel upload and import its rows.

    Raises:
        ParseError: If the file cannot be parsed
        IngestError: If the import fails
    """
    rows = parse_spreadsheet(file_obj, filename)
    return await import_consultants_from_rows(session, rows)

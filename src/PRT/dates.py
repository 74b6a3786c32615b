"""
Date normalizer.

Converts loosely formatted visit dates from CSV/XLSX cells into 'YYYY-MM-DD'.
Handles:
  - "10/1/25 8:15" or "10/1/25"     (MM/DD/YY, time portion dropped)
  - "2025-10-22" or "2025/10/22"    (ISO, year first)
  - "22-10-2025" or "22/10/2025"    (DD-MM-YYYY when the first part > 12)
  - "45931.5625"                    (spreadsheet serial day number)

Parsing never raises: parse_date() reports failures in a DateParseResult and
normalize_date() collapses them to an empty string.
"""

import datetime
import logging
import re
import typing
from dataclasses import dataclass

# Spreadsheet day zero. Spreadsheets wrongly treat 1900 as a leap year,
# so counting from 1899-12-30 (not 1899-12-31) lines modern serials up.
SPREADSHEET_EPOCH = datetime.date(1899, 12, 30)
_MAX_SERIAL = 100000

_SERIAL_PATTERN = re.compile(r"^\d+(\.\d+)?$", re.ASCII)
_YEAR_FIRST_PATTERN = re.compile(r"^\d{4}[-/]\d{1,2}[-/]\d{1,2}$", re.ASCII)


@dataclass(frozen=True)
class DateParseResult:
    """
    Outcome of parsing one date token.

    Attributes:
        value: 'YYYY-MM-DD' on success, '' otherwise.
        error: Why parsing failed; None on success or for blank input.
    """

    value: str
    error: typing.Optional[str] = None

    @property
    def ok(self) -> bool:
        return bool(self.value)


def excel_serial_to_date(serial: float) -> datetime.date:
    """Whole days since the spreadsheet epoch; the fractional time of day is dropped."""
    return SPREADSHEET_EPOCH + datetime.timedelta(days=int(serial))


def parse_date(raw: typing.Any) -> DateParseResult:
    if raw is None:
        return DateParseResult("")
    cleaned = str(raw).strip().replace("\r", "")
    if not cleaned:
        return DateParseResult("")

    try:
        value = _parse_cleaned(cleaned)
    except (ValueError, TypeError, OverflowError) as e:
        logging.warning(f"Failed to parse date {raw!r}: {e}")
        return DateParseResult("", error=str(e))

    if not value:
        return DateParseResult("", error=f"unrecognized date format {cleaned!r}")
    return DateParseResult(value)


def normalize_date(raw: typing.Any) -> str:
    return parse_date(raw).value


def _parse_cleaned(cleaned: str) -> str:
    if _SERIAL_PATTERN.match(cleaned):
        serial = float(cleaned)
        if 0 < serial < _MAX_SERIAL:
            return excel_serial_to_date(serial).isoformat()

    # drop any time-of-day portion
    date_part = cleaned.split(" ")[0]

    if _YEAR_FIRST_PATTERN.match(date_part):
        separator = "-" if "-" in date_part else "/"
        parts = date_part.split(separator)
        if len(parts) != 3:
            raise ValueError(f"mixed separators in {date_part!r}")
        year, month, day = parts
        return _format(year, month, day)

    if "/" in date_part:
        separator = "/"
    elif "-" in date_part:
        separator = "-"
    else:
        return ""

    parts = date_part.split(separator)
    if len(parts) != 3:
        return ""
    first, second, third = parts

    if len(first) == 4:
        year, month, day = first, second, third
    else:
        # year is last; a part above 12 cannot be the month
        year = third
        if _as_int(first) > 12:
            day, month = first, second
        elif _as_int(second) > 12:
            month, day = first, second
        else:
            # ambiguous, default to US month-first order
            month, day = first, second
        if len(year) == 2:
            year = f"20{year}"

    return _format(year, month, day)


def _as_int(part: str) -> int:
    if not (part.isascii() and part.isdigit()):
        raise ValueError(f"non-numeric date part {part!r}")
    return int(part)


def _format(year: str, month: str, day: str) -> str:
    for part in (year, month, day):
        if not (part.isascii() and part.isdigit()):
            raise ValueError(f"non-numeric date part {part!r}")
    return f"{year}-{month.zfill(2)}-{day.zfill(2)}"

"""
Age token normalizer.

Ages arrive either as plain numbers ("45") or in years/months compound
notation ("5Y2M", "11y", "2M"). Compound tokens are recognized but kept in
their original form for display; they are not converted to decimal years.
"""

import re
import typing

_YEARS_PATTERN = re.compile(r"(\d+)Y", re.ASCII)
_MONTHS_PATTERN = re.compile(r"(\d+)M", re.ASCII)
_LEADING_INT_PATTERN = re.compile(r"^\s*([+-]?\d+)", re.ASCII)


def normalize_age(raw: typing.Any) -> str:
    if raw is None:
        return ""
    text = str(raw)
    if not text.strip():
        return ""

    cleaned = text.strip().upper()
    if _YEARS_PATTERN.search(cleaned) or _MONTHS_PATTERN.search(cleaned):
        # keep the original casing, e.g. "5y2m" stays "5y2m"
        return text.strip()
    return cleaned


def is_compound_age(age: str) -> bool:
    cleaned = age.strip().upper()
    return bool(_YEARS_PATTERN.search(cleaned) or _MONTHS_PATTERN.search(cleaned))


def parse_age_years(age: typing.Any) -> typing.Optional[int]:
    """
    Leading integer of an age token ("45" -> 45, "45.9" -> 45, "5Y2M" -> 5), or None.
    """
    if age is None:
        return None
    m = _LEADING_INT_PATTERN.match(str(age))
    if not m:
        return None
    return int(m.group(1))

"""
Patient record domain model.

Defines the PatientRecord dataclass: the fixed canonical fields every row
carries, plus a side mapping for passthrough columns copied verbatim from the
source file.
"""

import typing
from dataclasses import dataclass, field

from .disease import is_disease

_ALLOWED_GENDERS = {"M", "F", ""}

# Keys reserved for canonical fields in the row shape
CANONICAL_KEYS = ("age", "date", "gender", "diseases")
EXTRA_KEY = "extra"


@dataclass
class PatientRecord:
    """
    Represents one normalized patient row.

    Attributes:
        age: Normalized age token; empty string means unknown.
        date: Visit date as 'YYYY-MM-DD', or empty string.
        gender: 'M', 'F' or '' (unspecified).
        diseases: Disease catalog labels in insertion order, no duplicates.
        extra: Passthrough columns keyed by the original header.
    """

    age: str = ""
    date: str = ""
    gender: str = ""
    diseases: list[str] = field(default_factory=list)
    extra: dict[str, str] = field(default_factory=dict)

    def __post_init__(self):
        if self.gender not in _ALLOWED_GENDERS:
            raise ValueError(f"Invalid gender: {self.gender!r}")

        unknown = [d for d in self.diseases if not is_disease(d)]
        if unknown:
            raise ValueError(f"Unknown disease labels: {unknown}")
        if len(set(self.diseases)) != len(self.diseases):
            raise ValueError(f"Duplicate disease labels: {self.diseases}")

        # disease columns are folded into `diseases`, never stored verbatim
        folded = [header for header in self.extra if is_disease(header)]
        if folded:
            raise ValueError(f"Disease columns cannot be passthrough: {folded}")

    def has_disease(self, disease: str) -> bool:
        return disease in self.diseases

    def needs_attention(self) -> bool:
        """A row with no age or no disease still needs annotating."""
        return not self.age or not self.diseases

    def to_dict(self) -> dict[str, typing.Any]:
        """
        Row mapping with the canonical keys at the top level and the passthrough
        columns kept apart under `extra`, so a header named like a canonical key survives.
        """
        return {
            "age": self.age,
            "date": self.date,
            "gender": self.gender,
            "diseases": list(self.diseases),
            EXTRA_KEY: dict(self.extra),
        }

    @classmethod
    def from_dict(cls, row: typing.Mapping[str, typing.Any]) -> "PatientRecord":
        """
        Inverse of `to_dict`. A row without an `extra` mapping is read in the older
        flat form, where every non-canonical, non-disease key is a passthrough column.
        """
        if isinstance(row.get(EXTRA_KEY), typing.Mapping):
            passthrough = row[EXTRA_KEY].items()
        else:
            passthrough = ((k, v) for k, v in row.items() if k not in CANONICAL_KEYS)
        extra = {
            str(key): "" if value is None else str(value)
            for key, value in passthrough
            if not is_disease(str(key))
        }
        return cls(
            age=str(row.get("age") or ""),
            date=str(row.get("date") or ""),
            gender=str(row.get("gender") or ""),
            diseases=list(dict.fromkeys(d for d in (row.get("diseases") or []) if is_disease(d))),
            extra=extra,
        )

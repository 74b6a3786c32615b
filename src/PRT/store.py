"""
Record store.

Owns the working record set and the header list of the last ingested file.
It is passed explicitly to whatever needs it (ingestion, the editing
commands, the summarizer); there is no module-level instance.

Mutations copy the record list and replace one element, so a reader holding
the previous `records` list never sees a half-applied edit.

Session snapshot
----------------
The state can be written to a JSON file under the fixed key
"patient-storage" and restored on the next run:

    {"patient-storage": {"csvData": [...], "headers": [...]}}

Each csvData row holds age, date, gender and diseases, with the passthrough
columns under "extra".

Environment
-----------
PRT_SNAPSHOT_PATH : snapshot file (default ".prt/session.json" under the cwd)
"""

import dataclasses
import json
import logging
import os
import pathlib
import random
import typing

from .disease import DISEASES, is_disease
from .record import PatientRecord

SNAPSHOT_KEY = "patient-storage"
DEFAULT_SNAPSHOT_PATH = pathlib.Path(".prt") / "session.json"
_ALLOWED_GENDERS = {"M", "F", ""}


def default_snapshot_path() -> pathlib.Path:
    return pathlib.Path(os.getenv("PRT_SNAPSHOT_PATH", str(DEFAULT_SNAPSHOT_PATH)))


class RecordStore:
    def __init__(
            self,
            headers: typing.Optional[typing.Sequence[str]] = None,
            records: typing.Optional[typing.Sequence[PatientRecord]] = None,
    ):
        self._headers: list[str] = list(headers or [])
        self._records: list[PatientRecord] = list(records or [])

    @property
    def headers(self) -> list[str]:
        return self._headers

    @property
    def records(self) -> list[PatientRecord]:
        return self._records

    def __len__(self) -> int:
        return len(self._records)

    def load(self, headers: typing.Sequence[str], records: typing.Sequence[PatientRecord]) -> None:
        """Replace headers and records together."""
        self._headers, self._records = list(headers), list(records)

    def clear(self, snapshot_path: typing.Optional[pathlib.Path] = None) -> None:
        self._headers, self._records = [], []
        if snapshot_path is not None and snapshot_path.exists():
            snapshot_path.unlink()
            logging.debug(f"Removed snapshot {snapshot_path}")

    # point mutations
    def _replace(self, index: int, **changes) -> None:
        if not 0 <= index < len(self._records):
            raise IndexError(f"Record index {index} out of range (0..{len(self._records) - 1})")
        updated = list(self._records)
        updated[index] = dataclasses.replace(updated[index], **changes)
        self._records = updated

    def set_age(self, index: int, age: str) -> None:
        self._replace(index, age=age)

    def set_date(self, index: int, date: str) -> None:
        self._replace(index, date=date)

    def set_gender(self, index: int, gender: str) -> None:
        if gender not in _ALLOWED_GENDERS:
            raise ValueError(f"Invalid gender: {gender!r} (expected 'M', 'F' or '')")
        self._replace(index, gender=gender)

    def toggle_disease(self, index: int, disease: str) -> None:
        if not is_disease(disease):
            raise ValueError(f"Unknown disease label: {disease!r}")
        if not 0 <= index < len(self._records):
            raise IndexError(f"Record index {index} out of range (0..{len(self._records) - 1})")
        current = self._records[index].diseases
        if disease in current:
            diseases = [d for d in current if d != disease]
        else:
            diseases = current + [disease]
        self._replace(index, diseases=diseases)

    def autofill_random(self, rng: typing.Optional[random.Random] = None) -> None:
        """
        Demo helper: random age 1..90 and zero to three random diseases per record.
        """
        rng = rng or random.Random()
        filled = []
        for record in self._records:
            diseases = rng.sample(DISEASES, rng.randint(0, 3))
            filled.append(dataclasses.replace(record, age=str(rng.randint(1, 90)), diseases=diseases))
        self._records = filled

    # session snapshot
    def to_snapshot(self) -> dict[str, typing.Any]:
        return {
            SNAPSHOT_KEY: {
                "csvData": [record.to_dict() for record in self._records],
                "headers": list(self._headers),
            }
        }

    def snapshot(self, path: typing.Optional[pathlib.Path] = None) -> pathlib.Path:
        path = path or default_snapshot_path()
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w", encoding="utf-8") as out_f:
            json.dump(self.to_snapshot(), out_f, ensure_ascii=False, indent=2)
        logging.debug(f"Wrote snapshot of {len(self._records)} records to {path}")
        return path

    @classmethod
    def from_snapshot(cls, payload: typing.Mapping[str, typing.Any]) -> "RecordStore":
        state = payload.get(SNAPSHOT_KEY) or {}
        headers = [str(h) for h in state.get("headers") or []]
        records = [PatientRecord.from_dict(row) for row in state.get("csvData") or []]
        return cls(headers, records)

    @classmethod
    def restore(cls, path: typing.Optional[pathlib.Path] = None) -> "RecordStore":
        """
        Load the snapshot at `path`. A missing or unreadable snapshot gives an empty store.
        """
        path = path or default_snapshot_path()
        if not path.is_file():
            return cls()
        try:
            with open(path, encoding="utf-8") as in_f:
                payload = json.load(in_f)
            return cls.from_snapshot(payload)
        except (OSError, ValueError, TypeError, AttributeError) as e:
            logging.warning(f"Ignoring unreadable snapshot {path}: {e}")
            return cls()

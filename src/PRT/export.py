"""
Spreadsheet export.

One row per record: passthrough columns first (original header order), then
Age, Date, Gender, then one Yes/No column per disease in catalog order.
"""

import datetime
import logging
import pathlib
import typing

import pandas as pd

from .disease import DISEASES, is_disease
from .record import PatientRecord

CANONICAL_EXPORT_COLUMNS = ("Age", "Date", "Gender")
TEMPLATE_PASSTHROUGH_COLUMNS = ("Name",)
SHEET_NAME = "Patients"


def export_columns(headers: typing.Sequence[str]) -> list[str]:
    """
    Passthrough headers that would clash with a canonical column (any casing)
    are dropped; the canonical column carries the normalized value instead.
    """
    reserved = {column.casefold() for column in CANONICAL_EXPORT_COLUMNS}
    passthrough = [h for h in headers if not is_disease(h) and h.strip().casefold() not in reserved]
    return passthrough + list(CANONICAL_EXPORT_COLUMNS) + list(DISEASES)


def records_to_frame(headers: typing.Sequence[str], records: typing.Sequence[PatientRecord]) -> pd.DataFrame:
    columns = export_columns(headers)
    passthrough = columns[: len(columns) - len(CANONICAL_EXPORT_COLUMNS) - len(DISEASES)]

    rows = []
    for record in records:
        row = {header: record.extra.get(header, "") for header in passthrough}
        row["Age"] = record.age
        row["Date"] = record.date
        row["Gender"] = record.gender
        for disease in DISEASES:
            row[disease] = "Yes" if record.has_disease(disease) else "No"
        rows.append(row)
    return pd.DataFrame(rows, columns=columns)


def export_filename(today: typing.Optional[datetime.date] = None) -> str:
    today = today or datetime.date.today()
    return f"patient-records-{today.isoformat()}.xlsx"


def _write_frame(path: pathlib.Path, df: pd.DataFrame) -> pathlib.Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    with pd.ExcelWriter(path, engine="openpyxl") as writer:
        df.to_excel(writer, sheet_name=SHEET_NAME, index=False)
    return path


def export_xlsx(
        path: typing.Union[str, pathlib.Path],
        headers: typing.Sequence[str],
        records: typing.Sequence[PatientRecord],
) -> pathlib.Path:
    out = _write_frame(pathlib.Path(path), records_to_frame(headers, records))
    logging.info(f"Exported {len(records)} records to {out}")
    return out


def write_template(path: typing.Union[str, pathlib.Path]) -> pathlib.Path:
    """Blank workbook with the columns the ingester recognizes."""
    columns = list(TEMPLATE_PASSTHROUGH_COLUMNS) + list(CANONICAL_EXPORT_COLUMNS) + list(DISEASES)
    return _write_frame(pathlib.Path(path), pd.DataFrame(columns=columns))

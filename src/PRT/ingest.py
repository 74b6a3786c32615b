"""
Ingestion orchestrator.

Detects the input container (delimited text vs. spreadsheet workbook), pulls
out the header row and raw rows, and drives the column mapper over every row.
A whole file becomes a whole record set: the store is only touched once, after
every row has been mapped.
"""

import logging
import pathlib
import typing
from dataclasses import dataclass, field

from stairval.notepad import Notepad, create_notepad

from .loader import is_spreadsheet, load_text_rows, load_workbook_rows
from .mapper import DefaultMapper, TableMapper
from .record import PatientRecord

if typing.TYPE_CHECKING:
    from .store import RecordStore


@dataclass
class IngestResult:
    headers: list[str] = field(default_factory=list)
    records: list[PatientRecord] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not self.headers


def ingest(
        filename: str,
        raw_bytes: bytes,
        encoding: str = "utf-8",
        notepad: typing.Optional[Notepad] = None,
        mapper: typing.Optional[TableMapper] = None,
) -> IngestResult:
    """
    Turn the full bytes of one uploaded file into headers + canonical records.
    Empty input (no header row) gives an empty result, not an error.
    """
    if notepad is None:
        notepad = create_notepad("ingest")
    if mapper is None:
        mapper = DefaultMapper()

    if is_spreadsheet(filename):
        logging.debug(f"{filename!r} → workbook")
        headers, rows = load_workbook_rows(raw_bytes, filename)
    else:
        logging.debug(f"{filename!r} → delimited text ({encoding})")
        headers, rows = load_text_rows(raw_bytes, encoding=encoding)

    if not headers:
        logging.info(f"No header row found in {filename!r}; nothing to ingest")
        return IngestResult()

    records = mapper.apply_mapping(headers, rows, notepad)
    logging.info(f"Ingested {len(records)} records from {filename!r}")
    return IngestResult(headers=list(headers), records=records)


def ingest_file(
        path: typing.Union[str, pathlib.Path],
        store: "RecordStore",
        encoding: str = "utf-8",
        notepad: typing.Optional[Notepad] = None,
) -> IngestResult:
    """
    Read a file in one go, ingest it and replace the store's headers and records.
    The store is left untouched when the file yields no header row.
    """
    path = pathlib.Path(path)
    result = ingest(path.name, path.read_bytes(), encoding=encoding, notepad=notepad)
    if not result.is_empty:
        store.load(result.headers, result.records)
    return result

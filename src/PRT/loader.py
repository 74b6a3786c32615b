import io
import logging

import pandas as pd

from .tokenizer import strip_bom, tokenize

# Filename suffixes routed to the workbook reader; everything else is decoded as text
SPREADSHEET_SUFFIXES = (".xlsx", ".xlsm", ".xls")

RawTable = tuple[list[str], list[list[str]]]

# Legacy BIFF workbooks need xlrd; openpyxl reads the OOXML formats
LEGACY_SPREADSHEET_SUFFIX = ".xls"


class IngestError(ValueError):
    """Raised when a workbook cannot be read at all."""


def is_spreadsheet(filename: str) -> bool:
    return filename.strip().lower().endswith(SPREADSHEET_SUFFIXES)


def workbook_engine(filename: str) -> str:
    return "xlrd" if filename.strip().lower().endswith(LEGACY_SPREADSHEET_SUFFIX) else "openpyxl"


def load_text_rows(raw_bytes: bytes, encoding: str = "utf-8") -> RawTable:
    """
    Decode delimited text into a header row and raw value rows:
      - strip a leading byte order mark
      - split on newlines, drop blank/whitespace-only lines
      - first surviving line = header, the rest = values
    """
    text = strip_bom(raw_bytes.decode(encoding, errors="replace"))
    lines = [line for line in text.split("\n") if line.strip()]
    if not lines:
        return [], []

    headers = tokenize(lines[0])
    rows = [tokenize(line) for line in lines[1:]]
    return headers, rows


def load_workbook_rows(raw_bytes: bytes, filename: str = "") -> RawTable:
    """
    Read the first worksheet as a grid of strings:
      - first non-empty row = header (cells trimmed)
      - subsequent non-blank rows stringified and trimmed, empty cells -> ''
      - rows padded to the header width
    """
    engine = workbook_engine(filename)
    try:
        df = pd.read_excel(
            io.BytesIO(raw_bytes), sheet_name=0, header=None, dtype=str, engine=engine
        )
    except Exception as e:
        raise IngestError(f"Cannot read workbook: {e}") from e

    grid = [[_cell_to_str(cell) for cell in row] for row in df.itertuples(index=False, name=None)]

    header_index = next((i for i, row in enumerate(grid) if any(row)), None)
    if header_index is None:
        return [], []

    header_row = grid[header_index]
    # trailing unnamed columns carry no header to map onto
    while header_row and not header_row[-1]:
        header_row = header_row[:-1]
    width = len(header_row)

    rows = []
    for row in grid[header_index + 1:]:
        if not any(row):
            # blank rows are dropped, as blank lines are for text input
            continue
        values = row[:width]
        values += [""] * (width - len(values))
        rows.append(values)

    logging.debug(f"Workbook first sheet: {width} columns, {len(rows)} rows")
    return header_row, rows


def _cell_to_str(cell) -> str:
    if cell is None or (not isinstance(cell, str) and pd.isna(cell)):
        return ""
    return str(cell).strip()

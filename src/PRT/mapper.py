import abc
import logging
import typing

from stairval.notepad import Notepad
from typing import Sequence

from .age import normalize_age
from .dates import parse_date
from .disease import is_disease
from .record import PatientRecord

# Exact (case-insensitive) header names for canonical fields
AGE_HEADER = "age"
GENDER_HEADER = "gender"
# Any header containing one of these (case-insensitive) holds the visit date
DATE_HEADER_KEYWORDS = ("date", "time")

ALLOWED_GENDERS = {"M", "F"}
DISEASE_PRESENT_VALUE = "yes"


class TableMapper(metaclass=abc.ABCMeta):
    @abc.abstractmethod
    def apply_mapping(
            self, headers: Sequence[str], rows: Sequence[Sequence[str]], notepad: Notepad
    ) -> list[PatientRecord]:
        # return one canonical record per raw row, in input order
        raise NotImplementedError


class DefaultMapper(TableMapper):
    """
    Classifies each source column as age / date-or-time / gender / disease flag / passthrough
    and builds a PatientRecord per row.
    """

    def apply_mapping(
            self, headers: Sequence[str], rows: Sequence[Sequence[str]], notepad: Notepad
    ) -> list[PatientRecord]:
        records: list[PatientRecord] = []
        for row_index, raw_values in enumerate(rows):
            records.append(self.map_row(headers, raw_values, notepad, row_index=row_index))
        logging.debug(f"Mapped {len(records)} rows over {len(headers)} columns")
        return records

    @staticmethod
    def is_age_header(header: str) -> bool:
        return header.strip().casefold() == AGE_HEADER

    @staticmethod
    def is_date_header(header: str) -> bool:
        lowered = header.casefold()
        return any(keyword in lowered for keyword in DATE_HEADER_KEYWORDS)

    @staticmethod
    def is_gender_header(header: str) -> bool:
        return header.strip().casefold() == GENDER_HEADER

    @staticmethod
    def _normalize_gender(value: typing.Any) -> str:
        """
        'm'/'M' -> 'M', 'f'/'F' -> 'F', anything else -> '' (unspecified).
        """
        if value is None:
            return ""
        s = str(value).strip().upper()
        return s if s in ALLOWED_GENDERS else ""

    @staticmethod
    def _is_yes(value: typing.Any) -> bool:
        if value is None:
            return False
        return str(value).strip().casefold() == DISEASE_PRESENT_VALUE

    @staticmethod
    def map_row(
            headers: Sequence[str],
            raw_values: Sequence[str],
            notepad: typing.Optional[Notepad] = None,
            row_index: typing.Optional[int] = None,
            record: typing.Optional[PatientRecord] = None,
    ) -> PatientRecord:
        """
        Build (or update, when `record` is given) a PatientRecord from one raw row.

        Every rule that matches a column fires, so an 'Age' column both sets `age`
        and is kept as passthrough. Disease columns are the exception: they only
        feed `diseases`. Rows shorter than the header are padded with ''.
        """
        if record is None:
            record = PatientRecord()
        where = f"row {row_index + 1}" if row_index is not None else "row"

        for column_index, header in enumerate(headers):
            raw = raw_values[column_index] if column_index < len(raw_values) else ""
            value = "" if raw is None else str(raw).strip()

            if DefaultMapper.is_age_header(header):
                record.age = normalize_age(value)

            if DefaultMapper.is_date_header(header):
                result = parse_date(value)
                record.date = result.value
                if value and not result.ok and notepad is not None:
                    notepad.add_warning(f"{where}: cannot parse {header!r} value {value!r} as a date")

            if DefaultMapper.is_gender_header(header):
                record.gender = DefaultMapper._normalize_gender(value)
                if value and not record.gender and notepad is not None:
                    notepad.add_warning(f"{where}: unrecognized gender {value!r}, expected M or F")

            if is_disease(header):
                if DefaultMapper._is_yes(value) and header not in record.diseases:
                    record.diseases.append(header)
            else:
                record.extra[header] = value

        return record

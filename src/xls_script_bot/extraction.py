"""Contract extraction from Excel workbooks."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date, datetime, time
from enum import Enum
from pathlib import Path
from typing import Any, Iterable, List, Optional, Sequence

import openpyxl
import xlrd

from .exceptions import DecodeError


LOGGER = logging.getLogger("xls_script_bot.extraction")

MARKER = "ББС ІНШУРАНС"
RECORD_SEPARATOR = "-"


@dataclass
class Sheet:
    """One decoded worksheet: its name and rows of text cells."""

    name: str
    rows: List[List[str]] = field(default_factory=list)


class ExtractionOutcome(str, Enum):
    FOUND = "found"
    NO_DATA = "no_data"


@dataclass
class ExtractionResult:
    """Ordered contract records plus how the scan ended."""

    records: List[str]
    outcome: ExtractionOutcome
    decoder: str = ""
    sheet_count: int = 0

    @property
    def has_data(self) -> bool:
        return self.outcome is ExtractionOutcome.FOUND


def cell_text(value: Any) -> str:
    """Render a raw cell value the way a spreadsheet would display it."""
    if value is None:
        return ""
    if isinstance(value, bool):
        return "TRUE" if value else "FALSE"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if isinstance(value, (datetime, date, time)):
        return value.isoformat()
    return str(value)


class SheetDecoder:
    """Turns a workbook file into sheets of text rows."""

    name: str = "base"

    def decode(self, path: Path) -> List[Sheet]:  # pragma: no cover - documentation method
        raise NotImplementedError


class XlsxDecoder(SheetDecoder):
    """Office Open XML workbooks (.xlsx) read through openpyxl."""

    name = "xlsx"

    def decode(self, path: Path) -> List[Sheet]:
        try:
            workbook = openpyxl.load_workbook(Path(path), read_only=True, data_only=True)
        except Exception as exc:  # openpyxl surfaces zip, xml and IO errors alike
            raise DecodeError(f"failed to open Excel file: {exc}") from exc

        sheets: List[Sheet] = []
        try:
            for worksheet in workbook.worksheets:
                # Stored dimensions can understate the used range; read the cells themselves.
                worksheet.reset_dimensions()
                rows = [
                    [cell_text(value) for value in row]
                    for row in worksheet.iter_rows(values_only=True)
                ]
                sheets.append(Sheet(name=worksheet.title, rows=rows))
        except Exception as exc:
            raise DecodeError(f"failed to read Excel file: {exc}") from exc
        finally:
            workbook.close()
        return sheets


class XlsDecoder(SheetDecoder):
    """Legacy BIFF workbooks (.xls) read through xlrd."""

    name = "xls"

    def decode(self, path: Path) -> List[Sheet]:
        try:
            book = xlrd.open_workbook(str(path), on_demand=True)
        except Exception as exc:  # xlrd raises a mix of XLRDError, OSError and struct errors
            raise DecodeError(f"failed to open XLS file: {exc}") from exc

        sheets: List[Sheet] = []
        try:
            for index in range(book.nsheets):
                worksheet = book.sheet_by_index(index)
                rows = [
                    [
                        _xls_cell_text(value, cell_type, book.datemode)
                        for value, cell_type in zip(worksheet.row_values(row_index), worksheet.row_types(row_index))
                    ]
                    for row_index in range(worksheet.nrows)
                ]
                sheets.append(Sheet(name=worksheet.name, rows=rows))
                book.unload_sheet(index)
        except Exception as exc:
            raise DecodeError(f"failed to read XLS file: {exc}") from exc
        finally:
            book.release_resources()
        return sheets


def _xls_cell_text(value: Any, cell_type: int, datemode: int) -> str:
    if cell_type == xlrd.XL_CELL_DATE:
        return cell_text(xlrd.xldate_as_datetime(value, datemode))
    if cell_type == xlrd.XL_CELL_BOOLEAN:
        return cell_text(bool(value))
    return cell_text(value)


DECODERS = {
    ".xlsx": XlsxDecoder,
    ".xls": XlsDecoder,
}
SPREADSHEET_EXTENSIONS = tuple(DECODERS)


def is_spreadsheet_name(file_name: str) -> bool:
    """True when *file_name* carries one of the accepted Excel extensions."""
    return (file_name or "").lower().endswith(SPREADSHEET_EXTENSIONS)


def decoder_for(path: Path) -> SheetDecoder:
    name = str(path).lower()
    for extension, decoder_cls in DECODERS.items():
        if name.endswith(extension):
            return decoder_cls()
    raise DecodeError(f"unsupported spreadsheet extension: {Path(path).suffix or '<none>'}")


def record_from_row(row: Sequence[str]) -> Optional[str]:
    """Return the contract record for a marker row, or None for any other row."""
    if not row or row[0].strip() != MARKER:
        return None
    part1 = row[1] if len(row) > 1 else ""
    part2 = row[2] if len(row) > 2 else ""
    return f"{part1}{RECORD_SEPARATOR}{part2}"


def extract_records(sheets: Iterable[Sheet]) -> List[str]:
    """Collect records from every marker row, sheet by sheet, top to bottom."""
    records: List[str] = []
    for sheet in sheets:
        found = 0
        for row in sheet.rows:
            record = record_from_row(row)
            if record is not None:
                records.append(record)
                found += 1
        LOGGER.debug("Sheet %s: %d matching rows", sheet.name, found)
    return records


def extract_from_file(path: Path) -> ExtractionResult:
    """
    Decode the workbook at *path* and extract its contract records.

    Raises DecodeError when the file cannot be read as a spreadsheet. A workbook
    without marker rows is not an error: it yields a NO_DATA result.
    """
    decoder = decoder_for(path)
    sheets = decoder.decode(Path(path))
    records = extract_records(sheets)
    outcome = ExtractionOutcome.FOUND if records else ExtractionOutcome.NO_DATA
    LOGGER.info(
        "Extracted %d records from %s (%s, %d sheets)",
        len(records),
        path,
        decoder.name,
        len(sheets),
    )
    return ExtractionResult(records=records, outcome=outcome, decoder=decoder.name, sheet_count=len(sheets))


__all__ = [
    "DECODERS",
    "ExtractionOutcome",
    "ExtractionResult",
    "MARKER",
    "Sheet",
    "SPREADSHEET_EXTENSIONS",
    "SheetDecoder",
    "XlsDecoder",
    "XlsxDecoder",
    "cell_text",
    "decoder_for",
    "extract_from_file",
    "extract_records",
    "is_spreadsheet_name",
    "record_from_row",
]

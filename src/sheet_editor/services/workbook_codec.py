"""Workbook parser and serializer built on openpyxl.

Converts OOXML workbook bytes into a WorkbookDocument and back. Only scalar
cell content survives the trip: styles, formulas and number formats are not
modeled.
"""

from __future__ import annotations

import os
import tempfile
from collections.abc import Iterable
from datetime import date, datetime, time
from io import BytesIO
from pathlib import Path
from typing import Any

from openpyxl import Workbook, load_workbook
from openpyxl.worksheet.worksheet import Worksheet

from sheet_editor.utils.exceptions import WorkbookParseError, WorkbookSerializeError
from sheet_editor.workbook_document import (
    SCALAR_TYPES,
    CellValue,
    SheetTable,
    WorkbookDocument,
)

XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"


# ---------------------------------------------------------------------- #
# Parsing
# ---------------------------------------------------------------------- #


def parse_workbook(content: bytes, filename: str | None = None) -> WorkbookDocument:
    """Decode workbook bytes into a document with the first sheet active.

    Args:
        content: Raw ``.xlsx``/``.xlsm`` bytes.
        filename: Optional original filename, used in error details only.

    Raises:
        WorkbookParseError: If the bytes are not a readable workbook or the
            workbook has no sheets.
    """
    if not content:
        raise WorkbookParseError("Workbook is empty", filename=filename)

    try:
        workbook = load_workbook(filename=BytesIO(content), data_only=True)
    except Exception as e:
        raise WorkbookParseError(
            f"Invalid Excel file: {e}",
            filename=filename,
            details={"reason": type(e).__name__},
        ) from e

    try:
        # Chartsheets hold no cells and are not editable.
        worksheets = list(workbook.worksheets)
        if not worksheets:
            raise WorkbookParseError(
                "Invalid Excel file - no sheets found", filename=filename
            )
        tables = {sheet.title: _read_sheet(sheet) for sheet in worksheets}
    finally:
        workbook.close()

    return WorkbookDocument.from_tables(tables)


def _read_sheet(sheet: Worksheet) -> SheetTable:
    """Read a worksheet into headers plus data rows."""
    # Start at A1 so leading blank rows and columns keep their positions.
    rows = [
        _trim_row([normalize_cell(v) for v in values])
        for values in sheet.iter_rows(min_row=1, min_col=1, values_only=True)
    ]
    while rows and not rows[-1]:
        rows.pop()

    if not rows:
        return SheetTable(headers=[], rows=[])

    headers = ["" if v is None else str(v) for v in rows[0]]
    return SheetTable(headers=headers, rows=rows[1:])


def normalize_cell(value: Any) -> CellValue:
    """Map an openpyxl cell value onto an opaque scalar.

    Empty strings read as empty cells, the same way they are written.
    """
    if value is None or value == "":
        return None
    if isinstance(value, SCALAR_TYPES):
        return value
    if isinstance(value, (datetime, date, time)):
        return value.isoformat()
    return str(value)


def _trim_row(values: list[CellValue]) -> list[CellValue]:
    end = len(values)
    while end and values[end - 1] is None:
        end -= 1
    return values[:end]


# ---------------------------------------------------------------------- #
# Serialization
# ---------------------------------------------------------------------- #


def serialize_workbook(document: WorkbookDocument) -> bytes:
    """Encode every sheet of ``document`` as ``.xlsx`` bytes.

    Sheets are written in ``sheet_names`` order. Row 1 of each sheet holds the
    headers, later rows hold the data.

    Raises:
        WorkbookSerializeError: If the workbook cannot be encoded.
    """
    try:
        workbook = Workbook()
        workbook.remove(workbook.active)
        for name in document.sheet_names:
            table = document.sheets[name]
            sheet = workbook.create_sheet(title=name)
            _write_rows(sheet, [table.headers, *table.rows])

        buffer = BytesIO()
        workbook.save(buffer)
    except Exception as e:
        raise WorkbookSerializeError(
            f"Failed to export the Excel file: {e}",
            details={"reason": type(e).__name__},
        ) from e
    return buffer.getvalue()


def _write_rows(sheet: Worksheet, rows: Iterable[list[CellValue]]) -> None:
    for row_number, row in enumerate(rows, start=1):
        for column_number, value in enumerate(row, start=1):
            if value is None or value == "":
                continue
            cell = sheet.cell(row=row_number, column=column_number, value=value)
            if isinstance(value, str) and cell.data_type == "f":
                # Values are opaque; keep "=..." as text rather than a formula.
                cell.data_type = "s"


def write_workbook(document: WorkbookDocument, path: str | Path) -> Path:
    """Serialize ``document`` and write it to ``path`` atomically.

    Raises:
        WorkbookSerializeError: If encoding or writing fails. No partial file
            is left at ``path``.
    """
    return atomic_write_bytes(path, serialize_workbook(document))


def atomic_write_bytes(path: str | Path, content: bytes) -> Path:
    """Write ``content`` to ``path`` through a temporary sibling file.

    The temporary file is removed on every failure path, so ``path`` either
    holds the complete content or is untouched.

    Raises:
        WorkbookSerializeError: If the destination cannot be written.
    """
    target = Path(path)
    temp_path: str | None = None
    try:
        fd, temp_path = tempfile.mkstemp(
            dir=target.parent, prefix=f".{target.name}.", suffix=".tmp"
        )
        with os.fdopen(fd, "wb") as f:
            f.write(content)
        os.replace(temp_path, target)
        temp_path = None
    except OSError as e:
        raise WorkbookSerializeError(
            f"Failed to write workbook to {target}: {e}",
            filename=target.name,
            details={"path": str(target)},
        ) from e
    finally:
        if temp_path is not None and os.path.exists(temp_path):
            os.unlink(temp_path)
    return target

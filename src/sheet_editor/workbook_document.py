"""Dataclasses representing an editable multi-sheet workbook."""

from __future__ import annotations

import copy
from dataclasses import dataclass, field
from typing import Any

from openpyxl.cell.cell import ILLEGAL_CHARACTERS_RE

from sheet_editor.utils.exceptions import (
    CellIndexError,
    CellValueError,
    UnknownSheetError,
)

CellValue = str | int | float | bool | None
"""Opaque scalar stored in a cell. No formulas, styles or formats."""

SCALAR_TYPES = (str, int, float, bool)


def is_cell_value(value: Any) -> bool:
    """Return True if ``value`` can be stored in a cell."""
    return value is None or isinstance(value, SCALAR_TYPES)


@dataclass
class SheetTable:
    """Tabular content of a single worksheet.

    ``headers`` holds the first source row; ``rows`` holds every later row,
    indexed by column position. Rows may be shorter or longer than the
    header row.
    """

    headers: list[str] = field(default_factory=list)
    rows: list[list[CellValue]] = field(default_factory=list)

    @property
    def row_count(self) -> int:
        return len(self.rows)

    def to_dict(self) -> dict[str, Any]:
        return {"headers": list(self.headers), "data": [list(r) for r in self.rows]}


@dataclass
class WorkbookDocument:
    """A parsed workbook with one active sheet exposed for reading and editing.

    ``sheets`` is the single source of truth. ``headers`` and ``data`` are
    computed views of ``sheets[active_sheet]``, so switching sheets never
    needs to copy edits back.
    """

    sheet_names: list[str]
    sheets: dict[str, SheetTable]
    active_sheet: str

    def __post_init__(self) -> None:
        if not self.sheet_names:
            raise ValueError("A workbook document needs at least one sheet")
        if len(set(self.sheet_names)) != len(self.sheet_names):
            raise ValueError(f"Duplicate sheet names: {self.sheet_names}")
        if set(self.sheets) != set(self.sheet_names):
            raise ValueError(
                "Sheet tables do not match sheet names: "
                f"names={self.sheet_names}, tables={list(self.sheets)}"
            )
        if self.active_sheet not in self.sheet_names:
            raise ValueError(f"Active sheet '{self.active_sheet}' is not a sheet")

    @classmethod
    def from_tables(cls, tables: dict[str, SheetTable]) -> WorkbookDocument:
        """Build a document from ordered tables, activating the first sheet."""
        names = list(tables)
        if not names:
            raise ValueError("A workbook document needs at least one sheet")
        return cls(sheet_names=names, sheets=dict(tables), active_sheet=names[0])

    # ------------------------------------------------------------------ #
    # Active sheet view
    # ------------------------------------------------------------------ #

    @property
    def active_table(self) -> SheetTable:
        return self.sheets[self.active_sheet]

    @property
    def headers(self) -> list[str]:
        return self.active_table.headers

    @property
    def data(self) -> list[list[CellValue]]:
        return self.active_table.rows

    # ------------------------------------------------------------------ #
    # Mutations
    # ------------------------------------------------------------------ #

    def switch_sheet(self, sheet_name: str) -> None:
        """Make ``sheet_name`` the active sheet.

        Switching to the sheet that is already active is a no-op.

        Raises:
            UnknownSheetError: If the sheet is not part of the document. The
                document is left unchanged.
        """
        if sheet_name not in self.sheet_names:
            raise UnknownSheetError(sheet_name, available_sheets=self.sheet_names)
        self.active_sheet = sheet_name

    def update_cell(self, row_index: int, column_index: int, value: CellValue) -> None:
        """Write ``value`` into the active sheet's data rows.

        Rows past the end are created as ``len(headers)`` empty strings.
        A row shorter than ``column_index`` is padded with empty strings.
        Header cells are never touched.

        Raises:
            CellIndexError: If either index is negative or not an integer.
            CellValueError: If ``value`` is not a scalar or holds characters
                that cannot be written to a worksheet.
        """
        _check_index(row_index, column_index)
        if not is_cell_value(value):
            raise CellValueError(value)
        if isinstance(value, str) and ILLEGAL_CHARACTERS_RE.search(value):
            raise CellValueError(
                value,
                message="Cell value contains characters a worksheet cannot store",
            )

        table = self.active_table
        while len(table.rows) <= row_index:
            table.rows.append([""] * len(table.headers))

        row = table.rows[row_index]
        if len(row) <= column_index:
            row.extend([""] * (column_index + 1 - len(row)))
        row[column_index] = value

    # ------------------------------------------------------------------ #
    # Conversion
    # ------------------------------------------------------------------ #

    def copy(self) -> WorkbookDocument:
        """Return a deep, independent copy of the document."""
        return copy.deepcopy(self)

    def to_dict(self) -> dict[str, Any]:
        """Flattened JSON-ready view, with the active sheet also at top level."""
        active = self.active_table.to_dict()
        return {
            "headers": active["headers"],
            "data": active["data"],
            "sheet_names": list(self.sheet_names),
            "active_sheet": self.active_sheet,
            "sheets": {name: self.sheets[name].to_dict() for name in self.sheet_names},
        }


def _check_index(row_index: Any, column_index: Any) -> None:
    for name, index in (("row_index", row_index), ("column_index", column_index)):
        # bool is an int subclass but never a coordinate
        if isinstance(index, bool) or not isinstance(index, int):
            raise CellIndexError(
                f"{name} must be an integer, got {type(index).__name__}",
                row_index=row_index,
                column_index=column_index,
            )
        if index < 0:
            raise CellIndexError(
                f"{name} must be non-negative, got {index}",
                row_index=row_index,
                column_index=column_index,
            )

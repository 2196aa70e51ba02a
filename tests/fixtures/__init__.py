"""Helpers that build small workbooks in memory for tests.

Example usage:
    from tests.fixtures import build_workbook_bytes

    content = build_workbook_bytes({"Sheet1": [["Name", "Age"], ["Alice", "30"]]})
"""

from io import BytesIO
from typing import Any

from openpyxl import Workbook


def build_workbook_bytes(sheets: dict[str, list[list[Any]]]) -> bytes:
    """Build an .xlsx workbook whose sheets hold the given rows.

    Args:
        sheets: Ordered mapping of sheet name to rows. An empty list leaves
            the sheet blank.

    Returns:
        The workbook encoded as .xlsx bytes.
    """
    wb = Workbook()
    wb.remove(wb.active)
    for name, rows in sheets.items():
        ws = wb.create_sheet(title=name)
        for row in rows:
            ws.append(row)
    buffer = BytesIO()
    wb.save(buffer)
    return buffer.getvalue()


def two_sheet_workbook() -> bytes:
    """Sheet1 holds one person, Sheet2 holds only a header."""
    return build_workbook_bytes(
        {
            "Sheet1": [["Name", "Age"], ["Alice", "30"]],
            "Sheet2": [["X"]],
        }
    )

"""Tests for the workbook document model."""

import pytest

from sheet_editor.utils.exceptions import (
    CellIndexError,
    CellValueError,
    UnknownSheetError,
)
from sheet_editor.workbook_document import SheetTable, WorkbookDocument


class TestConstruction:
    """Tests for document invariants."""

    def test_from_tables_activates_first_sheet(
        self, document: WorkbookDocument
    ) -> None:
        assert document.sheet_names == ["Sheet1", "Sheet2"]
        assert document.active_sheet == "Sheet1"

    def test_flattened_view_mirrors_active_sheet(
        self, document: WorkbookDocument
    ) -> None:
        assert document.headers == ["Name", "Age"]
        assert document.data == [["Alice", "30"]]
        assert document.headers is document.sheets["Sheet1"].headers
        assert document.data is document.sheets["Sheet1"].rows

    def test_rejects_empty_document(self) -> None:
        with pytest.raises(ValueError):
            WorkbookDocument.from_tables({})

    def test_rejects_active_sheet_outside_names(self) -> None:
        with pytest.raises(ValueError):
            WorkbookDocument(
                sheet_names=["A"], sheets={"A": SheetTable()}, active_sheet="B"
            )

    def test_rejects_missing_table(self) -> None:
        with pytest.raises(ValueError):
            WorkbookDocument(
                sheet_names=["A", "B"], sheets={"A": SheetTable()}, active_sheet="A"
            )

    def test_rejects_duplicate_names(self) -> None:
        with pytest.raises(ValueError):
            WorkbookDocument(
                sheet_names=["A", "A"], sheets={"A": SheetTable()}, active_sheet="A"
            )

    def test_to_dict_shape(self, document: WorkbookDocument) -> None:
        assert document.to_dict() == {
            "headers": ["Name", "Age"],
            "data": [["Alice", "30"]],
            "sheet_names": ["Sheet1", "Sheet2"],
            "active_sheet": "Sheet1",
            "sheets": {
                "Sheet1": {"headers": ["Name", "Age"], "data": [["Alice", "30"]]},
                "Sheet2": {"headers": ["X"], "data": []},
            },
        }

    def test_copy_is_independent(self, document: WorkbookDocument) -> None:
        clone = document.copy()
        clone.update_cell(0, 0, "Bob")
        clone.switch_sheet("Sheet2")

        assert document.data == [["Alice", "30"]]
        assert document.active_sheet == "Sheet1"


class TestSwitchSheet:
    """Tests for changing the active sheet."""

    def test_switch_exposes_target_sheet(self, document: WorkbookDocument) -> None:
        document.switch_sheet("Sheet2")

        assert document.active_sheet == "Sheet2"
        assert document.headers == ["X"]
        assert document.data == []

    def test_switch_to_active_sheet_is_noop(self, document: WorkbookDocument) -> None:
        before = document.copy()
        document.switch_sheet(document.active_sheet)

        assert document == before

    def test_unknown_sheet_raises_and_leaves_document(
        self, document: WorkbookDocument
    ) -> None:
        before = document.copy()

        with pytest.raises(UnknownSheetError) as exc_info:
            document.switch_sheet("Missing")

        assert exc_info.value.sheet_name == "Missing"
        assert exc_info.value.available_sheets == ["Sheet1", "Sheet2"]
        assert document == before

    def test_edits_survive_switching_away_and_back(
        self, document: WorkbookDocument
    ) -> None:
        document.update_cell(0, 1, "31")
        document.switch_sheet("Sheet2")
        document.switch_sheet("Sheet1")

        assert document.data == [["Alice", "31"]]

    def test_switch_does_not_touch_sheet_content(
        self, document: WorkbookDocument
    ) -> None:
        before = {name: table.to_dict() for name, table in document.sheets.items()}
        document.switch_sheet("Sheet2")
        after = {name: table.to_dict() for name, table in document.sheets.items()}

        assert before == after


class TestUpdateCell:
    """Tests for writing cells of the active sheet."""

    def test_overwrites_existing_cell(self, document: WorkbookDocument) -> None:
        document.update_cell(0, 1, "31")

        assert document.data == [["Alice", "31"]]
        assert document.sheets["Sheet1"].rows == [["Alice", "31"]]

    def test_headers_are_never_edited(self, document: WorkbookDocument) -> None:
        document.update_cell(0, 0, "Bob")

        assert document.headers == ["Name", "Age"]

    def test_grows_rows_past_the_end(self) -> None:
        doc = WorkbookDocument.from_tables(
            {
                "S": SheetTable(
                    headers=["A", "B", "C"], rows=[[1, 2, 3], [4, 5, 6]]
                )
            }
        )

        doc.update_cell(5, 0, "new")

        assert len(doc.data) == 6
        assert doc.data[0] == [1, 2, 3]
        assert doc.data[1] == [4, 5, 6]
        for row in doc.data[2:5]:
            assert row == ["", "", ""]
        assert doc.data[5] == ["new", "", ""]

    def test_pads_short_row_up_to_column(self, document: WorkbookDocument) -> None:
        document.update_cell(0, 4, True)

        assert document.data == [["Alice", "30", "", "", True]]

    def test_new_row_wider_than_headers(self, document: WorkbookDocument) -> None:
        document.update_cell(1, 3, 7.5)

        assert document.data[1] == ["", "", "", 7.5]

    @pytest.mark.parametrize("value", ["text", 42, 3.14, False, None])
    def test_accepts_scalar_values(
        self, document: WorkbookDocument, value: object
    ) -> None:
        document.update_cell(0, 0, value)  # type: ignore[arg-type]

        assert document.data[0][0] == value

    @pytest.mark.parametrize(("row", "column"), [(-1, 0), (0, -1), (-3, -3)])
    def test_negative_indices_raise(
        self, document: WorkbookDocument, row: int, column: int
    ) -> None:
        before = document.copy()

        with pytest.raises(CellIndexError):
            document.update_cell(row, column, "x")

        assert document == before

    def test_cell_index_error_is_builtin_index_error(
        self, document: WorkbookDocument
    ) -> None:
        with pytest.raises(IndexError):
            document.update_cell(-1, 0, "x")

    def test_non_integer_index_raises(self, document: WorkbookDocument) -> None:
        with pytest.raises(CellIndexError):
            document.update_cell(True, 0, "x")

    def test_non_scalar_value_raises(self, document: WorkbookDocument) -> None:
        with pytest.raises(CellValueError):
            document.update_cell(0, 0, ["not", "scalar"])  # type: ignore[arg-type]

        assert document.data == [["Alice", "30"]]

    @pytest.mark.parametrize("value", ["bad\x01value", "\x00", "tab\x0bstop"])
    def test_control_characters_raise(
        self, document: WorkbookDocument, value: str
    ) -> None:
        with pytest.raises(CellValueError) as exc_info:
            document.update_cell(0, 0, value)

        assert exc_info.value.details["value_type"] == "str"
        assert document.data == [["Alice", "30"]]

    def test_whitespace_is_allowed(self, document: WorkbookDocument) -> None:
        document.update_cell(0, 0, "line one\nline two\tend")

        assert document.data[0][0] == "line one\nline two\tend"

    def test_only_active_sheet_changes(self, document: WorkbookDocument) -> None:
        document.switch_sheet("Sheet2")
        document.update_cell(0, 0, "y")

        assert document.sheets["Sheet2"].rows == [["y"]]
        assert document.sheets["Sheet1"].rows == [["Alice", "30"]]


class TestScenario:
    """The upload, edit, switch and switch-back walkthrough."""

    def test_edit_then_switch_round_trip(self, document: WorkbookDocument) -> None:
        assert document.active_sheet == "Sheet1"

        document.update_cell(0, 1, "31")
        assert document.data == [["Alice", "31"]]

        document.switch_sheet("Sheet2")
        assert document.headers == ["X"]
        assert document.data == []

        document.switch_sheet("Sheet1")
        assert document.data == [["Alice", "31"]]

"""Pydantic models for API requests and responses."""

from typing import Any

from pydantic import BaseModel, Field

from sheet_editor.workbook_document import SheetTable, WorkbookDocument

CellValueModel = str | int | float | bool | None


class HealthResponse(BaseModel):
    """Response model for health check endpoint."""

    status: str
    timestamp: str
    version: str
    open_workbooks: int


class SheetPayload(BaseModel):
    """Content of a single sheet."""

    headers: list[str] = Field(default_factory=list, description="Header labels")
    data: list[list[CellValueModel]] = Field(
        default_factory=list, description="Data rows, indexed by column position"
    )


class WorkbookResponse(BaseModel):
    """Full state of an uploaded workbook.

    ``headers`` and ``data`` repeat the active sheet's content from
    ``sheets`` for convenience.
    """

    file_id: str = Field(..., description="Identifier of the uploaded workbook")
    file_name: str = Field(..., description="Original filename of the upload")
    headers: list[str] = Field(..., description="Active sheet header labels")
    data: list[list[CellValueModel]] = Field(..., description="Active sheet rows")
    sheet_names: list[str] = Field(..., description="Sheet names in workbook order")
    active_sheet: str = Field(..., description="Currently active sheet")
    sheets: dict[str, SheetPayload] = Field(..., description="Content of every sheet")

    @classmethod
    def from_document(
        cls, file_id: str, file_name: str, document: WorkbookDocument
    ) -> "WorkbookResponse":
        return cls(file_id=file_id, file_name=file_name, **document.to_dict())

    def to_document(self) -> WorkbookDocument:
        """Rebuild the document model from the payload."""
        return WorkbookDocument(
            sheet_names=list(self.sheet_names),
            sheets={
                name: SheetTable(
                    headers=list(self.sheets[name].headers),
                    rows=[list(row) for row in self.sheets[name].data],
                )
                for name in self.sheet_names
            },
            active_sheet=self.active_sheet,
        )


class ChangeSheetRequest(BaseModel):
    """Request body for switching the active sheet."""

    sheet_name: str = Field(..., description="Name of the sheet to activate")


class UpdateCellRequest(BaseModel):
    """Request body for writing a single cell of the active sheet."""

    row_index: int = Field(..., description="Zero-based data row index")
    column_index: int = Field(..., description="Zero-based column index")
    value: CellValueModel = Field(default=None, description="New cell value")


class ErrorDetail(BaseModel):
    """Error detail model for API error responses.

    This model provides structured error responses with:
    - Human-readable error message
    - Machine-readable error code
    - Optional additional details for debugging
    - Optional request ID for correlation
    """

    detail: str = Field(..., description="Human-readable error message")
    error_code: str | None = Field(
        default=None,
        description="Machine-readable error code (e.g., 'E3001')",
    )
    details: dict[str, Any] | None = Field(
        default=None,
        description="Additional error details for debugging",
    )
    request_id: str | None = Field(
        default=None,
        description="Request ID for error correlation",
    )

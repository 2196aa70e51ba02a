"""Transport-agnostic workbook editing interface and its in-process adapter.

``WorkbookEditor`` is the contract shared by the HTTP API and its clients:
upload a workbook, read it, switch the active sheet, update a cell, export
and close. ``WorkbookService`` implements it directly on top of a
``WorkbookStore``; ``RemoteWorkbookClient`` implements it over HTTP.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path, PurePath
from typing import Protocol, runtime_checkable

from sheet_editor.config import Settings, settings
from sheet_editor.services.workbook_codec import (
    XLSX_MEDIA_TYPE,
    atomic_write_bytes,
    parse_workbook,
    serialize_workbook,
)
from sheet_editor.services.workbook_store import StoredWorkbook, WorkbookStore
from sheet_editor.utils.exceptions import (
    FileTooLargeError,
    UnsupportedFormatError,
    ValidationError,
)
from sheet_editor.utils.logging import LogContext, get_logger, timed_operation
from sheet_editor.workbook_document import CellValue, WorkbookDocument

logger = get_logger(__name__)


@dataclass
class WorkbookSession:
    """Snapshot of a stored workbook as seen by a caller."""

    file_id: str
    filename: str
    document: WorkbookDocument

    @classmethod
    def from_entry(cls, entry: StoredWorkbook) -> WorkbookSession:
        # Copy so callers never share state with the locked store entry.
        return cls(
            file_id=entry.file_id,
            filename=entry.filename,
            document=entry.document.copy(),
        )


@dataclass
class ExportedWorkbook:
    """Serialized workbook ready to be downloaded or saved."""

    filename: str
    content: bytes
    media_type: str = XLSX_MEDIA_TYPE

    def write_to(self, directory: str | Path) -> Path:
        """Atomically write the workbook into ``directory`` under its filename.

        Only the final path component of ``filename`` is used, so the file
        always lands directly inside ``directory``.

        Raises:
            ValidationError: If the filename has no usable final component.
            WorkbookSerializeError: If the file cannot be written.
        """
        name = PurePath(self.filename).name
        if name in ("", ".", ".."):
            raise ValidationError(
                f"Invalid export filename: {self.filename!r}", field="filename"
            )
        return atomic_write_bytes(Path(directory) / name, self.content)


@runtime_checkable
class WorkbookEditor(Protocol):
    """Operations every workbook editing adapter provides."""

    def upload(self, content: bytes, filename: str) -> WorkbookSession: ...

    def get(self, file_id: str) -> WorkbookSession: ...

    def change_sheet(self, file_id: str, sheet_name: str) -> WorkbookSession: ...

    def update_cell(
        self,
        file_id: str,
        row_index: int,
        column_index: int,
        value: CellValue,
    ) -> WorkbookSession: ...

    def export(self, file_id: str, filename: str | None = None) -> ExportedWorkbook: ...

    def close(self, file_id: str) -> None: ...


class WorkbookService:
    """In-process workbook editor backed by a WorkbookStore."""

    def __init__(
        self,
        store: WorkbookStore,
        config: Settings | None = None,
    ) -> None:
        """Initialize the service.

        Args:
            store: Store holding uploaded workbooks.
            config: Settings for upload limits and export naming.
        """
        self.store = store
        self.config = config or settings

    def validate_filename(self, filename: str | None) -> str:
        """Check that an upload is named with an accepted extension.

        Returns:
            The validated filename.

        Raises:
            ValidationError: If no filename was given.
            UnsupportedFormatError: If the extension is not accepted.
        """
        if not filename:
            raise ValidationError("No file uploaded", field="file")

        extension = PurePath(filename).suffix.lower()
        allowed = self.config.allowed_extensions_list
        if extension not in allowed:
            raise UnsupportedFormatError(
                f"Only Excel files are allowed ({', '.join(allowed)})",
                extension=extension,
                filename=filename,
            )
        return filename

    def validate_size(self, size: int, filename: str | None = None) -> None:
        """Raise FileTooLargeError if ``size`` bytes exceed the upload limit."""
        if size > self.config.max_file_size_bytes:
            raise FileTooLargeError(
                file_size=size,
                max_size=self.config.max_file_size_bytes,
                filename=filename,
            )

    def validate_upload(self, content: bytes, filename: str | None) -> str:
        """Check an upload against the configured limits.

        Returns:
            The validated filename.

        Raises:
            ValidationError: If no filename was given.
            UnsupportedFormatError: If the extension is not accepted.
            FileTooLargeError: If the content exceeds the size limit.
        """
        filename = self.validate_filename(filename)
        self.validate_size(len(content), filename)
        return filename

    def upload(self, content: bytes, filename: str) -> WorkbookSession:
        """Parse and store an uploaded workbook.

        Raises:
            WorkbookParseError: If the content is not a readable workbook.
        """
        filename = self.validate_upload(content, filename)

        with timed_operation(logger, "parse_workbook") as metrics:
            document = parse_workbook(content, filename=filename)
            metrics.bytes_processed = len(content)
            metrics.sheets_processed = len(document.sheet_names)
            metrics.rows_processed = sum(
                table.row_count for table in document.sheets.values()
            )

        entry = self.store.create(filename=filename, document=document)
        logger.info(
            "Workbook uploaded",
            file_id=entry.file_id,
            filename=filename,
            sheets=len(document.sheet_names),
            active_sheet=document.active_sheet,
        )
        return WorkbookSession.from_entry(entry)

    def get(self, file_id: str) -> WorkbookSession:
        with self.store.open(file_id) as entry:
            return WorkbookSession.from_entry(entry)

    def change_sheet(self, file_id: str, sheet_name: str) -> WorkbookSession:
        """Switch the active sheet of a stored workbook.

        Raises:
            WorkbookNotFoundError: If the file is unknown.
            UnknownSheetError: If the sheet is not part of the workbook.
        """
        with LogContext(file_id=file_id), self.store.open(file_id) as entry:
            entry.document.switch_sheet(sheet_name)
            logger.debug("Active sheet changed", sheet_name=sheet_name)
            return WorkbookSession.from_entry(entry)

    def update_cell(
        self,
        file_id: str,
        row_index: int,
        column_index: int,
        value: CellValue,
    ) -> WorkbookSession:
        """Write a value into the active sheet of a stored workbook.

        Raises:
            WorkbookNotFoundError: If the file is unknown.
            CellIndexError: If the coordinates are negative.
            CellValueError: If the value is not a scalar.
        """
        with LogContext(file_id=file_id), self.store.open(file_id) as entry:
            entry.document.update_cell(row_index, column_index, value)
            logger.debug(
                "Cell updated",
                sheet_name=entry.document.active_sheet,
                row_index=row_index,
                column_index=column_index,
            )
            return WorkbookSession.from_entry(entry)

    def export(self, file_id: str, filename: str | None = None) -> ExportedWorkbook:
        """Serialize every sheet of a stored workbook.

        The export is named after the original upload unless ``filename`` is
        given.

        Raises:
            WorkbookNotFoundError: If the file is unknown.
            WorkbookSerializeError: If encoding fails.
        """
        with LogContext(file_id=file_id), self.store.open(file_id) as entry:
            with timed_operation(logger, "serialize_workbook") as metrics:
                content = serialize_workbook(entry.document)
                metrics.bytes_processed = len(content)
                metrics.sheets_processed = len(entry.document.sheet_names)
            export_name = (
                filename or entry.filename or self.config.default_export_filename
            )
        return ExportedWorkbook(filename=export_name, content=content)

    def close(self, file_id: str) -> None:
        self.store.close(file_id)

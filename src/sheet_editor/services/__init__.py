"""Services for the sheet editor."""

from sheet_editor.services.remote_client import RemoteWorkbookClient
from sheet_editor.services.workbook_service import (
    ExportedWorkbook,
    WorkbookEditor,
    WorkbookService,
    WorkbookSession,
)
from sheet_editor.services.workbook_store import WorkbookStore, WorkbookStoreConfig

__all__ = [
    "ExportedWorkbook",
    "RemoteWorkbookClient",
    "WorkbookEditor",
    "WorkbookService",
    "WorkbookSession",
    "WorkbookStore",
    "WorkbookStoreConfig",
]

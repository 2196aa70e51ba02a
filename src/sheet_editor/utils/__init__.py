"""Utilities package for the sheet editor.

This package provides:
- Centralized exception classes (exceptions.py)
- Structured logging utilities (logging.py)
"""

from sheet_editor.utils.exceptions import (
    CellIndexError,
    CellValueError,
    ErrorCode,
    FileTooLargeError,
    HTTPStatusMixin,
    RemoteServiceError,
    SheetEditorError,
    UnknownSheetError,
    UnsupportedFormatError,
    ValidationError,
    WorkbookExpiredError,
    WorkbookNotFoundError,
    WorkbookParseError,
    WorkbookSerializeError,
)
from sheet_editor.utils.logging import (
    LogContext,
    StructuredLogger,
    get_logger,
    get_request_id,
    set_request_id,
)

__all__ = [
    # Exceptions
    "CellIndexError",
    "CellValueError",
    "ErrorCode",
    "FileTooLargeError",
    "HTTPStatusMixin",
    "RemoteServiceError",
    "SheetEditorError",
    "UnknownSheetError",
    "UnsupportedFormatError",
    "ValidationError",
    "WorkbookExpiredError",
    "WorkbookNotFoundError",
    "WorkbookParseError",
    "WorkbookSerializeError",
    # Logging
    "LogContext",
    "StructuredLogger",
    "get_logger",
    "get_request_id",
    "set_request_id",
]

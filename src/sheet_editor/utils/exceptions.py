"""Centralized exception classes for the sheet editor.

This module provides a hierarchy of custom exceptions with error codes,
HTTP status code mapping, and structured error details for consistent
error handling across the document model, the store and both adapters.

Exception Hierarchy:
    SheetEditorError (base)
    ├── FileError
    │   ├── FileTooLargeError
    │   ├── UnsupportedFormatError
    │   ├── WorkbookParseError
    │   └── WorkbookSerializeError
    ├── DocumentError
    │   ├── UnknownSheetError
    │   └── CellIndexError (also a built-in IndexError)
    ├── ValidationError
    │   └── CellValueError
    ├── WorkbookNotFoundError
    │   └── WorkbookExpiredError
    └── RemoteServiceError

Error Codes:
    All errors have a unique error code (e.g., "E1004") that can be used
    for programmatic error handling and is echoed in API error payloads.
"""

from enum import Enum
from typing import Any


class ErrorCode(str, Enum):
    """Enumeration of all error codes used in the application.

    Error codes are grouped by category:
    - E1xxx: File/workbook encoding errors
    - E2xxx: Document and request validation errors
    - E3xxx: Workbook store errors
    - E5xxx: Remote service errors
    - E9xxx: Internal/unexpected errors
    """

    # File errors (E1xxx)
    FILE_TOO_LARGE = "E1002"
    UNSUPPORTED_FORMAT = "E1003"
    WORKBOOK_PARSE_FAILED = "E1004"
    WORKBOOK_SERIALIZE_FAILED = "E1005"

    # Document errors (E2xxx)
    UNKNOWN_SHEET = "E2001"
    CELL_INDEX_OUT_OF_RANGE = "E2002"
    INVALID_REQUEST = "E2003"
    INVALID_CELL_VALUE = "E2004"

    # Store errors (E3xxx)
    WORKBOOK_NOT_FOUND = "E3001"
    WORKBOOK_EXPIRED = "E3002"

    # Remote service errors (E5xxx)
    REMOTE_SERVICE_ERROR = "E5001"
    REMOTE_SERVICE_UNAVAILABLE = "E5002"

    # Internal errors (E9xxx)
    INTERNAL_ERROR = "E9001"
    CONFIGURATION_ERROR = "E9002"


class HTTPStatusMixin:
    """Mixin that provides HTTP status code for exceptions.

    Subclasses should set the `http_status` class attribute.
    """

    http_status: int = 500

    def get_http_status(self) -> int:
        """Get the HTTP status code for this exception.

        Returns:
            HTTP status code appropriate for this error.
        """
        return self.http_status


class SheetEditorError(Exception, HTTPStatusMixin):
    """Base exception for all sheet editor errors.

    Attributes:
        message: Human-readable error message.
        error_code: Unique error code from ErrorCode enum.
        details: Optional dictionary with additional error details.
        http_status: HTTP status code for API responses (default 500).
    """

    http_status: int = 500

    def __init__(
        self,
        message: str,
        error_code: ErrorCode = ErrorCode.INTERNAL_ERROR,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize the exception.

        Args:
            message: Human-readable error description.
            error_code: Error code from ErrorCode enum.
            details: Optional additional details about the error.
        """
        super().__init__(message)
        self.message = message
        self.error_code = error_code
        self.details = details or {}

    def to_dict(self) -> dict[str, Any]:
        """Convert the exception to a dictionary for API responses.

        Returns:
            Dictionary with error information.
        """
        result: dict[str, Any] = {
            "error_code": self.error_code.value,
            "message": self.message,
        }
        if self.details:
            result["details"] = self.details
        return result

    def __str__(self) -> str:
        """Return string representation with error code."""
        return f"[{self.error_code.value}] {self.message}"


# =============================================================================
# File Errors (E1xxx)
# =============================================================================


class FileError(SheetEditorError):
    """Base class for errors about uploaded or exported workbook files."""

    http_status: int = 400

    def __init__(
        self,
        message: str,
        error_code: ErrorCode = ErrorCode.WORKBOOK_PARSE_FAILED,
        filename: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize with filename information.

        Args:
            message: Error message.
            error_code: Error code.
            filename: Name of the problematic file.
            details: Additional details.
        """
        details = details or {}
        if filename:
            details["filename"] = filename
        super().__init__(message, error_code, details)
        self.filename = filename


class FileTooLargeError(FileError):
    """Raised when an upload exceeds the maximum allowed size."""

    http_status: int = 413

    def __init__(
        self,
        file_size: int,
        max_size: int,
        filename: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize with size information.

        Args:
            file_size: Actual file size in bytes.
            max_size: Maximum allowed size in bytes.
            filename: Optional file name.
            details: Additional details.
        """
        details = details or {}
        details["file_size_bytes"] = file_size
        details["max_size_bytes"] = max_size
        message = (
            f"File size ({file_size} bytes) exceeds maximum "
            f"allowed size ({max_size} bytes)"
        )
        super().__init__(
            message=message,
            error_code=ErrorCode.FILE_TOO_LARGE,
            filename=filename,
            details=details,
        )
        self.file_size = file_size
        self.max_size = max_size


class UnsupportedFormatError(FileError):
    """Raised when an upload is not a supported spreadsheet format."""

    http_status: int = 415

    def __init__(
        self,
        message: str,
        extension: str | None = None,
        filename: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize with format information.

        Args:
            message: Error message.
            extension: File extension that was rejected.
            filename: Optional file name.
            details: Additional details.
        """
        details = details or {}
        if extension is not None:
            details["extension"] = extension
        super().__init__(
            message=message,
            error_code=ErrorCode.UNSUPPORTED_FORMAT,
            filename=filename,
            details=details,
        )
        self.extension = extension


class WorkbookParseError(FileError):
    """Raised when bytes cannot be decoded as a workbook or hold no sheets."""

    http_status: int = 422

    def __init__(
        self,
        message: str,
        filename: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(
            message=message,
            error_code=ErrorCode.WORKBOOK_PARSE_FAILED,
            filename=filename,
            details=details,
        )


class WorkbookSerializeError(FileError):
    """Raised when a document cannot be encoded or written as a workbook."""

    http_status: int = 500

    def __init__(
        self,
        message: str,
        filename: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(
            message=message,
            error_code=ErrorCode.WORKBOOK_SERIALIZE_FAILED,
            filename=filename,
            details=details,
        )


# =============================================================================
# Document Errors (E2xxx)
# =============================================================================


class DocumentError(SheetEditorError):
    """Base class for invalid operations on a workbook document."""

    http_status: int = 400


class UnknownSheetError(DocumentError):
    """Raised when a sheet name is not part of the document."""

    def __init__(
        self,
        sheet_name: str,
        available_sheets: list[str] | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize with the requested sheet name.

        Args:
            sheet_name: The sheet name that was requested.
            available_sheets: Sheet names the document does contain.
            details: Additional details.
        """
        details = details or {}
        details["sheet_name"] = sheet_name
        if available_sheets is not None:
            details["available_sheets"] = list(available_sheets)
        super().__init__(
            f"Sheet not found: {sheet_name}",
            ErrorCode.UNKNOWN_SHEET,
            details,
        )
        self.sheet_name = sheet_name
        self.available_sheets = list(available_sheets or [])


class CellIndexError(DocumentError, IndexError):
    """Raised for negative or otherwise unsupported cell coordinates."""

    def __init__(
        self,
        message: str,
        row_index: Any = None,
        column_index: Any = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize with the offending coordinates.

        Args:
            message: Error message.
            row_index: Row index that was requested.
            column_index: Column index that was requested.
            details: Additional details.
        """
        details = details or {}
        details["row_index"] = row_index
        details["column_index"] = column_index
        super().__init__(message, ErrorCode.CELL_INDEX_OUT_OF_RANGE, details)
        self.row_index = row_index
        self.column_index = column_index


# =============================================================================
# Validation Errors
# =============================================================================


class ValidationError(SheetEditorError):
    """General validation error for request input."""

    http_status: int = 400

    def __init__(
        self,
        message: str,
        field: str | None = None,
        error_code: ErrorCode = ErrorCode.INVALID_REQUEST,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize with validation details.

        Args:
            message: Main error message.
            field: Field that failed validation.
            error_code: Error code.
            details: Additional details.
        """
        details = details or {}
        if field:
            details["field"] = field
        super().__init__(message, error_code, details)
        self.field = field


class CellValueError(ValidationError):
    """Raised when a cell value cannot be stored in a worksheet."""

    def __init__(
        self,
        value: Any = None,
        message: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize with the rejected value.

        Args:
            value: The value that was rejected.
            message: Optional custom message.
            details: Additional details.
        """
        details = details or {}
        details.setdefault("value_type", type(value).__name__)
        super().__init__(
            message=message
            or (
                f"Unsupported cell value type: {type(value).__name__}. "
                "Expected string, number, boolean or empty."
            ),
            field="value",
            error_code=ErrorCode.INVALID_CELL_VALUE,
            details=details,
        )


# =============================================================================
# Store Errors (E3xxx)
# =============================================================================


class WorkbookNotFoundError(SheetEditorError):
    """Raised when a file identifier is not known to the store."""

    http_status: int = 404

    def __init__(
        self,
        file_id: str,
        message: str | None = None,
        error_code: ErrorCode = ErrorCode.WORKBOOK_NOT_FOUND,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize with file ID.

        Args:
            file_id: The file ID that was not found.
            message: Optional custom message.
            error_code: Error code.
            details: Additional details.
        """
        details = details or {}
        details["file_id"] = file_id
        super().__init__(message or f"File not found: {file_id}", error_code, details)
        self.file_id = file_id


class WorkbookExpiredError(WorkbookNotFoundError):
    """Raised when a file identifier was dropped after its TTL elapsed."""

    http_status: int = 410

    def __init__(
        self,
        file_id: str,
        ttl_seconds: int | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize with file ID and TTL.

        Args:
            file_id: The file ID that has expired.
            ttl_seconds: The idle TTL that elapsed.
            details: Additional details.
        """
        details = details or {}
        if ttl_seconds:
            details["ttl_seconds"] = ttl_seconds
        super().__init__(
            file_id,
            message=f"File has expired: {file_id}",
            error_code=ErrorCode.WORKBOOK_EXPIRED,
            details=details,
        )


# =============================================================================
# Remote Service Errors (E5xxx)
# =============================================================================


class RemoteServiceError(SheetEditorError):
    """Raised when the remote sheet editor API fails or is unreachable."""

    http_status: int = 502

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        error_code: ErrorCode = ErrorCode.REMOTE_SERVICE_ERROR,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize with the upstream status.

        Args:
            message: Error message.
            status_code: HTTP status returned by the remote service.
            error_code: Error code.
            details: Additional details.
        """
        details = details or {}
        if status_code is not None:
            details["status_code"] = status_code
        super().__init__(message, error_code, details)
        self.status_code = status_code

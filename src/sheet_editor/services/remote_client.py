"""HTTP adapter for the sheet editor API.

``RemoteWorkbookClient`` implements the same ``WorkbookEditor`` protocol as
the in-process ``WorkbookService``, so callers can switch between a local
store and a remote server without changing their code.
"""

from __future__ import annotations

import re
import time
from typing import Any
from urllib.parse import unquote

import httpx

from sheet_editor.config import settings
from sheet_editor.models import WorkbookResponse
from sheet_editor.services.workbook_codec import XLSX_MEDIA_TYPE
from sheet_editor.services.workbook_service import ExportedWorkbook, WorkbookSession
from sheet_editor.utils.exceptions import (
    CellIndexError,
    CellValueError,
    ErrorCode,
    FileTooLargeError,
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
from sheet_editor.utils.logging import get_logger
from sheet_editor.workbook_document import CellValue

logger = get_logger(__name__)

SERVICE_NAME = "sheet-editor-api"

_FILENAME_STAR_RE = re.compile(r"filename\*=UTF-8''([^;]+)", re.IGNORECASE)
_FILENAME_RE = re.compile(r'filename="?([^";]+)"?', re.IGNORECASE)


class RemoteWorkbookClient:
    """Synchronous client for the sheet editor HTTP API."""

    def __init__(
        self,
        base_url: str | None = None,
        *,
        client: httpx.Client | None = None,
        timeout: float | None = None,
    ) -> None:
        """Initialize the client.

        Args:
            base_url: API base URL. Defaults to settings.api_base_url.
            client: Pre-configured httpx client (its base_url is used as is).
            timeout: Request timeout in seconds.
        """
        self._owns_client = client is None
        self._client = client or httpx.Client(
            base_url=(base_url or settings.api_base_url).rstrip("/"),
            timeout=timeout or settings.request_timeout_seconds,
        )

    def __enter__(self) -> RemoteWorkbookClient:
        return self

    def __exit__(self, *args: Any) -> None:
        self.close_client()

    def close_client(self) -> None:
        """Close the underlying HTTP client if this instance created it."""
        if self._owns_client:
            self._client.close()

    # ------------------------------------------------------------------ #
    # WorkbookEditor operations
    # ------------------------------------------------------------------ #

    def upload(self, content: bytes, filename: str) -> WorkbookSession:
        response = self._request(
            "POST",
            "/api/upload",
            operation="upload",
            files={"file": (filename, content, XLSX_MEDIA_TYPE)},
        )
        return self._to_session(response)

    def get(self, file_id: str) -> WorkbookSession:
        response = self._request(
            "GET", f"/api/sheets/{file_id}", operation="get", file_id=file_id
        )
        return self._to_session(response)

    def change_sheet(self, file_id: str, sheet_name: str) -> WorkbookSession:
        response = self._request(
            "POST",
            f"/api/sheets/{file_id}/change-sheet",
            operation="change_sheet",
            file_id=file_id,
            json={"sheet_name": sheet_name},
        )
        return self._to_session(response)

    def update_cell(
        self,
        file_id: str,
        row_index: int,
        column_index: int,
        value: CellValue,
    ) -> WorkbookSession:
        response = self._request(
            "POST",
            f"/api/sheets/{file_id}/update-cell",
            operation="update_cell",
            file_id=file_id,
            json={
                "row_index": row_index,
                "column_index": column_index,
                "value": value,
            },
        )
        return self._to_session(response)

    def export(self, file_id: str, filename: str | None = None) -> ExportedWorkbook:
        params = {"filename": filename} if filename else None
        response = self._request(
            "GET",
            f"/api/sheets/{file_id}/export",
            operation="export",
            file_id=file_id,
            params=params,
        )
        disposition = response.headers.get("Content-Disposition", "")
        return ExportedWorkbook(
            filename=filename
            or _filename_from_disposition(disposition)
            or settings.default_export_filename,
            content=response.content,
            media_type=response.headers.get("Content-Type", XLSX_MEDIA_TYPE),
        )

    def close(self, file_id: str) -> None:
        self._request(
            "DELETE", f"/api/sheets/{file_id}", operation="close", file_id=file_id
        )

    # ------------------------------------------------------------------ #
    # Internal helpers
    # ------------------------------------------------------------------ #

    def _request(
        self,
        method: str,
        path: str,
        *,
        operation: str,
        file_id: str | None = None,
        **kwargs: Any,
    ) -> httpx.Response:
        start = time.perf_counter()
        try:
            response = self._client.request(method, path, **kwargs)
        except httpx.HTTPError as e:
            logger.log_api_call(
                SERVICE_NAME,
                operation,
                time.perf_counter() - start,
                success=False,
                error_message=str(e),
            )
            raise RemoteServiceError(
                f"Failed to reach sheet editor API: {e}",
                error_code=ErrorCode.REMOTE_SERVICE_UNAVAILABLE,
            ) from e

        success = response.is_success
        logger.log_api_call(
            SERVICE_NAME,
            operation,
            time.perf_counter() - start,
            status_code=response.status_code,
            success=success,
        )
        if not success:
            raise _error_from_response(response, file_id)
        return response

    @staticmethod
    def _to_session(response: httpx.Response) -> WorkbookSession:
        payload = WorkbookResponse.model_validate(response.json())
        return WorkbookSession(
            file_id=payload.file_id,
            filename=payload.file_name,
            document=payload.to_document(),
        )


def _filename_from_disposition(disposition: str) -> str | None:
    match = _FILENAME_STAR_RE.search(disposition)
    if match:
        return unquote(match.group(1))
    match = _FILENAME_RE.search(disposition)
    return match.group(1) if match else None


def _error_from_response(
    response: httpx.Response, file_id: str | None
) -> SheetEditorError:
    """Rebuild the typed error described by an API error payload."""
    try:
        payload = response.json()
    except ValueError:
        payload = {}
    if not isinstance(payload, dict):
        payload = {}

    message = str(payload.get("detail") or response.reason_phrase or "Request failed")
    details: dict[str, Any] = payload.get("details") or {}
    code = payload.get("error_code")
    filename = details.get("filename")

    if code == ErrorCode.WORKBOOK_EXPIRED.value:
        return WorkbookExpiredError(
            details.get("file_id", file_id or ""),
            ttl_seconds=details.get("ttl_seconds"),
        )
    if code == ErrorCode.WORKBOOK_NOT_FOUND.value:
        return WorkbookNotFoundError(details.get("file_id", file_id or ""), message)
    if code == ErrorCode.UNKNOWN_SHEET.value:
        return UnknownSheetError(
            details.get("sheet_name", ""),
            available_sheets=details.get("available_sheets"),
        )
    if code == ErrorCode.CELL_INDEX_OUT_OF_RANGE.value:
        return CellIndexError(
            message,
            row_index=details.get("row_index"),
            column_index=details.get("column_index"),
        )
    if code == ErrorCode.WORKBOOK_PARSE_FAILED.value:
        return WorkbookParseError(message, filename=filename)
    if code == ErrorCode.WORKBOOK_SERIALIZE_FAILED.value:
        return WorkbookSerializeError(message, filename=filename)
    if code == ErrorCode.UNSUPPORTED_FORMAT.value:
        return UnsupportedFormatError(
            message, extension=details.get("extension"), filename=filename
        )
    if code == ErrorCode.FILE_TOO_LARGE.value:
        return FileTooLargeError(
            file_size=details.get("file_size_bytes", 0),
            max_size=details.get("max_size_bytes", 0),
            filename=filename,
        )
    if code == ErrorCode.INVALID_CELL_VALUE.value:
        return CellValueError(message=message, details=details)
    if code == ErrorCode.INVALID_REQUEST.value:
        return ValidationError(message, field=details.get("field"))
    if response.status_code == 422:
        # Request body rejected by FastAPI before reaching the service
        return ValidationError(message)

    return RemoteServiceError(
        message, status_code=response.status_code, details=details
    )

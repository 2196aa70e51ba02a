"""Tests for the HTTP workbook client.

The client talks to a real application instance through FastAPI's
TestClient, so every request goes through routing, validation and the
error handlers.
"""

from collections.abc import Iterator

import httpx
import pytest
from fastapi.testclient import TestClient

from sheet_editor.api import create_app
from sheet_editor.services.remote_client import (
    RemoteWorkbookClient,
    _error_from_response,
    _filename_from_disposition,
)
from sheet_editor.services.workbook_codec import parse_workbook
from sheet_editor.services.workbook_service import WorkbookEditor
from sheet_editor.services.workbook_store import WorkbookStore
from sheet_editor.utils.exceptions import (
    CellIndexError,
    CellValueError,
    ErrorCode,
    RemoteServiceError,
    UnknownSheetError,
    UnsupportedFormatError,
    ValidationError,
    WorkbookExpiredError,
    WorkbookNotFoundError,
    WorkbookParseError,
)


@pytest.fixture
def remote(store: WorkbookStore) -> Iterator[RemoteWorkbookClient]:
    """Remote client wired to an in-process application."""
    with TestClient(create_app(store=store)) as http_client:
        yield RemoteWorkbookClient(client=http_client)


@pytest.fixture
def file_id(remote: RemoteWorkbookClient, two_sheet_bytes: bytes) -> str:
    return remote.upload(two_sheet_bytes, "people.xlsx").file_id


class TestOperations:
    """Tests for the editing operations over HTTP."""

    def test_satisfies_editor_protocol(self, remote: RemoteWorkbookClient) -> None:
        assert isinstance(remote, WorkbookEditor)

    def test_upload(
        self, remote: RemoteWorkbookClient, store: WorkbookStore, two_sheet_bytes: bytes
    ) -> None:
        session = remote.upload(two_sheet_bytes, "people.xlsx")

        assert session.filename == "people.xlsx"
        assert session.document.sheet_names == ["Sheet1", "Sheet2"]
        assert session.document.active_sheet == "Sheet1"
        assert session.document.data == [["Alice", "30"]]
        assert store.exists(session.file_id)

    def test_get(self, remote: RemoteWorkbookClient, file_id: str) -> None:
        session = remote.get(file_id)

        assert session.file_id == file_id
        assert session.document.headers == ["Name", "Age"]

    def test_change_sheet_and_update_cell(
        self, remote: RemoteWorkbookClient, file_id: str
    ) -> None:
        remote.update_cell(file_id, 0, 1, "31")
        remote.change_sheet(file_id, "Sheet2")
        remote.update_cell(file_id, 1, 0, 5)
        session = remote.change_sheet(file_id, "Sheet1")

        assert session.document.data == [["Alice", "31"]]
        assert session.document.sheets["Sheet2"].rows == [[""], [5]]

    def test_update_cell_keeps_value_types(
        self, remote: RemoteWorkbookClient, file_id: str
    ) -> None:
        remote.update_cell(file_id, 0, 0, True)
        session = remote.update_cell(file_id, 0, 1, 2.5)

        assert session.document.data == [[True, 2.5]]

    def test_export_uses_header_filename(
        self, remote: RemoteWorkbookClient, file_id: str
    ) -> None:
        remote.update_cell(file_id, 0, 1, "31")

        exported = remote.export(file_id)

        assert exported.filename == "people.xlsx"
        assert parse_workbook(exported.content).data == [["Alice", "31"]]

    def test_export_with_filename(
        self, remote: RemoteWorkbookClient, file_id: str
    ) -> None:
        assert remote.export(file_id, "edited.xlsx").filename == "edited.xlsx"

    def test_close(
        self, remote: RemoteWorkbookClient, store: WorkbookStore, file_id: str
    ) -> None:
        remote.close(file_id)

        assert not store.exists(file_id)


class TestErrors:
    """Tests for mapping API errors back to exceptions."""

    def test_unknown_file(self, remote: RemoteWorkbookClient) -> None:
        with pytest.raises(WorkbookNotFoundError) as exc_info:
            remote.get("missing")

        assert exc_info.value.file_id == "missing"

    def test_unknown_sheet(self, remote: RemoteWorkbookClient, file_id: str) -> None:
        with pytest.raises(UnknownSheetError) as exc_info:
            remote.change_sheet(file_id, "Nope")

        assert exc_info.value.sheet_name == "Nope"
        assert exc_info.value.available_sheets == ["Sheet1", "Sheet2"]

    def test_negative_index(self, remote: RemoteWorkbookClient, file_id: str) -> None:
        with pytest.raises(CellIndexError) as exc_info:
            remote.update_cell(file_id, -1, 0, "x")

        assert exc_info.value.row_index == -1

    def test_unstorable_cell_value(
        self, remote: RemoteWorkbookClient, file_id: str
    ) -> None:
        with pytest.raises(CellValueError) as exc_info:
            remote.update_cell(file_id, 0, 0, "bad\x01value")

        assert exc_info.value.field == "value"
        assert exc_info.value.details["value_type"] == "str"
        assert remote.get(file_id).document.data == [["Alice", "30"]]

    def test_unsupported_format(self, remote: RemoteWorkbookClient) -> None:
        with pytest.raises(UnsupportedFormatError) as exc_info:
            remote.upload(b"hello", "notes.txt")

        assert exc_info.value.extension == ".txt"

    def test_unreadable_workbook(self, remote: RemoteWorkbookClient) -> None:
        with pytest.raises(WorkbookParseError):
            remote.upload(b"not a workbook", "broken.xlsx")

    def test_request_validation_error(
        self, remote: RemoteWorkbookClient, file_id: str
    ) -> None:
        with pytest.raises(ValidationError):
            remote.update_cell(file_id, "first", 0, "x")  # type: ignore[arg-type]

    def test_unreachable_service(self) -> None:
        def refuse(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        http_client = httpx.Client(
            transport=httpx.MockTransport(refuse), base_url="http://test"
        )
        with RemoteWorkbookClient(client=http_client) as remote:
            with pytest.raises(RemoteServiceError) as exc_info:
                remote.get("any")

        assert exc_info.value.error_code == ErrorCode.REMOTE_SERVICE_UNAVAILABLE

    def test_expired_payload(self) -> None:
        response = httpx.Response(
            410,
            json={
                "detail": "File has expired: abc",
                "error_code": ErrorCode.WORKBOOK_EXPIRED.value,
                "details": {"file_id": "abc", "ttl_seconds": 60},
            },
        )

        error = _error_from_response(response, "abc")

        assert isinstance(error, WorkbookExpiredError)
        assert error.file_id == "abc"

    def test_unknown_payload_becomes_remote_error(self) -> None:
        response = httpx.Response(503, text="upstream down")

        error = _error_from_response(response, None)

        assert isinstance(error, RemoteServiceError)
        assert error.status_code == 503


class TestContentDisposition:
    """Tests for reading download names."""

    def test_prefers_utf8_name(self) -> None:
        header = (
            "attachment; filename=\"r?sum?.xlsx\"; "
            "filename*=UTF-8''r%C3%A9sum%C3%A9.xlsx"
        )

        assert _filename_from_disposition(header) == "résumé.xlsx"

    def test_plain_name(self) -> None:
        assert _filename_from_disposition('attachment; filename="a.xlsx"') == "a.xlsx"

    def test_missing_name(self) -> None:
        assert _filename_from_disposition("attachment") is None

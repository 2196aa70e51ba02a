from __future__ import annotations

from collections.abc import Iterator

import pytest

from sheet_editor.config import Settings
from sheet_editor.services.workbook_service import WorkbookService
from sheet_editor.services.workbook_store import WorkbookStore, WorkbookStoreConfig
from sheet_editor.workbook_document import SheetTable, WorkbookDocument
from tests.fixtures import two_sheet_workbook


@pytest.fixture
def two_sheet_bytes() -> bytes:
    return two_sheet_workbook()


@pytest.fixture
def document() -> WorkbookDocument:
    """Sheet1 with one person, Sheet2 with a header only."""
    return WorkbookDocument.from_tables(
        {
            "Sheet1": SheetTable(headers=["Name", "Age"], rows=[["Alice", "30"]]),
            "Sheet2": SheetTable(headers=["X"], rows=[]),
        }
    )


@pytest.fixture
def test_settings() -> Settings:
    return Settings(_env_file=None, max_file_size_mb=1)


@pytest.fixture
def store() -> Iterator[WorkbookStore]:
    """Workbook store with auto-cleanup disabled."""
    workbook_store = WorkbookStore(
        WorkbookStoreConfig(
            ttl_seconds=3600,
            cleanup_interval_seconds=300,
            enable_auto_cleanup=False,
        )
    )
    yield workbook_store
    workbook_store.clear_all()


@pytest.fixture
def service(store: WorkbookStore, test_settings: Settings) -> WorkbookService:
    return WorkbookService(store, config=test_settings)

"""FastAPI application for the sheet editor."""

import uuid
from contextlib import asynccontextmanager
from datetime import UTC, datetime
from typing import Annotated, Any
from urllib.parse import quote

from fastapi import (
    FastAPI,
    File,
    HTTPException,
    Query,
    Request,
    Response,
    UploadFile,
    status,
)
from fastapi.concurrency import run_in_threadpool
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from sheet_editor.config import settings, validate_settings_on_startup
from sheet_editor.models import (
    ChangeSheetRequest,
    ErrorDetail,
    HealthResponse,
    UpdateCellRequest,
    WorkbookResponse,
)
from sheet_editor.services.workbook_service import WorkbookService, WorkbookSession
from sheet_editor.services.workbook_store import WorkbookStore
from sheet_editor.utils.exceptions import (
    ErrorCode,
    SheetEditorError,
    ValidationError,
)
from sheet_editor.utils.logging import (
    clear_context,
    configure_logging,
    get_logger,
    get_request_id,
    set_request_id,
)

# Configure structured logging using settings
configure_logging(
    level=settings.log_level_int,
    use_structured_formatter=True,
)
logger = get_logger(__name__)

API_VERSION = "0.1.0"


def _to_response(session: WorkbookSession) -> dict[str, Any]:
    return WorkbookResponse.from_document(
        session.file_id, session.filename, session.document
    ).model_dump()


def _content_disposition(filename: str) -> str:
    ascii_name = filename.encode("ascii", "replace").decode("ascii").replace('"', "")
    return f"attachment; filename=\"{ascii_name}\"; filename*=UTF-8''{quote(filename)}"


def _service(request: Request) -> WorkbookService:
    service: WorkbookService = request.app.state.workbook_service
    return service


def create_app(store: WorkbookStore | None = None) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        store: Optional workbook store. A store configured from settings is
            created at startup and stopped at shutdown when omitted.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> Any:
        workbook_store = store or WorkbookStore()
        app.state.workbook_service = WorkbookService(workbook_store)
        try:
            yield
        finally:
            if store is None:
                workbook_store.stop_cleanup()
                workbook_store.clear_all()
            app.state.workbook_service = None

    app = FastAPI(
        title="Sheet Editor API",
        description=(
            "Upload spreadsheet workbooks, edit their cells sheet by sheet "
            "and export the result back to .xlsx."
        ),
        version=API_VERSION,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )

    # Configure CORS using settings
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["Content-Disposition", "X-Request-ID"],
    )

    validate_settings_on_startup(settings)

    @app.middleware("http")
    async def request_id_middleware(request: Request, call_next: Any) -> Any:
        """Assign a request ID, expose it in logs and echo it in the response."""
        request_id = request.headers.get("X-Request-ID", str(uuid.uuid4()))
        set_request_id(request_id)
        request.state.request_id = request_id

        try:
            response = await call_next(request)
            response.headers["X-Request-ID"] = request_id
            return response
        finally:
            clear_context()

    @app.exception_handler(SheetEditorError)
    async def sheet_editor_exception_handler(
        request: Request, exc: SheetEditorError
    ) -> JSONResponse:
        """Translate sheet editor errors into structured error responses."""
        request_id = getattr(request.state, "request_id", get_request_id())
        log = logger.error if exc.http_status >= 500 else logger.warning
        log(
            f"Sheet editor error: {exc.message}",
            error_code=exc.error_code.value,
            http_status=exc.http_status,
        )
        return JSONResponse(
            status_code=exc.http_status,
            content=ErrorDetail(
                detail=exc.message,
                error_code=exc.error_code.value,
                details=exc.details if exc.details else None,
                request_id=request_id,
            ).model_dump(exclude_none=True),
        )

    @app.exception_handler(HTTPException)
    async def http_exception_handler(
        request: Request, exc: HTTPException
    ) -> JSONResponse:
        """Custom exception handler for HTTP exceptions."""
        request_id = getattr(request.state, "request_id", get_request_id())
        logger.warning(
            f"HTTP Error: {exc.detail}",
            status_code=exc.status_code,
        )
        return JSONResponse(
            status_code=exc.status_code,
            content=ErrorDetail(
                detail=str(exc.detail),
                request_id=request_id,
            ).model_dump(exclude_none=True),
        )

    @app.exception_handler(Exception)
    async def general_exception_handler(
        request: Request, exc: Exception
    ) -> JSONResponse:
        """Catch-all handler that hides internal details unless debugging."""
        request_id = getattr(request.state, "request_id", get_request_id())
        logger.exception(
            f"Unexpected error: {type(exc).__name__}",
            error_type=type(exc).__name__,
        )
        if settings.debug:
            detail = f"Internal server error: {type(exc).__name__}: {exc}"
        else:
            detail = "Internal server error. Please try again later."

        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content=ErrorDetail(
                detail=detail,
                error_code=ErrorCode.INTERNAL_ERROR.value,
                request_id=request_id,
            ).model_dump(exclude_none=True),
        )

    @app.get("/health", response_model=HealthResponse, tags=["Health"])
    def health_check(request: Request) -> dict[str, Any]:
        """Report service status and the number of open workbooks."""
        return {
            "status": "healthy",
            "timestamp": datetime.now(UTC).isoformat(),
            "version": API_VERSION,
            "open_workbooks": _service(request).store.count(),
        }

    @app.post(
        "/api/upload",
        response_model=WorkbookResponse,
        status_code=status.HTTP_201_CREATED,
        tags=["Workbooks"],
        responses={
            400: {"model": ErrorDetail, "description": "No file uploaded"},
            413: {"model": ErrorDetail, "description": "File too large"},
            415: {"model": ErrorDetail, "description": "Not an Excel file"},
            422: {"model": ErrorDetail, "description": "Unreadable workbook"},
        },
    )
    async def upload_workbook(
        request: Request,
        file: Annotated[
            UploadFile | None, File(description="Excel workbook to edit")
        ] = None,
    ) -> dict[str, Any]:
        """Upload a workbook and return the content of all its sheets.

        The first sheet becomes the active sheet. Use the returned ``file_id``
        for every later request.
        """
        if file is None or not file.filename:
            raise ValidationError("No file uploaded", field="file")

        service = _service(request)
        filename = service.validate_filename(file.filename)
        if file.size is not None:
            service.validate_size(file.size, filename)

        # Never buffer more than one byte past the limit.
        content = await file.read(service.config.max_file_size_bytes + 1)
        session = await run_in_threadpool(service.upload, content, filename)
        return _to_response(session)

    @app.get(
        "/api/sheets/{file_id}",
        response_model=WorkbookResponse,
        tags=["Workbooks"],
        responses={404: {"model": ErrorDetail, "description": "File not found"}},
    )
    def get_workbook(request: Request, file_id: str) -> dict[str, Any]:
        """Return the current state of an uploaded workbook."""
        return _to_response(_service(request).get(file_id))

    @app.post(
        "/api/sheets/{file_id}/change-sheet",
        response_model=WorkbookResponse,
        tags=["Workbooks"],
        responses={
            400: {"model": ErrorDetail, "description": "Sheet not found"},
            404: {"model": ErrorDetail, "description": "File not found"},
        },
    )
    def change_sheet(
        request: Request, file_id: str, body: ChangeSheetRequest
    ) -> dict[str, Any]:
        """Make another sheet the active sheet. Edits to every sheet are kept."""
        return _to_response(_service(request).change_sheet(file_id, body.sheet_name))

    @app.post(
        "/api/sheets/{file_id}/update-cell",
        response_model=WorkbookResponse,
        tags=["Workbooks"],
        responses={
            400: {"model": ErrorDetail, "description": "Invalid cell coordinates"},
            404: {"model": ErrorDetail, "description": "File not found"},
        },
    )
    def update_cell(
        request: Request, file_id: str, body: UpdateCellRequest
    ) -> dict[str, Any]:
        """Write one cell of the active sheet, growing the sheet if needed."""
        session = _service(request).update_cell(
            file_id, body.row_index, body.column_index, body.value
        )
        return _to_response(session)

    @app.get(
        "/api/sheets/{file_id}/export",
        tags=["Workbooks"],
        response_class=Response,
        responses={
            200: {"content": {"application/octet-stream": {}}},
            404: {"model": ErrorDetail, "description": "File not found"},
            500: {"model": ErrorDetail, "description": "Export failed"},
        },
    )
    def export_workbook(
        request: Request,
        file_id: str,
        filename: Annotated[
            str | None, Query(description="Download name, defaults to the upload name")
        ] = None,
    ) -> Response:
        """Download every sheet of the workbook as an .xlsx file."""
        exported = _service(request).export(file_id, filename)
        logger.info(
            "Workbook exported",
            file_id=file_id,
            filename=exported.filename,
            size=len(exported.content),
        )
        return Response(
            content=exported.content,
            media_type=exported.media_type,
            headers={"Content-Disposition": _content_disposition(exported.filename)},
        )

    @app.delete(
        "/api/sheets/{file_id}",
        status_code=status.HTTP_204_NO_CONTENT,
        tags=["Workbooks"],
        responses={404: {"model": ErrorDetail, "description": "File not found"}},
    )
    def close_workbook(request: Request, file_id: str) -> Response:
        """Discard an uploaded workbook."""
        _service(request).close(file_id)
        return Response(status_code=status.HTTP_204_NO_CONTENT)

    logger.info("FastAPI application created successfully")
    return app


# Create the application instance
app = create_app()

"""
FastAPI application for the tabular exchange service.

This module exposes the ExchangeService over HTTP. Uploads are parsed
into position-keyed rows; JSON rows are exported as workbook or delimited
downloads, grid pages, report-designer text and RSS feeds.

API Endpoints:
    - GET /health: Health check
    - POST /parse: Upload and parse a csv/tsv/xls/xlsx file
    - POST /export/{fmt}: Export JSON rows as a file download
    - POST /grid: Render a grid JSON page
    - POST /report: Render report-designer text
    - POST /rss: Render an RSS 2.0 feed

Example:
    To run the server:
        uvicorn tabular_exchange.main:app --reload

    Or programmatically:
        from tabular_exchange.main import run_server
        run_server()
"""

from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Annotated, Any

import uvicorn
from fastapi import FastAPI, File, Form, HTTPException, UploadFile
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import PlainTextResponse, Response

from tabular_exchange import __version__
from tabular_exchange.config import get_settings
from tabular_exchange.exceptions.exchange_exceptions import TabularExchangeError
from tabular_exchange.logging_config import get_logger, setup_logging
from tabular_exchange.models.tabular_models import (
    ErrorResponse,
    ExportRequest,
    GridRequest,
    ParseResponse,
    ReportRequest,
    RssRequest,
)
from tabular_exchange.services.exchange_service import (
    ExchangeService,
    download_headers,
    resolve_format,
)

logger = get_logger(__name__)

exchange_service: ExchangeService | None = None

STATUS_CODE_MAP = {
    "UNSUPPORTED_FORMAT": 415,
    "UNSUPPORTED_SOURCE": 400,
    "PASSWORD_VERIFICATION_FAILED": 401,
    "UNSUPPORTED_CELL_CONTENT": 422,
    "MALFORMED_CONTAINER": 422,
    "INVALID_ROW": 422,
    "FILE_NOT_FOUND": 404,
    "PERMISSION_DENIED": 403,
}


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan manager.

    Configures logging and creates the exchange service on startup.

    Args:
        app: The FastAPI application instance.
    """
    global exchange_service
    settings = get_settings()
    setup_logging(settings.log_level)
    exchange_service = ExchangeService(settings=settings)
    logger.info("%s started", settings.app_name)
    yield
    exchange_service = None


app = FastAPI(
    title="Tabular Exchange Service",
    description="""
    Conversion between tabular data and interchange formats.

    ## Features

    - **Parse**: csv, tsv, xls and xlsx uploads, including password-protected workbooks
    - **Export**: xls, xlsx, csv and tsv downloads from JSON rows
    - **Render**: grid JSON pages, report-designer text and RSS 2.0 feeds

    Formula and error cells are rejected rather than evaluated.
    """,
    version=__version__,
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/openapi.json",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def get_service() -> ExchangeService:
    """
    Get the exchange service instance.

    Returns:
        The global ExchangeService instance.

    Raises:
        HTTPException: If the service is not initialized.
    """
    if exchange_service is None:
        raise HTTPException(
            status_code=503,
            detail="Exchange service is not initialized",
        )
    return exchange_service


def to_http_error(error: TabularExchangeError) -> HTTPException:
    """
    Convert a TabularExchangeError to an HTTPException.

    Args:
        error: The error raised by the service.

    Returns:
        HTTPException with a status code chosen from the error code.
    """
    status_code = STATUS_CODE_MAP.get(error.error_code, 500)
    logger.warning("Request failed with %s: %s", error.error_code, error.message)
    return HTTPException(status_code=status_code, detail=error.to_dict())


@app.get(
    "/health",
    tags=["System"],
    summary="Health check",
    response_model=dict,
)
async def health_check() -> dict[str, Any]:
    """
    Check the health status of the service.

    Returns:
        Dictionary containing status and timestamp.
    """
    return {
        "status": "healthy",
        "service": get_settings().app_name,
        "version": __version__,
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }


@app.post(
    "/parse",
    tags=["Parse"],
    summary="Upload and parse a file",
    response_model=ParseResponse,
    responses={
        401: {"model": ErrorResponse, "description": "Wrong password"},
        415: {"model": ErrorResponse, "description": "Unsupported file extension"},
        422: {"model": ErrorResponse, "description": "Malformed file or unsupported cells"},
    },
)
async def parse_upload(
    file: Annotated[UploadFile, File(description="csv, tsv, xls or xlsx file")],
    password: Annotated[str | None, Form(description="Workbook password")] = None,
) -> ParseResponse:
    """
    Parse the first sheet (or the text lines) of an uploaded file.

    Rows are returned keyed by 0-based column position; header names are
    not preserved.

    Args:
        file: The uploaded file. Its extension selects the parser.
        password: Password for an encrypted xls/xlsx workbook.

    Returns:
        ParseResponse containing the decoded rows.

    Raises:
        HTTPException: If the file cannot be parsed.
    """
    if not file.filename:
        raise HTTPException(
            status_code=400,
            detail={"error_code": "INVALID_FILE", "message": "No file provided"},
        )

    service = get_service()
    content = await file.read()

    try:
        return service.parse_upload(file.filename, content, password=password)
    except TabularExchangeError as e:
        raise to_http_error(e) from e


@app.post(
    "/export/{fmt}",
    tags=["Export"],
    summary="Export rows as a file download",
    response_class=Response,
    responses={
        415: {"model": ErrorResponse, "description": "Unsupported format"},
        500: {"model": ErrorResponse, "description": "Write error"},
    },
)
async def export_rows(fmt: str, request: ExportRequest) -> Response:
    """
    Encode JSON rows as xls, xlsx, csv or tsv and return them as a download.

    Columns come from the keys of the first row.

    Args:
        fmt: Target format.
        request: ExportRequest with the rows and optional file name.

    Returns:
        Binary response with download headers.

    Raises:
        HTTPException: If the format is unknown or encoding fails.
    """
    service = get_service()

    try:
        export_format = resolve_format(fmt)
        result = service.encode(request.rows, export_format)
    except TabularExchangeError as e:
        raise to_http_error(e) from e

    file_name = request.file_name or f"export.{export_format.value}"
    headers = download_headers(file_name)
    media_type = headers.pop("Content-Type")
    return Response(content=result.content, media_type=media_type, headers=headers)


@app.post(
    "/grid",
    tags=["Render"],
    summary="Render a grid JSON page",
    response_class=Response,
)
async def render_grid(request: GridRequest) -> Response:
    """
    Render one page of rows in the grid widget's JSON layout.

    Args:
        request: GridRequest with the page rows and paging counters.

    Returns:
        JSON response assembled by the grid renderer.
    """
    service = get_service()

    try:
        text = service.render_grid(
            request.rows,
            total_count=request.total_count,
            current_page=request.current_page,
            rows_per_page=request.rows_per_page,
            col_names=request.col_names,
        )
    except TabularExchangeError as e:
        raise to_http_error(e) from e

    return Response(content=text, media_type="application/json")


@app.post(
    "/report",
    tags=["Render"],
    summary="Render report-designer text",
    response_class=PlainTextResponse,
)
async def render_report(request: ReportRequest) -> PlainTextResponse:
    """
    Render rows as separator-delimited report-designer text.

    Args:
        request: ReportRequest with rows and optional separators.

    Returns:
        Plain-text response.
    """
    service = get_service()

    try:
        text = service.render_report(
            request.rows,
            column_separator=request.column_separator,
            line_separator=request.line_separator,
        )
    except TabularExchangeError as e:
        raise to_http_error(e) from e

    return PlainTextResponse(content=text)


@app.post(
    "/rss",
    tags=["Render"],
    summary="Render an RSS feed",
    response_class=Response,
)
async def render_rss(request: RssRequest) -> Response:
    """
    Render an RSS 2.0 feed from a list of items.

    The body is encoded with the requested encoding, matching the XML
    declaration.

    Args:
        request: RssRequest with channel fields and items.

    Returns:
        XML response.
    """
    service = get_service()

    try:
        text = service.render_feed(
            request.items,
            title=request.title,
            link=request.link,
            description=request.description,
            encoding=request.encoding,
            web_master=request.web_master,
        )
        content = text.encode(request.encoding)
    except TabularExchangeError as e:
        raise to_http_error(e) from e
    except (LookupError, UnicodeEncodeError) as e:
        raise HTTPException(
            status_code=400,
            detail={"error_code": "INVALID_ENCODING", "message": str(e)},
        ) from e

    return Response(
        content=content,
        media_type=f"application/rss+xml; charset={request.encoding}",
    )


def run_server(
    host: str | None = None,
    port: int | None = None,
    reload: bool = False,
) -> None:
    """
    Run the FastAPI server.

    Args:
        host: Host to bind to. Defaults to the configured host.
        port: Port to listen on. Defaults to the configured port.
        reload: Whether to enable auto-reload. Defaults to False.

    Example:
        from tabular_exchange.main import run_server
        run_server(host="127.0.0.1", port=8080)
    """
    settings = get_settings()
    uvicorn.run(
        "tabular_exchange.main:app",
        host=host or settings.host,
        port=port or settings.port,
        reload=reload,
    )


if __name__ == "__main__":
    run_server()

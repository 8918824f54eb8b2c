import logging
from fastapi import APIRouter, UploadFile, File, HTTPException, Request
from slowapi.errors import RateLimitExceeded
from chartwise.core.config import get_settings
from chartwise.core.errors import ErrorCodes, get_error_response
from chartwise.core.sanitization import sanitize_filename, sanitize_for_logging
from chartwise.core.schemas import (
    AnalyzeRequest,
    AxisChangeRequest,
    ChartTypeChangeRequest,
    DashboardResponse,
    ExploreChartRequest,
    ExploreChartResponse,
    ExplorerConfig,
    ExplorerUpdate,
    ValidateRequest,
    ValidateResponse,
)
from chartwise.services.dashboard import build_dashboard
from chartwise.services.explorer import (
    apply_axis_change,
    apply_chart_type,
    chart_type_availability,
    describe_chart,
    prepare_chart_data,
)
from chartwise.services.parser import (
    clean_dataframe,
    convert_date_columns,
    dataframe_to_rows,
    parse_file,
    validate_file_content,
)
from chartwise.services.validator import validate_chart, suggest_smart_config

logger = logging.getLogger(__name__)

router = APIRouter()


def _error(request: Request, status_code: int, code: str, detail: str = None) -> HTTPException:
    error_info = get_error_response(code, detail)
    error_info['correlation_id'] = getattr(request.state, 'correlation_id', 'unknown')
    return HTTPException(status_code=status_code, detail=error_info)


@router.get("/health")
async def health_check():
    return {"status": "ok"}


async def _check_file_size_streaming(file: UploadFile, max_bytes: int) -> int:
    """Count the upload's bytes in chunks, stopping once max_bytes is passed."""
    file_size = 0
    chunk_size = 1024 * 1024

    await file.seek(0)
    while True:
        chunk = await file.read(chunk_size)
        if not chunk:
            break
        file_size += len(chunk)
        if file_size > max_bytes:
            break

    await file.seek(0)
    return file_size


async def _process_upload(file: UploadFile, request: Request) -> DashboardResponse:
    settings = get_settings()

    file_size = await _check_file_size_streaming(file, settings.max_file_size_bytes)
    if file_size > settings.max_file_size_bytes:
        raise _error(
            request, 413, ErrorCodes.FILE_TOO_LARGE,
            f"Maximum size is {settings.max_file_size_mb}MB."
        )
    if file_size == 0:
        raise _error(request, 400, ErrorCodes.FILE_EMPTY)

    safe_filename = sanitize_filename(file.filename)
    logger.info(f"Processing file: {sanitize_for_logging(safe_filename)}, size: {file_size / 1024:.2f}KB")

    df = await parse_file(file)
    validate_file_content(df)
    df = clean_dataframe(df)
    if df.empty:
        raise _error(request, 400, ErrorCodes.NO_DATA, "No rows left after removing empty rows and columns.")

    df = convert_date_columns(df, dayfirst=settings.date_dayfirst)
    dashboard = build_dashboard(dataframe_to_rows(df), settings, filename=safe_filename)
    if dashboard is None:
        raise _error(request, 400, ErrorCodes.NO_DATA)

    logger.info(
        f"Processed file: {sanitize_for_logging(safe_filename)}, "
        f"{dashboard.analysis.row_count} rows, {len(dashboard.recommendations)} recommendations"
    )
    return dashboard


@router.post("/upload", response_model=DashboardResponse)
async def upload_file(request: Request, file: UploadFile = File(...)):
    """
    Upload a CSV or Excel file and get its analysis and recommended charts.

    Rate limited per client IP (RATE_LIMIT_PER_MINUTE).
    """
    limiter = request.app.state.limiter
    limit_decorator = limiter.limit(f"{get_settings().rate_limit_per_minute}/minute")

    @limit_decorator
    async def _rate_limited_handler(request: Request):
        return await _process_upload(file, request)

    try:
        return await _rate_limited_handler(request)
    except (HTTPException, RateLimitExceeded):
        raise
    except Exception as e:
        logger.error(
            f"Unexpected error processing file {sanitize_for_logging(sanitize_filename(file.filename))}: {e}",
            exc_info=True
        )
        raise _error(request, 500, ErrorCodes.UNKNOWN_ERROR)


@router.post("/analyze", response_model=DashboardResponse)
async def analyze_rows(request: Request, body: AnalyzeRequest):
    """Analyze rows that are already parsed (e.g. pasted or fetched by the client)."""
    dashboard = build_dashboard(body.rows, get_settings())
    if dashboard is None:
        raise _error(request, 400, ErrorCodes.NO_DATA)
    return dashboard


@router.post("/validate", response_model=ValidateResponse)
async def validate(body: ValidateRequest):
    """Check whether a chart type fits two columns and suggest a better one."""
    validation = validate_chart(body.chart_type, body.x_column, body.y_column)
    suggestion = None
    if body.x_column is not None and body.y_column is not None:
        suggestion = suggest_smart_config(body.x_column, body.y_column)
    return ValidateResponse(validation=validation, suggestion=suggestion)


@router.post("/explore/axis", response_model=ExplorerUpdate)
async def explore_axis(body: AxisChangeRequest):
    """Apply an axis selection to the explorer config."""
    return apply_axis_change(body.config, body.axis, body.key, body.columns)


@router.post("/explore/type", response_model=ExplorerConfig)
async def explore_type(body: ChartTypeChangeRequest):
    """Switch the explorer chart type; blocked or auto-fixed types leave the config unchanged."""
    return apply_chart_type(body.config, body.chart_type, body.columns)


@router.post("/explore/chart", response_model=ExploreChartResponse)
async def explore_chart(body: ExploreChartRequest):
    """Rows, caption and per-type availability for the explorer chart."""
    settings = get_settings()
    x_col = next((c for c in body.columns if c.key == body.config.x_axis), None)
    y_col = next((c for c in body.columns if c.key == body.config.y_axis), None)

    validation = None
    if x_col is not None and y_col is not None:
        validation = validate_chart(body.config.type, x_col, y_col)

    prepared = prepare_chart_data(
        body.data,
        body.config,
        body.columns,
        scatter_threshold=settings.scatter_sample_threshold,
        scatter_sample_size=settings.scatter_sample_size,
        bar_top_n=settings.bar_top_n,
        pie_max_slices=settings.pie_max_slices
    )
    caption = describe_chart(body.config, x_col, y_col, prepared, body.hint, validation)

    return ExploreChartResponse(
        prepared=prepared,
        caption=caption,
        validation=validation,
        availability=chart_type_availability(x_col, y_col)
    )

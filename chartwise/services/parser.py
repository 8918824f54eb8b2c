"""
File ingestion: turns an uploaded CSV or Excel file into row records.

The analysis engine works on plain dicts, so this module is the only place
that knows about pandas frames, sheets and encodings.
"""
import logging
import numpy as np
import pandas as pd
from io import BytesIO
from pathlib import Path
from typing import Any, Dict, List, Optional
from fastapi import UploadFile, HTTPException
from openpyxl import load_workbook
from chartwise.core.config import get_settings
from chartwise.core.errors import ErrorCodes, get_error_response
from chartwise.core.performance import track_performance
from chartwise.core.sanitization import sanitize_filename, clean_column_name, validate_column_name

logger = logging.getLogger(__name__)

ALLOWED_EXTENSIONS = {'.csv', '.xlsx', '.xls'}

MIME_TYPE_MAP = {
    'text/csv': '.csv',
    'application/vnd.ms-excel': '.xls',
    'application/vnd.openxmlformats-officedocument.spreadsheetml.sheet': '.xlsx',
}

DANGEROUS_MIME_TYPES = {
    'application/x-executable',
    'application/x-sharedlib',
    'application/x-msdownload',
    'application/javascript',
    'text/html',
}

# Date detection on text columns
DATE_SAMPLE_SIZE = 1000
DATE_PARSE_THRESHOLD = 0.8
DATE_MIN_LENGTH = 6


def _bad_request(code: str, detail: Optional[str] = None) -> HTTPException:
    return HTTPException(status_code=400, detail=get_error_response(code, detail))


def _is_text_column(series: pd.Series) -> bool:
    return pd.api.types.is_object_dtype(series) or pd.api.types.is_string_dtype(series)


def validate_file_extension(filename: str) -> str:
    """
    Return the lower-cased extension of an uploaded file.

    Raises:
        HTTPException: If the name has no extension or an unsupported one
    """
    if not filename:
        raise _bad_request(ErrorCodes.INVALID_FILE_TYPE, "Filename is required.")

    file_ext = Path(filename).suffix.lower()
    if file_ext not in ALLOWED_EXTENSIONS:
        raise _bad_request(
            ErrorCodes.INVALID_FILE_TYPE,
            f"Got '{file_ext or 'no extension'}'."
        )
    return file_ext


def validate_mime_type(content_type: Optional[str], file_ext: str) -> None:
    """
    Reject obviously wrong MIME types. A mismatch between a spreadsheet MIME
    type and the extension is only logged; browsers get this wrong often.
    """
    if not content_type:
        return

    content_type = content_type.lower()
    expected_ext = MIME_TYPE_MAP.get(content_type)
    if expected_ext and expected_ext != file_ext:
        logger.warning(f"MIME type {content_type} doesn't match extension {file_ext}")

    if content_type in DANGEROUS_MIME_TYPES:
        raise _bad_request(ErrorCodes.INVALID_FILE_TYPE, f"'{content_type}' is not allowed.")


def _read_csv(contents: bytes) -> pd.DataFrame:
    try:
        return pd.read_csv(BytesIO(contents))
    except UnicodeDecodeError:
        logger.info("CSV is not UTF-8, retrying as latin1")
        return pd.read_csv(BytesIO(contents), encoding='latin1')


def _read_xlsx(contents: bytes) -> pd.DataFrame:
    """
    Read the largest sheet of a workbook, filling merged ranges with their
    top-left value so grouped labels are not lost.
    """
    wb = load_workbook(BytesIO(contents), data_only=True)
    ws = max(wb.worksheets, key=lambda sheet: sheet.max_row)

    merged_ranges = list(ws.merged_cells.ranges)
    for merged in merged_ranges:
        value = ws.cell(merged.min_row, merged.min_col).value
        ws.unmerge_cells(str(merged))
        for row in range(merged.min_row, merged.max_row + 1):
            for col in range(merged.min_col, merged.max_col + 1):
                ws.cell(row, col, value)
    if merged_ranges:
        logger.info(f"Unmerged {len(merged_ranges)} cell ranges in sheet '{ws.title}'")

    values = list(ws.values)
    if not values:
        return pd.DataFrame()

    header, body = values[0], values[1:]
    columns = [str(c) if c is not None else f"Column {i + 1}" for i, c in enumerate(header)]
    return pd.DataFrame(body, columns=columns)


def _read_xls(contents: bytes) -> pd.DataFrame:
    sheets = pd.read_excel(BytesIO(contents), sheet_name=None)
    if not sheets:
        return pd.DataFrame()
    name, df = max(sheets.items(), key=lambda item: len(item[1]))
    if len(sheets) > 1:
        logger.info(f"Selected sheet '{name}' ({len(df)} rows) from {len(sheets)} sheets")
    return df


@track_performance("parse_upload")
async def parse_file(file: UploadFile) -> pd.DataFrame:
    """
    Parse an uploaded file into a DataFrame.

    Raises:
        HTTPException: 400 with a structured error body for bad input
    """
    file_ext = validate_file_extension(file.filename)
    validate_mime_type(file.content_type, file_ext)

    contents = await file.read()
    if len(contents) == 0:
        raise _bad_request(ErrorCodes.FILE_EMPTY)

    try:
        if file_ext == '.csv':
            df = _read_csv(contents)
        elif file_ext == '.xlsx':
            df = _read_xlsx(contents)
        else:
            df = _read_xls(contents)
    except pd.errors.EmptyDataError:
        raise _bad_request(ErrorCodes.FILE_EMPTY)
    except Exception as e:
        logger.error(f"Error parsing {file_ext} file: {e}")
        raise _bad_request(ErrorCodes.PARSE_ERROR)

    if df.empty:
        raise _bad_request(ErrorCodes.FILE_EMPTY)

    logger.info(f"Parsed file: {sanitize_filename(file.filename)}, shape: {df.shape}")
    return df


def validate_file_content(df: pd.DataFrame) -> None:
    """
    Check row, column and cell-size limits of a parsed file.

    Raises:
        HTTPException: If any limit is exceeded or a column name is unsafe
    """
    settings = get_settings()

    if len(df) > settings.max_file_rows:
        raise _bad_request(
            ErrorCodes.FILE_TOO_LARGE,
            f"{len(df):,} rows; maximum is {settings.max_file_rows:,}."
        )

    if len(df.columns) > settings.max_file_columns:
        raise _bad_request(
            ErrorCodes.FILE_TOO_LARGE,
            f"{len(df.columns)} columns; maximum is {settings.max_file_columns}."
        )

    for col in df.columns:
        if not validate_column_name(str(col)):
            raise _bad_request(ErrorCodes.PARSE_ERROR, f"Invalid column name: '{col}'.")

        if _is_text_column(df[col]):
            max_length = df[col].dropna().astype(str).str.len().max()
            if pd.notna(max_length) and max_length > settings.max_cell_size_bytes:
                raise _bad_request(
                    ErrorCodes.FILE_TOO_LARGE,
                    f"Column '{col}' holds values over {settings.max_cell_size_bytes} bytes."
                )


def clean_dataframe(df: pd.DataFrame) -> pd.DataFrame:
    """Drop fully empty rows and columns and tidy header names."""
    df = df.dropna(how='all', axis=0)
    df = df.dropna(how='all', axis=1)
    df.columns = [clean_column_name(col) for col in df.columns]
    return df.reset_index(drop=True)


def convert_date_columns(df: pd.DataFrame, dayfirst: bool = False) -> pd.DataFrame:
    """
    Convert text columns that mostly hold dates into datetime columns.

    A column is converted when its first value is a string longer than six
    characters, it is not mostly numeric, and more than 80% of a sample
    parses as dates. Unparseable cells become missing.
    """
    df = df.copy()
    for col in df.columns:
        if not _is_text_column(df[col]):
            continue
        sample = df[col].dropna().head(DATE_SAMPLE_SIZE)
        if sample.empty:
            continue

        first_valid = sample.iloc[0]
        if not isinstance(first_valid, str) or len(first_valid) <= DATE_MIN_LENGTH:
            continue

        text = sample.astype(str)
        if pd.to_numeric(text.str.replace(',', '', regex=False), errors='coerce').notna().mean() > DATE_PARSE_THRESHOLD:
            continue

        try:
            parsed = pd.to_datetime(text, errors='coerce', format='mixed', dayfirst=dayfirst, utc=True)
            if parsed.notna().mean() <= DATE_PARSE_THRESHOLD:
                continue
            df[col] = pd.to_datetime(
                df[col].astype('string'), errors='coerce', format='mixed', dayfirst=dayfirst, utc=True
            ).dt.tz_localize(None)
            logger.debug(f"Converted column {col} to datetime")
        except (ValueError, TypeError) as e:
            logger.debug(f"Could not convert column {col}: {e}")

    return df


def _to_python(value: Any) -> Any:
    if value is None:
        return None
    if isinstance(value, pd.Timestamp):
        return None if pd.isna(value) else value.to_pydatetime()
    if isinstance(value, np.generic):
        value = value.item()
    if isinstance(value, float) and np.isnan(value):
        return None
    if value is pd.NaT or value is pd.NA:
        return None
    return value


def dataframe_to_rows(df: pd.DataFrame) -> List[Dict[str, Any]]:
    """Row records with plain Python values; NaN/NaT become None."""
    return [
        {str(key): _to_python(value) for key, value in record.items()}
        for record in df.to_dict(orient='records')
    ]

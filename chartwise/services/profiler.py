"""
Column type inference, value cleaning and per-column statistics.

Turns loosely typed row records (as produced by CSV/Excel readers) into
typed rows plus column metadata. Everything here is pure: inputs are never
mutated and every call builds a fresh result.
"""
import re
import math
import logging
import numpy as np
from collections import Counter
from typing import List, Dict, Any, Optional, Sequence
from chartwise.core.schemas import (
    AnalysisResult,
    AnalyzedColumn,
    CellValue,
    ColumnMetadata,
    ColumnStats,
    TopValue,
)
from chartwise.services.dates import DateParser, default_date_parser

logger = logging.getLogger(__name__)

# Type inference only looks at the head of large datasets
TYPE_SAMPLE_SIZE = 500
NUMERIC_RATIO_THRESHOLD = 0.8
DATE_RATIO_THRESHOLD = 0.8
CATEGORY_MAX_UNIQUE = 20
CATEGORY_MAX_UNIQUE_RATIO = 0.2
CATEGORY_RATIO_MAX_UNIQUE = 50
TOP_VALUES_LIMIT = 10

NON_NUMERIC_CHARS = re.compile(r"[^0-9.\-]")
# What a float parser accepts from the start of an already-stripped string
LEADING_FLOAT = re.compile(r"^-?(?:\d+(?:\.\d*)?|\.\d+)")


def format_label(key: str) -> str:
    """Turn "customer_id" into "Customer id" and "totalSales" into "Total Sales"."""
    label = key.replace("_", " ")
    label = re.sub(r"([A-Z])", r" \1", label)
    label = label[:1].upper() + label[1:]
    return label.strip()


def is_missing(value: Any) -> bool:
    if value is None or value == "":
        return True
    return isinstance(value, float) and math.isnan(value)


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _parse_leading_float(text: str) -> Optional[float]:
    match = LEADING_FLOAT.match(text)
    if not match:
        return None
    return float(match.group(0))


def is_numeric(value: Any) -> bool:
    """True for numbers and for strings like "$1,200.50" or "50%"."""
    if _is_number(value):
        return True
    if not isinstance(value, str):
        return False
    clean = NON_NUMERIC_CHARS.sub("", value)
    if not clean:
        return False
    number = _parse_leading_float(clean)
    return number is not None and math.isfinite(number)


def analyze_column_type(
    rows: Sequence[Dict[str, Any]],
    key: str,
    date_parser: Optional[DateParser] = None
) -> ColumnMetadata:
    """
    Classify a column as number, date, category or text.

    Only the first TYPE_SAMPLE_SIZE rows are inspected. Empty values are
    ignored; the first matching rule wins:
    numeric ratio > 0.8, date ratio > 0.8, low cardinality, otherwise text.
    """
    date_parser = date_parser or default_date_parser
    numeric_count = 0
    date_count = 0
    valid_count = 0
    unique_values = set()

    for row in rows[:TYPE_SAMPLE_SIZE]:
        value = row.get(key)
        if is_missing(value):
            continue
        valid_count += 1
        unique_values.add(value)

        if is_numeric(value):
            numeric_count += 1
        if date_parser.looks_like_date(value):
            date_count += 1

    label = format_label(key)
    if valid_count == 0:
        return ColumnMetadata(key=key, type="text", label=label)

    numeric_ratio = numeric_count / valid_count
    date_ratio = date_count / valid_count
    unique_count = len(unique_values)
    unique_ratio = unique_count / valid_count

    column_type = "text"
    if numeric_ratio > NUMERIC_RATIO_THRESHOLD:
        column_type = "number"
    elif date_ratio > DATE_RATIO_THRESHOLD:
        column_type = "date"
    elif unique_count <= CATEGORY_MAX_UNIQUE or (
        unique_ratio < CATEGORY_MAX_UNIQUE_RATIO and unique_count < CATEGORY_RATIO_MAX_UNIQUE
    ):
        column_type = "category"

    return ColumnMetadata(key=key, type=column_type, label=label)


def parse_value(
    value: Any,
    column_type: str,
    date_parser: Optional[DateParser] = None
) -> CellValue:
    """Clean a raw cell according to its column's inferred type."""
    if is_missing(value):
        return None

    if column_type == "number":
        if _is_number(value):
            return value if math.isfinite(value) else None
        clean = NON_NUMERIC_CHARS.sub("", str(value).replace(",", ""))
        number = _parse_leading_float(clean)
        if number is None or not math.isfinite(number):
            return None
        return number

    if column_type == "date":
        return (date_parser or default_date_parser).to_datetime(value)

    return value


def calculate_stats(values: Sequence[CellValue], column_type: str) -> ColumnStats:
    """
    Descriptive statistics for one column of cleaned values.

    When a column has no valid values only null_count is filled in; the
    remaining fields stay None and mean "no data", not zero.
    """
    valid = [v for v in values if v is not None]
    null_count = len(values) - len(valid)

    if not valid:
        return ColumnStats(null_count=null_count)

    if column_type == "number":
        arr = np.asarray(valid, dtype=float)
        # Population variance (ddof=0)
        variance = float(np.var(arr))
        return ColumnStats(
            null_count=null_count,
            min=float(arr.min()),
            max=float(arr.max()),
            mean=float(arr.mean()),
            median=float(np.median(arr)),
            sum=float(arr.sum()),
            std_dev=math.sqrt(variance),
            variance=variance,
            unique_count=len(set(valid)),
        )

    if column_type in ("category", "text"):
        counts = Counter(valid)
        # most_common() is a stable sort: ties keep first-seen order
        ranked = counts.most_common()
        return ColumnStats(
            null_count=null_count,
            unique_count=len(ranked),
            top=[TopValue(val=val, count=count) for val, count in ranked[:TOP_VALUES_LIMIT]],
        )

    if column_type == "date":
        return ColumnStats(null_count=null_count, min=min(valid), max=max(valid))

    return ColumnStats(null_count=null_count)


def process_data(
    raw_rows: Optional[Sequence[Dict[str, Any]]],
    date_parser: Optional[DateParser] = None
) -> Optional[AnalysisResult]:
    """
    Analyze a dataset of raw row records.

    Column keys come from the first row. Every cell is re-parsed with its
    column's inferred type and statistics are computed on the cleaned values.

    Returns:
        AnalysisResult, or None when there are no rows to analyze
    """
    if not raw_rows:
        return None

    rows = list(raw_rows)
    keys = list(rows[0].keys())

    metadata = [analyze_column_type(rows, key, date_parser) for key in keys]

    clean_rows: List[Dict[str, Any]] = [
        {meta.key: parse_value(row.get(meta.key), meta.type, date_parser) for meta in metadata}
        for row in rows
    ]

    columns = []
    for meta in metadata:
        values = [row[meta.key] for row in clean_rows]
        stats = calculate_stats(values, meta.type)
        columns.append(AnalyzedColumn(**meta.model_dump(), stats=stats))

    logger.debug(
        f"Analyzed {len(rows)} rows: " + ", ".join(f"{c.key}={c.type}" for c in columns)
    )

    return AnalysisResult(data=clean_rows, columns=columns, row_count=len(rows))

"""
Manual exploration state.

The explorer lets a user pick two axes and a chart type. Every update
returns a new ExplorerConfig; auto-correction is applied here on top of
the pure validation rules.
"""
import logging
from typing import Dict, Any, Optional, Sequence
from chartwise.core.schemas import (
    AnalyzedColumn,
    ExplorerConfig,
    ExplorerUpdate,
    PreparedChartData,
    Severity,
    ValidationResult,
)
from chartwise.services.aggregation import aggregate_data, calculate_correlation, paired_values, sample_data
from chartwise.services.validator import validate_chart, suggest_smart_config

logger = logging.getLogger(__name__)

SELECTABLE_CHART_TYPES = ["bar", "line", "pie", "doughnut", "scatter"]

SWITCH_HINTS = {
    "scatter": "Auto-switched to Scatter because both axes are numeric.",
    "line": "Auto-switched to Line for time-series trend.",
    "bar": "Auto-switched to Bar for category comparison.",
}


def _find_column(columns: Sequence[AnalyzedColumn], key: Optional[str]) -> Optional[AnalyzedColumn]:
    return next((c for c in columns if c.key == key), None)


def apply_axis_change(
    config: ExplorerConfig,
    axis: str,
    key: str,
    columns: Sequence[AnalyzedColumn]
) -> ExplorerUpdate:
    """
    Select a new column for the x or y axis.

    When both axes are set and the current chart type no longer fits (or
    the rules would auto-fix it), the chart type switches to the smart
    default for the pair and a hint explains the switch.
    """
    field = "x_axis" if axis == "x" else "y_axis"
    new_config = config.model_copy(update={field: key})

    x_col = _find_column(columns, new_config.x_axis)
    y_col = _find_column(columns, new_config.y_axis)
    if x_col is None or y_col is None:
        return ExplorerUpdate(config=new_config)

    smart = suggest_smart_config(x_col, y_col)
    if smart is None:
        return ExplorerUpdate(config=new_config)

    current = validate_chart(new_config.type, x_col, y_col)
    if current.valid and current.severity != Severity.AUTO_FIX:
        return ExplorerUpdate(config=new_config)

    update: Dict[str, Any] = {"type": smart.type}
    if smart.aggregation:
        update["aggregation"] = smart.aggregation
    switched = new_config.model_copy(update=update)

    hint = SWITCH_HINTS.get(smart.type, "")
    logger.debug(f"Explorer switched chart type {new_config.type} -> {smart.type}")
    return ExplorerUpdate(config=switched, hint=hint)


def apply_chart_type(
    config: ExplorerConfig,
    chart_type: str,
    columns: Sequence[AnalyzedColumn]
) -> ExplorerConfig:
    """Switch chart type unless the rules block or auto-fix it for the current axes."""
    x_col = _find_column(columns, config.x_axis)
    y_col = _find_column(columns, config.y_axis)
    status = validate_chart(chart_type, x_col, y_col)
    if status.severity in (Severity.BLOCK, Severity.AUTO_FIX):
        return config
    return config.model_copy(update={"type": chart_type})


def chart_type_availability(
    x_col: Optional[AnalyzedColumn],
    y_col: Optional[AnalyzedColumn]
) -> Dict[str, ValidationResult]:
    return {t: validate_chart(t, x_col, y_col) for t in SELECTABLE_CHART_TYPES}


def prepare_chart_data(
    data: Sequence[Dict[str, Any]],
    config: ExplorerConfig,
    columns: Sequence[AnalyzedColumn],
    scatter_threshold: int = 1000,
    scatter_sample_size: int = 500,
    bar_top_n: int = 20,
    pie_max_slices: int = 6
) -> Optional[PreparedChartData]:
    """
    Shape the rows a renderer should draw for the current explorer config.

    Scatter plots of large datasets are randomly sampled. Bar, line and pie
    charts over a non-numeric x-axis are aggregated; bars keep the top
    categories and pies the biggest slices.

    Returns:
        PreparedChartData, or None when axes are missing or the chart is blocked
    """
    x_col = _find_column(columns, config.x_axis)
    y_col = _find_column(columns, config.y_axis)
    if x_col is None or y_col is None:
        return None

    validation = validate_chart(config.type, x_col, y_col)
    if not validation.valid and validation.severity == Severity.BLOCK:
        return None

    if config.type == "scatter":
        if len(data) > scatter_threshold:
            sampled = sample_data(data, scatter_sample_size)
            return PreparedChartData(
                rows=list(sampled),
                info=f"Showing a random sample of {scatter_sample_size} out of {len(data)} records for clarity."
            )
        return PreparedChartData(rows=list(data))

    if config.aggregation and x_col.type != "number":
        limit = None
        info = None
        if config.type in ("pie", "doughnut"):
            limit = pie_max_slices
        if config.type == "bar" and (x_col.stats.unique_count or 0) > bar_top_n:
            limit = bar_top_n
            info = f"Data aggregated to Top {bar_top_n} categories for better readability."
        rows = aggregate_data(data, x_col.key, y_col.key, config.aggregation, limit)
        return PreparedChartData(rows=rows, info=info)

    return PreparedChartData(rows=list(data))


def describe_chart(
    config: ExplorerConfig,
    x_col: Optional[AnalyzedColumn],
    y_col: Optional[AnalyzedColumn],
    prepared: Optional[PreparedChartData],
    hint: str = "",
    validation: Optional[ValidationResult] = None
) -> str:
    """Caption shown under the explorer chart."""
    if prepared is None or x_col is None or y_col is None:
        return "Select axes to explore."

    if hint:
        return hint

    if config.type == "scatter":
        xs, ys = paired_values(prepared.rows, x_col.key, y_col.key)
        return f"Correlation: {calculate_correlation(xs, ys):.2f}"

    if validation is not None and validation.severity == Severity.WARN:
        return f"Note: {validation.reason}"

    prefix = f"{config.aggregation} of " if config.aggregation else ""
    return f"{prefix}{y_col.label} by {x_col.label}"

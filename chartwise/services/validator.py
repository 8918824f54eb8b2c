"""
Chart validity rules.

Decides whether a (chart type, x column, y column) combination is a
meaningful chart and suggests sensible defaults for an axis pair.
Rules are evaluated in order and the first one that applies wins.
"""
from typing import Optional
from chartwise.core.schemas import AnalyzedColumn, Severity, SmartSuggestion, ValidationResult

PIE_MAX_SLICES = 6
BAR_MAX_CATEGORIES = 20


def _has_negatives(col: AnalyzedColumn) -> bool:
    min_value = col.stats.min
    return isinstance(min_value, (int, float)) and min_value < 0


def validate_chart(
    chart_type: str,
    x_col: Optional[AnalyzedColumn],
    y_col: Optional[AnalyzedColumn]
) -> ValidationResult:
    """
    Validate a chart configuration.

    Never raises: invalid combinations come back with a severity of
    BLOCK (disallow), WARN (allow with a caveat) or AUTO_FIX (switch to
    suggested_type).
    """
    if x_col is None or y_col is None:
        return ValidationResult(valid=False, severity=Severity.BLOCK, reason="Select axes first")

    unique_x = x_col.stats.unique_count or 0
    is_x_numeric = x_col.type == "number"
    is_y_numeric = y_col.type == "number"

    # Numeric vs numeric must be a scatter plot
    if is_x_numeric and is_y_numeric:
        if chart_type != "scatter":
            return ValidationResult(
                valid=False,
                severity=Severity.AUTO_FIX,
                reason="Both axes are numeric. Switching to Scatter Plot.",
                suggested_type="scatter"
            )
        return ValidationResult(valid=True)

    if chart_type == "scatter":
        return ValidationResult(
            valid=False,
            severity=Severity.BLOCK,
            reason="Scatter plots require both axes to be numeric."
        )

    if chart_type in ("pie", "doughnut"):
        if is_x_numeric:
            return ValidationResult(
                valid=False,
                severity=Severity.BLOCK,
                reason="Pie charts require a categorical X-axis."
            )
        if _has_negatives(y_col):
            return ValidationResult(
                valid=False,
                severity=Severity.BLOCK,
                reason="Pie charts cannot display negative values."
            )
        if unique_x > PIE_MAX_SLICES:
            return ValidationResult(
                valid=False,
                severity=Severity.BLOCK,
                reason=f"Too many slices ({unique_x} > {PIE_MAX_SLICES})."
            )
        return ValidationResult(valid=True)

    if chart_type == "bar":
        if is_x_numeric and unique_x > BAR_MAX_CATEGORIES:
            return ValidationResult(
                valid=False,
                severity=Severity.AUTO_FIX,
                reason="Continuous numeric X-axis. Switching to Scatter.",
                suggested_type="scatter"
            )
        if unique_x > BAR_MAX_CATEGORIES:
            return ValidationResult(
                valid=True,
                severity=Severity.WARN,
                reason=f"High cardinality ({unique_x}). Will show Top {BAR_MAX_CATEGORIES} items."
            )
        return ValidationResult(valid=True)

    if chart_type == "line":
        if x_col.type != "date" and not is_x_numeric:
            return ValidationResult(
                valid=False,
                severity=Severity.BLOCK,
                reason="Line charts require Date or Numeric X-axis for trends."
            )
        return ValidationResult(valid=True)

    return ValidationResult(valid=True)


def suggest_smart_config(
    x_col: Optional[AnalyzedColumn],
    y_col: Optional[AnalyzedColumn]
) -> Optional[SmartSuggestion]:
    """Best default chart for an axis pair, or None when there is no opinion."""
    if x_col is None or y_col is None:
        return None

    if y_col.type != "number":
        return None

    if x_col.type == "number":
        return SmartSuggestion(type="scatter", aggregation=None)

    if x_col.type == "date":
        return SmartSuggestion(type="line", aggregation="mean")

    return SmartSuggestion(type="bar", aggregation="mean")

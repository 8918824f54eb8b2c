"""
Unit tests for chart validation and smart defaults.
"""
import pytest
from datetime import datetime
from chartwise.core.schemas import Severity
from chartwise.services.validator import validate_chart, suggest_smart_config
from conftest import make_column


@pytest.fixture
def num_x():
    return make_column("price", "number", min=1.0, max=9.0, unique_count=5)


@pytest.fixture
def wide_num_x():
    return make_column("age", "number", min=1.0, max=90.0, unique_count=45)


@pytest.fixture
def date_x():
    return make_column("day", "date", min=datetime(2024, 1, 1), max=datetime(2024, 2, 1))


@pytest.fixture
def negative_y():
    return make_column("profit", "number", min=-5.0, max=10.0, unique_count=3)


@pytest.mark.unit
def test_missing_axes_blocked(numeric_column):
    """Test that missing axes are blocked."""
    result = validate_chart("bar", None, numeric_column)
    assert not result.valid
    assert result.severity == Severity.BLOCK
    assert result.reason == "Select axes first"


@pytest.mark.unit
def test_numeric_pair_auto_fixes_to_scatter(num_x, numeric_column):
    """Test auto-fixing two numeric axes to scatter."""
    result = validate_chart("bar", num_x, numeric_column)
    assert not result.valid
    assert result.severity == Severity.AUTO_FIX
    assert result.suggested_type == "scatter"
    assert result.reason == "Both axes are numeric. Switching to Scatter Plot."

    assert validate_chart("scatter", num_x, numeric_column).valid


@pytest.mark.unit
def test_scatter_needs_numeric_axes(category_column, numeric_column):
    """Test scatter axis requirements."""
    result = validate_chart("scatter", category_column, numeric_column)
    assert result.severity == Severity.BLOCK
    assert result.reason == "Scatter plots require both axes to be numeric."


@pytest.mark.unit
@pytest.mark.parametrize("chart_type", ["pie", "doughnut"])
def test_pie_rules(chart_type, category_column, numeric_column, negative_y):
    """Test pie chart rules."""
    assert validate_chart(chart_type, category_column, numeric_column).valid

    negative = validate_chart(chart_type, category_column, negative_y)
    assert negative.severity == Severity.BLOCK
    assert negative.reason == "Pie charts cannot display negative values."

    many = make_column("city", "category", unique_count=8)
    too_many = validate_chart(chart_type, many, numeric_column)
    assert too_many.severity == Severity.BLOCK
    assert too_many.reason == "Too many slices (8 > 6)."


@pytest.mark.unit
def test_pie_with_numeric_x_on_category_y_blocked(num_x, category_column):
    """Test blocking a pie with a numeric X on a category Y."""
    result = validate_chart("pie", num_x, category_column)
    assert result.severity == Severity.BLOCK
    assert result.reason == "Pie charts require a categorical X-axis."


@pytest.mark.unit
def test_bar_high_cardinality_warns(numeric_column):
    """Test the warning for many bars."""
    wide = make_column("product", "text", unique_count=35)
    result = validate_chart("bar", wide, numeric_column)
    assert result.valid
    assert result.severity == Severity.WARN
    assert result.reason == "High cardinality (35). Will show Top 20 items."


@pytest.mark.unit
def test_bar_continuous_numeric_x_auto_fixes(wide_num_x, category_column):
    """Test auto-fixing a bar with continuous X."""
    result = validate_chart("bar", wide_num_x, category_column)
    assert result.severity == Severity.AUTO_FIX
    assert result.suggested_type == "scatter"
    assert result.reason == "Continuous numeric X-axis. Switching to Scatter."


@pytest.mark.unit
def test_line_needs_date_or_numeric_x(category_column, numeric_column, date_x):
    """Test line chart axis requirements."""
    blocked = validate_chart("line", category_column, numeric_column)
    assert blocked.severity == Severity.BLOCK
    assert blocked.reason == "Line charts require Date or Numeric X-axis for trends."

    assert validate_chart("line", date_x, numeric_column).valid


@pytest.mark.unit
def test_valid_bar(category_column, numeric_column):
    """Test a valid bar chart."""
    result = validate_chart("bar", category_column, numeric_column)
    assert result.valid
    assert result.severity is None


@pytest.mark.unit
def test_suggest_smart_config(num_x, date_x, category_column, numeric_column):
    """Test default chart suggestions."""
    assert suggest_smart_config(None, numeric_column) is None
    assert suggest_smart_config(num_x, category_column) is None

    scatter = suggest_smart_config(num_x, numeric_column)
    assert scatter.type == "scatter"
    assert scatter.aggregation is None

    line = suggest_smart_config(date_x, numeric_column)
    assert (line.type, line.aggregation) == ("line", "mean")

    bar = suggest_smart_config(category_column, numeric_column)
    assert (bar.type, bar.aggregation) == ("bar", "mean")

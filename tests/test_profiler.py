"""
Unit tests for the profiler service.
"""
import math
import random
import pytest
from datetime import datetime
from chartwise.core.schemas import AnalysisResult
from chartwise.services.dates import DateParser
from chartwise.services.profiler import (
    analyze_column_type,
    calculate_stats,
    format_label,
    is_missing,
    is_numeric,
    parse_value,
    process_data,
)


@pytest.mark.unit
@pytest.mark.parametrize("key, expected", [
    ("customer_id", "Customer id"),
    ("totalSales", "Total Sales"),
    ("Region", "Region"),
    ("sales", "Sales"),
])
def test_format_label(key, expected):
    """Test label formatting."""
    assert format_label(key) == expected


@pytest.mark.unit
def test_is_missing():
    """Test missing value detection."""
    assert is_missing(None)
    assert is_missing("")
    assert is_missing(float("nan"))
    assert not is_missing(0)
    assert not is_missing(" ")


@pytest.mark.unit
@pytest.mark.parametrize("value, expected", [
    (42, True),
    (3.5, True),
    ("$1,200.50", True),
    ("50%", True),
    ("1.2.3", True),
    ("abc", False),
    ("-", False),
    ("", False),
    (True, False),
    (None, False),
])
def test_is_numeric(value, expected):
    """Test numeric value detection."""
    assert is_numeric(value) is expected


@pytest.mark.unit
def test_parse_value_number():
    """Formatted numbers are cleaned; junk becomes missing."""
    assert parse_value("$1,200.50", "number") == 1200.5
    assert parse_value("50%", "number") == 50.0
    assert parse_value(7, "number") == 7
    assert parse_value("abc", "number") is None
    assert parse_value(float("nan"), "number") is None
    assert parse_value(float("inf"), "number") is None


@pytest.mark.unit
def test_parse_value_date_and_passthrough():
    """Test parsing dates and passing other values through."""
    assert parse_value("2024-01-15", "date") == datetime(2024, 1, 15)
    assert parse_value("hello", "date") is None
    assert parse_value("North", "category") == "North"
    assert parse_value("", "text") is None


@pytest.mark.unit
def test_analyze_column_type_number():
    """Test inferring a number column."""
    rows = [{"price": v} for v in ["$10", "$12.50", "1,000", "7", ""]]
    meta = analyze_column_type(rows, "price")
    assert meta.type == "number"
    assert meta.label == "Price"


@pytest.mark.unit
def test_analyze_column_type_date_objects():
    """Test inferring a date column."""
    rows = [{"day": datetime(2024, 1, i)} for i in range(1, 6)]
    assert analyze_column_type(rows, "day").type == "date"


@pytest.mark.unit
def test_iso_date_strings_classify_as_number():
    """Numeric detection runs first and accepts the leading year of an ISO date."""
    rows = [{"day": f"2024-01-{i:02d}"} for i in range(1, 6)]
    assert analyze_column_type(rows, "day").type == "number"


@pytest.mark.unit
def test_analyze_column_type_category_and_text():
    """Test inferring category and text columns."""
    category_rows = [{"region": r} for r in ["North", "South", "East"] * 10]
    assert analyze_column_type(category_rows, "region").type == "category"

    text_rows = [{"name": f"Customer {chr(65 + i // 26)}{chr(65 + i % 26)}"} for i in range(30)]
    assert analyze_column_type(text_rows, "name").type == "text"


@pytest.mark.unit
def test_analyze_column_type_all_missing_is_text():
    """Test that an empty column is text."""
    rows = [{"notes": None}, {"notes": ""}]
    assert analyze_column_type(rows, "notes").type == "text"


@pytest.mark.unit
def test_analyze_column_type_only_samples_head():
    """Rows past the sampling window do not influence the type."""
    rows = [{"value": i} for i in range(500)] + [{"value": f"label {i}"} for i in range(2000)]
    assert analyze_column_type(rows, "value").type == "number"


@pytest.mark.unit
def test_calculate_stats_number():
    """Test number statistics."""
    stats = calculate_stats([1, 2, None, 3, 4], "number")
    assert stats.null_count == 1
    assert stats.min == 1
    assert stats.max == 4
    assert stats.sum == 10
    assert stats.mean == 2.5
    assert stats.median == 2.5
    # Population variance
    assert stats.variance == pytest.approx(1.25)
    assert stats.std_dev == pytest.approx(math.sqrt(1.25))
    assert stats.unique_count == 4


@pytest.mark.unit
def test_calculate_stats_category_top_values():
    """Ties keep the order in which values were first seen."""
    stats = calculate_stats(["b", "a", "b", "a", "c", None], "category")
    assert stats.null_count == 1
    assert stats.unique_count == 3
    assert [(t.val, t.count) for t in stats.top] == [("b", 2), ("a", 2), ("c", 1)]


@pytest.mark.unit
def test_calculate_stats_top_limited_to_ten():
    """Test the top values limit."""
    stats = calculate_stats([f"v{i}" for i in range(15)], "text")
    assert stats.unique_count == 15
    assert len(stats.top) == 10


@pytest.mark.unit
def test_calculate_stats_date():
    """Test date statistics."""
    values = [datetime(2024, 3, 1), None, datetime(2024, 1, 1)]
    stats = calculate_stats(values, "date")
    assert stats.min == datetime(2024, 1, 1)
    assert stats.max == datetime(2024, 3, 1)
    assert stats.null_count == 1
    assert stats.mean is None


@pytest.mark.unit
def test_calculate_stats_no_valid_values():
    """Test statistics without valid values."""
    stats = calculate_stats([None, None], "number")
    assert stats.null_count == 2
    assert stats.mean is None
    assert stats.min is None
    assert stats.unique_count is None


@pytest.mark.unit
def test_process_data_empty():
    """Test processing no rows."""
    assert process_data([]) is None
    assert process_data(None) is None


@pytest.mark.unit
def test_process_data_basic(region_rows):
    """Test processing a basic dataset."""
    result = process_data(region_rows)

    assert isinstance(result, AnalysisResult)
    assert result.row_count == 3
    assert [c.key for c in result.columns] == ["region", "sales"]
    assert result.column("region").type == "category"
    assert result.column("sales").type == "number"
    assert result.column("sales").stats.sum == 60
    assert result.data[0] == {"region": "A", "sales": 10}


@pytest.mark.unit
def test_process_data_keys_come_from_first_row():
    """Test that column keys come from the first row."""
    rows = [{"a": 1}, {"a": 2, "b": 3}]
    result = process_data(rows)
    assert [c.key for c in result.columns] == ["a"]
    assert result.data[1] == {"a": 2}


@pytest.mark.unit
def test_process_data_fills_missing_keys_with_none():
    """Test that missing keys become None."""
    rows = [{"a": 1, "b": "x"}, {"a": 2}]
    result = process_data(rows)
    assert result.data[1]["b"] is None
    assert result.column("b").stats.null_count == 1


@pytest.mark.unit
def test_process_data_does_not_mutate_input():
    """Test that input rows are not changed."""
    rows = [{"price": "$10"}, {"price": "$20"}]
    process_data(rows)
    assert rows == [{"price": "$10"}, {"price": "$20"}]


@pytest.mark.unit
def test_process_data_uses_date_parser():
    """Test processing with a day-first date parser."""
    rows = [{"day": datetime(2024, 1, 1), "n": 1}, {"day": "03/02/2024", "n": 2}]
    month_first = process_data(rows)
    day_first = process_data(rows, DateParser(dayfirst=True))
    assert month_first.column("day").type == "date"
    assert month_first.data[1]["day"] == datetime(2024, 3, 2)
    assert day_first.data[1]["day"] == datetime(2024, 2, 3)


@pytest.mark.unit
def test_numeric_stats_are_ordered():
    """Test ordering of numeric statistics."""
    rng = random.Random(3)
    values = [rng.uniform(-100, 100) for _ in range(200)]
    stats = calculate_stats(values, "number")
    assert stats.min <= stats.median <= stats.max
    assert stats.variance >= 0

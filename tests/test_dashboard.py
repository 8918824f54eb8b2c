"""
Unit tests for dashboard assembly.
"""
import pytest
from datetime import datetime
from chartwise.core.config import Settings
from chartwise.services.dashboard import build_dashboard


@pytest.mark.unit
def test_build_dashboard_empty():
    """Test building a dashboard from no rows."""
    assert build_dashboard([], Settings()) is None


@pytest.mark.unit
def test_build_dashboard(region_rows):
    """Test building a dashboard for a small dataset."""
    dashboard = build_dashboard(region_rows, Settings(), filename="sales.csv")

    assert dashboard.filename == "sales.csv"
    assert dashboard.analysis.row_count == 3
    assert dashboard.recommendations[0].title == "Sales by Region"
    assert dashboard.truncated is False
    assert "sales" in dashboard.histograms


@pytest.mark.unit
def test_build_dashboard_truncates_rows_after_analysis():
    """Test that truncation happens after statistics are computed."""
    rows = [{"value": i} for i in range(150)]
    dashboard = build_dashboard(rows, Settings(max_dataset_rows=100))

    assert dashboard.truncated is True
    assert len(dashboard.analysis.data) == 100
    assert dashboard.analysis.row_count == 150
    # Statistics cover every row, not just the returned ones
    assert dashboard.analysis.column("value").stats.max == 149


@pytest.mark.unit
def test_build_dashboard_honours_settings():
    """Test that date order and recommendation limit come from settings."""
    rows = [{"when": "03/02/2024", "n": 1}, {"when": datetime(2024, 1, 1), "n": 5}]
    dashboard = build_dashboard(rows, Settings(date_dayfirst=True, recommendation_limit=1))

    assert dashboard.analysis.data[0]["when"] == datetime(2024, 2, 3)
    assert len(dashboard.recommendations) == 1


@pytest.mark.unit
def test_build_dashboard_bins_every_numeric_column():
    """Each numeric column gets a histogram even when it is not recommended."""
    rows = [
        {"group": ["North", "South", "East"][i % 3], "a": i, "b": i * 2, "c": i % 7, "d": 100 - i, "e": i * i}
        for i in range(30)
    ]
    dashboard = build_dashboard(rows, Settings())

    assert set(dashboard.histograms) == {"a", "b", "c", "d", "e"}
    for bins in dashboard.histograms.values():
        assert len(bins) == 10
        assert sum(b.count for b in bins) == 30

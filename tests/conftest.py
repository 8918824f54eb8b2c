"""
Shared fixtures and column builders.
"""
import os
import pytest
from chartwise.core.schemas import AnalyzedColumn, ColumnStats
from chartwise.services.profiler import format_label

# Keep the upload rate limit out of the way of the API tests
os.environ.setdefault("RATE_LIMIT_PER_MINUTE", "1000")


def make_column(key: str, column_type: str, **stats) -> AnalyzedColumn:
    """AnalyzedColumn with only the stats a test cares about."""
    stats.setdefault("null_count", 0)
    return AnalyzedColumn(
        key=key,
        type=column_type,
        label=format_label(key),
        stats=ColumnStats(**stats)
    )


@pytest.fixture
def region_rows():
    return [
        {"region": "A", "sales": 10},
        {"region": "B", "sales": 20},
        {"region": "A", "sales": 30},
    ]


@pytest.fixture
def category_column():
    return make_column("region", "category", unique_count=3)


@pytest.fixture
def numeric_column():
    return make_column("sales", "number", min=10.0, max=30.0, unique_count=3)

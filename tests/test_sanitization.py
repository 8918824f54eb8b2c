"""
Tests for input sanitization utilities.
"""
from chartwise.core.sanitization import (
    clean_column_name,
    sanitize_filename,
    sanitize_for_logging,
    validate_column_name,
)


def test_sanitize_filename():
    """Test filename sanitization."""
    assert sanitize_filename("sales.csv") == "sales.csv"
    assert sanitize_filename("../../../etc/passwd") == "passwd"
    assert sanitize_filename("C:\\Users\\me\\data.xlsx") == "data.xlsx"
    assert sanitize_filename("sales\nq1.csv") == "salesq1.csv"
    assert len(sanitize_filename("a" * 300)) == 255
    assert sanitize_filename("") == "unknown"
    assert sanitize_filename(None) == "unknown"
    assert sanitize_filename("..") == "unknown"


def test_sanitize_for_logging():
    """Test sanitizing text for logs."""
    assert sanitize_for_logging("line1\nline2") == "line1 line2"
    assert sanitize_for_logging("a\x00b") == "ab"
    assert sanitize_for_logging("x" * 600).endswith("...")
    assert sanitize_for_logging("") == ""


def test_clean_column_name():
    """Test column name cleaning."""
    assert clean_column_name("Total\nSales") == "Total Sales"
    assert clean_column_name("  Unit   Price ") == "Unit Price"
    assert clean_column_name(2024) == "2024"


def test_validate_column_name():
    """Test column name validation."""
    assert validate_column_name("Sales")
    assert validate_column_name("Sales\nQ1")
    assert not validate_column_name("")
    assert not validate_column_name("bad\x00name")
    assert not validate_column_name("x" * 1001)

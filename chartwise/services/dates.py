"""
Date parsing strategy.

All date recognition goes through a single DateParser so the ambiguous
day/month ordering of strings like "01/02/2024" is an explicit policy
instead of a hidden default. The parser is deliberately permissive (it
accepts whatever dateutil accepts), which means some non-date strings
with a delimiter will still parse; that is a known limitation.
"""
import re
import logging
from datetime import date, datetime, timezone
from typing import Any, Optional
from dateutil import parser as date_parser

logger = logging.getLogger(__name__)

DATE_DELIMITER = re.compile(r"[-/.]")


class DateParser:
    """Turns raw cell values into naive (UTC) datetimes."""

    def __init__(self, dayfirst: bool = False):
        self.dayfirst = dayfirst

    def looks_like_date(self, value: Any) -> bool:
        if isinstance(value, (datetime, date)):
            return True
        if not isinstance(value, str):
            return False
        # Must contain at least one delimiter before we try the parser
        if not DATE_DELIMITER.search(value):
            return False
        return self._parse_string(value) is not None

    def to_datetime(self, value: Any) -> Optional[datetime]:
        """
        Convert a raw value to a datetime.

        Numbers are treated as epoch milliseconds. Returns None when the
        value cannot be interpreted as a date.
        """
        if isinstance(value, datetime):
            return _naive_utc(value)
        if isinstance(value, date):
            return datetime(value.year, value.month, value.day)
        if isinstance(value, bool):
            return None
        if isinstance(value, (int, float)):
            try:
                return datetime.fromtimestamp(value / 1000, tz=timezone.utc).replace(tzinfo=None)
            except (OverflowError, OSError, ValueError):
                return None
        if isinstance(value, str):
            return self._parse_string(value)
        return None

    def _parse_string(self, value: str) -> Optional[datetime]:
        text = value.strip()
        if not text:
            return None
        try:
            return _naive_utc(date_parser.parse(text, dayfirst=self.dayfirst))
        except (ValueError, OverflowError):
            return None


def _naive_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


default_date_parser = DateParser()

"""
Input sanitization for uploaded file names and column headers.
"""
import re

CONTROL_CHARS = re.compile(r'[\x00-\x1f\x7f-\x9f]')


def sanitize_filename(filename: str, max_length: int = 255) -> str:
    """
    Strip path components and control characters from an uploaded file name.

    Returns "unknown" when nothing usable is left.
    """
    if not filename:
        return "unknown"

    filename = filename.split('/')[-1].split('\\')[-1]
    filename = CONTROL_CHARS.sub('', filename)
    filename = filename.strip('. ')

    return filename[:max_length] or "unknown"


def sanitize_for_logging(value: str, max_length: int = 500) -> str:
    """Make a user-provided value safe to put in a log line."""
    if not value:
        return ""

    value = re.sub(r'[\r\n]', ' ', value)
    value = CONTROL_CHARS.sub('', value)

    if len(value) > max_length:
        value = value[:max_length] + "..."

    return value


def clean_column_name(name) -> str:
    """Collapse newlines and repeated whitespace in a header cell."""
    text = str(name).replace('\n', ' ').replace('\r', ' ')
    return ' '.join(text.split())


def validate_column_name(name: str) -> bool:
    """
    Reject empty, oversized or control-character column names.
    """
    if not name or len(name) > 1000:
        return False

    # Newlines and tabs are common in spreadsheet headers and are allowed
    return re.search(r'[\x00-\x08\x0b\x0c\x0e-\x1f]', name) is None

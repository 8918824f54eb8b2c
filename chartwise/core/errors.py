"""
Error codes and user-facing error bodies for the HTTP layer.

The analysis engine does not raise for bad data; these are only used
where a request cannot be served at all.
"""
from typing import Dict, Optional


class ErrorCodes:
    FILE_TOO_LARGE = "FILE_TOO_LARGE"
    FILE_EMPTY = "FILE_EMPTY"
    INVALID_FILE_TYPE = "INVALID_FILE_TYPE"
    PARSE_ERROR = "PARSE_ERROR"
    NO_DATA = "NO_DATA"
    RATE_LIMIT_EXCEEDED = "RATE_LIMIT_EXCEEDED"
    TIMEOUT = "TIMEOUT"
    UNKNOWN_ERROR = "UNKNOWN_ERROR"


ERROR_MESSAGES: Dict[str, Dict[str, str]] = {
    ErrorCodes.FILE_TOO_LARGE: {
        "message": "File is too large",
        "detail": "The uploaded file exceeds the size limit.",
        "suggestion": "Split the file or export only the columns you want to chart."
    },
    ErrorCodes.FILE_EMPTY: {
        "message": "File is empty",
        "detail": "No data was found in the uploaded file.",
        "suggestion": "Check that the file was saved with its rows and upload it again."
    },
    ErrorCodes.INVALID_FILE_TYPE: {
        "message": "Unsupported file type",
        "detail": "Only CSV and Excel files (.csv, .xlsx, .xls) can be analyzed.",
        "suggestion": "Export the data as CSV or Excel and upload that file."
    },
    ErrorCodes.PARSE_ERROR: {
        "message": "Could not read the file",
        "detail": "The file could not be parsed as a table.",
        "suggestion": "Make sure the first row holds column headers and save the file again."
    },
    ErrorCodes.NO_DATA: {
        "message": "Nothing to analyze",
        "detail": "The dataset has no rows.",
        "suggestion": "Send at least one row of data."
    },
    ErrorCodes.RATE_LIMIT_EXCEEDED: {
        "message": "Too many requests",
        "detail": "Requests are rate limited per client.",
        "suggestion": "Wait a minute and try again."
    },
    ErrorCodes.TIMEOUT: {
        "message": "Request timed out",
        "detail": "The dataset took too long to analyze.",
        "suggestion": "Try a smaller sample of the data."
    },
    ErrorCodes.UNKNOWN_ERROR: {
        "message": "Something unexpected happened",
        "detail": "The request failed with an unexpected error.",
        "suggestion": "Try again in a moment."
    }
}


def get_error_response(error_code: str, additional_detail: Optional[str] = None) -> Dict[str, str]:
    """
    Build the error body for an error code.

    Args:
        error_code: One of the ErrorCodes constants
        additional_detail: Optional additional detail to append

    Returns:
        Dictionary with code, message, detail, and suggestion
    """
    error_info = ERROR_MESSAGES.get(error_code, ERROR_MESSAGES[ErrorCodes.UNKNOWN_ERROR])

    response = {
        "code": error_code,
        "message": error_info["message"],
        "detail": error_info["detail"],
        "suggestion": error_info["suggestion"]
    }

    if additional_detail:
        response["detail"] = f"{response['detail']} {additional_detail}"

    return response

"""
Persistence for clearing results.
"""

from sealbid.core.storage.results import (
    ResultFormatError,
    format_result,
    write_result,
    write_result_json,
    parse_result_lines,
    read_result,
    read_result_json,
    load_result,
)

__all__ = [
    "ResultFormatError",
    "format_result",
    "write_result",
    "write_result_json",
    "parse_result_lines",
    "read_result",
    "read_result_json",
    "load_result",
]

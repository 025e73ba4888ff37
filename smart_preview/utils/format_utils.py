"""
This module contains helper functions for formatting and matching data.
They are used in log messages (durations, sizes) and by the classifier
(extension matching).
"""

from datetime import timedelta
from typing import Any, Dict, Iterable


def format_timedelta(td_object: timedelta) -> str:
    """
    Formats a timedelta object into a "HH:MM:SS" string.

    Returns "00:00:00" if the input is not a valid timedelta object.
    """
    if not isinstance(td_object, timedelta):
        return "00:00:00"

    total_seconds = int(td_object.total_seconds())
    hours, remainder = divmod(total_seconds, 3600)
    minutes, seconds = divmod(remainder, 60)
    return f"{hours:02}:{minutes:02}:{seconds:02}"


def formatted_size(size_bytes: float) -> str:
    """
    Converts a size in bytes to a human-readable string (e.g., B, KB, MB, GB, TB).

    For example, 1536 becomes "1.50 KB", and 2097152 becomes "2 MB".
    """
    if size_bytes < 0:
        size_bytes = 0

    units = ["B", "KB", "MB", "GB", "TB", "PB"]
    factor = 1024.0

    if size_bytes == 0:
        return "0 B"

    for unit in units:
        if size_bytes < factor:
            if unit == "B":
                return f"{int(size_bytes)} {unit}"
            # Clean up ".00" for whole numbers (e.g., "2.00 MB" -> "2 MB").
            return f"{size_bytes:.2f} {unit}".replace(".00", "")
        size_bytes /= factor

    return f"{size_bytes:.2f} {units[-1]}".replace(".00", "")


def contains_any_extensions(filename: str, extensions_to_check: Iterable[str]) -> bool:
    """
    Checks if a filename's last extension is in `extensions_to_check` (case-insensitive).

    Extensions may be given with or without the leading dot.
    """
    normalized_extensions = {
        ext.lower() if ext.startswith(".") else f".{ext.lower()}"
        for ext in extensions_to_check
    }
    if not normalized_extensions or "." not in filename:
        return False

    file_extension = "." + filename.rsplit(".", 1)[-1].lower()
    return file_extension in normalized_extensions


def find_key_in_dictionary(data_dict: Dict[str, Any], target_key: str) -> Any | None:
    """
    Recursively searches for `target_key` within a nested dictionary.

    Useful for pulling a single value out of ffprobe's nested JSON output.
    Returns the first value found, or None.
    """
    if not isinstance(data_dict, dict):
        return None

    if target_key in data_dict:
        return data_dict[target_key]

    for value in data_dict.values():
        if isinstance(value, dict):
            found_value = find_key_in_dictionary(value, target_key)
            if found_value is not None:
                return found_value

    return None

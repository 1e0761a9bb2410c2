"""Parsing of the compact YYYYMMDD dates used on the command line."""

from __future__ import annotations

import re
from datetime import datetime

_COMPACT_DATE = re.compile(r"\d{8}")


class InvalidDateError(ValueError):
    """Raised when a string is not a valid YYYYMMDD date."""


def date_from_string(value: str) -> datetime:
    """Return midnight of the day written as YYYYMMDD in ``value``."""
    message = f"Invalid date : {value}. Should be formatted as YYYYMMDD"
    if not _COMPACT_DATE.fullmatch(value):
        raise InvalidDateError(message)
    try:
        return datetime.strptime(value, "%Y%m%d")
    except ValueError as exc:
        raise InvalidDateError(message) from exc
# SPDX-License-Identifier: MIT

import re
from typing import Optional

import pendulum
import typer

from timeguru.time import datetime_from_str_utc, now_utc

_DATE_ONLY_P = re.compile(r"^\d{4}-\d{2}-\d{2}$")


def parse_datetime(datetime_param: Optional[str | int]) -> Optional[pendulum.DateTime]:
    """
    Parse a command line date into a UTC datetime.

    Accepts ``YYYY-MM-DD`` (local midnight), ISO 8601 timestamps, ``today``,
    ``yesterday``, ``now`` and whole-day offsets such as ``-7``.
    """
    if datetime_param is None:
        return None

    datetime = str(datetime_param).strip()

    # Match YYYY-MM-DD format (with optional time component)
    if re.match(r"\d{4}-\d{2}-\d{2}", datetime):
        try:
            return datetime_from_str_utc(datetime)
        except ValueError as e:
            raise typer.BadParameter(f"Invalid date '{datetime}': {e}")

    # Match numeric input for relative days (e.g., "1", "-1", "365")
    if re.match(r"^-?\d+$", datetime):
        days_offset = int(datetime)
        return pendulum.today("local").add(days=days_offset).in_tz("UTC")

    if datetime == "now" or datetime == "n":
        return now_utc()
    if datetime == "today" or datetime == "t":
        return pendulum.today("local").in_tz("UTC")
    if datetime == "yesterday" or datetime == "y":
        return pendulum.yesterday("local").in_tz("UTC")
    raise typer.BadParameter(
        f"Incorrect date format '{datetime}' "
        "(expected YYYY-MM-DD, ISO 8601, today, yesterday or a day offset)"
    )


def is_whole_day(datetime_param: str) -> bool:
    """True when the value names a calendar day rather than an instant."""
    value = datetime_param.strip()
    return (
        _DATE_ONLY_P.match(value) is not None
        or re.match(r"^-?\d+$", value) is not None
        or value in ("today", "t", "yesterday", "y")
    )


def parse_date_range(
    start: Optional[str],
    end: Optional[str],
    default_days: int,
) -> tuple[pendulum.DateTime, pendulum.DateTime]:
    """
    Resolve ``--start``/``--end`` into a half-open UTC range.

    An end given as a whole day includes that day. Without an end the range
    stops now; without a start it covers ``default_days`` before the end.
    """
    end_datetime = parse_datetime(end)
    if end_datetime is None:
        end_datetime = now_utc()
    elif end is not None and is_whole_day(end):
        end_datetime = end_datetime.in_tz("local").add(days=1).in_tz("UTC")

    start_datetime = parse_datetime(start)
    if start_datetime is None:
        start_datetime = end_datetime.subtract(days=default_days)

    if start_datetime >= end_datetime:
        raise typer.BadParameter("The start date must be before the end date")
    return start_datetime, end_datetime

# SPDX-License-Identifier: MIT

from typing import Optional, cast

import pendulum


def now_utc() -> pendulum.DateTime:
    return pendulum.now("UTC")


def datetime_to_timestamp(datetime: pendulum.DateTime) -> int:
    return int(datetime.timestamp())


def datetime_to_timestamp_optional(
    datetime: Optional[pendulum.DateTime],
) -> Optional[int]:
    if datetime is None:
        return None
    return datetime_to_timestamp(datetime)


def datetime_from_timestamp(timestamp: int) -> pendulum.DateTime:
    return pendulum.from_timestamp(timestamp, tz="UTC")


def datetime_from_timestamp_optional(
    timestamp: Optional[int],
) -> Optional[pendulum.DateTime]:
    if timestamp is None:
        return None
    return datetime_from_timestamp(timestamp)


def datetime_to_display_local_datetime_str(datetime: pendulum.DateTime) -> str:
    return datetime.in_tz("local").format("YYYY-MM-DD HH:mm")


def datetime_from_str(datetime: str) -> pendulum.DateTime:
    return cast(pendulum.DateTime, pendulum.parse(datetime))


def datetime_from_str_optional(datetime: Optional[str]) -> Optional[pendulum.DateTime]:
    if datetime is None:
        return None
    return datetime_from_str(datetime)


def datetime_from_str_utc(datetime: str) -> pendulum.DateTime:
    # Strings without an offset are read as local time
    pendulum_date_time = cast(pendulum.DateTime, pendulum.parse(datetime, tz="local"))
    return pendulum_date_time.in_tz("UTC")


def local_date(datetime: pendulum.DateTime, tz: str = "local") -> pendulum.Date:
    """Calendar date of a timestamp as seen in the given timezone."""
    return datetime.in_tz(tz).date()


def date_to_str(date: pendulum.Date) -> str:
    return date.format("YYYY-MM-DD")


def datetime_to_local_date_str(datetime: pendulum.DateTime) -> str:
    """Convert a pendulum.DateTime to a local date string in 'YYYY-MM-DD' format."""
    return datetime.in_tz("local").format("YYYY-MM-DD")

"""Tests for command line date parsing."""

import pendulum
import pytest
import typer

from timeguru.terminal.parse import is_whole_day, parse_date_range, parse_datetime


def test_iso_timestamps_are_kept():
    start, end = parse_date_range(
        "2024-03-01T10:00:00+00:00", "2024-03-02T10:00:00+00:00", 7
    )

    assert start == pendulum.datetime(2024, 3, 1, 10, tz="UTC")
    assert end == pendulum.datetime(2024, 3, 2, 10, tz="UTC")


def test_whole_day_end_includes_that_day():
    start, end = parse_date_range("2024-03-01", "2024-03-01", 7)

    assert (end - start).in_hours() == 24


def test_defaults_cover_the_configured_days():
    start, end = parse_date_range(None, None, 7)

    assert (end - start).in_days() == 7
    assert end <= pendulum.now("UTC")


def test_relative_days():
    assert parse_datetime("-1") == parse_datetime("yesterday")
    assert parse_datetime("0") == parse_datetime("today")
    assert parse_datetime(None) is None


def test_start_must_precede_end():
    with pytest.raises(typer.BadParameter):
        parse_date_range("2024-03-05", "2024-03-01", 7)


def test_unknown_words_are_rejected():
    with pytest.raises(typer.BadParameter):
        parse_datetime("next week")


@pytest.mark.parametrize(
    "value, expected",
    [
        ("2024-03-01", True),
        ("-3", True),
        ("today", True),
        ("y", True),
        ("2024-03-01T10:00:00", False),
        ("now", False),
    ],
)
def test_is_whole_day(value, expected):
    assert is_whole_day(value) is expected

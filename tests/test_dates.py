"""Tests for mail date parsing and formatting."""

from datetime import datetime, timedelta, timezone

import pytest

from pfc_explorer.core.dates import (
    epoch_seconds,
    expand_year,
    format_asctime,
    format_header_date,
    parse_mail_date,
    resolve_timezone,
)


class TestParseMailDate:
    """Test the three stored date layouts."""

    def test_long_us_layout(self):
        value = parse_mail_date("12/2/2001 6:18:53 PM Eastern Standard Time")
        assert (value.year, value.month, value.day) == (2001, 12, 2)
        assert (value.hour, value.minute, value.second) == (18, 18, 53)
        assert value.utcoffset() == timedelta(hours=-5)

    def test_long_us_midnight_and_noon(self):
        assert parse_mail_date("1/5/2002 12:00:00 AM GMT").hour == 0
        assert parse_mail_date("1/5/2002 12:30:00 PM GMT").hour == 12

    def test_short_us_layout(self):
        value = parse_mail_date("12/2/01")
        assert (value.year, value.month, value.day) == (2001, 12, 2)
        assert value.tzinfo is None

    def test_short_us_ignores_trailing_text(self):
        value = parse_mail_date("3/4/1999 junk")
        assert (value.year, value.month, value.day) == (1999, 3, 4)

    def test_ish_layout(self):
        value = parse_mail_date("01-12-02 18:18:53 EST")
        assert (value.year, value.month, value.day) == (2001, 12, 2)
        assert value.utcoffset() == timedelta(hours=-5)

    def test_ish_numeric_zone(self):
        value = parse_mail_date("2002-06-30 08:00:00 +0200")
        assert value.utcoffset() == timedelta(hours=2)

    @pytest.mark.parametrize("text", [
        "",
        None,
        "yesterday",
        "13/45/2001",
        "2002-06-30 08:00:00 Nowhere Time",
    ])
    def test_unparseable_returns_none(self, text):
        assert parse_mail_date(text) is None


class TestExpandYear:
    """Test two-digit year expansion."""

    def test_recent_two_digit_year(self):
        assert expand_year("01", datetime(2020, 1, 1)) == 2001

    def test_old_two_digit_year(self):
        assert expand_year("95", datetime(2020, 1, 1)) == 1995

    def test_window_upper_edge(self):
        today = datetime(2020, 1, 1)
        assert expand_year("39", today) == 2039
        assert expand_year("40", today) == 1940

    def test_four_digit_year_is_literal(self):
        assert expand_year("1899", datetime(2020, 1, 1)) == 1899


class TestFormatting:
    """Test date output formats."""

    def test_header_date(self):
        value = datetime(2002, 12, 8, 13, 59, 59, tzinfo=timezone(timedelta(hours=-5)))
        assert format_header_date(value) == "Sun, 8 Dec 2002 13:59:59 -0500"

    def test_asctime(self):
        assert format_asctime(datetime(2002, 12, 8, 13, 59, 59)) == "Sun Dec 08 13:59:59 2002"

    def test_epoch_seconds(self):
        assert epoch_seconds(datetime(1970, 1, 2, tzinfo=timezone.utc)) == 86400


def test_resolve_timezone_unknown():
    assert resolve_timezone("Mars Time") is None
    assert resolve_timezone("") is None
    assert resolve_timezone("pst").utcoffset(None) == timedelta(hours=-8)

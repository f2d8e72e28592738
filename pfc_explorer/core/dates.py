"""Mail date parsing and formatting.

Mail records keep their date as free text in one of three layouts::

    12/2/2001 6:18:53 PM Eastern Standard Time
    12/2/01
    01-12-02 18:18:53 EST

Layouts are tried in that order and the first match wins.
"""

import logging
import re
from datetime import datetime, tzinfo
from typing import Optional

from dateutil import tz

logger = logging.getLogger(__name__)

# Fixed patterns instead of dateutil.parser, which guesses field order and
# would accept text none of the three layouts match.
# M/d/yy h:m:s a z
_LONG_US = re.compile(
    r'^\s*(\d{1,2})/(\d{1,2})/(\d{1,4})\s+(\d{1,2}):(\d{1,2}):(\d{1,2})\s*'
    r'([AaPp][Mm])\s+(.+?)\s*$'
)
# M/d/yy (trailing text ignored)
_SHORT_US = re.compile(r'^\s*(\d{1,2})/(\d{1,2})/(\d{1,4})')
# yy-MM-dd HH:mm:ss z
_ISH = re.compile(
    r'^\s*(\d{1,4})-(\d{1,2})-(\d{1,2})\s+(\d{1,2}):(\d{1,2}):(\d{1,2})\s+(.+?)\s*$'
)
_GMT_OFFSET = re.compile(r'^(?:GMT|UTC)?\s*([+-])(\d{1,2}):?(\d{2})?$', re.IGNORECASE)

_HOUR = 3600

# Zone names seen in mail dates, by abbreviation and long form
ZONE_OFFSETS = {
    "UT": 0, "UTC": 0, "GMT": 0,
    "Greenwich Mean Time": 0,
    "Coordinated Universal Time": 0,
    "EST": -5 * _HOUR, "EDT": -4 * _HOUR,
    "CST": -6 * _HOUR, "CDT": -5 * _HOUR,
    "MST": -7 * _HOUR, "MDT": -6 * _HOUR,
    "PST": -8 * _HOUR, "PDT": -7 * _HOUR,
    "AKST": -9 * _HOUR, "AKDT": -8 * _HOUR,
    "HST": -10 * _HOUR,
    "Eastern Standard Time": -5 * _HOUR, "Eastern Daylight Time": -4 * _HOUR,
    "Central Standard Time": -6 * _HOUR, "Central Daylight Time": -5 * _HOUR,
    "Mountain Standard Time": -7 * _HOUR, "Mountain Daylight Time": -6 * _HOUR,
    "Pacific Standard Time": -8 * _HOUR, "Pacific Daylight Time": -7 * _HOUR,
    "Alaska Standard Time": -9 * _HOUR, "Alaska Daylight Time": -8 * _HOUR,
    "Hawaii Standard Time": -10 * _HOUR,
}
_ZONES_BY_KEY = {name.lower(): (name, offset) for name, offset in ZONE_OFFSETS.items()}


def resolve_timezone(name: str) -> Optional[tzinfo]:
    """Map a zone name or GMT offset to a tzinfo, or None if unknown."""
    name = name.strip()
    if not name:
        return None

    known = _ZONES_BY_KEY.get(name.lower())
    if known:
        return tz.tzoffset(known[0], known[1])

    match = _GMT_OFFSET.match(name)
    if match:
        sign = -1 if match.group(1) == '-' else 1
        seconds = int(match.group(2)) * _HOUR + int(match.group(3) or 0) * 60
        return tz.tzoffset(None, sign * seconds)

    # Olson names such as "America/New_York"
    if '/' in name:
        return tz.gettz(name)
    return None


def expand_year(year_text: str, today: Optional[datetime] = None) -> int:
    """
    Expand a year field.

    Two-digit years land within 80 years before and 20 years after today;
    longer fields are taken literally.
    """
    year = int(year_text)
    if len(year_text) > 2:
        return year

    today = today or datetime.now()
    start = today.year - 80
    century = start - start % 100
    year += century
    if year < start:
        year += 100
    return year


def _build(year: int, month: int, day: int, hour: int = 0, minute: int = 0,
           second: int = 0, zone: Optional[tzinfo] = None) -> Optional[datetime]:
    try:
        return datetime(year, month, day, hour, minute, second, tzinfo=zone)
    except ValueError:
        return None


def _parse_long_us(text: str) -> Optional[datetime]:
    match = _LONG_US.match(text)
    if not match:
        return None
    month, day, year, hour, minute, second, meridiem, zone_name = match.groups()
    zone = resolve_timezone(zone_name)
    if zone is None:
        return None

    hour = int(hour)
    if hour > 12:
        return None
    hour %= 12
    if meridiem.upper() == 'PM':
        hour += 12
    return _build(expand_year(year), int(month), int(day), hour,
                  int(minute), int(second), zone)


def _parse_short_us(text: str) -> Optional[datetime]:
    match = _SHORT_US.match(text)
    if not match:
        return None
    month, day, year = match.groups()
    return _build(expand_year(year), int(month), int(day))


def _parse_ish(text: str) -> Optional[datetime]:
    match = _ISH.match(text)
    if not match:
        return None
    year, month, day, hour, minute, second, zone_name = match.groups()
    zone = resolve_timezone(zone_name)
    if zone is None:
        return None
    return _build(expand_year(year), int(month), int(day), int(hour),
                  int(minute), int(second), zone)


DATE_PARSERS = (_parse_long_us, _parse_short_us, _parse_ish)


def parse_mail_date(text: Optional[str]) -> Optional[datetime]:
    """
    Parse a mail date string.

    Returns:
        datetime (timezone-aware when the layout carries a zone), or None
        if no layout matches
    """
    if not text:
        return None
    for parser in DATE_PARSERS:
        value = parser(text)
        if value is not None:
            return value
    logger.debug(f"Unparseable mail date: {text!r}")
    return None


def _aware(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.astimezone()
    return value


def format_header_date(value: datetime) -> str:
    """Format as an RFC 822 header date: Sun, 8 Dec 2002 13:59:59 -0500."""
    value = _aware(value)
    return f"{value.strftime('%a')}, {value.day} {value.strftime('%b %Y %H:%M:%S %z')}"


def format_asctime(value: datetime) -> str:
    """Format as an mbox separator date: Sun Dec 08 13:59:59 2002."""
    return value.strftime("%a %b %d %H:%M:%S %Y")


def epoch_seconds(value: datetime) -> int:
    """Seconds since 1970-01-01 UTC."""
    return int(_aware(value).timestamp())

"""Date helpers shared by models and the rating service."""

# BracketForge
# Copyright (C) 2025  BracketForge developers
#
# This program is free software: you can redistribute it and/or modify
# it under the terms of the GNU General Public License as published by
# the Free Software Foundation, either version 3 of the License, or
# (at your option) any later version.
#
# This program is distributed in the hope that it will be useful,
# but WITHOUT ANY WARRANTY; without even the implied warranty of
# MERCHANTABILITY or FITNESS FOR A PARTICULAR PURPOSE.  See the
# GNU General Public License for more details.
#
# You should have received a copy of the GNU General Public License
# along with this program.  If not, see <http://www.gnu.org/licenses/>.

from datetime import date, datetime, timezone
from typing import Optional, Union

from dateutil import parser as date_parser


def utcnow() -> datetime:
    """Naive UTC timestamp used for all stored datetimes."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def to_iso(value: Optional[Union[date, datetime]]) -> Optional[str]:
    if value is None:
        return None
    return value.isoformat()


def parse_datetime(value: Optional[Union[str, datetime]]) -> Optional[datetime]:
    """Parse an ISO-8601 string into a datetime.

    Datetime values are returned unchanged, ``None`` stays ``None``.
    """
    if value is None or isinstance(value, datetime):
        return value
    return date_parser.isoparse(value)


def parse_date(value: Optional[Union[str, date, datetime]]) -> Optional[date]:
    """Parse a date, accepting full timestamps and loose formats like ``2024/01/31``."""
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return date_parser.isoparse(value).date()
    except ValueError:
        return date_parser.parse(value).date()

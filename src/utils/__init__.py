"""Utilities package for mill-tracker application."""

from .datetime_utils import utc_now, parse_iso_date

__all__ = [
    "utc_now",
    "parse_iso_date",
]

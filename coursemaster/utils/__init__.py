"""Utility modules for CourseMaster API."""

from coursemaster.utils.datetimes import ensure_utc_aware, utc_now
from coursemaster.utils.percent import round_percentage


__all__ = ["ensure_utc_aware", "round_percentage", "utc_now"]

"""Common utility functions for dealdedupe."""

from dealdedupe.utils.timestamps import get_iso_timestamp, utc_now

__all__ = [
    "get_iso_timestamp",
    "utc_now",
]

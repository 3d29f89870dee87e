"""Utility functions for cnabingest."""

from cnabingest.utils.date_parser import parse_date, parse_compact_date, parse_compact_time
from cnabingest.utils.amount_parser import parse_cents

__all__ = ["parse_date", "parse_compact_date", "parse_compact_time", "parse_cents"]

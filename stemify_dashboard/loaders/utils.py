"""
Shared utilities for row normalisation: identifier, month, price and
date coercion.

Every helper is total: unparseable input degrades to None (or the
documented default) and never raises.
"""

import logging
import math
from datetime import date, datetime
from numbers import Real
from typing import Any

import pandas as pd

logger = logging.getLogger(__name__)


def is_missing(val: Any) -> bool:
    """True for None, NaN/NaT and blank strings."""
    if val is None:
        return True
    if isinstance(val, str):
        return not val.strip()
    try:
        return bool(pd.isna(val))
    except (TypeError, ValueError):
        # Array-likes are never a single missing value
        return False


def safe_float(val: Any) -> float | None:
    """Coerce a value to float, returning None for non-numeric values."""
    if is_missing(val) or isinstance(val, bool):
        return None
    if isinstance(val, str):
        try:
            return float(val.strip())
        except ValueError:
            return None
    try:
        return float(val)
    except (ValueError, TypeError):
        return None


def is_valid_price(val: Any) -> bool:
    """True if val is a real, finite, non-negative number.

    Strings are not prices here; callers coerce with safe_float first.
    Zero is a valid (free) price.
    """
    if isinstance(val, bool) or not isinstance(val, Real):
        return False
    return math.isfinite(val) and val >= 0


def coerce_id(val: Any) -> str:
    """Coerce a row identifier to its string form ("" when missing).

    Integral floats (as produced by pandas when a column holds gaps) are
    rendered without the trailing ".0".
    """
    if is_missing(val):
        return ""
    if isinstance(val, float) and val.is_integer():
        return str(int(val))
    return str(val)


def coerce_month(val: Any) -> int:
    """Coerce a month number to int, falling back to 0."""
    if isinstance(val, bool):
        return 0
    num = safe_float(val)
    if num is None or not math.isfinite(num):
        return 0
    return int(num)


def normalise_date(val: Any) -> pd.Timestamp | None:
    """Convert an ISO string or datetime to a UTC pd.Timestamp.

    Naive values are assumed to be UTC. Returns None for unparseable
    values.
    """
    if is_missing(val):
        return None
    if not isinstance(val, (str, date, datetime, pd.Timestamp)):
        logger.warning("Could not parse date value: %s", val)
        return None
    try:
        ts = pd.Timestamp(val)
    except (ValueError, TypeError):
        logger.warning("Could not parse date value: %s", val)
        return None
    if ts is pd.NaT:
        return None
    if ts.tzinfo is None:
        return ts.tz_localize("UTC")
    return ts.tz_convert("UTC")


def first_present(*values: Any) -> Any:
    """Return the first value that is not missing, or None."""
    for val in values:
        if not is_missing(val):
            return val
    return None

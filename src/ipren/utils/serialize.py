"""
Normalization utilities for tabular rule, matter and event data.

CSV cells arrive as strings, NaN floats, numpy scalars or pandas
timestamps. These helpers turn them into plain Python values the dataclasses
expect.
"""

from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from typing import Any, Optional

import numpy as np
import pandas as pd

TRUE_STRINGS = {"1", "true", "t", "yes", "y", "on", "x"}


def is_missing(value: Any) -> bool:
    """
    True for None, NaN/NaT and blank strings.

    Example:
        >>> is_missing(float("nan"))
        True
        >>> is_missing("  ")
        True
        >>> is_missing(0)
        False
    """
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    try:
        return bool(pd.isna(value))
    except (TypeError, ValueError):
        return False


def normalize_optional_str(value: Any) -> Optional[str]:
    """
    Normalize a cell to a stripped string or None.

    Integral floats read by pandas (e.g. 12.0 for an id column with gaps)
    are rendered without the decimal part.
    """
    if is_missing(value):
        return None
    if isinstance(value, (float, np.floating)) and float(value).is_integer():
        return str(int(value))
    if isinstance(value, (int, np.integer)):
        return str(int(value))
    return str(value).strip()


def normalize_bool(value: Any, default: bool = False) -> bool:
    """
    Example:
        >>> normalize_bool("Yes")
        True
        >>> normalize_bool(np.int64(0))
        False
        >>> normalize_bool(None, default=True)
        True
    """
    if is_missing(value):
        return default
    if isinstance(value, (bool, np.bool_)):
        return bool(value)
    if isinstance(value, (int, float, np.integer, np.floating)):
        return bool(value)
    return str(value).strip().lower() in TRUE_STRINGS


def normalize_int(value: Any, default: int = 0) -> int:
    if is_missing(value):
        return default
    try:
        return int(float(value))
    except (TypeError, ValueError):
        raise ValueError(f"Expected an integer, got {value!r}") from None


def normalize_date(value: Any) -> Optional[date]:
    """
    Normalize a cell to a datetime.date or None.

    Example:
        >>> normalize_date("2020-02-29")
        datetime.date(2020, 2, 29)
        >>> normalize_date(pd.Timestamp("2021-01-31"))
        datetime.date(2021, 1, 31)
        >>> normalize_date(None) is None
        True
    """
    if is_missing(value):
        return None
    if isinstance(value, pd.Timestamp):
        return value.date()
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, np.datetime64):
        return pd.Timestamp(value).date()
    try:
        return pd.Timestamp(str(value).strip()).date()
    except ValueError:
        raise ValueError(f"Unparseable date {value!r}") from None


def normalize_decimal(value: Any) -> Optional[Decimal]:
    if is_missing(value):
        return None
    if isinstance(value, Decimal):
        return value
    try:
        return Decimal(str(value).strip())
    except InvalidOperation:
        raise ValueError(f"Expected an amount, got {value!r}") from None


def to_plain(value: Any) -> Any:
    """Convert numpy scalars to plain Python values for CSV output."""
    if isinstance(value, np.integer):
        return int(value)
    if isinstance(value, np.floating):
        return float(value)
    if isinstance(value, np.bool_):
        return bool(value)
    return value

"""
Utility modules for ipren.

Submodules:
    ids: Stable identifier generation
    serialize: Cell normalization for tabular inputs
    tables: CSV loading and writing
"""

from ipren.utils.ids import stable_hash, generate_task_id, generate_event_id
from ipren.utils.serialize import (
    is_missing,
    normalize_bool,
    normalize_date,
    normalize_decimal,
    normalize_int,
    normalize_optional_str,
)

__all__ = [
    # Identifiers
    "stable_hash",
    "generate_task_id",
    "generate_event_id",
    # Normalization
    "is_missing",
    "normalize_bool",
    "normalize_date",
    "normalize_decimal",
    "normalize_int",
    "normalize_optional_str",
]

"""
Identifier utilities for ipren.

Task and event ids are derived from their inputs so that replaying the same
event against the same rules yields the same ids.
"""

import hashlib
from typing import List, Optional


def stable_hash(parts: List[str], length: int = 16) -> str:
    """
    Generate a stable hash from a list of string parts.

    Args:
        parts: List of strings to hash together.
        length: Number of hex characters to return (max 64 for SHA256).

    Returns:
        Hex string of specified length.

    Example:
        >>> len(stable_hash(["m1", "ev1", "r1"], length=8))
        8
    """
    combined = "|".join(parts)
    full_hash = hashlib.sha256(combined.encode("utf-8")).hexdigest()
    return full_hash[:length]


def generate_task_id(matter_id: str, trigger_id: str, rule_id: Optional[str], detail: str = "") -> str:
    """Task id from (matter, trigger event, rule), with detail for annuity years."""
    parts = [str(matter_id), str(trigger_id), str(rule_id or "-")]
    if detail:
        parts.append(str(detail))
    return f"task_{stable_hash(parts)}"


def generate_successor_id(task_id: str, due_year: int) -> str:
    return f"task_{stable_hash([task_id, 'next', str(due_year)])}"


def generate_event_id(matter_id: str, code: str, event_date) -> str:
    return f"ev_{stable_hash([str(matter_id), code, str(event_date)], length=12)}"

"""
Renewal listings over a task DataFrame.

Mirrors the renewal screens: filter by step, invoice step, grace flag and
matter status; at the start of the pipeline only pending tasks are shown,
and the closed and paid listings put the most recent renewals first.
"""

from __future__ import annotations

from typing import Dict, Iterable, Optional

import pandas as pd

from ipren.constants import INVOICE_PAID, INVOICE_TO_INVOICE, STEP_CLOSED
from ipren.core import Matter, Task
from ipren.utils.tables import tasks_to_frame


def tasks_frame(tasks: Iterable[Task], matters: Optional[Dict[str, Matter]] = None) -> pd.DataFrame:
    """Task DataFrame, with matter columns joined when matters are given."""
    frame = tasks_to_frame(tasks)
    if matters is None:
        return frame
    matter_rows = pd.DataFrame([
        {
            "matter_id": m.matter_id,
            "category": m.category,
            "country": m.country,
            "origin": m.origin,
            "dead": m.dead,
        }
        for m in matters.values()
    ], columns=["matter_id", "category", "country", "origin", "dead"])
    return frame.merge(matter_rows, on="matter_id", how="left")


def shows_only_pending(step: Optional[int], invoice_step: Optional[int]) -> bool:
    return not step and not invoice_step


def filter_renewals(
    frame: pd.DataFrame,
    step: Optional[int] = None,
    invoice_step: Optional[int] = None,
    grace: Optional[bool] = None,
    dead: Optional[bool] = None,
) -> pd.DataFrame:
    """Filter a task frame the way the renewal listing does."""
    if frame.empty:
        return frame
    mask = pd.Series(True, index=frame.index)
    if step is not None:
        mask &= frame["step"] == int(step)
    if invoice_step is not None:
        mask &= frame["invoice_step"] == int(invoice_step)
    if grace is not None:
        mask &= frame["grace_period"].astype(bool) == bool(grace)
    if dead is not None and "dead" in frame.columns:
        mask &= frame["dead"].fillna(False).astype(bool) == bool(dead)
    if shows_only_pending(step, invoice_step):
        mask &= ~frame["done"].astype(bool)

    result = frame[mask]
    descending = step == STEP_CLOSED or invoice_step == INVOICE_PAID
    return result.sort_values(["due_date", "task_id"], ascending=not descending).reset_index(drop=True)


def export_ready(frame: pd.DataFrame) -> pd.DataFrame:
    """Tasks waiting to be invoiced."""
    if frame.empty:
        return frame
    return frame[frame["invoice_step"] == INVOICE_TO_INVOICE].reset_index(drop=True)

"""
CSV loading and writing for rules, matters, events and countries.

Input tables use the column names of the corresponding dataclass fields.
Row order of the rules table is the rule insertion order used as the last
tie-break when matching.
"""

import logging
from pathlib import Path
from typing import Dict, Iterable, List, Union

import pandas as pd

from ipren.core import Country, Event, Matter, Rule, Task
from ipren.utils.serialize import (
    normalize_bool,
    normalize_date,
    normalize_decimal,
    normalize_int,
    normalize_optional_str,
    to_plain,
)

logger = logging.getLogger(__name__)

TableSource = Union[str, Path, pd.DataFrame]

REQUIRED_RULE_COLUMNS = {"trigger_event", "task_code"}
REQUIRED_MATTER_COLUMNS = {"matter_id", "category", "country"}
REQUIRED_EVENT_COLUMNS = {"matter_id", "code", "event_date"}


def _read(source: TableSource) -> pd.DataFrame:
    if isinstance(source, pd.DataFrame):
        return source
    return pd.read_csv(source, dtype=str, keep_default_na=True)


def _check_columns(df: pd.DataFrame, required: set, table: str) -> None:
    missing = required - set(df.columns)
    if missing:
        raise ValueError(f"{table} table missing columns: {sorted(missing)}")


def load_rules(source: TableSource) -> List[Rule]:
    """Load task rules, preserving row order."""
    df = _read(source)
    _check_columns(df, REQUIRED_RULE_COLUMNS, "rules")
    rules: List[Rule] = []
    for idx, row in enumerate(df.to_dict("records")):
        rule_id = normalize_optional_str(row.get("rule_id")) or f"rule_{idx + 1}"
        rules.append(Rule(
            rule_id=rule_id,
            trigger_event=normalize_optional_str(row.get("trigger_event")),
            task_code=normalize_optional_str(row.get("task_code")),
            for_category=normalize_optional_str(row.get("for_category")),
            for_country=normalize_optional_str(row.get("for_country")),
            for_origin=normalize_optional_str(row.get("for_origin")),
            for_type=normalize_optional_str(row.get("for_type")),
            days=normalize_int(row.get("days")),
            months=normalize_int(row.get("months")),
            years=normalize_int(row.get("years")),
            end_of_month=normalize_bool(row.get("end_of_month")),
            use_priority=normalize_bool(row.get("use_priority")),
            recurring=normalize_bool(row.get("recurring")),
            condition_event=normalize_optional_str(row.get("condition_event")),
            abort_on=normalize_optional_str(row.get("abort_on")),
            use_before=normalize_date(row.get("use_before")),
            use_after=normalize_date(row.get("use_after")),
            clear_task=normalize_bool(row.get("clear_task")),
            delete_task=normalize_bool(row.get("delete_task")),
            active=normalize_bool(row.get("active"), default=True),
            cost=normalize_decimal(row.get("cost")),
            fee=normalize_decimal(row.get("fee")),
            currency=normalize_optional_str(row.get("currency")) or "EUR",
            detail=normalize_optional_str(row.get("detail")),
            responsible=normalize_optional_str(row.get("responsible")),
        ))
    logger.info(f"Loaded {len(rules)} rules")
    return rules


def load_matters(source: TableSource) -> Dict[str, Matter]:
    df = _read(source)
    _check_columns(df, REQUIRED_MATTER_COLUMNS, "matters")
    matters: Dict[str, Matter] = {}
    for row in df.to_dict("records"):
        matter_id = normalize_optional_str(row.get("matter_id"))
        if matter_id in matters:
            raise ValueError(f"Duplicate matter_id {matter_id!r}")
        discount = row.get("discount")
        matters[matter_id] = Matter(
            matter_id=matter_id,
            category=normalize_optional_str(row.get("category")),
            country=normalize_optional_str(row.get("country")),
            origin=normalize_optional_str(row.get("origin")),
            type_code=normalize_optional_str(row.get("type_code")),
            container_id=normalize_optional_str(row.get("container_id")),
            discount=float(normalize_decimal(discount) or 0),
            sme_status=normalize_bool(row.get("sme_status")),
            expire_date=normalize_date(row.get("expire_date")),
            dead=normalize_bool(row.get("dead")),
        )
    logger.info(f"Loaded {len(matters)} matters")
    return matters


def load_events(source: TableSource, matters: Dict[str, Matter]) -> List[Event]:
    """Load events and attach them to their matters. Unknown matters are skipped."""
    df = _read(source)
    _check_columns(df, REQUIRED_EVENT_COLUMNS, "events")
    events: List[Event] = []
    orphans = 0
    for idx, row in enumerate(df.to_dict("records")):
        matter_id = normalize_optional_str(row.get("matter_id"))
        matter = matters.get(matter_id)
        if matter is None:
            orphans += 1
            continue
        event_date = normalize_date(row.get("event_date"))
        if event_date is None:
            raise ValueError(f"events row {idx + 1} (matter {matter_id!r}) has no event_date")
        event = Event(
            event_id=normalize_optional_str(row.get("event_id")) or f"ev_{idx + 1}",
            matter_id=matter_id,
            code=normalize_optional_str(row.get("code")),
            event_date=event_date,
            alt_matter_id=normalize_optional_str(row.get("alt_matter_id")),
            detail=normalize_optional_str(row.get("detail")),
        )
        matter.events.append(event)
        events.append(event)
    if orphans:
        logger.warning(f"Skipped {orphans} events referencing unknown matters")
    logger.info(f"Loaded {len(events)} events")
    return events


def load_countries(source: TableSource) -> Dict[str, Country]:
    df = _read(source)
    _check_columns(df, {"iso"}, "countries")
    countries: Dict[str, Country] = {}
    for row in df.to_dict("records"):
        iso = normalize_optional_str(row.get("iso"))
        countries[iso] = Country(
            iso=iso,
            renewal_first=normalize_int(row.get("renewal_first"), default=2),
            renewal_base=normalize_optional_str(row.get("renewal_base")) or "FIL",
            renewal_start=normalize_optional_str(row.get("renewal_start")) or "FIL",
        )
    return countries


def tasks_to_frame(tasks: Iterable[Task]) -> pd.DataFrame:
    rows = [{k: to_plain(v) for k, v in task.to_dict().items()} for task in tasks]
    if not rows:
        return pd.DataFrame(columns=list(Task.__dataclass_fields__))
    return pd.DataFrame(rows)


def write_tasks(tasks: Iterable[Task], path: Union[str, Path]) -> Path:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    frame = tasks_to_frame(tasks)
    frame.to_csv(path, index=False)
    logger.info(f"Wrote {len(frame)} tasks to {path}")
    return path

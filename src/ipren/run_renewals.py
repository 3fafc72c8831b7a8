#!/usr/bin/env python3
"""
Generate renewal and deadline tasks from rule, matter and event tables.

Usage:
    python -m ipren.run_renewals --rules PATH --matters PATH --events PATH
        [--countries PATH] [--output DIR] [--today YYYY-MM-DD] [--audit]
"""

import argparse
import logging
from datetime import date
from pathlib import Path
from typing import Dict, Optional

from tqdm import tqdm

from ipren.config import RenewalConfig
from ipren.core import Task
from ipren.evaluation import audits_to_frame, run_rule_audits
from ipren.rules import TaskGenerator, annuity_schedule, expired_matters
from ipren.store import RenewalStore
from ipren.utils.serialize import normalize_date
from ipren.utils.tables import (
    load_countries,
    load_events,
    load_matters,
    load_rules,
    write_tasks,
)

logger = logging.getLogger(__name__)


# =============================================================================
# PIPELINE
# =============================================================================

def run_renewals(
    rules_path: Path,
    matters_path: Path,
    events_path: Path,
    output_dir: Path,
    countries_path: Optional[Path] = None,
    today: Optional[date] = None,
    config: Optional[RenewalConfig] = None,
    audit: bool = False,
    progress: bool = True,
) -> Dict[str, int]:
    """
    Load the tables, generate tasks for every matter and write tasks.csv.

    Returns:
        Counts of matters, tasks and generation outcomes.
    """
    config = config or RenewalConfig()
    today = today or date.today()
    output_dir = Path(output_dir)

    rules = load_rules(rules_path)
    matters = load_matters(matters_path)
    load_events(events_path, matters)
    countries = load_countries(countries_path) if countries_path else {}

    store = RenewalStore(
        matters=matters.values(),
        rules=rules,
        countries=countries.values(),
        creator=config.creator,
    )

    for event in expired_matters(store.matters.values(), today=today):
        store.record_event(event)

    generator = TaskGenerator(config, today=today)
    stats = {"matters": len(store.matters), "created": 0, "updated": 0, "cleared": 0,
             "deleted": 0, "skipped": 0, "warnings": 0, "annuities": 0}

    matter_iter = store.matters.values()
    if progress:
        matter_iter = tqdm(list(matter_iter), desc="Evaluating matters", unit="matter")

    for matter in matter_iter:
        result = generator.evaluate_matter(matter, store.rules, store.tasks_for_matter(matter.matter_id))
        result.apply(store.tasks)
        for key, value in result.summary().items():
            stats[key] += value

        country = store.countries.get(matter.country)
        if country is None or matter.is_terminated:
            continue
        for trigger in matter.events_with_code(country.renewal_start):
            for task in annuity_schedule(
                matter, trigger, country,
                base_date=matter.priority_date(), today=today, config=config,
            ):
                if task.task_id not in store.tasks:
                    store.save_task(task)
                    stats["annuities"] += 1

    stats["tasks"] = len(store.tasks)
    write_tasks(_ordered(store.tasks), output_dir / "tasks.csv")

    if audit:
        audits = run_rule_audits(store.rules, store.matters.values())
        audits_to_frame(audits).to_csv(output_dir / "audits.csv", index=False)
        failed = [a.gate_id for a in audits if not a.passed]
        stats["audits_failed"] = len(failed)
        for result in audits:
            status = "PASS" if result.passed else "FAIL"
            print(f"  [{status}] {result.gate_id}: {result.succeeded}/{result.total} {result.details}")

    return stats


def _ordered(tasks: Dict[str, Task]):
    return sorted(tasks.values(), key=lambda t: (t.matter_id, t.due_date, t.code, t.task_id))


# =============================================================================
# CLI
# =============================================================================

def main(argv=None):
    parser = argparse.ArgumentParser(
        description="Generate renewal tasks from rules and recorded events"
    )
    parser.add_argument("--rules", required=True, help="Path to rules CSV")
    parser.add_argument("--matters", required=True, help="Path to matters CSV")
    parser.add_argument("--events", required=True, help="Path to events CSV")
    parser.add_argument("--countries", default=None, help="Path to country annuity parameters CSV")
    parser.add_argument("--output", default="output", help="Output directory")
    parser.add_argument("--today", default=None, help="Reference date (YYYY-MM-DD)")
    parser.add_argument("--env-file", default=None, help="Optional .env file with IPREN_* settings")
    parser.add_argument("--audit", action="store_true", help="Run rule data-quality audits")
    parser.add_argument("--quiet", action="store_true", help="Hide progress and INFO logs")

    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.WARNING if args.quiet else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    config = RenewalConfig.from_env(dotenv_path=args.env_file)
    stats = run_renewals(
        rules_path=Path(args.rules),
        matters_path=Path(args.matters),
        events_path=Path(args.events),
        output_dir=Path(args.output),
        countries_path=Path(args.countries) if args.countries else None,
        today=normalize_date(args.today),
        config=config,
        audit=args.audit,
        progress=not args.quiet,
    )
    print(
        f"\nRenewal generation complete: {stats['tasks']} tasks for {stats['matters']} matters "
        f"({stats['created']} created, {stats['updated']} updated, {stats['cleared']} cleared, "
        f"{stats['deleted']} deleted, {stats['annuities']} annuities)"
    )
    return 0


if __name__ == "__main__":
    raise SystemExit(main())

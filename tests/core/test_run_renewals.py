from __future__ import annotations

import pandas as pd
import pytest

from ipren.run_renewals import main


@pytest.fixture
def tables(tmp_path):
    (tmp_path / "rules.csv").write_text(
        "rule_id,trigger_event,task_code,for_country,years,months,abort_on,clear_task\n"
        "exa,FIL,EXA,,,18,,\n"
        "exa_fr,FIL,EXA,FR,,24,,\n"
        "lap,LAP,EXA,,1,,LAP,true\n"
    )
    (tmp_path / "matters.csv").write_text(
        "matter_id,category,country,expire_date\n"
        "m1,PAT,FR,2030-01-31\n"
        "m2,PAT,DE,\n"
    )
    (tmp_path / "events.csv").write_text(
        "event_id,matter_id,code,event_date\n"
        "e1,m1,FIL,2020-01-31\n"
        "e2,m2,FIL,2020-03-01\n"
    )
    (tmp_path / "countries.csv").write_text(
        "iso,renewal_first,renewal_base,renewal_start\n"
        "FR,2,FIL,FIL\n"
    )
    return tmp_path


def _run(tables, *extra):
    return main([
        "--rules", str(tables / "rules.csv"),
        "--matters", str(tables / "matters.csv"),
        "--events", str(tables / "events.csv"),
        "--countries", str(tables / "countries.csv"),
        "--output", str(tables / "out"),
        "--today", "2020-06-01",
        "--quiet",
        *extra,
    ])


def test_cli_writes_tasks(tables):
    assert _run(tables) == 0
    tasks = pd.read_csv(tables / "out" / "tasks.csv")

    exa = tasks[tasks["code"] == "EXA"].set_index("matter_id")
    assert exa.loc["m1", "due_date"] == "2022-01-31"
    assert exa.loc["m1", "rule_id"] == "exa_fr"
    assert exa.loc["m2", "due_date"] == "2021-09-01"

    renewals = tasks[tasks["code"] == "REN"]
    assert set(renewals["matter_id"]) == {"m1"}
    assert renewals["detail"].astype(str).tolist()[0] == "2"
    assert renewals["due_date"].max() <= "2030-01-31"


def test_cli_is_idempotent(tables):
    _run(tables)
    first = pd.read_csv(tables / "out" / "tasks.csv")
    _run(tables)
    second = pd.read_csv(tables / "out" / "tasks.csv")
    pd.testing.assert_frame_equal(first, second)


def test_cli_audit(tables, capsys):
    _run(tables, "--audit")
    audits = pd.read_csv(tables / "out" / "audits.csv")

    assert set(audits["gate_id"]) == {"rule_offset_configuration", "rule_ambiguity", "priority_basis"}
    assert "[PASS] rule_offset_configuration" in capsys.readouterr().out
